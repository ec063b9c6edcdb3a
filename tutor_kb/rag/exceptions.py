"""
检索异常定义

这些异常只在检索流水线内部流转：向量化失败降级为纯关键词检索，
单路召回失败降级为空列表，任何异常都不会返回给调用方
"""


class RetrievalError(Exception):
    """检索流水线异常基类"""


class EmbeddingUnavailableError(RetrievalError):
    """向量化服务不可用（未配置、超时或调用失败）"""


class ContentStoreError(RetrievalError):
    """内容存储查询失败"""

