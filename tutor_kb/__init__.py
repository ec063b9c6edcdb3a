"""实时知识检索服务：为语音辅导通话提供混合检索与排序"""

__version__ = "1.0.0"
