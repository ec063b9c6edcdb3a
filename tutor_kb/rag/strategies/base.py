"""
召回策略接口定义

定义统一的召回策略接口，所有召回策略必须实现此接口
"""

from abc import ABC, abstractmethod
from typing import List

from tutor_kb.rag.models.candidate import ScoredItem, SourceType
from tutor_kb.rag.models.retrieval_request import RetrievalRequest
from tutor_kb.rag.models.retrieval_settings import KnowledgeRetrievalSettings


class IRetrievalStrategy(ABC):
    """
    召回策略接口

    约定：retrieve 内部捕获自身的所有异常并返回空列表，
    单路召回失败不能影响整个请求
    """

    @abstractmethod
    async def retrieve(
        self, request: RetrievalRequest, settings: KnowledgeRetrievalSettings
    ) -> List[ScoredItem]:
        """
        执行召回

        Args:
            request: 检索请求（查询文本、可选向量、可选学员ID、各路上限）
            settings: 本次请求使用的检索配置（打分权重等）

        Returns:
            已按本策略上限截断的条目列表
        """
        pass

    @property
    @abstractmethod
    def strategy_name(self) -> str:
        """
        策略名称

        用于日志记录，例如 "assertion" / "chunk" / "memory"
        """
        pass

    @property
    @abstractmethod
    def source_type(self) -> SourceType:
        pass
