"""
检索请求数据模型

在向量化、各路召回、合并、排序各阶段之间传递
"""

from dataclasses import dataclass
from typing import List, Optional

from tutor_kb.rag.models.retrieval_settings import KnowledgeRetrievalSettings


@dataclass
class RetrievalRequest:
    """
    检索请求

    query_embedding 为空时跳过所有向量检索；caller_id 为空时不检索学员记忆
    """

    # 必填字段
    query_text: str

    # 由向量化服务生成（失败时保持为空）
    query_embedding: Optional[List[float]] = None

    caller_id: Optional[str] = None

    chunk_limit: int = 5
    assertion_limit: int = 5
    memory_limit: int = 3
    min_relevance: float = 0.3
    top_results: int = 10

    def __post_init__(self):
        """数据验证"""
        if not self.query_text or not self.query_text.strip():
            raise ValueError("query_text 不能为空")
        for name in ("chunk_limit", "assertion_limit", "memory_limit", "top_results"):
            if getattr(self, name) < 0:
                raise ValueError(f"{name} 不能为负数")
        if not 0.0 <= self.min_relevance <= 1.0:
            raise ValueError("min_relevance 必须在 [0, 1] 范围内")

    @classmethod
    def from_settings(
        cls,
        query_text: str,
        settings: KnowledgeRetrievalSettings,
        caller_id: Optional[str] = None,
        query_embedding: Optional[List[float]] = None,
    ) -> "RetrievalRequest":
        return cls(
            query_text=query_text,
            query_embedding=query_embedding,
            caller_id=caller_id,
            chunk_limit=settings.chunk_limit,
            assertion_limit=settings.assertion_limit,
            memory_limit=settings.memory_limit,
            min_relevance=settings.min_relevance,
            top_results=settings.top_results,
        )
