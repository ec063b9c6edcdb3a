"""
数据模型模块

定义知识检索流水线的核心数据结构
"""

from tutor_kb.rag.models.candidate import RawCandidate, ScoredItem, SourceType, clamp_score
from tutor_kb.rag.models.conversation import ConversationTurn
from tutor_kb.rag.models.retrieval_request import RetrievalRequest
from tutor_kb.rag.models.retrieval_settings import KnowledgeRetrievalSettings

__all__ = [
    "RawCandidate",
    "ScoredItem",
    "SourceType",
    "clamp_score",
    "ConversationTurn",
    "RetrievalRequest",
    "KnowledgeRetrievalSettings",
]
