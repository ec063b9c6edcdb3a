"""
RAG 模块 - 实时知识混合检索引擎

断言（向量 + 关键词混合）、知识切片、学员记忆三路并行召回，
按 key 去重取平均分，再做跨来源全局排序
"""

# 数据模型
from tutor_kb.rag.models import (
    ConversationTurn,
    KnowledgeRetrievalSettings,
    RawCandidate,
    RetrievalRequest,
    ScoredItem,
    SourceType,
)

# 内容存储客户端
from tutor_kb.rag.clients import IContentStore, SqlContentStore

# 召回策略
from tutor_kb.rag.strategies import (
    AssertionRetriever,
    ChunkRetriever,
    IRetrievalStrategy,
    MemoryRetriever,
)

# 融合服务
from tutor_kb.rag.fusion import IFusionService, MeanMergeImpl, MeanScoreMerger

# 排序与格式化
from tutor_kb.rag.ranking import GlobalRanker
from tutor_kb.rag.formatter import SnippetFormatter
from tutor_kb.rag.query_builder import QueryBuilder

# 检索网关（核心编排器）
from tutor_kb.rag.knowledge_gateway import KnowledgeGateway

__all__ = [
    # 数据模型
    "ConversationTurn",
    "KnowledgeRetrievalSettings",
    "RawCandidate",
    "RetrievalRequest",
    "ScoredItem",
    "SourceType",
    # 客户端
    "IContentStore",
    "SqlContentStore",
    # 召回策略
    "IRetrievalStrategy",
    "AssertionRetriever",
    "ChunkRetriever",
    "MemoryRetriever",
    # 融合服务
    "IFusionService",
    "MeanMergeImpl",
    "MeanScoreMerger",
    # 排序与格式化
    "GlobalRanker",
    "SnippetFormatter",
    "QueryBuilder",
    # 核心网关
    "KnowledgeGateway",
]
