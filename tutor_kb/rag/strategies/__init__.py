"""
召回策略模块

定义召回策略接口和具体实现（断言混合召回、知识切片召回、学员记忆召回）
"""

from tutor_kb.rag.strategies.base import IRetrievalStrategy
from tutor_kb.rag.strategies.assertion_strategy import AssertionRetriever
from tutor_kb.rag.strategies.chunk_strategy import ChunkRetriever
from tutor_kb.rag.strategies.memory_strategy import MemoryRetriever

__all__ = ["IRetrievalStrategy", "AssertionRetriever", "ChunkRetriever", "MemoryRetriever"]
