"""
内容存储接口定义

知识检索只依赖这里声明的四类只读查询，具体实现见
SqlContentStore（PostgreSQL + pgvector）
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import List, Optional


@dataclass
class ChunkRecord:
    """知识切片查询结果（score 已是 [0,1] 相似度）"""

    id: str
    content: str
    score: float
    title: Optional[str] = None


@dataclass
class AssertionRecord:
    """
    断言查询结果

    向量检索返回 score（1 - 余弦距离）；关键词检索只返回候选，score 为空，
    由 AssertionRetriever 统一打分
    """

    id: str
    assertion: str
    category: Optional[str] = None
    chapter: Optional[str] = None
    tags: List[str] = field(default_factory=list)
    exam_relevance: Optional[float] = None
    depth: Optional[int] = None
    trust_level: Optional[str] = None
    source_name: Optional[str] = None
    score: Optional[float] = None


@dataclass
class MemoryRecord:
    id: str
    key: str
    value: str
    category: Optional[str] = None
    confidence: float = 0.5

    @property
    def text(self) -> str:
        return f"{self.key}: {self.value}"


class IContentStore(ABC):
    """
    内容存储接口

    所有方法只读、无副作用，可并发调用；任何一个调用都可能失败
    """

    @abstractmethod
    async def search_chunks_hybrid(
        self,
        query: str,
        embedding: Optional[List[float]],
        caller_id: Optional[str],
        limit: int,
        min_relevance: float,
    ) -> List[ChunkRecord]:
        """
        知识切片检索

        有向量时按余弦相似度检索，否则退化为关键词检索；
        caller_id 非空时额外包含该学员私有的切片
        """
        pass

    @abstractmethod
    async def search_assertions_by_vector(
        self, embedding: List[float], limit: int, min_relevance: float = 0.0
    ) -> List[AssertionRecord]:
        """按余弦相似度检索断言，过滤 score < min_relevance"""
        pass

    @abstractmethod
    async def search_assertions_by_keyword(
        self, query: str, limit: int
    ) -> List[AssertionRecord]:
        """按关键词/标签检索断言候选，按考试相关度降序"""
        pass

    @abstractmethod
    async def search_memories_by_keyword(
        self, caller_id: str, query: str, limit: int
    ) -> List[MemoryRecord]:
        """检索学员自己的记忆，按置信度降序"""
        pass

    @abstractmethod
    async def find_caller_id_by_phone(self, phone: str) -> Optional[str]:
        """根据来电号码识别学员"""
        pass
