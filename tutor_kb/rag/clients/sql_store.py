"""
SQL 内容存储

基于 SQLAlchemy 同步会话实现 IContentStore：
- 关键词检索使用可移植 SQL（ILIKE / LIKE），PostgreSQL 与 sqlite 都可运行
- 向量检索使用 pgvector 的 <=> 余弦距离算子，仅 PostgreSQL 可用

同步查询通过 asyncio.to_thread 放到工作线程执行，多路召回之间的
数据库耗时可以重叠
"""

import asyncio
import json
from typing import Callable, List, Optional

from loguru import logger
from sqlalchemy import String, cast, or_, select, text
from sqlalchemy.orm import Session

from tutor_kb.models.caller import Caller
from tutor_kb.models.content import ContentAssertion, KnowledgeChunk
from tutor_kb.models.memory import CallerMemory
from tutor_kb.rag.clients.base import (
    AssertionRecord,
    ChunkRecord,
    IContentStore,
    MemoryRecord,
)
from tutor_kb.rag.exceptions import ContentStoreError
from tutor_kb.rag.scoring import MAX_CONTENT_TERMS, chunk_keyword_score, tokenize

# 切片关键词检索时先多取一些候选，打分过滤后再截断
CHUNK_KEYWORD_OVERFETCH = 3

_ASSERTION_VECTOR_SQL = text(
    """
    SELECT a.id, a.assertion, a.category, a.chapter, a.tags, a.exam_relevance, a.depth,
           s.trust_level, s.name AS source_name,
           1 - (a.embedding <=> CAST(:embedding AS vector)) AS similarity
    FROM content_assertions a
    JOIN content_sources s ON s.id = a.source_id
    WHERE a.embedding IS NOT NULL
      AND 1 - (a.embedding <=> CAST(:embedding AS vector)) >= :min_relevance
    ORDER BY a.embedding <=> CAST(:embedding AS vector)
    LIMIT :limit
    """
)

_CHUNK_VECTOR_SQL = text(
    """
    SELECT c.id, c.title, c.content,
           1 - (c.embedding <=> CAST(:embedding AS vector)) AS similarity
    FROM knowledge_chunks c
    WHERE c.embedding IS NOT NULL
      AND (c.caller_id IS NULL OR c.caller_id = :caller_id)
      AND 1 - (c.embedding <=> CAST(:embedding AS vector)) >= :min_relevance
    ORDER BY c.embedding <=> CAST(:embedding AS vector)
    LIMIT :limit
    """
)


def _vector_literal(embedding: List[float]) -> str:
    return "[" + ",".join(f"{float(v):.8f}" for v in embedding) + "]"


def _load_tags(raw) -> List[str]:
    if raw is None:
        return []
    if isinstance(raw, str):
        try:
            raw = json.loads(raw)
        except ValueError:
            return [raw]
    return [str(tag) for tag in raw]


class SqlContentStore(IContentStore):
    """
    SQLAlchemy 内容存储

    每次查询独立开启会话，查询结束立即关闭，不跨线程共享会话
    """

    def __init__(self, session_factory: Callable[[], Session]):
        self.session_factory = session_factory
        logger.info("SQL 内容存储初始化完成")

    # ------------------------------------------------------------------
    # IContentStore
    # ------------------------------------------------------------------

    async def search_chunks_hybrid(
        self,
        query: str,
        embedding: Optional[List[float]],
        caller_id: Optional[str],
        limit: int,
        min_relevance: float,
    ) -> List[ChunkRecord]:
        return await asyncio.to_thread(
            self._search_chunks, query, embedding, caller_id, limit, min_relevance
        )

    async def search_assertions_by_vector(
        self, embedding: List[float], limit: int, min_relevance: float = 0.0
    ) -> List[AssertionRecord]:
        return await asyncio.to_thread(
            self._search_assertions_vector, embedding, limit, min_relevance
        )

    async def search_assertions_by_keyword(
        self, query: str, limit: int
    ) -> List[AssertionRecord]:
        return await asyncio.to_thread(self._search_assertions_keyword, query, limit)

    async def search_memories_by_keyword(
        self, caller_id: str, query: str, limit: int
    ) -> List[MemoryRecord]:
        return await asyncio.to_thread(self._search_memories, caller_id, query, limit)

    async def find_caller_id_by_phone(self, phone: str) -> Optional[str]:
        return await asyncio.to_thread(self._find_caller_id, phone)

    # ------------------------------------------------------------------
    # 同步实现（在工作线程中执行）
    # ------------------------------------------------------------------

    @staticmethod
    def _supports_vector(session: Session) -> bool:
        return session.get_bind().dialect.name == "postgresql"

    def _search_chunks(
        self,
        query: str,
        embedding: Optional[List[float]],
        caller_id: Optional[str],
        limit: int,
        min_relevance: float,
    ) -> List[ChunkRecord]:
        if limit <= 0:
            return []
        with self.session_factory() as session:
            if embedding and self._supports_vector(session):
                rows = session.execute(
                    _CHUNK_VECTOR_SQL,
                    {
                        "embedding": _vector_literal(embedding),
                        "caller_id": caller_id,
                        "min_relevance": min_relevance,
                        "limit": limit,
                    },
                ).mappings().all()
                return [
                    ChunkRecord(
                        id=str(row["id"]),
                        title=row["title"],
                        content=row["content"],
                        score=float(row["similarity"]),
                    )
                    for row in rows
                ]

            if embedding:
                logger.debug("当前数据库不支持向量检索，切片检索退化为关键词模式")
            return self._search_chunks_keyword(session, query, caller_id, limit, min_relevance)

    def _search_chunks_keyword(
        self,
        session: Session,
        query: str,
        caller_id: Optional[str],
        limit: int,
        min_relevance: float,
    ) -> List[ChunkRecord]:
        words = tokenize(query)
        if not words:
            return []

        scope = KnowledgeChunk.caller_id.is_(None)
        if caller_id:
            scope = or_(scope, KnowledgeChunk.caller_id == caller_id)

        stmt = (
            select(KnowledgeChunk)
            .where(scope)
            .where(
                or_(
                    *[
                        KnowledgeChunk.content.icontains(word, autoescape=True)
                        for word in words[:MAX_CONTENT_TERMS]
                    ]
                )
            )
            .order_by(KnowledgeChunk.id)
            .limit(limit * CHUNK_KEYWORD_OVERFETCH)
        )
        chunks = session.execute(stmt).scalars().all()

        records = []
        for chunk in chunks:
            score = chunk_keyword_score(words, chunk.content)
            if score < min_relevance:
                continue
            records.append(
                ChunkRecord(id=str(chunk.id), title=chunk.title, content=chunk.content, score=score)
            )
        records.sort(key=lambda r: r.score, reverse=True)
        return records[:limit]

    def _search_assertions_vector(
        self, embedding: List[float], limit: int, min_relevance: float
    ) -> List[AssertionRecord]:
        if limit <= 0 or not embedding:
            return []
        with self.session_factory() as session:
            if not self._supports_vector(session):
                raise ContentStoreError("向量检索需要 PostgreSQL + pgvector")
            rows = session.execute(
                _ASSERTION_VECTOR_SQL,
                {
                    "embedding": _vector_literal(embedding),
                    "min_relevance": min_relevance,
                    "limit": limit,
                },
            ).mappings().all()

        return [
            AssertionRecord(
                id=str(row["id"]),
                assertion=row["assertion"],
                category=row["category"],
                chapter=row["chapter"],
                tags=_load_tags(row["tags"]),
                exam_relevance=row["exam_relevance"],
                depth=row["depth"],
                trust_level=row["trust_level"],
                source_name=row["source_name"],
                score=float(row["similarity"]),
            )
            for row in rows
        ]

    def _search_assertions_keyword(self, query: str, limit: int) -> List[AssertionRecord]:
        words = tokenize(query)
        if not words or limit <= 0:
            return []

        conditions = [
            ContentAssertion.assertion.icontains(word, autoescape=True)
            for word in words[:MAX_CONTENT_TERMS]
        ]
        # 标签以 JSON 数组存储：匹配带引号的完整元素，只命中整个标签
        conditions.extend(
            cast(ContentAssertion.tags, String).icontains(f'"{word}"', autoescape=True)
            for word in words
        )

        stmt = (
            select(ContentAssertion)
            .where(or_(*conditions))
            .order_by(ContentAssertion.exam_relevance.desc().nulls_last(), ContentAssertion.id)
            .limit(limit)
        )
        with self.session_factory() as session:
            assertions = session.execute(stmt).scalars().all()
            return [
                AssertionRecord(
                    id=str(a.id),
                    assertion=a.assertion,
                    category=a.category,
                    chapter=a.chapter,
                    tags=_load_tags(a.tags),
                    exam_relevance=a.exam_relevance,
                    depth=a.depth,
                    trust_level=a.source.trust_level if a.source else None,
                    source_name=a.source.name if a.source else None,
                )
                for a in assertions
            ]

    def _search_memories(self, caller_id: str, query: str, limit: int) -> List[MemoryRecord]:
        words = tokenize(query)
        if not words or limit <= 0:
            return []

        conditions = []
        for word in words[:MAX_CONTENT_TERMS]:
            conditions.append(CallerMemory.key.icontains(word, autoescape=True))
            conditions.append(CallerMemory.value.icontains(word, autoescape=True))

        stmt = (
            select(CallerMemory)
            .where(CallerMemory.caller_id == caller_id)
            .where(or_(*conditions))
            .order_by(CallerMemory.confidence.desc(), CallerMemory.id)
            .limit(limit)
        )
        with self.session_factory() as session:
            memories = session.execute(stmt).scalars().all()
            return [
                MemoryRecord(
                    id=str(m.id),
                    key=m.key,
                    value=m.value,
                    category=m.category,
                    confidence=float(m.confidence),
                )
                for m in memories
            ]

    def _find_caller_id(self, phone: str) -> Optional[str]:
        normalized = "".join((phone or "").split())
        if not normalized:
            return None
        with self.session_factory() as session:
            return session.execute(
                select(Caller.id).where(Caller.phone == normalized).limit(1)
            ).scalar_one_or_none()
