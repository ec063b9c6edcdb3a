from __future__ import annotations

import asyncio
import unittest

from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from tutor_kb.core.database import Base
from tutor_kb.models import Caller, CallerMemory, ContentAssertion, ContentSource, KnowledgeChunk
from tutor_kb.rag.clients.sql_store import SqlContentStore
from tutor_kb.rag.exceptions import ContentStoreError


class SqlContentStoreTestCase(unittest.TestCase):
    def setUp(self) -> None:
        # 检索在工作线程中执行，sqlite 内存库需要共享同一连接
        self._engine = create_engine(
            "sqlite+pysqlite:///:memory:",
            connect_args={"check_same_thread": False},
            poolclass=StaticPool,
        )
        self._SessionLocal = sessionmaker(bind=self._engine)
        Base.metadata.create_all(bind=self._engine)

        with self._SessionLocal() as db:
            self._seed(db)
            db.commit()

        self.store = SqlContentStore(self._SessionLocal)

    def tearDown(self) -> None:
        self._engine.dispose()

    def _seed(self, db: Session) -> None:
        db.add(ContentSource(id="s1", slug="biology", name="Biology Textbook", trust_level="PUBLISHED_REFERENCE"))
        db.add(Caller(id="caller-1", name="Sam", phone="+447700900123"))
        db.add(Caller(id="caller-2", name="Alex", phone="+447700900456"))
        db.add_all(
            [
                ContentAssertion(
                    id="a1",
                    source_id="s1",
                    assertion="The light reaction happens in the thylakoid",
                    category="fact",
                    chapter="Chapter 3",
                    tags=["photosynthesis"],
                    exam_relevance=0.9,
                    depth=2,
                ),
                ContentAssertion(
                    id="a2",
                    source_id="s1",
                    assertion="Chlorophyll absorbs red and blue wavelengths",
                    category="fact",
                    tags=["light", "pigments"],
                    exam_relevance=0.95,
                    depth=1,
                ),
                ContentAssertion(
                    id="a3",
                    source_id="s1",
                    assertion="Light intensity limits the rate of photosynthesis",
                    tags=[],
                    exam_relevance=None,
                ),
                ContentAssertion(
                    id="a5",
                    source_id="s1",
                    assertion="Stomata open during the day",
                    tags=["light-reaction", "enlightenment"],
                    exam_relevance=0.97,
                ),
                ContentAssertion(
                    id="a4",
                    source_id="s1",
                    assertion="Mitosis produces two identical cells",
                    tags=["cell-division"],
                    exam_relevance=0.99,
                ),
            ]
        )
        db.add_all(
            [
                KnowledgeChunk(id="c1", content="Photosynthesis converts light energy into chemical energy.", title="Overview"),
                KnowledgeChunk(id="c2", content="Notes on photosynthesis and light from my lesson.", caller_id="caller-1"),
                KnowledgeChunk(id="c3", content="Mitosis and meiosis compared.", title="Cell division"),
            ]
        )
        db.add_all(
            [
                CallerMemory(id="m1", caller_id="caller-1", key="exam_date", value="photosynthesis test Friday", confidence=0.6),
                CallerMemory(id="m2", caller_id="caller-1", key="struggles_with", value="light reaction", confidence=0.9),
                CallerMemory(id="m3", caller_id="caller-1", key="pet", value="a dog named Rex", confidence=1.0),
                CallerMemory(id="m4", caller_id="caller-2", key="goal", value="photosynthesis top marks", confidence=0.8),
            ]
        )

    def _run_async(self, awaitable):
        return asyncio.run(awaitable)

    def test_keyword_assertions_ordered_by_exam_relevance(self) -> None:
        records = self._run_async(self.store.search_assertions_by_keyword("light reaction", 10))
        # a2 只命中标签 light；a5 的标签只包含查询词的一部分，不算命中；a3 未标注考试相关度，排最后
        self.assertEqual([r.id for r in records], ["a2", "a1", "a3"])
        first = records[1]
        self.assertEqual(first.tags, ["photosynthesis"])
        self.assertEqual(first.trust_level, "PUBLISHED_REFERENCE")
        self.assertEqual(first.source_name, "Biology Textbook")
        self.assertIsNone(first.score)

    def test_keyword_tags_match_whole_elements(self) -> None:
        self.assertEqual([r.id for r in self._run_async(self.store.search_assertions_by_keyword("Pigments", 5))], ["a2"])
        self.assertEqual(self._run_async(self.store.search_assertions_by_keyword("enlighten", 5)), [])

    def test_keyword_assertions_respect_limit_and_short_queries(self) -> None:
        self.assertEqual(len(self._run_async(self.store.search_assertions_by_keyword("light", 1))), 1)
        self.assertEqual(self._run_async(self.store.search_assertions_by_keyword("a an", 5)), [])

    def test_keyword_matching_escapes_wildcards(self) -> None:
        self.assertEqual(self._run_async(self.store.search_assertions_by_keyword("100%_light", 5)), [])

    def test_memories_scoped_to_caller_and_ordered_by_confidence(self) -> None:
        records = self._run_async(
            self.store.search_memories_by_keyword("caller-1", "photosynthesis light", 5)
        )
        self.assertEqual([r.id for r in records], ["m2", "m1"])
        self.assertEqual(records[0].text, "struggles_with: light reaction")

    def test_find_caller_by_phone(self) -> None:
        self.assertEqual(self._run_async(self.store.find_caller_id_by_phone(" +44 7700 900123 ")), "caller-1")
        self.assertIsNone(self._run_async(self.store.find_caller_id_by_phone("+10000000000")))
        self.assertIsNone(self._run_async(self.store.find_caller_id_by_phone("   ")))

    def test_chunk_keyword_search_with_caller_scope(self) -> None:
        public = self._run_async(self.store.search_chunks_hybrid("photosynthesis light", None, None, 5, 0.3))
        private = self._run_async(
            self.store.search_chunks_hybrid("photosynthesis light", None, "caller-1", 5, 0.3)
        )
        self.assertEqual([r.id for r in public], ["c1"])
        self.assertEqual(sorted(r.id for r in private), ["c1", "c2"])
        self.assertEqual(public[0].score, 1.0)
        self.assertEqual(public[0].title, "Overview")

    def test_chunk_keyword_search_applies_min_relevance(self) -> None:
        records = self._run_async(
            self.store.search_chunks_hybrid("photosynthesis mitosis meiosis osmosis", None, None, 5, 0.5)
        )
        self.assertEqual([r.id for r in records], ["c3"])

    def test_chunk_search_with_embedding_falls_back_on_sqlite(self) -> None:
        records = self._run_async(
            self.store.search_chunks_hybrid("photosynthesis light", [1.0, 0.0], None, 5, 0.3)
        )
        self.assertEqual([r.id for r in records], ["c1"])

    def test_assertion_vector_search_requires_postgres(self) -> None:
        with self.assertRaises(ContentStoreError):
            self._run_async(self.store.search_assertions_by_vector([1.0, 0.0], 5))


if __name__ == "__main__":
    unittest.main()
