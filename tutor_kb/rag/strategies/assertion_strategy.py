"""
断言召回策略（混合检索）

有查询向量时并发执行向量检索与关键词检索，各自多取 2 倍候选，
再按断言原文去重、取平均分；没有向量时只走关键词检索
"""

import asyncio
from typing import List, Optional

from loguru import logger

from tutor_kb.rag.clients.base import AssertionRecord, IContentStore
from tutor_kb.rag.formatter import annotate_assertion
from tutor_kb.rag.fusion.base import IFusionService
from tutor_kb.rag.fusion.mean_merge import MeanMergeImpl
from tutor_kb.rag.models.candidate import RawCandidate, ScoredItem, SourceType
from tutor_kb.rag.models.retrieval_request import RetrievalRequest
from tutor_kb.rag.models.retrieval_settings import KnowledgeRetrievalSettings
from tutor_kb.rag.scoring import (
    assertion_keyword_score,
    count_content_matches,
    count_tag_matches,
    tokenize,
)
from tutor_kb.rag.strategies.base import IRetrievalStrategy

# 每种检索模式的候选数 = 上限 × OVERFETCH_FACTOR
OVERFETCH_FACTOR = 2


class AssertionRetriever(IRetrievalStrategy):
    """
    断言召回策略

    去重键为断言原文：不同模式检索到同一句断言时合并为一条
    """

    def __init__(
        self,
        content_store: IContentStore,
        fusion_service: Optional[IFusionService] = None,
    ):
        self.content_store = content_store
        self.fusion_service = fusion_service or MeanMergeImpl()
        logger.info("断言召回策略初始化完成")

    async def retrieve(
        self, request: RetrievalRequest, settings: KnowledgeRetrievalSettings
    ) -> List[ScoredItem]:
        try:
            limit = request.assertion_limit
            if limit <= 0:
                return []
            fetch_limit = limit * OVERFETCH_FACTOR

            if request.query_embedding:
                vector_candidates, keyword_candidates = await asyncio.gather(
                    self._vector_search(request, fetch_limit),
                    self._keyword_search(request, fetch_limit, settings),
                )
                candidate_lists = [vector_candidates, keyword_candidates]
            else:
                logger.debug("[AssertionRetriever] 无查询向量，仅执行关键词检索")
                candidate_lists = [await self._keyword_search(request, fetch_limit, settings)]

            merged = self.fusion_service.merge(candidate_lists, top_n=limit)

            logger.info(
                f"[AssertionRetriever] 断言召回完成: "
                f"modes={[len(lst) for lst in candidate_lists]}, merged={len(merged)}"
            )
            return [candidate.to_scored_item() for candidate in merged]

        except Exception as e:
            logger.error(f"[AssertionRetriever] 断言召回失败: {e}")
            # 召回失败时返回空列表，不影响其他召回路径
            return []

    async def _vector_search(
        self, request: RetrievalRequest, fetch_limit: int
    ) -> List[RawCandidate]:
        """向量检索：score = 1 - 余弦距离，低于 min_relevance 的丢弃"""
        try:
            records = await self.content_store.search_assertions_by_vector(
                request.query_embedding, fetch_limit, request.min_relevance
            )
            candidates = []
            for record in records[:fetch_limit]:
                score = record.score if record.score is not None else 0.0
                if score < request.min_relevance:
                    continue
                candidates.append(self._to_candidate(record, score, "vector"))
            return candidates

        except Exception as e:
            logger.warning(f"[AssertionRetriever] 向量检索失败，仅使用关键词结果: {e}")
            return []

    async def _keyword_search(
        self,
        request: RetrievalRequest,
        fetch_limit: int,
        settings: KnowledgeRetrievalSettings,
    ) -> List[RawCandidate]:
        """关键词检索：按正文命中、标签命中、考试相关度、内容深度打分"""
        try:
            words = tokenize(request.query_text)
            if not words:
                return []

            records = await self.content_store.search_assertions_by_keyword(
                request.query_text, fetch_limit
            )
            candidates = []
            for record in records[:fetch_limit]:
                score = assertion_keyword_score(
                    content_matches=count_content_matches(words, record.assertion),
                    tag_matches=count_tag_matches(words, record.tags),
                    word_count=len(words),
                    prior_relevance=record.exam_relevance,
                    depth=record.depth,
                    settings=settings,
                )
                candidates.append(self._to_candidate(record, score, "keyword"))
            return candidates

        except Exception as e:
            logger.warning(f"[AssertionRetriever] 关键词检索失败: {e}")
            return []

    @staticmethod
    def _to_candidate(record: AssertionRecord, score: float, mode: str) -> RawCandidate:
        return RawCandidate(
            identity_key=record.assertion,
            relevance_score=score,
            content=annotate_assertion(record),
            source_type=SourceType.ASSERTION,
            modes={mode},
            metadata={"assertion_id": record.id, "source": record.source_name},
        )

    @property
    def strategy_name(self) -> str:
        """策略名称"""
        return "assertion"

    @property
    def source_type(self) -> SourceType:
        return SourceType.ASSERTION
