"""
知识切片召回策略

调用内容存储的混合检索（有向量走向量，否则走关键词），可按学员限定范围
"""

from typing import List, Optional

from loguru import logger

from tutor_kb.rag.clients.base import IContentStore
from tutor_kb.rag.formatter import annotate_chunk
from tutor_kb.rag.fusion.base import IFusionService
from tutor_kb.rag.fusion.mean_merge import MeanMergeImpl
from tutor_kb.rag.models.candidate import RawCandidate, ScoredItem, SourceType
from tutor_kb.rag.models.retrieval_request import RetrievalRequest
from tutor_kb.rag.models.retrieval_settings import KnowledgeRetrievalSettings
from tutor_kb.rag.strategies.base import IRetrievalStrategy


class ChunkRetriever(IRetrievalStrategy):
    """知识切片召回策略，去重键为切片ID"""

    def __init__(
        self,
        content_store: IContentStore,
        fusion_service: Optional[IFusionService] = None,
    ):
        self.content_store = content_store
        self.fusion_service = fusion_service or MeanMergeImpl()
        logger.info("知识切片召回策略初始化完成")

    async def retrieve(
        self, request: RetrievalRequest, settings: KnowledgeRetrievalSettings
    ) -> List[ScoredItem]:
        try:
            limit = request.chunk_limit
            if limit <= 0:
                return []

            records = await self.content_store.search_chunks_hybrid(
                request.query_text,
                request.query_embedding,
                request.caller_id,
                limit,
                request.min_relevance,
            )

            candidates = [
                RawCandidate(
                    identity_key=record.id,
                    relevance_score=record.score,
                    content=annotate_chunk(record),
                    source_type=SourceType.CHUNK,
                    modes={"vector" if request.query_embedding else "keyword"},
                )
                for record in records
                if record.score >= request.min_relevance
            ]
            merged = self.fusion_service.merge([candidates], top_n=limit)

            logger.info(f"[ChunkRetriever] 切片召回完成，返回 {len(merged)} 条结果")
            return [candidate.to_scored_item() for candidate in merged]

        except Exception as e:
            logger.error(f"[ChunkRetriever] 切片召回失败: {e}")
            # 召回失败时返回空列表，不影响其他召回路径
            return []

    @property
    def strategy_name(self) -> str:
        """策略名称"""
        return "chunk"

    @property
    def source_type(self) -> SourceType:
        return SourceType.CHUNK
