"""
学员记忆召回策略

仅在识别出学员时执行，只走关键词检索
"""

from typing import List

from loguru import logger

from tutor_kb.rag.clients.base import IContentStore
from tutor_kb.rag.formatter import annotate_memory
from tutor_kb.rag.models.candidate import ScoredItem, SourceType
from tutor_kb.rag.models.retrieval_request import RetrievalRequest
from tutor_kb.rag.models.retrieval_settings import KnowledgeRetrievalSettings
from tutor_kb.rag.scoring import count_content_matches, memory_keyword_score, tokenize
from tutor_kb.rag.strategies.base import IRetrievalStrategy


class MemoryRetriever(IRetrievalStrategy):
    """学员记忆召回策略"""

    def __init__(self, content_store: IContentStore):
        self.content_store = content_store
        logger.info("学员记忆召回策略初始化完成")

    async def retrieve(
        self, request: RetrievalRequest, settings: KnowledgeRetrievalSettings
    ) -> List[ScoredItem]:
        try:
            # 未识别学员不是错误，直接不贡献结果
            if not request.caller_id or request.memory_limit <= 0:
                return []

            words = tokenize(request.query_text)
            if not words:
                return []

            records = await self.content_store.search_memories_by_keyword(
                request.caller_id, request.query_text, request.memory_limit
            )

            items = []
            seen = set()
            for record in records:
                if record.id in seen:
                    continue
                seen.add(record.id)
                items.append(
                    ScoredItem(
                        content=annotate_memory(record),
                        relevance_score=memory_keyword_score(
                            count_content_matches(words, record.text),
                            len(words),
                            settings.memory_base_score,
                        ),
                        source_type=SourceType.MEMORY,
                    )
                )
            items = items[: request.memory_limit]

            logger.info(f"[MemoryRetriever] 记忆召回完成，返回 {len(items)} 条结果")
            return items

        except Exception as e:
            logger.error(f"[MemoryRetriever] 记忆召回失败: {e}")
            # 召回失败时返回空列表，不影响其他召回路径
            return []

    @property
    def strategy_name(self) -> str:
        """策略名称"""
        return "memory"

    @property
    def source_type(self) -> SourceType:
        return SourceType.MEMORY
