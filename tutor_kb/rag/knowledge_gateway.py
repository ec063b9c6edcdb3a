"""
知识检索网关 - 语音通话实时知识检索的核心入口

协调查询构建、向量化、并行召回、全局排序和格式化的完整流程。
该接口在每一轮通话对话时都会被调用：任何环节失败都只降低结果质量，
不会向调用方抛出异常
"""

import asyncio
import time
from typing import TYPE_CHECKING, Iterable, List, Optional

from loguru import logger

from tutor_kb.rag.formatter import SnippetFormatter
from tutor_kb.rag.models.candidate import ScoredItem
from tutor_kb.rag.models.conversation import ConversationTurn
from tutor_kb.rag.models.retrieval_request import RetrievalRequest
from tutor_kb.rag.models.retrieval_settings import KnowledgeRetrievalSettings
from tutor_kb.rag.query_builder import QueryBuilder
from tutor_kb.rag.ranking.ranker import SOURCE_PRIORITY, GlobalRanker
from tutor_kb.rag.strategies.base import IRetrievalStrategy

if TYPE_CHECKING:
    from tutor_kb.services.embedding_service import IEmbeddingService


class KnowledgeGateway:
    """
    知识检索网关

    负责：
    1. 从最近几轮学员发言构建查询（为空直接返回）
    2. 尝试向量化（失败降级为纯关键词检索）
    3. 并行执行断言 / 切片 / 记忆三路召回（单路失败或超时贡献空列表）
    4. 全局排序并截断
    5. 格式化输出
    """

    def __init__(
        self,
        strategies: List[IRetrievalStrategy],
        embedding_service: Optional["IEmbeddingService"] = None,
        query_builder: Optional[QueryBuilder] = None,
        ranker: Optional[GlobalRanker] = None,
        formatter: Optional[SnippetFormatter] = None,
    ):
        """
        初始化检索网关

        Args:
            strategies: 召回策略列表（按来源优先级重新排列，与传入顺序无关）
            embedding_service: 向量化服务（None 表示只走关键词检索）
            query_builder: 查询构建器
            ranker: 全局排序器
            formatter: 片段格式化器
        """
        self.strategies = sorted(
            strategies, key=lambda s: SOURCE_PRIORITY.index(s.source_type)
        )
        self.embedding_service = embedding_service
        self.query_builder = query_builder or QueryBuilder()
        self.ranker = ranker or GlobalRanker()
        self.formatter = formatter or SnippetFormatter()

        logger.info(
            f"KnowledgeGateway 初始化完成: strategies={[s.strategy_name for s in self.strategies]}, "
            f"embedding={'enabled' if embedding_service else 'disabled'}"
        )

    async def retrieve(
        self,
        turns: Iterable[ConversationTurn],
        caller_id: Optional[str] = None,
        settings: Optional[KnowledgeRetrievalSettings] = None,
    ) -> List[ScoredItem]:
        """
        根据对话检索知识

        Args:
            turns: 按时间顺序排列的对话轮次
            caller_id: 学员ID（未识别时为 None，不检索记忆）
            settings: 本次检索配置

        Returns:
            按相关度降序排列的知识条目；任何失败都返回空列表
        """
        try:
            settings = settings or KnowledgeRetrievalSettings()
            query = self.query_builder.build(turns, settings.query_message_count)
            if not query:
                logger.info("[KnowledgeGateway] 没有学员发言，跳过检索")
                return []
            return await self.search(query, caller_id=caller_id, settings=settings)

        except Exception as e:
            logger.error(f"[KnowledgeGateway] 检索失败，返回空结果: {e}")
            return []

    async def search(
        self,
        query: str,
        caller_id: Optional[str] = None,
        settings: Optional[KnowledgeRetrievalSettings] = None,
    ) -> List[ScoredItem]:
        """
        对给定查询执行检索流水线

        与 retrieve 不同，流水线内部的意外异常会向上抛出
        """
        settings = settings or KnowledgeRetrievalSettings()
        if not query or not query.strip():
            return []

        start_time = time.perf_counter()
        loop = asyncio.get_running_loop()
        deadline = loop.time() + settings.deadline_ms / 1000

        logger.info(
            f"[KnowledgeGateway] 开始检索: query='{query}', caller={caller_id}, "
            f"top_results={settings.top_results}"
        )

        # Step 1: 尝试向量化
        embedding = await self._attempt_embedding(query, settings, deadline)

        # Step 2: 并行召回
        request = RetrievalRequest.from_settings(
            query, settings, caller_id=caller_id, query_embedding=embedding
        )
        item_lists = await self._parallel_retrieve(request, settings, deadline)

        # Step 3: 全局排序
        ranked = self.ranker.rank(item_lists, request.top_results)

        # Step 4: 格式化
        results = self.formatter.format(ranked)

        took_ms = (time.perf_counter() - start_time) * 1000
        recall_stats = {
            strategy.strategy_name: len(items)
            for strategy, items in zip(self.strategies, item_lists)
        }
        logger.info(
            f"[KnowledgeGateway] 检索完成: results={len(results)}, recall={recall_stats}, "
            f"mode={'hybrid' if embedding else 'keyword'}, took={took_ms:.2f}ms"
        )
        return results

    async def _attempt_embedding(
        self, query: str, settings: KnowledgeRetrievalSettings, deadline: float
    ) -> Optional[List[float]]:
        """向量化失败只记录告警，返回 None 让各路召回走关键词模式"""
        if self.embedding_service is None:
            return None

        remaining = deadline - asyncio.get_running_loop().time()
        timeout = min(settings.embedding_timeout_ms / 1000, remaining)
        if timeout <= 0:
            logger.warning("[KnowledgeGateway] 时延预算已用尽，跳过向量化")
            return None

        try:
            vector = await asyncio.wait_for(self.embedding_service.embed(query), timeout=timeout)
            if not vector:
                logger.warning("[KnowledgeGateway] 向量化返回空向量，降级为关键词检索")
                return None
            return list(vector)

        except asyncio.TimeoutError:
            logger.warning(
                f"[KnowledgeGateway] 向量化超时({timeout * 1000:.0f}ms)，降级为关键词检索"
            )
        except Exception as e:
            logger.warning(f"[KnowledgeGateway] 向量化失败，降级为关键词检索: {e}")
        return None

    async def _parallel_retrieve(
        self,
        request: RetrievalRequest,
        settings: KnowledgeRetrievalSettings,
        deadline: float,
    ) -> List[List[ScoredItem]]:
        """
        并行执行所有召回策略

        返回顺序与 self.strategies 一致；超时或失败的策略对应空列表
        """
        tasks = [
            self._run_strategy(strategy, request, settings, deadline)
            for strategy in self.strategies
        ]
        return list(await asyncio.gather(*tasks))

    async def _run_strategy(
        self,
        strategy: IRetrievalStrategy,
        request: RetrievalRequest,
        settings: KnowledgeRetrievalSettings,
        deadline: float,
    ) -> List[ScoredItem]:
        remaining = deadline - asyncio.get_running_loop().time()
        if remaining <= 0:
            logger.warning(f"[KnowledgeGateway] 时延预算已用尽，跳过召回: {strategy.strategy_name}")
            return []

        try:
            return await asyncio.wait_for(strategy.retrieve(request, settings), timeout=remaining)

        except asyncio.TimeoutError:
            logger.warning(
                f"[KnowledgeGateway] 召回超时，按空结果处理: {strategy.strategy_name}"
            )
        except Exception as e:
            logger.error(f"[KnowledgeGateway] 召回失败，按空结果处理: {strategy.strategy_name}: {e}")
        return []
