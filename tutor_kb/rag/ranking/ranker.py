"""
全局排序

把各路召回（已按各自上限截断）的结果拼接、按分数排序、截断到最终数量
"""

from typing import List, Sequence

from loguru import logger

from tutor_kb.rag.models.candidate import ScoredItem, SourceType

# 拼接顺序；同分时按此顺序保证结果稳定，与各路完成先后无关
SOURCE_PRIORITY = (SourceType.ASSERTION, SourceType.CHUNK, SourceType.MEMORY)


class GlobalRanker:
    """
    跨来源排序

    不做跨来源去重：断言、切片、记忆来自互不重叠的内容域
    """

    def rank(self, item_lists: Sequence[List[ScoredItem]], top_results: int) -> List[ScoredItem]:
        """
        Args:
            item_lists: 按 SOURCE_PRIORITY 顺序排列的各路结果
            top_results: 最终返回数量上限

        Returns:
            按分数降序排列、长度不超过 top_results 的结果
        """
        if top_results <= 0:
            return []

        combined: List[ScoredItem] = []
        for items in item_lists:
            combined.extend(items)

        # sort 是稳定排序，同分保持拼接顺序
        combined.sort(key=lambda item: item.relevance_score, reverse=True)
        final_results = combined[:top_results]

        logger.debug(
            f"[Ranker] 排序完成: 合并前={len(combined)}, 返回={len(final_results)}, "
            f"top3={[round(i.relevance_score, 4) for i in final_results[:3]]}"
        )
        return final_results
