"""
排序模块

跨来源的全局排序与截断
"""

from tutor_kb.rag.ranking.ranker import SOURCE_PRIORITY, GlobalRanker

__all__ = ["GlobalRanker", "SOURCE_PRIORITY"]
