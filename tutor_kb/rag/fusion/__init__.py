"""
融合服务模块

实现同一召回策略内多种检索模式的结果合并（按 key 去重 + 分数取平均）
"""

from tutor_kb.rag.fusion.base import IFusionService
from tutor_kb.rag.fusion.mean_merge import MeanMergeImpl, MeanScoreMerger

__all__ = ["IFusionService", "MeanMergeImpl", "MeanScoreMerger"]
