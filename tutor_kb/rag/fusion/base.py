"""
融合服务接口定义

定义同一召回策略内多种检索模式结果的合并接口
"""

from abc import ABC, abstractmethod
from typing import List, Optional

from tutor_kb.rag.models.candidate import RawCandidate


class IFusionService(ABC):
    """
    融合服务接口

    负责把多个检索模式（向量、关键词）的候选列表合并为一个去重、重新打分的列表
    """

    @abstractmethod
    def merge(
        self,
        candidate_lists: List[List[RawCandidate]],
        top_n: Optional[int] = None,
    ) -> List[RawCandidate]:
        """
        合并候选列表

        Args:
            candidate_lists: 各检索模式的候选列表
            top_n: 返回数量上限（None 表示不截断）

        Returns:
            按合并分数降序排列、identity_key 唯一的候选列表
        """
        pass
