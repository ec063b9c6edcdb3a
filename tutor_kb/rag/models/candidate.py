"""
候选条目数据模型

定义合并前（RawCandidate）和合并后（ScoredItem）的知识条目表示
"""

import enum
import math
from dataclasses import dataclass, field
from typing import Any, Dict, Optional, Set


class SourceType(str, enum.Enum):
    """条目来源：知识切片 / 断言 / 学员记忆"""

    CHUNK = "CHUNK"
    ASSERTION = "ASSERTION"
    MEMORY = "MEMORY"


def clamp_score(score: float) -> float:
    """把分数限制在 [0, 1]；NaN 视为 0"""
    score = float(score)
    if math.isnan(score):
        return 0.0
    return min(1.0, max(0.0, score))


@dataclass
class RawCandidate:
    """
    合并前的候选条目

    identity_key 在不同检索模式之间保持稳定（断言原文、切片ID等），
    用于识别"同一个候选"
    """

    identity_key: str
    relevance_score: float
    content: str
    source_type: SourceType
    modes: Set[str] = field(default_factory=set)  # 产生该候选的检索模式："vector" / "keyword"
    metadata: Optional[Dict[str, Any]] = None

    def __post_init__(self):
        self.relevance_score = clamp_score(self.relevance_score)

    def __hash__(self):
        return hash(self.identity_key)

    def __eq__(self, other):
        """相等性判断：仅比较 identity_key"""
        if not isinstance(other, RawCandidate):
            return False
        return self.identity_key == other.identity_key

    def to_scored_item(self) -> "ScoredItem":
        return ScoredItem(
            content=self.content,
            relevance_score=self.relevance_score,
            source_type=self.source_type,
        )


@dataclass
class ScoredItem:
    """
    最终返回的知识条目

    relevance_score 恒在 [0, 1] 之间
    """

    content: str
    relevance_score: float
    source_type: SourceType

    def __post_init__(self):
        self.relevance_score = clamp_score(self.relevance_score)

    def to_dict(self) -> Dict[str, Any]:
        """转换为对外返回格式"""
        return {"content": self.content, "similarity": self.relevance_score}
