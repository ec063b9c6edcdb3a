"""
均值融合算法实现

按 identity_key 合并多路检索结果：
- 只被一种模式检索到的候选保留原分数
- 被多种模式同时检索到的候选取各模式分数的算术平均

多种模式的一致命中被视为更可靠的证据，但不会重复累加分数
"""

from dataclasses import dataclass, field
from typing import Dict, List, Optional, Set

from loguru import logger

from tutor_kb.rag.fusion.base import IFusionService
from tutor_kb.rag.models.candidate import RawCandidate, clamp_score


@dataclass
class _MergeSlot:
    candidate: RawCandidate
    scores: List[float] = field(default_factory=list)
    modes: Set[str] = field(default_factory=set)


class MeanScoreMerger:
    """
    有序映射：identity_key -> 合并状态

    插入顺序即首次出现顺序，排序时分数相同的候选保持该顺序
    """

    def __init__(self):
        self._slots: Dict[str, _MergeSlot] = {}

    def __len__(self) -> int:
        return len(self._slots)

    def add(self, candidate: RawCandidate) -> None:
        """加入一个候选；同 key 再次出现时把本次分数计入平均"""
        slot = self._slots.get(candidate.identity_key)
        if slot is None:
            self._slots[candidate.identity_key] = _MergeSlot(
                candidate=candidate,
                scores=[candidate.relevance_score],
                modes=set(candidate.modes),
            )
            return
        slot.scores.append(candidate.relevance_score)
        slot.modes.update(candidate.modes)

    def add_mode_results(self, candidates: List[RawCandidate]) -> None:
        """
        加入同一检索模式的一批结果

        同一模式内重复的 key 只保留最高分，避免一个模式内部的重复影响平均
        """
        best: Dict[str, RawCandidate] = {}
        for candidate in candidates:
            current = best.get(candidate.identity_key)
            if current is None or candidate.relevance_score > current.relevance_score:
                best[candidate.identity_key] = candidate
        for candidate in candidates:
            kept = best.pop(candidate.identity_key, None)
            if kept is not None:
                self.add(kept)

    def results(self) -> List[RawCandidate]:
        merged = []
        for slot in self._slots.values():
            candidate = slot.candidate
            merged.append(
                RawCandidate(
                    identity_key=candidate.identity_key,
                    relevance_score=clamp_score(sum(slot.scores) / len(slot.scores)),
                    content=candidate.content,
                    source_type=candidate.source_type,
                    modes=set(slot.modes),
                    metadata=candidate.metadata,
                )
            )
        # sort 是稳定排序，同分保持首次出现顺序
        merged.sort(key=lambda c: c.relevance_score, reverse=True)
        return merged


class MeanMergeImpl(IFusionService):
    """按 identity_key 去重并取平均分的融合实现"""

    def merge(
        self,
        candidate_lists: List[List[RawCandidate]],
        top_n: Optional[int] = None,
    ) -> List[RawCandidate]:
        logger.debug(
            f"[MeanMerge] 开始融合: lists_count={len(candidate_lists)}, "
            f"sizes={[len(lst) for lst in candidate_lists]}, top_n={top_n}"
        )

        merger = MeanScoreMerger()
        for candidate_list in candidate_lists:
            merger.add_mode_results(candidate_list)

        merged = merger.results()
        overlap = sum(1 for c in merged if len(c.modes) > 1)
        final_results = merged if top_n is None else merged[: max(top_n, 0)]

        logger.debug(
            f"[MeanMerge] 融合完成: 去重后={len(merged)}, 多路命中={overlap}, 返回={len(final_results)}"
        )
        return final_results
