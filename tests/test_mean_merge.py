from __future__ import annotations

import unittest

from tutor_kb.rag.fusion.mean_merge import MeanMergeImpl, MeanScoreMerger
from tutor_kb.rag.models.candidate import RawCandidate, SourceType


def _candidate(key: str, score: float, mode: str = "vector") -> RawCandidate:
    return RawCandidate(
        identity_key=key,
        relevance_score=score,
        content=f"content of {key}",
        source_type=SourceType.ASSERTION,
        modes={mode},
    )


class MeanMergeTestCase(unittest.TestCase):
    def setUp(self) -> None:
        self.fusion = MeanMergeImpl()

    def test_overlap_takes_arithmetic_mean(self) -> None:
        merged = self.fusion.merge(
            [[_candidate("X", 0.82, "vector")], [_candidate("X", 0.60, "keyword")]]
        )
        self.assertEqual(len(merged), 1)
        self.assertAlmostEqual(merged[0].relevance_score, 0.71)
        self.assertEqual(merged[0].modes, {"vector", "keyword"})

    def test_single_mode_keeps_its_score(self) -> None:
        merged = self.fusion.merge(
            [[_candidate("A", 0.9), _candidate("B", 0.4)], [_candidate("C", 0.7, "keyword")]]
        )
        self.assertEqual([(c.identity_key, c.relevance_score) for c in merged], [("A", 0.9), ("C", 0.7), ("B", 0.4)])

    def test_keys_are_unique_after_merge(self) -> None:
        merged = self.fusion.merge(
            [
                [_candidate("A", 0.5), _candidate("B", 0.6)],
                [_candidate("B", 0.2, "keyword"), _candidate("A", 0.9, "keyword")],
            ]
        )
        keys = [c.identity_key for c in merged]
        self.assertEqual(len(keys), len(set(keys)))
        self.assertEqual(keys, ["A", "B"])

    def test_equal_scores_keep_first_seen_order(self) -> None:
        merged = self.fusion.merge(
            [[_candidate("first", 0.5), _candidate("second", 0.5)], [_candidate("third", 0.5, "keyword")]]
        )
        self.assertEqual([c.identity_key for c in merged], ["first", "second", "third"])

    def test_top_n_truncates(self) -> None:
        merged = self.fusion.merge([[_candidate(str(i), i / 10) for i in range(10)]], top_n=3)
        self.assertEqual([c.identity_key for c in merged], ["9", "8", "7"])
        self.assertEqual(self.fusion.merge([[_candidate("A", 0.5)]], top_n=0), [])

    def test_duplicate_within_one_mode_keeps_max(self) -> None:
        merged = self.fusion.merge(
            [[_candidate("A", 0.4), _candidate("A", 0.8)], [_candidate("A", 0.6, "keyword")]]
        )
        self.assertEqual(len(merged), 1)
        self.assertAlmostEqual(merged[0].relevance_score, 0.7)

    def test_empty_input(self) -> None:
        self.assertEqual(self.fusion.merge([]), [])
        self.assertEqual(self.fusion.merge([[], []]), [])


class MeanScoreMergerTestCase(unittest.TestCase):
    def test_add_counts_every_sighting(self) -> None:
        merger = MeanScoreMerger()
        merger.add(_candidate("A", 1.0))
        merger.add(_candidate("A", 0.5, "keyword"))
        merger.add(_candidate("B", 0.3))
        self.assertEqual(len(merger), 2)
        results = merger.results()
        self.assertAlmostEqual(results[0].relevance_score, 0.75)
        self.assertEqual(results[0].content, "content of A")


if __name__ == "__main__":
    unittest.main()
