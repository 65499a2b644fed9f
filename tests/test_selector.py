"""
Tests for weighted pattern selection.
"""
import random
from collections import Counter

import pytest

from tycoon_behavior.behavior.patterns import builtin_patterns
from tycoon_behavior.behavior.scorer import ScoreBreakdown, ScoredPattern
from tycoon_behavior.behavior.selector import PatternSelector

BREAKDOWN = ScoreBreakdown(0.5, 0.0, 0.5, 0.5, 0.5, 1.0)

# chi-square critical value, 2 degrees of freedom, p = 0.001
CHI2_CRITICAL = 13.82


def scored(scores):
    patterns = builtin_patterns()
    return [ScoredPattern(patterns[i], s, BREAKDOWN) for i, s in enumerate(scores)]


class TestPick:
    def test_empty_candidates(self):
        assert PatternSelector().pick([]) is None
        selection = PatternSelector().select([])
        assert selection.chosen is None
        assert selection.alternatives == []

    def test_zero_total_picks_top(self):
        candidates = scored([0.0, 0.0])
        assert PatternSelector().pick(candidates) is candidates[0]

    def test_frequencies_follow_scores(self):
        candidates = scored([0.8, 0.5, 0.3])
        selector = PatternSelector(rng=random.Random(1234))
        trials = 10_000
        counts = Counter(selector.pick(candidates).pattern.id for _ in range(trials))

        total = 0.8 + 0.5 + 0.3
        chi2 = 0.0
        for candidate in candidates:
            expected = trials * candidate.score / total
            chi2 += (counts[candidate.pattern.id] - expected) ** 2 / expected
        assert chi2 < CHI2_CRITICAL

    def test_only_top_three_on_wheel(self):
        candidates = scored([0.8, 0.5, 0.3, 0.9])
        selector = PatternSelector(rng=random.Random(7))
        picked = {selector.pick(candidates).pattern.id for _ in range(500)}
        assert candidates[3].pattern.id not in picked

    def test_seeded_rng_replays(self):
        candidates = scored([0.8, 0.5, 0.3])
        a = PatternSelector(rng=random.Random(5))
        b = PatternSelector(rng=random.Random(5))
        assert [a.pick(candidates).pattern.id for _ in range(50)] == [
            b.pick(candidates).pattern.id for _ in range(50)
        ]


class TestAlternatives:
    def test_runner_ups_by_rank(self):
        candidates = scored([0.9, 0.7, 0.4, 0.2])
        alternatives = PatternSelector().alternatives(candidates)
        assert [a.pattern.id for a in alternatives] == [c.pattern.id for c in candidates[1:4]]
        assert alternatives[0].probability == pytest.approx(0.7)
        assert alternatives[0].reasoning.startswith("Alternative")

    def test_at_most_three(self):
        candidates = scored([0.9, 0.7, 0.4, 0.2])
        assert len(PatternSelector(max_alternatives=2).alternatives(candidates)) == 2
