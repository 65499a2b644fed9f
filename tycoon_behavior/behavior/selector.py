"""
Weighted probabilistic pattern selection.
"""
from __future__ import annotations

import random
from dataclasses import dataclass
from typing import Callable, List, Optional

from .patterns import BehaviorAlternative, BehaviorPattern
from .scorer import ScoredPattern

AlternativeReasoningFn = Callable[[BehaviorPattern], str]


@dataclass(frozen=True)
class Selection:
    """
    Outcome of one selection.

    ``chosen`` is None when there were no candidates and the caller must
    use its default pattern.
    """
    chosen: Optional[ScoredPattern]
    alternatives: List[BehaviorAlternative]


def alternative_reasoning(pattern: BehaviorPattern) -> str:
    return f"Alternative {pattern.name} pattern considered"


class PatternSelector:
    """
    Roulette-wheel selection over the top candidates.

    Args:
        rng: Random source; inject a seeded ``random.Random`` for replays
        top_k: Number of best candidates on the wheel
        max_alternatives: Runner-ups reported with the decision
    """

    def __init__(
        self,
        rng: Optional[random.Random] = None,
        top_k: int = 3,
        max_alternatives: int = 3,
        reasoning: Optional[AlternativeReasoningFn] = None,
    ):
        self.rng = rng or random.Random()
        self.top_k = top_k
        self.max_alternatives = max_alternatives
        self.reasoning = reasoning or alternative_reasoning

    def pick(self, candidates: List[ScoredPattern]) -> Optional[ScoredPattern]:
        """
        Pick one of ``candidates`` (sorted best first).

        Each of the top ``top_k`` wins with probability proportional to its
        score. If the scores sum to zero the top candidate wins.
        """
        if not candidates:
            return None

        top = candidates[: self.top_k]
        total = sum(c.score for c in top)
        if total <= 0:
            return candidates[0]

        r = self.rng.random() * total
        cumulative = 0.0
        for candidate in top:
            cumulative += candidate.score
            if r <= cumulative:
                return candidate
        return top[0]

    def alternatives(self, candidates: List[ScoredPattern]) -> List[BehaviorAlternative]:
        """Runner-ups by rank (2nd to 4th by default) with their scores."""
        return [
            BehaviorAlternative(
                pattern=c.pattern,
                probability=c.score,
                reasoning=self.reasoning(c.pattern),
            )
            for c in candidates[1 : 1 + self.max_alternatives]
        ]

    def select(self, candidates: List[ScoredPattern]) -> Selection:
        return Selection(chosen=self.pick(candidates), alternatives=self.alternatives(candidates))
