"""
Per-agent rolling decision log.
"""
from __future__ import annotations

from collections import deque
from typing import Deque, List

from .patterns import BehaviorDecision


class DecisionHistory:
    """
    Bounded FIFO of an agent's decisions; the oldest is evicted first.
    """

    def __init__(self, limit: int = 100):
        self.limit = max(1, limit)
        self._entries: Deque[BehaviorDecision] = deque(maxlen=self.limit)

    def append(self, decision: BehaviorDecision) -> None:
        self._entries.append(decision)

    def recent(self, n: int) -> List[BehaviorDecision]:
        if n <= 0:
            return []
        return list(self._entries)[-n:]

    def for_pattern(self, pattern_id: str, limit: int = 10) -> List[BehaviorDecision]:
        """Most recent decisions that used ``pattern_id``, oldest first."""
        matches = [d for d in self._entries if d.pattern.id == pattern_id]
        return matches[-limit:]

    def all(self) -> List[BehaviorDecision]:
        return list(self._entries)

    def clear(self) -> None:
        self._entries.clear()

    def __len__(self) -> int:
        return len(self._entries)
