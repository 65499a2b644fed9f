from __future__ import annotations

from typing import Iterable, List


def clamp(x: float, lo: float, hi: float) -> float:
    return lo if x < lo else hi if x > hi else x


def mean(values: Iterable[float], default: float = 0.0) -> float:
    items: List[float] = list(values)
    if not items:
        return default
    return sum(items) / len(items)


def variance(values: Iterable[float]) -> float:
    """Population variance."""
    items = list(values)
    if not items:
        return 0.0
    m = sum(items) / len(items)
    return sum((v - m) ** 2 for v in items) / len(items)
