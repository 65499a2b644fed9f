"""
Process-wide pattern catalog.

Read-mostly and shared by every agent. Writers build a new mapping and
swap it in under a lock (copy-on-write), so readers always iterate a
consistent snapshot without locking.
"""
from __future__ import annotations

import logging
import threading
from types import MappingProxyType
from typing import Dict, Iterable, List, Mapping, Optional

from ..events import EventBus, EventKind
from .patterns import DEFAULT_PATTERN_ID, BehaviorPattern, builtin_patterns

logger = logging.getLogger(__name__)


class PatternCatalog:
    """
    Registry of behavior patterns (built-in + custom).

    Built-in patterns can be removed like any other, except the default
    pattern used for fallback decisions.
    """

    def __init__(
        self,
        patterns: Optional[Iterable[BehaviorPattern]] = None,
        bus: Optional[EventBus] = None,
        default_pattern_id: str = DEFAULT_PATTERN_ID,
    ):
        initial = list(patterns) if patterns is not None else builtin_patterns()
        self._lock = threading.Lock()
        self._patterns: Mapping[str, BehaviorPattern] = MappingProxyType(
            {p.id: p for p in initial}
        )
        self._bus = bus
        self.default_pattern_id = default_pattern_id
        if default_pattern_id not in self._patterns:
            raise ValueError(f"Default pattern {default_pattern_id!r} missing from catalog")

    def snapshot(self) -> Mapping[str, BehaviorPattern]:
        """Current immutable view; safe to iterate while others write."""
        return self._patterns

    def get(self, pattern_id: str) -> Optional[BehaviorPattern]:
        return self._patterns.get(pattern_id)

    def all(self) -> List[BehaviorPattern]:
        return list(self._patterns.values())

    def default_pattern(self) -> BehaviorPattern:
        return self._patterns[self.default_pattern_id]

    def __len__(self) -> int:
        return len(self._patterns)

    def __contains__(self, pattern_id: object) -> bool:
        return pattern_id in self._patterns

    def add(self, pattern: BehaviorPattern, replace: bool = False) -> bool:
        """
        Register a pattern.

        Returns False without changing anything if the id is taken and
        ``replace`` is not set.
        """
        with self._lock:
            if pattern.id in self._patterns and not replace:
                logger.warning(f"Pattern {pattern.id} already registered")
                return False
            updated: Dict[str, BehaviorPattern] = dict(self._patterns)
            updated[pattern.id] = pattern
            self._patterns = MappingProxyType(updated)
        logger.info(f"Pattern added: {pattern.id}")
        if self._bus:
            self._bus.publish(EventKind.PATTERN_ADDED, payload={"pattern_id": pattern.id})
        return True

    def remove(self, pattern_id: str) -> bool:
        """Remove a pattern. Returns False if absent or if it is the default."""
        if pattern_id == self.default_pattern_id:
            logger.warning(f"Refusing to remove default pattern {pattern_id}")
            return False
        with self._lock:
            if pattern_id not in self._patterns:
                return False
            updated = dict(self._patterns)
            del updated[pattern_id]
            self._patterns = MappingProxyType(updated)
        logger.info(f"Pattern removed: {pattern_id}")
        if self._bus:
            self._bus.publish(EventKind.PATTERN_REMOVED, payload={"pattern_id": pattern_id})
        return True
