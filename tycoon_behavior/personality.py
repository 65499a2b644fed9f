"""
Agent personality with bounded, decaying trait adjustments.

A profile holds the agent's base traits (0.0 to 1.0) and a list of
temporary adjustments produced by significant learning experiences. Each
adjustment fades linearly to zero over its duration and is swept away by
maintenance once expired.

The decision pipeline never reads the live profile. It takes one
``PersonalitySnapshot`` per decision, so learning that lands mid-decision
only affects the next turn.
"""
from __future__ import annotations

import logging
import threading
import time
from dataclasses import dataclass, field
from typing import Dict, List, Mapping, Optional

from .config import PERSONALITY_TRAITS, get_preset
from .util import clamp

logger = logging.getLogger(__name__)

# Sum of live adjustments on one trait never leaves this band
MAX_TRAIT_OFFSET = 0.2

# Pattern trait name -> personality trait it reads its offset from
PATTERN_TRAIT_MAP: Dict[str, str] = {
    "risk_tolerance": "risktaking",
    "competitiveness": "aggression",
    "patience": "patience",
    "sociability": "social",
    "cooperation": "social",
    "analysis": "analytical",
}


@dataclass(frozen=True)
class TraitImpact:
    """One requested trait change; ``duration`` is in minutes."""
    trait: str
    magnitude: float
    duration: float


@dataclass(frozen=True)
class PersonalityEvent:
    type: str
    description: str
    impacts: List[TraitImpact] = field(default_factory=list)
    mood: str = ""
    confidence_change: float = 0.0
    timestamp: float = field(default_factory=time.time)


@dataclass
class TraitAdjustment:
    """
    A temporary trait offset.

    Attributes:
        trait: Personality trait name
        magnitude: Offset at the moment it was applied
        duration_minutes: Time for the offset to fade to zero
        applied_at: Wall-clock seconds when applied
        source: Free-form origin tag (e.g. the action type)
    """
    trait: str
    magnitude: float
    duration_minutes: float
    applied_at: float
    source: str = ""

    def remaining(self, now: float) -> float:
        """Fraction of the offset still in effect (1.0 .. 0.0)."""
        span = self.duration_minutes * 60.0
        if span <= 0:
            return 0.0
        return clamp(1.0 - (now - self.applied_at) / span, 0.0, 1.0)

    def current(self, now: float) -> float:
        return self.magnitude * self.remaining(now)

    def expired(self, now: float) -> bool:
        return self.remaining(now) <= 0.0

    def to_dict(self) -> Dict:
        return {
            "trait": self.trait,
            "magnitude": self.magnitude,
            "duration_minutes": self.duration_minutes,
            "applied_at": self.applied_at,
            "source": self.source,
        }


@dataclass(frozen=True)
class PersonalitySnapshot:
    """Immutable view of a profile at one instant."""
    base: Mapping[str, float]
    offsets: Mapping[str, float]
    taken_at: float

    def trait(self, name: str) -> float:
        return clamp(self.base.get(name, 0.5) + self.offsets.get(name, 0.0), 0.0, 1.0)

    def offset(self, name: str) -> float:
        return self.offsets.get(name, 0.0)

    def pattern_offset(self, pattern_trait: str) -> float:
        """Offset for a pattern trait name, via the personality trait it maps to."""
        mapped = PATTERN_TRAIT_MAP.get(pattern_trait, pattern_trait)
        return self.offsets.get(mapped, 0.0)

    def effective(self) -> Dict[str, float]:
        return {name: self.trait(name) for name in self.base}

    @classmethod
    def neutral(cls) -> "PersonalitySnapshot":
        return cls(base={t: 0.5 for t in PERSONALITY_TRAITS}, offsets={}, taken_at=0.0)


class PersonalityProfile:
    """
    Base traits plus decaying adjustments.

    Example:
        >>> profile = PersonalityProfile.from_preset("shark")
        >>> profile.apply("risktaking", 0.01, duration_minutes=45, now=0.0)
        >>> profile.snapshot(now=60.0).offset("risktaking")  # ~0.0098
    """

    def __init__(self, traits: Optional[Mapping[str, float]] = None):
        base = {t: 0.5 for t in PERSONALITY_TRAITS}
        for name, value in (traits or {}).items():
            base[name] = clamp(float(value), 0.0, 1.0)
        self._base: Dict[str, float] = base
        self._adjustments: List[TraitAdjustment] = []
        self._lock = threading.Lock()

    @classmethod
    def from_preset(cls, name: str) -> "PersonalityProfile":
        preset = get_preset(name)
        if preset is None:
            logger.warning(f"Unknown personality preset {name!r}, using balanced")
            preset = get_preset("balanced")
        return cls(preset)

    @property
    def base_traits(self) -> Dict[str, float]:
        return dict(self._base)

    def adjustments(self) -> List[TraitAdjustment]:
        with self._lock:
            return list(self._adjustments)

    def _offsets(self, now: float) -> Dict[str, float]:
        offsets: Dict[str, float] = {}
        for adj in self._adjustments:
            offsets[adj.trait] = offsets.get(adj.trait, 0.0) + adj.current(now)
        return {k: clamp(v, -MAX_TRAIT_OFFSET, MAX_TRAIT_OFFSET) for k, v in offsets.items()}

    def offset(self, trait: str, now: Optional[float] = None) -> float:
        now = time.time() if now is None else now
        with self._lock:
            return self._offsets(now).get(trait, 0.0)

    def trait(self, name: str, now: Optional[float] = None) -> float:
        return clamp(self._base.get(name, 0.5) + self.offset(name, now), 0.0, 1.0)

    def snapshot(self, now: Optional[float] = None) -> PersonalitySnapshot:
        now = time.time() if now is None else now
        with self._lock:
            return PersonalitySnapshot(
                base=dict(self._base),
                offsets=self._offsets(now),
                taken_at=now,
            )

    def apply(
        self,
        trait: str,
        magnitude: float,
        duration_minutes: float,
        now: Optional[float] = None,
        source: str = "",
    ) -> Optional[TraitAdjustment]:
        """Add an adjustment. Zero magnitudes and durations are ignored."""
        if magnitude == 0 or duration_minutes <= 0:
            return None
        now = time.time() if now is None else now
        adj = TraitAdjustment(
            trait=trait,
            magnitude=clamp(magnitude, -MAX_TRAIT_OFFSET, MAX_TRAIT_OFFSET),
            duration_minutes=duration_minutes,
            applied_at=now,
            source=source,
        )
        with self._lock:
            self._adjustments.append(adj)
        logger.debug(f"Trait adjustment {trait} {magnitude:+.4f} for {duration_minutes}m")
        return adj

    def process_event(self, event: PersonalityEvent, now: Optional[float] = None) -> List[TraitAdjustment]:
        applied = []
        for impact in event.impacts:
            adj = self.apply(impact.trait, impact.magnitude, impact.duration, now, source=event.type)
            if adj is not None:
                applied.append(adj)
        return applied

    def sweep(self, now: Optional[float] = None) -> int:
        """Drop expired adjustments. Returns how many were removed."""
        now = time.time() if now is None else now
        with self._lock:
            before = len(self._adjustments)
            self._adjustments = [a for a in self._adjustments if not a.expired(now)]
            return before - len(self._adjustments)

    def to_dict(self, now: Optional[float] = None) -> Dict:
        snap = self.snapshot(now)
        return {
            "base": dict(snap.base),
            "offsets": dict(snap.offsets),
            "effective": snap.effective(),
            "adjustments": [a.to_dict() for a in self.adjustments()],
        }
