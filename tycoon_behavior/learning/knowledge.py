"""
Knowledge pattern store.

Significant experiences become patterns keyed by action type, game phase
and the sign of the objective feedback, e.g. ``trade_offer_mid_positive``.
Repeated experiences reinforce the pattern; time without reinforcement
erodes it until it is forgotten.
"""
from __future__ import annotations

import logging
import math
from typing import Dict, List, Optional

from ..util import clamp
from .state import KnowledgePattern, LearningExperience, StrengthEntry

logger = logging.getLogger(__name__)

MIN_OBJECTIVE = 0.3
MIN_LEARNING_VALUE = 0.4
NEW_PATTERN_FREQUENCY = 0.1
FORGET_BELOW = 0.1
STRENGTH_HISTORY_CAP = 20
STRENGTH_HISTORY_TRIM = 15


def seed_patterns(now: float) -> List[KnowledgePattern]:
    """General board-game wisdom every agent starts with."""
    return [
        KnowledgePattern(
            id="early_property_acquisition",
            pattern="Buying properties early in game leads to better long-term position",
            frequency=0.8,
            reliability=0.7,
            confidence=0.6,
            contexts=["early_game", "sufficient_cash"],
            outcomes=["increased_rent_income", "monopoly_potential"],
            last_reinforced=now,
            last_decayed=now,
        ),
        KnowledgePattern(
            id="alliance_benefits",
            pattern="Forming alliances with players improves trade success rate",
            frequency=0.6,
            reliability=0.8,
            confidence=0.7,
            contexts=["mid_game", "competitive_environment"],
            outcomes=["successful_trades", "mutual_benefit"],
            last_reinforced=now,
            last_decayed=now,
        ),
    ]


def pattern_key(experience: LearningExperience) -> str:
    sign = "positive" if experience.feedback.objective > 0 else "negative"
    return f"{experience.action.type}_{experience.context.phase}_{sign}"


def is_significant(experience: LearningExperience) -> bool:
    return (
        abs(experience.feedback.objective) > MIN_OBJECTIVE
        and experience.learning_value > MIN_LEARNING_VALUE
    )


class KnowledgeStore:
    """
    One agent's knowledge patterns.

    Args:
        decay_seconds: Time constant of forgetting (default 7 days)
        seed: Start with the built-in seed patterns
        now: Creation time for the seed patterns
    """

    def __init__(self, decay_seconds: float = 7 * 24 * 3600, seed: bool = True, now: float = 0.0):
        self.decay_seconds = decay_seconds
        self._patterns: Dict[str, KnowledgePattern] = {}
        if seed:
            for p in seed_patterns(now):
                self._patterns[p.id] = p

    def get(self, pattern_id: str) -> Optional[KnowledgePattern]:
        return self._patterns.get(pattern_id)

    def all(self) -> List[KnowledgePattern]:
        return list(self._patterns.values())

    def top(self, n: int = 10) -> List[KnowledgePattern]:
        """Strongest patterns first (reliability x confidence)."""
        ranked = sorted(self._patterns.values(), key=lambda p: p.reliability * p.confidence, reverse=True)
        return ranked[:n]

    def __len__(self) -> int:
        return len(self._patterns)

    def __contains__(self, pattern_id: object) -> bool:
        return pattern_id in self._patterns

    def observe(self, experience: LearningExperience, now: float) -> Optional[KnowledgePattern]:
        """
        Create or reinforce the pattern an experience belongs to.

        Experiences with weak objective feedback or low learning value are
        ignored. Returns the touched pattern, if any.
        """
        if not is_significant(experience):
            return None

        key = pattern_key(experience)
        existing = self._patterns.get(key)
        if existing is not None:
            self.reinforce(existing, experience, now)
            return existing

        sign = "positive" if experience.feedback.objective > 0 else "negative"
        created = KnowledgePattern(
            id=key,
            pattern=(
                f"{experience.action.type} in {experience.context.phase} phase "
                f"typically results in {sign} outcome"
            ),
            frequency=NEW_PATTERN_FREQUENCY,
            reliability=experience.confidence,
            confidence=experience.confidence,
            contexts=[experience.context.phase],
            outcomes=[experience.outcome.immediate] if experience.outcome.immediate else [],
            last_reinforced=now,
            last_decayed=now,
            strength_history=[StrengthEntry(now, experience.confidence, "pattern_creation")],
        )
        self._patterns[key] = created
        logger.debug(f"Knowledge pattern created: {key}")
        return created

    def reinforce(self, pattern: KnowledgePattern, experience: LearningExperience, now: float) -> None:
        strength = experience.learning_value * experience.confidence
        sign = 1.0 if experience.feedback.objective > 0 else -1.0

        pattern.frequency = min(1.0, pattern.frequency + 0.1)
        pattern.reliability = clamp(pattern.reliability + sign * strength * 0.1, 0.0, 1.0)
        pattern.confidence = pattern.confidence * 0.8 + experience.confidence * 0.2

        phase = experience.context.phase
        if phase not in pattern.contexts:
            pattern.contexts.append(phase)

        pattern.strength_history.append(StrengthEntry(now, pattern.reliability, "reinforcement"))
        if len(pattern.strength_history) > STRENGTH_HISTORY_CAP:
            pattern.strength_history = pattern.strength_history[-STRENGTH_HISTORY_TRIM:]

        pattern.last_reinforced = now
        pattern.last_decayed = now

    def decay(self, now: float) -> List[str]:
        """
        Apply forgetting for the time elapsed since each pattern was last
        reinforced or decayed, and delete patterns below the reliability floor.

        Returns:
            Ids of the forgotten patterns
        """
        forgotten = []
        for pattern in list(self._patterns.values()):
            elapsed = now - max(pattern.last_reinforced, pattern.last_decayed)
            if elapsed > 0:
                factor = math.exp(-elapsed / self.decay_seconds)
                pattern.reliability *= factor
                pattern.confidence *= factor
                pattern.last_decayed = now

            if pattern.reliability < FORGET_BELOW:
                del self._patterns[pattern.id]
                forgotten.append(pattern.id)

        if forgotten:
            logger.info(f"Forgot {len(forgotten)} knowledge patterns: {forgotten}")
        return forgotten

    def to_list(self, n: Optional[int] = None) -> List[Dict]:
        patterns = self.top(n) if n is not None else self.all()
        return [p.to_dict() for p in patterns]
