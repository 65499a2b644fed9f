"""
Pattern scoring.

A pattern's score is the sum of five sub-scores:

1. trait alignment: how close the situation is to the traits the pattern wants
2. trigger activation: priority of the pattern's triggers that are active
3. social compatibility: relationship weights toward the other players
4. historical performance: confidence of this agent's recent uses of the pattern
5. environmental fit: game phase, market and recent events

multiplied by the pattern's confidence and a contextual bonus, then clamped
to [0, 1]. Patterns scoring 0 are not candidates.

Context extraction, trigger activation, player compatibility and the
contextual bonus are pluggable hooks; defaults are provided below.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Callable, Dict, Iterable, List, Optional

from ..exceptions import ScoringError
from ..personality import PersonalitySnapshot
from ..types import BehaviorContext, PlayerState
from ..util import clamp, mean
from .history import DecisionHistory
from .patterns import BehaviorCategory, BehaviorPattern, BehaviorTrait, BehaviorTrigger
from .social import SocialSlot

logger = logging.getLogger(__name__)

ContextValueFn = Callable[[str, BehaviorContext], float]
TriggerPredicate = Callable[[BehaviorTrigger, BehaviorContext, Optional[DecisionHistory]], bool]
CompatibilityFn = Callable[[BehaviorPattern, PlayerState], float]
BonusFn = Callable[[BehaviorPattern, BehaviorContext], float]

NEUTRAL = 0.5
HISTORY_WINDOW = 10

PHASE_ALIGNMENT: Dict[BehaviorCategory, Dict[str, float]] = {
    BehaviorCategory.AGGRESSIVE: {"early": 0.3, "mid": 0.7, "late": 0.9},
    BehaviorCategory.CONSERVATIVE: {"early": 0.8, "mid": 0.6, "late": 0.4},
    BehaviorCategory.OPPORTUNISTIC: {"early": 0.5, "mid": 0.7, "late": 0.6},
    BehaviorCategory.DEFENSIVE: {"early": 0.4, "mid": 0.6, "late": 0.7},
    BehaviorCategory.COLLABORATIVE: {"early": 0.7, "mid": 0.6, "late": 0.4},
    BehaviorCategory.ANALYTICAL: {"early": 0.6, "mid": 0.7, "late": 0.6},
}

# Relationship multiplier per category; collaborative patterns gain most
# from good relations, aggressive ones least.
CATEGORY_COMPATIBILITY: Dict[BehaviorCategory, float] = {
    BehaviorCategory.COLLABORATIVE: 0.8,
    BehaviorCategory.AGGRESSIVE: 0.3,
    BehaviorCategory.DEFENSIVE: 0.4,
}


def default_context_value(trait_name: str, context: BehaviorContext) -> float:
    """Situation value a pattern trait is compared against."""
    if trait_name == "risk_tolerance":
        return context.game_state.market.volatility if context.game_state else NEUTRAL
    if trait_name == "competitiveness":
        return context.social_dynamics.social_pressure
    if trait_name == "patience":
        return 1.0 - context.time_constraints.pressure
    return NEUTRAL


def default_trigger_active(
    trigger: BehaviorTrigger,
    context: BehaviorContext,
    history: Optional[DecisionHistory] = None,
) -> bool:
    """
    A trigger is active when a recent event of the same type has an impact
    of at least the trigger threshold, or a game event of that type is in
    effect, and the trigger has not fired within its cooldown.
    """
    if history is not None and trigger.cooldown > 0:
        for decision in history.recent(len(history)):
            if (
                trigger.event in decision.fired_triggers
                and context.round - decision.round < trigger.cooldown
            ):
                return False

    for event in context.recent_events:
        if event.type == trigger.event and abs(event.impact) >= trigger.threshold:
            return True
    if context.game_state:
        for active in context.game_state.events:
            if active.type == trigger.event:
                return True
    return False


def default_compatibility(pattern: BehaviorPattern, player: PlayerState) -> float:
    base = CATEGORY_COMPATIBILITY.get(pattern.category, NEUTRAL)
    if player.status == "bankrupt":
        return 0.0
    return base


def default_contextual_bonus(pattern: BehaviorPattern, context: BehaviorContext) -> float:
    return 1.0


@dataclass(frozen=True)
class ScoreBreakdown:
    trait_alignment: float
    trigger_activation: float
    social_compatibility: float
    historical_performance: float
    environmental_fit: float
    bonus: float

    @property
    def raw(self) -> float:
        return (
            self.trait_alignment
            + self.trigger_activation
            + self.social_compatibility
            + self.historical_performance
            + self.environmental_fit
        )

    def to_dict(self) -> Dict[str, float]:
        return {
            "trait_alignment": self.trait_alignment,
            "trigger_activation": self.trigger_activation,
            "social_compatibility": self.social_compatibility,
            "historical_performance": self.historical_performance,
            "environmental_fit": self.environmental_fit,
            "bonus": self.bonus,
        }


@dataclass(frozen=True)
class ScoredPattern:
    pattern: BehaviorPattern
    score: float
    breakdown: ScoreBreakdown
    fired_triggers: List[str] = field(default_factory=list)


class PatternScorer:
    """
    Scores patterns against a context for one agent.

    Stateless apart from its hooks; the per-agent inputs (history, social
    slot, personality snapshot) are passed to every call.
    """

    def __init__(
        self,
        context_value: Optional[ContextValueFn] = None,
        trigger_active: Optional[TriggerPredicate] = None,
        compatibility: Optional[CompatibilityFn] = None,
        contextual_bonus: Optional[BonusFn] = None,
    ):
        self.context_value = context_value or default_context_value
        self.trigger_active = trigger_active or default_trigger_active
        self.compatibility = compatibility or default_compatibility
        self.contextual_bonus = contextual_bonus or default_contextual_bonus

    def trait_alignment(
        self,
        traits: List[BehaviorTrait],
        context: BehaviorContext,
        personality: Optional[PersonalitySnapshot] = None,
    ) -> float:
        if not traits:
            return 0.0
        total = 0.0
        for trait in traits:
            ideal = trait.value
            if personality is not None:
                ideal = clamp(ideal + personality.pattern_offset(trait.name), 0.0, 1.0)
            difference = abs(ideal - self.context_value(trait.name, context))
            total += max(0.0, 1.0 - difference) * trait.weight
        return total / len(traits)

    def active_triggers(
        self,
        triggers: List[BehaviorTrigger],
        context: BehaviorContext,
        history: Optional[DecisionHistory] = None,
    ) -> List[BehaviorTrigger]:
        return [t for t in triggers if self.trigger_active(t, context, history)]

    def trigger_activation(
        self,
        triggers: List[BehaviorTrigger],
        context: BehaviorContext,
        history: Optional[DecisionHistory] = None,
    ) -> float:
        if not triggers:
            return 0.0
        activation = sum(t.priority for t in self.active_triggers(triggers, context, history))
        return min(1.0, activation / len(triggers))

    def social_compatibility(
        self,
        pattern: BehaviorPattern,
        context: BehaviorContext,
        social: Optional[SocialSlot] = None,
    ) -> float:
        if social is None:
            return NEUTRAL
        values = []
        for player in context.opponents():
            weight = social.weight(player.id)
            values.append((weight or 0.0) * self.compatibility(pattern, player))
        return mean(values, default=NEUTRAL)

    def historical_performance(
        self,
        pattern: BehaviorPattern,
        history: Optional[DecisionHistory] = None,
    ) -> float:
        if history is None:
            return NEUTRAL
        recent = history.for_pattern(pattern.id, limit=HISTORY_WINDOW)
        return mean((d.confidence for d in recent), default=NEUTRAL)

    def phase_alignment(self, pattern: BehaviorPattern, phase: str) -> float:
        return PHASE_ALIGNMENT.get(pattern.category, {}).get(phase, NEUTRAL)

    def market_alignment(self, pattern: BehaviorPattern, volatility: float) -> float:
        if pattern.category == BehaviorCategory.AGGRESSIVE and volatility > 0.7:
            return 0.8
        if pattern.category == BehaviorCategory.CONSERVATIVE and volatility < 0.3:
            return 0.8
        return NEUTRAL

    def event_alignment(self, pattern: BehaviorPattern, context: BehaviorContext) -> float:
        """Recent events the pattern has a trigger for count 0.8, others 0.5."""
        if not context.recent_events:
            return NEUTRAL
        trigger_events = {t.event for t in pattern.triggers}
        return mean(0.8 if e.type in trigger_events else NEUTRAL for e in context.recent_events)

    def environmental_fit(self, pattern: BehaviorPattern, context: BehaviorContext) -> float:
        volatility = context.game_state.market.volatility if context.game_state else NEUTRAL
        return (
            self.phase_alignment(pattern, context.phase)
            + self.market_alignment(pattern, volatility)
            + self.event_alignment(pattern, context)
        ) / 3.0

    def score(
        self,
        pattern: BehaviorPattern,
        context: BehaviorContext,
        history: Optional[DecisionHistory] = None,
        social: Optional[SocialSlot] = None,
        personality: Optional[PersonalitySnapshot] = None,
    ) -> ScoredPattern:
        """
        Score one pattern.

        Raises:
            ScoringError: If any sub-score or hook fails
        """
        try:
            fired = self.active_triggers(pattern.triggers, context, history)
            breakdown = ScoreBreakdown(
                trait_alignment=self.trait_alignment(pattern.traits, context, personality),
                trigger_activation=(
                    min(1.0, sum(t.priority for t in fired) / len(pattern.triggers))
                    if pattern.triggers else 0.0
                ),
                social_compatibility=self.social_compatibility(pattern, context, social),
                historical_performance=self.historical_performance(pattern, history),
                environmental_fit=self.environmental_fit(pattern, context),
                bonus=float(self.contextual_bonus(pattern, context)),
            )
        except Exception as e:
            raise ScoringError(pattern.id, e) from e

        total = clamp(breakdown.raw * pattern.confidence * breakdown.bonus, 0.0, 1.0)
        return ScoredPattern(
            pattern=pattern,
            score=total,
            breakdown=breakdown,
            fired_triggers=[t.event for t in fired],
        )

    def score_all(
        self,
        patterns: Iterable[BehaviorPattern],
        context: BehaviorContext,
        history: Optional[DecisionHistory] = None,
        social: Optional[SocialSlot] = None,
        personality: Optional[PersonalitySnapshot] = None,
        on_error: Optional[Callable[[ScoringError], None]] = None,
    ) -> List[ScoredPattern]:
        """
        Score every pattern and return the candidates, best first.

        A pattern whose scoring fails is logged and left out; the others
        are still scored.
        """
        candidates: List[ScoredPattern] = []
        for pattern in patterns:
            try:
                scored = self.score(pattern, context, history, social, personality)
            except ScoringError as e:
                logger.warning(f"Excluding pattern {pattern.id}: {e}")
                if on_error:
                    on_error(e)
                continue
            if scored.score > 0:
                candidates.append(scored)

        candidates.sort(key=lambda c: c.score, reverse=True)
        return candidates
