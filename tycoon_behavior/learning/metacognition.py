"""
Meta-cognitive self-model.

Initial metrics are derived from the agent's personality; each experience
then nudges learning speed, retention and pattern recognition, and
unexpected outcomes are remembered as blind spots.
"""
from __future__ import annotations

import logging
from typing import Mapping, Optional

from ..personality import PersonalityEvent, TraitImpact
from ..util import clamp
from .state import (
    LearningExperience,
    LearningMetrics,
    MetaCognition,
    SelfAwareness,
    StrategicThinking,
)

logger = logging.getLogger(__name__)

METRIC_MIN = 0.05
METRIC_MAX = 1.0

SIGNIFICANT_LEARNING_VALUE = 0.8
SIGNIFICANT_OBJECTIVE = 0.7


def _t(traits: Mapping[str, float], name: str) -> float:
    return float(traits.get(name, 0.5))


def initial_metacognition(traits: Mapping[str, float]) -> MetaCognition:
    strengths = []
    if _t(traits, "analytical") > 0.7:
        strengths.append("analytical_thinking")
    if _t(traits, "social") > 0.7:
        strengths.append("social_interaction")
    if _t(traits, "adaptability") > 0.7:
        strengths.append("flexibility")
    if _t(traits, "patience") > 0.7:
        strengths.append("long_term_planning")
    if _t(traits, "leadership") > 0.7:
        strengths.append("decision_making")

    weaknesses = []
    if _t(traits, "patience") < 0.3:
        weaknesses.append("impatience")
    if _t(traits, "analytical") < 0.3:
        weaknesses.append("superficial_analysis")
    if _t(traits, "social") < 0.3:
        weaknesses.append("poor_communication")
    if _t(traits, "risktaking") > 0.8:
        weaknesses.append("excessive_risk_taking")
    if _t(traits, "emotional") > 0.8:
        weaknesses.append("emotional_decision_making")

    biases = []
    if _t(traits, "aggression") > 0.7:
        biases.append("aggression_bias")
    if _t(traits, "risktaking") > 0.7:
        biases.append("overconfidence_bias")
    if _t(traits, "social") > 0.8:
        biases.append("social_proof_bias")
    if _t(traits, "analytical") > 0.8:
        biases.append("analysis_paralysis")

    def bounded(value: float) -> float:
        return clamp(value, METRIC_MIN, METRIC_MAX)

    return MetaCognition(
        self_awareness=SelfAwareness(
            strengths=strengths,
            weaknesses=weaknesses,
            biases=biases,
            blind_spots=[],
        ),
        learning_metrics=LearningMetrics(
            learning_speed=bounded(_t(traits, "adaptability") * 0.6 + _t(traits, "analytical") * 0.4),
            retention_rate=bounded(_t(traits, "patience") * 0.7 + _t(traits, "analytical") * 0.3),
            transfer_ability=bounded(_t(traits, "creativity") * 0.5 + _t(traits, "adaptability") * 0.5),
            adaptation_flexibility=bounded(_t(traits, "adaptability")),
        ),
        strategic_thinking=StrategicThinking(
            planning_horizon=bounded(_t(traits, "analytical") * 0.6 + _t(traits, "patience") * 0.4),
            contingency_preparation=bounded(_t(traits, "analytical") * 0.7 + _t(traits, "risktaking") * 0.3),
            pattern_recognition=bounded(_t(traits, "analytical") * 0.8 + _t(traits, "intuition") * 0.2),
            abstraction_level=bounded(_t(traits, "analytical") * 0.6 + _t(traits, "creativity") * 0.4),
        ),
    )


class MetaCognitionTracker:
    """Holds and updates one agent's ``MetaCognition``."""

    def __init__(self, traits: Mapping[str, float]):
        self.state = initial_metacognition(traits)

    def update(self, experience: LearningExperience) -> None:
        metrics = self.state.learning_metrics
        if experience.success:
            metrics.learning_speed *= 1.02
            metrics.retention_rate *= 1.01
        else:
            metrics.learning_speed *= 0.99
            metrics.retention_rate *= 0.995
        metrics.learning_speed = clamp(metrics.learning_speed, METRIC_MIN, METRIC_MAX)
        metrics.retention_rate = clamp(metrics.retention_rate, METRIC_MIN, METRIC_MAX)

        if experience.outcome.is_unexpected:
            spot = f"Unexpected outcome in {experience.context.phase} phase with {experience.action.type}"
            blind_spots = self.state.self_awareness.blind_spots
            if spot not in blind_spots:
                blind_spots.append(spot)
                logger.debug(f"New blind spot: {spot}")

        if experience.generalizable:
            thinking = self.state.strategic_thinking
            thinking.pattern_recognition = clamp(
                thinking.pattern_recognition * 1.01, METRIC_MIN, METRIC_MAX
            )

    def to_dict(self):
        return self.state.to_dict()


def personality_event_for(experience: LearningExperience, now: Optional[float] = None) -> Optional[PersonalityEvent]:
    """
    Turn a significant experience into a personality event.

    Only experiences with learning value above 0.8 and objective feedback
    beyond +/-0.7 qualify; action types with no trait mapping produce an
    event without impacts.
    """
    objective = experience.feedback.objective
    if experience.learning_value <= SIGNIFICANT_LEARNING_VALUE or abs(objective) <= SIGNIFICANT_OBJECTIVE:
        return None

    action_type = experience.action.type
    impacts = []
    if action_type in ("trade_offer", "trade_response"):
        impacts.append(TraitImpact("social", experience.feedback.social * 0.02, 60))
    elif action_type in ("property_purchase", "auction_bid"):
        impacts.append(TraitImpact("risktaking", 0.01 if objective > 0 else -0.01, 45))
    elif action_type == "property_development":
        impacts.append(TraitImpact("analytical", objective * 0.015, 90))

    positive = objective > 0
    return PersonalityEvent(
        type="decision_outcome",
        description=(
            f"Significant learning from {action_type} with "
            f"{'positive' if positive else 'negative'} outcome"
        ),
        impacts=impacts,
        mood="confident" if positive else "cautious",
        confidence_change=objective * 0.1,
        timestamp=experience.timestamp if now is None else now,
    )
