"""
Learning objective tracking.

Each objective moves with the experiences relevant to it. Reaching 90% of
a target raises the target (a moving goalpost); objectives that stall get
more important.
"""
from __future__ import annotations

import logging
from typing import Dict, Iterable, List, Optional

from ..util import clamp, mean
from .state import AchievementEntry, LearningExperience, LearningObjective

logger = logging.getLogger(__name__)

DAY_SECONDS = 24 * 3600
RELEVANCE_THRESHOLD = 0.3
DEFAULT_RELEVANCE = 0.3
SLOW_PROGRESS = 0.01

# objective id -> action type -> relevance
RELEVANCE: Dict[str, Dict[str, float]] = {
    "win_rate_optimization": {
        "property_purchase": 0.8,
        "trade_offer": 0.9,
        "auction_bid": 0.7,
        "property_development": 0.8,
    },
    "resource_efficiency": {
        "property_purchase": 0.9,
        "mortgage_decision": 0.9,
        "property_development": 0.8,
    },
    "social_influence": {
        "trade_offer": 0.9,
        "trade_response": 0.9,
        "auction_bid": 0.5,
    },
}


def default_objectives() -> List[LearningObjective]:
    return [
        LearningObjective(
            id="win_rate_optimization",
            name="Win Rate Optimization",
            description="Improve overall game win rate",
            target_metric="win_percentage",
            current_value=0.25,
            target_value=0.6,
            importance=1.0,
            time_horizon=120,
            progress_rate=0.02,
        ),
        LearningObjective(
            id="resource_efficiency",
            name="Resource Management Efficiency",
            description="Optimize cash and property management",
            target_metric="resource_utilization",
            current_value=0.5,
            target_value=0.8,
            importance=0.8,
            time_horizon=90,
            progress_rate=0.03,
        ),
        LearningObjective(
            id="social_influence",
            name="Social Influence Mastery",
            description="Improve negotiation and alliance building",
            target_metric="social_success_rate",
            current_value=0.4,
            target_value=0.75,
            importance=0.7,
            time_horizon=150,
            progress_rate=0.025,
        ),
        LearningObjective(
            id="risk_calibration",
            name="Risk Assessment Calibration",
            description="Better align risk-taking with outcomes",
            target_metric="risk_reward_ratio",
            current_value=0.3,
            target_value=0.7,
            importance=0.6,
            time_horizon=100,
            progress_rate=0.02,
        ),
    ]


def relevance(objective_id: str, action_type: str) -> float:
    return RELEVANCE.get(objective_id, {}).get(action_type, DEFAULT_RELEVANCE)


class ObjectiveTracker:
    """One agent's learning objectives."""

    def __init__(self, objectives: Optional[Iterable[LearningObjective]] = None):
        initial = list(objectives) if objectives is not None else default_objectives()
        self._objectives: Dict[str, LearningObjective] = {o.id: o for o in initial}

    def get(self, objective_id: str) -> Optional[LearningObjective]:
        return self._objectives.get(objective_id)

    def all(self) -> List[LearningObjective]:
        return list(self._objectives.values())

    def ids(self) -> List[str]:
        return list(self._objectives.keys())

    def __len__(self) -> int:
        return len(self._objectives)

    def update(self, experience: LearningExperience, now: float) -> List[str]:
        """
        Move every relevant objective. Returns the ids that moved.
        """
        updated = []
        outcome_tag = "success" if experience.feedback.objective > 0 else "failure"
        for objective in self._objectives.values():
            r = relevance(objective.id, experience.action.type)
            if r <= RELEVANCE_THRESHOLD:
                continue

            impact = experience.learning_value * experience.feedback.objective * r * 0.1
            objective.current_value = clamp(objective.current_value + impact, 0.0, 1.0)
            objective.achievement_history.append(
                AchievementEntry(
                    timestamp=now,
                    value=objective.current_value,
                    context=f"{experience.action.type}_{outcome_tag}",
                )
            )

            if objective.current_value > objective.target_value * 0.9:
                objective.target_value = min(1.0, objective.target_value + 0.1)
                logger.info(f"Objective {objective.id} target raised to {objective.target_value:.2f}")
            updated.append(objective.id)
        return updated

    def evaluate_progress(self, now: float) -> List[str]:
        """
        Recompute each objective's 24 h progress rate and raise the
        importance of the ones that stalled. Returns the ids that stalled.
        """
        stalled = []
        for objective in self._objectives.values():
            recent = [e for e in objective.achievement_history if now - e.timestamp < DAY_SECONDS]
            if len(recent) < 2:
                continue
            objective.progress_rate = (recent[-1].value - recent[0].value) / len(recent)
            if objective.progress_rate < SLOW_PROGRESS and objective.importance < 1.0:
                objective.importance = min(1.0, objective.importance + 0.1)
                stalled.append(objective.id)
        return stalled

    def prune(self, cutoff: float) -> int:
        """Drop achievement entries older than ``cutoff``."""
        dropped = 0
        for objective in self._objectives.values():
            before = len(objective.achievement_history)
            objective.achievement_history = [
                e for e in objective.achievement_history if e.timestamp > cutoff
            ]
            dropped += before - len(objective.achievement_history)
        return dropped

    def overall_progress(self) -> float:
        """Mean of current / target across objectives."""
        return mean((o.progress for o in self._objectives.values()), default=0.0)

    def to_dict(self) -> Dict[str, Dict]:
        return {k: o.to_dict() for k, o in self._objectives.items()}
