"""
Learning strategies.

A strategy is a weighted mix of four methods (reinforcement, imitation,
exploration, optimization) gated by personality bounds and action tags.
Only the reinforcement and optimization methods change what the agent
does, by nudging the action preferences the action generator reads.
"""
from __future__ import annotations

import logging
from collections import Counter
from typing import Dict, Iterable, List, Optional

from ..personality import PersonalitySnapshot
from ..util import clamp
from .state import (
    ActionPreferences,
    AdaptationRules,
    LearningExperience,
    LearningStrategy,
    MethodWeights,
    StrategyConstraints,
)

logger = logging.getLogger(__name__)

METHOD_THRESHOLD = 0.1
EXPLORATION_MIN = 0.05
EXPLORATION_MAX = 0.5
IMITATION_MIN_ENVIRONMENTAL = 0.5


def default_strategies() -> List[LearningStrategy]:
    return [
        LearningStrategy(
            id="reinforcement_learning",
            name="Reinforcement Learning",
            description="Learn from rewards and punishments",
            applicable_objectives=["win_rate_optimization", "resource_efficiency"],
            methods=MethodWeights(reinforcement=0.8, imitation=0.1, exploration=0.1, optimization=0.0),
            rules=AdaptationRules(
                success_threshold=0.7,
                failure_threshold=0.3,
                adaptation_rate=0.15,
                forgetting_rate=0.05,
            ),
            constraints=StrategyConstraints(
                personality_bounds={"risktaking": 0.9},
                behavior_limits=["no_extreme_aggression"],
                ethical_constraints=["fair_play", "respectful_interaction"],
            ),
        ),
        LearningStrategy(
            id="social_learning",
            name="Social Learning",
            description="Learn by observing and imitating successful players",
            applicable_objectives=["social_influence", "win_rate_optimization"],
            methods=MethodWeights(reinforcement=0.2, imitation=0.6, exploration=0.1, optimization=0.1),
            rules=AdaptationRules(
                success_threshold=0.6,
                failure_threshold=0.4,
                adaptation_rate=0.1,
                forgetting_rate=0.02,
            ),
            constraints=StrategyConstraints(
                personality_bounds={"social": 0.9},
                behavior_limits=["maintain_authenticity"],
                ethical_constraints=["respect_privacy", "no_manipulation"],
            ),
        ),
        LearningStrategy(
            id="analytical_optimization",
            name="Analytical Optimization",
            description="Systematic analysis and optimization of decisions",
            applicable_objectives=["resource_efficiency", "risk_calibration"],
            methods=MethodWeights(reinforcement=0.1, imitation=0.1, exploration=0.2, optimization=0.6),
            rules=AdaptationRules(
                success_threshold=0.8,
                failure_threshold=0.2,
                adaptation_rate=0.05,
                forgetting_rate=0.01,
            ),
            constraints=StrategyConstraints(
                personality_bounds={"analytical": 0.95},
                behavior_limits=["avoid_over_analysis"],
                ethical_constraints=["transparent_reasoning"],
            ),
        ),
    ]


def action_tags(experience: LearningExperience) -> List[str]:
    tags = experience.action.parameters.get("tags", []) if experience.action.parameters else []
    if isinstance(tags, str):
        return [tags]
    return list(tags or [])


class StrategyEngine:
    """
    Applies learning strategies to experiences.

    Args:
        strategies: Strategies to run (defaults to the three built-ins)
        preferences: Action preference table to nudge
        exploration_rate: Starting exploration rate, kept in [0.05, 0.5]
    """

    def __init__(
        self,
        strategies: Optional[Iterable[LearningStrategy]] = None,
        preferences: Optional[ActionPreferences] = None,
        exploration_rate: float = 0.3,
    ):
        initial = list(strategies) if strategies is not None else default_strategies()
        self._strategies: Dict[str, LearningStrategy] = {s.id: s for s in initial}
        self.preferences = preferences if preferences is not None else ActionPreferences()
        self.exploration_rate = clamp(exploration_rate, EXPLORATION_MIN, EXPLORATION_MAX)
        self.imitation_targets: Counter = Counter()

    def all(self) -> List[LearningStrategy]:
        return list(self._strategies.values())

    def get(self, strategy_id: str) -> Optional[LearningStrategy]:
        return self._strategies.get(strategy_id)

    def applicable(
        self,
        strategy: LearningStrategy,
        experience: LearningExperience,
        objective_ids: Iterable[str],
        personality: PersonalitySnapshot,
    ) -> bool:
        """
        A strategy fires when it targets a tracked objective, the agent is
        within its personality bounds and the action carries none of its
        behavior-limit tags.
        """
        tracked = set(objective_ids)
        if not any(o in tracked for o in strategy.applicable_objectives):
            return False

        for trait, maximum in strategy.constraints.personality_bounds.items():
            if personality.trait(trait) > maximum:
                return False

        tags = action_tags(experience)
        return not any(limit in tags for limit in strategy.constraints.behavior_limits)

    def apply(
        self,
        experience: LearningExperience,
        objective_ids: Iterable[str],
        personality: PersonalitySnapshot,
    ) -> List[str]:
        """Run every applicable strategy. Returns the ids that fired."""
        objective_ids = list(objective_ids)
        fired = []
        for strategy in self._strategies.values():
            if not self.applicable(strategy, experience, objective_ids, personality):
                continue
            self._run(strategy, experience)
            fired.append(strategy.id)
        return fired

    def _run(self, strategy: LearningStrategy, experience: LearningExperience) -> None:
        methods = strategy.methods
        rules = strategy.rules
        action_type = experience.action.type
        objective = experience.feedback.objective

        if methods.reinforcement > METHOD_THRESHOLD:
            reward = objective
            self.preferences.adjust(
                action_type,
                reward * methods.reinforcement * rules.adaptation_rate,
                reward=reward,
            )

        if methods.imitation > METHOD_THRESHOLD and experience.feedback.environmental > IMITATION_MIN_ENVIRONMENTAL:
            opponents = experience.context.opponents()
            if opponents:
                leader = max(opponents, key=lambda p: p.net_worth)
                self.imitation_targets[leader.id] += 1

        if methods.exploration > METHOD_THRESHOLD:
            if objective < 0.2:
                rate = min(0.8, self.exploration_rate + methods.exploration * 0.1)
            else:
                rate = max(0.1, self.exploration_rate - methods.exploration * 0.05)
            self.exploration_rate = clamp(rate, EXPLORATION_MIN, EXPLORATION_MAX)

        if methods.optimization > METHOD_THRESHOLD:
            success = (objective + 1.0) / 2.0
            step = methods.optimization * rules.adaptation_rate
            if success >= rules.success_threshold:
                self.preferences.adjust(action_type, step)
            elif success <= rules.failure_threshold:
                self.preferences.adjust(action_type, -step)

    def recalibrate(self, overall_progress: float) -> float:
        """
        Explore less when objectives are nearly met, more when they lag.
        Returns the new exploration rate.
        """
        if overall_progress > 0.8:
            self.exploration_rate *= 0.98
        elif overall_progress < 0.3:
            self.exploration_rate *= 1.02
        self.exploration_rate = clamp(self.exploration_rate, EXPLORATION_MIN, EXPLORATION_MAX)
        return self.exploration_rate

    def to_dict(self) -> Dict[str, Dict]:
        return {k: s.to_dict() for k, s in self._strategies.items()}
