"""
Experience processing.

Turns a raw (context, action, outcome, feedback) report into a scored
``LearningExperience`` and keeps the agent's bounded experience list.
"""
from __future__ import annotations

import itertools
import logging
from typing import Callable, List, Optional

from ..behavior.patterns import BehaviorAction
from ..exceptions import ExperienceRejected
from ..types import BehaviorContext
from ..util import clamp, mean
from ..validation import validate_action, validate_context, validate_feedback
from .state import Feedback, LearningExperience, Outcome

logger = logging.getLogger(__name__)

Heuristic = Callable[[BehaviorContext, BehaviorAction, Outcome], float]

GENERALIZABLE_THRESHOLD = 0.6
TYPICALITY_WINDOW = 50


def learning_value(feedback: Feedback, outcome: Outcome) -> float:
    """
    How much there is to learn from an experience.

    0.4 * |mean feedback| + 0.3 * surprise + 0.3 * |mean feedback|, where
    surprise is 0.8 for outcomes with unexpected results and 0.2 otherwise.
    """
    magnitude = abs(feedback.average())
    surprise = 0.8 if outcome.is_unexpected else 0.2
    return magnitude * 0.4 + surprise * 0.3 + magnitude * 0.3


def experience_confidence(feedback: Feedback, outcome: Outcome) -> float:
    clarity = 0.8 if outcome.immediate else 0.4
    return feedback.consistency() * 0.4 + clarity * 0.4 + abs(feedback.environmental) * 0.2


def default_context_generality(context: BehaviorContext, action: BehaviorAction, outcome: Outcome) -> float:
    """Ordinary turns generalize; each special game event in effect makes it less so."""
    active = len(context.game_state.events) if context.game_state else 0
    return clamp(0.8 - 0.1 * active - 0.3 * context.time_constraints.urgency, 0.2, 0.8)


def default_outcome_consistency(context: BehaviorContext, action: BehaviorAction, outcome: Outcome) -> float:
    if outcome.immediate is None:
        return 0.5
    return 0.4 if outcome.is_unexpected else 0.8


class ExperienceProcessor:
    """
    Scores experiences and holds the most recent ones.

    The list is capped at ``limit``; on overflow it is trimmed to the
    newest ``trim_to`` entries.
    """

    def __init__(
        self,
        agent_id: str = "",
        limit: int = 1000,
        trim_to: int = 800,
        context_generality: Optional[Heuristic] = None,
        action_typicality: Optional[Heuristic] = None,
        outcome_consistency: Optional[Heuristic] = None,
    ):
        self.agent_id = agent_id
        self.limit = limit
        self.trim_to = min(trim_to, limit)
        self.context_generality = context_generality or default_context_generality
        self.action_typicality = action_typicality or self._action_typicality
        self.outcome_consistency = outcome_consistency or default_outcome_consistency
        self._experiences: List[LearningExperience] = []
        self._ids = itertools.count(1)

    def _action_typicality(
        self, context: BehaviorContext, action: BehaviorAction, outcome: Outcome
    ) -> float:
        """Action types seen often in recent experience are typical."""
        recent = self._experiences[-TYPICALITY_WINDOW:]
        seen = sum(1 for e in recent if e.action.type == action.type)
        return min(1.0, 0.4 + 0.1 * seen)

    def is_generalizable(
        self, context: BehaviorContext, action: BehaviorAction, outcome: Outcome
    ) -> bool:
        score = mean([
            self.context_generality(context, action, outcome),
            self.action_typicality(context, action, outcome),
            self.outcome_consistency(context, action, outcome),
        ])
        return score > GENERALIZABLE_THRESHOLD

    def build(
        self,
        context: BehaviorContext,
        action: BehaviorAction,
        outcome: Outcome,
        feedback: Feedback,
        now: float,
    ) -> LearningExperience:
        """
        Validate and score one report.

        Raises:
            ExperienceRejected: If any part of the report is malformed
        """
        for result in (
            validate_context(context),
            validate_action(action),
            validate_feedback(feedback),
        ):
            result.raise_if_invalid("Experience validation", ExperienceRejected)
        if not isinstance(outcome, Outcome):
            raise ExperienceRejected("Experience validation failed: outcome must be an Outcome")

        return LearningExperience(
            id=f"exp_{self.agent_id}_{next(self._ids)}",
            timestamp=now,
            context=context,
            action=action,
            outcome=outcome,
            feedback=feedback,
            learning_value=learning_value(feedback, outcome),
            generalizable=self.is_generalizable(context, action, outcome),
            confidence=experience_confidence(feedback, outcome),
        )

    def append(self, experience: LearningExperience) -> None:
        self._experiences.append(experience)
        if len(self._experiences) > self.limit:
            self._experiences = self._experiences[-self.trim_to:]
            logger.debug(f"Experience list for {self.agent_id} trimmed to {self.trim_to}")

    def prune(self, cutoff: float) -> int:
        """Drop experiences older than ``cutoff``. Returns how many were dropped."""
        before = len(self._experiences)
        self._experiences = [e for e in self._experiences if e.timestamp > cutoff]
        return before - len(self._experiences)

    def experiences(self) -> List[LearningExperience]:
        return list(self._experiences)

    def __len__(self) -> int:
        return len(self._experiences)
