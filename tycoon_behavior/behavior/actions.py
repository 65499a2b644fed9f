"""
Action generation for a chosen pattern.

Pure: filters the pattern's actions by prerequisite, scales each base
probability by a multiplier, drops the unlikely ones and ranks the rest.
"""
from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Callable, List, Optional, Set

from ..types import BehaviorContext
from ..util import clamp
from .patterns import BehaviorAction, BehaviorPattern

PrerequisiteCheck = Callable[[str, BehaviorContext], bool]
MultiplierFn = Callable[[BehaviorAction, BehaviorContext], float]


def context_facts(context: BehaviorContext) -> Set[str]:
    """
    Facts about the acting player that prerequisites can name.

    phase:<phase>, status:<status>, has_cash, has_properties, has_monopoly,
    in_alliance, in_conflict, plus every environmental factor whose value
    is above 0.5.
    """
    facts = {f"phase:{context.phase}"}

    player = context.acting_player()
    if player is not None:
        facts.add(f"status:{player.status}")
        if player.cash > 0:
            facts.add("has_cash")
        if player.properties:
            facts.add("has_properties")
        if any(p.monopoly for p in player.properties):
            facts.add("has_monopoly")
        if player.alliances:
            facts.add("in_alliance")
        if player.conflicts:
            facts.add("in_conflict")

    for alliance in context.social_dynamics.alliances:
        if context.player_id in alliance.members:
            facts.add("in_alliance")
    for conflict in context.social_dynamics.conflicts:
        if context.player_id in conflict.parties:
            facts.add("in_conflict")

    for factor in context.environmental_factors:
        if factor.value > 0.5:
            facts.add(factor.name)

    return facts


def default_prerequisite(prerequisite: str, context: BehaviorContext) -> bool:
    return prerequisite in context_facts(context)


def neutral_multiplier(action: BehaviorAction, context: BehaviorContext) -> float:
    return 1.0


@dataclass(frozen=True)
class RankedAction:
    action: BehaviorAction
    adjusted_probability: float


class ActionGenerator:
    """
    Turns a pattern into a ranked action list.

    Example:
        >>> gen = ActionGenerator()
        >>> actions = gen.generate(pattern, context)  # at most 5, best first
    """

    def __init__(
        self,
        prerequisite: Optional[PrerequisiteCheck] = None,
        max_actions: int = 5,
        min_probability: float = 0.1,
    ):
        self.prerequisite = prerequisite or default_prerequisite
        self.max_actions = max_actions
        self.min_probability = min_probability

    def applicable(self, action: BehaviorAction, context: BehaviorContext) -> bool:
        return all(self.prerequisite(p, context) for p in action.prerequisites)

    def rank(
        self,
        pattern: BehaviorPattern,
        context: BehaviorContext,
        multiplier: Optional[MultiplierFn] = None,
    ) -> List[RankedAction]:
        multiplier = multiplier or neutral_multiplier
        ranked = []
        for action in pattern.actions:
            if not self.applicable(action, context):
                continue
            adjusted = clamp(action.probability * multiplier(action, context), 0.0, 1.0)
            if adjusted < self.min_probability:
                continue
            ranked.append(RankedAction(action, adjusted))

        ranked.sort(key=lambda r: r.adjusted_probability, reverse=True)
        return ranked[: self.max_actions]

    def generate(
        self,
        pattern: BehaviorPattern,
        context: BehaviorContext,
        multiplier: Optional[MultiplierFn] = None,
    ) -> List[BehaviorAction]:
        """Ranked actions, each carrying its adjusted probability."""
        return [
            replace(r.action, probability=r.adjusted_probability)
            for r in self.rank(pattern, context, multiplier)
        ]
