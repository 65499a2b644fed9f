"""
Agent-to-player relationship weights.

Each agent owns one slot holding its weights toward the other players at
the table. The scorer reads the acting agent's slot; the decision pipeline
writes it after a decision is recorded, based on the social effect of the
chosen actions.
"""
from __future__ import annotations

import logging
import threading
from dataclasses import dataclass, field
from typing import Dict, List, Optional

from ..types import BehaviorContext
from ..util import clamp
from .patterns import BehaviorAction

logger = logging.getLogger(__name__)

ALLY_THRESHOLD = 0.6
RIVAL_THRESHOLD = -0.5
SOCIAL_EFFECT_SCALE = 0.1


@dataclass
class SocialSlot:
    """
    One agent's relationships.

    Attributes:
        agent_id: Owning agent
        weights: Target player id -> relationship weight (-1.0 to 1.0)
        allies: Targets whose weight reached the ally threshold
        rivals: Targets whose weight fell to the rival threshold
        interactions: Target player id -> number of updates applied
    """
    agent_id: str
    weights: Dict[str, float] = field(default_factory=dict)
    allies: List[str] = field(default_factory=list)
    rivals: List[str] = field(default_factory=list)
    interactions: Dict[str, int] = field(default_factory=dict)

    def weight(self, target: str) -> Optional[float]:
        return self.weights.get(target)

    def update(self, target: str, delta: float) -> float:
        new = clamp(self.weights.get(target, 0.0) + delta, -1.0, 1.0)
        self.weights[target] = new
        self.interactions[target] = self.interactions.get(target, 0) + 1

        if new >= ALLY_THRESHOLD:
            if target not in self.allies:
                self.allies.append(target)
            if target in self.rivals:
                self.rivals.remove(target)
        elif new <= RIVAL_THRESHOLD:
            if target not in self.rivals:
                self.rivals.append(target)
            if target in self.allies:
                self.allies.remove(target)
        return new

    def to_dict(self) -> Dict:
        return {
            "agent_id": self.agent_id,
            "weights": dict(self.weights),
            "allies": list(self.allies),
            "rivals": list(self.rivals),
            "interactions": dict(self.interactions),
        }


class SocialGraph:
    """
    All agents' relationship slots.

    Example:
        >>> graph = SocialGraph()
        >>> graph.slot("bot-1").update("alice", 0.3)
        >>> graph.get("bot-1").weight("alice")
        0.3
    """

    def __init__(self):
        self._lock = threading.Lock()
        self._slots: Dict[str, SocialSlot] = {}

    def slot(self, agent_id: str) -> SocialSlot:
        """Get or create an agent's slot."""
        with self._lock:
            if agent_id not in self._slots:
                self._slots[agent_id] = SocialSlot(agent_id=agent_id)
            return self._slots[agent_id]

    def get(self, agent_id: str) -> Optional[SocialSlot]:
        return self._slots.get(agent_id)

    def remove(self, agent_id: str) -> bool:
        with self._lock:
            return self._slots.pop(agent_id, None) is not None

    def apply_actions(
        self,
        agent_id: str,
        actions: List[BehaviorAction],
        context: BehaviorContext,
    ) -> Dict[str, float]:
        """
        Apply the social effect of chosen actions.

        An action's ``parameters["social_effect"]`` (-1.0 to 1.0) scaled by
        its intensity moves the weight toward ``parameters["target"]``, or
        toward every opponent when no target is named.

        Returns:
            Target player id -> new weight, for every weight touched
        """
        slot = self.slot(agent_id)
        opponents = [p.id for p in context.opponents()]
        changes: Dict[str, float] = {}

        for action in actions:
            effect = action.parameters.get("social_effect")
            if not isinstance(effect, (int, float)) or effect == 0:
                continue
            delta = clamp(float(effect), -1.0, 1.0) * action.intensity * SOCIAL_EFFECT_SCALE
            target = action.parameters.get("target")
            if target is not None and not isinstance(target, str):
                logger.warning(f"Ignoring social effect of {action.type}: target {target!r} is not a player id")
                continue
            targets = [target] if target else opponents
            for t in targets:
                if t == agent_id:
                    continue
                changes[t] = slot.update(t, delta)

        if changes:
            logger.debug(f"Social weights updated for {agent_id}: {changes}")
        return changes
