"""
Per-agent state arena.

Every agent owns one ``AgentSlot`` (decision history, learning system,
personality profile, random generator). Slots live in an arena addressed by
``AgentHandle``: an index plus a generation counter, so a handle kept after
its agent was removed never reaches the agent that reuses the slot.
"""
from __future__ import annotations

import logging
import random
import threading
import time
from dataclasses import dataclass, field
from typing import Callable, Dict, List, Mapping, Optional, Union

from .behavior.history import DecisionHistory
from .behavior.social import SocialGraph
from .config import EngineConfig
from .events import EventBus
from .exceptions import UnknownAgentError
from .learning.system import AdaptiveLearningSystem
from .personality import PersonalityProfile

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class AgentHandle:
    """Opaque reference to a registered agent."""
    index: int
    generation: int


@dataclass
class AgentSlot:
    agent_id: str
    handle: AgentHandle
    history: DecisionHistory
    personality: PersonalityProfile
    learning: AdaptiveLearningSystem
    rng: random.Random
    registered_at: float = field(default_factory=time.time)
    # One decision at a time per agent
    decide_lock: threading.Lock = field(default_factory=threading.Lock, repr=False)


AgentRef = Union[AgentHandle, str]


def agent_rng(seed: Optional[int], agent_id: str) -> random.Random:
    """Seeded per agent, so one agent's draws never shift another's."""
    if seed is None:
        return random.Random()
    return random.Random(f"{seed}:{agent_id}")


class AgentRegistry:
    """
    Arena of agent slots plus the shared social graph.

    Example:
        >>> registry = AgentRegistry(EngineConfig(prng_seed=7))
        >>> handle = registry.register("bot-1", PersonalityProfile.from_preset("shark"))
        >>> registry.get(handle).agent_id
        'bot-1'
    """

    def __init__(
        self,
        config: Optional[EngineConfig] = None,
        bus: Optional[EventBus] = None,
        clock: Callable[[], float] = time.time,
    ):
        self.config = config or EngineConfig()
        self.bus = bus
        self.clock = clock
        self.social = SocialGraph()
        self._lock = threading.Lock()
        self._slots: List[Optional[AgentSlot]] = []
        self._generations: List[int] = []
        self._free: List[int] = []
        self._by_id: Dict[str, AgentHandle] = {}

    def register(
        self,
        agent_id: str,
        personality: Optional[Union[PersonalityProfile, Mapping[str, float]]] = None,
    ) -> AgentHandle:
        """
        Create the slot for ``agent_id``. Registering an id twice returns the
        existing handle.
        """
        if not isinstance(agent_id, str) or not agent_id:
            raise ValueError("agent_id must be a non-empty string")

        if personality is None:
            profile = PersonalityProfile()
        elif isinstance(personality, PersonalityProfile):
            profile = personality
        else:
            profile = PersonalityProfile(personality)

        with self._lock:
            existing = self._by_id.get(agent_id)
            if existing is not None:
                return existing

            if self._free:
                index = self._free.pop()
                self._generations[index] += 1
            else:
                index = len(self._slots)
                self._slots.append(None)
                self._generations.append(0)

            handle = AgentHandle(index=index, generation=self._generations[index])
            self._slots[index] = AgentSlot(
                agent_id=agent_id,
                handle=handle,
                history=DecisionHistory(limit=self.config.history_limit),
                personality=profile,
                learning=AdaptiveLearningSystem(
                    agent_id,
                    personality=profile,
                    config=self.config,
                    bus=self.bus,
                    clock=self.clock,
                ),
                rng=agent_rng(self.config.prng_seed, agent_id),
                registered_at=self.clock(),
            )
            self._by_id[agent_id] = handle

        self.social.slot(agent_id)
        logger.info(f"Agent registered: {agent_id} ({handle.index}/{handle.generation})")
        return handle

    def handle_for(self, agent_id: str) -> Optional[AgentHandle]:
        with self._lock:
            return self._by_id.get(agent_id)

    def get(self, ref: AgentRef) -> AgentSlot:
        """
        Resolve a handle or agent id.

        Raises:
            UnknownAgentError: If the agent is not registered or the handle is stale
        """
        with self._lock:
            handle = self._by_id.get(ref) if isinstance(ref, str) else ref
            if not isinstance(handle, AgentHandle):
                raise UnknownAgentError(f"Unknown agent: {ref!r}")
            if handle.index >= len(self._slots) or self._generations[handle.index] != handle.generation:
                raise UnknownAgentError(f"Stale or unknown agent handle: {handle}")
            slot = self._slots[handle.index]
            if slot is None:
                raise UnknownAgentError(f"Agent handle no longer registered: {handle}")
            return slot

    def find(self, ref: AgentRef) -> Optional[AgentSlot]:
        try:
            return self.get(ref)
        except UnknownAgentError:
            return None

    def remove(self, ref: AgentRef) -> bool:
        """Release every per-agent structure. Returns False if unknown."""
        slot = self.find(ref)
        if slot is None:
            return False
        with self._lock:
            if self._slots[slot.handle.index] is not slot:
                return False
            self._slots[slot.handle.index] = None
            self._free.append(slot.handle.index)
            self._by_id.pop(slot.agent_id, None)
        self.social.remove(slot.agent_id)
        logger.info(f"Agent removed: {slot.agent_id}")
        return True

    def slots(self) -> List[AgentSlot]:
        with self._lock:
            return [s for s in self._slots if s is not None]

    def agent_ids(self) -> List[str]:
        with self._lock:
            return list(self._by_id.keys())

    def __len__(self) -> int:
        with self._lock:
            return len(self._by_id)

    def __contains__(self, agent_id: object) -> bool:
        with self._lock:
            return agent_id in self._by_id
