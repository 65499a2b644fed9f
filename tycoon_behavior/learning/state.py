"""
Learning data model.

Records produced and updated by the adaptive-learning loop: experiences,
objectives, strategies, knowledge patterns, the meta-cognitive self-model
and the bounded action-preference table the action generator reads.
"""
from __future__ import annotations

from collections import OrderedDict
from dataclasses import dataclass, field, asdict
from typing import Any, Dict, List, Optional

from ..behavior.patterns import BehaviorAction
from ..types import BehaviorContext
from ..util import clamp, mean, variance


@dataclass(frozen=True)
class Outcome:
    """
    What happened after an action.

    Attributes:
        immediate: Payload of the immediate result (None if nothing observable yet)
        delayed: Payloads of results that arrived later
        unexpected: Tags of results the agent did not anticipate
    """
    immediate: Optional[Dict[str, Any]] = None
    delayed: List[Dict[str, Any]] = field(default_factory=list)
    unexpected: List[str] = field(default_factory=list)

    @property
    def is_unexpected(self) -> bool:
        return len(self.unexpected) > 0

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Outcome":
        return cls(
            immediate=data.get("immediate"),
            delayed=list(data.get("delayed", []) or []),
            unexpected=list(data.get("unexpected", []) or []),
        )


@dataclass(frozen=True)
class Feedback:
    """Four feedback channels, each in -1.0 .. 1.0."""
    objective: float
    subjective: float
    environmental: float
    social: float

    def channels(self) -> List[float]:
        return [self.objective, self.subjective, self.environmental, self.social]

    def average(self) -> float:
        return mean(self.channels())

    def consistency(self) -> float:
        return max(0.0, 1.0 - variance(self.channels()))

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Feedback":
        return cls(
            objective=data["objective"],
            subjective=data["subjective"],
            environmental=data["environmental"],
            social=data["social"],
        )


@dataclass(frozen=True)
class LearningExperience:
    id: str
    timestamp: float
    context: BehaviorContext
    action: BehaviorAction
    outcome: Outcome
    feedback: Feedback
    learning_value: float
    generalizable: bool
    confidence: float

    @property
    def success(self) -> bool:
        return self.feedback.objective > 0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "timestamp": self.timestamp,
            "phase": self.context.phase,
            "round": self.context.round,
            "action": self.action.to_dict(),
            "outcome": asdict(self.outcome),
            "feedback": asdict(self.feedback),
            "learning_value": self.learning_value,
            "generalizable": self.generalizable,
            "confidence": self.confidence,
        }


@dataclass
class AchievementEntry:
    timestamp: float
    value: float
    context: str


@dataclass
class LearningObjective:
    """
    A long-run goal the agent tracks progress toward.

    ``achievement_history`` only grows, except for the age-based pruning
    done by maintenance.
    """
    id: str
    name: str
    description: str
    target_metric: str
    current_value: float
    target_value: float
    importance: float
    time_horizon: int
    progress_rate: float = 0.0
    achievement_history: List[AchievementEntry] = field(default_factory=list)

    @property
    def progress(self) -> float:
        if self.target_value <= 0:
            return 1.0
        return self.current_value / self.target_value

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True)
class MethodWeights:
    reinforcement: float = 0.0
    imitation: float = 0.0
    exploration: float = 0.0
    optimization: float = 0.0


@dataclass(frozen=True)
class AdaptationRules:
    success_threshold: float = 0.7
    failure_threshold: float = 0.3
    adaptation_rate: float = 0.1
    forgetting_rate: float = 0.01


@dataclass(frozen=True)
class StrategyConstraints:
    """
    Gates on when a strategy may fire.

    Attributes:
        personality_bounds: Trait name -> maximum value the agent may have
        behavior_limits: Tags of actions the strategy refuses to learn from
        ethical_constraints: Informational tags
    """
    personality_bounds: Dict[str, float] = field(default_factory=dict)
    behavior_limits: List[str] = field(default_factory=list)
    ethical_constraints: List[str] = field(default_factory=list)


@dataclass(frozen=True)
class LearningStrategy:
    id: str
    name: str
    description: str
    applicable_objectives: List[str]
    methods: MethodWeights
    rules: AdaptationRules
    constraints: StrategyConstraints = field(default_factory=StrategyConstraints)

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass
class StrengthEntry:
    timestamp: float
    strength: float
    event: str


@dataclass
class KnowledgePattern:
    """
    A learned regularity such as "trade_offer in mid phase tends to go well".

    ``last_reinforced`` is the wall-clock time of the latest reinforcement;
    ``last_decayed`` marks how far forgetting has already been applied.
    """
    id: str
    pattern: str
    frequency: float
    reliability: float
    confidence: float
    contexts: List[str] = field(default_factory=list)
    outcomes: List[Any] = field(default_factory=list)
    last_reinforced: float = 0.0
    last_decayed: float = 0.0
    strength_history: List[StrengthEntry] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass
class SelfAwareness:
    strengths: List[str] = field(default_factory=list)
    weaknesses: List[str] = field(default_factory=list)
    biases: List[str] = field(default_factory=list)
    blind_spots: List[str] = field(default_factory=list)


@dataclass
class LearningMetrics:
    learning_speed: float = 0.5
    retention_rate: float = 0.5
    transfer_ability: float = 0.5
    adaptation_flexibility: float = 0.5


@dataclass
class StrategicThinking:
    planning_horizon: float = 0.5
    contingency_preparation: float = 0.5
    pattern_recognition: float = 0.5
    abstraction_level: float = 0.5


@dataclass
class MetaCognition:
    self_awareness: SelfAwareness = field(default_factory=SelfAwareness)
    learning_metrics: LearningMetrics = field(default_factory=LearningMetrics)
    strategic_thinking: StrategicThinking = field(default_factory=StrategicThinking)

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass
class ActionPreference:
    """
    Learned preference for one action type.

    Attributes:
        action: Action type (e.g. "trade_offer")
        weight: Multiplier applied to the action's base probability (0.1 to 2.0)
        success_count: Number of positive rewards
        failure_count: Number of negative rewards
        total_count: Total rewards applied
        last_reward: Most recent reward signal
    """
    action: str
    weight: float = 1.0
    success_count: int = 0
    failure_count: int = 0
    total_count: int = 0
    last_reward: float = 0.0

    @property
    def success_rate(self) -> float:
        if self.total_count == 0:
            return 0.5
        return self.success_count / self.total_count

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


class ActionPreferences:
    """
    Bounded action-type -> preference table with LRU eviction.

    Weights stay within [min_weight, max_weight]; untracked actions read as
    1.0 (neutral).
    """

    def __init__(self, max_entries: int = 100, min_weight: float = 0.1, max_weight: float = 2.0):
        self.max_entries = max_entries
        self.min_weight = min_weight
        self.max_weight = max_weight
        self._entries: "OrderedDict[str, ActionPreference]" = OrderedDict()

    def get_weight(self, action: str) -> float:
        entry = self._entries.get(action)
        if entry is None:
            return 1.0
        self._entries.move_to_end(action)
        return entry.weight

    def adjust(self, action: str, delta: float, reward: Optional[float] = None) -> float:
        """
        Move an action's weight by ``delta``.

        ``reward``, when given, also updates the success statistics.
        Returns the new weight.
        """
        entry = self._entries.get(action)
        if entry is None:
            if len(self._entries) >= self.max_entries:
                self._entries.popitem(last=False)
            entry = ActionPreference(action=action)
            self._entries[action] = entry
        self._entries.move_to_end(action)

        if reward is not None:
            entry.total_count += 1
            entry.last_reward = reward
            if reward > 0:
                entry.success_count += 1
            elif reward < 0:
                entry.failure_count += 1

        entry.weight = clamp(entry.weight + delta, self.min_weight, self.max_weight)
        return entry.weight

    def get_stats(self, action: str) -> Optional[ActionPreference]:
        return self._entries.get(action)

    def all(self) -> List[ActionPreference]:
        return list(self._entries.values())

    def __len__(self) -> int:
        return len(self._entries)

    def to_dict(self) -> Dict[str, Dict[str, Any]]:
        return {k: v.to_dict() for k, v in self._entries.items()}
