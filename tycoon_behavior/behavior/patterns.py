"""
Behavior pattern data model.

A behavior pattern is one strategic archetype: a bundle of traits it
prefers, triggers that make it more attractive, actions it proposes and
constraints that the game-rule engine enforces. Patterns are immutable once
registered; the catalog only ever adds or removes whole patterns.
"""
from __future__ import annotations

from dataclasses import dataclass, field, asdict
from enum import Enum
from typing import Any, Dict, List, Optional


class BehaviorCategory(str, Enum):
    """Fixed set of strategic archetypes."""
    AGGRESSIVE = "aggressive"
    CONSERVATIVE = "conservative"
    OPPORTUNISTIC = "opportunistic"
    DEFENSIVE = "defensive"
    COLLABORATIVE = "collaborative"
    UNPREDICTABLE = "unpredictable"
    ANALYTICAL = "analytical"
    EMOTIONAL = "emotional"


class ConstraintType(str, Enum):
    RESOURCE = "resource"
    TIME = "time"
    SOCIAL = "social"
    ETHICAL = "ethical"
    STRATEGIC = "strategic"


@dataclass(frozen=True)
class BehaviorTrait:
    """
    A trait the pattern wants the situation to exhibit.

    Attributes:
        name: Trait name (e.g. "risk_tolerance")
        value: Ideal value (0.0 to 1.0)
        weight: Importance of this trait in alignment (0.0 to 1.0)
        volatility: How fast the trait drifts (informational)
        influence_factors: What moves this trait (informational)
    """
    name: str
    value: float
    weight: float = 1.0
    volatility: float = 0.0
    influence_factors: List[str] = field(default_factory=list)


@dataclass(frozen=True)
class BehaviorTrigger:
    """
    A named condition that boosts the pattern when active.

    ``cooldown`` is measured in game rounds.
    """
    event: str
    condition: str = ""
    threshold: float = 0.0
    priority: float = 0.5
    cooldown: int = 0
    context: List[str] = field(default_factory=list)


@dataclass(frozen=True)
class BehaviorAction:
    """
    An action a pattern proposes to the game-rule engine.

    ``parameters`` is free-form; the engine itself only reads
    ``social_effect`` (float) and ``target`` (player id) from it when
    updating the social graph, and ``tags`` when checking strategy limits.
    """
    type: str
    parameters: Dict[str, Any] = field(default_factory=dict)
    probability: float = 0.5
    intensity: float = 0.5
    duration: int = 0
    prerequisites: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "BehaviorAction":
        return cls(**{k: v for k, v in data.items() if k in cls.__dataclass_fields__})


@dataclass(frozen=True)
class BehaviorConstraint:
    """Informational; enforcement belongs to the game-rule engine."""
    type: ConstraintType
    condition: str
    severity: float = 0.5
    penalty: float = 0.5


@dataclass(frozen=True)
class BehaviorPattern:
    id: str
    name: str
    description: str
    category: BehaviorCategory
    traits: List[BehaviorTrait] = field(default_factory=list)
    triggers: List[BehaviorTrigger] = field(default_factory=list)
    actions: List[BehaviorAction] = field(default_factory=list)
    constraints: List[BehaviorConstraint] = field(default_factory=list)
    adaptability: float = 0.5
    stability: float = 0.5
    confidence: float = 0.5

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        data["category"] = self.category.value
        for constraint in data["constraints"]:
            constraint["type"] = ConstraintType(constraint["type"]).value
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "BehaviorPattern":
        return cls(
            id=data["id"],
            name=data.get("name", data["id"]),
            description=data.get("description", ""),
            category=BehaviorCategory(data["category"]),
            traits=[BehaviorTrait(**t) for t in data.get("traits", [])],
            triggers=[BehaviorTrigger(**t) for t in data.get("triggers", [])],
            actions=[BehaviorAction.from_dict(a) for a in data.get("actions", [])],
            constraints=[
                BehaviorConstraint(
                    type=ConstraintType(c["type"]),
                    condition=c.get("condition", ""),
                    severity=c.get("severity", 0.5),
                    penalty=c.get("penalty", 0.5),
                )
                for c in data.get("constraints", [])
            ],
            adaptability=data.get("adaptability", 0.5),
            stability=data.get("stability", 0.5),
            confidence=data.get("confidence", 0.5),
        )


@dataclass(frozen=True)
class BehaviorAlternative:
    pattern: BehaviorPattern
    probability: float
    reasoning: str


@dataclass(frozen=True)
class BehaviorDecision:
    """
    One agent's choice for one turn.

    Attributes:
        pattern: Chosen behavior pattern
        actions: Ranked actions (at most 5)
        confidence: Overall confidence (0.0 to 1.0)
        reasoning: Human-readable reasons
        alternatives: Up to 3 runner-up patterns
        risk_assessment: Risk score (0.0 to 1.0)
        expected_outcome: Short outcome summary
        round: Game round the decision was made in
        fired_triggers: Trigger events active for the chosen pattern
        fallback: True when this is the conservative fallback decision
        explanation: Optional free text from a text-generation collaborator
    """
    pattern: BehaviorPattern
    actions: List[BehaviorAction]
    confidence: float
    reasoning: str
    alternatives: List[BehaviorAlternative] = field(default_factory=list)
    risk_assessment: float = 0.5
    expected_outcome: str = ""
    round: int = 0
    fired_triggers: List[str] = field(default_factory=list)
    fallback: bool = False
    explanation: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "pattern_id": self.pattern.id,
            "pattern_name": self.pattern.name,
            "category": self.pattern.category.value,
            "actions": [a.to_dict() for a in self.actions],
            "confidence": self.confidence,
            "reasoning": self.reasoning,
            "alternatives": [
                {
                    "pattern_id": alt.pattern.id,
                    "probability": alt.probability,
                    "reasoning": alt.reasoning,
                }
                for alt in self.alternatives
            ],
            "risk_assessment": self.risk_assessment,
            "expected_outcome": self.expected_outcome,
            "round": self.round,
            "fired_triggers": list(self.fired_triggers),
            "fallback": self.fallback,
            "explanation": self.explanation,
        }


DEFAULT_PATTERN_ID = "conservative"


def builtin_patterns() -> List[BehaviorPattern]:
    """The patterns every catalog starts with."""
    return [
        BehaviorPattern(
            id="aggressive",
            name="Aggressive Player",
            description="High-risk, high-reward strategy",
            category=BehaviorCategory.AGGRESSIVE,
            traits=[
                BehaviorTrait("risk_tolerance", 0.8, 1.0, 0.2, ["market_volatility"]),
                BehaviorTrait("competitiveness", 0.9, 0.8, 0.1, ["opponent_strength"]),
            ],
            triggers=[
                BehaviorTrigger("property_available", "high_value", 0.7, 0.8, 0, ["market"]),
            ],
            actions=[
                BehaviorAction("bid_high", {"multiplier": 1.2, "social_effect": -0.2}, 0.8, 0.9, 1000),
                BehaviorAction("property_purchase", {"max_price_ratio": 0.9}, 0.7, 0.8, 1000),
            ],
            constraints=[
                BehaviorConstraint(ConstraintType.RESOURCE, "cash > 500", 0.8, 0.5),
            ],
            adaptability=0.7,
            stability=0.6,
            confidence=0.7,
        ),
        BehaviorPattern(
            id="conservative",
            name="Conservative Player",
            description="Low-risk, steady progress strategy",
            category=BehaviorCategory.CONSERVATIVE,
            traits=[
                BehaviorTrait("risk_tolerance", 0.2, 1.0, 0.1, ["market_stability"]),
                BehaviorTrait("patience", 0.8, 0.9, 0.05, ["time_pressure"]),
            ],
            triggers=[
                BehaviorTrigger("safe_investment", "low_risk", 0.3, 0.9, 0, ["market"]),
            ],
            actions=[
                BehaviorAction("conservative_bid", {"multiplier": 0.8}, 0.9, 0.5, 1000),
                BehaviorAction("hold_cash", {}, 0.6, 0.3, 1000),
            ],
            constraints=[
                BehaviorConstraint(ConstraintType.RESOURCE, "cash > 1000", 0.9, 0.8),
            ],
            adaptability=0.5,
            stability=0.9,
            confidence=0.8,
        ),
        BehaviorPattern(
            id="opportunist",
            name="Opportunist",
            description="Pounce on distressed sales and auction bargains",
            category=BehaviorCategory.OPPORTUNISTIC,
            traits=[
                BehaviorTrait("risk_tolerance", 0.6, 0.7, 0.3, ["market_volatility"]),
                BehaviorTrait("patience", 0.5, 0.5, 0.2, ["time_pressure"]),
            ],
            triggers=[
                BehaviorTrigger("auction_started", "below_value", 0.4, 0.7, 2, ["market"]),
                BehaviorTrigger("player_bankrupt", "assets_released", 0.5, 0.9, 3, ["market"]),
            ],
            actions=[
                BehaviorAction("auction_bid", {"multiplier": 0.7}, 0.7, 0.6, 500),
                BehaviorAction("property_purchase", {"max_price_ratio": 0.7}, 0.5, 0.5, 500,
                               ["has_cash"]),
            ],
            adaptability=0.8,
            stability=0.4,
            confidence=0.6,
        ),
        BehaviorPattern(
            id="dealmaker",
            name="Dealmaker",
            description="Build alliances and trade toward color groups",
            category=BehaviorCategory.COLLABORATIVE,
            traits=[
                BehaviorTrait("competitiveness", 0.3, 0.8, 0.1, ["social_pressure"]),
                BehaviorTrait("patience", 0.7, 0.6, 0.1, ["time_pressure"]),
            ],
            triggers=[
                BehaviorTrigger("trade_proposed", "fair_terms", 0.2, 0.8, 1, ["social"]),
            ],
            actions=[
                BehaviorAction("trade_offer", {"social_effect": 0.3}, 0.8, 0.6, 1000),
                BehaviorAction("property_development", {"level": 1}, 0.4, 0.4, 2000,
                               ["has_monopoly"]),
            ],
            constraints=[
                BehaviorConstraint(ConstraintType.SOCIAL, "no_rival_trades", 0.5, 0.3),
            ],
            adaptability=0.6,
            stability=0.7,
            confidence=0.65,
        ),
    ]
