"""
Read-only analysis of an agent's recent decisions.
"""
from __future__ import annotations

from collections import Counter
from dataclasses import dataclass, field, asdict
from typing import Any, Dict, List, Mapping, Optional

from ..util import mean
from .history import DecisionHistory
from .patterns import BehaviorDecision, BehaviorPattern
from .social import SocialSlot

ANALYSIS_WINDOW = 20
DOMINANT_COUNT = 3
EMERGENT_MIN_SHARE = 0.3
EMERGENT_MIN_COUNT = 3


@dataclass(frozen=True)
class EmergentBehavior:
    description: str
    frequency: float
    triggers: List[str] = field(default_factory=list)
    impact: float = 0.0


@dataclass(frozen=True)
class AdaptationNeed:
    area: str
    urgency: float
    recommendation: str


@dataclass(frozen=True)
class SocialInfluence:
    source: str
    type: str
    strength: float
    direction: str


@dataclass(frozen=True)
class BehaviorMetrics:
    consistency: float = 0.5
    effectiveness: float = 0.5
    adaptability: float = 0.5
    predictability: float = 0.5
    social_alignment: float = 0.5


@dataclass(frozen=True)
class BehaviorAnalysis:
    dominant_patterns: List[BehaviorPattern]
    emergent_behaviors: List[EmergentBehavior]
    adaptation_needs: List[AdaptationNeed]
    social_influences: List[SocialInfluence]
    metrics: BehaviorMetrics

    def to_dict(self) -> Dict[str, Any]:
        return {
            "dominant_patterns": [p.id for p in self.dominant_patterns],
            "emergent_behaviors": [asdict(e) for e in self.emergent_behaviors],
            "adaptation_needs": [asdict(n) for n in self.adaptation_needs],
            "social_influences": [asdict(s) for s in self.social_influences],
            "metrics": asdict(self.metrics),
        }


def dominant_patterns(
    decisions: List[BehaviorDecision],
    catalog: Mapping[str, BehaviorPattern],
) -> List[BehaviorPattern]:
    """Most used patterns that are still in the catalog, most used first."""
    counts = Counter(d.pattern.id for d in decisions)
    return [catalog[pid] for pid, _ in counts.most_common(DOMINANT_COUNT) if pid in catalog]


def emergent_behaviors(decisions: List[BehaviorDecision]) -> List[EmergentBehavior]:
    """Action types the agent keeps coming back to, whatever the pattern."""
    if not decisions:
        return []

    counts: Counter = Counter()
    triggers: Dict[str, Counter] = {}
    for d in decisions:
        for action_type in {a.type for a in d.actions}:
            counts[action_type] += 1
            triggers.setdefault(action_type, Counter()).update(d.fired_triggers)

    result = []
    for action_type, count in counts.most_common():
        share = count / len(decisions)
        if count < EMERGENT_MIN_COUNT or share < EMERGENT_MIN_SHARE:
            continue
        with_action = [d for d in decisions if any(a.type == action_type for a in d.actions)]
        result.append(
            EmergentBehavior(
                description=f"Repeated {action_type} across {count} recent decisions",
                frequency=share,
                triggers=[t for t, _ in triggers[action_type].most_common(3)],
                impact=mean(d.confidence for d in with_action),
            )
        )
    return result


def adaptation_needs(decisions: List[BehaviorDecision]) -> List[AdaptationNeed]:
    needs = []
    if not decisions:
        return needs

    avg_confidence = mean(d.confidence for d in decisions)
    if avg_confidence < 0.5:
        needs.append(
            AdaptationNeed(
                area="confidence",
                urgency=round(1.0 - avg_confidence, 3),
                recommendation="Favor patterns with a stronger track record",
            )
        )

    fallback_share = sum(1 for d in decisions if d.fallback) / len(decisions)
    if fallback_share > 0.2:
        needs.append(
            AdaptationNeed(
                area="stability",
                urgency=round(fallback_share, 3),
                recommendation="Check the game snapshots sent for this agent",
            )
        )

    variety = len({d.pattern.id for d in decisions})
    if len(decisions) >= 10 and variety == 1:
        needs.append(
            AdaptationNeed(
                area="diversity",
                urgency=0.5,
                recommendation="Behavior is fully predictable; widen the pattern mix",
            )
        )

    avg_risk = mean(d.risk_assessment for d in decisions)
    if avg_risk > 0.7:
        needs.append(
            AdaptationNeed(
                area="risk",
                urgency=round(avg_risk, 3),
                recommendation="Recent choices carry high risk; consider conservative play",
            )
        )
    return needs


def social_influences(social: Optional[SocialSlot]) -> List[SocialInfluence]:
    if social is None:
        return []
    influences = []
    for target, weight in sorted(social.weights.items(), key=lambda kv: -abs(kv[1])):
        if target in social.allies:
            kind = "alliance"
        elif target in social.rivals:
            kind = "rivalry"
        else:
            kind = "acquaintance"
        influences.append(
            SocialInfluence(
                source=target,
                type=kind,
                strength=abs(weight),
                direction="positive" if weight >= 0 else "negative",
            )
        )
    return influences


def behavior_metrics(
    decisions: List[BehaviorDecision],
    social: Optional[SocialSlot] = None,
) -> BehaviorMetrics:
    if not decisions:
        return BehaviorMetrics()

    avg_confidence = mean(d.confidence for d in decisions)
    variety = len({d.pattern.id for d in decisions})
    alignment = 0.5
    if social is not None and social.weights:
        alignment = (mean(social.weights.values()) + 1.0) / 2.0

    return BehaviorMetrics(
        consistency=avg_confidence,
        effectiveness=avg_confidence,
        adaptability=min(1.0, variety / 5),
        predictability=1.0 - variety / len(decisions),
        social_alignment=alignment,
    )


def analyze(
    history: DecisionHistory,
    catalog: Mapping[str, BehaviorPattern],
    social: Optional[SocialSlot] = None,
) -> BehaviorAnalysis:
    """Analyze the last 20 decisions."""
    recent = history.recent(ANALYSIS_WINDOW)
    return BehaviorAnalysis(
        dominant_patterns=dominant_patterns(recent, catalog),
        emergent_behaviors=emergent_behaviors(recent),
        adaptation_needs=adaptation_needs(recent),
        social_influences=social_influences(social),
        metrics=behavior_metrics(recent, social),
    )
