"""
Tests for decision-history analysis.
"""
import pytest

from tycoon_behavior.behavior.analysis import analyze, behavior_metrics, emergent_behaviors
from tycoon_behavior.behavior.history import DecisionHistory
from tycoon_behavior.behavior.patterns import BehaviorAction, BehaviorDecision, builtin_patterns
from tycoon_behavior.behavior.social import SocialSlot


@pytest.fixture
def patterns():
    return {p.id: p for p in builtin_patterns()}


def decision(pattern, confidence=0.6, fallback=False, actions=None, triggers=None):
    return BehaviorDecision(
        pattern=pattern,
        actions=actions if actions is not None else list(pattern.actions),
        confidence=confidence,
        reasoning="",
        fallback=fallback,
        fired_triggers=triggers or [],
    )


class TestAnalyze:
    def test_empty_history(self, patterns):
        analysis = analyze(DecisionHistory(), patterns)
        assert analysis.dominant_patterns == []
        assert analysis.metrics.consistency == 0.5

    def test_dominant_patterns(self, patterns):
        history = DecisionHistory()
        for _ in range(5):
            history.append(decision(patterns["aggressive"]))
        for _ in range(2):
            history.append(decision(patterns["dealmaker"]))
        history.append(decision(patterns["conservative"]))
        history.append(decision(patterns["opportunist"]))

        analysis = analyze(history, patterns)
        assert [p.id for p in analysis.dominant_patterns][:2] == ["aggressive", "dealmaker"]
        assert len(analysis.dominant_patterns) == 3

    def test_removed_pattern_not_dominant(self, patterns):
        history = DecisionHistory()
        history.append(decision(patterns["aggressive"]))
        catalog = {k: v for k, v in patterns.items() if k != "aggressive"}
        assert analyze(history, catalog).dominant_patterns == []

    def test_only_last_twenty_considered(self, patterns):
        history = DecisionHistory()
        for _ in range(30):
            history.append(decision(patterns["aggressive"]))
        for _ in range(20):
            history.append(decision(patterns["conservative"]))
        assert [p.id for p in analyze(history, patterns).dominant_patterns] == ["conservative"]

    def test_adaptation_needs(self, patterns):
        history = DecisionHistory()
        for _ in range(10):
            history.append(decision(patterns["conservative"], confidence=0.3, fallback=True))

        areas = {n.area for n in analyze(history, patterns).adaptation_needs}
        assert {"confidence", "stability", "diversity"} <= areas

    def test_social_influences(self, patterns):
        slot = SocialSlot("bot")
        slot.update("alice", 0.7)
        slot.update("bob", -0.2)

        influences = analyze(DecisionHistory(), patterns, slot).social_influences
        assert [(i.source, i.type, i.direction) for i in influences] == [
            ("alice", "alliance", "positive"),
            ("bob", "acquaintance", "negative"),
        ]

    def test_to_dict(self, patterns):
        history = DecisionHistory()
        history.append(decision(patterns["aggressive"]))
        data = analyze(history, patterns).to_dict()
        assert data["dominant_patterns"] == ["aggressive"]
        assert set(data["metrics"]) == {
            "consistency", "effectiveness", "adaptability", "predictability", "social_alignment",
        }


class TestEmergentBehaviors:
    def test_repeated_action_across_patterns(self, patterns):
        purchase = BehaviorAction("property_purchase")
        decisions = [
            decision(patterns["aggressive"], actions=[purchase], triggers=["property_available"]),
            decision(patterns["opportunist"], actions=[purchase]),
            decision(patterns["aggressive"], actions=[purchase], triggers=["property_available"]),
            decision(patterns["conservative"], actions=[BehaviorAction("hold_cash")]),
        ]
        emergent = emergent_behaviors(decisions)
        assert len(emergent) == 1
        assert "property_purchase" in emergent[0].description
        assert emergent[0].frequency == pytest.approx(0.75)
        assert emergent[0].triggers == ["property_available"]

    def test_metrics_predictability(self, patterns):
        decisions = [decision(patterns["aggressive"]) for _ in range(4)]
        metrics = behavior_metrics(decisions)
        assert metrics.predictability == pytest.approx(0.75)
        assert metrics.adaptability == pytest.approx(0.2)
