"""
Tests for the meta-cognitive self-model and personality events.
"""
import pytest

from tycoon_behavior.config import PERSONALITY_TRAITS, get_preset
from tycoon_behavior.learning.metacognition import (
    METRIC_MAX,
    METRIC_MIN,
    MetaCognitionTracker,
    initial_metacognition,
    personality_event_for,
)


def metric_values(meta):
    values = []
    for group in (meta.learning_metrics, meta.strategic_thinking):
        values.extend(vars(group).values())
    return values


class TestInitial:
    def test_diplomat(self):
        meta = initial_metacognition(get_preset("diplomat"))
        assert "social_interaction" in meta.self_awareness.strengths
        assert "flexibility" in meta.self_awareness.strengths
        assert "social_proof_bias" in meta.self_awareness.biases
        assert meta.learning_metrics.learning_speed == pytest.approx(0.75 * 0.6 + 0.5 * 0.4)

    def test_shark(self):
        meta = initial_metacognition(get_preset("shark"))
        assert "impatience" in meta.self_awareness.weaknesses
        assert "excessive_risk_taking" in meta.self_awareness.weaknesses
        assert {"aggression_bias", "overconfidence_bias"} <= set(meta.self_awareness.biases)

    @pytest.mark.parametrize("level", [0.0, 1.0])
    def test_metrics_bounded(self, level):
        meta = initial_metacognition({t: level for t in PERSONALITY_TRAITS})
        assert all(METRIC_MIN <= v <= METRIC_MAX for v in metric_values(meta))


class TestUpdate:
    def test_success_speeds_learning(self, make_experience):
        tracker = MetaCognitionTracker(get_preset("balanced"))
        before = tracker.state.learning_metrics.learning_speed
        tracker.update(make_experience(objective=0.9))
        assert tracker.state.learning_metrics.learning_speed == pytest.approx(before * 1.02)

    def test_failure_slows_learning(self, make_experience):
        tracker = MetaCognitionTracker(get_preset("balanced"))
        before = tracker.state.learning_metrics.retention_rate
        tracker.update(make_experience(objective=-0.9))
        assert tracker.state.learning_metrics.retention_rate == pytest.approx(before * 0.995)

    def test_metrics_stay_bounded(self, make_experience):
        tracker = MetaCognitionTracker({t: 1.0 for t in PERSONALITY_TRAITS})
        for _ in range(100):
            tracker.update(make_experience(objective=0.9))
        assert all(METRIC_MIN <= v <= METRIC_MAX for v in metric_values(tracker.state))

        tracker = MetaCognitionTracker({t: 0.0 for t in PERSONALITY_TRAITS})
        for _ in range(500):
            tracker.update(make_experience(objective=-0.9))
        assert all(METRIC_MIN <= v <= METRIC_MAX for v in metric_values(tracker.state))

    def test_blind_spot_recorded_once(self, make_experience):
        tracker = MetaCognitionTracker(get_preset("balanced"))
        tracker.update(make_experience(unexpected=True))
        tracker.update(make_experience(unexpected=True))
        assert tracker.state.self_awareness.blind_spots == [
            "Unexpected outcome in mid phase with trade_offer"
        ]

    def test_generalizable_sharpens_pattern_recognition(self, make_experience):
        tracker = MetaCognitionTracker(get_preset("balanced"))
        before = tracker.state.strategic_thinking.pattern_recognition
        tracker.update(make_experience())
        assert tracker.state.strategic_thinking.pattern_recognition == pytest.approx(before * 1.01)


class TestPersonalityEvent:
    def test_ordinary_experience(self, make_experience):
        assert personality_event_for(make_experience()) is None

    def test_trade(self, make_experience):
        event = personality_event_for(make_experience("trade_offer", unexpected=True))
        assert event.mood == "confident"
        assert event.confidence_change == pytest.approx(0.09)
        impact = event.impacts[0]
        assert (impact.trait, impact.duration) == ("social", 60)
        assert impact.magnitude == pytest.approx(0.9 * 0.02)

    def test_failed_purchase(self, make_experience):
        event = personality_event_for(
            make_experience("property_purchase", objective=-0.9, others=-0.9, unexpected=True)
        )
        assert event.mood == "cautious"
        impact = event.impacts[0]
        assert (impact.trait, impact.magnitude, impact.duration) == ("risktaking", -0.01, 45)
        assert "negative" in event.description

    def test_development(self, make_experience):
        event = personality_event_for(make_experience("property_development", unexpected=True))
        impact = event.impacts[0]
        assert impact.trait == "analytical"
        assert impact.magnitude == pytest.approx(0.9 * 0.015)
        assert impact.duration == 90

    def test_unmapped_action(self, make_experience):
        event = personality_event_for(make_experience("hold_cash", unexpected=True))
        assert event is not None
        assert event.impacts == []
