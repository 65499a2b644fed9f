"""
Tests for learning strategies and the action preference table.
"""
import dataclasses

import pytest

from tycoon_behavior.behavior.patterns import BehaviorAction
from tycoon_behavior.learning.objectives import default_objectives
from tycoon_behavior.learning.state import ActionPreferences
from tycoon_behavior.learning.strategies import StrategyEngine, default_strategies
from tycoon_behavior.personality import PersonalitySnapshot

OBJECTIVES = [o.id for o in default_objectives()]


def only(strategy_id, **kwargs):
    return StrategyEngine([s for s in default_strategies() if s.id == strategy_id], **kwargs)


@pytest.fixture
def neutral():
    return PersonalitySnapshot.neutral()


class TestApplicability:
    def test_all_fire_for_neutral_agent(self, make_experience, neutral):
        fired = StrategyEngine().apply(make_experience(), OBJECTIVES, neutral)
        assert fired == ["reinforcement_learning", "social_learning", "analytical_optimization"]

    def test_personality_bound(self, make_experience, neutral):
        reckless = PersonalitySnapshot(base=dict(neutral.base, risktaking=0.95), offsets={}, taken_at=0.0)
        fired = StrategyEngine().apply(make_experience(), OBJECTIVES, reckless)
        assert "reinforcement_learning" not in fired

    def test_bound_reads_live_offset(self, make_experience, neutral):
        pushed = PersonalitySnapshot(base=dict(neutral.base, social=0.8), offsets={"social": 0.15}, taken_at=0.0)
        assert "social_learning" not in StrategyEngine().apply(make_experience(), OBJECTIVES, pushed)

    def test_behavior_limit_tag(self, make_experience, neutral):
        exp = make_experience()
        tagged = dataclasses.replace(
            exp, action=BehaviorAction("trade_offer", {"tags": ["no_extreme_aggression"]})
        )
        fired = StrategyEngine().apply(tagged, OBJECTIVES, neutral)
        assert "reinforcement_learning" not in fired
        assert "social_learning" in fired

    def test_untracked_objectives(self, make_experience, neutral):
        assert StrategyEngine().apply(make_experience(), [], neutral) == []


class TestMethods:
    def test_reinforcement_moves_preference(self, make_experience, neutral):
        engine = only("reinforcement_learning")
        engine.apply(make_experience(objective=0.9), OBJECTIVES, neutral)

        stats = engine.preferences.get_stats("trade_offer")
        assert stats.weight == pytest.approx(1.0 + 0.9 * 0.8 * 0.15)
        assert stats.success_count == 1

    def test_failure_lowers_preference(self, make_experience, neutral):
        engine = only("reinforcement_learning")
        engine.apply(make_experience(objective=-0.9), OBJECTIVES, neutral)
        assert engine.preferences.get_weight("trade_offer") < 1.0
        assert engine.preferences.get_stats("trade_offer").failure_count == 1

    def test_imitation_tracks_leader(self, make_experience, neutral):
        engine = only("social_learning")
        engine.apply(make_experience(others=0.9), OBJECTIVES, neutral)
        assert engine.imitation_targets == {"alice": 1}

    def test_imitation_needs_environmental_signal(self, make_experience, neutral):
        engine = only("social_learning")
        engine.apply(make_experience(others=0.2), OBJECTIVES, neutral)
        assert not engine.imitation_targets

    def test_optimization(self, make_experience, neutral):
        engine = only("analytical_optimization")
        engine.apply(make_experience("property_purchase", objective=0.9), OBJECTIVES, neutral)
        assert engine.preferences.get_weight("property_purchase") == pytest.approx(1.0 + 0.6 * 0.05)

        engine.apply(make_experience("mortgage_decision", objective=-0.9), OBJECTIVES, neutral)
        assert engine.preferences.get_weight("mortgage_decision") == pytest.approx(1.0 - 0.6 * 0.05)

    def test_exploration_rate_stays_bounded(self, make_experience, neutral):
        engine = StrategyEngine()
        for _ in range(200):
            engine.apply(make_experience(objective=-0.9), OBJECTIVES, neutral)
            assert 0.05 <= engine.exploration_rate <= 0.5
        assert engine.exploration_rate == pytest.approx(0.5)

        for _ in range(200):
            engine.apply(make_experience(objective=0.9), OBJECTIVES, neutral)
            assert 0.05 <= engine.exploration_rate <= 0.5

    def test_recalibrate(self):
        engine = StrategyEngine(exploration_rate=0.3)
        assert engine.recalibrate(0.9) == pytest.approx(0.294)
        engine.exploration_rate = 0.3
        assert engine.recalibrate(0.1) == pytest.approx(0.306)
        engine.exploration_rate = 0.3
        assert engine.recalibrate(0.5) == pytest.approx(0.3)

        engine.exploration_rate = 0.5
        assert engine.recalibrate(0.0) == 0.5


class TestActionPreferences:
    def test_neutral_default(self):
        assert ActionPreferences().get_weight("anything") == 1.0

    def test_weight_bounds(self):
        prefs = ActionPreferences()
        for _ in range(50):
            prefs.adjust("bid", 0.5)
        assert prefs.get_weight("bid") == 2.0
        for _ in range(50):
            prefs.adjust("bid", -0.5)
        assert prefs.get_weight("bid") == 0.1

    def test_lru_eviction(self):
        prefs = ActionPreferences(max_entries=2)
        prefs.adjust("a", 0.1)
        prefs.adjust("b", 0.1)
        prefs.get_weight("a")
        prefs.adjust("c", 0.1)
        assert prefs.get_stats("b") is None
        assert prefs.get_stats("a") is not None
        assert len(prefs) == 2
