"""
Tests for the knowledge pattern store.
"""
import math

import pytest

from tycoon_behavior.learning.knowledge import KnowledgeStore, pattern_key


class TestObserve:
    def test_seeded(self):
        store = KnowledgeStore()
        assert "early_property_acquisition" in store
        assert "alliance_benefits" in store

    def test_significant_experience_creates_pattern(self, make_experience):
        store = KnowledgeStore(seed=False)
        exp = make_experience()
        created = store.observe(exp, now=10.0)

        assert created.id == "trade_offer_mid_positive" == pattern_key(exp)
        assert created.frequency == pytest.approx(0.1)
        assert created.reliability == pytest.approx(exp.confidence)
        assert created.strength_history[0].event == "pattern_creation"

    def test_negative_key(self, make_experience):
        assert pattern_key(make_experience(objective=-0.9)) == "trade_offer_mid_negative"

    def test_weak_objective_ignored(self, make_experience):
        store = KnowledgeStore(seed=False)
        assert store.observe(make_experience(objective=0.2), now=0.0) is None
        assert len(store) == 0

    def test_low_learning_value_ignored(self, make_experience):
        store = KnowledgeStore(seed=False)
        exp = make_experience(objective=0.35, others=-0.3)
        assert exp.learning_value < 0.4
        assert store.observe(exp, now=0.0) is None

    def test_reinforcement(self, make_experience):
        store = KnowledgeStore(seed=False)
        exp = make_experience()
        store.observe(exp, now=0.0)
        pattern = store.observe(exp, now=5.0)

        assert pattern.frequency == pytest.approx(0.2)
        assert pattern.reliability == pytest.approx(0.9 + 0.69 * 0.9 * 0.1)
        assert pattern.last_reinforced == 5.0

    def test_strength_history_capped(self, make_experience):
        store = KnowledgeStore(seed=False)
        exp = make_experience()
        for i in range(30):
            store.observe(exp, now=float(i))
        assert len(store.get("trade_offer_mid_positive").strength_history) <= 20


class TestDecay:
    def test_exponential_in_elapsed_time(self, make_experience):
        store = KnowledgeStore(decay_seconds=100.0, seed=False)
        store.observe(make_experience(), now=0.0)

        store.decay(now=100.0)
        assert store.get("trade_offer_mid_positive").reliability == pytest.approx(0.9 * math.exp(-1))

    def test_no_double_decay_for_same_instant(self, make_experience):
        store = KnowledgeStore(decay_seconds=100.0, seed=False)
        store.observe(make_experience(), now=0.0)
        store.decay(now=50.0)
        first = store.get("trade_offer_mid_positive").reliability
        store.decay(now=50.0)
        assert store.get("trade_offer_mid_positive").reliability == first

    def test_strictly_decreasing_without_reinforcement(self, make_experience):
        store = KnowledgeStore(decay_seconds=1000.0, seed=False)
        store.observe(make_experience(), now=0.0)
        values = []
        for t in (10.0, 20.0, 30.0):
            store.decay(now=t)
            values.append(store.get("trade_offer_mid_positive").reliability)
        assert values[0] > values[1] > values[2]

    def test_forgotten_below_floor(self, make_experience):
        store = KnowledgeStore(decay_seconds=100.0, seed=False)
        store.observe(make_experience(), now=0.0)
        forgotten = store.decay(now=300.0)
        assert forgotten == ["trade_offer_mid_positive"]
        assert len(store) == 0

    def test_top(self):
        store = KnowledgeStore()
        assert [p.id for p in store.top(1)] == ["alliance_benefits"]
