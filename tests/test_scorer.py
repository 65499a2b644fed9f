"""
Tests for pattern scoring.
"""
import random

import pytest

from tycoon_behavior.behavior.history import DecisionHistory
from tycoon_behavior.behavior.patterns import BehaviorDecision, builtin_patterns
from tycoon_behavior.behavior.scorer import PatternScorer
from tycoon_behavior.behavior.social import SocialSlot
from tycoon_behavior.exceptions import ScoringError
from tycoon_behavior.personality import PersonalitySnapshot
from tycoon_behavior.types import GameEvent, PlayerState


@pytest.fixture
def patterns():
    return {p.id: p for p in builtin_patterns()}


@pytest.fixture
def scorer():
    return PatternScorer()


class TestSubScores:
    def test_environmental_fit_aggressive_late_volatile(self, scorer, patterns, make_context):
        ctx = make_context(phase="late", volatility=0.8)
        fit = scorer.environmental_fit(patterns["aggressive"], ctx)
        assert fit == pytest.approx((0.9 + 0.8 + 0.5) / 3)

    def test_market_alignment(self, scorer, patterns):
        assert scorer.market_alignment(patterns["aggressive"], 0.8) == 0.8
        assert scorer.market_alignment(patterns["conservative"], 0.2) == 0.8
        assert scorer.market_alignment(patterns["conservative"], 0.5) == 0.5

    def test_phase_alignment_unknown_phase(self, scorer, patterns):
        assert scorer.phase_alignment(patterns["aggressive"], "overtime") == 0.5

    def test_event_alignment(self, scorer, patterns, make_context):
        ctx = make_context(events=[GameEvent("property_available"), GameEvent("rent_paid")])
        assert scorer.event_alignment(patterns["aggressive"], ctx) == pytest.approx(0.65)

    def test_trait_alignment(self, scorer, patterns, make_context):
        ctx = make_context(volatility=0.8, social_pressure=0.5)
        value = scorer.trait_alignment(patterns["aggressive"].traits, ctx)
        assert value == pytest.approx((1.0 * 1.0 + 0.6 * 0.8) / 2)

    def test_trait_alignment_no_traits(self, scorer, context):
        assert scorer.trait_alignment([], context) == 0.0

    def test_personality_offset_shifts_ideal(self, scorer, patterns, make_context):
        ctx = make_context(volatility=0.8, social_pressure=0.5)
        neutral = PersonalitySnapshot(base={}, offsets={}, taken_at=0.0)
        shifted = PersonalitySnapshot(base={}, offsets={"risktaking": 0.1}, taken_at=0.0)

        traits = patterns["aggressive"].traits
        assert scorer.trait_alignment(traits, ctx, neutral) == scorer.trait_alignment(traits, ctx)
        assert scorer.trait_alignment(traits, ctx, shifted) < scorer.trait_alignment(traits, ctx)

    def test_trigger_activation(self, scorer, patterns, make_context):
        ctx = make_context(events=[GameEvent("property_available", impact=0.9)])
        assert scorer.trigger_activation(patterns["aggressive"].triggers, ctx) == pytest.approx(0.8)

        weak = make_context(events=[GameEvent("property_available", impact=0.1)])
        assert scorer.trigger_activation(patterns["aggressive"].triggers, weak) == 0.0

    def test_trigger_cooldown_in_rounds(self, scorer, patterns, make_context):
        opportunist = patterns["opportunist"]
        history = DecisionHistory()
        history.append(BehaviorDecision(
            pattern=opportunist, actions=[], confidence=0.6, reasoning="",
            round=4, fired_triggers=["auction_started"],
        ))
        events = [GameEvent("auction_started", impact=0.5)]

        during = make_context(round=5, events=events)
        after = make_context(round=6, events=events)
        assert "auction_started" not in [t.event for t in scorer.active_triggers(opportunist.triggers, during, history)]
        assert "auction_started" in [t.event for t in scorer.active_triggers(opportunist.triggers, after, history)]

    def test_social_compatibility(self, scorer, patterns, context):
        assert scorer.social_compatibility(patterns["dealmaker"], context, None) == 0.5

        slot = SocialSlot("bot_1")
        slot.update("alice", 0.5)
        # bob has no weight yet and counts as 0
        value = scorer.social_compatibility(patterns["dealmaker"], context, slot)
        assert value == pytest.approx((0.5 * 0.8 + 0.0) / 2)

        slot.update("bob", 0.25)
        value = scorer.social_compatibility(patterns["dealmaker"], context, slot)
        assert value == pytest.approx((0.5 * 0.8 + 0.25 * 0.8) / 2)

    def test_social_compatibility_without_opponents(self, scorer, patterns, make_context):
        slot = SocialSlot("bot_1")
        slot.update("alice", 0.5)
        solo = make_context(players=[PlayerState(id="bot_1")])
        assert scorer.social_compatibility(patterns["dealmaker"], solo, slot) == 0.5

    def test_historical_performance(self, scorer, patterns):
        history = DecisionHistory()
        assert scorer.historical_performance(patterns["aggressive"], history) == 0.5

        for c in (0.8, 1.0):
            history.append(BehaviorDecision(pattern=patterns["aggressive"], actions=[], confidence=c, reasoning=""))
        assert scorer.historical_performance(patterns["aggressive"], history) == pytest.approx(0.9)
        assert scorer.historical_performance(patterns["conservative"], history) == 0.5


class TestScore:
    def test_scores_in_unit_interval(self, scorer, make_context):
        rng = random.Random(3)
        for _ in range(200):
            ctx = make_context(
                phase=rng.choice(["early", "mid", "late"]),
                volatility=rng.random(),
                social_pressure=rng.random(),
                time_pressure=rng.random(),
                events=[GameEvent(rng.choice(["property_available", "trade_proposed"]), impact=rng.random())],
            )
            for pattern in builtin_patterns():
                assert 0.0 <= scorer.score(pattern, ctx).score <= 1.0

    def test_breakdown_product(self, scorer, patterns, context):
        scored = scorer.score(patterns["conservative"], context)
        expected = min(1.0, scored.breakdown.raw * patterns["conservative"].confidence)
        assert scored.score == pytest.approx(expected)

    def test_zero_bonus_excludes_pattern(self, patterns, context):
        scorer = PatternScorer(contextual_bonus=lambda p, c: 0.0 if p.id == "aggressive" else 1.0)
        ids = [c.pattern.id for c in scorer.score_all(patterns.values(), context)]
        assert "aggressive" not in ids
        assert ids

    def test_failing_hook_isolated(self, patterns, context):
        def bonus(pattern, ctx):
            if pattern.id == "dealmaker":
                raise RuntimeError("bad hook")
            return 1.0

        scorer = PatternScorer(contextual_bonus=bonus)
        with pytest.raises(ScoringError):
            scorer.score(patterns["dealmaker"], context)

        errors = []
        candidates = scorer.score_all(patterns.values(), context, on_error=errors.append)
        assert "dealmaker" not in [c.pattern.id for c in candidates]
        assert len(candidates) == 3
        assert errors[0].pattern_id == "dealmaker"

    def test_candidates_sorted(self, scorer, context):
        candidates = scorer.score_all(builtin_patterns(), context)
        scores = [c.score for c in candidates]
        assert scores == sorted(scores, reverse=True)
