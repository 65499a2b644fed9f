"""
Tests for personality profiles and decaying trait adjustments.
"""
import pytest

from tycoon_behavior.personality import (
    MAX_TRAIT_OFFSET,
    PersonalityEvent,
    PersonalityProfile,
    TraitImpact,
)

MINUTE = 60.0


class TestProfile:
    def test_defaults_neutral(self):
        profile = PersonalityProfile()
        assert profile.trait("risktaking", now=0.0) == 0.5

    def test_preset(self):
        assert PersonalityProfile.from_preset("shark").base_traits["risktaking"] == 0.85

    def test_unknown_preset_falls_back_to_balanced(self):
        assert PersonalityProfile.from_preset("nope").base_traits["risktaking"] == 0.5

    def test_base_values_clamped(self):
        assert PersonalityProfile({"risktaking": 3.0}).base_traits["risktaking"] == 1.0


class TestAdjustments:
    def test_linear_fade(self):
        profile = PersonalityProfile()
        profile.apply("risktaking", 0.01, duration_minutes=45, now=0.0)

        assert profile.offset("risktaking", now=0.0) == pytest.approx(0.01)
        assert profile.offset("risktaking", now=22.5 * MINUTE) == pytest.approx(0.005)
        assert profile.offset("risktaking", now=45 * MINUTE) == 0.0

    def test_offset_capped(self):
        profile = PersonalityProfile()
        for _ in range(5):
            profile.apply("social", 0.15, duration_minutes=60, now=0.0)
        assert profile.offset("social", now=0.0) == pytest.approx(MAX_TRAIT_OFFSET)

    def test_trait_within_unit_interval(self):
        profile = PersonalityProfile({"social": 0.95})
        profile.apply("social", 0.2, duration_minutes=60, now=0.0)
        assert profile.trait("social", now=0.0) == 1.0

    def test_zero_ignored(self):
        profile = PersonalityProfile()
        assert profile.apply("social", 0.0, 60, now=0.0) is None
        assert profile.apply("social", 0.1, 0, now=0.0) is None
        assert profile.adjustments() == []

    def test_sweep(self):
        profile = PersonalityProfile()
        profile.apply("social", 0.1, 10, now=0.0)
        profile.apply("analytical", 0.1, 90, now=0.0)
        assert profile.sweep(now=30 * MINUTE) == 1
        assert [a.trait for a in profile.adjustments()] == ["analytical"]

    def test_process_event(self):
        profile = PersonalityProfile()
        event = PersonalityEvent(
            type="decision_outcome",
            description="test",
            impacts=[TraitImpact("social", 0.02, 60), TraitImpact("risktaking", 0.0, 45)],
        )
        applied = profile.process_event(event, now=0.0)
        assert [a.trait for a in applied] == ["social"]


class TestSnapshot:
    def test_snapshot_is_frozen_in_time(self):
        profile = PersonalityProfile()
        snap = profile.snapshot(now=0.0)
        profile.apply("risktaking", 0.1, 60, now=0.0)
        assert snap.offset("risktaking") == 0.0
        assert profile.snapshot(now=0.0).offset("risktaking") == pytest.approx(0.1)

    def test_pattern_offset_maps_trait_names(self):
        profile = PersonalityProfile()
        profile.apply("risktaking", 0.1, 60, now=0.0)
        snap = profile.snapshot(now=0.0)
        assert snap.pattern_offset("risk_tolerance") == pytest.approx(0.1)
        assert snap.pattern_offset("patience") == 0.0

    def test_to_dict(self):
        profile = PersonalityProfile()
        profile.apply("social", 0.1, 60, now=0.0)
        data = profile.to_dict(now=0.0)
        assert set(data) == {"base", "offsets", "effective", "adjustments"}
        assert data["effective"]["social"] == pytest.approx(0.6)
