"""
Tests for the social graph.
"""
import pytest

from tycoon_behavior.behavior.patterns import BehaviorAction
from tycoon_behavior.behavior.social import SocialGraph, SocialSlot


class TestSocialSlot:
    def test_weights_clamped(self):
        slot = SocialSlot("bot")
        for _ in range(30):
            slot.update("alice", 0.1)
        assert slot.weight("alice") == 1.0

    def test_ally_and_rival_classification(self):
        slot = SocialSlot("bot")
        slot.update("alice", 0.7)
        assert "alice" in slot.allies

        slot.update("alice", -1.3)
        assert "alice" in slot.rivals
        assert "alice" not in slot.allies

    def test_unknown_target(self):
        assert SocialSlot("bot").weight("nobody") is None


class TestSocialGraph:
    def test_apply_actions_targets_all_opponents(self, context):
        graph = SocialGraph()
        actions = [BehaviorAction("trade_offer", {"social_effect": 0.5}, 0.8, 1.0)]
        changes = graph.apply_actions("bot_1", actions, context)

        assert set(changes) == {"alice", "bob"}
        assert changes["alice"] == pytest.approx(0.05)

    def test_apply_actions_named_target(self, context):
        graph = SocialGraph()
        actions = [BehaviorAction("bid_high", {"social_effect": -0.2, "target": "bob"}, 0.8, 0.5)]
        changes = graph.apply_actions("bot_1", actions, context)
        assert changes == {"bob": pytest.approx(-0.01)}

    def test_actions_without_effect_ignored(self, context):
        graph = SocialGraph()
        changes = graph.apply_actions("bot_1", [BehaviorAction("hold_cash")], context)
        assert changes == {}

    def test_remove(self):
        graph = SocialGraph()
        graph.slot("bot")
        assert graph.remove("bot")
        assert graph.get("bot") is None
        assert not graph.remove("bot")
