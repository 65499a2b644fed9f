"""
Tests for the game-state snapshot types.
"""
import pytest

from tycoon_behavior.types import BehaviorContext, PlayerState, Property


class TestPlayerState:
    def test_net_worth_counts_properties(self):
        player = PlayerState(id="a", cash=500.0, properties=[Property(id="p", value=250.0)])
        assert player.net_worth == 750.0

    def test_from_dict_defaults(self):
        player = PlayerState.from_dict({"id": "a"})
        assert player.status == "active"
        assert player.properties == []
        assert player.reputation == 0.5


class TestBehaviorContext:
    def test_phase_and_round(self, context):
        assert context.phase == "mid"
        assert context.round == 5

    def test_phase_unknown_without_game_state(self):
        ctx = BehaviorContext(player_id="a", game_state=None, player_states=[])
        assert ctx.phase == "unknown"
        assert ctx.round == 0

    def test_acting_player_and_opponents(self, context):
        assert context.acting_player().id == "bot_1"
        assert {p.id for p in context.opponents()} == {"alice", "bob"}

    def test_acting_player_missing(self, make_context):
        ctx = make_context(players=[PlayerState(id="alice")])
        assert ctx.acting_player() is None
        assert len(ctx.opponents()) == 1

    def test_from_dict_builds_nested_records(self):
        ctx = BehaviorContext.from_dict({
            "player_id": "bot",
            "game_state": {
                "phase": "late",
                "round": 12,
                "market": {"volatility": 0.9, "trends": [{"sector": "rail", "direction": "up"}]},
                "events": [{"id": "e1", "type": "auction_started"}],
            },
            "player_states": [{"id": "bot", "cash": 10, "properties": [{"id": "p", "value": 5}]}],
            "recent_events": [{"type": "trade_proposed", "impact": 0.4, "unknown_key": 1}],
            "social_dynamics": {"social_pressure": 0.2, "alliances": [{"members": ["bot", "x"]}]},
            "time_constraints": {"pressure": 0.3},
        })
        assert ctx.phase == "late"
        assert ctx.game_state.market.volatility == 0.9
        assert ctx.game_state.market.trends[0].sector == "rail"
        assert ctx.game_state.events[0].type == "auction_started"
        assert ctx.acting_player().net_worth == 15
        assert ctx.recent_events[0].impact == 0.4
        assert ctx.social_dynamics.alliances[0].members == ["bot", "x"]
        assert ctx.time_constraints.pressure == 0.3

    def test_from_dict_keeps_missing_parts_none(self):
        ctx = BehaviorContext.from_dict({"player_id": "bot"})
        assert ctx.game_state is None
        assert ctx.player_states is None

    def test_snapshot_is_frozen(self, context):
        with pytest.raises(Exception):
            context.player_id = "other"
