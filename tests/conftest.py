"""
Shared fixtures: table snapshots and engines with deterministic randomness.
"""
from typing import Any, Dict, List, Optional

import pytest

from tycoon_behavior.behavior.patterns import BehaviorAction
from tycoon_behavior.config import EnginePresets
from tycoon_behavior.engine import BehaviorEngine
from tycoon_behavior.learning.experience import ExperienceProcessor
from tycoon_behavior.learning.state import Feedback, LearningExperience, Outcome
from tycoon_behavior.types import (
    BehaviorContext,
    GameEvent,
    GameState,
    MarketState,
    PlayerState,
    Property,
    SocialDynamics,
    TimeConstraint,
)


def build_context(
    player_id: str = "bot_1",
    phase: str = "mid",
    round: int = 5,
    volatility: float = 0.5,
    social_pressure: float = 0.5,
    time_pressure: float = 0.0,
    events: Optional[List[GameEvent]] = None,
    players: Optional[List[PlayerState]] = None,
) -> BehaviorContext:
    if players is None:
        players = [
            PlayerState(id=player_id, cash=1000.0, properties=[Property(id="p1", value=200.0)]),
            PlayerState(id="alice", cash=1500.0),
            PlayerState(id="bob", cash=800.0, properties=[Property(id="p2", value=300.0)]),
        ]
    return BehaviorContext(
        player_id=player_id,
        game_state=GameState(phase=phase, round=round, market=MarketState(volatility=volatility)),
        player_states=players,
        recent_events=events or [],
        social_dynamics=SocialDynamics(social_pressure=social_pressure),
        time_constraints=TimeConstraint(pressure=time_pressure),
    )


def context_dict(player_id: str = "bot_1", round: int = 5, phase: str = "mid") -> Dict[str, Any]:
    return {
        "player_id": player_id,
        "game_state": {"phase": phase, "round": round, "market": {"volatility": 0.5}},
        "player_states": [
            {"id": player_id, "cash": 1000.0},
            {"id": "alice", "cash": 1500.0},
        ],
        "recent_events": [],
    }


def build_experience(
    action_type: str = "trade_offer",
    objective: float = 0.9,
    others: float = 0.9,
    now: float = 1_000.0,
    context: Optional[BehaviorContext] = None,
    unexpected: bool = False,
    processor: Optional[ExperienceProcessor] = None,
) -> LearningExperience:
    if processor is None:
        processor = ExperienceProcessor("bot_1")
    outcome = Outcome(immediate={"cash_delta": 100}, unexpected=["price_spike"] if unexpected else [])
    feedback = Feedback(objective=objective, subjective=others, environmental=others, social=others)
    return processor.build(context or build_context(), BehaviorAction(action_type), outcome, feedback, now)


@pytest.fixture
def make_context():
    return build_context


@pytest.fixture
def context():
    return build_context()


@pytest.fixture
def engine():
    eng = BehaviorEngine(EnginePresets.deterministic_test(seed=42), clock=lambda: 1_000_000.0)
    yield eng
    eng.shutdown()


@pytest.fixture
def make_experience():
    return build_experience
