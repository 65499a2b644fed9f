"""
Game-state snapshot types supplied by the game-rule engine.

A ``BehaviorContext`` is handed to the engine once per decision and is
never mutated by it. The nested records mirror what the board engine
knows about the table: phase and round, the board, the market, every
player's public state, recent events and the social climate.
"""
from __future__ import annotations

from dataclasses import dataclass, field, asdict
from typing import Any, Dict, List, Optional


@dataclass(frozen=True)
class Property:
    id: str
    name: str = ""
    owner: str = ""
    value: float = 0.0
    rent: float = 0.0
    monopoly: bool = False

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Property":
        return cls(**{k: v for k, v in data.items() if k in cls.__dataclass_fields__})


@dataclass(frozen=True)
class PlayerState:
    """
    Public state of one player at the table.

    Attributes:
        id: Player identifier (agents and humans share this space)
        position: Board index
        cash: Cash on hand
        properties: Owned properties
        status: "active", "jailed", "bankrupt", ...
        reputation: Table reputation (0.0 to 1.0)
        alliances: Ids of players this one is allied with
        conflicts: Ids of players this one is in conflict with
    """
    id: str
    position: int = 0
    cash: float = 0.0
    properties: List[Property] = field(default_factory=list)
    status: str = "active"
    reputation: float = 0.5
    alliances: List[str] = field(default_factory=list)
    conflicts: List[str] = field(default_factory=list)

    @property
    def net_worth(self) -> float:
        return self.cash + sum(p.value for p in self.properties)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "PlayerState":
        props = [Property.from_dict(p) for p in data.get("properties", []) or []]
        return cls(
            id=data["id"],
            position=data.get("position", 0),
            cash=data.get("cash", 0.0),
            properties=props,
            status=data.get("status", "active"),
            reputation=data.get("reputation", 0.5),
            alliances=list(data.get("alliances", []) or []),
            conflicts=list(data.get("conflicts", []) or []),
        )


@dataclass(frozen=True)
class MarketTrend:
    sector: str
    direction: str = "flat"
    strength: float = 0.0
    duration: int = 0


@dataclass(frozen=True)
class MarketState:
    volatility: float = 0.5
    liquidity: float = 0.5
    sentiment: str = "neutral"
    trends: List[MarketTrend] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "MarketState":
        trends = [
            MarketTrend(**{k: v for k, v in t.items() if k in MarketTrend.__dataclass_fields__})
            for t in data.get("trends", []) or []
        ]
        return cls(
            volatility=data.get("volatility", 0.5),
            liquidity=data.get("liquidity", 0.5),
            sentiment=data.get("sentiment", "neutral"),
            trends=trends,
        )


@dataclass(frozen=True)
class BoardState:
    properties: List[Property] = field(default_factory=list)
    special_spaces: List[Dict[str, Any]] = field(default_factory=list)
    cards: List[Dict[str, Any]] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "BoardState":
        return cls(
            properties=[Property.from_dict(p) for p in data.get("properties", []) or []],
            special_spaces=list(data.get("special_spaces", []) or []),
            cards=list(data.get("cards", []) or []),
        )


@dataclass(frozen=True)
class ActiveEvent:
    id: str
    type: str
    effect: str = ""
    duration: int = 0
    affected_players: List[str] = field(default_factory=list)


@dataclass(frozen=True)
class GameState:
    phase: str
    round: int = 0
    turn: str = ""
    board: BoardState = field(default_factory=BoardState)
    market: MarketState = field(default_factory=MarketState)
    events: List[ActiveEvent] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "GameState":
        events = [
            ActiveEvent(**{k: v for k, v in e.items() if k in ActiveEvent.__dataclass_fields__})
            for e in data.get("events", []) or []
        ]
        return cls(
            phase=data.get("phase", ""),
            round=data.get("round", 0),
            turn=data.get("turn", ""),
            board=BoardState.from_dict(data.get("board") or {}),
            market=MarketState.from_dict(data.get("market") or {}),
            events=events,
        )


@dataclass(frozen=True)
class GameEvent:
    """Something that recently happened at the table."""
    type: str
    timestamp: float = 0.0
    participants: List[str] = field(default_factory=list)
    outcome: str = ""
    impact: float = 0.0  # -1.0 .. 1.0

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "GameEvent":
        return cls(**{k: v for k, v in data.items() if k in cls.__dataclass_fields__})


@dataclass(frozen=True)
class Alliance:
    members: List[str]
    strength: float = 0.5
    purpose: str = ""
    duration: int = 0


@dataclass(frozen=True)
class Conflict:
    parties: List[str]
    intensity: float = 0.5
    cause: str = ""
    resolution: str = ""


@dataclass(frozen=True)
class SocialDynamics:
    alliances: List[Alliance] = field(default_factory=list)
    conflicts: List[Conflict] = field(default_factory=list)
    trust_levels: Dict[str, float] = field(default_factory=dict)
    influence_network: Dict[str, float] = field(default_factory=dict)
    social_pressure: float = 0.5

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "SocialDynamics":
        return cls(
            alliances=[
                Alliance(**{k: v for k, v in a.items() if k in Alliance.__dataclass_fields__})
                for a in data.get("alliances", []) or []
            ],
            conflicts=[
                Conflict(**{k: v for k, v in c.items() if k in Conflict.__dataclass_fields__})
                for c in data.get("conflicts", []) or []
            ],
            trust_levels=dict(data.get("trust_levels", {}) or {}),
            influence_network=dict(data.get("influence_network", {}) or {}),
            social_pressure=data.get("social_pressure", 0.5),
        )


@dataclass(frozen=True)
class EnvironmentalFactor:
    name: str
    value: float = 0.0
    trend: str = "flat"
    impact: float = 0.0


@dataclass(frozen=True)
class TimeConstraint:
    time_remaining: float = 0.0
    pressure: float = 0.0
    urgency: float = 0.0


@dataclass(frozen=True)
class BehaviorContext:
    """
    Read-only snapshot of everything an agent may consider for one decision.

    ``game_state`` and ``player_states`` are Optional only so that malformed
    snapshots from the game engine can be represented and rejected; a
    well-formed context always carries both.
    """
    player_id: str
    game_state: Optional[GameState]
    player_states: Optional[List[PlayerState]]
    recent_events: List[GameEvent] = field(default_factory=list)
    social_dynamics: SocialDynamics = field(default_factory=SocialDynamics)
    environmental_factors: List[EnvironmentalFactor] = field(default_factory=list)
    time_constraints: TimeConstraint = field(default_factory=TimeConstraint)

    @property
    def phase(self) -> str:
        return self.game_state.phase if self.game_state else "unknown"

    @property
    def round(self) -> int:
        return self.game_state.round if self.game_state else 0

    def acting_player(self) -> Optional[PlayerState]:
        for player in self.player_states or []:
            if player.id == self.player_id:
                return player
        return None

    def opponents(self) -> List[PlayerState]:
        return [p for p in self.player_states or [] if p.id != self.player_id]

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "BehaviorContext":
        """
        Build a context from plain JSON-like data.

        Missing ``game_state`` / ``player_states`` stay ``None`` so that
        validation can reject them downstream instead of failing here.
        """
        game_state = data.get("game_state")
        players = data.get("player_states")
        return cls(
            player_id=data.get("player_id", ""),
            game_state=GameState.from_dict(game_state) if game_state is not None else None,
            player_states=(
                [PlayerState.from_dict(p) for p in players] if players is not None else None
            ),
            recent_events=[GameEvent.from_dict(e) for e in data.get("recent_events", []) or []],
            social_dynamics=SocialDynamics.from_dict(data.get("social_dynamics") or {}),
            environmental_factors=[
                EnvironmentalFactor(
                    **{k: v for k, v in f.items() if k in EnvironmentalFactor.__dataclass_fields__}
                )
                for f in data.get("environmental_factors", []) or []
            ],
            time_constraints=TimeConstraint(
                **{
                    k: v
                    for k, v in (data.get("time_constraints") or {}).items()
                    if k in TimeConstraint.__dataclass_fields__
                }
            ),
        )
