from __future__ import annotations

import argparse
import json
import logging
import random
import sys
from typing import Any, Dict, List, Optional

from .config import EngineConfig, EnginePresets, list_presets
from .engine import BehaviorEngine
from .logging_config import configure_logging

logger = logging.getLogger(__name__)

PHASES = ("early", "mid", "late")
EVENT_TYPES = ("property_available", "safe_investment", "auction_started", "trade_proposed", "player_bankrupt")


def phase_for(round_: int, rounds: int) -> str:
    third = max(1, rounds // 3)
    return PHASES[min(2, round_ // third)]


def random_context(rng: random.Random, player_id: str, players: List[str], round_: int, rounds: int) -> Dict[str, Any]:
    """A plausible table snapshot for simulation."""
    player_states = []
    for pid in players:
        owned = rng.randint(0, 6)
        player_states.append({
            "id": pid,
            "position": rng.randint(0, 39),
            "cash": rng.uniform(0, 2000),
            "properties": [
                {"id": f"{pid}_p{i}", "value": rng.uniform(60, 400), "monopoly": rng.random() < 0.1}
                for i in range(owned)
            ],
        })

    events = []
    if rng.random() < 0.6:
        events.append({
            "type": rng.choice(EVENT_TYPES),
            "timestamp": float(round_),
            "participants": [player_id],
            "impact": rng.uniform(-1.0, 1.0),
        })

    return {
        "player_id": player_id,
        "game_state": {
            "phase": phase_for(round_, rounds),
            "round": round_,
            "turn": player_id,
            "market": {"volatility": rng.random(), "liquidity": rng.random()},
        },
        "player_states": player_states,
        "recent_events": events,
        "social_dynamics": {"social_pressure": rng.random()},
        "time_constraints": {"pressure": rng.random() * 0.5},
    }


def random_feedback(rng: random.Random) -> Dict[str, float]:
    base = rng.uniform(-1.0, 1.0)
    return {
        "objective": base,
        "subjective": max(-1.0, min(1.0, base + rng.uniform(-0.3, 0.3))),
        "environmental": rng.uniform(-1.0, 1.0),
        "social": rng.uniform(-1.0, 1.0),
    }


def simulate(engine: BehaviorEngine, agents: int, rounds: int, seed: int) -> Dict[str, Any]:
    """Play ``rounds`` random turns for every agent and return their analytics."""
    rng = random.Random(seed)
    presets = list_presets()
    players = [f"bot_{i + 1}" for i in range(agents)]
    for i, pid in enumerate(players):
        engine.register_agent(pid, personality=presets[i % len(presets)])

    now = 0.0
    for round_ in range(rounds):
        contexts = {pid: random_context(rng, pid, players, round_, rounds) for pid in players}
        decisions = engine.decide_many(contexts)
        for pid, decision in decisions.items():
            if decision is None or not decision.actions:
                continue
            now += 60.0
            engine.record_outcome(
                pid,
                contexts[pid],
                decision.actions[0],
                {"immediate": {"round": round_}, "unexpected": ["swing"] if rng.random() < 0.1 else []},
                random_feedback(rng),
                now=now,
            )
        engine.tick(now)

    return {
        pid: {
            "analysis": engine.get_pattern_analysis(pid),
            "learning": engine.get_learning_analytics(pid),
        }
        for pid in players
    }


def _load_config(path: Optional[str], seed: Optional[int]) -> EngineConfig:
    config = EngineConfig.load(path) if path else None
    if config is None:
        config = EnginePresets.deterministic_test(seed) if seed is not None else EngineConfig()
    elif seed is not None:
        config.prng_seed = seed
    return config


def main(argv: Optional[List[str]] = None) -> int:
    ap = argparse.ArgumentParser(
        description="Tycoon Behavior Engine - behavior selection and adaptive learning for board-game agents"
    )
    ap.add_argument("--config", help="Engine config file (JSON or YAML)")
    ap.add_argument("--log-level", default="WARNING", help="Logging level")
    ap.add_argument("--log-dir", help="Write rotating log files here")
    ap.add_argument("--log-json", action="store_true", help="Log JSON lines to stderr")
    sub = ap.add_subparsers(dest="command")

    sim = sub.add_parser("simulate", help="Run seeded random games and print analytics as JSON")
    sim.add_argument("--agents", type=int, default=4, help="Number of agents")
    sim.add_argument("--rounds", type=int, default=30, help="Rounds to play")
    sim.add_argument("--seed", type=int, default=42, help="Random seed")

    srv = sub.add_parser("serve", help="Serve the REST API")
    srv.add_argument("--host", default="127.0.0.1")
    srv.add_argument("--port", type=int, default=8000)
    srv.add_argument("--seed", type=int, default=None, help="Seed for deterministic selection")

    args = ap.parse_args(argv)
    if args.command is None:
        ap.print_help()
        return 2

    configure_logging(level=args.log_level, log_dir=args.log_dir, json_console=args.log_json)

    if args.command == "simulate":
        config = _load_config(args.config, args.seed)
        with BehaviorEngine(config) as engine:
            report = simulate(engine, max(1, args.agents), max(1, args.rounds), args.seed)
        json.dump(report, sys.stdout, indent=2, default=str)
        sys.stdout.write("\n")
        return 0

    if args.command == "serve":
        import uvicorn
        from .api import create_app

        engine = BehaviorEngine(_load_config(args.config, args.seed))
        engine.start_maintenance()
        try:
            uvicorn.run(create_app(engine), host=args.host, port=args.port)
        finally:
            engine.shutdown()
        return 0

    return 2


if __name__ == "__main__":
    sys.exit(main())
