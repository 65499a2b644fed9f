"""
Engine configuration and personality presets.

Engine parameters are bounded and clamped on construction. Configurations
and personality profiles can be loaded from JSON or YAML files for easy
tuning without modifying code.
"""
from __future__ import annotations

import json
import logging
import os
from dataclasses import dataclass, asdict
from typing import Any, Dict, List, Optional

import yaml

logger = logging.getLogger(__name__)

DAY_SECONDS = 24 * 60 * 60

PERSONALITY_TRAITS = (
    "risktaking",
    "aggression",
    "patience",
    "social",
    "analytical",
    "adaptability",
    "creativity",
    "intuition",
    "leadership",
    "emotional",
)


@dataclass
class EngineConfig:
    """
    Configuration for the behavior engine.

    Attributes:
        history_limit: Decisions kept per agent (FIFO)
        top_k: Candidates entering the roulette wheel
        max_actions: Actions returned per decision
        min_action_probability: Adjusted probability below which an action is dropped
        fallback_confidence: Confidence of the fallback decision
        max_alternatives: Runner-up patterns reported per decision
        experience_limit: Experiences kept per agent before trimming
        experience_trim_to: Experiences kept after a trim
        knowledge_decay_seconds: Time constant of knowledge forgetting
        retention_seconds: Age after which experiences and achievements are pruned
        maintenance_interval_s: Period of the background maintenance tick
        exploration_rate: Initial exploration rate of each agent
        prng_seed: Seed for deterministic selection (None = random)
        event_buffer: Capacity of the pollable event channel
        decide_workers: Thread pool size for batch decisions
    """
    history_limit: int = 100
    top_k: int = 3
    max_actions: int = 5
    min_action_probability: float = 0.1
    fallback_confidence: float = 0.3
    max_alternatives: int = 3

    experience_limit: int = 1000
    experience_trim_to: int = 800
    knowledge_decay_seconds: float = 7 * DAY_SECONDS
    retention_seconds: float = 30 * DAY_SECONDS

    maintenance_interval_s: float = 60.0
    exploration_rate: float = 0.3

    prng_seed: Optional[int] = None
    event_buffer: int = 256
    decide_workers: int = 4

    def __post_init__(self):
        """Clamp all parameters to safe ranges."""
        self.history_limit = max(1, min(10000, int(self.history_limit)))
        self.top_k = max(1, min(20, int(self.top_k)))
        self.max_actions = max(1, min(50, int(self.max_actions)))
        self.min_action_probability = max(0.0, min(1.0, self.min_action_probability))
        self.fallback_confidence = max(0.0, min(1.0, self.fallback_confidence))
        self.max_alternatives = max(0, min(20, int(self.max_alternatives)))
        self.experience_limit = max(1, int(self.experience_limit))
        self.experience_trim_to = max(1, min(self.experience_limit, int(self.experience_trim_to)))
        self.knowledge_decay_seconds = max(1.0, float(self.knowledge_decay_seconds))
        self.retention_seconds = max(1.0, float(self.retention_seconds))
        self.maintenance_interval_s = max(0.01, float(self.maintenance_interval_s))
        self.exploration_rate = max(0.05, min(0.5, self.exploration_rate))
        self.event_buffer = max(1, int(self.event_buffer))
        self.decide_workers = max(1, min(64, int(self.decide_workers)))

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "EngineConfig":
        return cls(**{k: v for k, v in data.items() if k in cls.__dataclass_fields__})

    def save(self, path: str) -> None:
        """Save config to a JSON or YAML file, chosen by extension."""
        os.makedirs(os.path.dirname(path) or ".", exist_ok=True)
        with open(path, "w", encoding="utf-8") as f:
            if path.endswith((".yaml", ".yml")):
                yaml.safe_dump(self.to_dict(), f, sort_keys=False)
            else:
                json.dump(self.to_dict(), f, indent=2)

    @classmethod
    def load(cls, path: str) -> Optional["EngineConfig"]:
        """Load config from a JSON or YAML file. Returns None on failure."""
        data = _load_mapping(path)
        if data is None:
            return None
        return cls.from_dict(data)


def _load_mapping(path: str) -> Optional[Dict[str, Any]]:
    if not os.path.exists(path):
        return None

    try:
        with open(path, "r", encoding="utf-8") as f:
            content = f.read()

        if path.endswith((".yaml", ".yml")):
            data = yaml.safe_load(content)
        else:
            data = json.loads(content)
    except (OSError, ValueError, yaml.YAMLError) as e:
        logger.warning(f"Failed to load config from {path}: {e}")
        return None

    if not isinstance(data, dict):
        logger.warning(f"Config file {path} does not contain a mapping")
        return None
    return data


DEFAULT_ENGINE_CONFIG = EngineConfig()


class EnginePresets:
    """Pre-configured engine presets."""

    @staticmethod
    def default() -> EngineConfig:
        return EngineConfig()

    @staticmethod
    def deterministic_test(seed: int = 42) -> EngineConfig:
        """Seeded selection and a fast maintenance period, for tests and replays."""
        return EngineConfig(prng_seed=seed, maintenance_interval_s=0.05)

    @staticmethod
    def tournament() -> EngineConfig:
        """Less exploration and a longer memory for long-running leagues."""
        return EngineConfig(
            exploration_rate=0.1,
            history_limit=200,
            knowledge_decay_seconds=14 * DAY_SECONDS,
        )


# Built-in personality presets (trait name -> 0.0 .. 1.0)
PERSONALITY_PRESETS: Dict[str, Dict[str, float]] = {
    "balanced": {t: 0.5 for t in PERSONALITY_TRAITS},
    "shark": {
        "risktaking": 0.85,
        "aggression": 0.8,
        "patience": 0.25,
        "social": 0.3,
        "analytical": 0.6,
        "adaptability": 0.6,
        "creativity": 0.5,
        "intuition": 0.6,
        "leadership": 0.75,
        "emotional": 0.4,
    },
    "banker": {
        "risktaking": 0.15,
        "aggression": 0.2,
        "patience": 0.85,
        "social": 0.4,
        "analytical": 0.75,
        "adaptability": 0.4,
        "creativity": 0.3,
        "intuition": 0.4,
        "leadership": 0.5,
        "emotional": 0.2,
    },
    "diplomat": {
        "risktaking": 0.4,
        "aggression": 0.2,
        "patience": 0.7,
        "social": 0.9,
        "analytical": 0.5,
        "adaptability": 0.75,
        "creativity": 0.6,
        "intuition": 0.7,
        "leadership": 0.6,
        "emotional": 0.5,
    },
    "analyst": {
        "risktaking": 0.35,
        "aggression": 0.3,
        "patience": 0.75,
        "social": 0.35,
        "analytical": 0.9,
        "adaptability": 0.55,
        "creativity": 0.45,
        "intuition": 0.3,
        "leadership": 0.5,
        "emotional": 0.15,
    },
}


def get_preset(name: str) -> Optional[Dict[str, float]]:
    """Get a built-in personality preset by name (a copy)."""
    preset = PERSONALITY_PRESETS.get(name.lower())
    return dict(preset) if preset is not None else None


def list_presets() -> List[str]:
    """List available personality preset names."""
    return list(PERSONALITY_PRESETS.keys())


def load_personality(path: str) -> Optional[Dict[str, float]]:
    """
    Load a personality trait mapping from JSON or YAML.

    Unknown trait names are dropped; missing ones default to 0.5.
    """
    data = _load_mapping(path)
    if data is None:
        return None
    traits = {t: 0.5 for t in PERSONALITY_TRAITS}
    for name, value in data.items():
        if name in traits and isinstance(value, (int, float)):
            traits[name] = max(0.0, min(1.0, float(value)))
    return traits
