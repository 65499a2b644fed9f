"""
Behavior pattern selection and adaptive learning for computer-controlled
players in turn-based economic board games.
"""

__version__ = "0.3.0"

from .config import EngineConfig, EnginePresets
from .engine import BehaviorEngine

__all__ = [
    "__version__",
    "BehaviorEngine",
    "EngineConfig",
    "EnginePresets",
]
