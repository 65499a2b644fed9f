"""
Adaptive learning layer.

Outcomes reported by the game become scored experiences. Experiences move
learning objectives, build and reinforce knowledge patterns, drive the
learning strategies (which nudge action preferences), update the
meta-cognitive self-model and, when significant, adjust personality.

Key principles:
- Learning only reweights existing actions; it never invents new ones
- Every learned quantity is bounded
- Knowledge that is not reinforced fades and is forgotten
"""

from .state import (
    ActionPreference,
    ActionPreferences,
    Feedback,
    KnowledgePattern,
    LearningExperience,
    LearningObjective,
    LearningStrategy,
    MetaCognition,
    Outcome,
)
from .experience import ExperienceProcessor, learning_value
from .knowledge import KnowledgeStore
from .objectives import ObjectiveTracker, default_objectives
from .strategies import StrategyEngine, default_strategies
from .metacognition import MetaCognitionTracker, initial_metacognition, personality_event_for
from .system import AdaptiveLearningSystem, IngestResult, MaintenanceReport

__all__ = [
    # Data model
    "ActionPreference",
    "ActionPreferences",
    "Feedback",
    "KnowledgePattern",
    "LearningExperience",
    "LearningObjective",
    "LearningStrategy",
    "MetaCognition",
    "Outcome",

    # Components
    "ExperienceProcessor",
    "learning_value",
    "KnowledgeStore",
    "ObjectiveTracker",
    "default_objectives",
    "StrategyEngine",
    "default_strategies",
    "MetaCognitionTracker",
    "initial_metacognition",
    "personality_event_for",

    # Orchestration
    "AdaptiveLearningSystem",
    "IngestResult",
    "MaintenanceReport",
]
