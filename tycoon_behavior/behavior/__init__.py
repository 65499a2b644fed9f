"""
Behavior layer: pattern catalog, scoring, selection, action generation
and the per-decision pipeline.

Nothing here learns. The learning layer feeds back only through the
personality snapshot and the action multiplier passed into each run.
"""

from .patterns import (
    BehaviorAction,
    BehaviorAlternative,
    BehaviorCategory,
    BehaviorConstraint,
    BehaviorDecision,
    BehaviorPattern,
    BehaviorTrait,
    BehaviorTrigger,
    ConstraintType,
    DEFAULT_PATTERN_ID,
    builtin_patterns,
)
from .catalog import PatternCatalog
from .social import SocialGraph, SocialSlot
from .history import DecisionHistory
from .scorer import PatternScorer, ScoreBreakdown, ScoredPattern
from .selector import PatternSelector, Selection
from .actions import ActionGenerator, context_facts
from .pipeline import CancellationToken, DecisionPipeline, PipelineResult, PipelineState
from .analysis import BehaviorAnalysis, analyze

__all__ = [
    # Data model
    "BehaviorAction",
    "BehaviorAlternative",
    "BehaviorCategory",
    "BehaviorConstraint",
    "BehaviorDecision",
    "BehaviorPattern",
    "BehaviorTrait",
    "BehaviorTrigger",
    "ConstraintType",
    "DEFAULT_PATTERN_ID",
    "builtin_patterns",

    # Components
    "PatternCatalog",
    "SocialGraph",
    "SocialSlot",
    "DecisionHistory",
    "PatternScorer",
    "ScoreBreakdown",
    "ScoredPattern",
    "PatternSelector",
    "Selection",
    "ActionGenerator",
    "context_facts",

    # Pipeline
    "CancellationToken",
    "DecisionPipeline",
    "PipelineResult",
    "PipelineState",

    # Analysis
    "BehaviorAnalysis",
    "analyze",
]
