"""
Exception types raised inside the engine.

None of these escape the public ``BehaviorEngine`` surface: the decision
pipeline converts them into a fallback decision and the learning system
converts them into a rejected ``IngestResult``.
"""
from __future__ import annotations


class TycoonBehaviorError(Exception):
    """Base class for engine errors."""


class MalformedContextError(TycoonBehaviorError, ValueError):
    """The game engine supplied a snapshot that cannot be evaluated."""


class ScoringError(TycoonBehaviorError):
    """A single pattern's score could not be computed."""

    def __init__(self, pattern_id: str, cause: Exception):
        super().__init__(f"Scoring failed for pattern {pattern_id!r}: {cause}")
        self.pattern_id = pattern_id
        self.cause = cause


class ExperienceRejected(TycoonBehaviorError, ValueError):
    """A learning experience was malformed and was not ingested."""


class DecisionCancelled(TycoonBehaviorError):
    """The caller abandoned a decision before it was recorded."""


class UnknownAgentError(TycoonBehaviorError, KeyError):
    """No agent is registered under the given handle or id."""
