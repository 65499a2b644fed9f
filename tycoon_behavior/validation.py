"""
Input validation for engine entry points.

Validates:
- Game-state snapshots (BehaviorContext)
- Learning feedback channels
- Custom behavior patterns and their actions
"""
from __future__ import annotations

import math
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, List, Optional

from .exceptions import MalformedContextError

if TYPE_CHECKING:
    from .behavior.patterns import BehaviorAction, BehaviorPattern
    from .learning.state import Feedback
    from .types import BehaviorContext


@dataclass
class ValidationError:
    """A validation error."""
    field: str
    message: str
    value: str = ""


class ValidationResult:
    """Result of validation check."""

    def __init__(self):
        self.errors: List[ValidationError] = []

    def add_error(self, field: str, message: str, value: Any = "") -> None:
        self.errors.append(ValidationError(field, message, str(value)))

    def extend(self, other: "ValidationResult", prefix: str = "") -> None:
        for e in other.errors:
            name = f"{prefix}{e.field}" if prefix else e.field
            self.errors.append(ValidationError(name, e.message, e.value))

    @property
    def is_valid(self) -> bool:
        return len(self.errors) == 0

    def summary(self) -> str:
        return "; ".join(f"{e.field}: {e.message}" for e in self.errors)

    def raise_if_invalid(self, context: str = "Validation", exc: type = ValueError) -> None:
        if not self.is_valid:
            raise exc(f"{context} failed: {self.summary()}")


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool) and math.isfinite(value)


def _check_range(
    result: ValidationResult,
    field: str,
    value: Any,
    lo: float,
    hi: float,
) -> None:
    if not _is_number(value):
        result.add_error(field, "Must be a finite number", value)
    elif value < lo or value > hi:
        result.add_error(field, f"Must be between {lo} and {hi}", value)


def validate_context(context: Optional[BehaviorContext]) -> ValidationResult:
    """
    Check that a snapshot can be evaluated.

    A snapshot without game state, without a player list, or with a
    negative round is malformed.
    """
    result = ValidationResult()

    if context is None:
        result.add_error("context", "Context cannot be empty")
        return result

    if not hasattr(context, "game_state") or not hasattr(context, "player_states"):
        result.add_error("context", "Not a behavior context", type(context).__name__)
        return result

    if not context.player_id:
        result.add_error("player_id", "Player id cannot be empty")

    if context.game_state is None:
        result.add_error("game_state", "Missing game state")
    else:
        gs = context.game_state
        if not _is_number(gs.round) or gs.round < 0:
            result.add_error("game_state.round", "Round must be a non-negative number", gs.round)
        if not gs.phase:
            result.add_error("game_state.phase", "Phase cannot be empty")
        _check_range(result, "game_state.market.volatility", gs.market.volatility, 0.0, 1.0)

    if context.player_states is None:
        result.add_error("player_states", "Missing player list")

    _check_range(
        result, "social_dynamics.social_pressure", context.social_dynamics.social_pressure, 0.0, 1.0
    )
    _check_range(result, "time_constraints.pressure", context.time_constraints.pressure, 0.0, 1.0)

    return result


def require_valid_context(context: Optional[BehaviorContext]) -> BehaviorContext:
    """Return the context, or raise MalformedContextError."""
    validate_context(context).raise_if_invalid("Context validation", MalformedContextError)
    return context  # type: ignore[return-value]


def validate_feedback(feedback: Optional[Feedback]) -> ValidationResult:
    """All four channels must be finite and within -1.0 .. 1.0."""
    result = ValidationResult()

    if feedback is None:
        result.add_error("feedback", "Feedback cannot be empty")
        return result

    for name in ("objective", "subjective", "environmental", "social"):
        _check_range(result, f"feedback.{name}", getattr(feedback, name, None), -1.0, 1.0)

    return result


def validate_action(action: Optional[BehaviorAction]) -> ValidationResult:
    result = ValidationResult()

    if action is None:
        result.add_error("action", "Action cannot be empty")
        return result

    action_type = getattr(action, "type", None)
    if not action_type or not isinstance(action_type, str):
        result.add_error("action.type", "Action type cannot be empty")
    _check_range(result, "action.probability", getattr(action, "probability", None), 0.0, 1.0)
    _check_range(result, "action.intensity", getattr(action, "intensity", None), 0.0, 1.0)
    if not isinstance(getattr(action, "parameters", None), dict):
        result.add_error("action.parameters", "Parameters must be a mapping")
    else:
        effect = action.parameters.get("social_effect")
        if effect is not None:
            _check_range(result, "action.parameters.social_effect", effect, -1.0, 1.0)
        target = action.parameters.get("target")
        if target is not None and (not isinstance(target, str) or not target):
            result.add_error("action.parameters.target", "Target must be a non-empty player id", target)

    return result


def validate_pattern(pattern: Optional[BehaviorPattern]) -> ValidationResult:
    """Validate a custom pattern before it enters the catalog."""
    result = ValidationResult()

    if pattern is None:
        result.add_error("pattern", "Pattern cannot be empty")
        return result

    if not pattern.id:
        result.add_error("id", "Pattern id cannot be empty")
    elif len(pattern.id) > 64:
        result.add_error("id", "Pattern id too long (max 64 chars)", pattern.id[:20])

    _check_range(result, "confidence", pattern.confidence, 0.0, 1.0)
    _check_range(result, "adaptability", pattern.adaptability, 0.0, 1.0)
    _check_range(result, "stability", pattern.stability, 0.0, 1.0)

    for i, trait in enumerate(pattern.traits):
        if not trait.name:
            result.add_error(f"traits[{i}].name", "Trait name cannot be empty")
        _check_range(result, f"traits[{i}].value", trait.value, 0.0, 1.0)
        _check_range(result, f"traits[{i}].weight", trait.weight, 0.0, 1.0)

    for i, trigger in enumerate(pattern.triggers):
        if not trigger.event:
            result.add_error(f"triggers[{i}].event", "Trigger event cannot be empty")
        _check_range(result, f"triggers[{i}].priority", trigger.priority, 0.0, 1.0)
        if not isinstance(trigger.cooldown, int) or trigger.cooldown < 0:
            result.add_error(f"triggers[{i}].cooldown", "Cooldown must be a non-negative int", trigger.cooldown)

    if not pattern.actions:
        result.add_error("actions", "Pattern needs at least one action")
    for i, action in enumerate(pattern.actions):
        result.extend(validate_action(action), prefix=f"actions[{i}].")

    return result
