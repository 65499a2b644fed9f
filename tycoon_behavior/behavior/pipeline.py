"""
Per-decision state machine.

    IDLE -> EVALUATING -> SELECTING -> ACTION_GENERATING -> RECORDING -> EMITTED

Any exception while evaluating, selecting or generating actions moves the
run to FALLBACK: the default pattern is returned with low confidence and an
``error`` event is published. Nothing escapes ``run``.

A run can be abandoned through a ``CancellationToken`` at any point before
RECORDING; it then ends in CANCELLED without touching history or the
social graph.
"""
from __future__ import annotations

import logging
import random
import threading
import time
from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Callable, List, Optional

from ..config import EngineConfig
from ..events import EventBus, EventKind
from ..exceptions import DecisionCancelled, ScoringError
from ..logging_config import get_logger
from ..personality import PersonalitySnapshot
from ..types import BehaviorContext
from ..util import clamp
from ..validation import require_valid_context
from .actions import ActionGenerator, MultiplierFn
from .catalog import PatternCatalog
from .history import DecisionHistory
from .patterns import BehaviorAction, BehaviorCategory, BehaviorDecision, BehaviorPattern
from .scorer import PatternScorer, ScoredPattern
from .selector import PatternSelector
from .social import RIVAL_THRESHOLD, SocialGraph, SocialSlot

logger = logging.getLogger(__name__)
telemetry = get_logger("tycoon_behavior.telemetry")

Explainer = Callable[[BehaviorDecision, BehaviorContext], str]
CertaintyFn = Callable[[BehaviorContext], float]

FALLBACK_REASONING = "Fallback to default behavior"
FALLBACK_OUTCOME = "Neutral outcome expected"
FALLBACK_RISK = 0.5
FALLBACK_ACTIONS = 2


class PipelineState(str, Enum):
    IDLE = "idle"
    EVALUATING = "evaluating"
    SELECTING = "selecting"
    ACTION_GENERATING = "action_generating"
    RECORDING = "recording"
    EMITTED = "emitted"
    FALLBACK = "fallback"
    CANCELLED = "cancelled"


class CancellationToken:
    """Set by the caller to abandon a decision that is still in flight."""

    def __init__(self):
        self._event = threading.Event()

    def cancel(self) -> None:
        self._event.set()

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()

    def raise_if_cancelled(self) -> None:
        if self._event.is_set():
            raise DecisionCancelled("Decision cancelled by caller")


@dataclass
class PipelineResult:
    """
    What one run produced.

    Attributes:
        decision: The decision, or None if the run was cancelled
        state: Terminal state (EMITTED, FALLBACK or CANCELLED)
        trace: Every state the run passed through, in order
        candidates: Scored candidates, best first (empty on early failure)
        error: Failure description for FALLBACK runs, or for an EMITTED run
            whose social update failed after the decision was recorded
    """
    decision: Optional[BehaviorDecision]
    state: PipelineState
    trace: List[PipelineState] = field(default_factory=list)
    candidates: List[ScoredPattern] = field(default_factory=list)
    error: Optional[str] = None


def default_context_certainty(context: BehaviorContext) -> float:
    """0.7, or 0.5 when the acting player is missing from the player list."""
    return 0.7 if context.acting_player() is not None else 0.5


def social_risk(context: BehaviorContext, social: Optional[SocialSlot]) -> float:
    """Share of opponents the agent is in conflict with or holds as rivals."""
    opponents = context.opponents()
    if not opponents:
        return 0.3

    hostile = set()
    player = context.acting_player()
    if player is not None:
        hostile.update(player.conflicts)
    for conflict in context.social_dynamics.conflicts:
        if context.player_id in conflict.parties:
            hostile.update(p for p in conflict.parties if p != context.player_id)
    if social is not None:
        hostile.update(t for t, w in social.weights.items() if w <= RIVAL_THRESHOLD)

    return sum(1 for p in opponents if p.id in hostile) / len(opponents)


def resource_risk(context: BehaviorContext) -> float:
    """Share of the acting player's net worth tied up in property."""
    player = context.acting_player()
    if player is None:
        return 0.2
    worth = player.net_worth
    if worth <= 0:
        return 1.0
    return clamp(sum(p.value for p in player.properties) / worth, 0.0, 1.0)


def assess_risk(
    pattern: BehaviorPattern,
    context: BehaviorContext,
    social: Optional[SocialSlot] = None,
) -> float:
    risk = 0.0
    if pattern.category == BehaviorCategory.AGGRESSIVE:
        risk += 0.3
    if pattern.category == BehaviorCategory.UNPREDICTABLE:
        risk += 0.4

    volatility = context.game_state.market.volatility if context.game_state else 0.5
    risk += volatility * 0.2
    risk += social_risk(context, social) * 0.3
    risk += resource_risk(context) * 0.2
    return min(1.0, risk)


def build_reasoning(
    pattern: BehaviorPattern,
    context: BehaviorContext,
    fired_triggers: List[str],
) -> str:
    reasons = []
    volatility = context.game_state.market.volatility if context.game_state else 0.5

    if pattern.category == BehaviorCategory.AGGRESSIVE and context.phase == "late":
        reasons.append("Late game requires aggressive tactics")
    if pattern.category == BehaviorCategory.CONSERVATIVE and volatility > 0.7:
        reasons.append("High market volatility favors conservative approach")
    if fired_triggers:
        reasons.append(f"Triggered by: {', '.join(fired_triggers)}")

    if reasons:
        return "; ".join(reasons)
    return f"Selected {pattern.name} pattern based on current context"


def predict_outcome(pattern: BehaviorPattern, actions: List[BehaviorAction]) -> str:
    outcomes = []
    if pattern.category == BehaviorCategory.AGGRESSIVE:
        outcomes.append("High risk, high reward potential")
    if pattern.category == BehaviorCategory.CONSERVATIVE:
        outcomes.append("Stable, gradual progress expected")
    if any(a.type.startswith("trade") for a in actions):
        outcomes.append("Trade opportunities likely")
    return "; ".join(outcomes) if outcomes else "Moderate success expected"


class DecisionPipeline:
    """
    Runs one decision for one agent.

    Shared across agents; every per-agent input is passed to ``run``.
    """

    def __init__(
        self,
        catalog: PatternCatalog,
        scorer: Optional[PatternScorer] = None,
        generator: Optional[ActionGenerator] = None,
        config: Optional[EngineConfig] = None,
        bus: Optional[EventBus] = None,
        explainer: Optional[Explainer] = None,
        context_certainty: Optional[CertaintyFn] = None,
    ):
        self.config = config or EngineConfig()
        self.catalog = catalog
        self.scorer = scorer or PatternScorer()
        self.generator = generator or ActionGenerator(
            max_actions=self.config.max_actions,
            min_probability=self.config.min_action_probability,
        )
        self.bus = bus
        self.explainer = explainer
        self.context_certainty = context_certainty or default_context_certainty

    def fallback_decision(self, context: Optional[BehaviorContext] = None) -> BehaviorDecision:
        pattern = self.catalog.default_pattern()
        round_ = 0
        game_state = getattr(context, "game_state", None)
        if game_state is not None:
            try:
                round_ = max(0, int(game_state.round))
            except (TypeError, ValueError):
                round_ = 0
        return BehaviorDecision(
            pattern=pattern,
            actions=list(pattern.actions[:FALLBACK_ACTIONS]),
            confidence=self.config.fallback_confidence,
            reasoning=FALLBACK_REASONING,
            alternatives=[],
            risk_assessment=FALLBACK_RISK,
            expected_outcome=FALLBACK_OUTCOME,
            round=round_,
            fallback=True,
        )

    def run(
        self,
        agent_id: str,
        context: BehaviorContext,
        history: DecisionHistory,
        social_graph: SocialGraph,
        personality: Optional[PersonalitySnapshot] = None,
        rng: Optional[random.Random] = None,
        multiplier: Optional[MultiplierFn] = None,
        cancel: Optional[CancellationToken] = None,
    ) -> PipelineResult:
        trace = [PipelineState.IDLE]
        candidates: List[ScoredPattern] = []
        cancel = cancel or CancellationToken()
        start = time.perf_counter()

        try:
            trace.append(PipelineState.EVALUATING)
            context = require_valid_context(context)
            cancel.raise_if_cancelled()
            social = social_graph.get(agent_id)
            candidates = self.scorer.score_all(
                self.catalog.snapshot().values(),
                context,
                history=history,
                social=social,
                personality=personality,
                on_error=lambda e: self._publish_scoring_error(agent_id, e),
            )
            cancel.raise_if_cancelled()

            trace.append(PipelineState.SELECTING)
            selector = PatternSelector(
                rng=rng,
                top_k=self.config.top_k,
                max_alternatives=self.config.max_alternatives,
            )
            selection = selector.select(candidates)
            if selection.chosen is None:
                pattern = self.catalog.default_pattern()
                fired: List[str] = []
                confidence = self.config.fallback_confidence
                logger.info(f"No candidate patterns for {agent_id}, using {pattern.id}")
            else:
                pattern = selection.chosen.pattern
                fired = list(selection.chosen.fired_triggers)
                confidence = clamp(
                    (
                        pattern.confidence
                        + self.scorer.historical_performance(pattern, history)
                        + self.context_certainty(context)
                    ) / 3.0,
                    0.0,
                    1.0,
                )
            cancel.raise_if_cancelled()

            trace.append(PipelineState.ACTION_GENERATING)
            actions = self.generator.generate(pattern, context, multiplier)
            decision = BehaviorDecision(
                pattern=pattern,
                actions=actions,
                confidence=confidence,
                reasoning=build_reasoning(pattern, context, fired),
                alternatives=selection.alternatives,
                risk_assessment=assess_risk(pattern, context, social),
                expected_outcome=predict_outcome(pattern, actions),
                round=context.round,
                fired_triggers=fired,
            )
            cancel.raise_if_cancelled()

        except DecisionCancelled:
            trace.append(PipelineState.CANCELLED)
            logger.info(f"Decision for {agent_id} cancelled before recording")
            return PipelineResult(None, PipelineState.CANCELLED, trace, candidates)

        except Exception as e:
            trace.append(PipelineState.FALLBACK)
            logger.error(f"Behavior selection failed for {agent_id}: {e}", exc_info=True)
            if self.bus:
                self.bus.publish(
                    EventKind.ERROR,
                    agent_id=agent_id,
                    payload={"type": "behavior_selection_failed", "error": str(e)},
                )
            fallback = self.fallback_decision(context)
            telemetry.decision(agent_id, fallback.pattern.id, fallback.confidence, fallback=True)
            return PipelineResult(
                fallback,
                PipelineState.FALLBACK,
                trace,
                candidates,
                error=str(e),
            )

        decision = self._explain(decision, context)
        if cancel.cancelled:
            trace.append(PipelineState.CANCELLED)
            return PipelineResult(None, PipelineState.CANCELLED, trace, candidates)

        trace.append(PipelineState.RECORDING)
        recording_error = self._record(agent_id, decision, context, history, social_graph)

        trace.append(PipelineState.EMITTED)
        latency_ms = (time.perf_counter() - start) * 1000
        telemetry.decision(
            agent_id, decision.pattern.id, decision.confidence, latency_ms=latency_ms, round=decision.round
        )
        if self.bus:
            self.bus.publish(
                EventKind.BEHAVIOR_SELECTED,
                agent_id=agent_id,
                payload={"decision": decision.to_dict(), "round": decision.round},
            )
        return PipelineResult(decision, PipelineState.EMITTED, trace, candidates, error=recording_error)

    def _record(
        self,
        agent_id: str,
        decision: BehaviorDecision,
        context: BehaviorContext,
        history: DecisionHistory,
        social_graph: SocialGraph,
    ) -> Optional[str]:
        """
        Commit the decision to history, then apply its social effects.

        The decision is already committed once it is in history, so a
        failing social update is reported and the decision still returned.
        """
        try:
            history.append(decision)
            social_graph.apply_actions(agent_id, decision.actions, context)
        except Exception as e:
            logger.error(f"Recording decision for {agent_id} failed: {e}", exc_info=True)
            if self.bus:
                self.bus.publish(
                    EventKind.ERROR,
                    agent_id=agent_id,
                    payload={"type": "decision_recording_failed", "pattern_id": decision.pattern.id, "error": str(e)},
                )
            return str(e)
        return None

    def _explain(self, decision: BehaviorDecision, context: BehaviorContext) -> BehaviorDecision:
        if self.explainer is None:
            return decision
        try:
            text = self.explainer(decision, context)
        except Exception as e:
            logger.warning(f"Explainer failed, decision kept without explanation: {e}")
            return decision
        if not isinstance(text, str) or not text:
            return decision
        return replace(decision, explanation=text)

    def _publish_scoring_error(self, agent_id: str, error: ScoringError) -> None:
        if self.bus:
            self.bus.publish(
                EventKind.ERROR,
                agent_id=agent_id,
                payload={
                    "type": "pattern_scoring_failed",
                    "pattern_id": error.pattern_id,
                    "error": str(error.cause),
                },
            )
