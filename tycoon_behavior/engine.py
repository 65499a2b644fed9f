"""
Behavior engine facade.

One engine serves every computer-controlled player at the table:

- decide: choose a behavior pattern and a ranked action list for one agent
- record_outcome: feed the result of an action back into that agent's learning
- tick: periodic maintenance (also runnable on a background thread)

No public method raises. Bad input degrades to a fallback decision, a
rejected ``IngestResult`` or a ``False`` return, and an ``error`` event is
published on the bus.
"""
from __future__ import annotations

import logging
import threading
import time
from concurrent.futures import ThreadPoolExecutor
from typing import Any, Callable, Dict, Iterable, List, Mapping, Optional, Tuple, Union

from .agents import AgentHandle, AgentRef, AgentRegistry
from .behavior.actions import ActionGenerator, PrerequisiteCheck
from .behavior.analysis import analyze
from .behavior.catalog import PatternCatalog
from .behavior.patterns import BehaviorAction, BehaviorDecision, BehaviorPattern
from .behavior.pipeline import (
    CancellationToken,
    DecisionPipeline,
    Explainer,
    PipelineResult,
    PipelineState,
)
from .behavior.scorer import PatternScorer
from .config import EngineConfig
from .events import EngineEvent, EventBus, EventKind, ObserverCallback
from .learning.state import Feedback, Outcome
from .learning.system import IngestResult
from .logging_config import get_logger
from .maintenance import MaintenanceScheduler
from .personality import PersonalityProfile
from .types import BehaviorContext
from .validation import validate_pattern

logger = logging.getLogger(__name__)
telemetry = get_logger("tycoon_behavior.telemetry")

ContextInput = Union[BehaviorContext, Mapping[str, Any]]


def _as_context(context: Any) -> Any:
    """Build a context from a mapping; anything else passes through to validation."""
    if isinstance(context, Mapping):
        return BehaviorContext.from_dict(dict(context))
    return context


class BehaviorEngine:
    """
    Pattern selection and adaptive learning for many agents.

    Example:
        >>> engine = BehaviorEngine(EnginePresets.deterministic_test())
        >>> bot = engine.register_agent("bot-1", personality="shark")
        >>> decision = engine.decide(bot, context)
        >>> engine.record_outcome(bot, context, decision.actions[0], Outcome(), Feedback(0.6, 0.4, 0.2, 0.1))
        >>> engine.shutdown()

    Args:
        config: Engine configuration
        patterns: Initial catalog (defaults to the built-in patterns)
        explainer: Optional text-generation hook attached to each decision
        scorer: Scorer with custom hooks
        prerequisite: Custom action prerequisite check
        clock: Wall-clock source (seconds)
    """

    def __init__(
        self,
        config: Optional[EngineConfig] = None,
        patterns: Optional[Iterable[BehaviorPattern]] = None,
        explainer: Optional[Explainer] = None,
        scorer: Optional[PatternScorer] = None,
        prerequisite: Optional[PrerequisiteCheck] = None,
        clock: Callable[[], float] = time.time,
    ):
        self.config = config or EngineConfig()
        self.clock = clock
        self.bus = EventBus(maxlen=self.config.event_buffer)
        self.catalog = PatternCatalog(patterns, bus=self.bus)
        self.registry = AgentRegistry(self.config, bus=self.bus, clock=clock)
        self.pipeline = DecisionPipeline(
            self.catalog,
            scorer=scorer,
            generator=ActionGenerator(
                prerequisite=prerequisite,
                max_actions=self.config.max_actions,
                min_probability=self.config.min_action_probability,
            ),
            config=self.config,
            bus=self.bus,
            explainer=explainer,
        )
        self._lock = threading.Lock()
        self._executor: Optional[ThreadPoolExecutor] = None
        self.maintenance = MaintenanceScheduler(
            self._run_maintenance,
            interval_s=self.config.maintenance_interval_s,
            clock=clock,
        )
        self._closed = False

    # ------------------------------------------------------------------
    # Agents
    # ------------------------------------------------------------------

    def register_agent(
        self,
        agent_id: str,
        personality: Optional[Union[str, PersonalityProfile, Mapping[str, float]]] = None,
    ) -> Optional[AgentHandle]:
        """
        Register an agent. ``personality`` may be a preset name, a trait
        mapping or a profile. Returns None if the agent id is invalid.
        """
        if isinstance(personality, str):
            personality = PersonalityProfile.from_preset(personality)
        try:
            return self.registry.register(agent_id, personality)
        except (TypeError, ValueError) as e:
            logger.warning(f"Agent registration rejected: {e}")
            self._error("agent_registration_failed", str(e))
            return None

    def remove_agent(self, agent: AgentRef) -> bool:
        """Release every per-agent structure."""
        return self.registry.remove(agent)

    def handle_for(self, agent_id: str) -> Optional[AgentHandle]:
        return self.registry.handle_for(agent_id)

    def agents(self) -> List[str]:
        return self.registry.agent_ids()

    # ------------------------------------------------------------------
    # Decisions
    # ------------------------------------------------------------------

    def decide(
        self,
        agent: AgentRef,
        context: ContextInput,
        cancel: Optional[CancellationToken] = None,
    ) -> Optional[BehaviorDecision]:
        """
        Choose a behavior for one agent.

        Returns the fallback decision on malformed input or internal failure,
        and None only when the caller cancelled the request.
        """
        result = self.decide_detailed(agent, context, cancel)
        return result.decision

    def decide_detailed(
        self,
        agent: AgentRef,
        context: ContextInput,
        cancel: Optional[CancellationToken] = None,
    ) -> PipelineResult:
        """Like ``decide`` but returns the full pipeline result."""
        slot = self.registry.find(agent)
        if slot is None:
            agent_id = agent if isinstance(agent, str) else None
            logger.warning(f"Decision requested for unknown agent {agent!r}")
            self._error("unknown_agent", f"Unknown agent: {agent!r}", agent_id=agent_id)
            return PipelineResult(
                self.pipeline.fallback_decision(None),
                PipelineState.FALLBACK,
                [PipelineState.IDLE, PipelineState.FALLBACK],
                error="unknown agent",
            )

        try:
            ctx = _as_context(context)
        except (KeyError, TypeError, ValueError, AttributeError) as e:
            logger.warning(f"Could not build context for {slot.agent_id}: {e}")
            ctx = None

        with slot.decide_lock:
            return self.pipeline.run(
                slot.agent_id,
                ctx,
                history=slot.history,
                social_graph=self.registry.social,
                personality=slot.personality.snapshot(self.clock()),
                rng=slot.rng,
                multiplier=slot.learning.action_multiplier,
                cancel=cancel,
            )

    def decide_many(
        self,
        requests: Union[Mapping[AgentRef, ContextInput], Iterable[Tuple[AgentRef, ContextInput]]],
    ) -> Dict[str, Optional[BehaviorDecision]]:
        """
        Decide for several agents concurrently.

        Returns:
            Agent id (or the string form of the reference) -> decision
        """
        items = list(requests.items()) if isinstance(requests, Mapping) else list(requests)
        if not items:
            return {}

        executor = self._get_executor()
        futures = [(ref, executor.submit(self.decide, ref, ctx)) for ref, ctx in items]

        results: Dict[str, Optional[BehaviorDecision]] = {}
        for ref, future in futures:
            slot = self.registry.find(ref)
            key = slot.agent_id if slot is not None else str(ref)
            try:
                results[key] = future.result()
            except Exception as e:
                logger.error(f"Batch decision failed for {key}: {e}", exc_info=True)
                results[key] = self.pipeline.fallback_decision(None)
        return results

    def _get_executor(self) -> ThreadPoolExecutor:
        with self._lock:
            if self._executor is None:
                self._executor = ThreadPoolExecutor(
                    max_workers=self.config.decide_workers,
                    thread_name_prefix="behavior-decide",
                )
            return self._executor

    # ------------------------------------------------------------------
    # Learning
    # ------------------------------------------------------------------

    def record_outcome(
        self,
        agent: AgentRef,
        context: ContextInput,
        action: Union[BehaviorAction, Mapping[str, Any]],
        outcome: Union[Outcome, Mapping[str, Any], None],
        feedback: Union[Feedback, Mapping[str, Any]],
        now: Optional[float] = None,
    ) -> IngestResult:
        """Feed one outcome into the agent's learning. Never raises."""
        slot = self.registry.find(agent)
        if slot is None:
            return IngestResult(accepted=False, reason=f"Unknown agent: {agent!r}")

        try:
            ctx = _as_context(context)
            if isinstance(action, Mapping):
                action = BehaviorAction.from_dict(dict(action))
            if outcome is None:
                outcome = Outcome()
            elif isinstance(outcome, Mapping):
                outcome = Outcome.from_dict(dict(outcome))
            if isinstance(feedback, Mapping):
                feedback = Feedback.from_dict(dict(feedback))
        except (KeyError, TypeError, ValueError, AttributeError) as e:
            logger.warning(f"Malformed outcome report for {slot.agent_id}: {e}")
            return IngestResult(accepted=False, reason=f"Malformed outcome report: {e}")

        start = time.perf_counter()
        result = slot.learning.ingest(ctx, action, outcome, feedback, now)
        telemetry.latency(
            "ingest",
            (time.perf_counter() - start) * 1000,
            agent_id=slot.agent_id,
            subsystem="learning",
        )
        return result

    # ------------------------------------------------------------------
    # Catalog
    # ------------------------------------------------------------------

    def add_custom_pattern(
        self,
        pattern: Union[BehaviorPattern, Mapping[str, Any]],
        replace: bool = False,
    ) -> bool:
        """Validate and register a pattern. Returns False if rejected."""
        try:
            if isinstance(pattern, Mapping):
                pattern = BehaviorPattern.from_dict(dict(pattern))
            result = validate_pattern(pattern)
        except (KeyError, TypeError, ValueError, AttributeError) as e:
            logger.warning(f"Custom pattern rejected: {e}")
            self._error("invalid_pattern", str(e))
            return False

        if not result.is_valid:
            logger.warning(f"Custom pattern rejected: {result.summary()}")
            self._error("invalid_pattern", result.summary(), pattern_id=getattr(pattern, "id", None))
            return False
        return self.catalog.add(pattern, replace=replace)

    def remove_pattern(self, pattern_id: str) -> bool:
        return self.catalog.remove(pattern_id)

    def patterns(self) -> List[BehaviorPattern]:
        return self.catalog.all()

    # ------------------------------------------------------------------
    # Maintenance
    # ------------------------------------------------------------------

    def tick(self, now: Optional[float] = None) -> Optional[Dict[str, Any]]:
        """
        Run maintenance for every agent now.

        Shares the background scheduler's guard, so it never overlaps a
        scheduled run.

        Returns:
            Per-agent summary, or None if a run was already in flight
        """
        with self.maintenance.exclusive() as acquired:
            if not acquired:
                logger.info("Manual maintenance skipped, a run is in progress")
                return None
            return self._run_maintenance(self.clock() if now is None else now)

    def _run_maintenance(self, now: float) -> Dict[str, Any]:
        summary: Dict[str, Any] = {}
        for slot in self.registry.slots():
            try:
                report = slot.learning.tick(now)
            except Exception as e:
                logger.error(f"Maintenance failed for {slot.agent_id}: {e}", exc_info=True)
                self._error("maintenance_failed", str(e), agent_id=slot.agent_id)
                continue
            summary[slot.agent_id] = {
                "forgotten_patterns": report.forgotten_patterns,
                "stalled_objectives": report.stalled_objectives,
                "pruned_experiences": report.pruned_experiences,
                "expired_adjustments": report.expired_adjustments,
                "exploration_rate": report.exploration_rate,
            }
        return summary

    def start_maintenance(self, interval_s: Optional[float] = None) -> bool:
        """Start the background maintenance thread. False if already running."""
        if self.maintenance.running:
            return False
        if interval_s:
            self.maintenance.interval_s = max(0.01, float(interval_s))
        return self.maintenance.start()

    def stop_maintenance(self) -> None:
        self.maintenance.stop()

    def shutdown(self) -> None:
        """Stop maintenance and the decision pool. Idempotent."""
        if self._closed:
            return
        self._closed = True
        self.stop_maintenance()
        with self._lock:
            executor, self._executor = self._executor, None
        if executor is not None:
            executor.shutdown(wait=True)
        logger.info("Behavior engine shut down")

    def __enter__(self) -> "BehaviorEngine":
        return self

    def __exit__(self, *exc) -> None:
        self.shutdown()

    # ------------------------------------------------------------------
    # Read-only views
    # ------------------------------------------------------------------

    def get_pattern_analysis(self, agent: AgentRef) -> Optional[Dict[str, Any]]:
        slot = self.registry.find(agent)
        if slot is None:
            return None
        analysis = analyze(slot.history, self.catalog.snapshot(), self.registry.social.get(slot.agent_id))
        return analysis.to_dict()

    def get_learning_analytics(self, agent: AgentRef) -> Optional[Dict[str, Any]]:
        slot = self.registry.find(agent)
        if slot is None:
            return None
        analytics = slot.learning.analytics()
        analytics["personality"] = slot.personality.to_dict(self.clock())
        return analytics

    def get_behavior_history(self, agent: AgentRef, limit: Optional[int] = None) -> List[Dict[str, Any]]:
        slot = self.registry.find(agent)
        if slot is None:
            return []
        decisions = slot.history.all() if limit is None else slot.history.recent(limit)
        return [d.to_dict() for d in decisions]

    def get_social_weights(self, agent: AgentRef) -> Optional[Dict[str, Any]]:
        slot = self.registry.find(agent)
        if slot is None:
            return None
        social = self.registry.social.get(slot.agent_id)
        return social.to_dict() if social is not None else None

    # ------------------------------------------------------------------
    # Events
    # ------------------------------------------------------------------

    def subscribe(self, observer: Any) -> ObserverCallback:
        return self.bus.subscribe(observer)

    def unsubscribe(self, callback: ObserverCallback) -> bool:
        return self.bus.unsubscribe(callback)

    def poll_events(self, max_items: Optional[int] = None) -> List[EngineEvent]:
        return self.bus.poll(max_items)

    def _error(self, error_type: str, message: str, agent_id: Optional[str] = None, **extra: Any) -> None:
        payload = {"type": error_type, "error": message}
        payload.update(extra)
        self.bus.publish(EventKind.ERROR, agent_id=agent_id, payload=payload)
