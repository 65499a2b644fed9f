"""
Adaptive learning for one agent.

``ingest`` runs the whole loop synchronously: score the experience, then
update objectives, knowledge, strategies, meta-cognition and (for
significant experiences) the personality. ``tick`` runs the periodic
maintenance: forgetting, exploration recalibration, progress evaluation,
pruning and personality adjustment expiry.
"""
from __future__ import annotations

import logging
import threading
import time
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional

from ..behavior.patterns import BehaviorAction
from ..config import EngineConfig
from ..events import EventBus, EventKind
from ..exceptions import ExperienceRejected
from ..personality import PersonalityEvent, PersonalityProfile
from ..types import BehaviorContext
from .experience import ExperienceProcessor
from .knowledge import KnowledgeStore
from .metacognition import MetaCognitionTracker, personality_event_for
from .objectives import ObjectiveTracker
from .state import Feedback, LearningExperience, Outcome
from .strategies import StrategyEngine

logger = logging.getLogger(__name__)

# Rate reported in analytics; the per-strategy adaptation rates do the work
BASE_LEARNING_RATE = 0.1
TOP_KNOWLEDGE = 10


@dataclass
class IngestResult:
    """
    Result of one ``ingest`` call.

    Attributes:
        accepted: False if the report was rejected
        reason: Why it was rejected
        experience: The scored experience, when accepted
        personality_event: Personality event raised by the experience, if any
    """
    accepted: bool
    reason: str = ""
    experience: Optional[LearningExperience] = None
    personality_event: Optional[PersonalityEvent] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "accepted": self.accepted,
            "reason": self.reason,
            "experience": self.experience.to_dict() if self.experience else None,
            "personality_event": self.personality_event.description if self.personality_event else None,
        }


@dataclass
class MaintenanceReport:
    forgotten_patterns: List[str] = field(default_factory=list)
    stalled_objectives: List[str] = field(default_factory=list)
    pruned_experiences: int = 0
    pruned_achievements: int = 0
    expired_adjustments: int = 0
    exploration_rate: float = 0.0


class AdaptiveLearningSystem:
    """
    All learning state of one agent.

    Example:
        >>> system = AdaptiveLearningSystem("bot_1", PersonalityProfile())
        >>> result = system.ingest(context, action, Outcome(), Feedback(0.9, 0.9, 0.9, 0.9))
        >>> result.accepted
        True
    """

    def __init__(
        self,
        agent_id: str,
        personality: Optional[PersonalityProfile] = None,
        config: Optional[EngineConfig] = None,
        bus: Optional[EventBus] = None,
        clock: Callable[[], float] = time.time,
    ):
        self.agent_id = agent_id
        self.config = config or EngineConfig()
        self.personality = personality or PersonalityProfile()
        self.bus = bus
        self.clock = clock
        self._lock = threading.RLock()

        now = clock()
        self.experiences = ExperienceProcessor(
            agent_id=agent_id,
            limit=self.config.experience_limit,
            trim_to=self.config.experience_trim_to,
        )
        self.knowledge = KnowledgeStore(decay_seconds=self.config.knowledge_decay_seconds, now=now)
        self.objectives = ObjectiveTracker()
        self.strategies = StrategyEngine(exploration_rate=self.config.exploration_rate)
        self.metacognition = MetaCognitionTracker(self.personality.base_traits)

    @property
    def exploration_rate(self) -> float:
        return self.strategies.exploration_rate

    def action_multiplier(self, action: BehaviorAction, context: BehaviorContext) -> float:
        """Learned preference weight for an action type (1.0 when nothing is learned)."""
        with self._lock:
            return self.strategies.preferences.get_weight(action.type)

    def ingest(
        self,
        context: BehaviorContext,
        action: BehaviorAction,
        outcome: Outcome,
        feedback: Feedback,
        now: Optional[float] = None,
    ) -> IngestResult:
        """
        Learn from one outcome report. Never raises.

        A malformed report is rejected with a reason and leaves every piece
        of learning state untouched.
        """
        now = self.clock() if now is None else now
        with self._lock:
            try:
                experience = self.experiences.build(context, action, outcome, feedback, now)
            except ExperienceRejected as e:
                logger.warning(f"Experience rejected for {self.agent_id}: {e}")
                return IngestResult(accepted=False, reason=str(e))
            except Exception as e:
                logger.error(f"Experience processing failed for {self.agent_id}: {e}", exc_info=True)
                return IngestResult(accepted=False, reason=f"Experience processing failed: {e}")

            try:
                event = self._learn(experience, now)
            except Exception as e:
                logger.error(f"Learning update failed for {self.agent_id}: {e}", exc_info=True)
                return IngestResult(
                    accepted=False,
                    reason=f"Learning update failed: {e}",
                    experience=experience,
                )

        if event is not None and self.bus:
            self.bus.publish(
                EventKind.PERSONALITY_ADJUSTED,
                agent_id=self.agent_id,
                payload={
                    "description": event.description,
                    "mood": event.mood,
                    "confidence_change": event.confidence_change,
                    "impacts": [
                        {"trait": i.trait, "magnitude": i.magnitude, "duration": i.duration}
                        for i in event.impacts
                    ],
                },
            )
        return IngestResult(accepted=True, experience=experience, personality_event=event)

    def _learn(self, experience: LearningExperience, now: float) -> Optional[PersonalityEvent]:
        self.experiences.append(experience)
        self.objectives.update(experience, now)
        self.knowledge.observe(experience, now)
        self.strategies.apply(
            experience,
            self.objectives.ids(),
            self.personality.snapshot(now),
        )
        self.metacognition.update(experience)

        event = personality_event_for(experience, now)
        if event is not None:
            self.personality.process_event(event, now)
            logger.info(f"{self.agent_id}: {event.description}")
        return event

    def tick(self, now: Optional[float] = None) -> MaintenanceReport:
        """Periodic maintenance at wall-clock time ``now``."""
        now = self.clock() if now is None else now
        cutoff = now - self.config.retention_seconds
        with self._lock:
            report = MaintenanceReport(
                forgotten_patterns=self.knowledge.decay(now),
                exploration_rate=self.strategies.recalibrate(self.objectives.overall_progress()),
                stalled_objectives=self.objectives.evaluate_progress(now),
                pruned_experiences=self.experiences.prune(cutoff),
                pruned_achievements=self.objectives.prune(cutoff),
                expired_adjustments=self.personality.sweep(now),
            )
        if report.forgotten_patterns or report.pruned_experiences:
            logger.debug(
                f"Maintenance for {self.agent_id}: forgot {len(report.forgotten_patterns)} patterns, "
                f"pruned {report.pruned_experiences} experiences"
            )
        return report

    def analytics(self) -> Dict[str, Any]:
        """Copy of the agent's learning state, safe to serialize."""
        with self._lock:
            return {
                "objectives": [o.to_dict() for o in self.objectives.all()],
                "strategies": [s.to_dict() for s in self.strategies.all()],
                "knowledgePatterns": self.knowledge.to_list(TOP_KNOWLEDGE),
                "metaCognition": self.metacognition.to_dict(),
                "actionPreferences": self.strategies.preferences.to_dict(),
                "imitationTargets": dict(self.strategies.imitation_targets),
                "systemMetrics": {
                    "totalExperiences": len(self.experiences),
                    "explorationRate": self.strategies.exploration_rate,
                    "learningRate": BASE_LEARNING_RATE,
                    "knowledgeBaseSize": len(self.knowledge),
                    "overallProgress": self.objectives.overall_progress(),
                },
            }
