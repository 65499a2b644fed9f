"""
REST API server for the behavior engine.

Lets a game server that is not written in Python register agents, request
decisions each turn and report outcomes.

Run with:
    tycoon-behavior serve --port 8000
"""
from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional

from fastapi import FastAPI, HTTPException, Query
from fastapi.middleware.cors import CORSMiddleware
from pydantic import BaseModel, Field

from . import __version__
from .config import EngineConfig, list_presets
from .engine import BehaviorEngine

logger = logging.getLogger(__name__)


# ============================================================================
# Pydantic Models for API
# ============================================================================

class AgentCreateRequest(BaseModel):
    """Request to register an agent."""
    agent_id: str = Field(..., min_length=1, description="Agent / player id")
    preset: Optional[str] = Field(None, description="Built-in personality preset name")
    traits: Optional[Dict[str, float]] = Field(None, description="Explicit trait values (0.0 to 1.0)")


class DecideRequest(BaseModel):
    """Game-state snapshot for one decision."""
    context: Dict[str, Any] = Field(..., description="Behavior context as JSON")


class FeedbackChannels(BaseModel):
    objective: float = Field(..., ge=-1.0, le=1.0)
    subjective: float = Field(..., ge=-1.0, le=1.0)
    environmental: float = Field(..., ge=-1.0, le=1.0)
    social: float = Field(..., ge=-1.0, le=1.0)


class OutcomeRequest(BaseModel):
    """Result of an action the agent took."""
    context: Dict[str, Any]
    action: Dict[str, Any]
    outcome: Optional[Dict[str, Any]] = None
    feedback: FeedbackChannels


class IngestResponse(BaseModel):
    accepted: bool
    reason: str = ""
    experience_id: Optional[str] = None
    learning_value: Optional[float] = None
    personality_event: Optional[str] = None


class PatternSummary(BaseModel):
    id: str
    name: str
    category: str
    confidence: float
    actions: List[str] = []


# ============================================================================
# API Server
# ============================================================================

class BehaviorAPIServer:
    """
    FastAPI server wrapping one ``BehaviorEngine``.

    Endpoints cover agent registration, decisions, outcome feedback,
    catalog management and the read-only analytics.
    """

    def __init__(self, engine: Optional[BehaviorEngine] = None, config: Optional[EngineConfig] = None):
        self.engine = engine or BehaviorEngine(config)

        self.app = FastAPI(
            title="Tycoon Behavior Engine API",
            description="Behavior pattern selection and adaptive learning for board-game agents",
            version=__version__,
        )

        self.app.add_middleware(
            CORSMiddleware,
            allow_origins=["*"],
            allow_credentials=True,
            allow_methods=["*"],
            allow_headers=["*"],
        )

        self._register_routes()

    def _require_agent(self, agent_id: str) -> None:
        if self.engine.handle_for(agent_id) is None:
            raise HTTPException(status_code=404, detail=f"Unknown agent: {agent_id}")

    def _register_routes(self):
        """Register all API routes."""
        engine = self.engine

        @self.app.get("/")
        def root():
            """API health check."""
            return {
                "status": "ok",
                "engine": "Tycoon Behavior Engine",
                "version": __version__,
                "agents": len(engine.agents()),
                "patterns": len(engine.catalog),
            }

        @self.app.get("/presets", response_model=List[str])
        def get_presets():
            """List personality presets."""
            return list_presets()

        @self.app.get("/patterns", response_model=List[PatternSummary])
        def get_patterns():
            return [
                PatternSummary(
                    id=p.id,
                    name=p.name,
                    category=p.category.value,
                    confidence=p.confidence,
                    actions=[a.type for a in p.actions],
                )
                for p in engine.patterns()
            ]

        @self.app.post("/patterns", status_code=201)
        def add_pattern(pattern: Dict[str, Any], replace: bool = Query(False)):
            """Register a custom pattern."""
            if not engine.add_custom_pattern(pattern, replace=replace):
                raise HTTPException(status_code=400, detail="Pattern rejected")
            return {"status": "added", "pattern_id": pattern.get("id")}

        @self.app.delete("/patterns/{pattern_id}")
        def delete_pattern(pattern_id: str):
            if not engine.remove_pattern(pattern_id):
                raise HTTPException(status_code=404, detail=f"Pattern not removable: {pattern_id}")
            return {"status": "removed", "pattern_id": pattern_id}

        @self.app.get("/agents", response_model=List[str])
        def list_agents():
            return engine.agents()

        @self.app.post("/agents", status_code=201)
        def create_agent(request: AgentCreateRequest):
            personality: Any = request.traits if request.traits is not None else request.preset
            handle = engine.register_agent(request.agent_id, personality)
            if handle is None:
                raise HTTPException(status_code=400, detail="Agent registration rejected")
            return {"status": "registered", "agent_id": request.agent_id}

        @self.app.delete("/agents/{agent_id}")
        def delete_agent(agent_id: str):
            if not engine.remove_agent(agent_id):
                raise HTTPException(status_code=404, detail=f"Unknown agent: {agent_id}")
            return {"status": "removed", "agent_id": agent_id}

        @self.app.post("/agents/{agent_id}/decide")
        def decide(agent_id: str, request: DecideRequest):
            """Choose a behavior for this turn. Malformed contexts yield the fallback decision."""
            self._require_agent(agent_id)
            decision = engine.decide(agent_id, request.context)
            if decision is None:
                raise HTTPException(status_code=409, detail="Decision cancelled")
            return decision.to_dict()

        @self.app.post("/agents/{agent_id}/feedback", response_model=IngestResponse)
        def feedback(agent_id: str, request: OutcomeRequest):
            self._require_agent(agent_id)
            result = engine.record_outcome(
                agent_id,
                request.context,
                request.action,
                request.outcome,
                request.feedback.model_dump(),
            )
            return IngestResponse(
                accepted=result.accepted,
                reason=result.reason,
                experience_id=result.experience.id if result.experience else None,
                learning_value=result.experience.learning_value if result.experience else None,
                personality_event=(
                    result.personality_event.description if result.personality_event else None
                ),
            )

        @self.app.get("/agents/{agent_id}/analysis")
        def pattern_analysis(agent_id: str):
            self._require_agent(agent_id)
            return engine.get_pattern_analysis(agent_id)

        @self.app.get("/agents/{agent_id}/learning")
        def learning_analytics(agent_id: str):
            self._require_agent(agent_id)
            return engine.get_learning_analytics(agent_id)

        @self.app.get("/agents/{agent_id}/history")
        def behavior_history(agent_id: str, limit: int = Query(20, ge=1, le=100)):
            self._require_agent(agent_id)
            return {
                "agent_id": agent_id,
                "decisions": engine.get_behavior_history(agent_id, limit),
            }

        @self.app.get("/events")
        def poll_events(max_items: int = Query(100, ge=1, le=1000)):
            """Drain buffered engine events."""
            return [e.to_dict() for e in engine.poll_events(max_items)]

        @self.app.post("/maintenance/tick")
        def tick():
            summary = engine.tick()
            if summary is None:
                raise HTTPException(status_code=409, detail="Maintenance already in progress")
            return summary


def create_app(
    engine: Optional[BehaviorEngine] = None,
    config: Optional[EngineConfig] = None,
) -> FastAPI:
    """Create and configure the FastAPI application."""
    server = BehaviorAPIServer(engine=engine, config=config)
    return server.app
