"""
Typed engine events.

Telemetry and UI consumers either register an observer (called
synchronously when an event is published) or poll the bounded channel.
Observers that raise are logged and skipped; they never break the
publisher.
"""
from __future__ import annotations

import logging
import threading
import time
from collections import deque
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Deque, Dict, List, Optional, Protocol

logger = logging.getLogger(__name__)


class EventKind(str, Enum):
    BEHAVIOR_SELECTED = "behavior_selected"
    PATTERN_ADDED = "pattern_added"
    PATTERN_REMOVED = "pattern_removed"
    PERSONALITY_ADJUSTED = "personality_adjusted"
    ERROR = "error"


@dataclass(frozen=True)
class EngineEvent:
    """
    Immutable event record.

    Attributes:
        kind: What happened
        agent_id: Agent the event concerns (None for catalog events)
        payload: Event-specific data
        timestamp: Wall-clock seconds when the event was published
        seq: Monotonic sequence number assigned by the bus
    """
    kind: EventKind
    agent_id: Optional[str] = None
    payload: Dict[str, Any] = field(default_factory=dict)
    timestamp: float = field(default_factory=time.time)
    seq: int = 0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "kind": self.kind.value,
            "agent_id": self.agent_id,
            "payload": self.payload,
            "timestamp": self.timestamp,
            "seq": self.seq,
        }


class EventObserver(Protocol):
    def on_event(self, event: EngineEvent) -> None: ...


ObserverCallback = Callable[[EngineEvent], None]


class EventBus:
    """
    Observer registry plus a bounded, pollable channel.

    Example:
        >>> bus = EventBus(maxlen=16)
        >>> bus.subscribe(lambda e: print(e.kind))
        >>> bus.publish(EventKind.PATTERN_ADDED, payload={"pattern_id": "x"})
        >>> bus.poll()  # drains buffered events
    """

    def __init__(self, maxlen: int = 256):
        self._lock = threading.Lock()
        self._observers: List[ObserverCallback] = []
        self._buffer: Deque[EngineEvent] = deque(maxlen=max(1, maxlen))
        self._seq = 0
        self.dropped = 0

    def subscribe(self, observer: Any) -> ObserverCallback:
        """
        Register an observer.

        Accepts either a callable or an object with ``on_event``.
        Returns the callable actually registered, for ``unsubscribe``.
        """
        callback = observer.on_event if hasattr(observer, "on_event") else observer
        with self._lock:
            self._observers.append(callback)
        return callback

    def unsubscribe(self, callback: ObserverCallback) -> bool:
        with self._lock:
            if callback in self._observers:
                self._observers.remove(callback)
                return True
        return False

    def publish(
        self,
        kind: EventKind,
        agent_id: Optional[str] = None,
        payload: Optional[Dict[str, Any]] = None,
    ) -> EngineEvent:
        with self._lock:
            self._seq += 1
            event = EngineEvent(kind=kind, agent_id=agent_id, payload=payload or {}, seq=self._seq)
            if len(self._buffer) == self._buffer.maxlen:
                self.dropped += 1
            self._buffer.append(event)
            observers = list(self._observers)

        for callback in observers:
            try:
                callback(event)
            except Exception as e:
                logger.error(f"Event observer failed on {kind.value}: {e}")
        return event

    def poll(self, max_items: Optional[int] = None) -> List[EngineEvent]:
        """Drain buffered events, oldest first."""
        with self._lock:
            count = len(self._buffer) if max_items is None else min(max_items, len(self._buffer))
            return [self._buffer.popleft() for _ in range(count)]

    def pending(self) -> int:
        with self._lock:
            return len(self._buffer)
