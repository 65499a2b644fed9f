"""
Background maintenance scheduler.

Wraps an explicit ``tick(now)`` callable in a daemon thread that fires
every ``interval_s`` seconds until stopped. Runs never overlap: a tick that
comes due while the previous one is still running is skipped. Manual runs
made through ``exclusive`` share the same guard.
"""
from __future__ import annotations

import logging
import threading
import time
from contextlib import contextmanager
from typing import Any, Callable, Iterator, Optional

logger = logging.getLogger(__name__)

TickFn = Callable[[float], Any]


class MaintenanceScheduler:
    """
    Periodic, cancellable maintenance.

    Example:
        >>> scheduler = MaintenanceScheduler(engine.tick, interval_s=60)
        >>> scheduler.start()
        >>> # ... later ...
        >>> scheduler.stop()
    """

    def __init__(
        self,
        tick: TickFn,
        interval_s: float = 60.0,
        clock: Callable[[], float] = time.time,
        name: str = "behavior-maintenance",
    ):
        self._tick = tick
        self.interval_s = max(0.01, float(interval_s))
        self._clock = clock
        self._name = name
        self._stop_event = threading.Event()
        self._run_lock = threading.Lock()
        self._thread: Optional[threading.Thread] = None
        self.runs = 0
        self.skipped = 0
        self.failures = 0

    @property
    def running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def start(self) -> bool:
        """Start the thread. Returns False if it is already running."""
        if self.running:
            return False
        self._stop_event.clear()
        self._thread = threading.Thread(target=self._loop, daemon=True, name=self._name)
        self._thread.start()
        logger.info(f"Maintenance started (every {self.interval_s}s)")
        return True

    def stop(self, timeout: float = 5.0) -> None:
        self._stop_event.set()
        thread = self._thread
        if thread is not None and thread is not threading.current_thread():
            thread.join(timeout=timeout)
            if thread.is_alive():
                logger.warning(f"Maintenance thread did not stop within {timeout}s")
        self._thread = None

    @contextmanager
    def exclusive(self) -> Iterator[bool]:
        """
        Hold the run guard for the duration of the block.

        Yields False, without waiting, when another run is in flight.
        """
        if not self._run_lock.acquire(blocking=False):
            self.skipped += 1
            logger.debug("Maintenance run skipped, previous run still in progress")
            yield False
            return
        try:
            yield True
        finally:
            self._run_lock.release()

    def run_once(self, now: Optional[float] = None) -> bool:
        """
        Run one tick now unless one is already in flight.

        Returns:
            True if the tick ran
        """
        with self.exclusive() as acquired:
            if not acquired:
                return False
            try:
                self._tick(self._clock() if now is None else now)
            except Exception as e:
                self.failures += 1
                logger.error(f"Maintenance tick failed: {e}", exc_info=True)
                return False
            self.runs += 1
            return True

    def _loop(self) -> None:
        while not self._stop_event.wait(self.interval_s):
            self.run_once()
