"""Schedule triggers: who calls ``BatchScheduler.tick`` periodically.

┌──────────────────────────────────────────────────────────────────────────────┐
│  INTERVAL TRIGGER                                                             │
│                                                                               │
│   schedule(callback, interval)                                                │
│      │                                                                        │
│      ▼                                                                        │
│   ┌─────────────────────────────────────────────────────────┐                │
│   │              Daemon Thread (loop)                       │                │
│   │                                                         │                │
│   │   while not stop_event.wait(interval):                  │                │
│   │       tick_count += 1                                   │                │
│   │       last_tick = now()                                 │                │
│   │       callback()                                        │                │
│   └─────────────────────────────────────────────────────────┘                │
│                                                                               │
│   cancel()  →  stop_event.set(); join unless called from the loop itself     │
│                                                                               │
│  The scheduler cancels its own trigger from inside a tick when a pass finds  │
│  no work, so cancel() must not join the calling thread.                      │
└──────────────────────────────────────────────────────────────────────────────┘

``NullTrigger`` records schedule/cancel calls and never calls back; it is
used for one-shot CLI runs and tests.
"""

from __future__ import annotations

import threading
from datetime import datetime
from typing import Any

from content_spine.core.logging import get_logger
from content_spine.core.protocols import TickCallback
from content_spine.core.timestamps import utc_now

logger = get_logger(__name__)


class IntervalTrigger:
    """Calls a callback every ``interval_seconds`` from a daemon thread.

    Example:
        >>> trigger = IntervalTrigger()
        >>> trigger.schedule(scheduler.tick, interval_seconds=120)
        >>> # ... later ...
        >>> trigger.cancel()
    """

    name = "interval"

    def __init__(self) -> None:
        self._stop_event = threading.Event()
        self._thread: threading.Thread | None = None
        self._tick_count = 0
        self._last_tick: datetime | None = None
        self._interval: float = 120.0
        self._lock = threading.Lock()

    def schedule(self, callback: TickCallback, interval_seconds: float = 120.0) -> None:
        if self.is_scheduled:
            logger.debug("trigger.already_scheduled", interval_seconds=self._interval)
            return

        self._interval = interval_seconds
        self._stop_event = threading.Event()
        stop_event = self._stop_event

        def _loop() -> None:
            logger.info("trigger.started", interval_seconds=interval_seconds)
            while not stop_event.wait(interval_seconds):
                with self._lock:
                    self._tick_count += 1
                    self._last_tick = utc_now()
                try:
                    callback()
                except Exception as exc:
                    logger.exception("trigger.tick_failed", error=str(exc))
            logger.info("trigger.stopped")

        self._thread = threading.Thread(target=_loop, daemon=True, name="content-spine-trigger")
        self._thread.start()

    def cancel(self) -> None:
        thread = self._thread
        if thread is None:
            return
        self._stop_event.set()
        if thread is not threading.current_thread():
            thread.join(timeout=5.0)
            if thread.is_alive():
                logger.warning("trigger.stop_timeout")
        self._thread = None

    @property
    def is_scheduled(self) -> bool:
        return self._thread is not None and self._thread.is_alive() and not self._stop_event.is_set()

    @property
    def tick_count(self) -> int:
        return self._tick_count

    def health(self) -> dict[str, Any]:
        return {
            "healthy": self.is_scheduled,
            "trigger": self.name,
            "tick_count": self._tick_count,
            "last_tick": self._last_tick.isoformat() if self._last_tick else None,
            "interval_seconds": self._interval,
        }


class NullTrigger:
    """Never calls back; counts schedule and cancel requests."""

    name = "null"

    def __init__(self) -> None:
        self.scheduled = False
        self.schedule_calls = 0
        self.cancel_calls = 0

    def schedule(self, callback: TickCallback, interval_seconds: float = 120.0) -> None:
        self.schedule_calls += 1
        self.scheduled = True

    def cancel(self) -> None:
        self.cancel_calls += 1
        self.scheduled = False

    @property
    def is_scheduled(self) -> bool:
        return self.scheduled

    def health(self) -> dict[str, Any]:
        return {"healthy": True, "trigger": self.name, "scheduled": self.scheduled}


__all__ = ["IntervalTrigger", "NullTrigger"]
