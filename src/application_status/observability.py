"""Health tracking for the status reporter itself."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable

import threading
import time


@dataclass
class HealthStatus:
    """Health status snapshot."""

    last_tick: float | None
    last_time_sync: float | None
    ok: bool


class HealthMonitor:
    """Track freshness of completed status ticks and time synchronizations."""

    def __init__(self, freshness_window: float = 900.0, clock: Callable[[], float] = time.time) -> None:
        self._freshness_window = freshness_window
        self._clock = clock
        self._lock = threading.Lock()
        self._last_tick: float | None = None
        self._last_time_sync: float | None = None

    @property
    def freshness_window(self) -> float:
        return self._freshness_window

    def set_freshness_window(self, window: float) -> None:
        with self._lock:
            self._freshness_window = window

    def mark_tick(self) -> None:
        with self._lock:
            self._last_tick = self._clock()

    def mark_time_sync(self) -> None:
        with self._lock:
            self._last_time_sync = self._clock()

    def status(self) -> HealthStatus:
        now = self._clock()
        with self._lock:
            last_tick = self._last_tick
            last_sync = self._last_time_sync
            window = self._freshness_window
        ok = last_tick is not None and now - last_tick <= window
        return HealthStatus(last_tick=last_tick, last_time_sync=last_sync, ok=ok)
