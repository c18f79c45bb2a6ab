"""Fixed-rate periodic execution on a dedicated worker thread."""

from __future__ import annotations

from typing import Callable

import logging
import math
import threading
import time


class PeriodicScheduler:
    """Run a task repeatedly at a fixed interval.

    Executions happen on a single worker thread, so tick N+1 never starts
    before tick N returns. Ticks are anchored to a fixed rate; when a tick
    overruns, the missed slots are skipped rather than replayed. Exceptions
    raised by the task are logged and scheduling continues.

    A long-running task may poll :meth:`is_done` to abort early once a stop
    has been requested. Stopping is terminal: a stopped scheduler cannot be
    restarted.
    """

    def __init__(
        self,
        task: Callable[[], None],
        interval_s: float,
        name: str = "periodic",
        run_immediately: bool = False,
        logger: logging.Logger | None = None,
        monotonic: Callable[[], float] = time.monotonic,
    ) -> None:
        _check_interval(interval_s)
        self._task = task
        self._interval = float(interval_s)
        self._name = name
        self._run_immediately = run_immediately
        self._logger = logger or logging.getLogger(__name__)
        self._monotonic = monotonic
        self._condition = threading.Condition()
        self._thread: threading.Thread | None = None
        self._done = False
        # Scheduled instant of the latest tick (or of start()); ticks land on anchor + k * interval.
        self._anchor = 0.0
        self._first_pending = False

    @property
    def name(self) -> str:
        return self._name

    @property
    def interval(self) -> float:
        with self._condition:
            return self._interval

    @property
    def is_running(self) -> bool:
        with self._condition:
            return self._thread is not None and not self._done

    def is_done(self) -> bool:
        """Return True once a stop was requested."""

        with self._condition:
            return self._done

    def start(self) -> None:
        """Start scheduling; a no-op when already running."""

        with self._condition:
            if self._done:
                raise RuntimeError(f"scheduler {self._name!r} is closed")
            if self._thread is not None:
                return
            self._anchor = self._monotonic()
            self._first_pending = self._run_immediately
            self._thread = threading.Thread(target=self._loop, name=f"scheduler-{self._name}", daemon=True)
            self._thread.start()
        self._logger.info("scheduler_started", extra={"scheduler": self._name, "interval_s": self._interval})

    def set_interval(self, interval_s: float) -> None:
        """Change the period; applies from the next tick onward."""

        _check_interval(interval_s)
        with self._condition:
            self._interval = float(interval_s)
            self._condition.notify_all()
        self._logger.info("scheduler_interval_changed", extra={"scheduler": self._name, "interval_s": interval_s})

    def stop(self, timeout: float | None = None) -> None:
        """Cancel future ticks and wait for an in-flight tick to finish."""

        with self._condition:
            already_done = self._done
            self._done = True
            thread = self._thread
            self._condition.notify_all()
        if thread is not None and thread is not threading.current_thread():
            thread.join(timeout)
        if not already_done:
            self._logger.info("scheduler_stopped", extra={"scheduler": self._name})

    def close(self) -> None:
        self.stop()

    def __enter__(self) -> "PeriodicScheduler":
        self.start()
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    def _next_run(self) -> float:
        if self._first_pending:
            return self._anchor
        return self._anchor + self._interval

    def _loop(self) -> None:
        while True:
            with self._condition:
                while not self._done:
                    # Recomputed after every wake-up so interval changes apply to the pending tick.
                    remaining = self._next_run() - self._monotonic()
                    if remaining <= 0:
                        break
                    self._condition.wait(min(remaining, threading.TIMEOUT_MAX))
                if self._done:
                    return
                self._anchor = self._next_run()
                self._first_pending = False
            self._run_once()
            with self._condition:
                missed = int((self._monotonic() - self._anchor) // self._interval)
                if missed > 1:
                    # Run the latest overdue slot once and drop the earlier ones.
                    self._anchor += (missed - 1) * self._interval
                    self._logger.warning(
                        "scheduler_ticks_skipped",
                        extra={"scheduler": self._name, "skipped": missed - 1},
                    )

    def _run_once(self) -> None:
        try:
            self._task()
        except Exception as exc:
            self._logger.error(
                "scheduled_task_failed",
                extra={"scheduler": self._name, "error": str(exc)},
                exc_info=True,
            )


def _check_interval(interval_s: float) -> None:
    if not math.isfinite(interval_s) or interval_s <= 0:
        raise ValueError("interval_s must be a positive finite number")
