"""Daemon service for running the status reporter in a long-lived process."""

from __future__ import annotations

import logging
import signal
import threading

from .api import build_status_reporter
from .config import StatusSettings
from .reporter import ApplicationStatusReporter


class StatusDaemon:
    """Daemon runner keeping a reporter alive until stopped."""

    def __init__(self, reporter: ApplicationStatusReporter) -> None:
        self._reporter = reporter
        self._logger = logging.getLogger(__name__)
        self._stop = threading.Event()

    def run(self) -> None:
        """Start the reporter and block until :meth:`stop` is called."""

        self._reporter.start()
        self._logger.info("daemon_started")
        try:
            self._stop.wait()
        finally:
            self._reporter.close()
            status = self._reporter.health.status()
            self._logger.info(
                "daemon_stopped",
                extra={"last_tick": status.last_tick, "last_time_sync": status.last_time_sync},
            )

    def stop(self) -> None:
        """Stop the daemon loop."""

        self._stop.set()


def run_daemon(settings: StatusSettings | None = None) -> None:
    """Entry point for a basic daemon execution, stopped by SIGINT or SIGTERM."""

    reporter = build_status_reporter(settings=settings)
    daemon = StatusDaemon(reporter)

    def _handle_signal(signum: int, frame: object) -> None:
        del frame
        logging.getLogger(__name__).info("daemon_signal", extra={"signal": signum})
        daemon.stop()

    signal.signal(signal.SIGINT, _handle_signal)
    signal.signal(signal.SIGTERM, _handle_signal)
    daemon.run()
