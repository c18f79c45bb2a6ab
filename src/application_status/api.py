"""Public API facade for the status reporter.

This module assembles a reporter from settings with the default SNTP probe,
address resolver and log-backed record sink.
"""

from __future__ import annotations

from datetime import tzinfo

import logging

from .config import StatusSettings
from .events import StatusEventFeed
from .logging_utils import configure_logging
from .reporter import ApplicationStatusReporter
from .sink import LoggingRecordSink, RecordSink
from .sntp import TimeSyncProbe


def build_status_reporter(
    settings: StatusSettings | None = None,
    sink: RecordSink | None = None,
    feed: StatusEventFeed | None = None,
    probe: TimeSyncProbe | None = None,
    tz: tzinfo | None = None,
    logger: logging.Logger | None = None,
    configure_logs: bool = True,
) -> ApplicationStatusReporter:
    """Create a reporter from settings with sensible defaults."""

    settings = settings or StatusSettings()
    if configure_logs:
        configure_logging(settings.logging)

    logger = logger or logging.getLogger("application_status")
    return ApplicationStatusReporter(
        sink=sink or LoggingRecordSink(logger=logger.getChild("records")),
        status_update_interval_s=settings.status_update_interval_s,
        timezone_update_interval_s=settings.timezone_update_interval_s,
        time_sync_server=settings.time_sync_server,
        time_sync_timeout_s=settings.time_sync_timeout_s,
        include_ip_address=settings.include_ip_address,
        run_on_start=settings.run_on_start,
        probe=probe,
        feed=feed,
        tz=tz,
        logger=logger,
    )
