"""Periodic application status reporting.

The reporter owns two independent schedulers. The status scheduler runs a
composite tick that emits, in order, the server status, the uptime, the record
counts and the reference time, checking between steps whether it has been
asked to stop. The timezone scheduler emits the UTC offset on its own period.

Inbound status events may arrive on any thread; they are folded into an
:class:`ApplicationState` that the tick reads.
"""

from __future__ import annotations

from datetime import tzinfo
from enum import Enum
from typing import Callable

import logging
import math
import threading
import time

from .events import CacheDepthChanged, RecordsSent, ServerStatusChanged, StatusEvent, StatusEventFeed
from .models import (
    ExternalTimeProtocol,
    ExternalTimeRecord,
    RecordCountsRecord,
    ServerStatusRecord,
    UptimeRecord,
)
from .network import IpAddressResolver
from .observability import HealthMonitor
from .scheduler import PeriodicScheduler
from .sink import RecordSink
from .sntp import SntpClient, TimeSyncProbe
from .state import (
    NUMBER_UNKNOWN,
    ApplicationState,
    CachedRecordCounts,
    UploadStatus,
    connectivity_from_upload_status,
)
from .timezone import TimeZoneReporter

SERVER_STATUS_TOPIC = "application_server_status"
UPTIME_TOPIC = "application_uptime"
RECORD_COUNTS_TOPIC = "application_record_counts"
EXTERNAL_TIME_TOPIC = "application_external_time"

DEFAULT_TIME_SYNC_TIMEOUT_S = 5.0
# Health is stale once this many status intervals pass without a completed tick.
HEALTH_FRESHNESS_INTERVALS = 3


class ReporterStatus(str, Enum):
    """Lifecycle of the reporter."""

    READY = "READY"
    CONNECTED = "CONNECTED"
    DISCONNECTED = "DISCONNECTED"


class ApplicationStatusReporter:
    """Collect and periodically report the health of the host application."""

    def __init__(
        self,
        sink: RecordSink,
        status_update_interval_s: float = 300.0,
        timezone_update_interval_s: float = 0.0,
        time_sync_server: str | None = None,
        time_sync_timeout_s: float = DEFAULT_TIME_SYNC_TIMEOUT_S,
        include_ip_address: bool = False,
        run_on_start: bool = False,
        probe: TimeSyncProbe | None = None,
        ip_resolver: IpAddressResolver | None = None,
        state: ApplicationState | None = None,
        feed: StatusEventFeed | None = None,
        health: HealthMonitor | None = None,
        tz: tzinfo | None = None,
        clock: Callable[[], float] = time.time,
        monotonic: Callable[[], float] = time.monotonic,
        logger: logging.Logger | None = None,
    ) -> None:
        if time_sync_timeout_s <= 0:
            raise ValueError("time_sync_timeout_s must be positive")
        self._sink = sink
        self._clock = clock
        self._monotonic = monotonic
        self._logger = logger or logging.getLogger(__name__)
        self._probe = probe or SntpClient(clock=clock, monotonic=monotonic, logger=self._logger)
        self._ip_resolver = ip_resolver or IpAddressResolver(logger=self._logger)
        self._state = state or ApplicationState(monotonic=monotonic)
        self._feed = feed
        self._health = health or HealthMonitor(clock=clock)
        self._time_sync_timeout = time_sync_timeout_s
        self._lock = threading.Lock()
        self._time_sync_server: str | None = None
        self._include_ip_address = include_ip_address
        self._status = ReporterStatus.DISCONNECTED
        self._closed = False

        self._scheduler = PeriodicScheduler(
            self.run,
            status_update_interval_s,
            name="application-status",
            run_immediately=run_on_start,
            logger=self._logger,
            monotonic=monotonic,
        )
        self._health.set_freshness_window(status_update_interval_s * HEALTH_FRESHNESS_INTERVALS)
        self._tz_reporter = TimeZoneReporter(sink, tz=tz, clock=clock, logger=self._logger)
        self._tz_scheduler: PeriodicScheduler | None = None

        self.set_time_sync_server(time_sync_server)
        self.set_timezone_update_interval(timezone_update_interval_s)

    @property
    def state(self) -> ApplicationState:
        return self._state

    @property
    def health(self) -> HealthMonitor:
        return self._health

    @property
    def status(self) -> ReporterStatus:
        with self._lock:
            return self._status

    @property
    def scheduler(self) -> PeriodicScheduler:
        return self._scheduler

    @property
    def timezone_scheduler(self) -> PeriodicScheduler | None:
        with self._lock:
            return self._tz_scheduler

    def start(self) -> None:
        """Start both schedulers and subscribe to the event feed."""

        with self._lock:
            if self._closed:
                raise RuntimeError("reporter is closed")
            if self._status is ReporterStatus.CONNECTED:
                return
            self._status = ReporterStatus.READY

        self._logger.info("reporter_starting")
        self._scheduler.start()
        if self._feed is not None:
            self._feed.subscribe(self.handle_event)

        with self._lock:
            self._status = ReporterStatus.CONNECTED
            if self._tz_scheduler is not None:
                self._tz_scheduler.start()

    def close(self) -> None:
        """Stop reporting; waits for in-flight ticks. The reporter cannot be restarted."""

        self._logger.info("reporter_closing")
        with self._lock:
            self._closed = True
            self._status = ReporterStatus.DISCONNECTED
            tz_scheduler = self._tz_scheduler
            self._tz_scheduler = None
        # Joined outside the lock: a running tick reads configuration under it.
        self._scheduler.stop()
        if tz_scheduler is not None:
            tz_scheduler.stop()
        if self._feed is not None:
            self._feed.unsubscribe(self.handle_event)

    def __enter__(self) -> "ApplicationStatusReporter":
        self.start()
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    # Configuration

    @property
    def time_sync_server(self) -> str | None:
        with self._lock:
            return self._time_sync_server

    def set_time_sync_server(self, server: str | None) -> None:
        """Set the SNTP server; None or a blank string disables reference time."""

        value = server.strip() if server else ""
        with self._lock:
            self._time_sync_server = value or None

    @property
    def include_ip_address(self) -> bool:
        with self._lock:
            return self._include_ip_address

    def set_include_ip_address(self, include: bool) -> None:
        with self._lock:
            self._include_ip_address = include

    def set_status_update_interval(self, interval_s: float) -> None:
        """Change the status period; non-positive values raise ValueError."""

        self._scheduler.set_interval(interval_s)
        self._health.set_freshness_window(interval_s * HEALTH_FRESHNESS_INTERVALS)

    def set_timezone_update_interval(self, interval_s: float) -> None:
        """Change the timezone period; zero or negative disables timezone reports."""

        if math.isnan(interval_s):
            raise ValueError("interval_s must be a number")
        stopped: PeriodicScheduler | None = None
        with self._lock:
            if interval_s > 0:
                if self._tz_scheduler is None:
                    self._tz_scheduler = PeriodicScheduler(
                        self._tz_reporter,
                        interval_s,
                        name="time-zone",
                        logger=self._logger,
                        monotonic=self._monotonic,
                    )
                    if self._status is ReporterStatus.CONNECTED:
                        self._tz_scheduler.start()
                else:
                    self._tz_scheduler.set_interval(interval_s)
            elif self._tz_scheduler is not None:
                stopped = self._tz_scheduler
                self._tz_scheduler = None
        if stopped is not None:
            stopped.stop()

    # Inbound events

    def handle_event(self, event: StatusEvent) -> None:
        if isinstance(event, ServerStatusChanged):
            self.on_server_status_changed(event.status)
        elif isinstance(event, RecordsSent):
            self.on_records_sent(event.count)
        elif isinstance(event, CacheDepthChanged):
            self.on_cache_depth_changed(event.channel, event.unsent, event.sent)
        else:
            self._logger.warning("unknown_status_event", extra={"event": type(event).__name__})

    def on_server_status_changed(self, status: UploadStatus) -> None:
        self._state.set_server_status(status)

    def on_records_sent(self, count: int) -> None:
        if count == NUMBER_UNKNOWN:
            return
        if count < 0:
            self._logger.warning("invalid_records_sent", extra={"count": count})
            return
        self._state.add_records_sent(count)

    def on_cache_depth_changed(self, channel: str, unsent: int = NUMBER_UNKNOWN, sent: int = NUMBER_UNKNOWN) -> None:
        if (unsent < 0 and unsent != NUMBER_UNKNOWN) or (sent < 0 and sent != NUMBER_UNKNOWN):
            self._logger.warning(
                "invalid_cache_depth", extra={"channel": channel, "unsent": unsent, "sent": sent}
            )
            unsent = unsent if unsent >= 0 else NUMBER_UNKNOWN
            sent = sent if sent >= 0 else NUMBER_UNKNOWN
        self._state.put_cached_records(channel, CachedRecordCounts(unsent=unsent, sent=sent))

    # Status tick

    def run(self) -> None:
        """Run one status tick, stopping early once the scheduler is stopped."""

        self._logger.info("status_update_started")
        try:
            self._process_server_status()
            if self._scheduler.is_done():
                return
            self._process_uptime()
            if self._scheduler.is_done():
                return
            self._process_record_counts()
            if self._scheduler.is_done():
                return
            self._process_reference_time()
            self._health.mark_tick()
        except Exception as exc:
            self._logger.error("status_update_failed", extra={"error": str(exc)}, exc_info=True)

    def _process_server_status(self) -> None:
        now = self._clock()
        status = connectivity_from_upload_status(self._state.server_status)
        ip_address = self._ip_resolver.resolve() if self.include_ip_address else None
        self._logger.info("server_status", extra={"status": status.value, "ip_address": ip_address})
        self._sink.send(SERVER_STATUS_TOPIC, ServerStatusRecord(time=now, status=status, ip_address=ip_address))

    def _process_uptime(self) -> None:
        now = self._clock()
        self._sink.send(UPTIME_TOPIC, UptimeRecord(time=now, uptime_seconds=self._state.uptime()))

    def _process_record_counts(self) -> None:
        now = self._clock()
        totals = self._state.cache_totals()
        records_sent = self._state.records_sent
        self._logger.info(
            "record_counts",
            extra={"sent": records_sent, "unsent": totals.unsent, "cached": totals.total},
        )
        self._sink.send(
            RECORD_COUNTS_TOPIC,
            RecordCountsRecord(
                time=now,
                cached_records=totals.total,
                records_sent=records_sent,
                cached_unsent_records=totals.unsent,
            ),
        )

    def _process_reference_time(self) -> None:
        server = self.time_sync_server
        if server is None:
            return
        result = self._probe(server, self._time_sync_timeout)
        if result is None:
            self._logger.debug("reference_time_skipped", extra={"server": server})
            return
        self._sink.send(
            EXTERNAL_TIME_TOPIC,
            ExternalTimeRecord(
                local_time=self._clock(),
                estimated_true_time=result.estimated_time(self._monotonic()),
                server=server,
                protocol=ExternalTimeProtocol.SNTP,
                round_trip_delay=result.round_trip_delay,
            ),
        )
        self._health.mark_time_sync()
