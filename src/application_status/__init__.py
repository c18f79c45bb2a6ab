"""Top-level package for periodic application status reporting."""

from .api import build_status_reporter
from .config import LoggingConfig, StatusSettings
from .daemon import StatusDaemon, run_daemon
from .events import CacheDepthChanged, RecordsSent, ServerStatusChanged, StatusEvent, StatusEventFeed
from .logging_utils import JsonFormatter, configure_logging
from .models import (
    ConnectivityStatus,
    ExternalTimeProtocol,
    ExternalTimeRecord,
    RecordCountsRecord,
    ServerStatusRecord,
    StatusRecord,
    TimeZoneRecord,
    UptimeRecord,
)
from .network import IpAddressResolver
from .observability import HealthMonitor, HealthStatus
from .reporter import ApplicationStatusReporter, ReporterStatus
from .scheduler import PeriodicScheduler
from .sink import LoggingRecordSink, MemoryRecordSink, RecordSink
from .sntp import SntpClient, TimeSyncProbe, TimeSyncResult
from .state import (
    NUMBER_UNKNOWN,
    ApplicationState,
    CachedRecordCounts,
    CacheTotals,
    UploadStatus,
    connectivity_from_upload_status,
)
from .timezone import TimeZoneReporter, utc_offset_seconds

__all__ = [
    "build_status_reporter",
    "LoggingConfig",
    "StatusSettings",
    "StatusDaemon",
    "run_daemon",
    "CacheDepthChanged",
    "RecordsSent",
    "ServerStatusChanged",
    "StatusEvent",
    "StatusEventFeed",
    "JsonFormatter",
    "configure_logging",
    "ConnectivityStatus",
    "ExternalTimeProtocol",
    "ExternalTimeRecord",
    "RecordCountsRecord",
    "ServerStatusRecord",
    "StatusRecord",
    "TimeZoneRecord",
    "UptimeRecord",
    "IpAddressResolver",
    "HealthMonitor",
    "HealthStatus",
    "ApplicationStatusReporter",
    "ReporterStatus",
    "PeriodicScheduler",
    "LoggingRecordSink",
    "MemoryRecordSink",
    "RecordSink",
    "SntpClient",
    "TimeSyncProbe",
    "TimeSyncResult",
    "NUMBER_UNKNOWN",
    "ApplicationState",
    "CachedRecordCounts",
    "CacheTotals",
    "UploadStatus",
    "connectivity_from_upload_status",
    "TimeZoneReporter",
    "utc_offset_seconds",
]
