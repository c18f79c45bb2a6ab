"""Thread-safe aggregation of asynchronous status events."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Callable

import threading
import time

from .models import ConnectivityStatus

NUMBER_UNKNOWN = -1  # sentinel for a count the producer did not supply


class UploadStatus(str, Enum):
    """Status reported by the record uploader."""

    CONNECTED = "CONNECTED"
    CONNECTING = "CONNECTING"
    READY = "READY"
    UPLOADING = "UPLOADING"
    UPLOADING_FAILED = "UPLOADING_FAILED"
    DISCONNECTED = "DISCONNECTED"
    DISABLED = "DISABLED"
    UNAUTHORIZED = "UNAUTHORIZED"


_CONNECTIVITY = {
    UploadStatus.CONNECTED: ConnectivityStatus.CONNECTED,
    UploadStatus.READY: ConnectivityStatus.CONNECTED,
    UploadStatus.UPLOADING: ConnectivityStatus.CONNECTED,
    UploadStatus.DISCONNECTED: ConnectivityStatus.DISCONNECTED,
    UploadStatus.DISABLED: ConnectivityStatus.DISCONNECTED,
    UploadStatus.UPLOADING_FAILED: ConnectivityStatus.DISCONNECTED,
}


def connectivity_from_upload_status(status: UploadStatus | None) -> ConnectivityStatus:
    """Collapse an uploader status into connected/disconnected/unknown."""

    if status is None:
        return ConnectivityStatus.UNKNOWN
    return _CONNECTIVITY.get(status, ConnectivityStatus.UNKNOWN)


@dataclass(frozen=True)
class CachedRecordCounts:
    """Backlog of one channel's local cache."""

    unsent: int = NUMBER_UNKNOWN
    sent: int = NUMBER_UNKNOWN


@dataclass(frozen=True)
class CacheTotals:
    """Cache counts summed over all channels, unknown values excluded."""

    unsent: int
    sent: int

    @property
    def total(self) -> int:
        return self.unsent + self.sent


class ApplicationState:
    """Snapshot of the reporter's health as seen through inbound events.

    Every field is read and written under a single lock, so a tick reading the
    state never observes a half-applied event.
    """

    def __init__(self, monotonic: Callable[[], float] = time.monotonic) -> None:
        self._monotonic = monotonic
        self._lock = threading.Lock()
        self._creation_time = monotonic()
        self._server_status: UploadStatus | None = None
        self._records_sent = 0
        self._cached_records: dict[str, CachedRecordCounts] = {}

    @property
    def creation_time(self) -> float:
        return self._creation_time

    def uptime(self) -> float:
        return self._monotonic() - self._creation_time

    @property
    def server_status(self) -> UploadStatus | None:
        with self._lock:
            return self._server_status

    def set_server_status(self, status: UploadStatus) -> None:
        with self._lock:
            self._server_status = status

    @property
    def records_sent(self) -> int:
        with self._lock:
            return self._records_sent

    def add_records_sent(self, count: int) -> None:
        if count < 0:
            raise ValueError("count must be non-negative")
        with self._lock:
            self._records_sent += count

    def put_cached_records(self, channel: str, counts: CachedRecordCounts) -> None:
        with self._lock:
            self._cached_records[channel] = counts

    def cached_records(self) -> dict[str, CachedRecordCounts]:
        with self._lock:
            return dict(self._cached_records)

    def cache_totals(self) -> CacheTotals:
        unsent = 0
        sent = 0
        for counts in self.cached_records().values():
            if counts.unsent >= 0:
                unsent += counts.unsent
            if counts.sent >= 0:
                sent += counts.sent
        return CacheTotals(unsent=unsent, sent=sent)
