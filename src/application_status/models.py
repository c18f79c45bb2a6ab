"""Pydantic models for emitted status records."""

from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, ConfigDict, Field


class ConnectivityStatus(str, Enum):
    """Connectivity to the remote collector as reported in status records."""

    CONNECTED = "CONNECTED"
    DISCONNECTED = "DISCONNECTED"
    UNKNOWN = "UNKNOWN"


class ExternalTimeProtocol(str, Enum):
    """Protocol used to obtain a reference time."""

    SNTP = "SNTP"


class StatusRecord(BaseModel):
    """Base class for all emitted records."""

    model_config = ConfigDict(frozen=True, extra="forbid")


class ServerStatusRecord(StatusRecord):
    time: float
    status: ConnectivityStatus
    ip_address: str | None = None


class UptimeRecord(StatusRecord):
    time: float
    uptime_seconds: float = Field(ge=0.0)


class RecordCountsRecord(StatusRecord):
    time: float
    # Unsent plus sent records still held in local caches.
    cached_records: int = Field(ge=0)
    records_sent: int = Field(ge=0)
    cached_unsent_records: int = Field(ge=0)


class ExternalTimeRecord(StatusRecord):
    local_time: float
    estimated_true_time: float
    server: str
    protocol: ExternalTimeProtocol = ExternalTimeProtocol.SNTP
    round_trip_delay: float = Field(ge=0.0)


class TimeZoneRecord(StatusRecord):
    time: float
    offset_seconds: int
