"""Destinations for emitted status records."""

from __future__ import annotations

from typing import Protocol

import logging
import threading

from .models import StatusRecord


class RecordSink(Protocol):
    """Protocol for consumers of emitted records."""

    def send(self, topic: str, record: StatusRecord) -> None:
        """Accept one record for the given topic."""


class LoggingRecordSink:
    """Write each record to the log as structured context."""

    def __init__(self, logger: logging.Logger | None = None, level: int = logging.INFO) -> None:
        self._logger = logger or logging.getLogger(__name__)
        self._level = level

    def send(self, topic: str, record: StatusRecord) -> None:
        self._logger.log(self._level, "status_record", extra={"topic": topic, "record": record.model_dump(mode="json")})


class MemoryRecordSink:
    """Collect records in memory, in emission order."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._records: list[tuple[str, StatusRecord]] = []

    def send(self, topic: str, record: StatusRecord) -> None:
        with self._lock:
            self._records.append((topic, record))

    @property
    def records(self) -> list[tuple[str, StatusRecord]]:
        with self._lock:
            return list(self._records)

    def topics(self) -> list[str]:
        return [topic for topic, _ in self.records]

    def by_topic(self, topic: str) -> list[StatusRecord]:
        return [record for name, record in self.records if name == topic]

    def clear(self) -> None:
        with self._lock:
            self._records.clear()
