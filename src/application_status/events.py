"""Inbound status events and the in-process feed that delivers them."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Union

import logging
import threading

from .state import NUMBER_UNKNOWN, UploadStatus


@dataclass(frozen=True)
class ServerStatusChanged:
    """The uploader's connection to the collector changed."""

    status: UploadStatus


@dataclass(frozen=True)
class RecordsSent:
    """A batch of records reached the collector; -1 means the count is unknown."""

    count: int


@dataclass(frozen=True)
class CacheDepthChanged:
    """A channel's local cache backlog changed."""

    channel: str
    unsent: int = NUMBER_UNKNOWN
    sent: int = NUMBER_UNKNOWN


StatusEvent = Union[ServerStatusChanged, RecordsSent, CacheDepthChanged]
StatusEventHandler = Callable[[StatusEvent], None]


class StatusEventFeed:
    """Thread-safe publish/subscribe channel for status events.

    Handlers run synchronously on the publishing thread. A failing handler is
    logged and does not prevent delivery to the others.
    """

    def __init__(self, logger: logging.Logger | None = None) -> None:
        self._handlers: list[StatusEventHandler] = []
        self._lock = threading.Lock()
        self._logger = logger or logging.getLogger(__name__)

    def subscribe(self, handler: StatusEventHandler) -> None:
        with self._lock:
            if handler not in self._handlers:
                self._handlers.append(handler)

    def unsubscribe(self, handler: StatusEventHandler) -> None:
        with self._lock:
            if handler in self._handlers:
                self._handlers.remove(handler)

    def publish(self, event: StatusEvent) -> None:
        with self._lock:
            handlers = list(self._handlers)
        for handler in handlers:
            try:
                handler(event)
            except Exception as exc:
                self._logger.error(
                    "status_event_handler_failed",
                    extra={"event": type(event).__name__, "error": str(exc)},
                )
