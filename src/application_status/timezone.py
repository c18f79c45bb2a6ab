"""Timezone offset reporting."""

from __future__ import annotations

from datetime import datetime, timezone, tzinfo
from typing import Callable

import logging
import time

from .models import TimeZoneRecord
from .sink import RecordSink

TIME_ZONE_TOPIC = "application_time_zone"


def utc_offset_seconds(timestamp: float, tz: tzinfo | None = None) -> int:
    """UTC offset in whole seconds in effect at ``timestamp``.

    With ``tz`` None the process's local timezone rules are used. The offset is
    evaluated at the given instant so daylight-saving transitions are honoured.
    """

    if tz is None:
        moment = datetime.fromtimestamp(timestamp, timezone.utc).astimezone()
    else:
        moment = datetime.fromtimestamp(timestamp, tz)
    offset = moment.utcoffset()
    return int(offset.total_seconds()) if offset is not None else 0


class TimeZoneReporter:
    """Scheduled task emitting the current UTC offset."""

    def __init__(
        self,
        sink: RecordSink,
        tz: tzinfo | None = None,
        clock: Callable[[], float] = time.time,
        logger: logging.Logger | None = None,
    ) -> None:
        self._sink = sink
        self._tz = tz
        self._clock = clock
        self._logger = logger or logging.getLogger(__name__)

    def __call__(self) -> None:
        now = self._clock()
        offset = utc_offset_seconds(now, self._tz)
        self._logger.debug("time_zone_offset", extra={"offset_s": offset})
        self._sink.send(TIME_ZONE_TOPIC, TimeZoneRecord(time=now, offset_seconds=offset))
