"""Single-exchange SNTP client used to estimate local clock offset."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Protocol

import logging
import socket
import struct
import time

NTP_EPOCH = 2208988800  # seconds between 1900-01-01 and 1970-01-01
NTP_PORT = 123
NTP_PACKET_SIZE = 48

_MODE_CLIENT = 3
_MODE_SERVER = 4
_MODE_BROADCAST = 5
_VERSION = 3
_LEAP_NOT_SYNCHRONIZED = 3

_PACKET = struct.Struct("!BBbbII4sQQQQ")


@dataclass(frozen=True)
class TimeSyncResult:
    """Outcome of one successful SNTP exchange."""

    # Local wall-clock time when the request was sent.
    local_send_time: float
    # Estimated server time minus local time (seconds).
    offset: float
    round_trip_delay: float
    # Estimated true time at the moment the reply was received.
    ntp_time: float
    # Monotonic clock reading taken together with ``ntp_time``.
    reference_monotonic: float

    def estimated_time(self, monotonic_now: float) -> float:
        """Advance the reference time to ``monotonic_now``."""

        return self.ntp_time + (monotonic_now - self.reference_monotonic)


class TimeSyncProbe(Protocol):
    """Callable performing a single bounded time exchange."""

    def __call__(self, server: str, timeout: float) -> TimeSyncResult | None:
        """Return a result, or None when the exchange failed."""


class SntpError(ValueError):
    """Malformed or unusable SNTP reply."""


class SntpClient:
    """SNTP client performing one request/response exchange per call.

    Failures (timeouts, unreachable servers, invalid replies) are logged and
    reported as ``None``; nothing is raised to the caller.
    """

    def __init__(
        self,
        clock: Callable[[], float] = time.time,
        monotonic: Callable[[], float] = time.monotonic,
        logger: logging.Logger | None = None,
    ) -> None:
        self._clock = clock
        self._monotonic = monotonic
        self._logger = logger or logging.getLogger(__name__)

    def __call__(self, server: str, timeout: float) -> TimeSyncResult | None:
        return self.request_time(server, timeout)

    def request_time(self, server: str, timeout: float) -> TimeSyncResult | None:
        host, port = parse_server_address(server)
        try:
            resolve_start = self._monotonic()
            family, kind, proto, _, address = socket.getaddrinfo(host, port, type=socket.SOCK_DGRAM)[0]
            # Name resolution counts against the exchange budget.
            remaining = timeout - (self._monotonic() - resolve_start)
            if remaining <= 0:
                self._logger.warning("sntp_resolution_timeout", extra={"server": server, "timeout_s": timeout})
                return None
            with socket.socket(family, kind, proto) as sock:
                sock.settimeout(remaining)
                t1 = self._clock()
                request = build_request(t1)
                start = self._monotonic()
                sock.sendto(request, address)
                data, _ = sock.recvfrom(NTP_PACKET_SIZE)
                end = self._monotonic()
        except OSError as exc:
            self._logger.warning("sntp_request_failed", extra={"server": server, "error": str(exc)})
            return None

        t4 = t1 + (end - start)
        try:
            return parse_response(data, request, t1, t4, reference_monotonic=end)
        except SntpError as exc:
            self._logger.warning("sntp_invalid_response", extra={"server": server, "error": str(exc)})
            return None


def parse_server_address(server: str) -> tuple[str, int]:
    """Split ``host[:port]`` or ``[ipv6]:port``; the port defaults to 123."""

    server = server.strip()
    if server.startswith("[") and "]" in server:
        host, _, rest = server[1:].partition("]")
        port = rest.removeprefix(":")
        return host, int(port) if port.isdigit() else NTP_PORT
    host, sep, port = server.rpartition(":")
    if sep and host and port.isdigit() and ":" not in host:
        return host, int(port)
    return server, NTP_PORT


def build_request(transmit_time: float) -> bytes:
    """Client-mode request carrying ``transmit_time`` as its transmit timestamp."""

    first = (_VERSION << 3) | _MODE_CLIENT
    return _PACKET.pack(first, 0, 0, 0, 0, 0, b"\0" * 4, 0, 0, 0, _unix_to_ntp(transmit_time))


def parse_response(
    data: bytes,
    request: bytes,
    t1: float,
    t4: float,
    reference_monotonic: float,
) -> TimeSyncResult:
    """Validate a reply and compute offset and delay.

    ``t1`` and ``t4`` are the local send and receive times; ``t2`` and ``t3``
    are the server receive and transmit times taken from the reply.
    """

    if len(data) < NTP_PACKET_SIZE:
        raise SntpError(f"reply too short: {len(data)} bytes")
    first, stratum, _, _, _, _, _, _, originate, receive, transmit = _PACKET.unpack(data[:NTP_PACKET_SIZE])
    leap = first >> 6
    mode = first & 0x7
    if mode not in (_MODE_SERVER, _MODE_BROADCAST):
        raise SntpError(f"unexpected mode {mode}")
    if leap == _LEAP_NOT_SYNCHRONIZED:
        raise SntpError("server clock not synchronized")
    if stratum == 0 or stratum > 15:
        raise SntpError(f"unusable stratum {stratum}")
    if transmit == 0:
        raise SntpError("zero transmit timestamp")
    requested = _PACKET.unpack(request)[-1]
    if originate != requested:
        raise SntpError("originate timestamp does not match request")

    t2 = _ntp_to_unix(receive)
    t3 = _ntp_to_unix(transmit)
    offset = ((t2 - t1) + (t3 - t4)) / 2.0
    delay = max(0.0, (t4 - t1) - (t3 - t2))
    return TimeSyncResult(
        local_send_time=t1,
        offset=offset,
        round_trip_delay=delay,
        ntp_time=t4 + offset,
        reference_monotonic=reference_monotonic,
    )


def _ntp_to_unix(value: int) -> float:
    seconds, fraction = value >> 32, value & 0xFFFFFFFF
    return seconds - NTP_EPOCH + fraction / 2**32


def _unix_to_ntp(timestamp: float) -> int:
    ntp = timestamp + NTP_EPOCH
    seconds = int(ntp)
    fraction = int((ntp - seconds) * 2**32) & 0xFFFFFFFF
    return (seconds << 32) | fraction
