"""Best-effort discovery of the host's outward-facing network address."""

from __future__ import annotations

from typing import Any, Callable, Iterable, Mapping

import ipaddress
import logging
import socket
import threading

import psutil

# Interface name -> psutil address entries (objects with ``family`` and ``address``).
InterfaceAddresses = Mapping[str, Iterable[Any]]

_INET_FAMILIES = (socket.AF_INET, socket.AF_INET6)


class IpAddressResolver:
    """Find a non-loopback, non-link-local address, caching the last result.

    A new address is picked only when nothing is cached or the cached address
    is no longer bound to any interface. When several addresses qualify, the
    last one enumerated wins.
    """

    def __init__(
        self,
        enumerate_interfaces: Callable[[], InterfaceAddresses] = psutil.net_if_addrs,
        logger: logging.Logger | None = None,
    ) -> None:
        self._enumerate = enumerate_interfaces
        self._logger = logger or logging.getLogger(__name__)
        self._lock = threading.Lock()
        self._previous: str | None = None

    def resolve(self) -> str | None:
        """Return the local address, or None when none can be determined."""

        with self._lock:
            try:
                addresses = list(_inet_addresses(self._enumerate()))
            except OSError as exc:
                self._logger.warning("ip_address_lookup_failed", extra={"error": str(exc)})
                self._previous = None
                return None
            if self._previous is None or self._previous not in addresses:
                self._previous = _last_routable(addresses)
            return self._previous


def _inet_addresses(interfaces: InterfaceAddresses) -> Iterable[str]:
    for addresses in interfaces.values():
        for address in addresses:
            if address.family in _INET_FAMILIES and address.address:
                yield address.address


def _last_routable(addresses: Iterable[str]) -> str | None:
    found: str | None = None
    for text in addresses:
        # Drop IPv6 zone suffixes such as "fe80::1%eth0".
        try:
            ip = ipaddress.ip_address(text.split("%", 1)[0])
        except ValueError:
            continue
        if not ip.is_loopback and not ip.is_link_local:
            found = text
    return found
