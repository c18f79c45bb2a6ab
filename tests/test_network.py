from __future__ import annotations

import socket
from types import SimpleNamespace

import psutil

from application_status.network import IpAddressResolver


def _addr(address: str, family: int = socket.AF_INET) -> SimpleNamespace:
    return SimpleNamespace(family=family, address=address)


class FakeInterfaces:
    def __init__(self, interfaces: dict[str, list[SimpleNamespace]]) -> None:
        self.interfaces = interfaces
        self.calls = 0

    def __call__(self) -> dict[str, list[SimpleNamespace]]:
        self.calls += 1
        return self.interfaces


def test_last_qualifying_address_wins() -> None:
    interfaces = FakeInterfaces(
        {
            "lo": [_addr("127.0.0.1"), _addr("::1", socket.AF_INET6)],
            "eth0": [
                _addr("aa:bb:cc:dd:ee:ff", psutil.AF_LINK),
                _addr("192.168.1.2"),
                _addr("fe80::1%eth0", socket.AF_INET6),
            ],
            "wlan0": [_addr("10.0.0.7"), _addr("169.254.3.4")],
        }
    )
    assert IpAddressResolver(interfaces).resolve() == "10.0.0.7"


def test_cached_address_kept_while_still_bound() -> None:
    interfaces = FakeInterfaces({"eth0": [_addr("192.168.1.2")], "wlan0": [_addr("10.0.0.7")]})
    resolver = IpAddressResolver(interfaces)
    assert resolver.resolve() == "10.0.0.7"

    interfaces.interfaces = {"wlan0": [_addr("10.0.0.7")], "eth0": [_addr("192.168.1.2")]}
    assert resolver.resolve() == "10.0.0.7"

    interfaces.interfaces = {"eth0": [_addr("192.168.1.2")]}
    assert resolver.resolve() == "192.168.1.2"


def test_only_loopback_yields_none() -> None:
    interfaces = FakeInterfaces({"lo": [_addr("127.0.0.1")]})
    assert IpAddressResolver(interfaces).resolve() is None


def test_enumeration_failure_clears_cache() -> None:
    interfaces = FakeInterfaces({"eth0": [_addr("192.168.1.2")]})
    resolver = IpAddressResolver(interfaces)
    assert resolver.resolve() == "192.168.1.2"

    def broken() -> dict:
        raise OSError("no interfaces")

    resolver._enumerate = broken
    assert resolver.resolve() is None

    resolver._enumerate = FakeInterfaces({"eth1": [_addr("172.16.0.9")]})
    assert resolver.resolve() == "172.16.0.9"


def test_ipv6_global_address_qualifies() -> None:
    interfaces = FakeInterfaces({"eth0": [_addr("2001:db8::5", socket.AF_INET6)]})
    assert IpAddressResolver(interfaces).resolve() == "2001:db8::5"
