from __future__ import annotations

import errno
import socket
from typing import Optional

import pytest

from happyx import Endpoint, Target, TargetRegistry


class FakeClock:
    def __init__(self, start: float = 1000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class FakeSocket:
    def __init__(self, network: "FakeNetwork", family: int, socktype: int, proto: int):
        self.network = network
        self.family = family
        self.address = None
        self.started: Optional[float] = None
        self.closed = False

    def setblocking(self, flag: bool) -> None:
        if self.network.setblocking_error is not None:
            raise OSError(self.network.setblocking_error, "setblocking failed")

    def connect_ex(self, address) -> int:
        self.address = address
        self.started = self.network.clock()
        self.network.issued.append((address, self.started))
        return self.network.connect_rc.get(address, errno.EINPROGRESS)

    def getsockopt(self, level: int, option: int) -> int:
        if self.network.getsockopt_error is not None:
            raise OSError(self.network.getsockopt_error, "getsockopt failed")
        return self.network.so_error.get(self.address, 0)

    def close(self) -> None:
        self.closed = True

    def completes_at(self) -> Optional[float]:
        latency = self.network.latency.get(self.address)
        if latency is None or self.started is None:
            return None
        return self.started + latency


class FakeNetwork:
    """Simulated sockets, clock and select() for deterministic probing."""

    def __init__(self, clock: FakeClock):
        self.clock = clock
        self.latency: dict = {}
        self.so_error: dict = {}
        self.connect_rc: dict = {}
        self.unsupported: set = set()
        self.setblocking_error: Optional[int] = None
        self.getsockopt_error: Optional[int] = None
        self.select_error: Optional[Exception] = None
        self.issued: list = []
        self.sockets: list[FakeSocket] = []
        self.waits: list = []

    def socket(self, family: int, socktype: int, proto: int = 0) -> FakeSocket:
        if family in self.unsupported:
            raise OSError(errno.EAFNOSUPPORT, "Address family not supported by protocol")
        sock = FakeSocket(self, family, socktype, proto)
        self.sockets.append(sock)
        return sock

    def select(self, rlist, wlist, xlist, timeout=None):
        if self.select_error is not None:
            raise self.select_error
        self.waits.append((len(wlist), timeout))
        now = self.clock()
        done = [s for s in wlist if s.completes_at() is not None and s.completes_at() <= now]
        if done:
            return [], done, []
        upcoming = [s.completes_at() for s in wlist if s.completes_at() is not None]
        wake = min(upcoming) if upcoming else None
        if timeout is not None:
            limit = now + timeout
            wake = limit if wake is None else min(wake, limit)
        if wake is None:
            raise AssertionError("select() would block forever")
        self.clock.now = max(now, wake)
        now = self.clock()
        done = [s for s in wlist if s.completes_at() is not None and s.completes_at() <= now]
        return [], done, []


def ipv4(address: str, port: int = 80) -> Endpoint:
    return Endpoint(
        family=socket.AF_INET,
        socktype=socket.SOCK_STREAM,
        protocol=socket.IPPROTO_TCP,
        sockaddr=(address, port),
    )


def ipv6(address: str, port: int = 80) -> Endpoint:
    return Endpoint(
        family=socket.AF_INET6,
        socktype=socket.SOCK_STREAM,
        protocol=socket.IPPROTO_TCP,
        sockaddr=(address, port, 0, 0),
    )


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def network(clock: FakeClock) -> FakeNetwork:
    return FakeNetwork(clock)


@pytest.fixture
def registry() -> TargetRegistry:
    return TargetRegistry(
        [
            Target(
                host="dual.example",
                port="80",
                endpoints=[ipv6("2001:db8::1"), ipv4("192.0.2.1")],
            ),
            Target(host="v4.example", port="80", endpoints=[ipv4("192.0.2.2")]),
        ]
    )


@pytest.fixture
def listener():
    sock = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
    sock.bind(("127.0.0.1", 0))
    sock.listen(64)
    try:
        yield sock
    finally:
        sock.close()
