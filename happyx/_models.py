"""Targets, their resolved endpoints and the registry that owns them."""

from __future__ import annotations

import socket
from dataclasses import dataclass, field
from typing import Iterator, Optional

NUMERIC_FLAGS = socket.NI_NUMERICHOST | socket.NI_NUMERICSERV


@dataclass
class Endpoint:
    """One resolved address of a target plus the samples measured for it.

    ``samples`` holds one signed microsecond value per finished attempt:
    the elapsed time for a successful connect, the negated elapsed time
    for a failed or timed out one.
    """

    family: int
    socktype: int
    protocol: int
    sockaddr: tuple
    handle: Optional[socket.socket] = field(default=None, repr=False, compare=False)
    started_at: float = 0.0
    samples: list[int] = field(default_factory=list)
    successes: int = 0
    attempts: int = 0
    latency_sum: int = 0

    @property
    def in_flight(self) -> bool:
        return self.handle is not None

    @property
    def address(self) -> str:
        """Numeric host form of the endpoint address."""
        host, _ = socket.getnameinfo(self.sockaddr, NUMERIC_FLAGS)
        return host

    @property
    def mean_latency(self) -> Optional[float]:
        if not self.successes:
            return None
        return self.latency_sum / self.successes

    def start(self, handle: socket.socket, started_at: float) -> None:
        if self.handle is not None:
            raise RuntimeError(f"attempt already in flight for {self.sockaddr!r}")
        self.handle = handle
        self.started_at = started_at

    def finish(self, elapsed_us: int, ok: bool) -> None:
        """Record the outcome of the attempt in flight and release its socket."""
        elapsed_us = max(0, elapsed_us)
        if ok:
            self.samples.append(elapsed_us)
            self.successes += 1
            self.latency_sum += elapsed_us
        else:
            # a zero would read back as a success
            self.samples.append(-max(1, elapsed_us))
        self.attempts += 1
        self.release()

    def release(self) -> None:
        if self.handle is not None:
            try:
                self.handle.close()
            finally:
                self.handle = None


@dataclass
class Target:
    host: str
    port: str
    endpoints: list[Endpoint] = field(default_factory=list)

    def __str__(self) -> str:
        return f"{self.host}:{self.port}"


class TargetRegistry:
    """Ordered collection of every target probed during a run."""

    def __init__(self, targets: Optional[list[Target]] = None) -> None:
        self._targets: list[Target] = []
        for target in targets or ():
            self.append(target)

    def append(self, target: Optional[Target]) -> None:
        if target is not None:
            self._targets.append(target)

    def __iter__(self) -> Iterator[Target]:
        return iter(self._targets)

    def __len__(self) -> int:
        return len(self._targets)

    def __bool__(self) -> bool:
        return bool(self._targets)

    def endpoints(self) -> Iterator[tuple[Target, Endpoint]]:
        for target in self._targets:
            for endpoint in target.endpoints:
                yield target, endpoint

    def pending(self) -> list[Endpoint]:
        return [endpoint for _, endpoint in self.endpoints() if endpoint.in_flight]

    def close(self) -> None:
        for _, endpoint in self.endpoints():
            endpoint.release()
