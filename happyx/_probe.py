"""Concurrent non-blocking connect probing.

A :class:`Prober` runs rounds over every endpoint of a
:class:`~happyx._models.TargetRegistry`. Each round issues one paced,
non-blocking ``connect()`` per endpoint and then waits on ``select()``
until every attempt has either completed, failed or timed out.
"""

from __future__ import annotations

import errno
import os
import select as _select
import socket
import time
from typing import Callable, Iterable, Optional

from ._exceptions import FatalProbeError
from ._log import logger
from ._models import Endpoint, Target, TargetRegistry

UNSUPPORTED = {errno.EAFNOSUPPORT, errno.EPROTONOSUPPORT}
IN_PROGRESS = {0, errno.EINPROGRESS}


class Prober:
    """Issue and collect TCP connection attempts for a set of targets.

    ``timeout`` and ``delay`` are in milliseconds. A timeout of zero waits
    forever for an attempt to finish, a delay of zero issues attempts back
    to back. ``clock``, ``select`` and ``socket_factory`` exist so the
    timing can be driven from tests.
    """

    def __init__(
        self,
        registry: TargetRegistry,
        *,
        timeout: int = 2000,
        delay: int = 25,
        clock: Callable[[], float] = time.monotonic,
        select: Callable[..., tuple] = _select.select,
        socket_factory: Callable[..., socket.socket] = socket.socket,
    ):
        if timeout < 0 or delay < 0:
            raise ValueError("timeout and delay must not be negative")
        self.registry = registry
        self.timeout = timeout
        self.delay = delay
        self.rounds = 0
        self._clock = clock
        self._select = select
        self._socket_factory = socket_factory

    def __enter__(self) -> "Prober":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    def close(self) -> None:
        self.registry.close()

    def run(self, rounds: int) -> TargetRegistry:
        """Probe every endpoint ``rounds`` times, one round after the other."""
        for _ in range(rounds):
            self.rounds += 1
            logger.debug("Round %d/%d", self.rounds, rounds)
            self.prepare()
            self.collect()
        return self.registry

    def prepare(self) -> None:
        """Start one connection attempt per endpoint, pacing them by ``delay``."""
        last_issue = self._clock()
        for target, endpoint in self.registry.endpoints():
            if self.delay:
                self._pace(last_issue)
            if self._connect(target, endpoint):
                last_issue = endpoint.started_at

    def collect(self) -> None:
        """Wait until no attempt of the current round is outstanding."""
        while True:
            pending = self.registry.pending()
            if not pending:
                return
            ready = self._wait(pending, self._remaining(pending))
            self.update(ready)

    def update(self, ready: Iterable[socket.socket] = ()) -> None:
        """Finalize every pending attempt that completed or ran out of time."""
        ready = set(ready)
        now = self._clock()
        for target, endpoint in self.registry.endpoints():
            handle = endpoint.handle
            if handle is None:
                continue
            elapsed = round((now - endpoint.started_at) * 1_000_000)
            if self.timeout and elapsed >= self.timeout * 1000:
                logger.debug("%s %s: timed out after %d us", target, endpoint.sockaddr, elapsed)
                endpoint.finish(elapsed, ok=False)
                continue
            if handle not in ready:
                continue
            try:
                error = handle.getsockopt(socket.SOL_SOCKET, socket.SO_ERROR)
            except OSError as exc:
                raise FatalProbeError(f"getsockopt: {exc.strerror or exc}") from exc
            if error:
                logger.debug(
                    "%s %s: failed after %d us (%s)",
                    target,
                    endpoint.sockaddr,
                    elapsed,
                    _strerror(error),
                )
            else:
                logger.debug("%s %s: connected in %d us", target, endpoint.sockaddr, elapsed)
            endpoint.finish(elapsed, ok=not error)

    def _remaining(self, pending: list[Endpoint]) -> Optional[float]:
        # time left until the oldest outstanding attempt times out
        if not self.timeout:
            return None
        oldest = min(endpoint.started_at for endpoint in pending)
        left = oldest + self.timeout / 1000 - self._clock()
        return min(max(left, 0.0), self.timeout / 1000)

    def _pace(self, since: float) -> None:
        deadline = since + self.delay / 1000
        while True:
            now = self._clock()
            if now >= deadline:
                return
            ready = self._wait(self.registry.pending(), deadline - now)
            self.update(ready)

    def _wait(
        self, pending: list[Endpoint], bound: Optional[float]
    ) -> list[socket.socket]:
        handles = [endpoint.handle for endpoint in pending if endpoint.handle is not None]
        try:
            _, writable, _ = self._select([], handles, [], bound)
        except (OSError, ValueError) as exc:
            raise FatalProbeError(f"select failed: {exc}") from exc
        return writable

    def _connect(self, target: Target, endpoint: Endpoint) -> bool:
        try:
            handle = self._socket_factory(
                endpoint.family, endpoint.socktype, endpoint.protocol
            )
        except OSError as exc:
            if exc.errno in UNSUPPORTED:
                logger.debug("%s: %s not supported here", target, endpoint.sockaddr)
            else:
                _skip(target, "socket", exc)
            return False

        try:
            handle.setblocking(False)
        except OSError as exc:
            _skip(target, "setblocking", exc)
            handle.close()
            return False

        try:
            rc = handle.connect_ex(endpoint.sockaddr)
        except OSError as exc:
            rc = exc.errno
        if rc not in IN_PROGRESS:
            _skip(target, "connect", rc)
            handle.close()
            return False

        endpoint.start(handle, self._clock())
        return True


def _strerror(code: Optional[int]) -> str:
    if code is None:
        return "unknown error"
    try:
        return os.strerror(code)
    except ValueError:
        return f"error {code}"


def _skip(target: Target, call: str, error) -> None:
    if isinstance(error, OSError):
        reason = error.strerror or str(error)
    else:
        reason = _strerror(error)
    logger.error("%s: %s (skipping %s port %s)", call, reason, target.host, target.port)


def probe(
    registry: TargetRegistry,
    rounds: int = 3,
    *,
    timeout: int = 2000,
    delay: int = 25,
) -> TargetRegistry:
    """Run ``rounds`` probing rounds over ``registry`` and return it."""
    with Prober(registry, timeout=timeout, delay=delay) as prober:
        return prober.run(rounds)
