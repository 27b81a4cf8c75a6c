"""Turn host/port pairs into targets with resolved endpoints."""

from __future__ import annotations

import socket
from typing import Callable, Iterable

from ._exceptions import ResolutionError
from ._log import logger
from ._models import Endpoint, Target, TargetRegistry


def resolve(
    host: str,
    port: str,
    *,
    getaddrinfo: Callable[..., list] = socket.getaddrinfo,
) -> Target:
    """Resolve ``host`` and ``port`` into a :class:`Target`.

    Every address returned by the resolver becomes an endpoint, IPv4 and
    IPv6 alike, in resolver order.
    """
    try:
        infos = getaddrinfo(host, port, socket.AF_UNSPEC, socket.SOCK_STREAM)
    except (socket.gaierror, UnicodeError) as exc:
        reason = exc.strerror if isinstance(exc, OSError) and exc.strerror else str(exc)
        raise ResolutionError(host, port, reason) from exc

    endpoints = [
        Endpoint(family=family, socktype=socktype, protocol=proto, sockaddr=sockaddr)
        for family, socktype, proto, _, sockaddr in infos
    ]
    logger.debug("Resolved %s port %s to %d endpoint(s)", host, port, len(endpoints))
    return Target(host=host, port=port, endpoints=endpoints)


def expand(
    registry: TargetRegistry,
    host: str,
    ports: Iterable[str],
    *,
    getaddrinfo: Callable[..., list] = socket.getaddrinfo,
) -> None:
    """Resolve ``host`` for every port and append the results to ``registry``."""
    for port in ports:
        try:
            target = resolve(host, port, getaddrinfo=getaddrinfo)
        except ResolutionError as exc:
            logger.error("%s (skipping %s port %s)", exc.reason, host, port)
            continue
        registry.append(target)
