"""Render probing results for people and for programs."""

from __future__ import annotations

import time
from typing import IO, Iterator, Optional

from ._log import logger
from ._models import Endpoint, Target, TargetRegistry

ADDRESS_WIDTH = 42
MISSING = "     *   "
MACHINE_TAG = "HAPPY.0"


def _format_sample(sample: Optional[int]) -> str:
    if sample is None or sample < 0:
        return MISSING
    return f" {sample // 1000:4d}.{sample % 1000:03d}"


def _addressed(target: Target) -> Iterator[tuple[Endpoint, str]]:
    for endpoint in target.endpoints:
        try:
            address = endpoint.address
        except OSError as exc:
            logger.error("getnameinfo: %s", exc)
            continue
        yield endpoint, address


def format_human(registry: TargetRegistry, nqueries: int) -> list[str]:
    lines: list[str] = []
    for idx, target in enumerate(registry):
        if idx:
            lines.append("")
        lines.append(f"{target.host}:{target.port}")
        for endpoint, address in _addressed(target):
            samples = endpoint.samples
            fields = "".join(
                _format_sample(samples[i] if i < len(samples) else None)
                for i in range(max(nqueries, len(samples)))
            )
            lines.append(f" {address}".ljust(ADDRESS_WIDTH) + fields)
    return lines


def format_machine(registry: TargetRegistry, now: Optional[int] = None) -> list[str]:
    if now is None:
        now = int(time.time())
    lines: list[str] = []
    for target in registry:
        for endpoint, address in _addressed(target):
            status = "OK" if endpoint.successes else "FAIL"
            fields = [MACHINE_TAG, str(now), status, target.host, target.port, address]
            fields.extend(str(sample) for sample in endpoint.samples)
            lines.append(";".join(fields))
    return lines


def report_human(registry: TargetRegistry, out: IO[str], nqueries: int) -> None:
    """Write one block per target with a column per probing round."""
    for line in format_human(registry, nqueries):
        out.write(line + "\n")


def report_machine(
    registry: TargetRegistry, out: IO[str], now: Optional[int] = None
) -> None:
    """Write one semicolon separated ``HAPPY.0`` record per endpoint."""
    for line in format_machine(registry, now):
        out.write(line + "\n")
