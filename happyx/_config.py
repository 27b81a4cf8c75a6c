"""Run options and their defaults."""

from __future__ import annotations

import os
from dataclasses import dataclass, field

QUERIES = 3
TIMEOUT = 2000  # ms, 0 disables
DELAY = 25  # ms between connects


def env_default(name: str, fallback: int) -> str:
    """Raw ``HAPPY_*`` override, validated later like the matching option."""
    return os.environ.get(name, "").strip() or str(fallback)


def env_ports() -> list[str]:
    ports = [
        port.strip()
        for port in os.environ.get("HAPPY_PORTS", "").split(",")
        if port.strip()
    ]
    return ports or ["80"]


@dataclass
class Options:
    ports: list[str] = field(default_factory=lambda: ["80"])
    queries: int = QUERIES
    timeout: int = TIMEOUT
    delay: int = DELAY
    sort: bool = False
    machine: bool = False
    files: list[str] = field(default_factory=list)
    hosts: list[str] = field(default_factory=list)
    verbose: bool = False

    def __post_init__(self) -> None:
        if self.queries < 1:
            raise ValueError("queries must be a positive integer")
        if self.timeout < 0:
            raise ValueError("timeout must not be negative")
        if self.delay < 0:
            raise ValueError("delay must not be negative")
        if not self.ports:
            self.ports = ["80"]
