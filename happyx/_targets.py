"""Read target host names from a file or standard input."""

from __future__ import annotations

import sys
from typing import IO, Optional

from ._exceptions import TargetFileError


def parse_targets(stream: IO[str]) -> list[str]:
    hosts = []
    for line in stream:
        host = line.strip()
        if host:
            hosts.append(host)
    return hosts


def read_targets(path: Optional[str] = None, *, stdin: Optional[IO[str]] = None) -> list[str]:
    """Return the host names listed in ``path``, one per line.

    ``"-"`` or ``None`` reads standard input.
    """
    if path is None or path == "-":
        stream = stdin if stdin is not None else sys.stdin
        try:
            return parse_targets(stream)
        except (OSError, UnicodeDecodeError) as exc:
            raise TargetFileError(f"error reading standard input: {exc}") from exc

    try:
        with open(path, encoding="utf-8") as stream:
            return parse_targets(stream)
    except OSError as exc:
        raise TargetFileError(f"{path}: {exc.strerror or exc}") from exc
    except UnicodeDecodeError as exc:
        raise TargetFileError(f"{path}: {exc}") from exc
