"""Advisory locking of report output shared between happy processes."""

from __future__ import annotations

import fcntl
import io
import os
import stat
from contextlib import contextmanager
from typing import IO, Iterator, Optional

from ._log import logger


def _regular_fd(stream: IO) -> Optional[int]:
    try:
        fd = stream.fileno()
    except (AttributeError, io.UnsupportedOperation, ValueError):
        return None
    try:
        if stat.S_ISREG(os.fstat(fd).st_mode):
            return fd
    except OSError:
        return None
    return None


def _lockf(fd: int, cmd: int) -> None:
    # whole file, so the unlock covers whatever the block appended
    try:
        fcntl.lockf(fd, cmd, 0, 0, os.SEEK_SET)
    except OSError as exc:
        logger.warning("fcntl: %s (ignored)", exc.strerror or exc)


@contextmanager
def locked(stream: IO) -> Iterator[IO]:
    """Hold an exclusive lock on ``stream`` while the block writes to it.

    Only regular files are locked. Pipes, terminals and in-memory
    streams are handed back untouched.
    """
    fd = _regular_fd(stream)
    if fd is None:
        yield stream
        return

    _lockf(fd, fcntl.LOCK_EX)
    try:
        yield stream
    finally:
        stream.flush()
        _lockf(fd, fcntl.LOCK_UN)
