"""Exception types raised by happyx."""

from __future__ import annotations


class HappyError(Exception):
    """Base class for every error raised by happyx."""


class ResolutionError(HappyError):
    """Raised when a host/port pair cannot be resolved into endpoints."""

    def __init__(self, host: str, port: str, reason: str):
        super().__init__(reason)
        self.host = host
        self.port = port
        self.reason = reason


class FatalProbeError(HappyError, RuntimeError):
    """Raised when the probing machinery itself breaks and the run must stop."""


class TargetFileError(FatalProbeError):
    """Raised when a target list cannot be opened or read."""


class UsageError(HappyError):
    """Raised for invalid command line options or ``HAPPY_*`` overrides."""
