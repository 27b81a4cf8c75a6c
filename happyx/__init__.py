from ._exceptions import (
    FatalProbeError,
    HappyError,
    ResolutionError,
    TargetFileError,
    UsageError,
)
from ._models import Endpoint, Target, TargetRegistry
from ._probe import Prober, probe
from ._rank import rank
from ._report import format_human, format_machine, report_human, report_machine
from ._resolve import expand, resolve
from ._targets import read_targets

__all__ = [
    "Endpoint",
    "Target",
    "TargetRegistry",
    "Prober",
    "probe",
    "rank",
    "resolve",
    "expand",
    "read_targets",
    "format_human",
    "format_machine",
    "report_human",
    "report_machine",
    "HappyError",
    "ResolutionError",
    "FatalProbeError",
    "TargetFileError",
    "UsageError",
]
