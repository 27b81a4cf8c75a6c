from __future__ import annotations

import logging

from rich.console import Console
from rich.logging import RichHandler

# stdout carries the report, diagnostics go to stderr
console = Console(stderr=True)
FORMAT = "%(message)s"

logger = logging.getLogger("happyx")


def setup_logging(verbose: bool = False) -> None:
    logging.basicConfig(
        level="DEBUG" if verbose else "WARNING",
        format=FORMAT,
        datefmt="[%X]",
        handlers=[
            RichHandler(
                console=console,
                rich_tracebacks=True,
                markup=True,
                show_time=False,
            )
        ],
    )
