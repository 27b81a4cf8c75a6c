"""Command line front end for happyx."""

from __future__ import annotations

import argparse
import sys
from typing import IO, Optional, Sequence

from rich.markup import escape

from ._config import DELAY, QUERIES, TIMEOUT, Options, env_default, env_ports
from ._exceptions import FatalProbeError, UsageError
from ._lock import locked
from ._log import console, logger, setup_logging
from ._models import TargetRegistry
from ._probe import Prober
from ._rank import rank
from ._report import report_human, report_machine
from ._resolve import expand
from ._targets import read_targets

PROG = "happy"
USAGE = (
    f"Usage: {PROG} [-p port] [-q nqueries] [-t timeout] [-d delay ] "
    "[-f file] [-s] [-m] [-v] hostname..."
)


class _Parser(argparse.ArgumentParser):
    def error(self, message: str) -> None:
        raise UsageError(message)


def _integer(option: str, minimum: int):
    def convert(value: str) -> int:
        try:
            number = int(value, 10)
        except ValueError:
            number = None
        if number is None or number < minimum:
            raise argparse.ArgumentTypeError(
                f"invalid argument '{value}' for option -{option}"
            )
        return number

    return convert


def build_parser() -> argparse.ArgumentParser:
    parser = _Parser(
        prog=PROG,
        add_help=False,
        description="Probe TCP connect latency to every address of a host",
    )
    parser.add_argument("hosts", nargs="*", metavar="hostname")
    parser.add_argument("-p", dest="ports", action="append", metavar="port")
    parser.add_argument("-q", dest="queries", type=_integer("q", 1))
    parser.add_argument("-t", dest="timeout", type=_integer("t", 0))
    parser.add_argument("-d", dest="delay", type=_integer("d", 0))
    parser.add_argument("-f", dest="files", action="append", default=[], metavar="file")
    parser.add_argument("-s", dest="sort", action="store_true")
    parser.add_argument("-m", dest="machine", action="store_true")
    parser.add_argument("-v", dest="verbose", action="store_true")
    parser.add_argument("-h", dest="help", action="store_true")
    return parser


def parse_args(argv: Optional[Sequence[str]] = None) -> Optional[Options]:
    """Parse ``argv`` into :class:`Options`, or ``None`` when usage was requested."""
    args = build_parser().parse_intermixed_args(argv)
    if args.help:
        return None
    queries = _from_env(args.queries, "HAPPY_QUERIES", "q", 1, QUERIES)
    timeout = _from_env(args.timeout, "HAPPY_TIMEOUT", "t", 0, TIMEOUT)
    delay = _from_env(args.delay, "HAPPY_DELAY", "d", 0, DELAY)
    return Options(
        ports=args.ports or env_ports(),
        queries=queries,
        timeout=timeout,
        delay=delay,
        sort=args.sort,
        machine=args.machine,
        files=args.files,
        hosts=args.hosts,
        verbose=args.verbose,
    )


def _from_env(
    value: Optional[int], name: str, option: str, minimum: int, fallback: int
) -> int:
    # command line wins over the environment
    if value is not None:
        return value
    try:
        return _integer(option, minimum)(env_default(name, fallback))
    except argparse.ArgumentTypeError as exc:
        raise UsageError(f"{exc} (from {name})") from exc


def load_targets(options: Options) -> TargetRegistry:
    registry = TargetRegistry()
    hosts: list[str] = []
    for path in options.files:
        hosts.extend(read_targets(path))
    hosts.extend(options.hosts)
    for host in hosts:
        expand(registry, host, options.ports)
    return registry


def run(options: Options, out: Optional[IO[str]] = None) -> TargetRegistry:
    """Resolve, probe, rank and report according to ``options``."""
    out = out if out is not None else sys.stdout
    registry = load_targets(options)
    if not registry:
        logger.warning("No targets to probe")
        return registry

    with Prober(registry, timeout=options.timeout, delay=options.delay) as prober:
        prober.run(options.queries)

    if options.sort:
        rank(registry)

    with locked(out):
        if options.machine:
            report_machine(registry, out)
        else:
            report_human(registry, out, options.queries)
        out.flush()
    return registry


def main(argv: Optional[Sequence[str]] = None) -> int:
    try:
        options = parse_args(argv)
    except UsageError as exc:
        console.print(f"{PROG}: {exc}", markup=False, highlight=False)
        console.print(USAGE, markup=False, highlight=False)
        return 2
    if options is None:
        console.print(USAGE, markup=False, highlight=False)
        return 1

    setup_logging(options.verbose)
    try:
        run(options)
    except FatalProbeError as exc:
        console.print(f"[red]{PROG}: {escape(str(exc))}[/red]")
        return 1
    except MemoryError:
        console.print(f"[red]{PROG}: memory allocation failure[/red]")
        return 1
    except KeyboardInterrupt:
        console.print("\n[yellow]Interrupted by user[/yellow]")
        return 130
    return 0


if __name__ == "__main__":
    sys.exit(main())
