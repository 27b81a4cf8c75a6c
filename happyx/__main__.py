"""CLI entry point for running happyx as a module."""

import sys

from .main import main as _main


def main() -> None:
    sys.exit(_main())


if __name__ == "__main__":
    main()
