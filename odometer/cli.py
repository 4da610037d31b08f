"""Command line interface for the odometer benchmarking tool."""

from __future__ import annotations

import argparse
import platform
from typing import Sequence

from odometer.core import run

NAME = "odometer"
VERSION = "0.1.0"
DESCRIPTION = "A tool for benchmarking Ethereum clients"

_PLATFORM_NAMES = {"darwin": "macos"}


def _split_clients(value: str) -> list[str]:
    return value.split(",")


def build_parser() -> argparse.ArgumentParser:
    """The argument parser for the ``odometer`` command."""
    common = argparse.ArgumentParser(add_help=False)
    common.add_argument(
        "-v",
        "--version",
        action="store_true",
        default=argparse.SUPPRESS,
        help="Print version information",
    )

    parser = argparse.ArgumentParser(prog=NAME, description=DESCRIPTION)
    parser.add_argument(
        "-v", "--version", action="store_true", default=False, help="Print version information"
    )
    commands = parser.add_subparsers(dest="command")

    measure = commands.add_parser(
        "measure", parents=[common], help="Measure performance metrics",
        description="Measure performance metrics",
    )
    metrics = measure.add_subparsers(dest="metric")
    metrics.required = True

    gas_limit = metrics.add_parser("gas-limit", parents=[common])
    gas_limit.add_argument(
        "--for",
        dest="clients",
        action="extend",
        type=_split_clients,
        default=None,
        help="Specify comma-separated client names to measure gas limit for. "
        "Use 'all' for all clients.",
    )
    return parser


def resolve_clients(clients: Sequence[str] | None) -> list[str]:
    """The client filter to benchmark: empty means every client."""
    if clients is None or list(clients) == ["all"]:
        return []
    return list(clients)


def version_text() -> str:
    """The name, version, description and platform, one per line."""
    system = platform.system().lower()
    system = _PLATFORM_NAMES.get(system, system)
    return f"{NAME} v{VERSION}\n{DESCRIPTION}\nPlatform: {system}"


def main(argv: Sequence[str] | None = None) -> int:
    """Run the command line interface."""
    parser = build_parser()
    args = parser.parse_args(argv)

    if getattr(args, "version", False):
        print(version_text())
        return 0

    if args.command is None:
        parser.print_help()
        print()
        return 0

    if args.command == "measure" and args.metric == "gas-limit":
        run(resolve_clients(args.clients))
    return 0


if __name__ == "__main__":
    raise SystemExit(main())