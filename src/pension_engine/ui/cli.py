from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path
from signal import SIGINT, signal
from typing import TYPE_CHECKING

from dotenv import load_dotenv

from pension_engine import __version__
from pension_engine.api.translator import to_json
from pension_engine.app import calculate, fetch_scheme
from pension_engine.config import ConfigurationError, configure_logging
from pension_engine.domain.errors import CalculationError

if TYPE_CHECKING:
    from collections.abc import Callable, Sequence
    from types import FrameType

log = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_FAILURE = 1
EXIT_USAGE = 2


def _parse_args(argv: Sequence[str]) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Run pension calculations")
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Log at DEBUG level",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    calculate_cmd = subparsers.add_parser(
        "calculate",
        help="Process a calculation request document and print the response",
    )
    calculate_cmd.add_argument(
        "--request",
        type=str,
        default="-",
        help="Path to the request JSON, or '-' for stdin (default: %(default)s)",
    )
    calculate_cmd.add_argument(
        "--indent",
        type=int,
        default=2,
        help="Indentation of the printed JSON (default: %(default)s)",
    )

    scheme_cmd = subparsers.add_parser("scheme", help="Show the rule set of a scheme")
    scheme_cmd.add_argument("scheme_id", type=str, help="Scheme identifier")

    return parser.parse_args(list(argv))


def _read_request(source: str) -> str:
    if source == "-":
        return sys.stdin.read()
    path = Path(source)
    try:
        return path.read_text(encoding="utf-8")
    except OSError as exc:
        raise ValueError(f"Cannot read request file {path}: {exc.strerror}") from exc


def _write_json(document: object, *, indent: int | None) -> None:
    sys.stdout.write(json.dumps(document, indent=indent))
    sys.stdout.write("\n")


def _run_calculate(args: argparse.Namespace) -> int:
    try:
        body = _read_request(args.request)
        response = calculate(body)
    except (ValueError, ConfigurationError):
        log.exception("CLI validation error")
        return EXIT_USAGE

    _write_json(response.payload, indent=args.indent)
    if response.status == 400:
        return EXIT_USAGE
    return EXIT_OK if response.ok else EXIT_FAILURE


def _run_scheme(args: argparse.Namespace) -> int:
    try:
        rule_set = fetch_scheme(args.scheme_id)
    except ConfigurationError:
        log.exception("CLI validation error")
        return EXIT_USAGE
    except CalculationError:
        log.exception("Lookup of scheme %s failed", args.scheme_id)
        return EXIT_FAILURE
    _write_json(to_json(rule_set), indent=2)
    return EXIT_OK


_COMMANDS: dict[str, Callable[[argparse.Namespace], int]] = {
    "calculate": _run_calculate,
    "scheme": _run_scheme,
}


def main(argv: Sequence[str] | None = None) -> None:
    """Main application entry point."""
    args_list = list(argv) if argv is not None else list(sys.argv[1:])
    parsed_args = _parse_args(args_list)
    configure_logging(level=logging.DEBUG if parsed_args.verbose else logging.INFO)

    exit_code = _COMMANDS[parsed_args.command](parsed_args)
    if exit_code != EXIT_OK:
        sys.exit(exit_code)


def sigint_handler(_signal_received: int, _frame: FrameType | None) -> None:
    """Handle SIGINT (Ctrl+C) gracefully."""
    log.info("Closed by user (Ctrl+C)")
    sys.exit(0)


def run() -> None:
    """Console script entry point."""
    load_dotenv()
    signal(SIGINT, sigint_handler)
    main()


if __name__ == "__main__":
    run()
