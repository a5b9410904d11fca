"""Command-line interface.

Builds the argparse parser for the ``restfile`` command and validates the
parsed arguments before anything is read or sent.
"""

import argparse
import os
import sys

from restfile import __version__
from restfile.engine import DEFAULT_TIMEOUT
from restfile.parser import SELECT_ALL


def request_selector(value: str) -> int | str:
    """argparse type for ``-n``: a block index or ``a`` for all blocks."""
    if value in ("a", SELECT_ALL):
        return SELECT_ALL
    try:
        index = int(value)
    except ValueError:
        raise argparse.ArgumentTypeError(
            f"expected a request index or 'a', got {value!r}"
        )
    if index < 0:
        raise argparse.ArgumentTypeError(
            f"request index must not be negative, got {index}"
        )
    return index


def build_parser() -> argparse.ArgumentParser:
    """Build and return the argument parser for the restfile CLI."""
    parser = argparse.ArgumentParser(
        prog="restfile",
        description=(
            "restfile v{ver} — run HTTP requests described in a .http "
            "file.\n\n"
            "Reads the file, picks one request block (or all of them), sends "
            "it and prints the response body. Use -v to also see the status "
            "line, elapsed time and response headers."
        ).format(ver=__version__),
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=(
            "Examples:\n"
            "  restfile requests.http\n"
            "  restfile requests.http -n 2 -v\n"
            "  restfile requests.http -n a --timeout 10\n"
            "  restfile api.http | jq .\n"
        ),
    )

    parser.add_argument(
        "request_file",
        help="Path to the .http file containing the requests.",
    )
    parser.add_argument(
        "-n",
        "--request-number",
        type=request_selector,
        default=0,
        dest="selector",
        metavar="N",
        help=(
            "Request to run when the file holds more than one. Numbering "
            "starts from 0; use 'a' to run them all (default: 0)."
        ),
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="count",
        default=0,
        dest="verbosity",
        help=(
            "Show status, elapsed time and headers before the body. "
            "Repeat (-vv) to also print the request being sent."
        ),
    )
    parser.add_argument(
        "-t",
        "--timeout",
        type=float,
        default=DEFAULT_TIMEOUT,
        help=(
            "Request timeout in seconds; 0 waits indefinitely "
            f"(default: {DEFAULT_TIMEOUT:g})."
        ),
    )
    parser.add_argument(
        "--proxy",
        default=None,
        help=(
            "Route traffic through a proxy for debugging "
            "(e.g. http://127.0.0.1:8080)."
        ),
    )
    parser.add_argument(
        "--insecure",
        action="store_false",
        dest="verify",
        help="Skip TLS certificate verification.",
    )
    parser.add_argument(
        "--debug",
        action="store_true",
        help="Log debugging information to stderr.",
    )
    parser.add_argument(
        "--version",
        action="version",
        version=f"%(prog)s {__version__}",
    )

    return parser


def validate_args(args: argparse.Namespace) -> None:
    """Validate parsed CLI arguments.

    Raises:
        SystemExit: If the request file does not exist or is not readable,
            or the timeout is negative.
    """
    if not os.path.isfile(args.request_file):
        print(
            f"Error: Request file not found: '{args.request_file}'",
            file=sys.stderr,
        )
        sys.exit(1)

    if not os.access(args.request_file, os.R_OK):
        print(
            f"Error: Request file is not readable: '{args.request_file}'",
            file=sys.stderr,
        )
        sys.exit(1)

    if args.timeout < 0:
        print("Error: Timeout cannot be negative.", file=sys.stderr)
        sys.exit(1)


def parse_cli(argv: list[str] | None = None) -> argparse.Namespace:
    """Parse and validate command-line arguments.

    Args:
        argv: Optional list of arguments (defaults to sys.argv).

    Returns:
        Parsed and validated argument namespace. ``timeout`` is ``None``
        when the deadline is disabled.
    """
    parser = build_parser()
    args = parser.parse_args(argv)
    validate_args(args)
    if args.timeout == 0:
        args.timeout = None
    return args
