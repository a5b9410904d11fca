"""restfile — Main entry point.

Ties together the CLI, parser, and engine modules: read the file, pick the
request block(s), assemble them, send them and print the responses.
"""

import logging
import sys

from restfile.cli import parse_cli
from restfile.engine import (
    REQUEST_BANNER,
    RESPONSE_BANNER,
    execute_request,
    format_request,
    write_response,
)
from restfile.errors import (
    ExecutionError,
    FileError,
    ParseError,
    SelectionError,
)
from restfile.parser import (
    assemble_request,
    load_request_file,
    select_blocks,
    split_blocks,
)

logger = logging.getLogger("restfile")

EXIT_OK = 0
EXIT_FILE_ERROR = 1
EXIT_ERROR = 2
EXIT_INTERRUPTED = 130


def configure_logging(debug: bool = False) -> None:
    logging.basicConfig(
        level=logging.DEBUG if debug else logging.WARNING,
        format="%(asctime)s - %(levelname)s - %(message)s",
        datefmt="%H:%M:%S",
        stream=sys.stderr,
    )


def main(argv: list[str] | None = None) -> int:
    """Run the restfile tool.

    Args:
        argv: Optional argument list (defaults to sys.argv).

    Returns:
        Exit code (0 = requests sent, 1 = unreadable file, 2 = parse,
        selection or transport error, 130 = interrupted).
    """
    args = parse_cli(argv)
    configure_logging(args.debug)

    # --- Read and split the request file ---
    logger.info("Loading requests from: %s", args.request_file)
    try:
        raw_text = load_request_file(args.request_file)
    except FileError as exc:
        print(f"Error reading request file: {exc}", file=sys.stderr)
        return EXIT_FILE_ERROR

    blocks = split_blocks(raw_text)

    # --- Select and assemble; nothing is sent unless every block parses ---
    try:
        selected = select_blocks(blocks, args.selector)
    except SelectionError as exc:
        print(f"Error selecting request: {exc}", file=sys.stderr)
        return EXIT_ERROR

    try:
        requests_to_send = [assemble_request(block) for block in selected]
    except ParseError as exc:
        print(f"Error parsing request: {exc}", file=sys.stderr)
        return EXIT_ERROR

    # --- Send and print, one request at a time ---
    for position, request in enumerate(requests_to_send):
        if position:
            # Newline between consecutive responses
            print(flush=True)
        if args.verbosity > 1:
            print(REQUEST_BANNER)
            print(format_request(request))
            print(RESPONSE_BANNER, flush=True)

        try:
            response = execute_request(
                request,
                timeout=args.timeout,
                proxy=args.proxy,
                verify=args.verify,
            )
        except ExecutionError as exc:
            print(f"Error during request: {exc}", file=sys.stderr)
            return EXIT_ERROR
        except KeyboardInterrupt:
            print("Interrupted", file=sys.stderr)
            return EXIT_INTERRUPTED

        write_response(response, verbose=args.verbosity > 0)

    return EXIT_OK


if __name__ == "__main__":
    sys.exit(main())
