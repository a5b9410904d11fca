"""Request file parsing: block splitting and request assembly.

Turns the text of a ``.http`` file into structured request descriptors that
the engine can hand to the ``requests`` library.

File syntax::

    // comment lines start with // or #
    POST https://example.com/comments HTTP/1.1
        ?page=2
        &sort=desc
    Content-Type: application/json

    {"name": "sample"}
    ###
    GET https://example.com/comments/1
"""

from __future__ import annotations

import enum
import logging
import re

from restfile.errors import FileError, ParseError, SelectionError

logger = logging.getLogger(__name__)

SEPARATOR = "###"
COMMENT_PREFIXES = ("//", "#")
CONTINUATION_PREFIXES = ("?", "&")
HEADER_SEPARATOR = ": "

# Selector value meaning "every block in the file"
SELECT_ALL = "all"

_PROTOCOL = r"HTTP/\d(?:\.\d)?"
_PROTOCOL_SUFFIX_RE = re.compile(r"\s+(" + _PROTOCOL + r")$")
_PROTOCOL_ONLY_RE = re.compile(_PROTOCOL)


class RequestBlock:
    """The retained lines of one request, as found between separators."""

    __slots__ = ("index", "lines", "line_numbers")

    def __init__(
        self,
        index: int,
        lines: list[str] | None = None,
        line_numbers: list[int] | None = None,
    ) -> None:
        self.index = index
        self.lines = lines if lines is not None else []
        self.line_numbers = line_numbers if line_numbers is not None else []

    def append(self, line: str, line_number: int) -> None:
        self.lines.append(line)
        self.line_numbers.append(line_number)

    @property
    def is_empty(self) -> bool:
        return all(not line.strip() for line in self.lines)

    def __repr__(self) -> str:
        return f"RequestBlock(index={self.index}, lines={len(self.lines)})"


class RequestDescriptor:
    """Container for a fully assembled request."""

    __slots__ = ("method", "url", "headers", "body", "protocol")

    def __init__(
        self,
        method: str,
        url: str,
        headers: dict[str, str] | None = None,
        body: str | None = None,
        protocol: str | None = None,
    ) -> None:
        self.method = method
        self.url = url
        self.headers = headers if headers is not None else {}
        self.body = body
        self.protocol = protocol

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, RequestDescriptor):
            return NotImplemented
        return (
            self.method == other.method
            and self.url == other.url
            and self.headers == other.headers
            and self.body == other.body
            and self.protocol == other.protocol
        )

    def __repr__(self) -> str:
        return (
            f"RequestDescriptor(method={self.method!r}, url={self.url!r}, "
            f"headers=<{len(self.headers)} headers>, "
            f"body={'<present>' if self.body is not None else '<none>'})"
        )


def is_separator(line: str) -> bool:
    return line.rstrip() == SEPARATOR


def is_comment(line: str) -> bool:
    return line.lstrip().startswith(COMMENT_PREFIXES)


def split_blocks(text: str) -> list[RequestBlock]:
    """Split the text of a request file into request blocks.

    ``###`` lines delimit blocks and comment lines are dropped. Everything
    else, blank lines included, is kept in order since blank lines mark the
    start of a body.

    Args:
        text: The full contents of the request file.

    Returns:
        The blocks in file order; one more than the number of separators,
        or an empty list for empty text.
    """
    if not text:
        return []

    normalized = text.replace("\r\n", "\n")
    blocks = [RequestBlock(0)]

    for number, line in enumerate(normalized.split("\n"), start=1):
        if is_separator(line):
            blocks.append(RequestBlock(len(blocks)))
            continue
        if is_comment(line):
            continue
        blocks[-1].append(line, number)

    logger.debug("Split request file into %d block(s)", len(blocks))
    return blocks


class ParserState(enum.Enum):
    """States of the request assembler."""

    EXPECT_REQUEST_LINE = "expect-request-line"
    EXPECT_HEADER = "expect-header"
    EXPECT_BODY = "expect-body"
    DONE = "done"


class RequestAssembler:
    """Line-driven state machine that builds a RequestDescriptor.

    Each state has its own transition method; ``feed`` dispatches a line to
    the method of the current state, which returns the next state.
    """

    def __init__(self) -> None:
        self.state = ParserState.EXPECT_REQUEST_LINE
        self.method: str | None = None
        self.url: str | None = None
        self.protocol: str | None = None
        self.headers: dict[str, str] = {}
        self.body_lines: list[str] = []
        self._transitions = {
            ParserState.EXPECT_REQUEST_LINE: self._expect_request_line,
            ParserState.EXPECT_HEADER: self._expect_header,
            ParserState.EXPECT_BODY: self._expect_body,
        }

    def feed(self, line: str, line_number: int | None = None) -> None:
        """Consume one line of the block."""
        if self.state is ParserState.DONE:
            raise ParseError(
                "assembler already finished", line, line_number
            )
        self.state = self._transitions[self.state](line, line_number)

    def finish(self) -> RequestDescriptor:
        """Close the block and return the assembled request.

        Raises:
            ParseError: If no request line was seen.
        """
        if self.state is ParserState.EXPECT_REQUEST_LINE:
            raise ParseError("request block is empty")
        self.state = ParserState.DONE
        return RequestDescriptor(
            method=self.method,
            url=self.url,
            headers=self.headers,
            body=self._build_body(),
            protocol=self.protocol,
        )

    def _expect_request_line(
        self, line: str, line_number: int | None
    ) -> ParserState:
        stripped = line.strip()
        if not stripped:
            return ParserState.EXPECT_REQUEST_LINE

        method, sep, target = stripped.partition(" ")
        if not sep:
            raise ParseError(
                "malformed request line, expected 'METHOD URL'",
                line,
                line_number,
            )

        url = target.strip()
        match = _PROTOCOL_SUFFIX_RE.search(url)
        if match:
            self.protocol = match.group(1)
            url = url[: match.start()]
        elif _PROTOCOL_ONLY_RE.fullmatch(url):
            url = ""
        if not url:
            raise ParseError("request line has no URL", line, line_number)

        self.method = method
        self.url = url
        return ParserState.EXPECT_HEADER

    def _expect_header(
        self, line: str, line_number: int | None
    ) -> ParserState:
        stripped = line.lstrip()
        if stripped != line and stripped.startswith(CONTINUATION_PREFIXES):
            self.url += stripped.rstrip()
            return ParserState.EXPECT_HEADER

        if not stripped:
            return ParserState.EXPECT_BODY

        name, sep, value = line.partition(HEADER_SEPARATOR)
        if sep and name and not any(ch.isspace() for ch in name):
            if name in self.headers:
                logger.debug("Header %r redefined, keeping last value", name)
            self.headers[name] = value
            return ParserState.EXPECT_HEADER

        raise ParseError(
            "expected a header, a URL parameter or a blank line",
            line,
            line_number,
        )

    def _expect_body(self, line: str, line_number: int | None) -> ParserState:
        self.body_lines.append(line)
        return ParserState.EXPECT_BODY

    def _build_body(self) -> str | None:
        lines = list(self.body_lines)
        # The last empty line terminates the body, either at end of file or
        # right before the separator.
        if lines and lines[-1] == "":
            lines.pop()
        if not lines:
            return None
        return "\n".join(lines)


def assemble_request(block: RequestBlock) -> RequestDescriptor:
    """Assemble one request block into a RequestDescriptor.

    Args:
        block: The block to parse.

    Returns:
        The assembled request.

    Raises:
        ParseError: If the block is empty or contains a malformed line.
    """
    if block.is_empty:
        raise ParseError(f"request #{block.index} is empty")

    assembler = RequestAssembler()
    for line, number in zip(block.lines, block.line_numbers):
        assembler.feed(line, number)
    request = assembler.finish()

    logger.debug("Assembled request #%d: %r", block.index, request)
    return request


def select_blocks(
    blocks: list[RequestBlock], selector: int | str
) -> list[RequestBlock]:
    """Pick the blocks to run.

    Args:
        blocks: All blocks of the file, in order.
        selector: A 0-based block index, or ``SELECT_ALL``.

    Returns:
        The selected blocks, in file order.

    Raises:
        SelectionError: If the index is out of range or the file is empty.
    """
    if selector == SELECT_ALL:
        if not blocks:
            raise SelectionError(selector, 0)
        return list(blocks)

    if not 0 <= selector < len(blocks):
        raise SelectionError(selector, len(blocks))
    return [blocks[selector]]


def load_request_file(filepath: str) -> str:
    """Read and return the contents of a request file.

    Args:
        filepath: Path to the ``.http`` file.

    Returns:
        The raw text content of the file.

    Raises:
        FileError: If the file does not exist or cannot be read.
    """
    try:
        with open(filepath, "r", encoding="utf-8") as fh:
            return fh.read()
    except (OSError, UnicodeDecodeError) as exc:
        raise FileError(filepath, exc) from exc
