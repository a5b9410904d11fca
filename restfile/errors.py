"""Error taxonomy shared by every stage of the pipeline."""

from __future__ import annotations


class RestfileError(Exception):
    """Base class for every error raised by restfile."""


class FileError(RestfileError):
    """The request file is missing or cannot be read."""

    def __init__(self, path: str, cause: Exception) -> None:
        self.path = path
        self.cause = cause
        super().__init__(f"cannot read '{path}': {cause}")


class ParseError(RestfileError, ValueError):
    """A request block could not be turned into a request.

    Carries the offending line and its 1-based line number in the file
    (``None`` when the failure is not tied to a single line, e.g. an
    empty block).
    """

    def __init__(
        self,
        message: str,
        line: str | None = None,
        line_number: int | None = None,
    ) -> None:
        self.message = message
        self.line = line
        self.line_number = line_number
        super().__init__(self._describe())

    def _describe(self) -> str:
        if self.line_number is None:
            return self.message
        return f"line {self.line_number}: {self.message}: {self.line!r}"


class SelectionError(RestfileError):
    """The requested block index does not exist in the file."""

    def __init__(self, index: int | str, count: int) -> None:
        self.index = index
        self.count = count
        if count == 0:
            msg = "the file contains no requests"
        else:
            msg = f"invalid request index: {index} out of {count}"
        super().__init__(msg)


class ExecutionError(RestfileError):
    """The HTTP transport failed before a response was received."""

    def __init__(self, method: str, url: str, cause: Exception) -> None:
        self.method = method
        self.url = url
        self.cause = cause
        super().__init__(f"{method} {url} failed: {cause}")
