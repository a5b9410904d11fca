"""Tests for the error taxonomy."""

from restfile.errors import (
    ExecutionError,
    FileError,
    ParseError,
    RestfileError,
    SelectionError,
)


class TestErrors:
    """Tests for error messages and attributes."""

    def test_all_errors_share_a_base(self):
        for cls in (FileError, ParseError, SelectionError, ExecutionError):
            assert issubclass(cls, RestfileError)

    def test_parse_error_is_value_error(self):
        assert issubclass(ParseError, ValueError)

    def test_parse_error_with_line(self):
        exc = ParseError("bad header", "Accept:x", 4)
        assert str(exc) == "line 4: bad header: 'Accept:x'"
        assert exc.line == "Accept:x"
        assert exc.line_number == 4

    def test_parse_error_without_line(self):
        exc = ParseError("request #0 is empty")
        assert str(exc) == "request #0 is empty"
        assert exc.line is None

    def test_file_error(self):
        cause = FileNotFoundError("no such file")
        exc = FileError("api.http", cause)
        assert exc.cause is cause
        assert "api.http" in str(exc)

    def test_selection_error(self):
        exc = SelectionError(5, 2)
        assert str(exc) == "invalid request index: 5 out of 2"

    def test_selection_error_empty_file(self):
        assert str(SelectionError(0, 0)) == "the file contains no requests"

    def test_execution_error(self):
        cause = OSError("Connection refused")
        exc = ExecutionError("GET", "https://x", cause)
        assert exc.cause is cause
        assert str(exc) == "GET https://x failed: Connection refused"
