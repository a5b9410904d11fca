"""Request execution and response rendering.

Sends an assembled request through ``requests``, times it, and renders the
response either as the raw body or as an annotated summary.
"""

from __future__ import annotations

import datetime
import logging
import sys
import time
from typing import BinaryIO

import requests
import urllib3

from restfile.errors import ExecutionError
from restfile.parser import RequestDescriptor

logger = logging.getLogger(__name__)

# Seconds to wait for the server before giving up
DEFAULT_TIMEOUT = 120.0

REQUEST_BANNER = "===== Request:"
RESPONSE_BANNER = "===== Response:"


class ResponseDescriptor:
    """The outcome of one executed request. Read-only once built."""

    __slots__ = ("status_code", "status_text", "headers", "body", "elapsed")

    def __init__(
        self,
        status_code: int,
        status_text: str,
        headers: dict[str, str],
        body: bytes,
        elapsed: datetime.timedelta,
    ) -> None:
        object.__setattr__(self, "status_code", status_code)
        object.__setattr__(self, "status_text", status_text)
        object.__setattr__(self, "headers", dict(headers))
        object.__setattr__(self, "body", body)
        object.__setattr__(self, "elapsed", elapsed)

    def __setattr__(self, name: str, value: object) -> None:
        raise AttributeError(f"ResponseDescriptor is read-only: {name}")

    @property
    def elapsed_ms(self) -> float:
        return self.elapsed / datetime.timedelta(milliseconds=1)

    def __repr__(self) -> str:
        return (
            f"ResponseDescriptor(status_code={self.status_code}, "
            f"status_text={self.status_text!r}, "
            f"headers=<{len(self.headers)} headers>, "
            f"body=<{len(self.body)} bytes>)"
        )


def build_proxies(proxy: str | None) -> dict[str, str] | None:
    """Route both schemes through ``proxy``, if one is given."""
    if not proxy:
        return None
    return {"http": proxy, "https": proxy}


def execute_request(
    request: RequestDescriptor,
    timeout: float | None = DEFAULT_TIMEOUT,
    proxy: str | None = None,
    verify: bool = True,
) -> ResponseDescriptor:
    """Send the request and capture the response.

    Elapsed time covers the call to the transport only: from just before
    the request is issued until the response has been received.

    Args:
        request: The assembled request.
        timeout: Deadline in seconds, or ``None`` to wait indefinitely.
        proxy: Optional proxy URL for both HTTP and HTTPS.
        verify: Whether to verify TLS certificates.

    Returns:
        A ResponseDescriptor with status, headers, body and timing.

    Raises:
        ExecutionError: If the transport fails (DNS, connection, timeout,
            invalid URL or header).
    """
    if not verify:
        urllib3.disable_warnings(urllib3.exceptions.InsecureRequestWarning)

    data = request.body.encode("utf-8") if request.body is not None else None

    logger.info("Sending %s %s", request.method, request.url)
    start = time.perf_counter()
    try:
        response = requests.request(
            method=request.method,
            url=request.url,
            headers=request.headers,
            data=data,
            proxies=build_proxies(proxy),
            timeout=timeout,
            verify=verify,
        )
    except (requests.exceptions.RequestException, ValueError) as exc:
        # ValueError covers the UnicodeEncodeError http.client raises for
        # header values that do not encode as Latin-1
        logger.debug("Transport error for %s %s", request.method, request.url)
        raise ExecutionError(request.method, request.url, exc) from exc
    elapsed = datetime.timedelta(seconds=time.perf_counter() - start)

    logger.info(
        "Received %s %s in %.3fms",
        response.status_code,
        response.reason,
        elapsed / datetime.timedelta(milliseconds=1),
    )

    return ResponseDescriptor(
        status_code=response.status_code,
        status_text=response.reason or "",
        headers=dict(response.headers),
        body=response.content,
        elapsed=elapsed,
    )


def format_status_line(response: ResponseDescriptor) -> str:
    status = str(response.status_code)
    if response.status_text:
        status += f" {response.status_text}"
    return f"{status} - {response.elapsed_ms:.3f}ms"


def format_response(
    response: ResponseDescriptor, verbose: bool = False
) -> bytes:
    """Render a response for stdout.

    Non-verbose output is the body, untouched. Verbose output prefixes it
    with the status line, one ``name: "value"`` line per header and a
    blank line.
    """
    if not verbose:
        return response.body

    lines = [format_status_line(response)]
    for name, value in response.headers.items():
        lines.append(f'{name}: "{value}"')
    head = "\n".join(lines) + "\n\n"
    return head.encode("utf-8") + response.body


def write_response(
    response: ResponseDescriptor,
    verbose: bool = False,
    stream: BinaryIO | None = None,
) -> None:
    """Write the rendered response to ``stream`` (stdout by default)."""
    out = stream if stream is not None else sys.stdout.buffer
    out.write(format_response(response, verbose))
    out.flush()


def format_request(request: RequestDescriptor) -> str:
    """Render the request that is about to be sent, for debugging."""
    request_line = f"{request.method} {request.url}"
    if request.protocol:
        request_line += f" {request.protocol}"

    lines = [request_line, "headers:"]
    for name, value in request.headers.items():
        lines.append(f'   {name}: "{value}"')
    lines.append("body:")
    if request.body is not None:
        lines.append(request.body)
    return "\n".join(lines)
