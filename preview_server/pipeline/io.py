"""HTTP input/output operations."""

import re
import socket
import urllib.parse
from typing import Optional, Tuple

from preview_server.bootstrap.config import HEADER_DELIMITER, MAX_HEADER_BYTES
from preview_server.domain.http_types import HttpRequest, HttpResponse
from preview_server.domain.request_context import component_logger
from preview_server.pipeline.validation import MalformedRequest

IO_LOGGER = component_logger("io")

RECV_CHUNK_BYTES = 4096
HEAD_TERMINATOR = re.compile(rb"\r?\n\r?\n")


def parse_headers(lines: list[str]) -> dict[str, str]:
    """Convert raw header lines into a lowercase-keyed dictionary."""
    parsed = {}
    for line in lines:
        if ":" in line:
            name, value = line.split(":", 1)
            parsed[name.strip().lower()] = value.strip()
    return parsed


def parse_request_line(request_line: str) -> Tuple[str, str, str]:
    """Parse method, decoded path and version from the request line."""
    parts = request_line.split()
    if len(parts) != 3:
        raise MalformedRequest("Invalid request line")
    method, target, version = parts
    if not version.startswith("HTTP/"):
        raise MalformedRequest("Invalid protocol version")

    parsed_target = urllib.parse.urlsplit(target)
    path = urllib.parse.unquote(parsed_target.path) if target.startswith("/") else target
    return method, path, version


def _build_request(header_block: bytes) -> HttpRequest:
    header_lines = [
        line.rstrip("\r") for line in header_block.decode("iso-8859-1").split("\n")
    ]
    method, path, version = parse_request_line(header_lines[0])
    headers = parse_headers(header_lines[1:])
    IO_LOGGER.debug("Parsed request", extra={"method": method, "path": path})
    return HttpRequest(method, path, version, headers)


def receive_request(client_socket: socket.socket) -> Optional[HttpRequest]:
    """Read the request head; None when the client closes without sending anything.

    Heads may end with CRLF or bare LF line breaks. When the client half-closes
    early, the complete lines received so far are parsed; a request line cut
    off mid-way is malformed.
    """
    buffer = b""
    while True:
        terminator = HEAD_TERMINATOR.search(buffer)
        if terminator is not None:
            return _build_request(buffer[: terminator.start()])
        if len(buffer) > MAX_HEADER_BYTES:
            raise MalformedRequest("Request head too large")
        chunk = client_socket.recv(RECV_CHUNK_BYTES)
        if not chunk:
            break
        buffer += chunk

    if not buffer:
        return None
    if b"\n" not in buffer:
        raise MalformedRequest("Incomplete request line")
    return _build_request(buffer[: buffer.rindex(b"\n")])


def send_response(
    client_socket: socket.socket, response: HttpResponse, head_only: bool = False
) -> None:
    """Serialize and send the HTTP response; HEAD responses omit the body."""
    headers = dict(response.headers)
    headers["Content-Length"] = str(len(response.body))
    headers["Connection"] = "close"

    header_lines = [response.status_line]
    header_lines.extend(f"{name}: {value}" for name, value in headers.items())
    header_block = "\r\n".join(header_lines).encode("iso-8859-1") + HEADER_DELIMITER
    client_socket.sendall(header_block if head_only else header_block + response.body)
    IO_LOGGER.debug(
        "Sent response",
        extra={"status_code": response.status, "bytes_out": len(response.body)},
    )
