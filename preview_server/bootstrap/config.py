"""Server configuration and CLI argument parsing."""

import argparse
import ipaddress
import os
from dataclasses import dataclass
from typing import Optional


def _env_int(name: str, default: int) -> int:
    value = os.getenv(name)
    return int(value) if value is not None else default


DEFAULT_PORT = 6969
DEFAULT_ADDR = "127.0.0.1"
DEFAULT_FILE = "index.html"
DEFAULT_SOCKET_TIMEOUT = _env_int("PREVIEW_SERVER_SOCKET_TIMEOUT", 30)

HEADER_DELIMITER = b"\r\n\r\n"
MAX_HEADER_BYTES = 64 * 1024
ALLOWED_METHODS = {"GET", "HEAD"}
SUPPORTED_VERSIONS = {"HTTP/1.0", "HTTP/1.1"}


@dataclass(frozen=True)
class ServerConfig:
    """Resolved settings shared read-only by the listener and every worker."""

    addr: str = DEFAULT_ADDR
    port: int = DEFAULT_PORT
    default_file: str = DEFAULT_FILE
    err404_file: Optional[str] = None
    max_threads: Optional[int] = None
    limit_requests: Optional[int] = None
    directory: str = "."
    socket_timeout: float = DEFAULT_SOCKET_TIMEOUT


def _port(value: str) -> int:
    try:
        port = int(value)
    except ValueError as exc:
        raise argparse.ArgumentTypeError(f"{value} is not a valid number!") from exc
    if not 0 <= port <= 65535:
        raise argparse.ArgumentTypeError(f"{value} is not a valid port!")
    return port


def _ipv4_address(value: str) -> str:
    try:
        return str(ipaddress.IPv4Address(value))
    except ValueError as exc:
        raise argparse.ArgumentTypeError(
            f"{value} is not a valid IPv4 address!"
        ) from exc


def _positive_int(value: str) -> int:
    try:
        number = int(value)
    except ValueError as exc:
        raise argparse.ArgumentTypeError(f"{value} is not a valid number!") from exc
    if number <= 0:
        raise argparse.ArgumentTypeError(f"{value} is not integer greater then 0!")
    return number


def _non_negative_int(value: str) -> int:
    try:
        number = int(value)
    except ValueError as exc:
        raise argparse.ArgumentTypeError(f"{value} is not a valid number!") from exc
    if number < 0:
        raise argparse.ArgumentTypeError(f"{value} must not be negative!")
    return number


def parse_cli_args(argv: list[str]) -> argparse.Namespace:
    """Return parsed CLI arguments for server configuration."""
    parser = argparse.ArgumentParser(
        description="Serve the current directory for local page previews"
    )
    parser.add_argument("--port", "-p", type=_port, default=DEFAULT_PORT)
    parser.add_argument("--addr", "-a", type=_ipv4_address, default=DEFAULT_ADDR)
    parser.add_argument(
        "--default-file",
        "-f",
        default=DEFAULT_FILE,
        help="File returned for requests to /",
    )
    parser.add_argument(
        "--err404-file",
        "-e",
        default=None,
        help="File returned with 404 responses (default: plain message)",
    )
    parser.add_argument(
        "--max-threads",
        "-t",
        type=_positive_int,
        default=None,
        help="Maximum concurrently handled connections (default: unlimited)",
    )
    parser.add_argument(
        "--limit-requests",
        "-l",
        type=_non_negative_int,
        default=None,
        help="Exit after serving this many requests (default: unlimited)",
    )
    default_log_level = os.getenv("PREVIEW_SERVER_LOG_LEVEL", "INFO").upper()
    default_destination = os.getenv("PREVIEW_SERVER_LOG_DESTINATION", "stdout")
    parser.add_argument(
        "--log-level",
        default=default_log_level,
        choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
        type=str.upper,
    )
    parser.add_argument(
        "--log-destination",
        default=default_destination,
        help="stdout or a file path",
    )
    return parser.parse_args(argv)


def build_server_config(
    args: argparse.Namespace, directory: str = "."
) -> ServerConfig:
    """Freeze parsed CLI arguments into the config consumed by the server."""
    return ServerConfig(
        addr=args.addr,
        port=args.port,
        default_file=args.default_file,
        err404_file=args.err404_file,
        max_threads=args.max_threads,
        limit_requests=args.limit_requests,
        directory=directory,
        socket_timeout=DEFAULT_SOCKET_TIMEOUT,
    )
