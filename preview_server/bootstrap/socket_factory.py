"""Listening socket creation."""

import socket

from preview_server.bootstrap.config import ServerConfig
from preview_server.domain.request_context import component_logger

SOCKET_LOGGER = component_logger("socket")

ACCEPT_POLL_SECONDS = 0.5
LISTEN_BACKLOG = 128


def create_server_socket(config: ServerConfig) -> socket.socket:
    """Bind and listen on the configured address; bind errors are fatal to the caller."""
    try:
        server_socket = socket.create_server(
            (config.addr, config.port), backlog=LISTEN_BACKLOG
        )
    except OSError as error:
        SOCKET_LOGGER.critical(
            "Failed to bind listening socket",
            extra={
                "event": "bind_failed",
                "host": config.addr,
                "port": config.port,
                "error_type": type(error).__name__,
                "error": str(error),
            },
        )
        raise
    server_socket.settimeout(ACCEPT_POLL_SECONDS)
    return server_socket
