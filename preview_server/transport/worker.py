"""Worker thread logic for handling individual client connections."""

import logging
import socket
import threading
from dataclasses import dataclass
from typing import Optional

from preview_server.bootstrap.config import ALLOWED_METHODS, SUPPORTED_VERSIONS
from preview_server.domain.http_types import HttpRequest, HttpResponse
from preview_server.domain.request_context import (
    clear_request_id,
    component_logger,
    next_request_id,
    set_request_id,
)
from preview_server.domain.response_builders import (
    bad_request_response,
    internal_error_response,
)
from preview_server.pipeline.io import receive_request, send_response
from preview_server.pipeline.router import route_request
from preview_server.pipeline.validation import MalformedRequest, validate_request
from preview_server.transport.context import WorkerContext

WORKER_LOGGER = component_logger("transport.worker")


@dataclass
class _WorkerResources:
    thread: threading.Thread
    client_socket: socket.socket
    client_addr_str: str
    replied: bool = False


def _read_request(
    client_socket: socket.socket, client_addr_str: str
) -> tuple[Optional[HttpRequest], Optional[HttpResponse]]:
    """Return the parsed request, or the error response to send instead."""
    try:
        request = receive_request(client_socket)
    except MalformedRequest as error:
        WORKER_LOGGER.warning(
            "Malformed request received",
            extra={
                "event": "malformed_request",
                "client": client_addr_str,
                "error": str(error),
            },
        )
        return None, bad_request_response()

    if request is None and WORKER_LOGGER.logger.isEnabledFor(logging.DEBUG):
        WORKER_LOGGER.debug(
            "Client disconnected before sending a request",
            extra={"event": "client_disconnected", "client": client_addr_str},
        )
    return request, None


def _process_request(request: HttpRequest, context: WorkerContext) -> HttpResponse:
    validation_response = validate_request(
        request, ALLOWED_METHODS, SUPPORTED_VERSIONS
    )
    if validation_response is not None:
        return validation_response
    return route_request(request, context.resolver, context.config.err404_file)


def _reply(
    resources: _WorkerResources, response: HttpResponse, head_only: bool = False
) -> None:
    resources.replied = True
    send_response(resources.client_socket, response, head_only)


def _cleanup_worker(context: WorkerContext, resources: _WorkerResources) -> None:
    served = context.lifecycle.record_completion()
    context.gate.release()
    context.lifecycle.cleanup_worker(resources.thread)

    try:
        resources.client_socket.shutdown(socket.SHUT_WR)
    except OSError:
        pass
    resources.client_socket.close()

    WORKER_LOGGER.debug(
        "Socket closed",
        extra={
            "event": "socket_closed",
            "client": resources.client_addr_str,
            "served": served,
        },
    )
    clear_request_id()


def handle_client(
    client_socket: socket.socket,
    client_address: tuple[str, int],
    context: WorkerContext,
) -> None:
    """Read one request, write exactly one response, then release the connection.

    The admission permit must already be held; it is released here together
    with the completion count, whatever the outcome.
    """
    set_request_id(next_request_id())
    client_addr_str = f"{client_address[0]}:{client_address[1]}"
    resources = _WorkerResources(
        threading.current_thread(), client_socket, client_addr_str
    )

    try:
        client_socket.settimeout(context.config.socket_timeout)
        WORKER_LOGGER.debug(
            "Request processing started",
            extra={"event": "request_started", "client": client_addr_str},
        )

        request, error_response = _read_request(client_socket, client_addr_str)
        if error_response is not None:
            _reply(resources, error_response)
            return
        if request is None:
            return

        WORKER_LOGGER.debug(
            "Request line parsed",
            extra={
                "event": "request_line_parsed",
                "method": request.method,
                "route": request.path,
            },
        )

        response = _process_request(request, context)
        _reply(resources, response, head_only=request.method == "HEAD")

        WORKER_LOGGER.info(
            "Request processing complete",
            extra={
                "event": "request_complete",
                "client": client_addr_str,
                "method": request.method,
                "route": request.path,
                "status_code": response.status,
                "bytes_out": len(response.body),
            },
        )
    except (ConnectionError, TimeoutError, OSError) as error:
        WORKER_LOGGER.error(
            "Error handling client connection",
            extra={
                "event": "connection_error",
                "client": client_addr_str,
                "error_type": type(error).__name__,
            },
        )
    except Exception as error:  # pylint: disable=broad-except
        WORKER_LOGGER.error(
            "Unexpected error in worker",
            extra={
                "event": "worker_error",
                "client": client_addr_str,
                "error_type": type(error).__name__,
                "error": str(error),
            },
            exc_info=True,
        )
        if not resources.replied:
            try:
                _reply(resources, internal_error_response())
            except OSError:
                pass
    finally:
        _cleanup_worker(context, resources)
