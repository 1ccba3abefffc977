"""Main connection acceptance loop."""

import logging
import socket
import threading
from typing import Optional

from preview_server.bootstrap.config import ServerConfig
from preview_server.bootstrap.socket_factory import create_server_socket
from preview_server.domain.request_context import component_logger
from preview_server.handlers.file_resolver import FileResolver
from preview_server.lifecycle.state import ServerLifecycle
from preview_server.transport.admission import AdmissionGate
from preview_server.transport.context import WorkerContext
from preview_server.transport.worker import handle_client

ACCEPT_LOGGER = component_logger("transport.accept")


def _dispatch_client(
    client_socket: socket.socket,
    client_address: tuple[str, int],
    context: WorkerContext,
) -> None:
    """Count the connection, wait for a permit and hand it to a worker thread."""
    client_addr_str = f"{client_address[0]}:{client_address[1]}"
    if ACCEPT_LOGGER.logger.isEnabledFor(logging.DEBUG):
        ACCEPT_LOGGER.debug(
            "Client connection accepted",
            extra={"event": "client_accepted", "client": client_addr_str},
        )

    context.lifecycle.admit()

    if context.gate.is_saturated():
        ACCEPT_LOGGER.debug(
            "All worker slots busy, waiting for a permit",
            extra={
                "event": "admission_waiting",
                "client": client_addr_str,
                "active": context.gate.active_count,
                "max_threads": context.gate.limit,
            },
        )
    context.gate.acquire()

    thread = threading.Thread(
        target=handle_client,
        args=(client_socket, client_address, context),
        daemon=False,
    )
    try:
        thread.start()
    except RuntimeError as error:
        ACCEPT_LOGGER.error(
            "Could not start worker thread",
            extra={
                "event": "worker_start_failed",
                "client": client_addr_str,
                "error": str(error),
            },
        )
        context.lifecycle.record_completion()
        context.gate.release()
        client_socket.close()
        return
    context.lifecycle.register_worker(thread)


def run_server(
    config: ServerConfig,
    lifecycle: Optional[ServerLifecycle] = None,
    gate: Optional[AdmissionGate] = None,
) -> None:
    """Accept connections until the lifecycle refuses more, then drain workers."""
    if lifecycle is None:
        lifecycle = ServerLifecycle(config.limit_requests)
    if gate is None:
        gate = AdmissionGate(config.max_threads)

    server_socket = create_server_socket(config)
    host, port = server_socket.getsockname()[:2]

    ACCEPT_LOGGER.info(
        "Server listening for connections",
        extra={
            "event": "server_listening",
            "host": host,
            "port": port,
            "directory": config.directory,
            "default_file": config.default_file,
            "err404_file": config.err404_file,
            "max_threads": config.max_threads,
            "limit_requests": config.limit_requests,
        },
    )

    context = WorkerContext(
        config=config,
        resolver=FileResolver(config.directory, config.default_file),
        lifecycle=lifecycle,
        gate=gate,
    )
    lifecycle.mark_listening()

    try:
        while lifecycle.can_accept():
            try:
                client_socket, client_address = server_socket.accept()
            except socket.timeout:
                continue
            except OSError as error:
                if lifecycle.should_stop():
                    break
                ACCEPT_LOGGER.error(
                    "Socket accept failed",
                    extra={"event": "accept_error", "error_type": type(error).__name__},
                )
                continue

            _dispatch_client(client_socket, client_address, context)
    finally:
        server_socket.close()
        ACCEPT_LOGGER.info(
            "Waiting for active connections to complete",
            extra={
                "event": "shutdown_waiting",
                "active": gate.active_count,
                "workers": lifecycle.active_worker_count(),
            },
        )
        lifecycle.wait_for_workers()
        ACCEPT_LOGGER.info(
            "Server shutdown complete",
            extra={"event": "server_stopped", "served": lifecycle.served},
        )
