"""Static preview server for the current working directory."""

import signal
import sys

from preview_server.bootstrap.config import build_server_config, parse_cli_args
from preview_server.bootstrap.logging_setup import configure_logging
from preview_server.domain.request_context import component_logger
from preview_server.lifecycle.state import ServerLifecycle
from preview_server.transport.admission import AdmissionGate
from preview_server.transport.accept_loop import run_server

SERVER_LOGGER = component_logger("server")


def main(argv: list[str] | None = None) -> int:
    """Serve files until the request cap drains or a shutdown signal arrives."""
    args = parse_cli_args(sys.argv[1:] if argv is None else argv)
    configure_logging(args.log_level, args.log_destination)

    config = build_server_config(args)
    lifecycle = ServerLifecycle(config.limit_requests)
    gate = AdmissionGate(config.max_threads)

    def shutdown_handler(signum: int, _frame) -> None:
        SERVER_LOGGER.info("Received shutdown signal", extra={"signal": signum})
        lifecycle.begin_draining()

    signal.signal(signal.SIGTERM, shutdown_handler)
    signal.signal(signal.SIGINT, shutdown_handler)

    SERVER_LOGGER.info(
        "Starting preview server",
        extra={
            "host": config.addr,
            "port": config.port,
            "log_destination": args.log_destination,
            "log_level": args.log_level,
        },
    )
    try:
        run_server(config, lifecycle, gate)
    except OSError:
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
