"""Request routing logic."""

import logging
from typing import Optional

from preview_server.domain.http_types import HttpRequest, HttpResponse
from preview_server.domain.request_context import component_logger
from preview_server.domain.response_builders import file_response, not_found_response
from preview_server.handlers.file_resolver import FileResolver

ROUTER_LOGGER = component_logger("pipeline.router")


def not_found(resolver: FileResolver, err404_file: Optional[str]) -> HttpResponse:
    """Serve the configured error page with a 404 status, or the static fallback."""
    if err404_file:
        error_page = resolver.read_named(err404_file)
        if error_page is not None:
            return file_response(error_page, status=404)
        ROUTER_LOGGER.warning(
            "Configured 404 file is unavailable",
            extra={"event": "err404_file_missing", "path": err404_file},
        )
    return not_found_response()


def route_request(
    request: HttpRequest,
    resolver: FileResolver,
    err404_file: Optional[str] = None,
) -> HttpResponse:
    """Resolve the request path and return the matching response."""
    resolved = resolver.resolve(request.path)
    if resolved is None:
        ROUTER_LOGGER.info(
            "No file for route",
            extra={
                "event": "route_not_found",
                "route": request.path,
                "method": request.method,
            },
        )
        return not_found(resolver, err404_file)

    if ROUTER_LOGGER.logger.isEnabledFor(logging.DEBUG):
        ROUTER_LOGGER.debug(
            "Route matched",
            extra={
                "event": "route_matched",
                "route": request.path,
                "path": resolved.path.as_posix(),
            },
        )
    return file_response(resolved)
