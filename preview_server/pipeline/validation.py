"""Request validation utilities."""

from typing import Optional

from preview_server.domain.http_types import HttpRequest, HttpResponse
from preview_server.domain.response_builders import (
    bad_request_response,
    method_not_allowed_response,
    version_not_supported_response,
)


class MalformedRequest(ValueError):
    """Raised when the request head cannot be parsed."""


def enforce_allowed_method(
    request: HttpRequest, allowed_methods: set[str]
) -> Optional[HttpResponse]:
    """Ensure the HTTP method is part of the supported allowlist."""
    if request.method in allowed_methods:
        return None
    return method_not_allowed_response(allowed_methods)


def enforce_supported_version(
    request: HttpRequest, supported_versions: set[str]
) -> Optional[HttpResponse]:
    if request.version in supported_versions:
        return None
    return version_not_supported_response()


def enforce_origin_form(request: HttpRequest) -> Optional[HttpResponse]:
    """Only origin-form targets (``/path``) are served."""
    if request.path.startswith("/"):
        return None
    return bad_request_response()


def validate_request(
    request: HttpRequest,
    allowed_methods: set[str],
    supported_versions: set[str],
) -> Optional[HttpResponse]:
    """Return an error response when the request fails validation checks."""
    version_error = enforce_supported_version(request, supported_versions)
    if version_error is not None:
        return version_error

    method_error = enforce_allowed_method(request, allowed_methods)
    if method_error is not None:
        return method_error

    return enforce_origin_form(request)
