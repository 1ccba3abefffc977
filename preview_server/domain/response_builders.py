"""Pure HTTP response builders."""

from preview_server.domain.http_types import HttpResponse, ResolvedFile

TEXT_PLAIN = "text/plain; charset=utf-8"


def _text_response(status: int, reason: str, message: str) -> HttpResponse:
    return HttpResponse(
        status, reason, {"Content-Type": TEXT_PLAIN}, message.encode()
    )


def file_response(resolved: ResolvedFile, status: int = 200) -> HttpResponse:
    """Wrap resolved file bytes; 404 is used when serving the error page."""
    reason = "OK" if status == 200 else "Not Found"
    return HttpResponse(
        status, reason, {"Content-Type": resolved.content_type}, resolved.content
    )


def not_found_response() -> HttpResponse:
    """Static 404 used when no error page is configured or readable."""
    return _text_response(404, "Not Found", "404 Not Found\n")


def bad_request_response() -> HttpResponse:
    return _text_response(400, "Bad Request", "400 Bad Request\n")


def method_not_allowed_response(allowed_methods) -> HttpResponse:
    """Produce a 405 response enumerating the supported HTTP methods."""
    response = _text_response(405, "Method Not Allowed", "405 Method Not Allowed\n")
    response.headers["Allow"] = ", ".join(sorted(allowed_methods))
    return response


def version_not_supported_response() -> HttpResponse:
    return _text_response(
        505, "HTTP Version Not Supported", "505 HTTP Version Not Supported\n"
    )


def internal_error_response() -> HttpResponse:
    return _text_response(500, "Internal Server Error", "500 Internal Server Error\n")
