"""Shared HTTP type definitions to avoid circular imports."""

from dataclasses import dataclass, field
from pathlib import Path


@dataclass
class HttpRequest:
    """Represents a parsed HTTP request line plus headers."""

    method: str
    path: str
    version: str
    headers: dict[str, str] = field(default_factory=dict)


@dataclass
class HttpResponse:
    """Represents an HTTP response to be sent to a client."""

    status: int
    reason: str
    headers: dict[str, str]
    body: bytes = b""

    @property
    def status_line(self) -> str:
        return f"HTTP/1.1 {self.status} {self.reason}"


@dataclass(frozen=True)
class ResolvedFile:
    """File bytes read from the serving root together with their media type."""

    path: Path
    content: bytes
    content_type: str
