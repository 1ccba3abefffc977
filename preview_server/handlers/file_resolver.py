"""Maps request paths onto files below the serving root."""

import logging
from pathlib import Path
from typing import Optional

from preview_server.domain.http_types import ResolvedFile
from preview_server.domain.request_context import component_logger
from preview_server.domain.sandbox import ForbiddenPath, resolve_sandbox_path

FILE_LOGGER = component_logger("handlers.file")

DEFAULT_CONTENT_TYPE = "application/octet-stream"

CONTENT_TYPES = {
    ".html": "text/html",
    ".htm": "text/html",
    ".css": "text/css",
    ".js": "text/javascript",
    ".mjs": "text/javascript",
    ".json": "application/json",
    ".map": "application/json",
    ".xml": "application/xml",
    ".txt": "text/plain",
    ".md": "text/markdown",
    ".csv": "text/csv",
    ".svg": "image/svg+xml",
    ".png": "image/png",
    ".jpg": "image/jpeg",
    ".jpeg": "image/jpeg",
    ".gif": "image/gif",
    ".webp": "image/webp",
    ".avif": "image/avif",
    ".ico": "image/x-icon",
    ".bmp": "image/bmp",
    ".woff": "font/woff",
    ".woff2": "font/woff2",
    ".ttf": "font/ttf",
    ".otf": "font/otf",
    ".wasm": "application/wasm",
    ".pdf": "application/pdf",
    ".zip": "application/zip",
    ".mp3": "audio/mpeg",
    ".wav": "audio/wav",
    ".ogg": "audio/ogg",
    ".mp4": "video/mp4",
    ".webm": "video/webm",
}


def content_type_for(path: Path) -> str:
    return CONTENT_TYPES.get(path.suffix.lower(), DEFAULT_CONTENT_TYPE)


class FileResolver:
    """Reads files from the serving root; a miss of any kind is ``None``."""

    def __init__(self, directory: str, default_file: str) -> None:
        self.directory = directory
        self.default_file = default_file

    def resolve(self, url_path: str) -> Optional[ResolvedFile]:
        """Return the file behind ``url_path`` or None when it cannot be served."""
        if url_path == "/":
            url_path = self.default_file
        return self.read_named(url_path)

    def read_named(self, name: str) -> Optional[ResolvedFile]:
        """Read a root-relative file name with the same sandbox rules as requests."""
        try:
            resolved_path = resolve_sandbox_path(self.directory, name)
        except ForbiddenPath:
            FILE_LOGGER.warning(
                "Path outside serving root rejected",
                extra={"event": "path_rejected", "path": name},
            )
            return None

        try:
            content = resolved_path.read_bytes()
        except OSError as error:
            FILE_LOGGER.info(
                "File not found",
                extra={
                    "event": "file_not_found",
                    "path": resolved_path.as_posix(),
                    "error_type": type(error).__name__,
                },
            )
            return None

        if FILE_LOGGER.logger.isEnabledFor(logging.DEBUG):
            FILE_LOGGER.debug(
                "File read complete",
                extra={
                    "event": "file_read_complete",
                    "path": resolved_path.as_posix(),
                    "bytes_out": len(content),
                },
            )
        return ResolvedFile(resolved_path, content, content_type_for(resolved_path))
