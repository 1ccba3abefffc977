"""Filesystem sandbox utilities for safe path resolution."""

from pathlib import Path, PurePosixPath


class ForbiddenPath(Exception):
    """Raised when a requested path escapes the serving root."""


def resolve_sandbox_path(directory: str, user_path: str) -> Path:
    """Resolve a URL-style path inside the serving root.

    Rejects NUL bytes, empty paths, any ``..`` segment and anything that lands
    outside the root once symlinks are resolved. Symlink loops are rejected too.
    """
    if "\x00" in user_path:
        raise ForbiddenPath

    directory_root = Path(directory).resolve()
    relative_part = user_path.lstrip("/")
    if not relative_part:
        raise ForbiddenPath

    segments = PurePosixPath(relative_part.replace("\\", "/")).parts
    if ".." in segments:
        raise ForbiddenPath

    try:
        target = directory_root.joinpath(*segments).resolve()
    except (OSError, RuntimeError) as error:
        raise ForbiddenPath from error
    if not (target == directory_root or directory_root in target.parents):
        raise ForbiddenPath

    return target
