"""Unit tests for path resolution inside the serving root."""

import os
from pathlib import Path

import pytest

from preview_server.domain.sandbox import ForbiddenPath, resolve_sandbox_path
from preview_server.handlers.file_resolver import FileResolver, content_type_for
from tests.conftest import HOME_HTML


@pytest.fixture(name="resolver")
def fixture_resolver(site_root: Path) -> FileResolver:
    return FileResolver(str(site_root), "home.html")


def test_resolve_returns_exact_bytes_and_type(resolver: FileResolver) -> None:
    resolved = resolver.resolve("/blob.bin")

    assert resolved is not None
    assert resolved.content == bytes(range(256))
    assert resolved.content_type == "application/octet-stream"


def test_root_is_substituted_with_default_file(resolver: FileResolver) -> None:
    root = resolver.resolve("/")
    named = resolver.resolve("/home.html")

    assert root is not None and named is not None
    assert root.content == named.content == HOME_HTML
    assert root.content_type == "text/html"


def test_nested_paths_resolve(resolver: FileResolver) -> None:
    resolved = resolver.resolve("/nested/page.html")

    assert resolved is not None
    assert resolved.content == b"<p>nested</p>\n"


@pytest.mark.parametrize(
    "url_path",
    [
        "/../secret.txt",
        "/../../etc/passwd",
        "/nested/../../secret.txt",
        "/nested/..",
        "/..\\secret.txt",
        "/home.html\x00.png",
    ],
)
def test_traversal_is_not_found(resolver: FileResolver, url_path: str) -> None:
    assert resolver.resolve(url_path) is None


@pytest.mark.parametrize("url_path", ["/missing.html", "/nested", "/nested/"])
def test_missing_files_and_directories_are_not_found(
    resolver: FileResolver, url_path: str
) -> None:
    assert resolver.resolve(url_path) is None


def test_symlink_escaping_root_is_not_found(site_root: Path) -> None:
    link = site_root / "escape.txt"
    try:
        os.symlink(site_root.parent / "secret.txt", link)
    except (OSError, NotImplementedError):
        pytest.skip("symlinks unavailable")

    assert FileResolver(str(site_root), "home.html").resolve("/escape.txt") is None


def test_symlink_loop_is_not_found(site_root: Path) -> None:
    loop = site_root / "loop"
    try:
        os.symlink(loop, loop)
    except (OSError, NotImplementedError):
        pytest.skip("symlinks unavailable")

    resolver = FileResolver(str(site_root), "home.html")
    assert resolver.resolve("/loop") is None
    assert resolver.resolve("/loop/index.html") is None


def test_missing_default_file_is_not_found(site_root: Path) -> None:
    assert FileResolver(str(site_root), "index.html").resolve("/") is None


def test_read_named_applies_sandbox(resolver: FileResolver) -> None:
    assert resolver.read_named("err.html") is not None
    assert resolver.read_named("../secret.txt") is None


@pytest.mark.parametrize(
    ("name", "expected"),
    [
        ("index.html", "text/html"),
        ("INDEX.HTM", "text/html"),
        ("style.css", "text/css"),
        ("app.js", "text/javascript"),
        ("data.json", "application/json"),
        ("logo.svg", "image/svg+xml"),
        ("photo.JPG", "image/jpeg"),
        ("module.wasm", "application/wasm"),
        ("README", "application/octet-stream"),
        ("archive.unknownext", "application/octet-stream"),
    ],
)
def test_content_type_for_extension(name: str, expected: str) -> None:
    assert content_type_for(Path(name)) == expected


def test_resolve_sandbox_path_rejects_empty_and_parent(site_root: Path) -> None:
    with pytest.raises(ForbiddenPath):
        resolve_sandbox_path(str(site_root), "/")
    with pytest.raises(ForbiddenPath):
        resolve_sandbox_path(str(site_root), "a/../../b")
    assert resolve_sandbox_path(str(site_root), "/nested/page.html") == (
        site_root.resolve() / "nested" / "page.html"
    )
