"""Shared pytest fixtures for integration and unit tests."""

from __future__ import annotations

import subprocess
import sys
import threading
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Generator

import pytest

from preview_server.bootstrap.config import ServerConfig
from preview_server.lifecycle.state import ServerLifecycle
from preview_server.transport.accept_loop import run_server
from preview_server.transport.admission import AdmissionGate
from tests.utils.http import reserve_port

PROJECT_ROOT = Path(__file__).resolve().parent.parent
SERVER_ENTRYPOINT = PROJECT_ROOT / "main.py"

HOME_HTML = b"<!doctype html><h1>home</h1>\n"
ERR_HTML = b"<!doctype html><h1>nothing here</h1>\n"
SECRET = b"outside the serving root\n"


@dataclass
class RunningServer:
    """Handle on a server running in a background thread of the test process."""

    host: str
    port: int
    config: ServerConfig
    lifecycle: ServerLifecycle
    gate: AdmissionGate
    thread: threading.Thread

    @property
    def base_url(self) -> str:
        return f"http://{self.host}:{self.port}"

    def stop(self, timeout: float = 10.0) -> None:
        self.lifecycle.begin_draining()
        self.thread.join(timeout)


@pytest.fixture()
def site_root(tmp_path: Path) -> Path:
    """A serving root with pages, assets and a secret file one level above it."""

    root = tmp_path / "site"
    (root / "nested").mkdir(parents=True)
    (root / "home.html").write_bytes(HOME_HTML)
    (root / "err.html").write_bytes(ERR_HTML)
    (root / "style.css").write_bytes(b"body { color: red; }\n")
    (root / "app.js").write_bytes(b"console.log('hi');\n")
    (root / "blob.bin").write_bytes(bytes(range(256)))
    (root / "nested" / "page.html").write_bytes(b"<p>nested</p>\n")
    (tmp_path / "secret.txt").write_bytes(SECRET)
    return root


@pytest.fixture()
def start_server(
    site_root: Path,
) -> Generator[Callable[..., RunningServer], None, None]:
    """Factory starting in-process servers with fresh counters per instance."""

    servers: list[RunningServer] = []

    def _start(**overrides) -> RunningServer:
        host = "127.0.0.1"
        settings = {
            "addr": host,
            "port": reserve_port(host),
            "directory": str(site_root),
            "socket_timeout": 5,
        }
        settings.update(overrides)
        config = ServerConfig(**settings)
        lifecycle = ServerLifecycle(config.limit_requests)
        gate = AdmissionGate(config.max_threads)
        thread = threading.Thread(
            target=run_server, args=(config, lifecycle, gate), daemon=True
        )
        thread.start()
        if not lifecycle.wait_until_listening(5):
            raise RuntimeError("Server did not start listening within 5s")
        running = RunningServer(host, config.port, config, lifecycle, gate, thread)
        servers.append(running)
        return running

    yield _start

    for running in servers:
        running.stop()


@pytest.fixture()
def preview_server(start_server: Callable[..., RunningServer]) -> RunningServer:
    """Server configured with ``home.html`` as default and ``err.html`` for 404s."""

    return start_server(default_file="home.html", err404_file="err.html")


@pytest.fixture()
def launch_process(
    site_root: Path,
) -> Generator[Callable[..., subprocess.Popen], None, None]:
    """Start ``main.py`` as a child process serving ``site_root`` as its cwd."""

    processes: list[subprocess.Popen] = []

    def _launch(extra_args: list[str]) -> subprocess.Popen:
        process = subprocess.Popen(
            [sys.executable, str(SERVER_ENTRYPOINT), *extra_args],
            cwd=site_root,
            stdout=subprocess.PIPE,
            stderr=subprocess.PIPE,
        )
        processes.append(process)
        return process

    yield _launch

    for process in processes:
        if process.poll() is None:
            process.terminate()
            try:
                process.wait(timeout=5)
            except subprocess.TimeoutExpired:
                process.kill()
        process.communicate()
