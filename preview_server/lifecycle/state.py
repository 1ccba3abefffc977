"""Server lifecycle state: request accounting and shutdown coordination."""

import threading
import time
from typing import Optional

from preview_server.domain.request_context import component_logger

LIFECYCLE_LOGGER = component_logger("lifecycle")


class ServerLifecycle:
    """Tracks admitted and served requests and decides when to stop accepting.

    The request ceiling is applied to admitted connections and checked before
    every ``accept()``, so exactly ``limit_requests`` connections are taken.
    """

    def __init__(self, limit_requests: Optional[int] = None) -> None:
        if limit_requests is not None and limit_requests < 0:
            raise ValueError("limit_requests must not be negative")
        self._limit = limit_requests
        self._lock = threading.Lock()
        self._stop_event = threading.Event()
        self._listening_event = threading.Event()
        self._admitted = 0
        self._served = 0
        self._workers: set[threading.Thread] = set()

    @property
    def admitted(self) -> int:
        with self._lock:
            return self._admitted

    @property
    def served(self) -> int:
        with self._lock:
            return self._served

    def can_accept(self) -> bool:
        """Check whether the listener may accept another connection."""
        if self._stop_event.is_set():
            return False
        with self._lock:
            return self._limit is None or self._admitted < self._limit

    def admit(self) -> int:
        """Reserve a request slot for a freshly accepted connection."""
        with self._lock:
            self._admitted += 1
            admitted = self._admitted
        if self._limit is not None and admitted >= self._limit:
            LIFECYCLE_LOGGER.info(
                "Request limit reached, no further connections will be accepted",
                extra={"event": "request_limit_reached", "limit_requests": self._limit},
            )
        return admitted

    def record_completion(self) -> int:
        """Count one attempted response, successful or not."""
        with self._lock:
            self._served += 1
            return self._served

    def should_stop(self) -> bool:
        return self._stop_event.is_set()

    def begin_draining(self) -> None:
        """Stop accepting connections; in-flight workers run to completion."""
        self._stop_event.set()
        LIFECYCLE_LOGGER.info("Beginning graceful shutdown")

    def mark_listening(self) -> None:
        self._listening_event.set()

    def wait_until_listening(self, timeout: Optional[float] = None) -> bool:
        return self._listening_event.wait(timeout)

    def register_worker(self, thread: threading.Thread) -> None:
        """Register a worker thread for tracking."""
        with self._lock:
            self._workers.add(thread)

    def cleanup_worker(self, thread: threading.Thread) -> None:
        """Remove a worker thread from tracking."""
        with self._lock:
            self._workers.discard(thread)

    def active_worker_count(self) -> int:
        with self._lock:
            return len(self._workers)

    def wait_for_workers(self, timeout: Optional[float] = None) -> bool:
        """Wait for all worker threads to finish; None waits indefinitely."""
        deadline = None if timeout is None else time.monotonic() + timeout
        while True:
            with self._lock:
                self._workers = {w for w in self._workers if w.is_alive()}
                active_workers = list(self._workers)
            if not active_workers:
                return True
            remaining = None if deadline is None else deadline - time.monotonic()
            if remaining is not None and remaining <= 0:
                LIFECYCLE_LOGGER.warning(
                    "Shutdown timeout exceeded",
                    extra={"active": len(active_workers)},
                )
                return False
            for worker in active_workers:
                worker.join(timeout=0.1 if remaining is None else min(0.1, remaining))
