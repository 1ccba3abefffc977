"""Admission gate bounding the number of concurrently running workers."""

import threading
from typing import Optional


class AdmissionGate:
    """Counting gate: ``acquire`` blocks while ``limit`` permits are held.

    A ``limit`` of None admits everything immediately. Waiting has no timeout.
    """

    def __init__(self, limit: Optional[int] = None) -> None:
        if limit is not None and limit <= 0:
            raise ValueError("limit must be a positive integer or None")
        self._limit = limit
        self._active = 0
        self._condition = threading.Condition()

    @property
    def limit(self) -> Optional[int]:
        return self._limit

    @property
    def active_count(self) -> int:
        with self._condition:
            return self._active

    def is_saturated(self) -> bool:
        with self._condition:
            return self._limit is not None and self._active >= self._limit

    def acquire(self) -> None:
        """Take a permit, blocking until one is free."""
        with self._condition:
            while self._limit is not None and self._active >= self._limit:
                self._condition.wait()
            self._active += 1

    def release(self) -> None:
        """Return a permit and wake waiters."""
        with self._condition:
            if self._active > 0:
                self._active -= 1
            self._condition.notify_all()

    def wait_until_idle(self, timeout: Optional[float] = None) -> bool:
        """Block until no permits are held; False if the timeout elapsed first."""
        with self._condition:
            return self._condition.wait_for(lambda: self._active == 0, timeout)
