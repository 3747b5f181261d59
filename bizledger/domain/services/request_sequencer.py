"""Last-issued-wins guard for async lookups that may resolve out of order."""

from __future__ import annotations

import itertools
import threading


class RequestSequencer:
    """
    Issues monotonically increasing tokens per key.

    A caller takes a token before awaiting a lookup and checks
    ``is_current`` afterwards; if a newer request for the same key was issued
    in the meantime, the older response is stale and must be dropped.
    """

    def __init__(self) -> None:
        self._counter = itertools.count(1)
        self._latest: dict[str, int] = {}
        self._lock = threading.Lock()

    def issue(self, key: str) -> int:
        with self._lock:
            token = next(self._counter)
            self._latest[key] = token
            return token

    def is_current(self, key: str, token: int) -> bool:
        return self._latest.get(key) == token

    def release(self, key: str, token: int) -> None:
        """Forget ``key`` if ``token`` is still its latest request."""
        with self._lock:
            if self._latest.get(key) == token:
                del self._latest[key]
