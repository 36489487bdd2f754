from __future__ import annotations

import heapq
import threading
import time
from collections.abc import Callable
from typing import Protocol


class KeyValueCache(Protocol):
    """
    Abstraction for the shared key-value cache behind tokens and counters.

    Values are strings. ``ttl_seconds`` must be a positive integer; callers
    skip the write when nothing of the lifetime remains.
    """

    def get(self, key: str) -> str | None: ...
    def set(self, key: str, value: str, ttl_seconds: int) -> None: ...
    def incr(self, key: str) -> int: ...
    def expire(self, key: str, ttl_seconds: int) -> None: ...
    def delete(self, *keys: str) -> int: ...
    def exists(self, key: str) -> bool: ...
    def ttl(self, key: str) -> int: ...


class InMemoryKeyValueCache(KeyValueCache):
    """
    Process-local cache with Redis-like expiry semantics.

    Used when ``REDIS_URL`` is unset and in unit tests. ``clock`` returns epoch
    seconds and can be replaced to move windows forward deterministically.
    """

    def __init__(self, *, clock: Callable[[], float] | None = None) -> None:
        self._clock = clock or (lambda: time.time())
        self._lock = threading.Lock()
        self._values: dict[str, str] = {}
        self._expires_at: dict[str, float] = {}
        # (deadline, key) per TTL write; entries for re-armed keys go stale.
        self._deadlines: list[tuple[float, str]] = []

    # Caller must hold the lock.
    def _arm(self, key: str, ttl_seconds: int) -> None:
        deadline = self._clock() + int(ttl_seconds)
        self._expires_at[key] = deadline
        heapq.heappush(self._deadlines, (deadline, key))

    # Caller must hold the lock.
    def _sweep(self) -> None:
        now = self._clock()
        while self._deadlines and self._deadlines[0][0] <= now:
            deadline, key = heapq.heappop(self._deadlines)
            if self._expires_at.get(key) == deadline:
                self._values.pop(key, None)
                self._expires_at.pop(key, None)

    # Caller must hold the lock.
    def _purge(self, key: str) -> None:
        deadline = self._expires_at.get(key)
        if deadline is not None and deadline <= self._clock():
            self._values.pop(key, None)
            self._expires_at.pop(key, None)

    def get(self, key: str) -> str | None:
        with self._lock:
            self._sweep()
            self._purge(key)
            return self._values.get(key)

    def set(self, key: str, value: str, ttl_seconds: int) -> None:
        with self._lock:
            self._sweep()
            self._values[key] = str(value)
            self._arm(key, ttl_seconds)

    def incr(self, key: str) -> int:
        with self._lock:
            self._sweep()
            self._purge(key)
            current = int(self._values.get(key, "0")) + 1
            self._values[key] = str(current)
            return current

    def expire(self, key: str, ttl_seconds: int) -> None:
        with self._lock:
            self._purge(key)
            if key in self._values:
                self._arm(key, ttl_seconds)

    def delete(self, *keys: str) -> int:
        removed = 0
        with self._lock:
            for key in keys:
                self._purge(key)
                if self._values.pop(key, None) is not None:
                    removed += 1
                self._expires_at.pop(key, None)
        return removed

    def exists(self, key: str) -> bool:
        with self._lock:
            self._purge(key)
            return key in self._values

    def ttl(self, key: str) -> int:
        """Remaining seconds, ``-1`` without expiry, ``-2`` when missing (as Redis)."""
        with self._lock:
            self._purge(key)
            if key not in self._values:
                return -2
            deadline = self._expires_at.get(key)
            if deadline is None:
                return -1
            return max(0, int(round(deadline - self._clock())))

    def clear(self) -> None:
        """Drop every key (the in-process analogue of ``FLUSHDB``)."""
        with self._lock:
            self._values.clear()
            self._expires_at.clear()
            self._deadlines.clear()
