"""A small thread-safe in-memory cache with per-entry expiry."""

from __future__ import annotations

import threading
import time
from dataclasses import dataclass
from datetime import timedelta
from typing import Any, Callable, Union

Duration = Union[int, float, timedelta]

DEFAULT_TIMEOUT = timedelta(minutes=5)


def _seconds(duration: Duration) -> float:
    if isinstance(duration, timedelta):
        return duration.total_seconds()
    return float(duration)


@dataclass(frozen=True)
class _Entry:
    value: Any
    expiration: float


class AzureCache:
    """In-memory cache for Azure resources.

    Durations may be given as seconds or as a ``timedelta``. The clock is a
    callable returning seconds and can be replaced in tests.
    """

    def __init__(
        self,
        default_timeout: Duration = DEFAULT_TIMEOUT,
        *,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._data: dict[str, _Entry] = {}
        self._lock = threading.Lock()
        self._clock = clock
        self.default_timeout = _seconds(default_timeout)

    def get(self, key: str) -> Any:
        """Return the cached value, or None if it is missing or expired."""
        with self._lock:
            entry = self._data.get(key)
        if entry is None or self._clock() > entry.expiration:
            return None
        return entry.value

    def set(self, key: str, value: Any) -> None:
        """Store a value with the default expiry."""
        self.set_with_expiration(key, value, self.default_timeout)

    def set_with_expiration(self, key: str, value: Any, duration: Duration) -> None:
        """Store a value that expires after the given duration."""
        expiration = self._clock() + _seconds(duration)
        with self._lock:
            self._data[key] = _Entry(value, expiration)

    def delete(self, key: str) -> None:
        """Remove a value; missing keys are ignored."""
        with self._lock:
            self._data.pop(key, None)

    def clear(self) -> None:
        """Remove every value."""
        with self._lock:
            self._data = {}