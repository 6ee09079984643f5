"""
TTL Cache
In-memory key/value store with per-entry expiry.
"""
import threading
import time
from dataclasses import dataclass
from typing import Any, Callable, Dict, Optional, Union


@dataclass
class CacheEntry:
    value: Any
    created_at: float
    ttl: float

    def is_expired(self, now: float) -> bool:
        return now - self.created_at > self.ttl


def _key_part(part: Union[str, int]) -> str:
    if isinstance(part, bool) or not isinstance(part, (str, int)):
        raise TypeError(f"cache key parts must be str or int, got {type(part).__name__}")
    if isinstance(part, int):
        return f"#{part}"
    escaped = part.replace("\\", "\\\\").replace(":", "\\:")
    if escaped.startswith("#"):
        escaped = "\\" + escaped
    return escaped


def generate_cache_key(*parts: Union[str, int]) -> str:
    """Join typed, ordered parts into a cache key, e.g. ``stream:ep-42``.

    Integers are tagged with ``#`` and ``:`` inside a string part is escaped,
    so distinct part tuples never share a key.
    """
    return ":".join(_key_part(p) for p in parts)


class TTLCache:
    """Thread-safe memo store with lazy expiry-on-read.

    There is no capacity bound; entries are dropped when read after expiry or
    by an explicit ``clean_expired()`` sweep. Concurrent writers to the same
    key race and the last write wins.
    """

    def __init__(self, clock: Optional[Callable[[], float]] = None):
        self._clock = clock or time.monotonic
        self._store: Dict[str, CacheEntry] = {}
        self._lock = threading.RLock()

    def get(self, key: str, default=None) -> Any:
        with self._lock:
            entry = self._store.get(key)
            if entry is None:
                return default
            if entry.is_expired(self._clock()):
                del self._store[key]
                return default
            return entry.value

    def set(self, key: str, value: Any, ttl: float) -> None:
        """Store ``value`` for ``ttl`` seconds."""
        with self._lock:
            self._store[key] = CacheEntry(value=value, created_at=self._clock(), ttl=float(ttl))

    def delete(self, key: str) -> None:
        with self._lock:
            self._store.pop(key, None)

    def clear(self) -> None:
        with self._lock:
            self._store.clear()

    def size(self) -> int:
        with self._lock:
            return len(self._store)

    def clean_expired(self) -> int:
        """Drop every expired entry and return how many were removed."""
        now = self._clock()
        with self._lock:
            expired = [k for k, entry in self._store.items() if entry.is_expired(now)]
            for key in expired:
                del self._store[key]
        return len(expired)

