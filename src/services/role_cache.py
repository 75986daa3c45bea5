"""Bounded TTL cache for resolved Discord roles."""

from collections import OrderedDict
from typing import Callable, Generic, Optional, TypeVar
import threading
import time

from ..lib.config import ROLE_CACHE_MAX_ENTRIES
from ..lib.logging import get_logger

logger = get_logger(__name__)

V = TypeVar("V")


class CacheEntry(Generic[V]):
    """
    Cached value with an absolute expiry on the cache clock.
    """

    __slots__ = ("value", "expires_at")

    def __init__(self, value: V, expires_at: float):
        self.value = value
        self.expires_at = expires_at

    def is_expired(self, now: float) -> bool:
        return now >= self.expires_at


class RoleCache(Generic[V]):
    """
    Fixed-capacity mapping with per-entry TTL.

    Expired entries are never returned. Inserting sweeps expired entries
    first and then evicts the least recently used entry while the cache is
    at capacity, so memory stays bounded regardless of how many distinct
    users hit the server.
    """

    def __init__(
        self,
        max_entries: int = ROLE_CACHE_MAX_ENTRIES,
        clock: Callable[[], float] = time.monotonic,
    ):
        """
        Initialize role cache.

        Args:
            max_entries: Maximum number of entries kept
            clock: Monotonic time source in seconds
        """
        if max_entries < 1:
            raise ValueError("max_entries must be at least 1")
        self.max_entries = max_entries
        self._clock = clock
        self._entries: "OrderedDict[str, CacheEntry[V]]" = OrderedDict()
        self._lock = threading.Lock()

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def get(self, key: str) -> Optional[V]:
        """
        Get a cached value.

        Args:
            key: Cache key

        Returns:
            The value, or None if missing or expired
        """
        now = self._clock()
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                return None
            if entry.is_expired(now):
                del self._entries[key]
                return None
            self._entries.move_to_end(key)
            return entry.value

    def set(self, key: str, value: V, ttl_seconds: float) -> None:
        """
        Store a value for ``ttl_seconds``.

        Args:
            key: Cache key
            value: Value to cache
            ttl_seconds: Lifetime of the entry
        """
        now = self._clock()
        with self._lock:
            if key in self._entries:
                del self._entries[key]
            self._sweep_expired(now)
            while len(self._entries) >= self.max_entries:
                evicted_key, _ = self._entries.popitem(last=False)
                logger.debug("role_cache_evicted", key=evicted_key)
            self._entries[key] = CacheEntry(value, now + ttl_seconds)

    def delete(self, key: str) -> bool:
        """
        Remove one entry.

        Returns:
            True if the key was cached
        """
        with self._lock:
            return self._entries.pop(key, None) is not None

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()

    def cleanup_expired_entries(self) -> int:
        """Remove expired entries (call periodically). Returns count removed."""
        with self._lock:
            return self._sweep_expired(self._clock())

    def _sweep_expired(self, now: float) -> int:
        expired = [k for k, e in self._entries.items() if e.is_expired(now)]
        for k in expired:
            del self._entries[k]
        return len(expired)
