"""Concrete implementation of the in-memory Response Cache.

Entries expire ``ttl`` seconds after they were written (no sliding window)
and the cache holds at most ``max_size`` entries, evicting the
oldest-inserted one first (insertion order, not LRU).
"""

import logging
import threading
import time
from dataclasses import dataclass
from typing import Any, Callable, Dict, Optional

# Domain Layer Imports
from cmsclient.domain.interfaces.cache import CacheService
from cmsclient.domain.models.common import CacheKey

logger = logging.getLogger(__name__)

DEFAULT_TTL_SECONDS = 5 * 60  # 5 minutes
DEFAULT_MAX_SIZE = 100


@dataclass(frozen=True)
class CacheSettings:
    """Cache configuration."""
    enabled: bool = True
    ttl_seconds: float = DEFAULT_TTL_SECONDS
    max_size: int = DEFAULT_MAX_SIZE


@dataclass
class CacheEntry:
    """Internal representation of a cache entry."""
    key: CacheKey
    value: Any
    timestamp: float  # clock() reading at write time


class ResponseCache(CacheService):
    """TTL + size-bounded cache with FIFO eviction."""

    def __init__(
        self,
        ttl_seconds: float = DEFAULT_TTL_SECONDS,
        max_size: int = DEFAULT_MAX_SIZE,
        enabled: bool = True,
        clock: Callable[[], float] = time.monotonic,
    ):
        """Initializes the cache.

        Args:
            ttl_seconds: Lifetime of an entry after it is written.
            max_size: Maximum number of entries held at once.
            enabled: When False, every read misses and writes are dropped.
            clock: Monotonic time source (replaceable in tests).
        """
        if max_size <= 0:
            raise ValueError("Cache max_size must be positive.")
        if ttl_seconds < 0:
            raise ValueError("Cache ttl_seconds must not be negative.")
        self.ttl_seconds = ttl_seconds
        self.max_size = max_size
        self.enabled = enabled
        self._clock = clock
        self._entries: Dict[CacheKey, CacheEntry] = {}
        self._lock = threading.Lock()
        logger.info(f"ResponseCache initialized (enabled={enabled}, ttl={ttl_seconds}s, max={max_size})")

    @classmethod
    def from_settings(cls, settings: CacheSettings, clock: Callable[[], float] = time.monotonic) -> "ResponseCache":
        return cls(
            ttl_seconds=settings.ttl_seconds,
            max_size=settings.max_size,
            enabled=settings.enabled,
            clock=clock,
        )

    def _is_fresh(self, entry: CacheEntry, now: float) -> bool:
        return now - entry.timestamp < self.ttl_seconds

    # --- CacheService Interface Implementation ---

    def get(self, key: CacheKey) -> Optional[Any]:
        """Returns the payload for ``key`` or None on a miss; stale entries are dropped."""
        if not self.enabled:
            return None
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                logger.debug(f"Cache miss for key: {key}")
                return None
            if not self._is_fresh(entry, self._clock()):
                del self._entries[key]
                logger.debug(f"Cache entry expired for key: {key}")
                return None
            logger.debug(f"Cache hit for key: {key}")
            return entry.value

    def set(self, key: CacheKey, value: Any) -> None:
        """Stores ``value``; a new key evicts the oldest entry when the cache is full."""
        if not self.enabled:
            return
        with self._lock:
            if key not in self._entries and len(self._entries) >= self.max_size:
                # Oldest by insertion order
                oldest_key = next(iter(self._entries))
                del self._entries[oldest_key]
                logger.debug(f"Cache EVICTED key: {oldest_key}")
            self._entries[key] = CacheEntry(key=key, value=value, timestamp=self._clock())
            logger.debug(f"Stored item in cache: key={key}")

    def delete(self, key: CacheKey) -> None:
        with self._lock:
            if self._entries.pop(key, None) is not None:
                logger.debug(f"Deleted item from cache: key={key}")

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()
        logger.info("Cleared response cache.")

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, key: object) -> bool:
        return key in self._entries
