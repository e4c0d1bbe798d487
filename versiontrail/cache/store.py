"""In-memory result cache for versiontrail.

Contains:
- ResultCache: A keyed cache of successes and failures built on cachetools.TTLCache

Each component that caches owns its own ResultCache instance. The clock is
handed to cachetools as its timer so tests can move time forward
deterministically.
"""

import time
from typing import Any, Callable, Hashable, Optional

from cachetools import TTLCache

from versiontrail.cache.models import CacheEntry

DEFAULT_MAXSIZE = 256


class ResultCache:
    """Key/value cache whose entries expire ``ttl`` seconds after being set."""

    def __init__(
        self,
        ttl: float,
        clock: Callable[[], float] = time.monotonic,
        maxsize: int = DEFAULT_MAXSIZE,
    ):
        self.ttl = ttl
        self._clock = clock
        self._entries: TTLCache = TTLCache(maxsize=maxsize, ttl=ttl, timer=clock)

    def get(self, key: Hashable) -> Optional[CacheEntry]:
        """Return the entry for key if it is still fresh.

        Expired entries are evicted on access.

        Args:
            key: Cache key.

        Returns:
            The fresh CacheEntry, or None.
        """
        self._entries.expire()
        return self._entries.get(key)

    def set(self, key: Hashable, data: Any) -> CacheEntry:
        """Cache a successful result."""
        entry = CacheEntry(data=data, timestamp=self._clock())
        self._entries[key] = entry
        return entry

    def set_error(self, key: Hashable, error: str) -> CacheEntry:
        """Cache a failed lookup so it is not repeated until the entry expires."""
        entry = CacheEntry(data=None, timestamp=self._clock(), error=error)
        self._entries[key] = entry
        return entry

    def invalidate(self, key: Hashable) -> None:
        self._entries.pop(key, None)

    def clear(self) -> None:
        self._entries.clear()

    def __len__(self) -> int:
        self._entries.expire()
        return len(self._entries)

    def __contains__(self, key: Hashable) -> bool:
        return self.get(key) is not None
