"""Cache data models for versiontrail.

Contains:
- CacheEntry: A cached value (or cached failure) with its creation time
"""

from dataclasses import dataclass
from typing import Generic, Optional, TypeVar

T = TypeVar("T")


@dataclass(frozen=True)
class CacheEntry(Generic[T]):
    """A cached result.

    Entries that record a failure carry the error message in ``error`` and
    ``data`` is None.
    """

    data: Optional[T]
    timestamp: float
    error: Optional[str] = None

    @property
    def is_failure(self) -> bool:
        return self.error is not None

    def is_fresh(self, now: float, ttl: float) -> bool:
        """Return True while ``now - timestamp < ttl``."""
        return now - self.timestamp < ttl
