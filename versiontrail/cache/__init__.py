"""Cache module for versiontrail.

This package provides the in-memory caches used to avoid re-running git:
- models: CacheEntry data model
- store: ResultCache, an instance-owned cachetools TTL cache with an injectable clock
"""

# Models
from versiontrail.cache.models import CacheEntry

# Store
from versiontrail.cache.store import ResultCache


__all__ = [
    # Models
    "CacheEntry",
    # Store
    "ResultCache",
]
