"""In-process key-value cache with per-entry TTL and lazy expiration."""

from .core.cache import MemoryCache
from .core.entry import CacheEntry
from .core.errors import MemoryCacheError, ValidationError
from .memoize import cached

__all__ = [
    "CacheEntry",
    "MemoryCache",
    "MemoryCacheError",
    "ValidationError",
    "cached",
]
