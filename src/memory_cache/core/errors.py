from __future__ import annotations


class MemoryCacheError(Exception):
    """Base error for the memory cache."""


class ValidationError(MemoryCacheError, ValueError):
    """Raised when a ttl or scan frequency is invalid."""
