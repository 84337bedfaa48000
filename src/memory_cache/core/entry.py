"""Cache entry: a stored value plus an optional absolute expiration instant.

Instants come from time.monotonic(). An entry is never mutated after
construction; updating a key replaces its entry.
"""

from __future__ import annotations

import time
from dataclasses import dataclass
from typing import Generic, Optional, TypeVar

T = TypeVar("T")


@dataclass(frozen=True, slots=True)
class CacheEntry(Generic[T]):
    value: T
    expiration: Optional[float] = None  # None = never expires

    @classmethod
    def create(
        cls,
        value: T,
        ttl_seconds: Optional[float] = None,
        *,
        now: Optional[float] = None,
    ) -> "CacheEntry[T]":
        if ttl_seconds is None:
            return cls(value=value, expiration=None)

        # Expiration is fixed here, not when the entry is first read
        current = time.monotonic() if now is None else now
        return cls(value=value, expiration=current + ttl_seconds)

    def is_expired(self, current_time: float) -> bool:
        # The boundary instant itself counts as expired
        if self.expiration is None:
            return False
        return current_time >= self.expiration
