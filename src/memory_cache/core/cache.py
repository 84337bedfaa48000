"""In-memory key-value cache with per-entry TTL and throttled expiration scans.

Expired entries are filtered out on every read. Mutating calls additionally
run a full-table scan that purges all expired entries, at most once per
configured frequency. There is no background thread: scans only happen
inside insert/remove/get_or_insert.

The cache is not synchronized; wrap it in a lock if several threads share it.
"""

from __future__ import annotations

import logging
import time
from typing import Callable, Dict, Generic, Hashable, Optional, TypeVar, Union

from memory_cache import config

from .durations import Seconds, normalize_scan_frequency, normalize_ttl
from .entry import CacheEntry

K = TypeVar("K", bound=Hashable)
V = TypeVar("V")
D = TypeVar("D")

logger = logging.getLogger(__name__)


class MemoryCache(Generic[K, V]):
    """Key-value store whose entries may expire.

    Purpose:
      - get / contains_key: lazy expiration check, never mutate.
      - insert / remove / get_or_insert: replace or drop entries, and run
        the throttled full scan first.

    Key behavior:
      - full_scan_frequency=None (default) disables the full scan; expired
        entries then stay in memory until they are read over, overwritten
        or removed.
      - Values are returned as stored, not copied.
    """

    def __init__(self, full_scan_frequency: Optional[Seconds] = None) -> None:
        self._table: Dict[K, CacheEntry[V]] = {}
        self._full_scan_frequency = normalize_scan_frequency(full_scan_frequency)
        self._created_time = time.monotonic()
        self._last_scan_time: Optional[float] = None

    def contains_key(self, key: K) -> bool:
        entry = self._table.get(key)
        return entry is not None and not entry.is_expired(time.monotonic())

    def __contains__(self, key: object) -> bool:
        return self.contains_key(key)  # type: ignore[arg-type]

    def get(self, key: K, default: Optional[D] = None) -> Union[V, D, None]:
        entry = self._table.get(key)
        if entry is None or entry.is_expired(time.monotonic()):
            return default
        return entry.value

    def get_or_insert(
        self,
        key: K,
        factory: Callable[[], V],
        ttl_seconds: Optional[Seconds] = None,
    ) -> V:
        """Return the live value for `key`, creating it with `factory` if needed.

        `factory` is only called when the key is absent or its entry expired.
        If it raises, the cache is left as it was.
        """
        ttl = normalize_ttl(ttl_seconds)
        self._try_full_scan_expired_items()

        now = time.monotonic()
        entry = self._table.get(key)
        if entry is not None and not entry.is_expired(now):
            return entry.value

        value = factory()
        # Expiration counts from when the entry is built, after factory() returns
        self._table[key] = CacheEntry.create(value, ttl)
        return value

    def insert(self, key: K, value: V, ttl_seconds: Optional[Seconds] = None) -> Optional[V]:
        """Store `value` under `key`, replacing any previous entry.

        Returns the previous value only if it had not expired yet. An expired
        previous value is treated as already gone, so None is returned even
        though the slot was occupied.
        """
        ttl = normalize_ttl(ttl_seconds)
        self._try_full_scan_expired_items()

        now = time.monotonic()
        previous = self._table.get(key)
        self._table[key] = CacheEntry.create(value, ttl, now=now)

        if previous is None or previous.is_expired(now):
            return None
        return previous.value

    def remove(self, key: K) -> Optional[V]:
        """Drop `key`; return its value if the entry was still live."""
        self._try_full_scan_expired_items()

        entry = self._table.pop(key, None)
        if entry is None or entry.is_expired(time.monotonic()):
            return None
        return entry.value

    def clear(self) -> None:
        # Scan bookkeeping is left alone
        self._table.clear()

    def get_last_scan_time(self) -> Optional[float]:
        return self._last_scan_time

    def get_full_scan_frequency(self) -> Optional[float]:
        return self._full_scan_frequency

    def _try_full_scan_expired_items(self) -> None:
        frequency = self._full_scan_frequency
        if frequency is None:
            return

        now = time.monotonic()
        since = self._last_scan_time if self._last_scan_time is not None else self._created_time
        elapsed = now - since

        # A clock reading earlier than the reference point means "not due yet"
        if elapsed < 0:
            logger.debug("Clock went backwards by %.6fs; skipping full scan", -elapsed)
            return

        if elapsed < frequency:
            return

        expired = [key for key, entry in self._table.items() if entry.is_expired(now)]
        for key in expired:
            del self._table[key]
        self._last_scan_time = now

        level = logging.INFO if config.DEBUG_SWEEPS else logging.DEBUG
        logger.log(level, "Full scan purged %d expired entries (%d remaining)", len(expired), len(self._table))
