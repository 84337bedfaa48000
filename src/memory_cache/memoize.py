"""Memoization decorator backed by a per-function MemoryCache.

Each decorated function owns one process-wide cache, created on first call.
The lock guarding it is held only while looking up or storing a result; the
wrapped function runs outside the lock so a recursive call into the same
function cannot deadlock. Two threads missing the same key at once may both
compute it; the last one to finish wins.
"""

from __future__ import annotations

import functools
import inspect
import logging
import threading
from typing import Any, Callable, Dict, Hashable, Optional, Tuple, TypeVar

from memory_cache import config

from .core.cache import MemoryCache
from .core.durations import Seconds, normalize_scan_frequency, normalize_ttl

F = TypeVar("F", bound=Callable[..., Any])

logger = logging.getLogger(__name__)

_MISSING = object()
_KWARGS_MARK = object()


def _make_key(args: Tuple[Any, ...], kwargs: Dict[str, Any]) -> Hashable:
    # Positional args, then keyword args in a stable order
    if not kwargs:
        return args
    return args + (_KWARGS_MARK,) + tuple(sorted(kwargs.items()))


class _SharedCache:
    # Lazily created MemoryCache guarded by a single lock
    def __init__(self, *, full_scan_frequency: Optional[float]) -> None:
        self.lock = threading.Lock()
        self._full_scan_frequency = full_scan_frequency
        self._cache: Optional[MemoryCache[Hashable, Any]] = None

    def get(self) -> MemoryCache[Hashable, Any]:
        # Caller must hold self.lock; the cache is built exactly once
        if self._cache is None:
            self._cache = MemoryCache(full_scan_frequency=self._full_scan_frequency)
        return self._cache

    def lookup(self, key: Hashable) -> Any:
        with self.lock:
            return self.get().get(key, _MISSING)

    def store(self, key: Hashable, value: Any, ttl: Optional[float]) -> None:
        with self.lock:
            self.get().insert(key, value, ttl)

    def clear(self) -> None:
        with self.lock:
            if self._cache is not None:
                self._cache.clear()


def cached(
    func: Optional[F] = None,
    *,
    ttl_seconds: Optional[Seconds] = None,
    full_scan_frequency: Optional[Seconds] = None,
) -> Any:
    """Cache a function's results keyed by its arguments.

    Usable as `@cached` or `@cached(ttl_seconds=..., full_scan_frequency=...)`.
    Arguments must be hashable. Results are stored without expiration unless
    `ttl_seconds` is given; `full_scan_frequency` defaults to
    config.DEFAULT_FULL_SCAN_FREQUENCY. Coroutine functions are supported.

    The wrapper exposes `cache()` (the underlying MemoryCache) and
    `cache_clear()`.
    """
    if func is not None and not callable(func):
        raise TypeError("Expected a function; pass ttl_seconds and full_scan_frequency by keyword")

    ttl = normalize_ttl(ttl_seconds)
    frequency = normalize_scan_frequency(
        full_scan_frequency if full_scan_frequency is not None else config.DEFAULT_FULL_SCAN_FREQUENCY
    )

    def decorate(fn: F) -> F:
        shared = _SharedCache(full_scan_frequency=frequency)

        if inspect.iscoroutinefunction(fn):

            @functools.wraps(fn)
            async def async_wrapper(*args: Any, **kwargs: Any) -> Any:
                key = _make_key(args, kwargs)
                value = shared.lookup(key)
                if value is not _MISSING:
                    return value

                # Await outside the lock
                value = await fn(*args, **kwargs)
                shared.store(key, value, ttl)
                return value

            wrapper: Any = async_wrapper
        else:

            @functools.wraps(fn)
            def sync_wrapper(*args: Any, **kwargs: Any) -> Any:
                key = _make_key(args, kwargs)
                value = shared.lookup(key)
                if value is not _MISSING:
                    return value

                value = fn(*args, **kwargs)
                shared.store(key, value, ttl)
                return value

            wrapper = sync_wrapper

        def cache() -> MemoryCache[Hashable, Any]:
            with shared.lock:
                return shared.get()

        wrapper.cache = cache
        wrapper.cache_clear = shared.clear
        logger.debug("Memoizing %s (ttl=%s, full_scan_frequency=%s)", fn.__qualname__, ttl, frequency)
        return wrapper

    if func is not None:
        return decorate(func)
    return decorate
