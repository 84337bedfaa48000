import threading
from concurrent.futures import ThreadPoolExecutor

import pytest

from memory_cache import config
from memory_cache.memoize import cached


def test_cached_computes_once_per_key():
    calls = []

    @cached
    def square(x):
        calls.append(x)
        return x * x

    assert square(3) == 9
    assert square(3) == 9
    assert square(4) == 16
    assert calls == [3, 4]


def test_cached_keyword_order_does_not_matter():
    calls = []

    @cached
    def combine(a, *, b, c):
        calls.append((a, b, c))
        return a + b + c

    assert combine(1, b=2, c=3) == 6
    assert combine(1, c=3, b=2) == 6
    assert len(calls) == 1


def test_cached_recursion_does_not_deadlock():
    @cached
    def factorial(x):
        return 1 if x <= 1 else x * factorial(x - 1)

    assert factorial(21) == 51090942171709440000
    assert factorial.cache().contains_key((20,))


def test_cached_stores_none_results():
    calls = []

    @cached
    def nothing():
        calls.append(1)
        return None

    assert nothing() is None
    assert nothing() is None
    assert calls == [1]


def test_cached_respects_ttl(clock):
    calls = []

    @cached(ttl_seconds=10)
    def stamp(key):
        calls.append(key)
        return len(calls)

    assert stamp("a") == 1
    clock.advance(9)
    assert stamp("a") == 1
    clock.advance(1)
    assert stamp("a") == 2


def test_cached_does_not_store_exceptions():
    attempts = []

    @cached
    def flaky():
        attempts.append(1)
        if len(attempts) == 1:
            raise RuntimeError("first call fails")
        return "ok"

    with pytest.raises(RuntimeError):
        flaky()
    assert flaky() == "ok"
    assert flaky() == "ok"
    assert len(attempts) == 2


def test_cached_unhashable_argument_raises():
    @cached
    def first(items):
        return items[0]

    with pytest.raises(TypeError):
        first([1, 2])


def test_cache_clear_forces_recompute():
    calls = []

    @cached
    def value():
        calls.append(1)
        return "v"

    value()
    value.cache_clear()
    value()

    assert calls == [1, 1]


def test_cached_preserves_metadata():
    def original(x):
        """Docs."""
        return x

    wrapped = cached(original)

    assert wrapped.__name__ == "original"
    assert wrapped.__doc__ == "Docs."
    assert wrapped.__wrapped__ is original


def test_cached_uses_configured_scan_frequency(monkeypatch):
    monkeypatch.setattr(config, "DEFAULT_FULL_SCAN_FREQUENCY", 5.0)

    @cached
    def default_freq():
        return 1

    @cached(full_scan_frequency=30)
    def explicit_freq():
        return 1

    assert default_freq.cache().get_full_scan_frequency() == 5.0
    assert explicit_freq.cache().get_full_scan_frequency() == 30.0


def test_cached_cache_is_created_once():
    @cached
    def ident(x):
        return x

    assert ident.cache() is ident.cache()


def test_cached_is_safe_across_threads():
    @cached
    def double(x):
        return x * 2

    def worker(x):
        return double(x % 4)

    with ThreadPoolExecutor(max_workers=8) as pool:
        results = list(pool.map(worker, range(8)))

    assert results == [(x % 4) * 2 for x in range(8)]
    assert all(double.cache().get((x,)) == x * 2 for x in range(4))


def test_cached_lock_is_released_while_body_runs():
    started = threading.Event()
    release = threading.Event()
    seen_caches = []

    @cached
    def blocking(x):
        seen_caches.append(blocking.cache())
        if x == 1:
            started.set()
            assert release.wait(timeout=5)
        return x

    slow = threading.Thread(target=blocking, args=(1,))
    slow.start()
    try:
        assert started.wait(timeout=5)
        # Another key completes while the first body is still blocked
        assert blocking(2) == 2
        assert blocking.cache().get((2,)) == 2
        assert not blocking.cache().contains_key((1,))
    finally:
        release.set()
        slow.join(timeout=5)

    assert blocking.cache().get((1,)) == 1
    assert len(seen_caches) == 2
    assert seen_caches[0] is seen_caches[1]


def test_cached_concurrent_first_calls_share_one_cache():
    @cached
    def ident(x):
        return x

    with ThreadPoolExecutor(max_workers=8) as pool:
        caches = list(pool.map(lambda _: ident.cache(), range(16)))

    assert all(c is caches[0] for c in caches)


def test_cached_rejects_positional_ttl():
    with pytest.raises(TypeError):
        cached(10)


@pytest.mark.asyncio
async def test_cached_coroutine_function():
    calls = []

    @cached
    async def fetch(key):
        calls.append(key)
        return key.upper()

    assert await fetch("a") == "A"
    assert await fetch("a") == "A"
    assert await fetch("b") == "B"
    assert calls == ["a", "b"]
