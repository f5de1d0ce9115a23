"""Tests du cache de réponses à TTL."""

import threading

from movielobby.domain.catalog import listing_cache_key, parse_pagination
from movielobby.infra.cache import ResponseCache


class FakeClock:
    def __init__(self) -> None:
        self.now = 1000.0

    def __call__(self) -> float:
        return self.now


def test_key_is_independent_of_param_order():
    a = ResponseCache.key("/movies", {"page": 2, "limit": 10})
    b = ResponseCache.key("movies/", {"limit": "10", "page": "2"})
    assert a == b == "/movies?limit=10&page=2"


def test_listing_key_ignores_unconsumed_params_and_applies_defaults():
    assert listing_cache_key(*parse_pagination()) == listing_cache_key(
        *parse_pagination("1", "10")
    )
    assert listing_cache_key(*parse_pagination("2", None)) != listing_cache_key(
        *parse_pagination("1", None)
    )


def test_get_returns_none_on_miss():
    assert ResponseCache().get("/movies?page=1") is None


def test_entry_is_never_served_past_expiry():
    clock = FakeClock()
    cache = ResponseCache(clock=clock)
    cache.set("k", [{"id": "1"}], ttl_seconds=60)
    clock.now += 59
    assert cache.get("k") == [{"id": "1"}]
    clock.now += 1
    assert cache.get("k") is None
    assert len(cache) == 0


def test_set_overwrites_and_resets_expiry():
    clock = FakeClock()
    cache = ResponseCache(clock=clock)
    cache.set("k", "old", ttl_seconds=10)
    clock.now += 8
    cache.set("k", "new", ttl_seconds=10)
    clock.now += 8
    assert cache.get("k") == "new"


def test_empty_payload_is_a_hit():
    cache = ResponseCache()
    cache.set("k", [], ttl_seconds=10)
    assert cache.get("k") == []


def test_invalidate_prefix_only_drops_matching_keys():
    cache = ResponseCache()
    cache.set("/movies?limit=10&page=1", [1], 60)
    cache.set("/movies?limit=10&page=2", [2], 60)
    cache.set("/other?x=1", [3], 60)
    assert cache.invalidate_prefix("/movies?") == 2
    assert cache.get("/other?x=1") == [3]
    cache.clear()
    assert len(cache) == 0


def test_set_if_generation_refuses_after_invalidation():
    cache = ResponseCache()
    generation = cache.generation
    cache.invalidate_prefix("/movies?")
    assert not cache.set_if_generation("/movies?page=1", ["stale"], 60, generation)
    assert cache.get("/movies?page=1") is None
    assert cache.set_if_generation("/movies?page=1", ["fresh"], 60, cache.generation)
    assert cache.get("/movies?page=1") == ["fresh"]


def test_concurrent_writers_and_readers():
    cache = ResponseCache()
    errors: list[Exception] = []

    def worker(n: int) -> None:
        try:
            for i in range(200):
                cache.set(f"k{n}:{i}", i, 60)
                assert cache.get(f"k{n}:{i}") == i
                cache.invalidate_prefix(f"k{n}:")
        except Exception as err:  # noqa: BLE001
            errors.append(err)

    threads = [threading.Thread(target=worker, args=(n,)) for n in range(8)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()
    assert errors == []
