"""Tests for gworkspace/cache/store.py"""

import asyncio
import re
import threading

import pytest

from gworkspace.cache.store import CacheBacking, CacheStats, CacheStore, TTLTier


def loader_returning(value, calls: list):
    async def load():
        calls.append(value)
        return value

    return load


class TestConstruction:
    @pytest.mark.parametrize("namespace", ["", "a:b"])
    def test_invalid_namespace_rejected(self, namespace):
        with pytest.raises(ValueError):
            CacheStore(namespace=namespace)

    def test_defaults(self):
        cache = CacheStore(namespace="ns")
        assert cache.namespace == "ns"
        assert cache.enabled is True
        assert cache.default_ttl == TTLTier.SHORT
        assert len(cache) == 0

    def test_ttl_tiers(self):
        assert (TTLTier.SHORT, TTLTier.MEDIUM, TTLTier.LONG) == (300, 900, 3600)


class TestGetOrFetch:
    @pytest.mark.asyncio
    async def test_miss_then_hit(self, cache):
        calls = []
        first = await cache.get_or_fetch("k", loader_returning("v", calls))
        second = await cache.get_or_fetch("k", loader_returning("other", calls))

        assert first == second == "v"
        assert calls == ["v"]
        assert cache.get_stats() == CacheStats(hits=1, misses=1, sets=1, invalidations=0)

    @pytest.mark.asyncio
    async def test_entry_expires_after_ttl(self, cache, clock):
        calls = []
        await cache.get_or_fetch("k", loader_returning(1, calls), ttl=60)

        clock.advance(59)
        assert await cache.get_or_fetch("k", loader_returning(2, calls), ttl=60) == 1

        clock.advance(1)
        assert await cache.get_or_fetch("k", loader_returning(3, calls), ttl=60) == 3
        assert calls == [1, 3]

    def test_default_ttl_used_when_none_given(self, clock):
        cache = CacheStore(namespace="ns", default_ttl=10, clock=clock)
        cache.set("k", "v")
        clock.advance(9)
        assert cache.get("k") == "v"
        clock.advance(1)
        assert cache.get("k") is None

    @pytest.mark.asyncio
    async def test_loader_failure_is_not_cached(self, cache):
        async def boom():
            raise RuntimeError("remote down")

        with pytest.raises(RuntimeError):
            await cache.get_or_fetch("k", boom)

        assert cache.get("k") is None
        calls = []
        assert await cache.get_or_fetch("k", loader_returning("ok", calls)) == "ok"
        stats = cache.get_stats()
        assert stats.misses == 2
        assert stats.sets == 1

    @pytest.mark.asyncio
    async def test_bypass_counts_miss_and_never_stores(self, cache):
        calls = []
        await cache.get_or_fetch("k", loader_returning("cached", calls))
        fresh = await cache.get_or_fetch("k", loader_returning("fresh", calls), bypass=True)

        assert fresh == "fresh"
        assert cache.get("k") == "cached"
        assert cache.get_stats() == CacheStats(hits=0, misses=2, sets=1, invalidations=0)

    @pytest.mark.asyncio
    async def test_disabled_store_always_loads(self, cache):
        calls = []
        cache.disable()
        await cache.get_or_fetch("k", loader_returning("a", calls))
        await cache.get_or_fetch("k", loader_returning("b", calls))

        assert calls == ["a", "b"]
        assert len(cache) == 0
        assert cache.get_stats().misses == 2
        assert cache.get_stats().sets == 0

        cache.enable()
        await cache.get_or_fetch("k", loader_returning("c", calls))
        assert await cache.get_or_fetch("k", loader_returning("d", calls)) == "c"

    @pytest.mark.asyncio
    async def test_concurrent_loads_of_one_key_are_not_coalesced(self, cache):
        started = 0

        async def slow():
            nonlocal started
            started += 1
            await asyncio.sleep(0.01)
            return started

        await asyncio.gather(cache.get_or_fetch("k", slow), cache.get_or_fetch("k", slow))
        assert started == 2
        assert cache.get_stats().sets == 2


class TestDirectAccess:
    def test_get_does_not_touch_counters(self, cache):
        cache.set("k", "v")
        assert cache.get("k") == "v"
        assert cache.get("missing") is None
        assert cache.get_stats() == CacheStats(sets=1)

    def test_keys_lists_live_keys_sorted(self, cache, clock):
        cache.set("b", 1, ttl=100)
        cache.set("a", 2, ttl=100)
        cache.set("short", 3, ttl=5)
        clock.advance(5)
        assert cache.keys() == ["a", "b"]


class TestInvalidation:
    def test_invalidate_existing_key(self, cache):
        cache.set("k", "v")
        assert cache.invalidate("k") is True
        assert cache.get("k") is None
        assert cache.get_stats().invalidations == 1

    def test_invalidate_missing_key(self, cache):
        assert cache.invalidate("nope") is False
        assert cache.get_stats().invalidations == 0

    def test_invalidate_pattern_counts_each_entry(self, cache):
        cache.set('sheet_values:{"id":"S","range":"A1"}', 1)
        cache.set('sheet_values:{"id":"S","range":"B1"}', 2)
        cache.set("gmail_labels", 3)

        assert cache.invalidate_pattern(r"^sheet_values") == 2
        assert cache.keys() == ["gmail_labels"]
        assert cache.get_stats().invalidations == 2

    def test_invalidate_pattern_accepts_compiled(self, cache):
        cache.set("calendar_events", 1)
        assert cache.invalidate_pattern(re.compile("^calendar")) == 1

    def test_invalidate_pattern_matching_nothing(self, cache):
        assert cache.invalidate_pattern("^nothing") == 0

    def test_pattern_sees_logical_key_only(self, cache):
        cache.set("gmail_labels", 1)
        assert cache.invalidate_pattern("^test-workspace") == 0
        assert cache.invalidate_pattern("^gmail_labels$") == 1

    def test_clear_removes_entries_and_resets_stats(self, cache):
        cache.set("a", 1)
        cache.set("b", 2)
        cache.invalidate("a")

        assert cache.clear() == 1
        assert len(cache) == 0
        assert cache.get_stats() == CacheStats()


class TestNamespaces:
    def test_shared_backing_isolates_namespaces(self, clock):
        backing = CacheBacking()
        first = CacheStore(namespace="first", clock=clock, backing=backing)
        second = CacheStore(namespace="second", clock=clock, backing=backing)

        first.set("gmail_labels", "one")
        second.set("gmail_labels", "two")
        assert first.get("gmail_labels") == "one"

        first.invalidate_pattern(".*")
        assert second.get("gmail_labels") == "two"

        second.clear()
        assert len(second) == 0
        assert set(backing.entries) == set()

    def test_separate_instances_do_not_share(self):
        a = CacheStore(namespace="ns")
        b = CacheStore(namespace="ns")
        a.set("k", 1)
        assert b.get("k") is None


class TestStats:
    def test_hit_rate(self):
        assert CacheStats().hit_rate == 0.0
        assert CacheStats(hits=3, misses=1).hit_rate == 0.75

    def test_to_dict(self):
        assert CacheStats(hits=1, misses=2, sets=2, invalidations=1).to_dict() == {
            "hits": 1,
            "misses": 2,
            "sets": 2,
            "invalidations": 1,
            "hit_rate": 0.3333,
        }


class TestValueIsolation:
    @pytest.mark.asyncio
    async def test_caller_mutation_does_not_leak_into_cache(self, cache):
        async def load():
            return {"calendars": ["primary"]}

        first = await cache.get_or_fetch("calendars", load)
        first["calendars"].append("injected")

        second = await cache.get_or_fetch("calendars", load)
        second["calendars"].append("again")

        assert await cache.get_or_fetch("calendars", load) == {"calendars": ["primary"]}

    def test_set_and_get_copy(self, cache):
        value = {"rows": [["a"]]}
        cache.set("k", value)
        value["rows"].append(["b"])
        cache.get("k")["rows"].append(["c"])

        assert cache.get("k") == {"rows": [["a"]]}


class TestStaleLoads:
    @pytest.mark.asyncio
    async def test_load_overtaken_by_invalidation_is_not_stored(self, cache):
        release = asyncio.Event()
        started = asyncio.Event()

        async def slow_old_value():
            started.set()
            await release.wait()
            return "before-write"

        pending = asyncio.create_task(cache.get_or_fetch("sheet_values", slow_old_value))
        await started.wait()
        cache.invalidate_pattern("^sheet_values")
        release.set()

        assert await pending == "before-write"
        assert cache.get("sheet_values") is None
        assert cache.get_stats().sets == 0

    @pytest.mark.asyncio
    async def test_unrelated_loads_still_store(self, cache):
        calls = []
        await cache.get_or_fetch("k", loader_returning("v", calls))
        assert cache.get("k") == "v"


class TestThreadSafety:
    def test_concurrent_mutation_keeps_counters_consistent(self, cache):
        workers, rounds = 8, 200
        errors = []

        def hammer(worker: int):
            try:
                for i in range(rounds):
                    cache.set(f"w{worker}:{i}", i)
                    cache.get(f"w{worker}:{i}")
                    cache.invalidate_pattern(rf"^w{worker}:{i}$")
                    cache.get_stats()
                    cache.keys()
            except Exception as e:  # noqa: BLE001
                errors.append(e)

        threads = [threading.Thread(target=hammer, args=(w,)) for w in range(workers)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        assert errors == []
        stats = cache.get_stats()
        assert stats.sets == workers * rounds
        assert stats.invalidations == workers * rounds
        assert len(cache) == 0

    def test_clear_races_with_writers(self, cache):
        stop = threading.Event()
        errors = []

        def writer():
            i = 0
            try:
                while not stop.is_set():
                    cache.set(f"k{i % 50}", i)
                    i += 1
            except Exception as e:  # noqa: BLE001
                errors.append(e)

        threads = [threading.Thread(target=writer) for _ in range(4)]
        for thread in threads:
            thread.start()
        for _ in range(50):
            cache.clear()
            cache.get_stats()
        stop.set()
        for thread in threads:
            thread.join()

        assert errors == []
        stats = cache.get_stats()
        assert stats.hits == stats.misses == 0
        assert len(cache) <= 50
