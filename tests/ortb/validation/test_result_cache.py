"""
Unit Tests for the Result Cache

Tests key generation, TTL expiration, LRU eviction and statistics.
"""

import pytest

from ortb.config.settings import CacheConfig
from ortb.validation.cache import ResultCache
from ortb.validation.errors import CacheError
from ortb.validation.orchestrator import ValidationOptions


class FakeClock:
    def __init__(self, now=1000.0):
        self.now = now

    def __call__(self):
        return self.now

    def advance(self, seconds):
        self.now += seconds


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def cache(clock):
    return ResultCache(CacheConfig(ttl_seconds=60, max_entries=10), clock=clock)


@pytest.fixture
def result(make_result):
    return make_result(validated_fields=["id", "imp", "at"])


class TestKeyGeneration:
    def test_same_request_same_key(self, cache, valid_request):
        assert cache.generate_key(valid_request) == cache.generate_key(dict(valid_request))

    def test_key_ignores_dict_order(self, cache):
        a = {"id": "1", "at": 1, "imp": [{"id": "i"}]}
        b = {"imp": [{"id": "i"}], "at": 1, "id": "1"}
        assert cache.generate_key(a) == cache.generate_key(b)

    def test_different_requests_different_keys(self, cache, valid_request):
        other = dict(valid_request, id="req-2")
        assert cache.generate_key(valid_request) != cache.generate_key(other)

    def test_key_prefix(self, cache, valid_request):
        key = cache.generate_key(valid_request)
        assert key.startswith("validation:")
        assert len(key.split(":", 1)[1]) == 64

    def test_spec_version_changes_key(self, cache, valid_request):
        key_a = cache.generate_key(valid_request, ValidationOptions(spec_version="2.6"))
        key_b = cache.generate_key(valid_request, ValidationOptions(spec_version="2.5"))
        assert key_a != key_b

    def test_timeout_and_reporting_flags_share_key(self, cache, valid_request):
        key_a = cache.generate_key(valid_request, ValidationOptions(spec_version="2.6", timeout_ms=10))
        key_b = cache.generate_key(
            valid_request,
            ValidationOptions(spec_version="2.6", timeout_ms=9000, include_compliance_report=True),
        )
        assert key_a == key_b

    def test_plain_dict_options(self, cache, valid_request):
        key_a = cache.generate_key(valid_request, {"spec_version": "2.6"})
        key_b = cache.generate_key(valid_request, ValidationOptions(spec_version="2.6"))
        assert key_a == key_b

    def test_circular_request_raises_cache_error(self, cache):
        request = {"id": "loop"}
        request["self"] = request
        with pytest.raises(CacheError):
            cache.generate_key(request)


class TestGetAndSet:
    def test_miss_returns_none(self, cache):
        assert cache.get("validation:unknown") is None
        assert cache.stats().miss_count == 1

    def test_set_then_get(self, cache, result):
        cache.set("k", result)
        assert cache.get("k") == result
        assert cache.stats().hit_count == 1

    def test_entries_are_isolated_from_callers(self, cache, result, make_warning):
        cache.set("k", result)
        result.validated_fields.append("stored.after")
        hit = cache.get("k")
        assert hit.validated_fields == ["id", "imp", "at"]

        hit.warnings.append(make_warning())
        assert cache.get("k").warnings == []

    def test_entry_expires_after_ttl(self, cache, clock, result):
        cache.set("k", result)
        clock.advance(59)
        assert cache.get("k") is not None
        clock.advance(2)
        assert cache.get("k") is None
        assert len(cache) == 0

    def test_expired_lookup_counts_as_miss(self, cache, clock, result):
        cache.set("k", result)
        clock.advance(61)
        cache.get("k")
        stats = cache.stats()
        assert stats.hit_count == 0
        assert stats.miss_count == 1

    def test_custom_ttl(self, cache, clock, result):
        cache.set("k", result, ttl_seconds=5)
        clock.advance(6)
        assert cache.get("k") is None

    def test_has_does_not_touch_stats(self, cache, result):
        cache.set("k", result)
        assert cache.has("k")
        assert not cache.has("other")
        stats = cache.stats()
        assert stats.hit_count == 0
        assert stats.miss_count == 0

    def test_delete(self, cache, result):
        cache.set("k", result)
        assert cache.delete("k") is True
        assert cache.delete("k") is False
        assert not cache.has("k")


class TestEviction:
    def test_full_cache_evicts_least_recently_used(self, cache, clock, result):
        for i in range(10):
            cache.set(f"k{i}", result)
            clock.advance(1)
        # Touch k0 so k1 becomes the oldest
        cache.get("k0")
        clock.advance(1)

        cache.set("new", result)

        assert len(cache) == 10
        assert cache.has("k0")
        assert not cache.has("k1")
        assert cache.has("new")

    def test_overwrite_existing_key_does_not_evict(self, cache, clock, result):
        for i in range(10):
            cache.set(f"k{i}", result)
            clock.advance(1)
        cache.set("k5", result)
        assert len(cache) == 10
        assert cache.has("k0")

    def test_eviction_removes_a_tenth(self, clock, result):
        cache = ResultCache(CacheConfig(ttl_seconds=60, max_entries=50), clock=clock)
        for i in range(50):
            cache.set(f"k{i}", result)
            clock.advance(1)
        cache.set("new", result)
        assert len(cache) == 46
        assert not any(cache.has(f"k{i}") for i in range(5))


class TestMaintenance:
    def test_cleanup_removes_expired(self, cache, clock, result):
        cache.set("old", result, ttl_seconds=10)
        cache.set("fresh", result, ttl_seconds=100)
        clock.advance(20)
        assert cache.cleanup() == 1
        assert cache.has("fresh")
        assert len(cache) == 1

    def test_clear_resets_entries_and_stats(self, cache, result):
        cache.set("k", result)
        cache.get("k")
        cache.get("missing")
        cache.clear()
        stats = cache.stats()
        assert stats.total_entries == 0
        assert stats.hit_count == 0
        assert stats.miss_count == 0
        assert stats.hit_rate == 0.0

    def test_hit_rate_percentage(self, cache, result):
        cache.set("k", result)
        cache.get("k")
        cache.get("k")
        cache.get("k")
        cache.get("missing")
        assert cache.stats().hit_rate == 75.0
