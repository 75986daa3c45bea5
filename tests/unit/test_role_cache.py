"""Unit tests for the bounded TTL role cache."""

import pytest

from src.services.role_cache import RoleCache


class FakeClock:
    def __init__(self, start: float = 1000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class TestRoleCache:
    @pytest.fixture
    def clock(self):
        return FakeClock()

    @pytest.fixture
    def cache(self, clock):
        return RoleCache(max_entries=3, clock=clock)

    def test_get_before_expiry(self, cache, clock):
        cache.set("role:1", "writer", ttl_seconds=60)
        clock.advance(59)
        assert cache.get("role:1") == "writer"

    def test_expired_entry_not_returned(self, cache, clock):
        cache.set("role:1", "writer", ttl_seconds=60)
        clock.advance(60)
        assert cache.get("role:1") is None
        assert len(cache) == 0

    def test_capacity_evicts_least_recently_used(self, cache):
        cache.set("a", 1, 60)
        cache.set("b", 2, 60)
        cache.set("c", 3, 60)
        cache.get("a")
        cache.set("d", 4, 60)
        assert len(cache) == 3
        assert cache.get("b") is None
        assert cache.get("a") == 1
        assert cache.get("d") == 4

    def test_expired_entries_swept_before_eviction(self, cache, clock):
        cache.set("short", 1, 10)
        cache.set("long-1", 2, 100)
        cache.set("long-2", 3, 100)
        clock.advance(11)
        cache.set("new", 4, 100)
        assert cache.get("long-1") == 2
        assert cache.get("long-2") == 3
        assert cache.get("new") == 4

    def test_set_replaces_existing(self, cache, clock):
        cache.set("k", "public", 10)
        cache.set("k", "admin", 100)
        clock.advance(50)
        assert cache.get("k") == "admin"
        assert len(cache) == 1

    def test_delete_exact_key(self, cache):
        cache.set("role:42", "admin", 60)
        cache.set("role:421", "reader", 60)
        assert cache.delete("role:42") is True
        assert cache.delete("role:42") is False
        assert cache.get("role:421") == "reader"

    def test_cleanup_expired_entries(self, cache, clock):
        cache.set("a", 1, 5)
        cache.set("b", 2, 50)
        clock.advance(10)
        assert cache.cleanup_expired_entries() == 1
        assert len(cache) == 1

    def test_invalid_capacity(self):
        with pytest.raises(ValueError):
            RoleCache(max_entries=0)
