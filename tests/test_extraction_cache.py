from __future__ import annotations

import pytest

from expense_tracker.extraction.cache import ExtractionCache, fingerprint


class FakeClock:
    def __init__(self) -> None:
        self.now = 1000.0

    def __call__(self) -> float:
        return self.now


def test_fingerprint_is_first_500_characters():
    text = "a" * 500 + "b" * 10
    assert fingerprint(text) == "a" * 500
    assert fingerprint("") == ""


def test_least_recently_used_entry_is_evicted():
    cache = ExtractionCache(capacity=2, ttl_seconds=None)
    cache.put("a", 1)
    cache.put("b", 2)
    assert cache.get("a") == 1  # "b" is now the oldest
    cache.put("c", 3)
    assert cache.get("b") is None
    assert cache.get("a") == 1
    assert cache.get("c") == 3
    assert len(cache) == 2


def test_entries_expire_after_ttl():
    clock = FakeClock()
    cache = ExtractionCache(capacity=4, ttl_seconds=60, clock=clock)
    cache.put("k", "v")
    clock.now += 59
    assert cache.get("k") == "v"
    clock.now += 1
    assert cache.get("k") is None
    assert len(cache) == 0


def test_overwrite_replaces_value():
    cache = ExtractionCache(capacity=4, ttl_seconds=None)
    cache.put("k", "old")
    cache.put("k", "new")
    assert cache.get("k") == "new"
    assert len(cache) == 1


@pytest.mark.parametrize("capacity, ttl", [(0, None), (4, 0), (4, -1)])
def test_invalid_policy_is_rejected(capacity, ttl):
    with pytest.raises(ValueError):
        ExtractionCache(capacity=capacity, ttl_seconds=ttl)


def test_membership_check_does_not_touch_recency_or_evict():
    clock = FakeClock()
    cache = ExtractionCache(capacity=2, ttl_seconds=60, clock=clock)
    cache.put("a", 1)
    cache.put("b", 2)
    assert "a" in cache  # must not make "a" the most recent entry
    cache.put("c", 3)
    assert "a" not in cache
    assert cache.get("b") == 2

    clock.now += 60
    assert "b" not in cache
    assert len(cache) == 2  # expired entries stay until a read or write drops them
