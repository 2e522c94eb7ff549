"""Tests for the bounded processed-event record."""

import pytest

from conference_demo.handlers.dedupe import SeenEvents


class Clock:
    def __init__(self):
        self.now = 1000.0

    def __call__(self) -> float:
        return self.now


def test_add_reports_first_sighting_only():
    seen = SeenEvents()
    assert seen.add("e1") is True
    assert seen.add("e1") is False
    assert "e1" in seen
    assert len(seen) == 1


def test_ids_expire_after_ttl():
    clock = Clock()
    seen = SeenEvents(ttl=60, clock=clock)
    seen.add("e1")
    clock.now += 30
    seen.add("e2")

    clock.now += 31
    assert "e1" not in seen
    assert "e2" in seen

    # An expired id counts as new again
    assert seen.add("e1") is True


def test_oldest_ids_evicted_past_capacity():
    seen = SeenEvents(max_size=2)
    for event_id in ("e1", "e2", "e3"):
        seen.add(event_id)

    assert len(seen) == 2
    assert "e1" not in seen
    assert "e2" in seen and "e3" in seen


def test_non_positive_ttl_never_expires():
    clock = Clock()
    seen = SeenEvents(ttl=0, clock=clock)
    seen.add("e1")
    clock.now += 10**9
    assert "e1" in seen


def test_rejects_empty_capacity():
    with pytest.raises(ValueError):
        SeenEvents(max_size=0)
