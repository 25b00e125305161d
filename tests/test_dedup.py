from __future__ import annotations

from fakes import FakeClock

from slotscope.core.dedup import NotificationDedupCache

COOLDOWN = 30 * 60


def test_can_send_until_recorded_and_again_after_cooldown() -> None:
    clock = FakeClock()
    cache = NotificationDedupCache(cooldown_seconds=COOLDOWN, clock=clock)

    assert cache.can_send("k")
    cache.record_sent("k")
    assert not cache.can_send("k")
    assert cache.can_send("other")

    clock.advance(COOLDOWN - 1)
    assert not cache.can_send("k")
    clock.advance(1)
    assert cache.can_send("k")


def test_cleanup_removes_only_expired_entries() -> None:
    clock = FakeClock()
    cache = NotificationDedupCache(cooldown_seconds=COOLDOWN, clock=clock)

    cache.record_sent("old")
    clock.advance(COOLDOWN - 60)
    cache.record_sent("fresh")
    clock.advance(60)

    assert cache.cleanup() == 1
    assert "old" not in cache
    assert "fresh" in cache
    assert cache.age("fresh") == 60

    # Nothing stale left: cleanup is a no-op.
    assert cache.cleanup() == 0
    assert len(cache) == 1


def test_record_sent_refreshes_timestamp() -> None:
    clock = FakeClock()
    cache = NotificationDedupCache(cooldown_seconds=COOLDOWN, clock=clock)

    cache.record_sent("k")
    clock.advance(COOLDOWN)
    cache.record_sent("k")

    assert not cache.can_send("k")
    assert cache.age("k") == 0


def test_forget_allows_immediate_resend() -> None:
    cache = NotificationDedupCache(cooldown_seconds=COOLDOWN, clock=FakeClock())

    cache.record_sent("k")
    cache.forget("k")
    cache.forget("missing")

    assert cache.can_send("k")
    assert cache.age("k") is None
