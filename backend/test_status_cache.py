# backend/test_status_cache.py
import threading
from datetime import datetime, timedelta, timezone

from utils.status_cache import StatusCache

T0 = datetime(2011, 3, 11, 5, 46, 24, tzinfo=timezone.utc)
LOC = (36.5, 141.0)


def test_consecutive_alerts_accumulate_and_reset(fake_time):
    cache = StatusCache(time_source=fake_time)
    cache.update("a", "medium", True, 2.7, T0, LOC)
    cache.update("a", "high", True, 4.2, T0 + timedelta(minutes=6), LOC)
    status = cache.update("a", "high", True, 4.4, T0 + timedelta(minutes=12), LOC)
    assert status.consecutive_alerts == 3

    status = cache.update("a", "normal", False, 1.3, T0 + timedelta(minutes=18), LOC)
    assert status.consecutive_alerts == 0
    assert cache.get("a").level == "normal"


def test_last_status_change_only_moves_on_level_change(fake_time):
    cache = StatusCache(time_source=fake_time)
    cache.update("a", "medium", True, 2.7, T0, LOC)
    status = cache.update("a", "medium", True, 2.8, T0 + timedelta(minutes=6), LOC)
    assert status.last_status_change == T0

    status = cache.update("a", "high", True, 4.5, T0 + timedelta(minutes=12), LOC)
    assert status.last_status_change == T0 + timedelta(minutes=12)
    assert status.timestamp == T0 + timedelta(minutes=12)


def test_entries_expire_after_ttl(fake_time):
    cache = StatusCache(ttl_seconds=60, time_source=fake_time)
    cache.update("a", "high", True, 4.5, T0, LOC)
    fake_time.advance(59)
    assert cache.get("a") is not None
    fake_time.advance(2)
    assert cache.get("a") is None

    # an expired entry does not carry its alert streak forward
    status = cache.update("a", "high", True, 4.5, T0, LOC)
    assert status.consecutive_alerts == 1


def test_summary_counts(fake_time):
    cache = StatusCache(time_source=fake_time)
    for _ in range(3):
        cache.update("a", "critical", True, 8.0, T0, LOC)
    cache.update("b", "medium", True, 2.6, T0 + timedelta(minutes=6), LOC)
    cache.update("c", "normal", False, 1.2, T0, LOC)

    summary = cache.summary()
    assert summary["total_stations"] == 3
    assert summary["critical_count"] == 1
    assert summary["medium_count"] == 1
    assert summary["normal_count"] == 1
    assert summary["high_count"] == 0
    assert summary["alert_count"] == 2
    assert summary["persistent_alerts"] == 1
    assert summary["last_update"] == (T0 + timedelta(minutes=6)).isoformat()


def test_empty_summary_and_clear(fake_time):
    cache = StatusCache(time_source=fake_time)
    assert cache.summary()["last_update"] is None
    cache.update("a", "high", True, 4.5, T0, LOC)
    cache.clear()
    assert cache.get("a") is None
    assert cache.info()["entries"] == 0


def test_status_to_dict(fake_time):
    cache = StatusCache(time_source=fake_time)
    status = cache.update("a", "high", True, 4.5, T0, LOC)
    payload = status.to_dict()
    assert payload["level"] == "high"
    assert payload["last_reading"]["location"] == {"lat": 36.5, "lon": 141.0}


def test_concurrent_updates_are_not_lost(fake_time):
    cache = StatusCache(time_source=fake_time)
    start = threading.Barrier(8)

    def worker():
        start.wait()
        for _ in range(200):
            cache.update("a", "high", True, 4.2, T0, LOC)

    threads = [threading.Thread(target=worker) for _ in range(8)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    assert cache.get("a").consecutive_alerts == 8 * 200
