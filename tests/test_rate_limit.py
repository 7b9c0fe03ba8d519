"""Sliding window limiter"""

from datetime import datetime, timezone

from legis_mcp.config import RateLimitConfig
from legis_mcp.rate_limit import RateLimitService


def make_limiter(clock, max_requests=3, window=60.0):
    return RateLimitService(RateLimitConfig(max_requests=max_requests, window_seconds=window), clock=clock)


def test_defaults_match_published_limit():
    limiter = RateLimitService()
    assert limiter.max_requests == 500
    assert limiter.window_seconds == 3600.0
    assert limiter.get_remaining_requests() == 500


def test_denies_once_window_is_full(clock):
    limiter = make_limiter(clock)
    for _ in range(3):
        assert limiter.can_make_request()
        limiter.record_request()
        clock.advance(1)

    assert not limiter.can_make_request()
    assert limiter.get_remaining_requests() == 0


def test_window_slides(clock):
    limiter = make_limiter(clock)
    limiter.record_request()
    clock.advance(10)
    limiter.record_request()
    limiter.record_request()
    assert not limiter.can_make_request()

    # Oldest entry expires exactly one window after it was recorded
    clock.advance(50)
    assert limiter.can_make_request()
    assert limiter.get_remaining_requests() == 1

    clock.advance(10)
    assert limiter.get_remaining_requests() == 3


def test_reset_time_tracks_oldest_request(clock):
    limiter = make_limiter(clock)
    assert limiter.get_reset_time() is None

    start = clock()
    limiter.record_request()
    clock.advance(5)
    limiter.record_request()

    expected = datetime.fromtimestamp(start + 60.0, tz=timezone.utc)
    assert limiter.get_reset_time() == expected


def test_reset_clears_history(clock):
    limiter = make_limiter(clock, max_requests=1)
    limiter.record_request()
    assert not limiter.can_make_request()

    limiter.reset()
    assert limiter.can_make_request()
    assert limiter.get_reset_time() is None


def test_release_returns_slot(clock):
    limiter = make_limiter(clock, max_requests=1)
    stamp = limiter.record_request()
    assert not limiter.can_make_request()

    limiter.release(stamp)
    assert limiter.can_make_request()

    # Releasing a stamp that already left the window is harmless
    stamp = limiter.record_request()
    clock.advance(61)
    limiter.release(stamp)
    assert limiter.get_remaining_requests() == 1
