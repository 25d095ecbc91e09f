"""Tests for comment rate limiting."""

from datetime import datetime, timedelta, timezone

import pytest

from kitasuro.app.db.inmemory import InMemoryRateLimiter
from kitasuro.app.ratelimit import RedisRateLimiter, make_comment_rate_limit_key


class FakeRedis:
    """Just enough of redis.Redis for INCR + EXPIRE + TTL."""

    def __init__(self) -> None:
        self.counts: dict[str, int] = {}
        self.expiry: dict[str, int] = {}

    def incr(self, key: str) -> int:
        self.counts[key] = self.counts.get(key, 0) + 1
        return self.counts[key]

    def expire(self, key: str, seconds: int) -> bool:
        self.expiry[key] = seconds
        return True

    def ttl(self, key: str) -> int:
        return self.expiry.get(key, -1)


def test_rate_limiter_allows_under_quota() -> None:
    limiter = InMemoryRateLimiter(max_requests=5, window_seconds=60)
    now = datetime.now(timezone.utc)

    for i in range(5):
        assert limiter.check_quota("comments:trip-1:amina", now + timedelta(seconds=i)) is None


def test_rate_limiter_blocks_over_quota() -> None:
    limiter = InMemoryRateLimiter(max_requests=3, window_seconds=60)
    now = datetime.now(timezone.utc)

    for _ in range(3):
        assert limiter.check_quota("comments:trip-1:amina", now) is None

    retry_after = limiter.check_quota("comments:trip-1:amina", now)
    assert retry_after is not None
    assert retry_after.seconds == 60


def test_rate_limiter_resets_after_window() -> None:
    limiter = InMemoryRateLimiter(max_requests=2, window_seconds=60)
    now = datetime.now(timezone.utc)

    limiter.check_quota("k", now)
    limiter.check_quota("k", now)
    assert limiter.check_quota("k", now) is not None

    assert limiter.check_quota("k", now + timedelta(seconds=61)) is None


def test_rate_limiter_evicts_expired_windows() -> None:
    limiter = InMemoryRateLimiter(max_requests=1, window_seconds=60)
    now = datetime.now(timezone.utc)

    for i in range(100):
        limiter.check_quota(make_comment_rate_limit_key("trip-1", f"guest {i}"), now)
    assert limiter.window_count() == 100

    later = now + timedelta(seconds=61)
    assert limiter.check_quota(make_comment_rate_limit_key("trip-1", "Amina"), later) is None
    assert limiter.window_count() == 1


def test_rate_limiter_eviction_keeps_live_windows() -> None:
    limiter = InMemoryRateLimiter(max_requests=1, window_seconds=60)
    now = datetime.now(timezone.utc)

    limiter.check_quota("old", now)
    limiter.check_quota("fresh", now + timedelta(seconds=50))

    # Sweep at 61s drops "old" only; "fresh" is still blocked
    assert limiter.check_quota("other", now + timedelta(seconds=61)) is None
    assert limiter.window_count() == 2
    assert limiter.check_quota("fresh", now + timedelta(seconds=62)) is not None


def test_rate_limiter_separate_keys() -> None:
    limiter = InMemoryRateLimiter(max_requests=1, window_seconds=60)
    now = datetime.now(timezone.utc)

    assert limiter.check_quota(make_comment_rate_limit_key("trip-1", "Amina"), now) is None
    assert limiter.check_quota(make_comment_rate_limit_key("trip-1", "amina "), now) is not None
    assert limiter.check_quota(make_comment_rate_limit_key("trip-1", "Jonas"), now) is None
    assert limiter.check_quota(make_comment_rate_limit_key("trip-2", "Amina"), now) is None


@pytest.mark.parametrize(
    "author,expected",
    [
        ("Amina", "comments:trip-1:amina"),
        ("  Mary Jane ", "comments:trip-1:mary-jane"),
        ("O'Brien & co", "comments:trip-1:o-brien-co"),
        ("   ", "comments:trip-1:anonymous"),
    ],
)
def test_make_comment_rate_limit_key(author: str, expected: str) -> None:
    assert make_comment_rate_limit_key("trip-1", author) == expected


def test_redis_rate_limiter_sets_expiry_once_and_blocks() -> None:
    client = FakeRedis()
    limiter = RedisRateLimiter(client, max_requests=2, window_seconds=60)  # type: ignore[arg-type]
    now = datetime(2026, 3, 1, 12, 0, 30, tzinfo=timezone.utc)

    assert limiter.check_quota("comments:trip-1:amina", now) is None
    assert limiter.check_quota("comments:trip-1:amina", now) is None
    retry_after = limiter.check_quota("comments:trip-1:amina", now)

    assert retry_after is not None
    assert retry_after.seconds == 60
    (redis_key,) = client.counts
    assert redis_key.startswith("ratelimit:comments:trip-1:amina:")
    assert client.expiry == {redis_key: 60}


def test_redis_rate_limiter_uses_new_window_key() -> None:
    client = FakeRedis()
    limiter = RedisRateLimiter(client, max_requests=1, window_seconds=60)  # type: ignore[arg-type]
    now = datetime(2026, 3, 1, 12, 0, 30, tzinfo=timezone.utc)

    assert limiter.check_quota("k", now) is None
    assert limiter.check_quota("k", now) is not None
    assert limiter.check_quota("k", now + timedelta(seconds=60)) is None
    assert len(client.counts) == 2
