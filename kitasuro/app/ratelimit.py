"""Rate limiting for public comment writes."""

import re
from datetime import datetime

import redis

from kitasuro.app.db.repositories import RetryAfter

_KEY_UNSAFE = re.compile(r"[^a-z0-9_-]+")


def make_comment_rate_limit_key(proposal_id: str, author_name: str) -> str:
    """Key comment writes by proposal and (normalized) author name.

    Clients are anonymous, so the author name is the only per-person signal.
    """
    author = _KEY_UNSAFE.sub("-", author_name.strip().lower()) or "anonymous"
    return f"comments:{proposal_id}:{author}"


class RedisRateLimiter:
    """Redis-based rate limiter using INCR + EXPIRE pattern."""

    def __init__(
        self, redis_client: redis.Redis, max_requests: int, window_seconds: int = 60
    ) -> None:
        self._redis = redis_client
        self._max_requests = max_requests
        self._window_seconds = window_seconds

    def check_quota(self, key: str, now: datetime) -> RetryAfter | None:
        """Count a request against the current window.

        Returns:
            RetryAfter if over quota, None if allowed
        """
        window_start = int(now.timestamp() / self._window_seconds) * self._window_seconds
        redis_key = f"ratelimit:{key}:{window_start}"

        count = self._redis.incr(redis_key)
        if count == 1:
            self._redis.expire(redis_key, self._window_seconds)

        if count > self._max_requests:
            ttl = self._redis.ttl(redis_key)
            return RetryAfter(seconds=max(1, ttl))

        return None
