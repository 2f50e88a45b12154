"""
Per-recipient email rate limiting.

A sliding window kept in a Redis sorted set per address, so the limit is
shared by every API instance and survives restarts. Keys are derived from
the SHA-256 of the normalised address; raw emails never reach Redis.
"""

from __future__ import annotations

import hashlib
import time
import uuid
from typing import TYPE_CHECKING

import structlog

from irl.config import get_settings

if TYPE_CHECKING:
    from redis.asyncio import Redis

logger = structlog.get_logger()


def normalize_email(email: str) -> str:
    return email.strip().lower()


class EmailRateLimiter:
    """Allow at most ``max_sends`` emails per address per ``window_seconds``."""

    KEY_PREFIX = "email_rate"

    def __init__(self, redis: Redis, max_sends: int = 3, window_seconds: int = 900) -> None:
        self._redis = redis
        self.max_sends = max_sends
        self.window_seconds = window_seconds

    @classmethod
    def key_for(cls, email: str) -> str:
        digest = hashlib.sha256(normalize_email(email).encode()).hexdigest()
        return f"{cls.KEY_PREFIX}:{digest}"

    async def allow(self, email: str) -> bool:
        """Record a send attempt and return whether it is within the limit.

        The attempt is added and counted in one MULTI so concurrent callers
        cannot both slip under the limit; a rejected attempt is removed
        again and does not extend the window.
        """
        key = self.key_for(email)
        now = time.time()
        member = f"{now:.6f}:{uuid.uuid4().hex}"

        pipe = self._redis.pipeline(transaction=True)
        pipe.zremrangebyscore(key, 0, now - self.window_seconds)
        pipe.zadd(key, {member: now})
        pipe.zcard(key)
        pipe.expire(key, self.window_seconds)
        results = await pipe.execute()

        count = int(results[2])
        if count > self.max_sends:
            await self._redis.zrem(key, member)
            logger.warning("email_rate_limited", key=key)
            return False
        return True


def email_limiter(redis: Redis) -> EmailRateLimiter:
    """Limiter configured from ``IRL_EMAIL_RATE_LIMIT_*``."""
    settings = get_settings()
    return EmailRateLimiter(
        redis,
        max_sends=settings.email_rate_limit_max,
        window_seconds=settings.email_rate_limit_window_seconds,
    )
