"""Redis client holder shared by the rate limiters and health checks."""

from __future__ import annotations

import redis.asyncio as redis

_client: redis.Redis | None = None


async def init_redis(url: str) -> None:
    """Create the pooled client from a redis:// URL."""
    global _client  # noqa: PLW0603
    _client = redis.from_url(  # type: ignore[no-untyped-call]
        url,
        encoding="utf-8",
        decode_responses=True,
        max_connections=50,
    )


def set_redis(client: redis.Redis | None) -> None:
    """Install an already-constructed client (or clear it with None)."""
    global _client  # noqa: PLW0603
    _client = client


async def close_redis() -> None:
    """Close the pool and forget the client."""
    global _client  # noqa: PLW0603
    if _client is not None:
        await _client.aclose()
        _client = None


def get_redis() -> redis.Redis:
    """Return the active client. Raises RuntimeError before init_redis()."""
    if _client is None:
        msg = "Redis not initialized. Call init_redis() first."
        raise RuntimeError(msg)
    return _client
