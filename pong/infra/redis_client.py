from __future__ import annotations

import redis

from pong.settings import Settings


def create_redis(settings: Settings) -> redis.Redis | None:
    """Client for the event outbox, or None when REDIS_URL is unset."""

    if not settings.redis_url:
        return None
    # decode_responses=True => strings in/out instead of bytes
    return redis.Redis.from_url(
        settings.redis_url,
        decode_responses=True,
        socket_timeout=settings.redis_timeout_s,
        socket_connect_timeout=settings.redis_timeout_s,
    )
