"""Per-client request quotas for the public share endpoints.

Counts live in Redis when it is reachable and in process memory otherwise.
"""

from __future__ import annotations

import asyncio
import logging
import time
from typing import Callable, Dict, Tuple

from fastapi import HTTPException, Request
import redis.asyncio as redis
from redis.exceptions import RedisError

from config import settings

logger = logging.getLogger(__name__)

KEY_PREFIX = "bmh:rate"

# key -> (hits in current window, window reset timestamp)
_local_counters: Dict[str, Tuple[int, float]] = {}
_local_lock = asyncio.Lock()


def _client_identifier(request: Request) -> str:
    forwarded = request.headers.get("x-forwarded-for")
    if request.client and request.client.host:
        return request.client.host
    if forwarded:
        return forwarded.split(",")[0].strip()
    return "unknown"


def _prune_expired(now: float) -> None:
    stale = [key for key, (_, reset_at) in _local_counters.items() if now >= reset_at]
    for key in stale:
        del _local_counters[key]


async def _consume_local_quota(key: str, limit: int, window_seconds: int) -> bool:
    now = time.time()
    async with _local_lock:
        _prune_expired(now)
        count, reset_at = _local_counters.get(key, (0, now + window_seconds))
        count += 1
        _local_counters[key] = (count, reset_at)
        return count <= limit


async def _consume_redis_quota(key: str, window_seconds: int) -> int:
    client = redis.from_url(settings.REDIS_URL, decode_responses=True)
    try:
        current = await client.incr(key)
        if current == 1:
            await client.expire(key, window_seconds)
        return int(current)
    finally:
        await client.aclose()


def rate_limit(scope: str, limit: int, window_seconds: int) -> Callable:
    """Dependency allowing ``limit`` calls per client per window for ``scope``."""

    async def _dependency(request: Request) -> None:
        if getattr(request.app.state, "disable_rate_limits", False):
            return None

        key = f"{KEY_PREFIX}:{scope}:{_client_identifier(request)}"
        try:
            allowed = await _consume_redis_quota(key, window_seconds) <= limit
        except (RedisError, OSError) as exc:
            logger.debug("Redis unavailable for %s quota, counting locally: %s", scope, exc)
            allowed = await _consume_local_quota(key, limit, window_seconds)

        if not allowed:
            logger.info("Rate limit hit for %s", key)
            raise HTTPException(
                status_code=429,
                detail="Too many requests for this link. Try again shortly.",
            )
        return None

    return _dependency
