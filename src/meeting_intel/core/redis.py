"""Shared redis.asyncio client for the ``redis`` analysis cache backend.

The client is created on first use and reused process-wide. Socket
timeouts follow STORAGE_TIMEOUT_SECONDS so a stalled Redis surfaces as a
RedisError (and from there a cache miss) instead of hanging a listing.
"""

from __future__ import annotations

import redis.asyncio as aioredis
import structlog

from src.meeting_intel.config import get_settings

logger = structlog.get_logger(__name__)

_client: aioredis.Redis | None = None


def get_redis_pool() -> aioredis.Redis:
    """Return the process-wide client, creating it from REDIS_URL if needed."""
    global _client
    if _client is None:
        settings = get_settings()
        _client = aioredis.from_url(
            settings.REDIS_URL,
            decode_responses=True,
            socket_timeout=settings.STORAGE_TIMEOUT_SECONDS,
            socket_connect_timeout=settings.STORAGE_TIMEOUT_SECONDS,
            health_check_interval=30,
        )
        logger.info("redis.client_created", timeout_seconds=settings.STORAGE_TIMEOUT_SECONDS)
    return _client


async def close_redis() -> None:
    """Close the shared client. A no-op when it was never created."""
    global _client
    if _client is None:
        return
    await _client.aclose()
    _client = None
    logger.info("redis.client_closed")
