# ruff: noqa: PLW0603
"""Redis connection management.

Redis is optional: it backs the comment tree cache only, and the service
runs without it.
"""

from uuid import UUID

import redis.asyncio as redis

from campusboard.config import get_settings
from campusboard.core.logging import get_logger


logger = get_logger(__name__)

_redis_client: redis.Redis | None = None


async def init_redis() -> redis.Redis:
    """Initialize Redis connection pool."""
    global _redis_client

    settings = get_settings()

    _redis_client = redis.from_url(
        settings.redis_url,
        max_connections=settings.redis_max_connections,
        socket_timeout=settings.redis_socket_timeout,
        socket_connect_timeout=settings.redis_socket_connect_timeout,
        retry_on_timeout=settings.redis_retry_on_timeout,
        health_check_interval=settings.redis_health_check_interval,
        decode_responses=True,
    )

    try:
        await _redis_client.ping()
        logger.info("redis_connected", url=settings.redis_url)
    except redis.ConnectionError as e:
        logger.warning("redis_connection_failed", error=str(e))
        _redis_client = None
        raise

    return _redis_client


async def shutdown_redis() -> None:
    """Close Redis connection."""
    global _redis_client

    if _redis_client:
        await _redis_client.aclose()
        logger.info("redis_disconnected")
        _redis_client = None


def comment_tree_version_key(post_id: UUID) -> str:
    """Counter bumped by every write that changes the comment tree of a post."""
    return f"comments:tree:ver:{post_id}"


def comment_tree_key(post_id: UUID, version: int) -> str:
    """Cache key of one version of the actor-independent comment tree."""
    return f"comments:tree:{post_id}:{version}"
