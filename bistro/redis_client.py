# bistro/redis_client.py
"""
Optional Redis connection.

Only created when REDIS_URL is configured; otherwise the rate limiter
falls back to its in-process store.
"""

from typing import Optional

from redis import Redis

from .config import settings

redis_client: Optional[Redis] = (
    Redis.from_url(
        settings.redis_url,
        decode_responses=True,
        socket_timeout=2.0,
    )
    if settings.redis_url
    else None
)
