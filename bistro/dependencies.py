# bistro/dependencies.py
"""
FastAPI dependencies shared by routers.

Everything time- or process-dependent is injected here so tests can
override it through app.dependency_overrides.
"""

from datetime import datetime
from functools import lru_cache

from fastapi import Request

from .config import settings
from .redis_client import redis_client
from .services.mailer import Mailer, build_mailer
from .services.rate_limit import RateLimiter, build_rate_limiter


def get_now() -> datetime:
    return datetime.now()


@lru_cache
def get_rate_limiter() -> RateLimiter:
    """Process-wide limiter (singleton)."""
    return build_rate_limiter(redis_client, bypass_loopback=settings.rate_limit_bypass_loopback)


@lru_cache
def get_mailer() -> Mailer:
    return build_mailer()


def get_client_ip(request: Request) -> str:
    """
    Socket peer address.

    X-Real-IP is honored only when a trusted reverse proxy sets it
    (trust_proxy_headers); otherwise any client could pick its own identity.
    """
    if settings.trust_proxy_headers:
        real_ip = request.headers.get("X-Real-IP", "").strip()
        if real_ip:
            return real_ip
    return request.client.host if request.client else "unknown"
