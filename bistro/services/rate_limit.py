# bistro/services/rate_limit.py
"""
Per-identifier rate limiting shared by booking and order submission.

Window-by-reset counter:
- no record, or now > reset_at → start a new window with count = 1
- count >= limit → denied
- otherwise count += 1

The counter lives behind a RateLimitStore so it can be the in-process map
or Redis without touching callers. Loopback clients bypass limiting when
`bypass_loopback` is on (off by default); every bypass is logged.
"""

import ipaddress
import logging
import threading
import time
from dataclasses import dataclass
from typing import Callable, Optional, Protocol

from redis import Redis
from redis.exceptions import RedisError

logger = logging.getLogger(__name__)

IDENTIFIER_SEPARATOR = "@"
LOOPBACK_HOSTS = frozenset({"localhost"})


@dataclass(frozen=True)
class RateLimitDecision:
    allowed: bool
    remaining: int
    reset_at_ms: Optional[int] = None


class RateLimitStore(Protocol):
    """Atomic check-and-increment of a bounded counter."""

    def hit(self, identifier: str, max_requests: int, window_ms: int, now_ms: int) -> RateLimitDecision:
        ...


# ============================================================
# STORES
# ============================================================

class InMemoryRateLimitStore:
    """Process-lifetime store; one lock makes check-and-increment atomic."""

    PURGE_EVERY = 1000

    def __init__(self):
        self._records: dict[str, list[int]] = {}  # identifier → [count, reset_at_ms]
        self._lock = threading.Lock()
        self._hits = 0

    def hit(self, identifier: str, max_requests: int, window_ms: int, now_ms: int) -> RateLimitDecision:
        with self._lock:
            self._hits += 1
            if self._hits % self.PURGE_EVERY == 0:
                self._purge_expired(now_ms)

            record = self._records.get(identifier)

            if record is None or now_ms > record[1]:
                reset_at = now_ms + window_ms
                self._records[identifier] = [1, reset_at]
                return RateLimitDecision(True, max_requests - 1, reset_at)

            count, reset_at = record
            if count >= max_requests:
                return RateLimitDecision(False, 0, reset_at)

            record[0] = count + 1
            return RateLimitDecision(True, max_requests - record[0], reset_at)

    def reset(self) -> None:
        with self._lock:
            self._records.clear()

    def _purge_expired(self, now_ms: int) -> None:
        expired = [key for key, (_, reset_at) in self._records.items() if now_ms > reset_at]
        for key in expired:
            del self._records[key]


class RedisRateLimitStore:
    """
    Shared counter in Redis.

    SET NX PX opens the window and INCR counts inside one MULTI/EXEC, so a
    key never exists without its expiry. Redis errors fail open: limiter
    state loss is tolerated.
    """

    KEY_PREFIX = "rl"

    def __init__(self, redis: Redis):
        self.redis = redis

    def _key(self, identifier: str) -> str:
        return f"{self.KEY_PREFIX}:{identifier}"

    def hit(self, identifier: str, max_requests: int, window_ms: int, now_ms: int) -> RateLimitDecision:
        key = self._key(identifier)
        try:
            pipe = self.redis.pipeline(transaction=True)
            pipe.set(key, 0, nx=True, px=window_ms)
            pipe.incr(key)
            pipe.pttl(key)
            _, count, ttl = pipe.execute()

            reset_at = now_ms + (ttl if ttl and ttl > 0 else window_ms)
            if count > max_requests:
                return RateLimitDecision(False, 0, reset_at)

            return RateLimitDecision(True, max_requests - count, reset_at)

        except RedisError as e:
            logger.error(f"Rate limit check failed: {e}")
            return RateLimitDecision(True, max_requests)  # fail open


# ============================================================
# LIMITER
# ============================================================

def make_identifier(action: str, client_ip: Optional[str]) -> str:
    return f"{action}{IDENTIFIER_SEPARATOR}{client_ip or 'unknown'}"


def is_loopback(identifier: str) -> bool:
    host = identifier.rsplit(IDENTIFIER_SEPARATOR, 1)[-1].strip().lower()
    if host in LOOPBACK_HOSTS:
        return True
    try:
        return ipaddress.ip_address(host).is_loopback
    except ValueError:
        return False


class RateLimiter:
    def __init__(
        self,
        store: RateLimitStore,
        bypass_loopback: bool = False,
        clock: Optional[Callable[[], float]] = None,
    ):
        self.store = store
        self.bypass_loopback = bypass_loopback
        self.clock = clock or time.time

    def check(self, identifier: str, max_requests: int, window_ms: int) -> RateLimitDecision:
        """
        Count one request for identifier.

        max_requests <= 0 disables the limit.
        """
        if max_requests <= 0:
            return RateLimitDecision(True, 0)

        if self.bypass_loopback and is_loopback(identifier):
            logger.warning(f"Rate limit bypassed for loopback identifier {identifier}")
            return RateLimitDecision(True, max_requests)

        now_ms = int(self.clock() * 1000)
        decision = self.store.hit(identifier, max_requests, window_ms, now_ms)

        if not decision.allowed:
            logger.warning(f"Rate limit exceeded: {identifier} ({max_requests}/{window_ms}ms)")

        return decision


def build_rate_limiter(redis: Optional[Redis] = None, bypass_loopback: bool = False) -> RateLimiter:
    """Redis store when a client is configured, in-process map otherwise."""
    store: RateLimitStore = RedisRateLimitStore(redis) if redis is not None else InMemoryRateLimitStore()
    return RateLimiter(store, bypass_loopback=bypass_loopback)
