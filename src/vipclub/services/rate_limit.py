"""Per-client request throttling for token redemption and uploads.

Counts live in process memory, so each worker throttles independently.
"""

import asyncio
import math
import time
from collections import defaultdict, deque
from collections.abc import Callable
from dataclasses import dataclass
from enum import Enum

from fastapi import Request

from vipclub.config import settings


class RateLimitType(str, Enum):
    REDEEM = "redeem"
    UPLOAD = "upload"


@dataclass(frozen=True)
class Window:
    requests: int
    seconds: int


# Redemption is where tokens get guessed, so it has the tightest window
WINDOWS: dict[RateLimitType, Window] = {
    RateLimitType.REDEEM: Window(requests=10, seconds=60),
    RateLimitType.UPLOAD: Window(requests=30, seconds=60),
}


@dataclass(frozen=True)
class RateLimitResult:
    allowed: bool
    limit: int
    remaining: int
    reset_at: float

    @property
    def retry_after(self) -> int:
        return max(0, math.ceil(self.reset_at - time.time()))

    def headers(self) -> dict[str, str]:
        """``X-RateLimit-*`` headers, plus ``Retry-After`` once blocked."""
        headers = {
            "X-RateLimit-Limit": str(self.limit),
            "X-RateLimit-Remaining": str(self.remaining),
            "X-RateLimit-Reset": str(int(self.reset_at)),
        }
        if not self.allowed:
            headers["Retry-After"] = str(self.retry_after)
        return headers


class InMemoryRateLimiter:
    """Sliding window over the timestamps of each client's recent hits."""

    # Seconds between sweeps of clients with no hits left in any window
    CLEANUP_INTERVAL = 60

    def __init__(self, clock: Callable[[], float] = time.time) -> None:
        self._hits: defaultdict[str, deque[float]] = defaultdict(deque)
        self._lock = asyncio.Lock()
        self._clock = clock
        self._last_cleanup = clock()

    async def hit(self, client: str, limit_type: RateLimitType) -> RateLimitResult:
        """Count one request from ``client``; blocked requests are not counted."""
        window = WINDOWS[limit_type]
        now = self._clock()

        async with self._lock:
            if now - self._last_cleanup >= self.CLEANUP_INTERVAL:
                self._cleanup_old_entries(now)

            hits = self._hits[f"{limit_type.value}:{client}"]
            while hits and hits[0] <= now - window.seconds:
                hits.popleft()

            allowed = len(hits) < window.requests
            if allowed:
                hits.append(now)

            return RateLimitResult(
                allowed=allowed,
                limit=window.requests,
                remaining=window.requests - len(hits),
                reset_at=hits[0] + window.seconds,
            )

    async def cleanup_old_entries(self) -> int:
        """Drop clients whose newest hit has left its window. Returns how many."""
        async with self._lock:
            return self._cleanup_old_entries(self._clock())

    def _cleanup_old_entries(self, now: float) -> int:
        stale = [
            key
            for key, hits in self._hits.items()
            if not hits or hits[-1] <= now - WINDOWS[RateLimitType(key.split(":", 1)[0])].seconds
        ]
        for key in stale:
            del self._hits[key]
        self._last_cleanup = now
        return len(stale)

    def reset(self) -> None:
        self._hits.clear()


_limiter = InMemoryRateLimiter()


def get_rate_limiter() -> InMemoryRateLimiter:
    return _limiter


def get_client_ip(request: Request) -> str:
    """The socket peer, or the proxy-reported client when proxy headers are trusted.

    Forwarded headers are client-controlled unless a reverse proxy overwrites
    them, so they are only read with ``trust_proxy_headers`` enabled.
    """
    if settings.trust_proxy_headers:
        forwarded = request.headers.get("x-forwarded-for", "").split(",")[0].strip()
        if forwarded:
            return forwarded
        real_ip = request.headers.get("x-real-ip", "").strip()
        if real_ip:
            return real_ip
    return request.client.host if request.client else "unknown"


async def check_rate_limit(request: Request, limit_type: RateLimitType) -> RateLimitResult:
    return await get_rate_limiter().hit(get_client_ip(request), limit_type)
