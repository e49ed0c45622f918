"""
In-process fixed-window rate limiting, keyed by client IP and endpoint.
"""

import logging
import time
from dataclasses import dataclass
from threading import Lock
from typing import Callable, Dict, Optional

from fastapi import Request

from config import settings
from errors import RateLimitedError

logger = logging.getLogger("pizza-delivery")


@dataclass(frozen=True)
class RateLimit:
    window_seconds: int
    max_requests: int
    message: str = "Too many requests. Try again later."


RATE_LIMITS: Dict[str, RateLimit] = {
    "login": RateLimit(15 * 60, 5, "Too many login attempts. Try again in 15 minutes."),
    "register": RateLimit(60 * 60, 3, "Too many registration attempts. Try again in 1 hour."),
    "orders": RateLimit(60, 10),
    "products": RateLimit(60, 100),
    "customers": RateLimit(60, 50),
    "default": RateLimit(60, 60),
}


class RateLimiter:
    def __init__(self, clock: Callable[[], float] = time.monotonic) -> None:
        self._clock = clock
        self._windows: Dict[str, Dict[str, float]] = {}
        self._lock = Lock()

    def hit(self, key: str, limit: RateLimit) -> Optional[int]:
        """Count one request. Returns seconds to wait when over the limit."""
        now = self._clock()
        with self._lock:
            window = self._windows.get(key)
            if window is None or now >= window["reset_at"]:
                self._windows[key] = {"count": 1, "reset_at": now + limit.window_seconds}
                return None
            if window["count"] >= limit.max_requests:
                return max(1, int(window["reset_at"] - now + 0.999))
            window["count"] += 1
            return None

    def reset(self, key: Optional[str] = None) -> None:
        with self._lock:
            if key is None:
                self._windows.clear()
            else:
                self._windows.pop(key, None)

    def cleanup(self) -> int:
        now = self._clock()
        with self._lock:
            expired = [key for key, window in self._windows.items() if now >= window["reset_at"]]
            for key in expired:
                del self._windows[key]
        return len(expired)


limiter = RateLimiter()


def client_ip(request: Request) -> str:
    forwarded = request.headers.get("x-forwarded-for")
    if forwarded:
        return forwarded.split(",")[0].strip()
    if request.client:
        return request.client.host
    return "unknown"


def rate_limit(endpoint: str):
    limit = RATE_LIMITS.get(endpoint, RATE_LIMITS["default"])

    async def dependency(request: Request) -> None:
        if not settings.rate_limit_enabled:
            return
        key = f"{client_ip(request)}:{endpoint}"
        retry_after = limiter.hit(key, limit)
        if retry_after is not None:
            logger.warning("Rate limit exceeded key=%s retry_after=%s", key, retry_after)
            raise RateLimitedError(limit.message, retry_after=retry_after)

    return dependency
