"""
In-process fixed-window rate limiter keyed by client IP.
"""

import time
from collections import defaultdict
from typing import Iterable, Optional
from fastapi import Request
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware


class FixedWindowLimiter:
    def __init__(self, limit_per_minute: int):
        self.limit_per_minute = limit_per_minute
        self._counts: dict[tuple[str, int], int] = defaultdict(int)

    def hit(self, identity: str, now: Optional[float] = None) -> tuple[bool, int]:
        """Count one request. Returns (allowed, count in the current minute)."""
        if self.limit_per_minute <= 0:
            return True, 0
        minute_bucket = int((now if now is not None else time.time()) // 60)
        # Drop buckets from earlier minutes
        for key in [k for k in self._counts if k[1] < minute_bucket]:
            del self._counts[key]
        key = (identity, minute_bucket)
        self._counts[key] += 1
        count = self._counts[key]
        return count <= self.limit_per_minute, count

    def reset(self) -> None:
        self._counts.clear()


def client_identity(peer: Optional[str], forwarded_for: str, trusted_proxies: Iterable[str] = ()) -> str:
    """
    The address to rate-limit on.

    X-Forwarded-For is only read when the direct peer is a trusted proxy, and
    then the right-most hop that is not itself a trusted proxy wins.
    """
    trusted = set(trusted_proxies)
    peer = peer or "unknown"
    if peer not in trusted or not forwarded_for:
        return peer
    for hop in reversed([h.strip() for h in forwarded_for.split(",") if h.strip()]):
        if hop not in trusted:
            return hop
    return peer


class RateLimitMiddleware(BaseHTTPMiddleware):
    def __init__(self, app, limit_per_minute: int = 100,
                 trusted_proxies: Iterable[str] = ()):
        super().__init__(app)
        self.limiter = FixedWindowLimiter(limit_per_minute)
        self.trusted_proxies = set(trusted_proxies)

    async def dispatch(self, request: Request, call_next):
        if request.url.path.startswith("/health"):
            return await call_next(request)

        identity = client_identity(
            request.client.host if request.client else None,
            request.headers.get("x-forwarded-for", ""),
            self.trusted_proxies,
        )
        allowed, _ = self.limiter.hit(identity)
        if not allowed:
            return JSONResponse(
                status_code=429,
                content={
                    "error": "Too Many Requests",
                    "message": "Too many requests. Please wait a moment and try again.",
                    "status_code": 429,
                    "trace_id": getattr(request.state, "trace_id", ""),
                },
                headers={"Retry-After": "60"},
            )
        return await call_next(request)
