"""
TechGear Catalog Backend — Rate Limiting
==========================================

What:  Per-IP sliding window rate limiters.
Why:   Protects the API from abuse; the registration and product-write
       endpoints get their own, stricter windows to slow down credential
       stuffing, account enumeration and catalog vandalism.
How:   SlidingWindowLimiter keeps a deque of request timestamps per client
       key. Three independently configured instances exist:

           general        → RateLimitMiddleware, every route
           auth           → RouteRateLimit("auth"), POST /register
           product_write  → RouteRateLimit("product_write"), POST/PUT/DELETE /products

Algorithm: Sliding Window Log
    1. Each key gets a deque of request timestamps
    2. On each check, drop timestamps older than the window
    3. If remaining count >= limit, reject (retry after oldest expires)
    4. Otherwise, record the current timestamp and allow

    Prune + count + append happen under one lock, so concurrent bursts from
    the same key cannot undercount.

Scope:
    State is process-local and resets on restart. Multi-worker deployments
    get one window per worker.
"""

import logging
import math
import threading
import time
from collections import defaultdict, deque
from dataclasses import dataclass
from typing import Callable, Deque, Dict

from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.responses import JSONResponse, Response

from app.exceptions import RateLimitExceededError
from app.middleware.request_id import request_id_var

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RateLimitDecision:
    allowed: bool
    retry_after: int
    remaining: int


class SlidingWindowLimiter:
    """
    In-memory sliding window limiter keyed by client identity.

    Args:
        name:            Label used in logs ("general", "auth", ...)
        max_requests:    Requests allowed per window
        window_seconds:  Window length
        clock:           Monotonic time source (injectable for tests)
    """

    # Sweep idle keys every N checks to bound memory
    SWEEP_EVERY = 1000

    def __init__(
        self,
        name: str,
        max_requests: int,
        window_seconds: float,
        clock: Callable[[], float] = time.monotonic,
    ):
        if max_requests < 1:
            raise ValueError("max_requests must be at least 1")
        if window_seconds <= 0:
            raise ValueError("window_seconds must be positive")
        self.name = name
        self.max_requests = max_requests
        self.window_seconds = window_seconds
        self._clock = clock
        self._hits: Dict[str, Deque[float]] = defaultdict(deque)
        self._lock = threading.Lock()
        self._checks = 0

    def check(self, key: str) -> RateLimitDecision:
        """Count one request for `key` and decide whether it may proceed."""
        now = self._clock()
        window_start = now - self.window_seconds

        with self._lock:
            hits = self._hits[key]
            while hits and hits[0] <= window_start:
                hits.popleft()

            if len(hits) >= self.max_requests:
                retry_after = max(1, math.ceil(hits[0] + self.window_seconds - now))
                return RateLimitDecision(allowed=False, retry_after=retry_after, remaining=0)

            hits.append(now)
            remaining = self.max_requests - len(hits)

            self._checks += 1
            if self._checks % self.SWEEP_EVERY == 0:
                self._sweep(window_start)

        return RateLimitDecision(allowed=True, retry_after=0, remaining=remaining)

    def _sweep(self, window_start: float) -> None:
        """Drop keys with no requests inside the current window. Caller holds the lock."""
        idle = [key for key, hits in self._hits.items() if not hits or hits[-1] <= window_start]
        for key in idle:
            del self._hits[key]
        if idle:
            logger.debug("[%s] Cleaned up %d idle rate limit keys", self.name, len(idle))

    def __len__(self) -> int:
        return len(self._hits)


def client_key(request: Request) -> str:
    """Rate limit key: the peer address (the proxy's address behind a proxy)."""
    return request.client.host if request.client else "unknown"


class RateLimitMiddleware(BaseHTTPMiddleware):
    """
    Applies the general-purpose limiter to every request.

    Excluded paths:
        - /health: Health checks should never be rate-limited
        - /docs, /openapi.json, /redoc: API documentation

    Response on rate limit:
        HTTP 429 with a Retry-After header. Returned directly rather than
        raised, because exceptions raised in BaseHTTPMiddleware bypass the
        app's exception handlers.
    """

    EXCLUDED_PATHS = {"/health", "/docs", "/openapi.json", "/redoc"}

    def __init__(self, app, limiter: SlidingWindowLimiter, **kwargs):
        super().__init__(app, **kwargs)
        self.limiter = limiter

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        if request.url.path in self.EXCLUDED_PATHS or request.method == "OPTIONS":
            return await call_next(request)

        ip = client_key(request)
        decision = self.limiter.check(ip)

        if not decision.allowed:
            logger.warning(
                "Rate limit exceeded for IP %s: %d requests in %ss window",
                ip,
                self.limiter.max_requests,
                self.limiter.window_seconds,
            )
            error = RateLimitExceededError(retry_after=decision.retry_after)
            return JSONResponse(
                status_code=429,
                content={
                    "error": "rate_limit_exceeded",
                    "message": error.message,
                    "request_id": request_id_var.get(""),
                },
                headers={"Retry-After": str(decision.retry_after)},
            )

        response = await call_next(request)
        response.headers["X-RateLimit-Limit"] = str(self.limiter.max_requests)
        response.headers["X-RateLimit-Remaining"] = str(decision.remaining)
        return response


class RouteRateLimit:
    """
    FastAPI dependency enforcing one of the route-specific limiters.

    The limiter instance lives on app.state.rate_limiters so every app
    (and every test app) gets fresh counters.

    Usage:
        @router.post("/register", dependencies=[Depends(RouteRateLimit("auth"))])
    """

    def __init__(self, name: str):
        self.name = name

    async def __call__(self, request: Request) -> None:
        limiter: SlidingWindowLimiter = request.app.state.rate_limiters[self.name]
        ip = client_key(request)
        decision = limiter.check(ip)
        if not decision.allowed:
            logger.warning("[%s] Rate limit exceeded for IP %s", self.name, ip)
            raise RateLimitExceededError(
                retry_after=decision.retry_after,
                context={"limiter": self.name},
            )
