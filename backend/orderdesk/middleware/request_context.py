"""Request context middleware — request ids, timing, access log and rate limiting.

All four happen in one pass of ``RequestContextMiddleware``. The token
bucket itself is the pure function ``check_rate_limit`` so it can be tested
without a running app.
"""

import logging
import threading
import time
import uuid
from typing import Optional

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import JSONResponse, Response

from ..core.config import settings
from ..core.logging_config import request_id_var
from .exception_handler import rate_limited_body

logger = logging.getLogger(__name__)

# Health probes and API docs are never throttled.
_EXEMPT_PATHS = frozenset({"/", "/health", "/docs", "/redoc", "/openapi.json"})


def check_rate_limit(
    bucket: dict[str, tuple[float, float]],
    key: str,
    max_per_minute: int,
    now: Optional[float] = None,
) -> tuple[bool, float]:
    """Take one token for *key* from *bucket*.

    ``bucket`` maps a client key to ``(tokens, last_refill)`` and is updated
    in place. Returns ``(allowed, retry_after_seconds)``. A non-positive
    limit disables throttling.
    """
    if max_per_minute <= 0:
        return True, 0.0
    if now is None:
        now = time.monotonic()

    refill_per_second = max_per_minute / 60.0
    tokens, last = bucket.get(key, (float(max_per_minute), now))
    tokens = min(float(max_per_minute), tokens + (now - last) * refill_per_second)

    if tokens >= 1.0:
        bucket[key] = (tokens - 1.0, now)
        return True, 0.0

    bucket[key] = (tokens, now)
    return False, (1.0 - tokens) / refill_per_second


class RateLimiter:
    """Thread-safe in-memory token buckets keyed by client address.

    Idle entries are swept every ``sweep_every`` checks so rotating client
    addresses cannot grow the table without bound.
    """

    def __init__(self, sweep_every: int = 100, idle_seconds: float = 120.0):
        self._buckets: dict[str, tuple[float, float]] = {}
        self._lock = threading.Lock()
        self._calls = 0
        self._sweep_every = sweep_every
        self._idle_seconds = idle_seconds

    def check(self, key: str, max_per_minute: int, now: Optional[float] = None) -> tuple[bool, float]:
        now = time.monotonic() if now is None else now
        with self._lock:
            self._calls += 1
            if self._calls % self._sweep_every == 0:
                cutoff = now - self._idle_seconds
                for stale in [k for k, (_, ts) in self._buckets.items() if ts < cutoff]:
                    del self._buckets[stale]
            return check_rate_limit(self._buckets, key, max_per_minute, now)

    def reset(self) -> None:
        with self._lock:
            self._buckets.clear()
            self._calls = 0


rate_limiter = RateLimiter()


def _client_key(request: Request) -> str:
    """First ``X-Forwarded-For`` hop when behind a proxy, else the peer address."""
    forwarded = request.headers.get("x-forwarded-for")
    if forwarded:
        return forwarded.split(",")[0].strip()
    return request.client.host if request.client else "unknown"


class RequestContextMiddleware(BaseHTTPMiddleware):
    """Request id, rate limit, timing and one structured log line per request."""

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        rid = request.headers.get("x-request-id") or uuid.uuid4().hex[:16]
        request_id_var.set(rid)

        if request.url.path not in _EXEMPT_PATHS:
            key = _client_key(request)
            allowed, retry_after = rate_limiter.check(key, settings.rate_limit_per_minute)
            if not allowed:
                logger.warning(
                    "Rate limit exceeded",
                    extra={"client": key, "path": request.url.path, "retry_after": round(retry_after, 1)},
                )
                return JSONResponse(
                    status_code=429,
                    content=rate_limited_body(retry_after),
                    headers={"Retry-After": str(int(retry_after) + 1), "X-Request-ID": rid},
                )

        start = time.monotonic()
        response = await call_next(request)
        duration_ms = round((time.monotonic() - start) * 1000, 1)

        response.headers["X-Request-ID"] = rid
        response.headers["X-Response-Time"] = f"{duration_ms}ms"

        logger.info(
            "%s %s %s",
            request.method,
            request.url.path,
            response.status_code,
            extra={
                "method": request.method,
                "path": request.url.path,
                "status_code": response.status_code,
                "duration_ms": duration_ms,
            },
        )
        return response
