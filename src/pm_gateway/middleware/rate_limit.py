"""Fixed-window rate limiting backed by Redis.

Key pattern: "ratelimit:{client}:{minute}", INCR + EXPIRE 60s.
The client is the peer address, or the X-Forwarded-For entry appended by the
outermost trusted proxy when TRUSTED_PROXY_HOPS > 0.
/health is never limited; a limit of 0 disables the middleware.
"""

import logging
import time

from redis.exceptions import RedisError
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import JSONResponse, Response
from starlette.types import ASGIApp

from config.settings import settings
from src.pm_common.errors import RateLimitError
from src.pm_common.redis_client import get_redis
from src.pm_common.response import error_response

logger = logging.getLogger(__name__)

_WINDOW_SECONDS = 60
_EXEMPT_PATHS = frozenset({"/health"})


def client_key(request: Request, trusted_hops: int | None = None) -> str:
    """Address the limit is keyed on.

    X-Forwarded-For is only read behind trusted proxies, counting hops from
    the right: each proxy appends the address it saw, so the entry at
    position -N was written by the outermost of N trusted proxies. Anything
    further left is client-supplied and ignored.
    """
    hops = settings.TRUSTED_PROXY_HOPS if trusted_hops is None else trusted_hops
    peer = request.client.host if request.client else "unknown"
    if hops <= 0:
        return peer
    forwarded = [
        h.strip() for h in request.headers.get("x-forwarded-for", "").split(",") if h.strip()
    ]
    if len(forwarded) < hops:
        return peer
    return forwarded[-hops]


class RateLimitMiddleware(BaseHTTPMiddleware):
    def __init__(self, app: ASGIApp, limit: int | None = None) -> None:
        super().__init__(app)
        self._limit = limit if limit is not None else settings.RATE_LIMIT_PER_MINUTE

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        if self._limit <= 0 or request.url.path in _EXEMPT_PATHS:
            return await call_next(request)

        window = int(time.time()) // _WINDOW_SECONDS
        key = f"ratelimit:{client_key(request)}:{window}"
        try:
            redis = await get_redis()
            count = await redis.incr(key)
            if count == 1:
                await redis.expire(key, _WINDOW_SECONDS)
        except RedisError as e:
            # Fail open: the ledger keeps serving without counters
            logger.warning("Rate limiter unavailable, passing request: %s", e)
            return await call_next(request)
        if count > self._limit:
            logger.warning("Rate limit exceeded: key=%s count=%d", key, count)
            exc = RateLimitError()
            return JSONResponse(
                status_code=exc.http_status,
                content=error_response(exc.code, exc.message).model_dump(),
                headers={"Retry-After": str(_WINDOW_SECONDS)},
            )
        return await call_next(request)
