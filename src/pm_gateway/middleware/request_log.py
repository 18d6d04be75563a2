"""Request logging middleware.

Every request gets a request id: the caller's X-Request-ID when it sent a
usable one (relay senders pass theirs through so both sides correlate),
otherwise a fresh "req_<12 hex>". The id is put on request.state for
ApiResponse and echoed back in the X-Request-ID response header.

Log format:
    INFO [POST] /api/v1/markets/3/trades → 200 (12ms) client=10.0.0.5 req=req_a1b2c3d4e5f6

4xx responses log at WARNING and 5xx at ERROR so rejected trades and relay
failures stand out without enabling DEBUG.
"""

import logging
import re
import time
import uuid

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

from src.pm_gateway.middleware.rate_limit import client_key

logger = logging.getLogger("pm.request")

REQUEST_ID_HEADER = "X-Request-ID"
_VALID_REQUEST_ID = re.compile(r"^[A-Za-z0-9_.:-]{1,64}$")


def resolve_request_id(request: Request) -> str:
    incoming = request.headers.get(REQUEST_ID_HEADER)
    if incoming and _VALID_REQUEST_ID.match(incoming):
        return incoming
    return f"req_{uuid.uuid4().hex[:12]}"


def _level_for(status_code: int) -> int:
    if status_code >= 500:
        return logging.ERROR
    if status_code >= 400:
        return logging.WARNING
    return logging.INFO


class RequestLogMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        request_id = resolve_request_id(request)
        request.state.request_id = request_id

        start = time.perf_counter()
        response: Response = await call_next(request)
        elapsed_ms = (time.perf_counter() - start) * 1000
        response.headers[REQUEST_ID_HEADER] = request_id

        logger.log(
            _level_for(response.status_code),
            "[%s] %s → %d (%.0fms) client=%s req=%s",
            request.method,
            request.url.path,
            response.status_code,
            elapsed_ms,
            client_key(request),
            request_id,
        )
        return response
