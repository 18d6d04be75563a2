"""FastAPI application entry point.

Run with: uvicorn src.main:app --reload --port 8000
"""

# ruff: noqa: E402  -- uvloop.install() must run before other imports

import uvloop

uvloop.install()

import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from sqlalchemy import text

from config.settings import settings
from src.pm_account.api.positions_router import router as positions_router
from src.pm_account.api.router import router as account_router
from src.pm_common.database import engine
from src.pm_common.errors import AppError, InternalError
from src.pm_common.redis_client import close_redis, ping_redis
from src.pm_common.response import error_response
from src.pm_gateway.middleware.rate_limit import RateLimitMiddleware
from src.pm_gateway.middleware.request_log import RequestLogMiddleware
from src.pm_market.api.router import router as market_router
from src.pm_oracle.api.router import router as oracle_router
from src.pm_relay.api.router import router as relay_router

logger = logging.getLogger(__name__)

API_PREFIX = "/api/v1"
VERSION = "0.1.0"


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Refuse to start without PostgreSQL; Redis is required only if rate limiting is on."""
    async with engine.connect() as conn:
        await conn.execute(text("SELECT 1"))
    if settings.RATE_LIMIT_PER_MINUTE > 0:
        await ping_redis()
    logger.info(
        "%s %s started: trusted relay channels=%s",
        settings.APP_NAME, VERSION, sorted(settings.RELAY_TRUSTED_CHANNELS),
    )
    yield
    await engine.dispose()
    await close_redis()


app = FastAPI(
    title=settings.APP_NAME,
    version=VERSION,
    lifespan=lifespan,
)

# Added last = outermost: every response, including 429s, gets a request id
app.add_middleware(RateLimitMiddleware)
app.add_middleware(RequestLogMiddleware)


@app.exception_handler(AppError)
async def app_error_handler(request: Request, exc: AppError) -> JSONResponse:
    resp = error_response(exc.code, exc.message)
    return JSONResponse(
        status_code=exc.http_status,
        content=resp.model_dump(),
    )


@app.exception_handler(AssertionError)
async def invariant_error_handler(request: Request, exc: AssertionError) -> JSONResponse:
    # Market invariant breach: the savepoint was rolled back, but this is a bug
    logger.critical("Invariant violated on %s %s: %s", request.method, request.url.path, exc)
    err = InternalError()
    return JSONResponse(
        status_code=err.http_status,
        content=error_response(err.code, err.message).model_dump(),
    )


for _router in (account_router, positions_router, market_router, oracle_router, relay_router):
    app.include_router(_router, prefix=API_PREFIX)


@app.get("/health")
async def health() -> dict[str, str]:
    return {"status": "ok", "version": VERSION}
