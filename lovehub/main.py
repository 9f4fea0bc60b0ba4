"""
LoveHub — FastAPI Application Entry Point

- Async lifespan management (entity store, seed data, message broker)
- CORS, timeout, and structured-logging middleware
- Domain-error handler mapping service errors to HTTP responses
- Health-check endpoints (liveness + deep readiness)
- Active-request tracking for graceful shutdown
"""

from __future__ import annotations

import asyncio
import logging
import time
from contextlib import asynccontextmanager
from typing import AsyncIterator

import structlog
from fastapi import FastAPI, Request, Response
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint

from lovehub.config import get_settings
from lovehub.errors import LoveHubError
from lovehub.services import build_services
from lovehub.services.broker import MessageBroker, RedisMessageBroker
from lovehub.store import build_store

# ---------------------------------------------------------------------------
# Structured logging configuration
# ---------------------------------------------------------------------------

settings = get_settings()

structlog.configure(
    processors=[
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.StackInfoRenderer(),
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.JSONRenderer(),
    ],
    wrapper_class=structlog.make_filtering_bound_logger(
        getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO)
    ),
    context_class=dict,
    logger_factory=structlog.PrintLoggerFactory(),
    cache_logger_on_first_use=True,
)

logger: structlog.stdlib.BoundLogger = structlog.get_logger("lovehub")

# ---------------------------------------------------------------------------
# Active request counter for graceful shutdown
# ---------------------------------------------------------------------------

_active_requests: int = 0

DRAIN_TIMEOUT_SECONDS = 15

# Long-lived routes that the timeout middleware must not cut off.
_STREAMING_PATHS = ("/api/v1/messages/stream",)


async def _drain_active_requests() -> None:
    """Wait until all in-flight requests complete or timeout expires."""
    deadline = time.monotonic() + DRAIN_TIMEOUT_SECONDS
    while _active_requests > 0:
        if time.monotonic() >= deadline:
            logger.warning(
                "drain_timeout_exceeded",
                remaining_requests=_active_requests,
            )
            break
        await asyncio.sleep(0.25)


def _build_broker() -> MessageBroker:
    current = get_settings()
    if current.REDIS_URL:
        return RedisMessageBroker(current.REDIS_URL)
    return MessageBroker()


# ---------------------------------------------------------------------------
# Lifespan
# ---------------------------------------------------------------------------

@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Manage startup and shutdown of long-lived resources."""
    current = get_settings()

    # -- Startup --------------------------------------------------------- #
    logger.info(
        "startup_begin",
        environment=current.ENVIRONMENT,
        store_backend=current.STORE_BACKEND,
    )

    # 1. Entity store (a failed ping aborts startup)
    store = build_store(current)
    await store.ping()
    if current.SEED_ON_STARTUP:
        await store.ensure_seeded()
    logger.info("store_initialised")

    # 2. Message broker
    broker = _build_broker()
    await broker.start()

    app.state.services = build_services(
        store,
        broker,
        image_placeholder=current.IMAGE_PLACEHOLDER,
    )
    logger.info("startup_complete")

    yield

    # -- Shutdown -------------------------------------------------------- #
    logger.info("shutdown_begin")

    # 1. Drain in-flight requests
    await _drain_active_requests()

    try:
        # 2. Close subscriptions and Redis
        await broker.close()
    finally:
        # 3. Release the store (disposes the SQL connection pool)
        await store.close()

    logger.info("shutdown_complete")


# ---------------------------------------------------------------------------
# Middleware classes
# ---------------------------------------------------------------------------

class TimeoutMiddleware(BaseHTTPMiddleware):
    """Abort requests that exceed a configurable wall-clock timeout."""

    def __init__(self, app, timeout_seconds: float = 30.0) -> None:
        super().__init__(app)
        self.timeout_seconds = timeout_seconds

    async def dispatch(
        self,
        request: Request,
        call_next: RequestResponseEndpoint,
    ) -> Response:
        if request.url.path.startswith(_STREAMING_PATHS):
            return await call_next(request)
        try:
            return await asyncio.wait_for(
                call_next(request),
                timeout=self.timeout_seconds,
            )
        except asyncio.TimeoutError:
            logger.warning(
                "request_timeout",
                method=request.method,
                path=request.url.path,
                timeout=self.timeout_seconds,
            )
            return JSONResponse(
                status_code=504,
                content={"detail": "Request timed out"},
            )


class StructuredLoggingMiddleware(BaseHTTPMiddleware):
    """Log every request with method, path, status code, and duration."""

    async def dispatch(
        self,
        request: Request,
        call_next: RequestResponseEndpoint,
    ) -> Response:
        global _active_requests
        start = time.perf_counter()

        _active_requests += 1
        try:
            response = await call_next(request)
        except Exception:
            duration_ms = (time.perf_counter() - start) * 1000
            logger.exception(
                "request_error",
                method=request.method,
                path=request.url.path,
                duration_ms=round(duration_ms, 2),
            )
            raise
        finally:
            _active_requests -= 1

        duration_ms = (time.perf_counter() - start) * 1000
        logger.info(
            "request_handled",
            method=request.method,
            path=request.url.path,
            status=response.status_code,
            duration_ms=round(duration_ms, 2),
        )
        return response


# ---------------------------------------------------------------------------
# Application factory
# ---------------------------------------------------------------------------

app = FastAPI(
    title="LoveHub",
    description="Swipe discovery, mutual-like matching and chat",
    version="1.0.0",
    lifespan=lifespan,
    docs_url="/docs" if not settings.is_production else None,
    redoc_url="/redoc" if not settings.is_production else None,
)

# -- Middleware (applied in reverse order — last added runs first) ---------- #

app.add_middleware(StructuredLoggingMiddleware)
app.add_middleware(TimeoutMiddleware, timeout_seconds=settings.REQUEST_TIMEOUT_SECONDS)
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.allowed_origins_list,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# -- Domain errors --------------------------------------------------------- #

@app.exception_handler(LoveHubError)
async def lovehub_error_handler(request: Request, exc: LoveHubError) -> JSONResponse:
    logger.warning(
        "request_rejected",
        code=exc.code,
        method=request.method,
        path=request.url.path,
        **exc.context,
    )
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


# -- Health-check endpoints ------------------------------------------------ #


@app.get("/health", tags=["health"])
async def health_liveness() -> dict:
    """Lightweight liveness probe — always returns healthy if the process is
    running."""
    return {"status": "healthy"}


@app.get("/health/deep", tags=["health"])
async def health_deep(request: Request) -> dict:
    """Deep readiness probe — verifies the store and the message broker."""
    result: dict = {
        "status": "healthy",
        "store": "connected",
        "broker": "connected",
    }
    services = request.app.state.services

    try:
        await services.store.ping()
    except Exception as exc:
        logger.error("health_store_failure", error=str(exc))
        result["store"] = f"error: {exc}"
        result["status"] = "degraded"

    try:
        await services.broker.ping()
    except Exception as exc:
        logger.error("health_broker_failure", error=str(exc))
        result["broker"] = f"error: {exc}"
        result["status"] = "degraded"

    return result


# -- API router ------------------------------------------------------------ #

from lovehub.api.router import router as api_router  # noqa: E402

app.include_router(api_router, prefix="/api/v1")
