"""FastAPI application factory.

Learn: App factory pattern — create_app() returns a configured FastAPI
instance. Lifespan builds the database engine, the session and rate-limit
Redis clients and the vendor HTTP client from Settings and parks them on app.state; dependencies read
them from there. Middleware, CORS, error handlers and routers are all
registered here.
"""

from contextlib import asynccontextmanager
from typing import Optional

import httpx
import structlog
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from redis.exceptions import RedisError
from starlette.exceptions import HTTPException as StarletteHTTPException

from smartbrain import __version__
from smartbrain.api import api_router
from smartbrain.auth.session_store import build_redis
from smartbrain.config import Settings
from smartbrain.db.engine import build_engine, build_session_factory
from smartbrain.errors import BadRequest, InternalError, SmartBrainError
from smartbrain.logging_config import configure_logging

logger = structlog.get_logger()

_STATUS_KINDS = {
    401: "unauthorized",
    404: "not_found",
    405: "method_not_allowed",
}


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup and shutdown lifecycle.

    Learn: FastAPI lifespan replaces on_event("startup") / on_event("shutdown").
    Anything before `yield` runs at startup, after `yield` runs at shutdown.
    """
    settings: Settings = app.state.settings
    logger.info(
        "smartbrain.starting",
        version=__version__,
        environment=settings.environment,
        port=settings.port,
    )

    engine = build_engine(settings)
    app.state.engine = engine
    app.state.session_factory = build_session_factory(engine)

    app.state.redis = build_redis(settings)
    try:
        await app.state.redis.ping()
        logger.info("smartbrain.redis_connected")
    except RedisError as e:
        # Requests needing a session will answer 503 until Redis is back
        logger.warning("smartbrain.redis_unavailable", error=str(e))
    app.state.rate_limit_redis = build_redis(settings, settings.rate_limit_redis_url)

    app.state.http_client = httpx.AsyncClient(
        timeout=settings.vendor_timeout_seconds
    )

    yield

    logger.info("smartbrain.shutdown")
    await app.state.http_client.aclose()
    await app.state.redis.aclose()
    await app.state.rate_limit_redis.aclose()
    await engine.dispose()


# ─── Error handlers ──────────────────────────────────────


async def smartbrain_error_handler(
    request: Request, exc: SmartBrainError
) -> JSONResponse:
    """Render any SmartBrainError as the {"error": {kind, message}} envelope."""
    if exc.status_code >= 500:
        logger.error(
            "request.failed",
            kind=exc.kind,
            message=exc.message,
            path=request.url.path,
        )
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


async def validation_error_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    """Body/path validation failures are reported as bad_request (400)."""
    fields = [
        ".".join(str(p) for p in e["loc"][1:]) or str(e["loc"][0])
        for e in exc.errors()
    ]
    error = BadRequest(f"Invalid request: {', '.join(fields)}" if fields else None)
    return JSONResponse(status_code=error.status_code, content=error.to_dict())


async def http_error_handler(
    request: Request, exc: StarletteHTTPException
) -> JSONResponse:
    default_kind = "bad_request" if exc.status_code < 500 else "internal_error"
    kind = _STATUS_KINDS.get(exc.status_code, default_kind)
    return JSONResponse(
        status_code=exc.status_code,
        content={"error": {"kind": kind, "message": str(exc.detail)}},
        headers=getattr(exc, "headers", None),
    )


async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
    """Catch-all: log the traceback, return a generic 500 without details."""
    logger.exception("request.unhandled_error", path=request.url.path, exc_info=exc)
    error = InternalError()
    return JSONResponse(status_code=error.status_code, content=error.to_dict())


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    """Build and return the FastAPI application."""
    settings = settings or Settings()
    configure_logging(settings.log_level, settings.log_json)

    app = FastAPI(
        title="Smart Brain",
        description="Sign-in, profiles and face detection for the Smart Brain app",
        version=__version__,
        lifespan=lifespan,
    )
    app.state.settings = settings

    # ── Middleware stack ──────────────────────────────────────
    # Note: Starlette middleware executes in reverse order of registration.
    # Request flow: CORS → RequestId → AccessLog → Security → RateLimit → handler

    from smartbrain.middleware.access_log import AccessLogMiddleware
    from smartbrain.middleware.rate_limit import RateLimitMiddleware
    from smartbrain.middleware.request_id import RequestIdMiddleware
    from smartbrain.middleware.security import SecurityHeadersMiddleware

    app.add_middleware(
        RateLimitMiddleware,
        default_rpm=settings.rate_limit_rpm,
        auth_rpm=settings.rate_limit_auth_rpm,
    )
    app.add_middleware(SecurityHeadersMiddleware)
    app.add_middleware(AccessLogMiddleware)
    app.add_middleware(RequestIdMiddleware)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["GET", "POST", "PUT"],
        allow_headers=["Content-Type", "Authorization", "X-Request-ID"],
    )

    app.add_exception_handler(SmartBrainError, smartbrain_error_handler)
    app.add_exception_handler(RequestValidationError, validation_error_handler)
    app.add_exception_handler(StarletteHTTPException, http_error_handler)
    app.add_exception_handler(Exception, unhandled_error_handler)

    app.include_router(api_router)

    return app


# Default app instance (used by uvicorn: smartbrain.main:app)
app = create_app()
