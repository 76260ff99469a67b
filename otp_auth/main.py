"""FastAPI application for the OTP Auth backend."""

from __future__ import annotations

import logging
from collections.abc import AsyncIterator, Callable
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from otp_auth import config
from otp_auth.errors import (
    AuthError,
    ChallengeNotFound,
    InvalidChallenge,
    InvalidToken,
    InvalidTokenFormat,
    MissingToken,
    RateLimitExceeded,
    StoreUnavailable,
    UserNotFound,
)
from otp_auth.middleware import install_middleware
from otp_auth.rate_limit import install_limiter
from otp_auth.routers import auth, health, users
from otp_auth.services.registry import ServiceRegistry

logger = logging.getLogger(__name__)

_BEARER_ERRORS = (MissingToken, InvalidTokenFormat, InvalidToken)
_OTP_ERRORS = (ChallengeNotFound, InvalidChallenge)


# ── Error mapping ─────────────────────────────────────────────────────────


async def auth_error_handler(request: Request, exc: AuthError) -> JSONResponse:
    """Translate domain errors into JSON error bodies."""
    if isinstance(exc, RateLimitExceeded):
        return JSONResponse(
            status_code=429,
            content={
                "error": exc.code,
                "message": exc.message,
                "retry_after_seconds": exc.retry_after,
            },
            headers={"Retry-After": str(exc.retry_after)},
        )

    if isinstance(exc, _OTP_ERRORS):
        # Same answer for "no challenge" and "wrong code"
        return JSONResponse(
            status_code=401,
            content={
                "error": "authentication_failed",
                "message": "Invalid or expired OTP",
            },
        )

    if isinstance(exc, _BEARER_ERRORS):
        return JSONResponse(
            status_code=401,
            content={"error": exc.code, "message": exc.message},
            headers={"WWW-Authenticate": "Bearer"},
        )

    if isinstance(exc, UserNotFound):
        return JSONResponse(
            status_code=404,
            content={"error": exc.code, "message": exc.message},
        )

    if isinstance(exc, StoreUnavailable):
        logger.error("Store unavailable while handling %s %s", request.method, request.url.path)
        return JSONResponse(
            status_code=503,
            content={"error": exc.code, "message": "Service temporarily unavailable"},
        )

    logger.error("Unhandled domain error on %s: %r", request.url.path, exc)
    return JSONResponse(
        status_code=500,
        content={"error": "internal_error", "message": "Internal server error"},
    )


# ── App factory ───────────────────────────────────────────────────────────


def create_app(
    services_factory: Callable[[], ServiceRegistry] = ServiceRegistry.from_config,
) -> FastAPI:
    """
    Build the application.

    *services_factory* is called once per lifespan; tests pass their own to
    run against an in-memory store and a temporary database.
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        services = services_factory()
        await services.start()
        app.state.services = services
        logger.info("OTP Auth API started (environment=%s)", config.ENVIRONMENT)
        try:
            yield
        finally:
            await services.stop()

    app = FastAPI(
        title="OTP Auth API",
        description="Phone-number OTP authentication and user management",
        version=health.VERSION,
        docs_url="/docs",
        redoc_url="/redoc",
        lifespan=lifespan,
    )

    app.add_exception_handler(AuthError, auth_error_handler)

    install_limiter(app, enabled=config.ENABLE_RATE_LIMIT)
    install_middleware(
        app,
        enable_cors=config.ENABLE_CORS,
        allowed_origins=config.ALLOWED_ORIGINS,
        hsts=config.ENVIRONMENT == "production",
    )

    app.include_router(health.router)
    app.include_router(auth.router)
    app.include_router(users.router)
    return app


def configure_logging() -> None:
    logging.basicConfig(
        level=config.LOG_LEVEL,
        format="%(asctime)s %(levelname)-8s %(name)s: %(message)s",
    )
