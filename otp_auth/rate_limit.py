"""
Per-client-address request limiting using slowapi.

Separate from the per-phone OTP issuance limit enforced by OTPService.
Every API route carries the ``client_limit`` decorator, so all of them draw
from one budget per client address; /health is left undecorated.

Counters live in the `limits` in-memory storage, which expires each key with
its own window. ``install_limiter`` clears them and applies the on/off switch
whenever an application is built.
"""

from __future__ import annotations

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from slowapi import Limiter
from slowapi.errors import RateLimitExceeded as ClientRateLimitExceeded
from slowapi.util import get_remote_address

from otp_auth import config

CLIENT_SCOPE = "client"

limiter = Limiter(key_func=get_remote_address, storage_uri="memory://")


def _client_rate() -> str:
    # Read per request so the limit follows config at runtime
    return config.CLIENT_RATE_LIMIT


# Shared across every decorated route
client_limit = limiter.shared_limit(_client_rate, scope=CLIENT_SCOPE)


async def client_rate_limit_handler(
    request: Request, exc: ClientRateLimitExceeded
) -> JSONResponse:
    return JSONResponse(
        status_code=429,
        content={
            "error": "rate_limit_exceeded",
            "message": f"Too many requests: {exc.detail}",
        },
    )


def install_limiter(app: FastAPI, *, enabled: bool) -> None:
    """Attach the limiter to *app* with fresh counters."""
    limiter.enabled = enabled
    limiter.reset()
    app.state.limiter = limiter
    app.add_exception_handler(ClientRateLimitExceeded, client_rate_limit_handler)
