"""
Health check endpoint.
"""

import asyncio
import logging
import time
from collections.abc import Awaitable, Callable
from datetime import datetime, timezone

from fastapi import APIRouter, Response, status

from otp_auth.dependencies import Services
from otp_auth.models import HealthResponse, ServiceHealth

logger = logging.getLogger(__name__)

router = APIRouter(tags=["health"])

VERSION = "1.0.0"
_CHECK_TIMEOUT_SECONDS = 5.0
_STARTED_AT = time.monotonic()


async def _check(name: str, probe: Callable[[], Awaitable[None]]) -> ServiceHealth:
    start = time.perf_counter()
    try:
        await asyncio.wait_for(probe(), _CHECK_TIMEOUT_SECONDS)
    except Exception as exc:
        logger.warning("Health check for %s failed: %r", name, exc)
        return ServiceHealth(
            status="unhealthy",
            latency_ms=round((time.perf_counter() - start) * 1000, 2),
            error=type(exc).__name__,
        )
    return ServiceHealth(
        status="healthy",
        latency_ms=round((time.perf_counter() - start) * 1000, 2),
    )


@router.get(
    "/health",
    response_model=HealthResponse,
    operation_id="getHealth",
    summary="Health check",
    responses={503: {"model": HealthResponse}},
)
async def get_health(services: Services, response: Response) -> HealthResponse:
    checks = {
        "database": await _check("database", services.users.ping),
        "store": await _check("store", services.store.ping),
    }
    healthy = all(c.status == "healthy" for c in checks.values())
    if not healthy:
        response.status_code = status.HTTP_503_SERVICE_UNAVAILABLE

    return HealthResponse(
        status="healthy" if healthy else "unhealthy",
        version=VERSION,
        timestamp=datetime.now(timezone.utc),
        uptime_seconds=round(time.monotonic() - _STARTED_AT, 3),
        services=checks,
    )
