"""Pydantic models for the OTP Auth API."""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, Field

from otp_auth.config import OTP_LENGTH

# Optional leading "+", 7–15 digits (E.164 upper bound)
PHONE_PATTERN = r"^\+?[0-9]{7,15}$"


# ── Auth ───────────────────────────────────────────────────────────────────


class RequestOTPRequest(BaseModel):
    """Body of POST /auth/request-otp."""
    phone: str = Field(..., pattern=PHONE_PATTERN, description="Phone number")


class RequestOTPResponse(BaseModel):
    message: str = Field(..., description="Confirmation message")
    phone: str = Field(..., description="Phone number the OTP was issued for")


class VerifyOTPRequest(BaseModel):
    """Body of POST /auth/verify-otp."""
    phone: str = Field(..., pattern=PHONE_PATTERN, description="Phone number")
    otp: str = Field(
        ...,
        min_length=OTP_LENGTH,
        max_length=OTP_LENGTH,
        pattern=r"^[0-9]+$",
        description="One-time passcode",
    )


class VerifyOTPResponse(BaseModel):
    message: str
    access_token: str
    user: UserResponse


# ── Users ──────────────────────────────────────────────────────────────────


class User(BaseModel):
    """Full user record as stored in the database."""
    id: str
    phone: str
    registered_at: datetime
    created_at: datetime
    updated_at: datetime

    def to_response(self) -> UserResponse:
        return UserResponse(id=self.id, phone=self.phone, registered_at=self.registered_at)


class UserResponse(BaseModel):
    """Public projection of a user."""
    id: str = Field(..., description="Unique user identifier")
    phone: str = Field(..., description="Phone number")
    registered_at: datetime = Field(..., description="First successful login")


class Pagination(BaseModel):
    page: int
    limit: int
    total: int
    total_pages: int


class UserListResponse(BaseModel):
    users: list[UserResponse] = Field(default_factory=list)
    pagination: Pagination


# ── Errors ─────────────────────────────────────────────────────────────────


class ErrorResponse(BaseModel):
    error: str = Field(..., description="Machine-readable error code")
    message: str = Field(..., description="Human-readable description")


class RateLimitErrorResponse(ErrorResponse):
    retry_after_seconds: int = Field(..., description="Seconds until a retry may succeed")


# ── Health ─────────────────────────────────────────────────────────────────


class ServiceHealth(BaseModel):
    status: str
    latency_ms: float
    error: str | None = None


class HealthResponse(BaseModel):
    status: str = Field(..., description="'healthy' or 'unhealthy'")
    version: str
    timestamp: datetime
    uptime_seconds: float
    services: dict[str, ServiceHealth] = Field(default_factory=dict)


VerifyOTPResponse.model_rebuild()
