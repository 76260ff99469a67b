"""
Domain errors raised by the auth core.

Every failure the transport layer has to tell apart gets its own class and
a stable ``code`` that ends up in JSON error bodies.
"""

from __future__ import annotations


class AuthError(Exception):
    """Base class for all domain errors."""

    code = "internal_error"
    message = "Internal error"

    def __init__(self, message: str | None = None) -> None:
        super().__init__(message or self.message)
        self.message = message or self.message


# ── OTP ────────────────────────────────────────────────────────────────────


class RateLimitExceeded(AuthError):
    code = "rate_limit_exceeded"
    message = "Too many OTP requests. Please try again later."

    def __init__(self, phone: str, max_requests: int, window_seconds: int) -> None:
        super().__init__()
        self.phone = phone
        self.max_requests = max_requests
        self.window_seconds = window_seconds

    @property
    def retry_after(self) -> int:
        return self.window_seconds

    def __str__(self) -> str:
        return (
            f"rate limit exceeded for phone {self.phone}: "
            f"max {self.max_requests} requests per {self.window_seconds}s"
        )


class ChallengeNotFound(AuthError):
    code = "challenge_not_found"
    message = "OTP not found or expired"


class InvalidChallenge(AuthError):
    code = "invalid_challenge"
    message = "Invalid OTP"


# ── Bearer tokens ──────────────────────────────────────────────────────────


class MissingToken(AuthError):
    code = "missing_token"
    message = "Authorization header is required"


class InvalidTokenFormat(AuthError):
    code = "invalid_token_format"
    message = "Authorization header must start with 'Bearer '"


class InvalidToken(AuthError):
    code = "invalid_token"
    message = "Invalid or expired token"


# ── Storage ────────────────────────────────────────────────────────────────


class StoreUnavailable(AuthError):
    code = "store_unavailable"
    message = "Storage backend is unavailable"


class IdentityConflict(AuthError):
    """A user with this phone was created concurrently."""

    code = "identity_conflict"
    message = "User already exists"


class UserNotFound(AuthError):
    code = "not_found"
    message = "User not found"
