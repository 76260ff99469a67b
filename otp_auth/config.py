"""
Application configuration from environment variables.

All settings have sensible defaults for local development.
A .env file in the project root is loaded automatically (if present).
"""

from __future__ import annotations

import os
from pathlib import Path

from dotenv import load_dotenv

# Load .env file before reading any env vars
load_dotenv(Path(__file__).resolve().parent.parent / ".env")


def _env_bool(name: str, default: str) -> bool:
    return os.getenv(name, default).lower() in ("1", "true", "yes")


# ── Environment ───────────────────────────────────────────────────────────

ENVIRONMENT: str = os.getenv("ENVIRONMENT", "development")
LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO").upper()

API_HOST: str = os.getenv("API_HOST", "0.0.0.0")
API_PORT: int = int(os.getenv("API_PORT", "8080"))

# ── Paths ─────────────────────────────────────────────────────────────────

PROJECT_ROOT = Path(__file__).resolve().parent.parent
DATA_DIR = PROJECT_ROOT / "data"

# SQLite database file (user records)
DB_PATH: str = os.getenv("DB_PATH", str(DATA_DIR / "otp_auth.db"))

# ── Ephemeral store ───────────────────────────────────────────────────────

# "redis" in production, "memory" for a single-process dev server
STORE_BACKEND: str = os.getenv("STORE_BACKEND", "redis").lower()
REDIS_URL: str = os.getenv("REDIS_URL", "redis://localhost:6379/0")

# Per-call deadline for the store, kept well below the request deadline.
STORE_TIMEOUT_SECONDS: float = float(os.getenv("STORE_TIMEOUT_SECONDS", "2"))

# ── JWT ───────────────────────────────────────────────────────────────────

JWT_SECRET: str = os.getenv("JWT_SECRET", "dev-secret-change-me-in-production")
JWT_SECRET_FILE: str = os.getenv("JWT_SECRET_FILE", "")
JWT_ALGORITHM: str = os.getenv("JWT_ALGORITHM", "HS256")
JWT_EXPIRATION_SECONDS: int = int(os.getenv("JWT_EXPIRATION_SECONDS", str(7 * 86400)))

# Docker/Kubernetes secrets are mounted as files; they win over the env var.
if JWT_SECRET_FILE:
    JWT_SECRET = Path(JWT_SECRET_FILE).read_text(encoding="utf-8").strip()

# ── OTP ───────────────────────────────────────────────────────────────────

OTP_LENGTH: int = int(os.getenv("OTP_LENGTH", "6"))
OTP_EXPIRATION_SECONDS: int = int(os.getenv("OTP_EXPIRATION_SECONDS", "120"))

# Wrong guesses allowed per challenge before it is burned. 0 = unlimited.
OTP_MAX_ATTEMPTS: int = int(os.getenv("OTP_MAX_ATTEMPTS", "3"))

# ── Rate limiting ─────────────────────────────────────────────────────────

# Per-phone OTP issuance (fixed window)
RATE_LIMIT_MAX_REQUESTS: int = int(os.getenv("RATE_LIMIT_MAX_REQUESTS", "5"))
RATE_LIMIT_WINDOW_SECONDS: int = int(os.getenv("RATE_LIMIT_WINDOW_SECONDS", "60"))

# Per-client-address limit applied to every API route (slowapi syntax)
ENABLE_RATE_LIMIT: bool = _env_bool("ENABLE_RATE_LIMIT", "true")
CLIENT_RATE_LIMIT: str = os.getenv("CLIENT_RATE_LIMIT", "100/minute")

# ── CORS ──────────────────────────────────────────────────────────────────

ENABLE_CORS: bool = _env_bool("ENABLE_CORS", "true")
ALLOWED_ORIGINS: list[str] = [
    origin.strip()
    for origin in os.getenv(
        "ALLOWED_ORIGINS", "http://localhost:3000,http://localhost:8080"
    ).split(",")
    if origin.strip()
]
