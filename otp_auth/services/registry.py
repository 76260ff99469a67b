"""
Service registry – wires the stores and services together.

Built once per application in the FastAPI lifespan and kept on
``app.state.services``; routers reach it through dependencies.

Usage::

    services = ServiceRegistry.from_config()
    await services.start()      # open the database
    ...
    await services.stop()       # close database + store connections
"""

from __future__ import annotations

import logging

from otp_auth import config
from otp_auth.db import UserRepository
from otp_auth.services.auth import AuthService
from otp_auth.services.otp import OTPService
from otp_auth.services.sms import CodeSender, ConsoleCodeSender
from otp_auth.services.store import EphemeralStore, MemoryStore, RedisStore
from otp_auth.services.tokens import TokenService
from otp_auth.services.users import UserService

logger = logging.getLogger(__name__)


class ServiceRegistry:
    def __init__(
        self,
        store: EphemeralStore,
        users: UserRepository,
        *,
        sender: CodeSender | None = None,
        tokens: TokenService | None = None,
        otp: OTPService | None = None,
    ) -> None:
        self.store = store
        self.users = users
        self.sender = sender or ConsoleCodeSender()
        self.tokens = tokens or TokenService(
            config.JWT_SECRET,
            algorithm=config.JWT_ALGORITHM,
            expiration_seconds=config.JWT_EXPIRATION_SECONDS,
        )
        self.otp = otp or OTPService(
            store,
            self.sender,
            code_length=config.OTP_LENGTH,
            expiration_seconds=config.OTP_EXPIRATION_SECONDS,
            max_attempts=config.OTP_MAX_ATTEMPTS,
            rate_limit_max_requests=config.RATE_LIMIT_MAX_REQUESTS,
            rate_limit_window_seconds=config.RATE_LIMIT_WINDOW_SECONDS,
        )
        self.auth = AuthService(self.otp, users, self.tokens)
        self.user_service = UserService(users)

    @classmethod
    def from_config(cls) -> ServiceRegistry:
        """Build the production wiring from otp_auth.config."""
        if config.STORE_BACKEND == "memory":
            logger.warning("Using in-memory OTP store – not safe for multiple workers")
            store: EphemeralStore = MemoryStore()
        else:
            store = RedisStore.from_url(config.REDIS_URL, timeout=config.STORE_TIMEOUT_SECONDS)
        return cls(store, UserRepository(config.DB_PATH))

    # ── Lifecycle ──────────────────────────────────────────────────────

    async def start(self) -> None:
        await self.users.connect()
        logger.info("Services started (store=%s)", type(self.store).__name__)

    async def stop(self) -> None:
        await self.users.close()
        await self.store.close()
        logger.info("Services stopped")
