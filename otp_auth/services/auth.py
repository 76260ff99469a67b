"""
Login orchestration: verified OTP → user record → session token.
"""

from __future__ import annotations

import logging

from otp_auth.db import UserRepository
from otp_auth.errors import IdentityConflict
from otp_auth.models import User, VerifyOTPResponse
from otp_auth.services.otp import OTPService
from otp_auth.services.tokens import TokenService

logger = logging.getLogger(__name__)


class AuthService:
    def __init__(
        self,
        otp: OTPService,
        users: UserRepository,
        tokens: TokenService,
    ) -> None:
        self._otp = otp
        self._users = users
        self._tokens = tokens

    async def complete_login(self, phone: str, code: str) -> VerifyOTPResponse:
        """
        Verify *code* for *phone*, then register or log in the user.

        OTP errors propagate unchanged. A first login creates the user; later
        logins reuse the record as-is (registered_at never changes).
        """
        await self._otp.verify_challenge(phone, code)

        user = await self._find_or_create(phone)
        token = self._tokens.issue(user.id)

        return VerifyOTPResponse(
            message="Authentication successful",
            access_token=token,
            user=user.to_response(),
        )

    async def _find_or_create(self, phone: str) -> User:
        existing = await self._users.get_by_phone(phone)
        if existing is not None:
            return existing

        try:
            return await self._users.create(phone)
        except IdentityConflict:
            # Lost a race with a concurrent first login for the same phone
            logger.info("Concurrent registration for %s, re-fetching", phone)
            user = await self._users.get_by_phone(phone)
            if user is None:
                raise
            return user
