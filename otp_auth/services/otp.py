"""
OTP lifecycle – throttle, generate, store, deliver, verify, invalidate.

State lives entirely in the ephemeral store under three keys per phone:

    rate_limit:{phone}    issuance counter, fixed window
    otp:{phone}           the live challenge (at most one)
    otp_attempts:{phone}  wrong guesses against the live challenge

Correctness under concurrent requests relies on the store's atomic
primitives, not on in-process locks:

  • issuance counting is one increment-with-expiry call
  • issuing is a plain SET with TTL – last write wins
  • a successful verification consumes the challenge with compare-and-delete,
    so of two concurrent verifiers holding the right code only one wins
"""

from __future__ import annotations

import hmac
import logging
import secrets

from otp_auth.errors import (
    ChallengeNotFound,
    InvalidChallenge,
    RateLimitExceeded,
    StoreUnavailable,
)
from otp_auth.models import RequestOTPResponse
from otp_auth.services.sms import CodeSender
from otp_auth.services.store import EphemeralStore

logger = logging.getLogger(__name__)


def _otp_key(phone: str) -> str:
    return f"otp:{phone}"


def _attempts_key(phone: str) -> str:
    return f"otp_attempts:{phone}"


def _rate_limit_key(phone: str) -> str:
    return f"rate_limit:{phone}"


class OTPService:
    def __init__(
        self,
        store: EphemeralStore,
        sender: CodeSender,
        *,
        code_length: int = 6,
        expiration_seconds: int = 120,
        max_attempts: int = 3,
        rate_limit_max_requests: int = 5,
        rate_limit_window_seconds: int = 60,
    ) -> None:
        if code_length < 1:
            raise ValueError("code_length must be positive")
        self._store = store
        self._sender = sender
        self._code_length = code_length
        self._expiration = expiration_seconds
        self._max_attempts = max_attempts
        self._max_requests = rate_limit_max_requests
        self._window = rate_limit_window_seconds

    @property
    def expiration_seconds(self) -> int:
        return self._expiration

    def generate_code(self) -> str:
        """Uniform random code over the full 0…10^n-1 range, zero-padded."""
        return f"{secrets.randbelow(10 ** self._code_length):0{self._code_length}d}"

    # ── Issue ──────────────────────────────────────────────────────────

    async def issue_challenge(self, phone: str) -> RequestOTPResponse:
        count = await self._store.incr_with_expiry(_rate_limit_key(phone), self._window)
        if count > self._max_requests:
            logger.info("OTP rate limit hit for %s (%d/%d)", phone, count, self._max_requests)
            raise RateLimitExceeded(phone, self._max_requests, self._window)

        code = self.generate_code()
        await self._store.set(_otp_key(phone), code, self._expiration)
        # A fresh challenge gets a fresh attempt budget
        await self._store.delete(_attempts_key(phone))

        await self._sender.send_code(phone, code, self._expiration)
        return RequestOTPResponse(message="OTP sent successfully", phone=phone)

    # ── Verify ─────────────────────────────────────────────────────────

    async def verify_challenge(self, phone: str, candidate: str) -> None:
        """
        Consume the live challenge for *phone* if *candidate* matches.

        Raises ChallengeNotFound when nothing is live (never issued, expired,
        burned, or already used) and InvalidChallenge on a wrong code.
        """
        stored = await self._store.get(_otp_key(phone))
        if stored is None:
            raise ChallengeNotFound()

        if not hmac.compare_digest(stored.encode(), candidate.encode()):
            await self._record_failed_attempt(phone, stored)
            raise InvalidChallenge()

        try:
            consumed = await self._store.delete_if_equals(_otp_key(phone), stored)
        except StoreUnavailable:
            # The code matched; failing to clean up must not fail the login.
            logger.warning("Failed to delete OTP for %s after verification", phone)
            return

        if not consumed:
            # A concurrent verifier (or a re-issue) got there first
            raise ChallengeNotFound()

        await self._clear_attempts(phone)

    async def _record_failed_attempt(self, phone: str, stored: str) -> None:
        if self._max_attempts <= 0:
            return
        attempts = await self._store.incr_with_expiry(_attempts_key(phone), self._expiration)
        if attempts >= self._max_attempts:
            logger.info("Too many wrong OTP attempts for %s, burning challenge", phone)
            await self._store.delete_if_equals(_otp_key(phone), stored)

    async def _clear_attempts(self, phone: str) -> None:
        try:
            await self._store.delete(_attempts_key(phone))
        except StoreUnavailable:
            logger.warning("Failed to clear OTP attempt counter for %s", phone)
