"""
Session tokens – signed, time-bounded JWTs.

Stateless: a token is valid iff its signature verifies with the server
secret, it was signed with exactly the configured algorithm, and it has not
expired. There is no server-side revocation.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from datetime import datetime, timedelta, timezone

import jwt

from otp_auth.errors import InvalidToken

logger = logging.getLogger(__name__)

_REQUIRED_CLAIMS = ["sub", "iat", "exp"]


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class TokenService:
    def __init__(
        self,
        secret: str,
        *,
        algorithm: str = "HS256",
        expiration_seconds: int = 7 * 86400,
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        if not secret:
            raise ValueError("JWT secret must not be empty")
        self._secret = secret
        self._algorithm = algorithm
        self._expiration = timedelta(seconds=expiration_seconds)
        self._clock = clock

    @property
    def expiration_seconds(self) -> int:
        return int(self._expiration.total_seconds())

    def issue(self, subject_id: str) -> str:
        now = self._clock()
        payload = {
            "sub": subject_id,
            "iat": now,
            "exp": now + self._expiration,
        }
        return jwt.encode(payload, self._secret, algorithm=self._algorithm)

    def validate(self, token: str) -> str:
        """
        Return the subject of *token* or raise InvalidToken.

        Expired, forged, malformed and wrong-algorithm tokens are all the
        same InvalidToken to the caller; the reason is only logged.
        """
        try:
            payload = jwt.decode(
                token,
                self._secret,
                algorithms=[self._algorithm],
                options={"require": _REQUIRED_CLAIMS},
            )
        except jwt.ExpiredSignatureError:
            logger.debug("Rejected token: expired")
            raise InvalidToken() from None
        except jwt.InvalidAlgorithmError:
            logger.debug("Rejected token: unexpected signing algorithm")
            raise InvalidToken() from None
        except jwt.PyJWTError as exc:
            logger.debug("Rejected token: %s", exc)
            raise InvalidToken() from None

        subject = payload.get("sub")
        if not isinstance(subject, str) or not subject:
            logger.debug("Rejected token: empty subject")
            raise InvalidToken()
        return subject
