"""
OTP delivery channel.

The code leaves the system only through a CodeSender, never through the
API response. No SMS gateway is wired up yet, so the default sender writes
the code to the application log, which is where operators and local
developers pick it up.
"""

from __future__ import annotations

import logging
from typing import Protocol

logger = logging.getLogger(__name__)


class CodeSender(Protocol):
    async def send_code(self, phone: str, code: str, expires_in_seconds: int) -> None: ...


class ConsoleCodeSender:
    """Logs the OTP instead of sending an SMS."""

    async def send_code(self, phone: str, code: str, expires_in_seconds: int) -> None:
        logger.info(
            "📱 OTP for phone %s: %s (expires in %ds)",
            phone,
            code,
            expires_in_seconds,
        )
