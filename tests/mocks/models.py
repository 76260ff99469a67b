"""
Shared test constants.

    from tests.mocks.models import MOCK_PHONE, TEST_JWT_SECRET
"""

from __future__ import annotations

MOCK_PHONE = "+15551234567"
MOCK_PHONE_2 = "+15557654321"
MOCK_PHONE_3 = "+37060000000"

TEST_JWT_SECRET = "test-secret-with-at-least-thirty-two-bytes!!"
OTHER_JWT_SECRET = "another-secret-with-at-least-thirty-two-bytes"

# Limits used by the test wiring (see tests/conftest.py)
TEST_OTP_EXPIRATION = 120
TEST_MAX_ATTEMPTS = 3
TEST_RATE_LIMIT_MAX = 5
TEST_RATE_LIMIT_WINDOW = 60
TEST_TOKEN_EXPIRATION = 3600
