#!/usr/bin/env python3
"""
Entry point for the OTP Auth backend.
"""

import os

import uvicorn

from otp_auth import config
from otp_auth.main import configure_logging

if __name__ == "__main__":
    configure_logging()
    uvicorn.run(
        "otp_auth.main:create_app",
        factory=True,
        host=config.API_HOST,
        port=config.API_PORT,
        reload=os.getenv("API_RELOAD", "false").lower() == "true",
        log_level=config.LOG_LEVEL.lower(),
    )
