"""
Authentication endpoints – phone OTP flow with bearer JWTs.
"""

from fastapi import APIRouter, Request

from otp_auth.dependencies import Services
from otp_auth.models import (
    ErrorResponse,
    RateLimitErrorResponse,
    RequestOTPRequest,
    RequestOTPResponse,
    VerifyOTPRequest,
    VerifyOTPResponse,
)
from otp_auth.rate_limit import client_limit

router = APIRouter(prefix="/api/v1/auth", tags=["auth"])


@router.post(
    "/request-otp",
    response_model=RequestOTPResponse,
    operation_id="requestOtp",
    summary="Request a one-time passcode for a phone number",
    responses={
        429: {"model": RateLimitErrorResponse},
        503: {"model": ErrorResponse},
    },
)
@client_limit
async def request_otp(
    request: Request, body: RequestOTPRequest, services: Services
) -> RequestOTPResponse:
    """
    Generate an OTP, store it with a short expiry and hand it to the
    delivery channel. The code itself is never part of the response.
    """
    return await services.otp.issue_challenge(body.phone)


@router.post(
    "/verify-otp",
    response_model=VerifyOTPResponse,
    operation_id="verifyOtp",
    summary="Verify an OTP and receive an access token",
    responses={
        401: {"model": ErrorResponse},
        503: {"model": ErrorResponse},
    },
)
@client_limit
async def verify_otp(
    request: Request, body: VerifyOTPRequest, services: Services
) -> VerifyOTPResponse:
    """
    Verify the OTP. A first login registers the user; later logins return
    the existing user. Either way a signed access token is issued.
    """
    return await services.auth.complete_login(body.phone, body.otp)
