from typing import Annotated

from fastapi import Depends, Header, Query, Request

from otp_auth.errors import InvalidTokenFormat, MissingToken
from otp_auth.services.registry import ServiceRegistry
from otp_auth.services.tokens import TokenService

_BEARER_PREFIX = "Bearer "


# ── Services ───────────────────────────────────────────────────────────────


def get_services(request: Request) -> ServiceRegistry:
    return request.app.state.services


Services = Annotated[ServiceRegistry, Depends(get_services)]


# ── Pagination ─────────────────────────────────────────────────────────────


class PaginationParams:
    def __init__(
        self,
        page: Annotated[int, Query(ge=1, description="Page number (1-indexed)")] = 1,
        limit: Annotated[int, Query(ge=1, le=100, description="Items per page")] = 10,
    ):
        self.page = page
        self.limit = limit


# ── Bearer auth ────────────────────────────────────────────────────────────


def validate_bearer(raw_header: str | None, tokens: TokenService) -> str:
    """
    Resolve an Authorization header value to a user id.

    Raises MissingToken, InvalidTokenFormat or InvalidToken.
    """
    if not raw_header:
        raise MissingToken()
    if not raw_header.startswith(_BEARER_PREFIX):
        raise InvalidTokenFormat()

    token = raw_header[len(_BEARER_PREFIX):]
    if not token:
        raise MissingToken("Token is required")
    return tokens.validate(token)


async def get_current_user_id(
    request: Request,
    services: Services,
    authorization: Annotated[str | None, Header()] = None,
) -> str:
    """Reject the request with 401 unless it carries a valid bearer token."""
    user_id = validate_bearer(authorization, services.tokens)
    request.state.user_id = user_id
    return user_id


CurrentUserId = Annotated[str, Depends(get_current_user_id)]
