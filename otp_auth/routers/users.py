"""
User endpoints (bearer token required).
"""

from fastapi import APIRouter, Depends, Query, Request

from otp_auth.dependencies import PaginationParams, Services, get_current_user_id
from otp_auth.models import ErrorResponse, UserListResponse, UserResponse
from otp_auth.rate_limit import client_limit

router = APIRouter(
    prefix="/api/v1/users",
    tags=["users"],
    dependencies=[Depends(get_current_user_id)],
    responses={401: {"model": ErrorResponse}},
)


@router.get(
    "",
    response_model=UserListResponse,
    operation_id="listUsers",
    summary="List users with pagination and search",
)
@client_limit
async def list_users(
    request: Request,
    services: Services,
    pagination: PaginationParams = Depends(PaginationParams),
    q: str | None = Query(None, max_length=20, description="Substring of the phone number"),
    sort: str | None = Query(
        None,
        pattern=r"^registered_at:(asc|desc)$",
        description="Sort order, e.g. registered_at:desc",
    ),
) -> UserListResponse:
    return await services.user_service.list_users(
        page=pagination.page,
        limit=pagination.limit,
        query=q,
        sort=sort,
    )


@router.get(
    "/{user_id}",
    response_model=UserResponse,
    operation_id="getUser",
    summary="Get a single user by ID",
    responses={404: {"model": ErrorResponse}},
)
@client_limit
async def get_user(request: Request, user_id: str, services: Services) -> UserResponse:
    return await services.user_service.get_user(user_id)
