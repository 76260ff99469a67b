"""User lookup and paginated listing."""

from __future__ import annotations

from otp_auth.db import DEFAULT_SORT, UserRepository
from otp_auth.errors import UserNotFound
from otp_auth.models import Pagination, UserListResponse, UserResponse

DEFAULT_LIMIT = 10
MAX_LIMIT = 100


class UserService:
    def __init__(self, users: UserRepository) -> None:
        self._users = users

    async def get_user(self, user_id: str) -> UserResponse:
        user = await self._users.get_by_id(user_id)
        if user is None:
            raise UserNotFound()
        return user.to_response()

    async def list_users(
        self,
        *,
        page: int = 1,
        limit: int = DEFAULT_LIMIT,
        query: str | None = None,
        sort: str | None = None,
    ) -> UserListResponse:
        page = max(1, page)
        limit = DEFAULT_LIMIT if limit < 1 else min(limit, MAX_LIMIT)

        users, total = await self._users.list_users(
            limit=limit,
            offset=(page - 1) * limit,
            query=query or None,
            sort=sort or DEFAULT_SORT,
        )
        return UserListResponse(
            users=[u.to_response() for u in users],
            pagination=Pagination(
                page=page,
                limit=limit,
                total=total,
                total_pages=-(-total // limit),
            ),
        )
