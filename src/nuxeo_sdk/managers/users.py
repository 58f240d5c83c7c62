"""Users and groups."""

from __future__ import annotations

from typing import TYPE_CHECKING

from nuxeo_sdk.managers.base import Manager, quote_segment
from nuxeo_sdk.models import Group, Groups, Login, User, Users
from nuxeo_sdk.operation import Operation, OperationId


if TYPE_CHECKING:
    from nuxeo_sdk.options import PaginationOptions, RequestOptions


__all__ = ["UserManager"]


class UserManager(Manager):
    """CRUD and search over ``/user`` and ``/group``.

    Example:
        ```python
        user = User.new("jdoe", firstName="John", lastName="Doe", password="s3cr3t")
        user = await client.users.create_user(user)
        await client.users.add_user_to_group("jdoe", "members")
        ```
    """

    # -------------------------------------------------------------------------
    # Users
    # -------------------------------------------------------------------------

    async def fetch_user(
        self,
        user_id: str,
        *,
        options: RequestOptions | None = None,
    ) -> User:
        return await self._client.request_into(
            "GET", f"/user/{quote_segment(user_id)}", User, options=options
        )

    async def create_user(
        self,
        user: User,
        *,
        options: RequestOptions | None = None,
    ) -> User:
        return await self._client.request_into(
            "POST", "/user", User, json=user.to_payload(), options=options
        )

    async def update_user(
        self,
        user: User,
        *,
        options: RequestOptions | None = None,
    ) -> User:
        """Save ``user``, addressed by its id or username."""
        return await self._client.request_into(
            "PUT",
            f"/user/{quote_segment(user.id_or_username)}",
            User,
            json=user.to_payload(),
            options=options,
        )

    async def delete_user(
        self,
        user_id: str,
        *,
        options: RequestOptions | None = None,
    ) -> None:
        await self._client.request_void(
            "DELETE", f"/user/{quote_segment(user_id)}", options=options
        )

    async def search_users(
        self,
        query: str,
        pagination: PaginationOptions | None = None,
        *,
        options: RequestOptions | None = None,
    ) -> Users:
        """Search users whose name, first name or last name match ``query``."""
        return await self._client.request_into(
            "GET",
            "/user/search",
            Users,
            params=[("q", query), *(pagination.to_params() if pagination else ())],
            options=options,
        )

    async def add_user_to_group(
        self,
        user_id: str,
        group_name: str,
        *,
        options: RequestOptions | None = None,
    ) -> User:
        return await self._client.request_into(
            "POST",
            f"/user/{quote_segment(user_id)}/group/{quote_segment(group_name)}",
            User,
            options=options,
        )

    async def fetch_current_user(self) -> User:
        """Return the user the client authenticates as."""
        async with await self._client.operations.execute(
            Operation(OperationId.LOGIN)
        ) as response:
            login = await response.as_type(Login)
        self._logger.debug("current_user_resolved", username=login.username)
        return await self.fetch_user(login.username)

    # -------------------------------------------------------------------------
    # Groups
    # -------------------------------------------------------------------------

    async def fetch_group(
        self,
        name: str,
        *,
        options: RequestOptions | None = None,
    ) -> Group:
        return await self._client.request_into(
            "GET", f"/group/{quote_segment(name)}", Group, options=options
        )

    async def create_group(
        self,
        group: Group,
        *,
        options: RequestOptions | None = None,
    ) -> Group:
        return await self._client.request_into(
            "POST", "/group", Group, json=group.to_payload(), options=options
        )

    async def update_group(
        self,
        group: Group,
        *,
        options: RequestOptions | None = None,
    ) -> Group:
        return await self._client.request_into(
            "PUT",
            f"/group/{quote_segment(group.name)}",
            Group,
            json=group.to_payload(),
            options=options,
        )

    async def delete_group(
        self,
        name: str,
        *,
        options: RequestOptions | None = None,
    ) -> None:
        await self._client.request_void(
            "DELETE", f"/group/{quote_segment(name)}", options=options
        )

    async def search_groups(
        self,
        query: str,
        pagination: PaginationOptions | None = None,
        *,
        options: RequestOptions | None = None,
    ) -> Groups:
        return await self._client.request_into(
            "GET",
            "/group/search",
            Groups,
            params=[("q", query), *(pagination.to_params() if pagination else ())],
            options=options,
        )

    async def attach_group_to_user(
        self,
        group_name: str,
        user_id: str,
        *,
        options: RequestOptions | None = None,
    ) -> Group:
        return await self._client.request_into(
            "POST",
            f"/group/{quote_segment(group_name)}/user/{quote_segment(user_id)}",
            Group,
            options=options,
        )

    async def fetch_group_member_users(
        self,
        group_name: str,
        pagination: PaginationOptions | None = None,
        *,
        options: RequestOptions | None = None,
    ) -> Users:
        return await self._client.request_into(
            "GET",
            f"/group/{quote_segment(group_name)}/@users",
            Users,
            params=pagination,
            options=options,
        )

    async def fetch_group_member_groups(
        self,
        group_name: str,
        pagination: PaginationOptions | None = None,
        *,
        options: RequestOptions | None = None,
    ) -> Groups:
        return await self._client.request_into(
            "GET",
            f"/group/{quote_segment(group_name)}/@groups",
            Groups,
            params=pagination,
            options=options,
        )
