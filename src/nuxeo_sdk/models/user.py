"""User and group entities."""

from __future__ import annotations

import pydantic

from nuxeo_sdk.exceptions import NuxeoDecodeError
from nuxeo_sdk.models.base import Entity, NuxeoBaseModel, PaginableEntities
from nuxeo_sdk.models.field import Field


__all__ = [
    "ExtendedGroup",
    "Group",
    "Groups",
    "User",
    "UserProperty",
    "Users",
]


class UserProperty:
    """Keys of the user schema properties."""

    USERNAME = "username"
    PASSWORD = "password"  # noqa: S105
    FIRST_NAME = "firstName"
    LAST_NAME = "lastName"
    EMAIL = "email"
    COMPANY = "company"
    GROUPS = "groups"
    TENANT_ID = "tenantId"


class ExtendedGroup(NuxeoBaseModel):
    """A group summary attached to a user."""

    name: str
    label: str | None = None
    url: str | None = None


class User(Entity):
    """A user principal.

    Profile values live in ``properties``; the accessors below return an
    empty string when a property is missing or not a string.
    """

    entity_type: str = pydantic.Field(default="user", alias="entity-type")
    id: str = ""
    is_administrator: bool = False
    is_anonymous: bool = False
    properties: dict[str, Field] = {}
    extended_groups: list[ExtendedGroup] = []

    @classmethod
    def new(cls, username: str, **properties: object) -> User:
        """Build a user to create, keyed by ``username``."""
        values = {UserProperty.USERNAME: Field.of(username)}
        values.update({key: Field.of(value) for key, value in properties.items()})
        return cls(id=username, properties=values)

    def _string_property(self, key: str) -> str:
        field = self.properties.get(key)
        if field is None:
            return ""
        try:
            return field.as_str() or ""
        except NuxeoDecodeError:
            return ""

    @property
    def username(self) -> str:
        return self._string_property(UserProperty.USERNAME)

    @property
    def id_or_username(self) -> str:
        """The id if set, else the username property."""
        return self.id or self.username

    @property
    def first_name(self) -> str:
        return self._string_property(UserProperty.FIRST_NAME)

    @property
    def last_name(self) -> str:
        return self._string_property(UserProperty.LAST_NAME)

    @property
    def email(self) -> str:
        return self._string_property(UserProperty.EMAIL)

    @property
    def company(self) -> str:
        return self._string_property(UserProperty.COMPANY)

    @property
    def tenant_id(self) -> str:
        return self._string_property(UserProperty.TENANT_ID)

    @property
    def groups(self) -> list[str]:
        field = self.properties.get(UserProperty.GROUPS)
        if field is None:
            return []
        try:
            return field.as_str_list() or []
        except NuxeoDecodeError:
            return []

    def to_payload(self) -> dict[str, object]:
        """Return the body used to create or update this user."""
        return {
            "entity-type": "user",
            "id": self.id_or_username,
            "properties": {key: value.value for key, value in self.properties.items()},
        }


class Group(Entity):
    """A group of users and sub-groups."""

    entity_type: str = pydantic.Field(default="group", alias="entity-type")
    id: str = ""
    groupname: str | None = None
    grouplabel: str | None = None
    properties: dict[str, Field] = {}
    member_users: list[str] = []
    member_groups: list[str] = []
    parent_groups: list[str] = []

    @property
    def name(self) -> str:
        """The group name, falling back to the id."""
        return self.groupname or self.id


Users = PaginableEntities[User]
Groups = PaginableEntities[Group]
