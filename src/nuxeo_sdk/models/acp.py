"""Access control entities (ACP, ACL, ACE)."""

from __future__ import annotations

from enum import StrEnum

import pydantic

from nuxeo_sdk.models.base import Entity, NuxeoBaseModel
from nuxeo_sdk.models.timestamp import ISO8601Time


__all__ = [
    "ACE",
    "ACL",
    "ACP",
    "ACLName",
]


class ACLName(StrEnum):
    """Names of the ACLs a document exposes."""

    LOCAL = "local"
    INHERITED = "inherited"


class ACE(NuxeoBaseModel):
    """One access control entry.

    ``begin`` and ``end`` bound the entry in time when set; ``status`` is
    the server's view of that window (pending, effective, archived).
    """

    id: str | None = None
    username: str = ""
    external_user: bool = False
    permission: str = ""
    granted: bool = False
    creator: str | None = None
    begin: ISO8601Time | None = None
    end: ISO8601Time | None = None
    status: str | None = None


class ACL(NuxeoBaseModel):
    """A named list of access control entries."""

    name: str
    aces: list[ACE] = []


class ACP(Entity):
    """The permission tree of a document."""

    entity_type: str = pydantic.Field(default="acls", alias="entity-type")
    acls: list[ACL] = pydantic.Field(default_factory=list, alias="acl")

    def acl(self, name: str | ACLName) -> ACL | None:
        """Return the ACL called ``name``, if present."""
        for acl in self.acls:
            if acl.name == name:
                return acl
        return None
