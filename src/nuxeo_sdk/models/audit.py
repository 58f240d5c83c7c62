"""Audit log entries."""

from __future__ import annotations

import pydantic

from nuxeo_sdk.models.base import Entity, PaginableEntities
from nuxeo_sdk.models.field import Field
from nuxeo_sdk.models.timestamp import ISO8601Time


__all__ = ["Audit", "LogEntry"]


class LogEntry(Entity):
    """One event recorded by the audit service."""

    entity_type: str = pydantic.Field(default="logEntry", alias="entity-type")
    id: int | None = None
    category: str | None = None
    principal_name: str | None = None
    comment: str | None = None
    doc_life_cycle: str | None = None
    doc_path: str | None = None
    doc_type: str | None = None
    doc_uuid: str | None = pydantic.Field(default=None, alias="docUUID")
    event_id: str | None = None
    repository_id: str | None = None
    event_date: ISO8601Time | None = None
    log_date: ISO8601Time | None = None
    extended: dict[str, Field] = {}


Audit = PaginableEntities[LogEntry]
