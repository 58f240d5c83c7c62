"""Pytest configuration and shared fixtures."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

import pytest

from nuxeo_sdk import BasicAuthenticator, NuxeoClient


if TYPE_CHECKING:
    from collections.abc import AsyncGenerator


BASE_URL = "http://nuxeo.test/nuxeo"
API_URL = f"{BASE_URL}/api/v1"


@pytest.fixture
def base_url() -> str:
    """Base URL for test clients."""
    return BASE_URL


@pytest.fixture
async def client(base_url: str) -> AsyncGenerator[NuxeoClient, None]:
    """Create a client authenticating as the default administrator."""
    async with NuxeoClient(
        base_url,
        BasicAuthenticator("Administrator", "Administrator"),
        max_retries=0,
    ) as c:
        yield c


@pytest.fixture
def document_json() -> dict[str, Any]:
    """Sample document JSON response."""
    return {
        "entity-type": "document",
        "repository": "default",
        "uid": "5b2b1d3c-1f4a-4d8e-9a57-aa0f4b4b4c11",
        "path": "/default-domain/workspaces/ws/note",
        "type": "Note",
        "state": "project",
        "parentRef": "9c4e5f9a-3a0b-4c23-8f77-0fd7e1b9d2a1",
        "isCheckedOut": True,
        "isVersion": False,
        "isProxy": False,
        "changeToken": "1-0",
        "isTrashed": False,
        "title": "Meeting notes",
        "lastModified": "2024-01-15T10:30:00.123Z",
        "properties": {
            "dc:title": "Meeting notes",
            "dc:subjects": ["art", "music"],
            "dc:created": "2024-01-15T10:30:00Z",
            "note:note": None,
        },
        "facets": ["Versionable", "Commentable"],
        "schemas": [
            {"name": "dublincore", "prefix": "dc"},
            {"name": "note", "prefix": "note"},
        ],
    }


@pytest.fixture
def documents_json(document_json: dict[str, Any]) -> dict[str, Any]:
    """Sample one-page document listing."""
    return {
        "entity-type": "documents",
        "isPaginable": True,
        "resultsCount": 1,
        "pageSize": 25,
        "maxPageSize": 1000,
        "currentPageSize": 1,
        "currentPageIndex": 1,
        "numberOfPages": 1,
        "isPreviousPageAvailable": True,
        "isNextPageAvailable": False,
        "entries": [document_json],
    }
