"""Async Python client for the Nuxeo REST and Automation APIs.

Example:
    ```python
    from nuxeo_sdk import BasicAuthenticator, NuxeoClient

    async with NuxeoClient(
        "http://localhost:8080/nuxeo",
        BasicAuthenticator("Administrator", "Administrator"),
    ) as client:
        doc = await client.repository().fetch_document_by_path("/default-domain")
        print(doc.title)
    ```
"""

from __future__ import annotations

from nuxeo_sdk.auth import (
    Authenticator,
    BasicAuthenticator,
    BearerAuthenticator,
    NoAuthenticator,
    OAuth2Authenticator,
    TokenAuthenticator,
)
from nuxeo_sdk.client import NuxeoClient, create_authenticator
from nuxeo_sdk.exceptions import (
    NuxeoAuthError,
    NuxeoCancelledError,
    NuxeoConfigError,
    NuxeoDecodeError,
    NuxeoError,
    NuxeoHTTPError,
    NuxeoServerError,
    NuxeoTransportError,
    NuxeoUsageError,
)
from nuxeo_sdk.models import Blob, Document, Field
from nuxeo_sdk.operation import Operation, OperationId, OperationResponse
from nuxeo_sdk.options import (
    PaginationOptions,
    RequestOptions,
    SortedPaginationOptions,
    SortOrder,
    VersioningOption,
)


__version__ = "0.1.0"

__all__ = [
    "Authenticator",
    "BasicAuthenticator",
    "BearerAuthenticator",
    "Blob",
    "Document",
    "Field",
    "NoAuthenticator",
    "NuxeoAuthError",
    "NuxeoCancelledError",
    "NuxeoClient",
    "NuxeoConfigError",
    "NuxeoDecodeError",
    "NuxeoError",
    "NuxeoHTTPError",
    "NuxeoServerError",
    "NuxeoTransportError",
    "NuxeoUsageError",
    "OAuth2Authenticator",
    "Operation",
    "OperationId",
    "OperationResponse",
    "PaginationOptions",
    "RequestOptions",
    "SortOrder",
    "SortedPaginationOptions",
    "TokenAuthenticator",
    "VersioningOption",
    "__version__",
    "create_authenticator",
]
