"""Async HTTP client for the Nuxeo REST and Automation APIs."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Self

import httpx
import structlog

from nuxeo_sdk.auth import (
    Authenticator,
    BasicAuthenticator,
    BearerAuthenticator,
    NoAuthenticator,
    OAuth2Authenticator,
    TokenAuthenticator,
)
from nuxeo_sdk.config import AuthMethod
from nuxeo_sdk.exceptions import (
    NuxeoConfigError,
    NuxeoDecodeError,
    NuxeoTransportError,
    NuxeoUsageError,
)
from nuxeo_sdk.managers import (
    BatchUploadManager,
    CapabilitiesManager,
    DataModelManager,
    DirectoryManager,
    OperationManager,
    Repository,
    TaskManager,
    UserManager,
    WorkflowManager,
)
from nuxeo_sdk.models import Blob, ServerVersion
from nuxeo_sdk.models.field import dump_json
from nuxeo_sdk.multipart import MultipartRelatedWriter
from nuxeo_sdk.observability.logging import current_request_id
from nuxeo_sdk.operation import OperationResponse, decode_into
from nuxeo_sdk.options import RequestOptions, merge_query_params
from nuxeo_sdk.response import (
    blob_from_response,
    map_transport_error,
    raise_for_response,
)


if TYPE_CHECKING:
    from collections.abc import AsyncIterator, Callable, Mapping

    from nuxeo_sdk.config import AuthConfig, Settings
    from nuxeo_sdk.models import Capabilities, User
    from nuxeo_sdk.operation import Operation
    from nuxeo_sdk.options import QuerySource


__all__ = ["NuxeoClient", "create_authenticator"]


ACCEPT_JSON = "application/json"
ACCEPT_BLOB = "application/octet-stream"
ACCEPT_AUTOMATION = "application/json, */*"
CONTENT_TYPE_JSON = "application/json"
CONTENT_TYPE_BINARY = "application/octet-stream"


def create_authenticator(
    config: AuthConfig,
    base_url: str,
    *,
    timeout: float = 30.0,
    transport: httpx.AsyncBaseTransport | None = None,
) -> Authenticator:
    """Build the authenticator selected by an auth configuration section.

    Args:
        config: The ``auth`` settings section.
        base_url: Server base URL, used by OAuth2 for its endpoints.
        timeout: Timeout for OAuth2 token requests.
        transport: Optional custom transport for OAuth2 token requests.

    Returns:
        The configured authenticator.
    """
    match config.method:
        case AuthMethod.BASIC:
            return BasicAuthenticator(config.username or "", config.password or "")
        case AuthMethod.BEARER:
            return BearerAuthenticator(config.resolve_token() or "")
        case AuthMethod.TOKEN:
            return TokenAuthenticator(config.resolve_token() or "")
        case AuthMethod.OAUTH2:
            oauth2 = config.oauth2
            return OAuth2Authenticator(
                base_url,
                client_id=oauth2.client_id,
                client_secret=oauth2.client_secret,
                redirect_uri=oauth2.redirect_uri,
                jwt_token=oauth2.jwt_token,
                scopes=oauth2.scopes,
                timeout=timeout,
                transport=transport,
            )
        case _:
            return NoAuthenticator()


class NuxeoClient:
    """Async client for the Nuxeo REST and Automation APIs.

    The client owns one pooled ``httpx.AsyncClient``. Each call goes through
    the same pipeline: URL and query assembly, Accept header, request
    options, authenticator headers, Content-Type, dispatch, then decoding.
    Redirects are followed hop by hop with credentials re-applied, and
    failures are raised as :class:`~nuxeo_sdk.exceptions.NuxeoError`
    subclasses.

    Example:
        ```python
        async with NuxeoClient(
            "http://localhost:8080/nuxeo",
            BasicAuthenticator("Administrator", "Administrator"),
        ) as client:
            version = await client.server_version()
            root = await client.repository().fetch_root()
            page = await client.repository().query("SELECT * FROM Note")
        ```

    Attributes:
        base_url: Server URL, ending in ``/nuxeo``.
        authenticator: Produces the credentials of each request.
        timeout: Default timeout for requests.
        max_retries: Connection retries performed by the transport.
        repository_name: Repository used by :meth:`repository` by default.
    """

    DEFAULT_TIMEOUT = httpx.Timeout(30.0, connect=10.0)
    DEFAULT_MAX_RETRIES = 1
    MAX_REDIRECTS = 20
    API_PATH = "/api/v1"

    def __init__(  # noqa: PLR0913
        self,
        base_url: str,
        authenticator: Authenticator | None = None,
        *,
        timeout: httpx.Timeout | None = None,
        max_retries: int | None = None,
        headers: Mapping[str, str] | None = None,
        repository_name: str = "default",
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        """Initialize the client.

        Args:
            base_url: Server URL (e.g. "http://localhost:8080/nuxeo").
            authenticator: Credentials source; no credentials when omitted.
            timeout: Optional custom timeout configuration.
            max_retries: Connection retries of the default transport
                (default: 1).
            headers: Headers sent with every request.
            repository_name: Default repository name.
            transport: Optional custom transport for testing or advanced config.

        Raises:
            NuxeoConfigError: If the base URL is missing or not absolute.
        """
        if not base_url or not base_url.strip():
            msg = "base URL is required"
            raise NuxeoConfigError(msg)
        try:
            url = httpx.URL(base_url.strip())
        except httpx.InvalidURL as exc:
            msg = f"invalid base URL {base_url!r}: {exc}"
            raise NuxeoConfigError(msg) from exc
        if url.scheme not in {"http", "https"} or not url.host:
            msg = f"base URL must be an absolute http(s) URL, got {base_url!r}"
            raise NuxeoConfigError(msg)

        self.base_url = base_url.strip().rstrip("/")
        self.authenticator = authenticator or NoAuthenticator()
        self.timeout = timeout or self.DEFAULT_TIMEOUT
        self.max_retries = (
            max_retries if max_retries is not None else self.DEFAULT_MAX_RETRIES
        )
        self.repository_name = repository_name
        self._default_headers = dict(headers or {})
        self._transport = transport
        self._client: httpx.AsyncClient | None = None
        self._logger = structlog.get_logger(__name__)

    @classmethod
    def from_settings(
        cls,
        settings: Settings,
        *,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> NuxeoClient:
        """Build a client and its authenticator from loaded settings.

        Args:
            settings: Settings from :func:`nuxeo_sdk.config.load_settings`.
            transport: Optional custom transport, shared with OAuth2.

        Returns:
            The configured client.
        """
        server = settings.server
        authenticator = create_authenticator(
            settings.auth,
            server.url,
            timeout=server.timeout,
            transport=transport,
        )
        return cls(
            server.url,
            authenticator,
            timeout=httpx.Timeout(server.timeout, connect=server.connect_timeout),
            max_retries=server.max_retries,
            headers=server.headers,
            repository_name=server.repository,
            transport=transport,
        )

    async def __aenter__(self) -> Self:
        """Enter async context and create HTTP client."""
        await self._ensure_client()
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: object,
    ) -> None:
        """Exit async context and close HTTP client."""
        await self.close()

    async def _ensure_client(self) -> httpx.AsyncClient:
        """Ensure the HTTP client is initialized."""
        if self._client is None or self._client.is_closed:
            transport = self._transport or httpx.AsyncHTTPTransport(
                retries=self.max_retries
            )
            self._client = httpx.AsyncClient(
                base_url=self.base_url,
                headers=self._default_headers,
                timeout=self.timeout,
                transport=transport,
                follow_redirects=False,
            )
        return self._client

    async def close(self) -> None:
        """Close the HTTP client and the authenticator."""
        if self._client is not None and not self._client.is_closed:
            await self._client.aclose()
            self._client = None
        await self.authenticator.aclose()

    # -------------------------------------------------------------------------
    # Managers
    # -------------------------------------------------------------------------

    def repository(self, name: str | None = None) -> Repository:
        """Return the document manager of a repository.

        Args:
            name: Repository name; the client default when omitted.
        """
        return Repository(self, name or self.repository_name)

    @property
    def capabilities(self) -> CapabilitiesManager:
        return CapabilitiesManager(self)

    @property
    def operations(self) -> OperationManager:
        return OperationManager(self)

    @property
    def batch_upload(self) -> BatchUploadManager:
        return BatchUploadManager(self)

    @property
    def users(self) -> UserManager:
        return UserManager(self)

    @property
    def workflows(self) -> WorkflowManager:
        return WorkflowManager(self)

    @property
    def tasks(self) -> TaskManager:
        return TaskManager(self)

    @property
    def directories(self) -> DirectoryManager:
        return DirectoryManager(self)

    @property
    def data_model(self) -> DataModelManager:
        return DataModelManager(self)

    # -------------------------------------------------------------------------
    # Server
    # -------------------------------------------------------------------------

    async def fetch_capabilities(self) -> Capabilities:
        """Fetch the server capabilities."""
        return await self.capabilities.fetch()

    async def server_version(self) -> ServerVersion:
        """Return the server distribution version, parsed for comparison."""
        capabilities = await self.fetch_capabilities()
        return ServerVersion.parse(capabilities.server.distribution_version or "")

    async def current_user(self) -> User:
        """Return the user the client authenticates as."""
        return await self.users.fetch_current_user()

    # -------------------------------------------------------------------------
    # Request pipeline
    # -------------------------------------------------------------------------

    async def _authorize(self, request: httpx.Request) -> None:
        request.headers.update(await self.authenticator.get_auth_headers(request))

    async def send(  # noqa: C901, PLR0912, PLR0913
        self,
        method: str,
        path: str,
        *,
        params: QuerySource = None,
        json: Any = None,  # noqa: ANN401
        content: bytes | Blob | None = None,
        multipart: MultipartRelatedWriter | None = None,
        headers: Mapping[str, str] | None = None,
        options: RequestOptions | None = None,
        accept: str = ACCEPT_JSON,
    ) -> httpx.Response:
        """Execute one API call and return its successful, unread response.

        The response is streamed; callers read it and must close it.

        Args:
            method: HTTP method.
            path: Endpoint path, relative to ``/api/v1``.
            params: Query parameters.
            json: Value sent as a JSON body.
            content: Raw body, sent as ``application/octet-stream``.
            multipart: Multipart automation body.
            headers: Additional headers, applied after the request options.
            options: Per-call request options.
            accept: The Accept header.

        Returns:
            The 2xx response.

        Raises:
            NuxeoServerError: For the server exception envelope.
            NuxeoHTTPError: For other 4xx/5xx answers.
            NuxeoTransportError: For connection failures.
            NuxeoCancelledError: When the request deadline expires.
            NuxeoAuthError: When the authenticator cannot produce credentials.
        """
        client = await self._ensure_client()
        options = options or RequestOptions()
        log = self._logger.bind(
            method=method,
            path=path,
            request_id=current_request_id(),
        )

        body: bytes | AsyncIterator[bytes] | MultipartRelatedWriter | None = None
        content_type: str | None = None
        if multipart is not None:
            body = multipart
            content_type = multipart.content_type
        elif content is not None:
            body = content.take_content() if isinstance(content, Blob) else content
            content_type = CONTENT_TYPE_BINARY
        elif json is not None:
            body = dump_json(json)
            content_type = CONTENT_TYPE_JSON
        replayable = body is None or isinstance(body, bytes)

        request_headers = {"Accept": accept, **options.to_headers(), **(headers or {})}
        seconds = options.effective_http_timeout
        timeout = httpx.Timeout(float(seconds)) if seconds else self.timeout
        query = merge_query_params(params) or None

        async def build() -> httpx.Request:
            request = client.build_request(
                method,
                self.API_PATH + path,
                params=query,
                content=body,
                headers=request_headers,
                timeout=timeout,
            )
            await self._authorize(request)
            if content_type is not None:
                request.headers["Content-Type"] = content_type
            return request

        request = await build()
        for attempt in range(2):
            log.debug("api_request", attempt=attempt)
            response = await self._dispatch(client, request, log)
            try:
                renewed = (
                    response.status_code == httpx.codes.UNAUTHORIZED
                    and attempt == 0
                    and replayable
                    and await self.authenticator.handle_unauthorized(response.request)
                )
            except BaseException:
                await response.aclose()
                raise
            if renewed:
                log.debug("api_replay_after_unauthorized")
                await response.aclose()
                request = await build()
                continue
            break

        log.debug("api_response", status_code=response.status_code)
        if not response.is_success:
            log.warning("api_error", status_code=response.status_code)
        await raise_for_response(response)
        return response

    async def _dispatch(
        self,
        client: httpx.AsyncClient,
        request: httpx.Request,
        log: structlog.typing.FilteringBoundLogger,
    ) -> httpx.Response:
        """Send a request, following redirects with fresh credentials."""
        for _ in range(self.MAX_REDIRECTS + 1):
            try:
                response = await client.send(request, stream=True)
            except httpx.HTTPError as exc:
                log.warning("api_transport_error", error=str(exc))
                raise map_transport_error(exc) from exc

            next_request = response.next_request
            if next_request is None:
                return response
            await response.aclose()
            log.debug(
                "api_redirect",
                status_code=response.status_code,
                location=str(next_request.url),
            )
            if not isinstance(next_request.stream, httpx.ByteStream):
                msg = f"cannot resend a streamed body to {next_request.url}"
                raise NuxeoUsageError(msg)
            await self._authorize(next_request)
            request = next_request

        msg = f"Exceeded {self.MAX_REDIRECTS} redirects"
        raise NuxeoTransportError(msg)

    # -------------------------------------------------------------------------
    # Typed helpers
    # -------------------------------------------------------------------------

    async def request_into[T](
        self,
        method: str,
        path: str,
        into: type[T],
        *,
        on_empty: Callable[[], T] | None = None,
        **kwargs: Any,  # noqa: ANN401
    ) -> T:
        """Execute a call and decode its JSON answer into ``into``.

        Args:
            method: HTTP method.
            path: Path below the API root.
            into: Type to decode the answer into.
            on_empty: Builds the result when the server answers without a
                body, such as a 204.
            **kwargs: Forwarded to :meth:`send`.

        Raises:
            NuxeoDecodeError: If the answer is empty without ``on_empty``, is
                not JSON or does not match.
        """
        response = await self.send(method, path, **kwargs)
        try:
            await response.aread()
        except httpx.HTTPError as exc:
            raise map_transport_error(exc) from exc
        finally:
            await response.aclose()
        if response.status_code == httpx.codes.NO_CONTENT or not response.content:
            if on_empty is not None:
                return on_empty()
            msg = f"empty answer with status {response.status_code}"
            raise NuxeoDecodeError(msg)
        try:
            data = response.json()
        except ValueError as exc:
            msg = f"invalid JSON answer: {exc}"
            raise NuxeoDecodeError(msg) from exc
        return decode_into(data, into)

    async def request_void(
        self,
        method: str,
        path: str,
        **kwargs: Any,  # noqa: ANN401
    ) -> None:
        """Execute a call whose answer carries nothing of interest."""
        response = await self.send(method, path, **kwargs)
        await response.aclose()

    async def request_blob(
        self,
        method: str,
        path: str,
        **kwargs: Any,  # noqa: ANN401
    ) -> Blob:
        """Execute a call and hand its answer over as a streaming blob."""
        kwargs.setdefault("accept", ACCEPT_BLOB)
        response = await self.send(method, path, **kwargs)
        return blob_from_response(response)

    async def request_operation(
        self,
        path: str,
        operation: Operation,
        *,
        options: RequestOptions | None = None,
    ) -> OperationResponse:
        """POST an automation request and wrap its answer.

        Operations with blob input are sent as multipart/related, others as
        JSON.

        Args:
            path: Endpoint path, relative to ``/api/v1``.
            operation: The operation to run.
            options: Per-call request options.
        """
        kwargs: dict[str, Any] = {}
        if operation.has_blobs:
            kwargs["multipart"] = MultipartRelatedWriter(
                dump_json(operation.to_payload(include_input=False)),
                operation.blobs,
            )
        else:
            kwargs["json"] = operation.to_payload()
        response = await self.send(
            "POST",
            path,
            headers=operation.headers(),
            options=options,
            accept=ACCEPT_AUTOMATION,
            **kwargs,
        )
        return OperationResponse(response)
