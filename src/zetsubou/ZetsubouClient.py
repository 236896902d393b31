from __future__ import annotations

import importlib.metadata
import json
import logging
import os
from typing import Any, Dict, Mapping, Optional, cast

import httpx

from zetsubou._httpx import (
    ApiResponse,
    RequestDescriptor,
    ResponseType,
    ZetsubouAuth,
    ZetsubouConnectionParameters,
)
from zetsubou.decorators import use_client_session, zetsubou_retry_on_transient_error
from zetsubou.exceptions import ZetsubouClientClosed, ZetsubouRequestError, zetsubou_errors
from zetsubou.services import (
    AccountService,
    ChatService,
    GraphQLService,
    JobsService,
    NFTService,
    ToolsService,
    VFSService,
    WebhooksService,
)

# Conditional import of orjson to support faster JSON processing if available
try:  # pragma: no cover
    import orjson  # type: ignore

    if (
        os.environ.get("ZETSUBOU_PREFER_ORJSON", "0") != "0"
    ):  # Allow user to enable orjson via env var
        _HAS_ORJSON = True
    else:
        _HAS_ORJSON = False

    def _orjson_loads(data):
        return orjson.loads(data)

    JSON_DECODE_ERRORS = (json.JSONDecodeError, orjson.JSONDecodeError, UnicodeDecodeError)  # type: ignore

except ImportError:
    _HAS_ORJSON = False
    JSON_DECODE_ERRORS = (json.JSONDecodeError, UnicodeDecodeError)  # type: ignore

# Constants
CONTENT_TYPE_JSON = "application/json"

DEFAULT_BASE_URL = "https://zetsubou.life"

DEFAULT_TIMEOUT = 30.0

DEFAULT_RETRY_ATTEMPTS = 3

USER_AGENT_STRING = f"zetsubou-sdk-python/{importlib.metadata.version('zetsubou')}"

# Set up logger
logger = logging.getLogger("zetsubou")


# Sentinel value for detecting unset timeout parameter
class _TimeoutUnsetType:
    def __repr__(self):
        return "_TIMEOUT_UNSET"


_TIMEOUT_UNSET = _TimeoutUnsetType()


def _get_timeout_config() -> dict:
    """Get granular timeout configuration from environment variables.

    Returns:
        dict: connect, read, write and pool timeouts; ``None`` where unset.
    """
    return {
        name: float(os.environ[f"ZETSUBOU_{name.upper()}_TIMEOUT"])
        if f"ZETSUBOU_{name.upper()}_TIMEOUT" in os.environ
        else None
        for name in ("connect", "read", "write", "pool")
    }


def _get_default_timeout() -> float:
    timeout_str = os.environ.get("ZETSUBOU_HTTP_TIMEOUT")
    try:
        return float(timeout_str) if timeout_str is not None else DEFAULT_TIMEOUT
    except ValueError:
        return DEFAULT_TIMEOUT


class ZetsubouClient:
    """An async Python client for the Zetsubou.life API.

    Resource groups are exposed as services: ``tools``, ``jobs``, ``vfs``,
    ``chat``, ``webhooks``, ``account``, ``nft`` and ``graphql``. Every call
    goes through :meth:`request`, which retries transient failures and raises
    exactly one :class:`~zetsubou.exceptions.ZetsubouError` per failed call.

    Examples:
        >>> async with ZetsubouClient("ak_live_...") as client:
        ...     job = await client.tools.execute("bg-remover", ["photo.jpg"])
        ...     job = await client.jobs.wait_for_completion(job.id)

    Args:
        api_key (str, optional): API key. Falls back to ``ZETSUBOU_API_KEY``.
        base_url (str, optional), keyword-only: API root. Falls back to
            ``ZETSUBOU_BASE_URL``, then ``https://zetsubou.life``.
        timeout (float | dict | httpx.Timeout | None, optional), keyword-only: Timeout
            configuration for HTTP requests. ``None`` disables timeouts.
        retry_attempts (int, optional), keyword-only: Retries after the first attempt
            for transient failures. Falls back to ``ZETSUBOU_RETRY_ATTEMPTS``, then 3.
        transport (httpx.AsyncBaseTransport, optional), keyword-only: Transport used
            instead of the network, e.g. ``httpx.MockTransport`` in tests.

    Raises:
        ValueError: If no API key is available or ``retry_attempts`` is negative.
    """

    def __init__(
        self,
        api_key: str | None = None,
        *,
        base_url: str | None = None,
        timeout: float | dict | httpx.Timeout | None | _TimeoutUnsetType = _TIMEOUT_UNSET,
        retry_attempts: int | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        api_key = api_key or os.environ.get("ZETSUBOU_API_KEY")
        if not api_key:
            raise ValueError("An API key is required (argument or ZETSUBOU_API_KEY)")

        if retry_attempts is None:
            retry_attempts = int(
                os.environ.get("ZETSUBOU_RETRY_ATTEMPTS", "") or DEFAULT_RETRY_ATTEMPTS
            )
        if retry_attempts < 0:
            raise ValueError("retry_attempts must be zero or greater")

        # Determine timeout value to use
        if timeout is _TIMEOUT_UNSET:
            timeout_value: httpx.Timeout = ZetsubouClient._construct_timeout_from_env()
        elif timeout is None:
            # User explicitly passed None, ignore environment variables
            timeout_value = httpx.Timeout(None)
        else:
            timeout_value = ZetsubouClient._construct_timeout(
                cast(float | dict | httpx.Timeout, timeout)
            )

        self.connection_parameters: ZetsubouConnectionParameters = ZetsubouConnectionParameters(
            base_url=(base_url or os.environ.get("ZETSUBOU_BASE_URL") or DEFAULT_BASE_URL).rstrip(
                "/"
            ),
            api_key=api_key,
            timeout=timeout_value,
            retry_attempts=retry_attempts,
            transport=transport,
        )
        self.zetsubou_auth: ZetsubouAuth = ZetsubouAuth(self.connection_parameters)
        self.base_headers = {
            "User-Agent": USER_AGENT_STRING,
            "Accept": CONTENT_TYPE_JSON,
        }
        self.httpx_client: httpx.AsyncClient | None = None
        self.is_closed = False

        self.tools = ToolsService(self)
        self.jobs = JobsService(self)
        self.vfs = VFSService(self)
        self.chat = ChatService(self)
        self.webhooks = WebhooksService(self)
        self.account = AccountService(self)
        self.nft = NFTService(self)
        self.graphql = GraphQLService(self)

    def __repr__(self) -> str:
        return (
            f"ZetsubouClient at {self.base_url} "
            f"(retry_attempts={self.retry_attempts}, closed={self.is_closed})"
        )

    async def __aenter__(self):
        """Asynchronous context manager entry for ZetsubouClient.

        Note:
            Instantiates the httpx.AsyncClient using `self.get_http_client()`.
        """
        if self.is_closed:
            raise ZetsubouClientClosed()
        if self.httpx_client is None or self.httpx_client.is_closed:
            self.httpx_client = self.get_http_client()
        return self

    async def __aexit__(self, exc_type, exc_value, traceback) -> None:
        await self.close()

    async def close(self) -> None:
        """Close the underlying HTTP session. The client cannot be reused afterwards."""
        if self.httpx_client is not None and not self.httpx_client.is_closed:
            await self.httpx_client.aclose()
            logger.debug("Closed HTTP session for %s", self.base_url)
        self.is_closed = True

    @staticmethod
    def _construct_timeout_from_env() -> httpx.Timeout:
        """Construct httpx.Timeout object from environment variables, defaulting to 30s."""
        granular = {k: v for k, v in _get_timeout_config().items() if v is not None}
        return httpx.Timeout(_get_default_timeout(), **granular)

    @staticmethod
    def _construct_timeout(timeout: float | dict | httpx.Timeout) -> httpx.Timeout:
        """Construct httpx.Timeout object from user-provided timeout parameter.

        If timeout is a dict, any unspecified values will be replaced by the environment
        default values.

        Args:
            timeout: Timeout configuration - can be float, dict, or httpx.Timeout.

        Returns:
            httpx.Timeout: Configured timeout object.
        """
        if isinstance(timeout, httpx.Timeout):
            return timeout
        elif isinstance(timeout, dict):
            granular = {k: v for k, v in _get_timeout_config().items() if v is not None}
            return httpx.Timeout(_get_default_timeout(), **{**granular, **timeout})
        else:
            return httpx.Timeout(timeout)

    @property
    def base_url(self) -> str:
        return self.connection_parameters.base_url

    @property
    def retry_attempts(self) -> int:
        return self.connection_parameters.retry_attempts

    @property
    def http_timeout(self) -> httpx.Timeout:
        return self.connection_parameters.timeout

    def get_http_client(self) -> httpx.AsyncClient:
        """Returns an async httpx client for use in Zetsubou API communication.

        Creates an asynchronous HTTP client configured with the API key
        authentication, base URL, timeout, default headers and, when one was
        given, the injected transport.

        Returns:
            httpx.AsyncClient: Configured async HTTP client.
        """
        return httpx.AsyncClient(
            base_url=self.base_url,
            timeout=self.connection_parameters.timeout,
            auth=self.zetsubou_auth,
            headers=self.base_headers,
            transport=self.connection_parameters.transport,
        )

    @staticmethod
    def build_headers(descriptor: RequestDescriptor) -> Dict[str, str]:
        """Per-request headers for a descriptor.

        JSON bodies get ``Content-Type: application/json``. For multipart
        bodies any content-type override is dropped so httpx can set the
        boundary.
        """
        headers = dict(descriptor.headers or {})
        has_content_type = any(k.lower() == "content-type" for k in headers)
        if descriptor.is_multipart:
            headers = {k: v for k, v in headers.items() if k.lower() != "content-type"}
        elif descriptor.json is not None and not has_content_type:
            headers["Content-Type"] = CONTENT_TYPE_JSON
        return headers

    @staticmethod
    def handle_json_response(response: httpx.Response) -> Any:
        """Handle JSON response with proper error handling.

        Uses orjson for faster parsing if available and enabled, otherwise falls
        back to the standard json library.

        Returns:
            Any: The parsed JSON data, or None for an empty or undecodable body.
        """
        if not response.content:
            return None
        try:
            if _HAS_ORJSON:
                return _orjson_loads(response.content)
            else:
                return response.json()
        except JSON_DECODE_ERRORS:
            logger.warning(
                "Failed to decode JSON response from %s (%s)",
                response.request.url,
                response.status_code,
            )
            return None

    def decode_response(self, response: httpx.Response, response_type: ResponseType) -> Any:
        if response_type == "bytes":
            return response.content
        if response_type == "text":
            return response.text
        return self.handle_json_response(response)

    @zetsubou_retry_on_transient_error
    async def request(self, descriptor: RequestDescriptor) -> ApiResponse:
        """Execute one logical API call.

        Transient failures (no response, or a 500/502/503/504 status) are
        retried up to ``retry_attempts`` times with exponential backoff. Any
        other failure is raised on the first attempt.

        Args:
            descriptor (RequestDescriptor): The call to make.

        Returns:
            ApiResponse: Decoded body, response headers and status code.

        Raises:
            ZetsubouError: The classified failure of the last attempt.
        """
        return await self._send(descriptor)

    @zetsubou_errors
    @use_client_session
    async def _send(self, descriptor: RequestDescriptor) -> ApiResponse:
        if descriptor.is_multipart and descriptor.json is not None:
            raise ZetsubouRequestError("Request error: json and files cannot be combined")
        try:
            request = self.httpx_client.build_request(  # type: ignore[union-attr]
                descriptor.method.upper(),
                descriptor.path.lstrip("/"),
                params=descriptor.query_params,
                json=descriptor.json,
                data=descriptor.data,
                files=descriptor.files,
                headers=self.build_headers(descriptor),
            )
        except (TypeError, ValueError, httpx.InvalidURL) as e:
            raise ZetsubouRequestError(f"Request error: {e}") from e
        logger.debug("%s %s", request.method, request.url)
        response = await self.httpx_client.send(request)  # type: ignore[union-attr]
        response.raise_for_status()
        return ApiResponse(
            self.decode_response(response, descriptor.response_type),
            response.headers,
            response.status_code,
        )

    async def get(
        self,
        path: str,
        params: Optional[Mapping[str, Any]] = None,
        *,
        headers: Optional[Mapping[str, str]] = None,
        response_type: ResponseType = "json",
    ) -> Any:
        """Convenience method to GET a path and return the decoded body."""
        response = await self.request(
            RequestDescriptor(
                "GET", path, params=params, headers=headers, response_type=response_type
            )
        )
        return response.data

    async def post(
        self,
        path: str,
        json: Any = None,
        *,
        params: Optional[Mapping[str, Any]] = None,
        data: Optional[Mapping[str, Any]] = None,
        files: Any = None,
        headers: Optional[Mapping[str, str]] = None,
        response_type: ResponseType = "json",
    ) -> Any:
        """Convenience method to POST a JSON or multipart body.

        Args:
            path (str): API endpoint path.
            json (Any, optional): JSON payload.
            params (dict, optional): Query parameters.
            data (dict, optional): Form fields sent with ``files``.
            files (optional): Multipart file fields.
            headers (dict, optional): Per-request header overrides.
            response_type (str, optional): ``json``, ``text`` or ``bytes``.

        Returns:
            Any: The decoded response body.
        """
        response = await self.request(
            RequestDescriptor(
                "POST",
                path,
                params=params,
                json=json,
                data=data,
                files=files,
                headers=headers,
                response_type=response_type,
            )
        )
        return response.data

    async def put(
        self,
        path: str,
        json: Any = None,
        *,
        params: Optional[Mapping[str, Any]] = None,
        headers: Optional[Mapping[str, str]] = None,
    ) -> Any:
        response = await self.request(
            RequestDescriptor("PUT", path, params=params, json=json, headers=headers)
        )
        return response.data

    async def patch(
        self,
        path: str,
        json: Any = None,
        *,
        params: Optional[Mapping[str, Any]] = None,
        headers: Optional[Mapping[str, str]] = None,
    ) -> Any:
        response = await self.request(
            RequestDescriptor("PATCH", path, params=params, json=json, headers=headers)
        )
        return response.data

    async def delete(
        self,
        path: str,
        *,
        params: Optional[Mapping[str, Any]] = None,
        headers: Optional[Mapping[str, str]] = None,
    ) -> Any:
        response = await self.request(
            RequestDescriptor("DELETE", path, params=params, headers=headers)
        )
        return response.data

    async def health_check(self) -> Dict[str, Any]:
        """Check API health status."""
        return await self.get("/health")
