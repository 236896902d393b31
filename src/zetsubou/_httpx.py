from __future__ import annotations

import httpx

from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Literal, Mapping, NamedTuple, Optional

if TYPE_CHECKING:  # pragma: no cover
    from collections.abc import Generator

API_KEY_HEADER = "X-API-Key"

ResponseType = Literal["json", "text", "bytes"]


@dataclass(frozen=True)
class ZetsubouConnectionParameters:
    """Parameters required to connect to the Zetsubou API.

    Attributes:
        base_url (str): The base URL of the API, e.g. ``https://zetsubou.life``.
        api_key (str): The API key sent with every request.
        timeout (httpx.Timeout): Configured timeout object for HTTP requests.
        retry_attempts (int): How many times a transient failure is retried
            after the initial attempt.
        transport (httpx.AsyncBaseTransport | None): Optional transport override,
            used instead of the default httpx network transport.
    """

    base_url: str
    api_key: str
    timeout: httpx.Timeout
    retry_attempts: int
    transport: Optional[httpx.AsyncBaseTransport] = None

    def __repr__(self) -> str:
        return (
            f"ZetsubouConnectionParameters(base_url={self.base_url!r}, api_key='***', "
            f"timeout={self.timeout!r}, retry_attempts={self.retry_attempts!r})"
        )


@dataclass(frozen=True)
class RequestDescriptor:
    """A single logical API call.

    Attributes:
        method (str): HTTP method.
        path (str): API path relative to the base URL.
        params (Mapping | None): Query parameters. ``None`` values are dropped.
        json (Any): JSON body. Mutually exclusive with ``files``.
        data (Mapping | None): Form fields sent alongside ``files``.
        files (Any): Multipart file fields, in any shape httpx accepts.
        headers (Mapping | None): Per-request header overrides.
        response_type (str): How to decode the body: ``json``, ``text`` or ``bytes``.
    """

    method: str
    path: str
    params: Optional[Mapping[str, Any]] = None
    json: Any = None
    data: Optional[Mapping[str, Any]] = None
    files: Any = None
    headers: Optional[Mapping[str, str]] = None
    response_type: ResponseType = "json"

    @property
    def is_multipart(self) -> bool:
        return self.files is not None

    @property
    def query_params(self) -> Optional[dict]:
        if not self.params:
            return None
        return {k: v for k, v in self.params.items() if v is not None}


class ApiResponse(NamedTuple):
    data: Any
    headers: httpx.Headers
    status_code: int


class ZetsubouAuth(httpx.Auth):
    """Authentication class that attaches the API key header to each request.

    A header already present on the request is left alone, which allows a
    per-request key override.
    """

    def __init__(self, params: ZetsubouConnectionParameters):
        self._api_key = params.api_key

    @property
    def api_key(self) -> str:
        return self._api_key

    def auth_flow(self, request: httpx.Request) -> "Generator[httpx.Request, httpx.Response, None]":
        if API_KEY_HEADER not in request.headers:
            request.headers[API_KEY_HEADER] = self._api_key
        yield request
