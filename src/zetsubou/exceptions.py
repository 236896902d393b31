"""
Custom exceptions for the zetsubou package.

This module provides Zetsubou-specific exceptions that wrap httpx exceptions
so callers can branch on a small, stable error taxonomy instead of raw HTTP
status codes.
"""

import functools
import inspect
from typing import (
    Callable,
    ParamSpec,
    TypeVar,
    Any,
    Dict,
    List,
    Tuple,
    Type,
    Optional,
    Union,
    cast,
    overload,
    Awaitable,
)

import httpx

P = ParamSpec("P")
T = TypeVar("T")

DEFAULT_RETRY_AFTER = 60


# Base Zetsubou exception
class ZetsubouError(Exception):
    """Base exception for all Zetsubou SDK errors.

    Attributes:
        message (str): Human-readable description of the failure.
        code (str): Machine-readable error code. Taken from the API error body
            when present, otherwise the class default.
        status_code (int | None): HTTP status of the failed response, if any.
        retry_after (int | None): Seconds to wait before retrying. Only set on
            rate limit errors.
        error_data (dict): Raw error body returned by the API, if any.
    """

    default_code = "UNKNOWN_ERROR"

    def __init__(
        self,
        message: str,
        error_data: Optional[Dict[str, Any]] = None,
        *,
        status_code: Optional[int] = None,
        response: Optional[httpx.Response] = None,
        retry_after: Optional[int] = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.error_data: Dict[str, Any] = dict(error_data or {})
        self.code: str = self.error_data.get("code") or self.default_code
        self.status_code = (
            status_code if status_code is not None else self.error_data.get("status_code")
        )
        self.response = response
        self.retry_after = retry_after

    def __str__(self) -> str:
        return self.message


class ZetsubouClientClosed(ZetsubouError):
    """
    Raised when an operation is attempted on a closed ZetsubouClient.
    """

    default_code = "CLIENT_CLOSED"

    def __init__(self, message: str = "The ZetsubouClient is closed") -> None:
        super().__init__(message)


class ZetsubouRequestError(ZetsubouError):
    """
    Raised when a request could not be constructed locally.
    No connection to the API was attempted.
    """

    default_code = "REQUEST_ERROR"


# Connection and network errors
class ZetsubouConnectionError(ZetsubouError):
    """
    Base class for connection-related errors.
    Raised when no response was received from the API.
    """

    default_code = "NETWORK_ERROR"

    def __str__(self) -> str:
        return f"Network error: Unable to reach the API ({self.message})"


class ZetsubouSystemUnavailableError(ZetsubouConnectionError):
    """
    Raised when the API host refuses or cannot accept connections.
    """


class ZetsubouRequestTimeoutError(ZetsubouConnectionError):
    """
    Raised when a single HTTP request times out at the transport level.
    """


class ZetsubouProtocolError(ZetsubouConnectionError):
    """
    Raised when the remote end breaks the HTTP protocol mid-exchange.
    """


class ZetsubouNetworkError(ZetsubouConnectionError):
    """
    Raised for general network failures: DNS resolution, resets, etc.
    """


# HTTP status-based exceptions
class ZetsubouHTTPError(ZetsubouError):
    """
    Raised for non-2xx responses without a more specific mapping.
    """

    default_code = "HTTP_ERROR"

    def __str__(self) -> str:
        return f"{self.message} (HTTP {self.status_code})"


class ZetsubouValidationError(ZetsubouHTTPError):
    """
    Raised for 400 responses. The request was malformed or failed validation.
    """

    default_code = "VALIDATION_ERROR"


class ZetsubouAuthenticationError(ZetsubouHTTPError):
    """
    Raised for 401 responses. The API key is missing, invalid or revoked.
    """

    default_code = "AUTHENTICATION_ERROR"

    def __str__(self) -> str:
        return f"Authentication failed: {self.message}"


class ZetsubouNotFoundError(ZetsubouHTTPError):
    """
    Raised for 404 responses. The requested resource does not exist.
    """

    default_code = "NOT_FOUND"


class ZetsubouRateLimitError(ZetsubouHTTPError):
    """
    Raised for 429 responses.

    ``retry_after`` holds the number of seconds the API asked the caller to
    wait, or 60 when the ``Retry-After`` header is absent or unparsable.
    """

    default_code = "RATE_LIMIT_EXCEEDED"

    def __init__(
        self,
        message: str,
        error_data: Optional[Dict[str, Any]] = None,
        *,
        status_code: Optional[int] = 429,
        response: Optional[httpx.Response] = None,
        retry_after: Optional[int] = DEFAULT_RETRY_AFTER,
    ) -> None:
        super().__init__(
            message,
            error_data,
            status_code=status_code,
            response=response,
            retry_after=DEFAULT_RETRY_AFTER if retry_after is None else retry_after,
        )

    def __str__(self) -> str:
        return f"Rate limit exceeded: {self.message} (retry after {self.retry_after}s)"


class ZetsubouServerError(ZetsubouHTTPError):
    """
    Raised for 500, 502, 503 and 504 responses.
    """

    default_code = "SERVER_ERROR"


# Job errors
class ZetsubouJobError(ZetsubouError):
    """Base class for terminal, non-successful outcomes of a job wait."""

    def __init__(self, message: str, job_id: str, **kwargs: Any) -> None:
        super().__init__(message, **kwargs)
        self.job_id = job_id


class ZetsubouJobFailedError(ZetsubouJobError):
    """Raised when a job reports status ``failed``."""

    default_code = "JOB_FAILED"


class ZetsubouJobCancelledError(ZetsubouJobError):
    """Raised when a job reports status ``cancelled``."""

    default_code = "JOB_CANCELLED"


class ZetsubouTimeoutError(ZetsubouJobError):
    """Raised when a job does not reach a terminal status before the deadline."""

    default_code = "TIMEOUT"

    def __init__(self, message: str, job_id: str, elapsed: float) -> None:
        super().__init__(message, job_id)
        self.elapsed = elapsed


class ZetsubouGraphQLError(ZetsubouError):
    """Raised when a GraphQL response carries a non-empty ``errors`` array."""

    default_code = "GRAPHQL_ERROR"

    def __init__(self, errors: List[Dict[str, Any]]) -> None:
        messages = "; ".join(str(error.get("message", error)) for error in errors)
        super().__init__(f"GraphQL errors: {messages}", {"errors": errors})
        self.errors = errors


class ZetsubouWebhookError(ZetsubouError):
    """Raised when a webhook payload fails signature verification or decoding."""

    default_code = "WEBHOOK_ERROR"


# Exception mapping dictionaries
_HTTP_STATUS_EXCEPTIONS: Dict[int, Type[ZetsubouHTTPError]] = {
    400: ZetsubouValidationError,
    401: ZetsubouAuthenticationError,
    404: ZetsubouNotFoundError,
    429: ZetsubouRateLimitError,
    500: ZetsubouServerError,
    502: ZetsubouServerError,
    503: ZetsubouServerError,
    504: ZetsubouServerError,
}

# Checked in order, subclasses before their bases
_CONNECTION_EXCEPTIONS: Tuple[Tuple[Type[httpx.RequestError], Type[ZetsubouConnectionError]], ...] = (
    (httpx.ConnectError, ZetsubouSystemUnavailableError),
    (httpx.TimeoutException, ZetsubouRequestTimeoutError),
    (httpx.RemoteProtocolError, ZetsubouProtocolError),
    (httpx.NetworkError, ZetsubouNetworkError),
)


def _get_error_detail(response: Optional[httpx.Response]) -> Tuple[str, Dict[str, Any]]:
    """Extract the message and error body from an API response."""
    if response is None:
        return "No response available", {}
    status_message = f"HTTP {response.status_code}"
    try:
        body = response.json()
    except ValueError:
        return status_message, {}
    if not isinstance(body, dict):
        return status_message, {}
    message = body.get("message")
    if not message and isinstance(body.get("error"), str):
        message = body["error"]
    return str(message) if message else status_message, body


def _parse_retry_after(response: httpx.Response) -> int:
    """Read the Retry-After header as whole seconds, defaulting to 60."""
    value = response.headers.get("retry-after")
    if value is None:
        return DEFAULT_RETRY_AFTER
    try:
        seconds = int(float(value.strip()))
    except (ValueError, OverflowError):
        return DEFAULT_RETRY_AFTER
    return seconds if seconds >= 0 else DEFAULT_RETRY_AFTER


def _create_zetsubou_exception(
    original_error: Union[httpx.RequestError, httpx.HTTPStatusError],
) -> ZetsubouError:
    """Create the appropriate Zetsubou exception for an httpx error."""

    # Handle HTTP status errors (have response)
    if isinstance(original_error, httpx.HTTPStatusError):
        response = original_error.response
        status_code = response.status_code
        message, error_data = _get_error_detail(response)
        exception_class = _HTTP_STATUS_EXCEPTIONS.get(status_code, ZetsubouHTTPError)
        if exception_class is ZetsubouRateLimitError:
            return ZetsubouRateLimitError(
                message,
                error_data,
                status_code=status_code,
                response=response,
                retry_after=_parse_retry_after(response),
            )
        return exception_class(message, error_data, status_code=status_code, response=response)

    # The URL could not be sent at all, so no connection was attempted
    if isinstance(original_error, httpx.UnsupportedProtocol):
        return ZetsubouRequestError(f"Request error: {original_error}")

    # Handle connection errors (no response)
    for httpx_class, exception_class in _CONNECTION_EXCEPTIONS:
        if isinstance(original_error, httpx_class):
            return exception_class(str(original_error) or type(original_error).__name__)

    return ZetsubouConnectionError(str(original_error) or type(original_error).__name__)


@overload
def zetsubou_errors(func: Callable[P, Awaitable[T]]) -> Callable[P, Awaitable[T]]:
    ...  # pragma: no cover


@overload
def zetsubou_errors(func: Callable[P, T]) -> Callable[P, T]:
    ...  # pragma: no cover


def zetsubou_errors(func: Callable[P, Any]) -> Callable[P, Any]:
    """
    Decorator that converts httpx exceptions to Zetsubou-specific exceptions.

    Catches both httpx.RequestError (no response) and httpx.HTTPStatusError
    (non-2xx response) and re-raises them as the matching ZetsubouError
    subclass, chained to the original error.

    Works with both synchronous and asynchronous functions.

    Usage:
        >>> @zetsubou_errors
        ... async def get_job(self, job_id: str):
        ...     response = await self.httpx_client.get(f"api/v2/jobs/{job_id}")
        ...     response.raise_for_status()
        ...     return response.json()
    """
    if inspect.iscoroutinefunction(func):

        @functools.wraps(func)
        async def async_wrapper(*args: Any, **kwargs: Any) -> Any:
            try:
                return await func(*args, **kwargs)
            except (httpx.RequestError, httpx.HTTPStatusError) as e:
                zetsubou_exception = _create_zetsubou_exception(e)
                raise zetsubou_exception from e

        return cast(Callable[P, Awaitable[T]], async_wrapper)
    else:

        @functools.wraps(func)
        def sync_wrapper(*args: Any, **kwargs: Any) -> Any:
            try:
                return func(*args, **kwargs)
            except (httpx.RequestError, httpx.HTTPStatusError) as e:
                zetsubou_exception = _create_zetsubou_exception(e)
                raise zetsubou_exception from e

        return cast(Callable[P, T], sync_wrapper)
