"""Tests for the exceptions module."""

import pytest

import httpx

from zetsubou.exceptions import (
    # Base exceptions
    ZetsubouError,
    ZetsubouClientClosed,
    ZetsubouRequestError,
    # Connection errors
    ZetsubouConnectionError,
    ZetsubouSystemUnavailableError,
    ZetsubouRequestTimeoutError,
    ZetsubouProtocolError,
    ZetsubouNetworkError,
    # HTTP errors
    ZetsubouHTTPError,
    ZetsubouValidationError,
    ZetsubouAuthenticationError,
    ZetsubouNotFoundError,
    ZetsubouRateLimitError,
    ZetsubouServerError,
    # Job errors
    ZetsubouJobFailedError,
    ZetsubouTimeoutError,
    ZetsubouGraphQLError,
    # Decorator
    zetsubou_errors,
    _create_zetsubou_exception,
    _get_error_detail,
    _parse_retry_after,
)

REQUEST = httpx.Request("GET", "https://api.test.zetsubou/api/v2/jobs/j1")


def status_error(status_code, body=None, headers=None):
    response = httpx.Response(status_code, json=body or {}, headers=headers, request=REQUEST)
    return httpx.HTTPStatusError(f"HTTP {status_code}", request=REQUEST, response=response)


class TestZetsubouError:
    def test_defaults(self):
        exc = ZetsubouError("Something broke")
        assert str(exc) == "Something broke"
        assert exc.code == "UNKNOWN_ERROR"
        assert exc.status_code is None
        assert exc.retry_after is None
        assert exc.error_data == {}

    def test_code_from_error_data(self):
        exc = ZetsubouValidationError("Bad", {"code": "FILE_TOO_LARGE"}, status_code=400)
        assert exc.code == "FILE_TOO_LARGE"
        assert exc.status_code == 400

    def test_client_closed_message(self):
        assert str(ZetsubouClientClosed()) == "The ZetsubouClient is closed"
        assert str(ZetsubouClientClosed("Custom message")) == "Custom message"

    def test_hierarchy(self):
        for cls in (
            ZetsubouValidationError,
            ZetsubouAuthenticationError,
            ZetsubouNotFoundError,
            ZetsubouRateLimitError,
            ZetsubouServerError,
        ):
            assert issubclass(cls, ZetsubouHTTPError)
            assert issubclass(cls, ZetsubouError)
        for cls in (
            ZetsubouSystemUnavailableError,
            ZetsubouRequestTimeoutError,
            ZetsubouProtocolError,
            ZetsubouNetworkError,
        ):
            assert issubclass(cls, ZetsubouConnectionError)


class TestMessages:
    def test_connection_error_message(self):
        exc = ZetsubouConnectionError("connection refused")
        assert str(exc) == "Network error: Unable to reach the API (connection refused)"
        assert exc.code == "NETWORK_ERROR"

    def test_http_error_message(self):
        exc = ZetsubouHTTPError("I'm a teapot", status_code=418)
        assert str(exc) == "I'm a teapot (HTTP 418)"

    def test_authentication_error_message(self):
        exc = ZetsubouAuthenticationError("Invalid API key", status_code=401)
        assert str(exc) == "Authentication failed: Invalid API key"

    def test_rate_limit_defaults(self):
        exc = ZetsubouRateLimitError("Slow down")
        assert exc.status_code == 429
        assert exc.retry_after == 60
        assert exc.code == "RATE_LIMIT_EXCEEDED"
        assert "retry after 60s" in str(exc)

    def test_job_errors(self):
        exc = ZetsubouJobFailedError("Job j1 failed: X", "j1")
        assert exc.job_id == "j1"
        assert exc.code == "JOB_FAILED"
        timeout = ZetsubouTimeoutError("Job j1 timed out after 15.0s", "j1", 15.0)
        assert timeout.elapsed == 15.0
        assert timeout.code == "TIMEOUT"

    def test_graphql_error_joins_messages(self):
        exc = ZetsubouGraphQLError([{"message": "a"}, {"message": "b"}])
        assert str(exc) == "GraphQL errors: a; b"
        assert exc.errors == [{"message": "a"}, {"message": "b"}]


class TestErrorDetail:
    def test_message_from_body(self):
        response = httpx.Response(400, json={"message": "name is required", "code": "X"})
        assert _get_error_detail(response) == ("name is required", {"message": "name is required", "code": "X"})

    def test_error_field_used_when_no_message(self):
        response = httpx.Response(404, json={"error": "Job not found"})
        assert _get_error_detail(response)[0] == "Job not found"

    def test_status_fallback_for_non_json(self):
        response = httpx.Response(502, content=b"<html>Bad Gateway</html>")
        assert _get_error_detail(response) == ("HTTP 502", {})

    def test_status_fallback_for_json_list(self):
        response = httpx.Response(500, json=["oops"])
        assert _get_error_detail(response) == ("HTTP 500", {})


@pytest.mark.parametrize(
    "header, expected",
    [
        ({"Retry-After": "30"}, 30),
        ({"Retry-After": "2.5"}, 2),
        ({}, 60),
        ({"Retry-After": "soon"}, 60),
        ({"Retry-After": "-5"}, 60),
        ({"Retry-After": "inf"}, 60),
        ({"Retry-After": "1e400"}, 60),
        ({"Retry-After": "nan"}, 60),
    ],
)
def test_parse_retry_after(header, expected):
    assert _parse_retry_after(httpx.Response(429, headers=header)) == expected


@pytest.mark.parametrize(
    "status_code, expected_class",
    [
        (400, ZetsubouValidationError),
        (401, ZetsubouAuthenticationError),
        (404, ZetsubouNotFoundError),
        (429, ZetsubouRateLimitError),
        (500, ZetsubouServerError),
        (502, ZetsubouServerError),
        (503, ZetsubouServerError),
        (504, ZetsubouServerError),
        (403, ZetsubouHTTPError),
        (418, ZetsubouHTTPError),
    ],
)
def test_create_exception_for_status(status_code, expected_class):
    exc = _create_zetsubou_exception(status_error(status_code, {"message": "boom"}))
    assert type(exc) is expected_class
    assert exc.status_code == status_code
    assert exc.message == "boom"
    assert exc.response is not None


def test_create_rate_limit_exception_reads_header():
    exc = _create_zetsubou_exception(status_error(429, {}, headers={"Retry-After": "12"}))
    assert isinstance(exc, ZetsubouRateLimitError)
    assert exc.retry_after == 12
    assert exc.message == "HTTP 429"


@pytest.mark.parametrize(
    "error, expected_class",
    [
        (httpx.ConnectError("refused"), ZetsubouSystemUnavailableError),
        (httpx.ConnectTimeout("slow connect"), ZetsubouRequestTimeoutError),
        (httpx.ReadTimeout("slow read"), ZetsubouRequestTimeoutError),
        (httpx.RemoteProtocolError("peer closed"), ZetsubouProtocolError),
        (httpx.ReadError("reset"), ZetsubouNetworkError),
        (httpx.TooManyRedirects("loop"), ZetsubouConnectionError),
    ],
)
def test_create_exception_for_connection_errors(error, expected_class):
    exc = _create_zetsubou_exception(error)
    assert type(exc) is expected_class
    assert str(exc).startswith("Network error: Unable to reach the API")


def test_unsupported_protocol_is_request_error():
    exc = _create_zetsubou_exception(httpx.UnsupportedProtocol("ftp is not supported"))
    assert isinstance(exc, ZetsubouRequestError)
    assert str(exc).startswith("Request error:")


class TestZetsubouErrorsDecorator:
    def test_sync_function_maps_status_error(self):
        @zetsubou_errors
        def fetch():
            raise status_error(404, {"message": "Job not found"})

        with pytest.raises(ZetsubouNotFoundError) as exc_info:
            fetch()
        assert isinstance(exc_info.value.__cause__, httpx.HTTPStatusError)

    @pytest.mark.asyncio
    async def test_async_function_maps_connection_error(self):
        @zetsubou_errors
        async def fetch():
            raise httpx.ConnectError("refused")

        with pytest.raises(ZetsubouSystemUnavailableError) as exc_info:
            await fetch()
        assert isinstance(exc_info.value.__cause__, httpx.ConnectError)

    @pytest.mark.asyncio
    async def test_success_passes_through(self):
        @zetsubou_errors
        async def fetch(value):
            return value

        assert await fetch("ok") == "ok"

    def test_other_exceptions_not_caught(self):
        @zetsubou_errors
        def fetch():
            raise ValueError("not an http problem")

        with pytest.raises(ValueError):
            fetch()

    def test_preserves_function_metadata(self):
        @zetsubou_errors
        async def fetch_job():
            """Docstring."""

        assert fetch_job.__name__ == "fetch_job"
        assert fetch_job.__doc__ == "Docstring."
