"""Tests for error classification and handling."""

import json
import socket
import ssl

import httpx
import msgspec
import pytest

from carelinkbridge.errors.classify import classify_exception
from carelinkbridge.errors.classify import classify_http_status_error
from carelinkbridge.errors.classify import extract_error_message
from carelinkbridge.errors.network import is_network_error
from carelinkbridge.errors.network import is_proxy_status
from carelinkbridge.errors.network import network_error_code
from carelinkbridge.errors.types import AllEndpointsFailedError
from carelinkbridge.errors.types import CareLinkError
from carelinkbridge.errors.types import EmptyBleResponseError
from carelinkbridge.errors.types import ErrorCategory
from carelinkbridge.errors.types import ErrorSeverity
from carelinkbridge.errors.types import NetworkErrorCode
from carelinkbridge.errors.types import NoCredentialsError
from carelinkbridge.errors.types import RefreshExpiredError
from carelinkbridge.errors.types import RequestCeilingExceededError
from carelinkbridge.errors.types import RetryAction

URL = "https://carelink.minimed.eu/patient/users/me"


def _status_error(status: int, **kwargs) -> httpx.HTTPStatusError:
    request = httpx.Request("GET", URL)
    response = httpx.Response(status, request=request, **kwargs)
    return httpx.HTTPStatusError(f"HTTP {status}", request=request, response=response)


class TestCareLinkError:
    """Tests for the exception hierarchy."""

    def test_default_message(self):
        error = NoCredentialsError()
        assert "No CareLink session" in error.message
        assert error.category == ErrorCategory.CREDENTIALS
        assert error.severity == ErrorSeverity.FATAL

    def test_custom_message(self):
        assert str(EmptyBleResponseError("nothing")) == "nothing"

    def test_all_endpoints_failed_keeps_tried(self):
        error = AllEndpointsFailedError(["a", "b"])
        assert error.tried == ["a", "b"]
        assert error.category == ErrorCategory.STRATEGY
        assert error.severity == ErrorSeverity.RECOVERABLE

    def test_request_ceiling(self):
        error = RequestCeilingExceededError(30)
        assert error.ceiling == 30
        assert isinstance(error, CareLinkError)
        assert error.severity == ErrorSeverity.FATAL


class TestNetworkErrorCode:
    """Tests for network_error_code."""

    @pytest.mark.parametrize(
        ("error", "expected"),
        [
            (ConnectionRefusedError(111, "refused"), NetworkErrorCode.CONNECTION_REFUSED),
            (ConnectionResetError(104, "reset"), NetworkErrorCode.CONNECTION_RESET),
            (socket.gaierror(-2, "Name or service not known"), NetworkErrorCode.DNS_NOT_FOUND),
            (ssl.SSLError(1, "wrong version number"), NetworkErrorCode.TLS_PROTOCOL),
            (TimeoutError(), NetworkErrorCode.TIMEOUT),
            (httpx.ConnectTimeout("timed out"), NetworkErrorCode.TIMEOUT),
            (httpx.ProxyError("407 Proxy Authentication Required"), NetworkErrorCode.PROXY_TUNNEL),
            (httpx.ConnectError("[Errno 111] Connection refused"), NetworkErrorCode.CONNECTION_REFUSED),
            (httpx.RemoteProtocolError("Server disconnected without sending a response."), NetworkErrorCode.CONNECTION_RESET),
            (httpx.ConnectError("[Errno -3] Temporary failure in name resolution"), NetworkErrorCode.DNS_NOT_FOUND),
            (httpx.ConnectError("[SSL: WRONG_VERSION_NUMBER] wrong version number"), NetworkErrorCode.TLS_PROTOCOL),
        ],
    )
    def test_codes(self, error, expected):
        assert network_error_code(error) == expected
        assert is_network_error(error)

    def test_cause_chain_is_followed(self):
        try:
            try:
                raise ConnectionRefusedError(111, "refused")
            except ConnectionRefusedError as inner:
                raise httpx.ConnectError("connect failed") from inner
        except httpx.ConnectError as outer:
            assert network_error_code(outer) == NetworkErrorCode.CONNECTION_REFUSED

    def test_non_network_errors(self):
        assert network_error_code(ValueError("connection refused")) is None
        assert not is_network_error(KeyError("x"))

    @pytest.mark.parametrize("status", [400, 403, 407, 502, 503])
    def test_proxy_statuses(self, status):
        assert is_proxy_status(status)

    @pytest.mark.parametrize("status", [200, 401, 404, 429, 500, 504])
    def test_other_statuses(self, status):
        assert not is_proxy_status(status)


class TestExtractErrorMessage:
    def test_json_message(self):
        response = httpx.Response(400, json={"message": "bad request"})
        assert extract_error_message(response) == "bad request"

    def test_nested_error(self):
        response = httpx.Response(400, json={"error": {"message": "nested"}})
        assert extract_error_message(response) == "nested"

    def test_short_text(self):
        assert extract_error_message(httpx.Response(502, text="Bad Gateway")) == "Bad Gateway"

    def test_long_text_falls_back_to_status(self):
        assert extract_error_message(httpx.Response(500, text="x" * 500)) == "HTTP 500"


class TestClassifyException:
    """Tests for classify_exception."""

    @pytest.mark.parametrize("error", [NoCredentialsError(), RefreshExpiredError()])
    def test_credential_errors_raise(self, error):
        classified = classify_exception(error)
        assert classified.action == RetryAction.RAISE
        assert classified.is_credential_error
        assert classified.remediation

    def test_request_ceiling_raises(self):
        classified = classify_exception(RequestCeilingExceededError(30))
        assert classified.category == ErrorCategory.REQUEST_CEILING
        assert classified.action == RetryAction.RAISE

    def test_strategy_errors_back_off(self):
        classified = classify_exception(AllEndpointsFailedError(["u1", "u2"]))
        assert classified.category == ErrorCategory.STRATEGY
        assert classified.action == RetryAction.BACKOFF
        assert classified.details == {"tried": ["u1", "u2"]}

    @pytest.mark.parametrize("status", [400, 403, 407, 502, 503])
    def test_proxy_statuses_swap(self, status):
        classified = classify_exception(_status_error(status, json={"error": "blocked"}))
        assert classified.category == ErrorCategory.PROXY
        assert classified.action == RetryAction.SWAP_PROXY
        assert classified.status_code == status
        assert "blocked" in classified.message

    @pytest.mark.parametrize("status", [401, 404, 500])
    def test_other_statuses_back_off(self, status):
        classified = classify_http_status_error(_status_error(status))
        assert classified.action == RetryAction.BACKOFF
        assert classified.details["url"] == URL

    def test_network_error_swaps(self):
        classified = classify_exception(httpx.ConnectTimeout("timed out"))
        assert classified.category == ErrorCategory.NETWORK
        assert classified.network_code == NetworkErrorCode.TIMEOUT
        assert classified.action == RetryAction.SWAP_PROXY
        assert classified.remediation

    def test_unrecognised_transport_error_backs_off(self):
        classified = classify_exception(httpx.ReadError("weird"))
        assert classified.category == ErrorCategory.NETWORK
        assert classified.action == RetryAction.BACKOFF

    @pytest.mark.parametrize(
        "error",
        [
            json.JSONDecodeError("Expecting value", "", 0),
            msgspec.DecodeError("bad"),
            KeyError("role"),
        ],
    )
    def test_parse_errors_back_off(self, error):
        classified = classify_exception(error)
        assert classified.category == ErrorCategory.PARSE
        assert classified.action == RetryAction.BACKOFF

    def test_unknown_error(self):
        classified = classify_exception(RuntimeError())
        assert classified.category == ErrorCategory.UNKNOWN
        assert classified.message == "RuntimeError"
        assert classified.action == RetryAction.BACKOFF
