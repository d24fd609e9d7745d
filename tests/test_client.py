from __future__ import annotations

import base64
import logging
from datetime import UTC, datetime, timedelta
from typing import TYPE_CHECKING

import httpx
import pytest

from megaport_client import (
    MegaportAPIError,
    MegaportAuthenticationError,
    MegaportAuthError,
    MegaportNotFoundError,
    MegaportRequestError,
    MegaportResponseError,
    __version__,
)
from megaport_client.auth import AccessToken, build_access_token, resolve_token_url

if TYPE_CHECKING:
    from conftest import ClientBuilder, RecordingAPI

    from megaport_client import Client

TOKEN_URL = "https://auth-m2m-staging.megaport.com/oauth2/token"


class StaticTokenProvider:
    def __init__(self, token: str) -> None:
        self.token = token
        self.calls = 0

    def get_token(self) -> str:
        self.calls += 1
        return self.token


def test_authorize_exchanges_client_credentials(make_client: ClientBuilder) -> None:
    seen: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(
            status_code=200,
            json={"access_token": "fresh-token", "expires_in": 3600, "token_type": "Bearer"},
        )

    client = make_client(
        handler,
        access_token=None,
        access_key="access-key",
        secret_key="secret-key",
    )

    token = client.authorize()

    assert token.access_token == "fresh-token"
    assert token.expires_at > datetime.now(UTC) + timedelta(minutes=59)
    assert client.access_token == token
    assert len(seen) == 1
    request = seen[0]
    assert request.method == "POST"
    assert str(request.url) == f"{TOKEN_URL}?grant_type=client_credentials"
    assert request.headers["Content-Type"] == "application/x-www-form-urlencoded"
    expected_basic = base64.b64encode(b"access-key:secret-key").decode("ascii")
    assert request.headers["Authorization"] == f"Basic {expected_basic}"


def test_authorize_reuses_unexpired_token(make_client: ClientBuilder) -> None:
    calls: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        calls.append(request)
        return httpx.Response(status_code=200, json={"access_token": "fresh", "expires_in": 60})

    client = make_client(handler, access_token=None, access_key="k", secret_key="s")

    first = client.authorize()
    second = client.authorize()

    assert first is second
    assert len(calls) == 1


def test_authorize_prefers_token_provider(make_client: ClientBuilder) -> None:
    def handler(_: httpx.Request) -> httpx.Response:
        raise AssertionError("token endpoint must not be called")

    provider = StaticTokenProvider("provided-token")
    client = make_client(handler, access_token=None, token_provider=provider)

    token = client.authorize()

    assert token.access_token == "provided-token"
    assert provider.calls == 1


def test_token_provider_supplies_bearer_for_service_calls(
    api: RecordingAPI,
    make_client: ClientBuilder,
) -> None:
    api.add("GET", "/v2/products", {"message": "", "terms": "", "data": []})
    provider = StaticTokenProvider("provided-token")
    client = make_client(api.handler, access_token=None, token_provider=provider)

    client.ports.list_ports()

    assert api.last("GET", "/v2/products").headers["Authorization"] == "Bearer provided-token"
    assert provider.calls == 1


def test_token_provider_wins_over_static_token(
    api: RecordingAPI,
    make_client: ClientBuilder,
) -> None:
    api.add("GET", "/v2/products", {"message": "", "terms": "", "data": []})
    client = make_client(api.handler, access_token="static-token")
    client.set_token_provider(StaticTokenProvider("provided-token"))

    client.call("GET", "/v2/products")
    token = client.authorize()

    assert api.last("GET", "/v2/products").headers["Authorization"] == "Bearer provided-token"
    assert token.access_token == "provided-token"


@pytest.mark.parametrize(
    ("access_key", "secret_key", "message"),
    [
        ("", "secret", "no access key"),
        ("key", "", "no secret key"),
    ],
)
def test_authorize_requires_credentials(
    make_client: ClientBuilder,
    access_key: str,
    secret_key: str,
    message: str,
) -> None:
    client = make_client(
        lambda _: httpx.Response(status_code=500),
        access_token=None,
        access_key=access_key,
        secret_key=secret_key,
    )

    with pytest.raises(MegaportAuthenticationError, match=message):
        client.authorize()


def test_authorize_surfaces_error_field(make_client: ClientBuilder) -> None:
    def handler(_: httpx.Request) -> httpx.Response:
        return httpx.Response(status_code=200, json={"error": "invalid_client"})

    client = make_client(handler, access_token=None, access_key="k", secret_key="s")

    with pytest.raises(MegaportAuthenticationError, match="authentication error: invalid_client"):
        client.authorize()


def test_authorize_rejects_unknown_host(make_client: ClientBuilder) -> None:
    client = make_client(
        lambda _: httpx.Response(status_code=200),
        base_url="https://api.example.test/",
        access_token=None,
        access_key="k",
        secret_key="s",
    )

    with pytest.raises(MegaportAuthenticationError, match="unknown API environment"):
        client.authorize()


@pytest.mark.parametrize(
    ("base_url", "expected"),
    [
        ("https://api.megaport.com/", "https://auth-m2m.megaport.com/oauth2/token"),
        ("https://api-staging.megaport.com", TOKEN_URL),
        (
            "https://api-mpone-dev.megaport.com/",
            "https://auth-m2m-mpone-dev.megaport.com/oauth2/token",
        ),
    ],
)
def test_resolve_token_url_by_host(base_url: str, expected: str) -> None:
    assert resolve_token_url(base_url) == expected


@pytest.mark.parametrize("base_url", ["", "/v2/products", "https://api.example.test/"])
def test_resolve_token_url_rejects_unknown_or_missing_host(base_url: str) -> None:
    with pytest.raises(MegaportAuthenticationError, match="unknown API environment"):
        resolve_token_url(base_url)


def test_access_token_expiry() -> None:
    issued = datetime(2024, 1, 1, tzinfo=UTC)
    token = build_access_token("abc", 60, now=issued)

    assert not token.is_expired(issued + timedelta(seconds=59))
    assert token.is_expired(issued + timedelta(seconds=60))


def test_requests_carry_default_headers(api: RecordingAPI, make_client: ClientBuilder) -> None:
    api.add("GET", "/v2/products", {"message": "", "terms": "", "data": []})
    client = make_client(
        api.handler,
        user_agent="terraform/1.5",
        headers={"X-Team": "network"},
    )

    client.call("GET", "/v2/products")

    request = api.last("GET", "/v2/products")
    assert request.headers["Accept"] == "application/json"
    assert request.headers["Authorization"] == "Bearer token-123"
    assert request.headers["X-Team"] == "network"
    assert request.headers["User-Agent"] == (
        f"terraform/1.5 Python-Megaport-Library/{__version__}"
    )


def test_set_access_token_replaces_bearer(api: RecordingAPI, client: Client) -> None:
    api.add("GET", "/v2/products", {"data": []})

    client.set_access_token("rotated", datetime.now(UTC) + timedelta(hours=1))
    client.call("GET", "/v2/products")

    assert api.last("GET", "/v2/products").headers["Authorization"] == "Bearer rotated"
    assert isinstance(client.access_token, AccessToken)


def test_call_decodes_envelope(api: RecordingAPI, client: Client) -> None:
    api.add("GET", "/v2/products", {"message": "found", "terms": "t&c", "data": [{"a": 1}]})

    result = client.call("GET", "/v2/products")

    assert result.message == "found"
    assert result.terms == "t&c"
    assert result.data == [{"a": 1}]


def test_call_wraps_non_object_payload(api: RecordingAPI, client: Client) -> None:
    api.add("GET", "/v3/activity", [{"loginName": "ops"}])

    result = client.call("GET", "/v3/activity")

    assert result.message == ""
    assert result.data == [{"loginName": "ops"}]


def test_request_json_rejects_invalid_json(api: RecordingAPI, client: Client) -> None:
    api.add("GET", "/v2/products", httpx.Response(status_code=200, text="<html>"))

    with pytest.raises(MegaportResponseError, match="not valid JSON"):
        client.request_json("GET", "/v2/products")


def test_request_json_returns_none_for_empty_body(api: RecordingAPI, client: Client) -> None:
    api.add("DELETE", "/v2/product/p-1/lock", httpx.Response(status_code=204))

    assert client.request_json("DELETE", "/v2/product/p-1/lock") is None


@pytest.mark.parametrize(
    ("status_code", "error_type"),
    [
        (400, MegaportAPIError),
        (401, MegaportAuthError),
        (403, MegaportAuthError),
        (404, MegaportNotFoundError),
        (500, MegaportAPIError),
    ],
)
def test_error_status_maps_to_exception(
    api: RecordingAPI,
    client: Client,
    status_code: int,
    error_type: type[MegaportAPIError],
) -> None:
    api.add(
        "GET",
        "/v2/product/p-1",
        {"message": "Could not process", "data": "product p-1 is invalid"},
        status_code=status_code,
    )

    with pytest.raises(error_type) as exc_info:
        client.call("GET", "/v2/product/p-1")

    error = exc_info.value
    assert error.status_code == status_code
    assert error.api_message == "Could not process: product p-1 is invalid"
    assert error.method == "GET"
    assert error.url == "https://api-staging.megaport.com/v2/product/p-1"


def test_error_message_includes_trace_id_header(api: RecordingAPI, client: Client) -> None:
    api.add(
        "POST",
        "/v3/networkdesign/buy",
        httpx.Response(
            status_code=400,
            headers={"Trace-Id": "trace-abc"},
            json={"message": "bad order"},
        ),
    )

    with pytest.raises(MegaportAPIError) as exc_info:
        client.call("POST", "/v3/networkdesign/buy", json_body=[])

    assert exc_info.value.trace_id == "trace-abc"
    assert str(exc_info.value) == (
        "POST https://api-staging.megaport.com/v3/networkdesign/buy: 400 "
        "(trace_id 'trace-abc') bad order"
    )


def test_error_message_falls_back_to_body_text(api: RecordingAPI, client: Client) -> None:
    api.add("GET", "/v2/products", httpx.Response(status_code=502, text="Bad Gateway"))

    with pytest.raises(MegaportAPIError) as exc_info:
        client.call("GET", "/v2/products")

    assert exc_info.value.api_message == "Bad Gateway"
    assert exc_info.value.trace_id is None
    assert str(exc_info.value) == (
        "GET https://api-staging.megaport.com/v2/products: 502 Bad Gateway"
    )


def test_transport_errors_raise_request_error(make_client: ClientBuilder) -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    client = make_client(handler)

    with pytest.raises(MegaportRequestError, match="megaport request failed"):
        client.call("GET", "/v2/products")


def test_request_completed_callback_sees_every_response(
    api: RecordingAPI,
    client: Client,
) -> None:
    api.add("GET", "/v2/products", {"data": []})
    seen: list[tuple[str, int]] = []
    client.set_on_request_completed(
        lambda request, response: seen.append((request.url.path, response.status_code))
    )

    client.call("GET", "/v2/products")
    with pytest.raises(MegaportNotFoundError):
        client.call("GET", "/v2/unknown")

    assert seen == [("/v2/products", 200), ("/v2/unknown", 404)]


def test_completed_requests_are_logged_at_debug(
    api: RecordingAPI,
    make_client: ClientBuilder,
    caplog: pytest.LogCaptureFixture,
) -> None:
    api.add(
        "GET",
        "/v2/products",
        httpx.Response(status_code=200, headers={"Trace-Id": "t-1"}, json={"data": []}),
    )
    client = make_client(api.handler, log_response_body=True)

    with caplog.at_level(logging.DEBUG, logger="megaport_client.client"):
        client.call("GET", "/v2/products")

    messages = [record.getMessage() for record in caplog.records]
    assert any(
        "status_code=200 path=/v2/products api_host=api-staging.megaport.com" in message
        and "trace_id=t-1" in message
        and "response_body_base_64=" in message
        for message in messages
    )
