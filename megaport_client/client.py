"""Authenticated HTTP transport shared by every Megaport service."""

from __future__ import annotations

import base64
import logging
import threading
import time
from collections.abc import Callable, Mapping
from dataclasses import dataclass
from datetime import datetime
from typing import Any

import httpx

from megaport_client import __version__
from megaport_client.auth import (
    NEVER_EXPIRES,
    AccessToken,
    TokenProvider,
    basic_auth_header,
    build_access_token,
    resolve_token_url,
)
from megaport_client.config import ENVIRONMENT_BASE_URLS, ENVIRONMENT_STAGING
from megaport_client.errors import (
    MegaportAPIError,
    MegaportAuthError,
    MegaportAuthenticationError,
    MegaportNotFoundError,
    MegaportRequestError,
    MegaportResponseError,
)
from megaport_client.services.billing_market import BillingMarketService
from megaport_client.services.ix import IXService
from megaport_client.services.location import LocationService
from megaport_client.services.managed_account import ManagedAccountService
from megaport_client.services.mcr import MCRService
from megaport_client.services.mve import MVEService
from megaport_client.services.partner import PartnerService
from megaport_client.services.port import PortService
from megaport_client.services.product import ProductService
from megaport_client.services.service_key import ServiceKeyService
from megaport_client.services.user_management import UserManagementService
from megaport_client.services.vxc import VXCService

logger = logging.getLogger(__name__)

HTTPClientFactory = Callable[..., httpx.Client]
RequestCompletedCallback = Callable[[httpx.Request, httpx.Response], None]

DEFAULT_USER_AGENT = f"Python-Megaport-Library/{__version__}"
MEDIA_TYPE = "application/json"
TRACE_ID_HEADER = "Trace-Id"


@dataclass(frozen=True, slots=True)
class ApiEnvelope:
    message: str
    terms: str
    data: Any


class Client:
    """Megaport API client.

    Holds credentials and connection options, and exposes one attribute per
    resource service (``ports``, ``mcrs``, ``vxcs`` and so on). Requests are
    sent through a fresh ``httpx.Client`` built by ``http_client_factory``.
    """

    def __init__(
        self,
        *,
        base_url: str = ENVIRONMENT_BASE_URLS[ENVIRONMENT_STAGING],
        access_key: str = "",
        secret_key: str = "",
        access_token: str | None = None,
        token_expiry: datetime | None = None,
        token_provider: TokenProvider | None = None,
        user_agent: str | None = None,
        headers: Mapping[str, str] | None = None,
        timeout_seconds: float = 30.0,
        log_response_body: bool = False,
        poll_interval_seconds: float = 30.0,
        wait_timeout_seconds: float = 300.0,
        on_request_completed: RequestCompletedCallback | None = None,
        http_client_factory: HTTPClientFactory = httpx.Client,
    ) -> None:
        self.base_url = base_url
        self.access_key = access_key
        self.secret_key = secret_key
        self.user_agent = (
            f"{user_agent} {DEFAULT_USER_AGENT}" if user_agent else DEFAULT_USER_AGENT
        )
        self.custom_headers = dict(headers or {})
        self.log_response_body = log_response_body
        self.poll_interval_seconds = poll_interval_seconds
        self.wait_timeout_seconds = wait_timeout_seconds
        self._timeout_seconds = timeout_seconds
        self._http_client_factory = http_client_factory
        self._on_request_completed = on_request_completed
        self._token_lock = threading.Lock()
        self._token: AccessToken | None = None
        self._token_provider = token_provider
        if access_token:
            self.set_access_token(access_token, token_expiry)

        self.products = ProductService(self)
        self.ports = PortService(self)
        self.mcrs = MCRService(self)
        self.mves = MVEService(self)
        self.vxcs = VXCService(self)
        self.ixs = IXService(self)
        self.locations = LocationService(self)
        self.partners = PartnerService(self)
        self.service_keys = ServiceKeyService(self)
        self.users = UserManagementService(self)
        self.managed_accounts = ManagedAccountService(self)
        self.billing_markets = BillingMarketService(self)

    def set_access_token(self, token: str, expiry: datetime | None = None) -> None:
        with self._token_lock:
            self._token = AccessToken(access_token=token, expires_at=expiry or NEVER_EXPIRES)

    def set_token_provider(self, provider: TokenProvider | None) -> None:
        with self._token_lock:
            self._token_provider = provider

    def set_on_request_completed(self, callback: RequestCompletedCallback | None) -> None:
        self._on_request_completed = callback

    @property
    def access_token(self) -> AccessToken | None:
        with self._token_lock:
            return self._token

    def authorize(self) -> AccessToken:
        """Exchange the access and secret keys for a bearer token.

        A configured token provider wins over the credentials flow, and a cached
        token that has not expired is returned without a round trip.
        """
        with self._token_lock:
            provider = self._token_provider
            cached = self._token

        if provider is not None:
            return AccessToken(access_token=provider.get_token(), expires_at=NEVER_EXPIRES)

        if cached is not None and not cached.is_expired():
            return cached

        if not self.access_key:
            raise MegaportAuthenticationError("client has no access key configured")
        if not self.secret_key:
            raise MegaportAuthenticationError("client has no secret key configured")

        token_url = resolve_token_url(self.base_url)
        logger.debug(
            "authorizing client access_key=%s token_url=%s", self.access_key, token_url
        )
        response = self._send(
            "POST",
            token_url,
            params={"grant_type": "client_credentials"},
            headers={
                "Content-Type": "application/x-www-form-urlencoded",
                "Authorization": basic_auth_header(self.access_key, self.secret_key),
            },
        )
        body = _parse_json_object(response)

        error = body.get("error")
        if isinstance(error, str) and error:
            raise MegaportAuthenticationError(f"authentication error: {error}")

        access_token = body.get("access_token")
        if not isinstance(access_token, str) or not access_token:
            raise MegaportAuthenticationError("token response missing access_token")

        expires_in = body.get("expires_in")
        token = build_access_token(
            access_token,
            expires_in if isinstance(expires_in, int) and not isinstance(expires_in, bool) else 0,
        )
        with self._token_lock:
            self._token = token
        logger.debug("successful login expires_at=%s", token.expires_at.isoformat())
        return token

    def request(
        self,
        method: str,
        path: str,
        *,
        params: Mapping[str, Any] | None = None,
        json_body: Any = None,
    ) -> httpx.Response:
        return self._send(method, path, params=params, json_body=json_body, authenticated=True)

    def request_json(
        self,
        method: str,
        path: str,
        *,
        params: Mapping[str, Any] | None = None,
        json_body: Any = None,
    ) -> Any:
        response = self.request(method, path, params=params, json_body=json_body)
        if not response.content:
            return None
        try:
            return response.json()
        except ValueError as exc:
            raise MegaportResponseError(
                f"response was not valid JSON (status={response.status_code})",
                status_code=response.status_code,
            ) from exc

    def call(
        self,
        method: str,
        path: str,
        *,
        params: Mapping[str, Any] | None = None,
        json_body: Any = None,
    ) -> ApiEnvelope:
        """Send a request and decode the ``{message, terms, data}`` envelope."""
        payload = self.request_json(method, path, params=params, json_body=json_body)
        if not isinstance(payload, Mapping):
            return ApiEnvelope(message="", terms="", data=payload)
        return ApiEnvelope(
            message=str(payload.get("message") or ""),
            terms=str(payload.get("terms") or ""),
            data=payload.get("data"),
        )

    def _bearer_token(self) -> str | None:
        with self._token_lock:
            provider = self._token_provider
            token = self._token

        if provider is not None:
            provided = provider.get_token()
            return provided or None
        if token is not None and token.access_token:
            return token.access_token
        return None

    def _send(
        self,
        method: str,
        url: str,
        *,
        params: Mapping[str, Any] | None = None,
        json_body: Any = None,
        headers: Mapping[str, str] | None = None,
        authenticated: bool = False,
    ) -> httpx.Response:
        request_headers = {
            "Accept": MEDIA_TYPE,
            "User-Agent": self.user_agent,
            **self.custom_headers,
        }
        if authenticated:
            bearer = self._bearer_token()
            if bearer:
                request_headers["Authorization"] = f"Bearer {bearer}"
        if headers:
            request_headers.update(headers)

        started = time.monotonic()
        with self._http_client_factory(
            base_url=self.base_url,
            headers=request_headers,
            timeout=self._timeout_seconds,
        ) as client:
            try:
                response = client.request(
                    method,
                    url,
                    params=dict(params) if params else None,
                    json=json_body,
                )
            except httpx.HTTPError as exc:
                raise MegaportRequestError(f"megaport request failed: {exc}") from exc

        self._log_completed(response, duration_seconds=time.monotonic() - started)
        if self._on_request_completed is not None:
            self._on_request_completed(response.request, response)

        _raise_for_status(response)
        return response

    def _log_completed(self, response: httpx.Response, *, duration_seconds: float) -> None:
        if not logger.isEnabledFor(logging.DEBUG):
            return

        request = response.request
        if self.log_response_body:
            logger.debug(
                "completed API request duration_ms=%d status_code=%d path=%s api_host=%s "
                "method=%s trace_id=%s response_body_base_64=%s",
                int(duration_seconds * 1000),
                response.status_code,
                request.url.path,
                request.url.host,
                request.method,
                response.headers.get(TRACE_ID_HEADER, ""),
                base64.b64encode(response.content).decode("ascii"),
            )
            return

        logger.debug(
            "completed API request duration_ms=%d status_code=%d path=%s api_host=%s "
            "method=%s trace_id=%s",
            int(duration_seconds * 1000),
            response.status_code,
            request.url.path,
            request.url.host,
            request.method,
            response.headers.get(TRACE_ID_HEADER, ""),
        )


def _raise_for_status(response: httpx.Response) -> None:
    if 200 <= response.status_code < 300:
        return

    status_code = response.status_code
    message = response.text.strip()
    trace_id: str | None = None
    try:
        payload = response.json()
    except ValueError:
        payload = None
    if isinstance(payload, Mapping):
        api_message = payload.get("message")
        if isinstance(api_message, str):
            message = api_message
            data = payload.get("data")
            if isinstance(data, str) and data:
                message = f"{message}: {data}"
        for key in ("trace_id", "request_id"):
            value = payload.get(key)
            if isinstance(value, str) and value:
                trace_id = value
                break
    if not trace_id:
        trace_id = response.headers.get(TRACE_ID_HEADER) or None

    if status_code in {401, 403}:
        error_cls: type[MegaportAPIError] = MegaportAuthError
    elif status_code == 404:
        error_cls = MegaportNotFoundError
    else:
        error_cls = MegaportAPIError

    raise error_cls(
        message,
        status_code=status_code,
        method=response.request.method,
        url=str(response.request.url),
        trace_id=trace_id,
    )


def _parse_json_object(response: httpx.Response) -> dict[str, Any]:
    try:
        data = response.json()
    except ValueError as exc:
        raise MegaportResponseError(
            f"response was not valid JSON (status={response.status_code})",
            status_code=response.status_code,
        ) from exc

    if not isinstance(data, dict):
        raise MegaportResponseError(
            f"response payload must be an object (status={response.status_code})",
            status_code=response.status_code,
        )
    return data
