"""Access tokens, token providers and token endpoint resolution."""

from __future__ import annotations

import base64
from dataclasses import dataclass
from datetime import UTC, datetime, timedelta
from typing import Protocol
from urllib.parse import urlsplit

from megaport_client.errors import MegaportAuthenticationError

NEVER_EXPIRES = datetime(9999, 12, 31, 23, 59, 59, tzinfo=UTC)

TOKEN_URLS_BY_API_HOST = {
    "api.megaport.com": "https://auth-m2m.megaport.com/oauth2/token",
    "api-staging.megaport.com": "https://auth-m2m-staging.megaport.com/oauth2/token",
    "api-mpone-dev.megaport.com": "https://auth-m2m-mpone-dev.megaport.com/oauth2/token",
}


class TokenProvider(Protocol):
    def get_token(self) -> str:
        """Return a bearer token valid for the next request."""


@dataclass(frozen=True, slots=True)
class AccessToken:
    access_token: str
    expires_at: datetime

    def is_expired(self, now: datetime | None = None) -> bool:
        current = now or datetime.now(UTC)
        return current >= self.expires_at


def build_access_token(
    access_token: str,
    expires_in_seconds: int,
    *,
    now: datetime | None = None,
) -> AccessToken:
    issued_at = now or datetime.now(UTC)
    return AccessToken(
        access_token=access_token,
        expires_at=issued_at + timedelta(seconds=max(0, expires_in_seconds)),
    )


def resolve_token_url(base_url: str) -> str:
    host = (urlsplit(base_url).hostname or "").lower()
    token_url = TOKEN_URLS_BY_API_HOST.get(host)
    if token_url is None:
        raise MegaportAuthenticationError(f"unknown API environment for host {host!r}")
    return token_url


def basic_auth_header(access_key: str, secret_key: str) -> str:
    encoded = base64.b64encode(f"{access_key}:{secret_key}".encode("utf-8")).decode("ascii")
    return f"Basic {encoded}"
