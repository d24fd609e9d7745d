"""Client construction from runtime settings."""

from __future__ import annotations

import httpx

from megaport_client.client import Client, HTTPClientFactory
from megaport_client.config import ClientSettings


def create_client(
    settings: ClientSettings,
    *,
    http_client_factory: HTTPClientFactory = httpx.Client,
) -> Client:
    base_url = settings.base_url.strip()
    if not base_url:
        raise ValueError("api.base_url must not be empty")

    access_token = settings.access_token.strip()
    access_key = settings.access_key.strip()
    secret_key = settings.secret_key.strip()
    if not access_token and not (access_key and secret_key):
        raise ValueError(
            "MEGAPORT_ACCESS_KEY and MEGAPORT_SECRET_KEY are required "
            "when no MEGAPORT_ACCESS_TOKEN is configured"
        )

    return Client(
        base_url=base_url,
        access_key=access_key,
        secret_key=secret_key,
        access_token=access_token or None,
        user_agent=settings.user_agent or None,
        headers=settings.headers,
        timeout_seconds=settings.http_timeout_seconds,
        log_response_body=settings.log_response_body,
        poll_interval_seconds=settings.poll_interval_seconds,
        wait_timeout_seconds=settings.wait_timeout_seconds,
        http_client_factory=http_client_factory,
    )
