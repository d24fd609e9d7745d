"""Shared service plumbing: client access, order validation and waits."""

from __future__ import annotations

import threading
import time
from collections.abc import Callable, Sequence
from dataclasses import dataclass, replace
from typing import TYPE_CHECKING, Any, TypeVar

from megaport_client.enums import MAX_COST_CENTRE_LENGTH, is_valid_term
from megaport_client.errors import (
    MegaportResponseError,
    MegaportValidationError,
    WaitTimeoutError,
)
from megaport_client.waiting import HasProvisioningStatus, has_ready_status, wait_for_resource

if TYPE_CHECKING:
    from megaport_client.client import Client

ResourceT = TypeVar("ResourceT", bound=HasProvisioningStatus)


@dataclass(frozen=True, slots=True)
class WaitOptions:
    """Opt-in wait applied after an order or update has been accepted.

    ``timeout_seconds`` of ``None`` falls back to the client default.
    """

    enabled: bool = False
    timeout_seconds: float | None = None
    cancel_event: threading.Event | None = None


NO_WAIT = WaitOptions()


class BaseService:
    def __init__(self, client: Client) -> None:
        self._client = client

    def _wait(
        self,
        fetch: Callable[[], ResourceT],
        *,
        options: WaitOptions,
        resource_name: str,
        resource_uid: str,
        action: str = "provision",
        is_ready: Callable[[ResourceT], bool] = has_ready_status,
    ) -> ResourceT:
        return wait_for_resource(
            fetch,
            resource_name=resource_name,
            resource_uid=resource_uid,
            action=action,
            is_ready=is_ready,
            timeout_seconds=options.timeout_seconds or self._client.wait_timeout_seconds,
            interval_seconds=self._client.poll_interval_seconds,
            cancel_event=options.cancel_event,
        )

    def _wait_each(
        self,
        uids: Sequence[str],
        fetch: Callable[[str], ResourceT],
        *,
        options: WaitOptions,
        resource_name: str,
    ) -> None:
        """Wait for every UID of one order under a single shared deadline."""
        timeout = options.timeout_seconds or self._client.wait_timeout_seconds
        deadline = time.monotonic() + timeout
        for uid in uids:
            remaining = deadline - time.monotonic()
            if remaining <= 0:
                raise WaitTimeoutError(
                    f"time expired waiting for {resource_name} {uid} to provision",
                    resource_uid=uid,
                )
            self._wait(
                lambda uid=uid: fetch(uid),
                options=replace(options, timeout_seconds=remaining),
                resource_name=resource_name,
                resource_uid=uid,
            )


def validate_term(term: int) -> None:
    if not is_valid_term(term):
        raise MegaportValidationError("term", "it must be one of 1, 12, 24 or 36 months")


def validate_cost_centre(cost_centre: str | None) -> None:
    if cost_centre is not None and len(cost_centre) > MAX_COST_CENTRE_LENGTH:
        raise MegaportValidationError(
            "cost_centre",
            f"it must be at most {MAX_COST_CENTRE_LENGTH} characters",
        )


def first_order_uid(data: Any, key: str, *, context: str) -> str:
    """Extract the service UID from the first entry of an order confirmation."""
    if not isinstance(data, list) or not data or not isinstance(data[0], dict):
        raise MegaportResponseError(f"{context} order response contained no confirmations")
    uid = data[0].get(key)
    if not isinstance(uid, str) or not uid:
        raise MegaportResponseError(f"{context} order response missing {key}")
    return uid


def order_uids(data: Any, key: str, *, context: str) -> list[str]:
    if not isinstance(data, list):
        raise MegaportResponseError(f"{context} order response contained no confirmations")
    uids = [
        item[key]
        for item in data
        if isinstance(item, dict) and isinstance(item.get(key), str) and item[key]
    ]
    if not uids:
        raise MegaportResponseError(f"{context} order response missing {key}")
    return uids


def drop_none(payload: dict[str, Any]) -> dict[str, Any]:
    return {key: value for key, value in payload.items() if value is not None}
