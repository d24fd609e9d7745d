"""Poll a resource until it settles into a ready provisioning state."""

from __future__ import annotations

import logging
import threading
import time
from collections.abc import Callable
from typing import Protocol, TypeVar

from megaport_client.enums import is_ready_state
from megaport_client.errors import WaitCancelledError, WaitTimeoutError

logger = logging.getLogger(__name__)

DEFAULT_POLL_INTERVAL_SECONDS = 30.0
DEFAULT_WAIT_TIMEOUT_SECONDS = 300.0


class HasProvisioningStatus(Protocol):
    @property
    def provisioning_status(self) -> str: ...


ResourceT = TypeVar("ResourceT", bound=HasProvisioningStatus)


def has_ready_status(resource: HasProvisioningStatus) -> bool:
    return is_ready_state(resource.provisioning_status)


def wait_for_resource(
    fetch: Callable[[], ResourceT],
    *,
    resource_name: str,
    resource_uid: str,
    action: str = "provision",
    is_ready: Callable[[ResourceT], bool] = has_ready_status,
    timeout_seconds: float | None = None,
    interval_seconds: float | None = None,
    cancel_event: threading.Event | None = None,
    clock: Callable[[], float] = time.monotonic,
    sleep: Callable[[float], object] | None = None,
) -> ResourceT:
    """Poll ``fetch`` every interval until ``is_ready`` accepts the result.

    The first poll happens one interval after the call. When the deadline and a
    poll fall on the same instant the deadline wins. Setting ``cancel_event``
    aborts the wait. Errors raised by ``fetch`` propagate unchanged.
    """
    timeout = DEFAULT_WAIT_TIMEOUT_SECONDS if not timeout_seconds else timeout_seconds
    interval = DEFAULT_POLL_INTERVAL_SECONDS if not interval_seconds else interval_seconds
    event = cancel_event or threading.Event()
    pause = sleep or event.wait
    deadline = clock() + timeout
    next_poll = clock() + interval

    while True:
        if event.is_set():
            raise WaitCancelledError(
                f"context expired waiting for {resource_name} {resource_uid} to {action}",
                resource_uid=resource_uid,
            )

        now = clock()
        if now >= deadline:
            raise WaitTimeoutError(
                f"time expired waiting for {resource_name} {resource_uid} to {action}",
                resource_uid=resource_uid,
            )

        if now >= next_poll:
            resource = fetch()
            if is_ready(resource):
                return resource
            logger.debug(
                "waiting for %s resource_uid=%s status=%s",
                resource_name,
                resource_uid,
                resource.provisioning_status,
            )
            next_poll = now + interval
            continue

        pause(min(next_poll, deadline) - now)


def poll_attempts(
    fetch: Callable[[], ResourceT],
    *,
    resource_name: str,
    resource_uid: str,
    is_ready: Callable[[ResourceT], bool],
    attempts: int = 30,
    interval_seconds: float = 10.0,
    sleep: Callable[[float], object] | None = None,
) -> ResourceT:
    """Poll immediately and then every interval for a fixed number of attempts."""
    pause = sleep or threading.Event().wait
    for attempt in range(attempts):
        resource = fetch()
        if is_ready(resource):
            return resource
        logger.debug(
            "waiting for %s resource_uid=%s status=%s attempt=%d",
            resource_name,
            resource_uid,
            resource.provisioning_status,
            attempt + 1,
        )
        if attempt + 1 < attempts:
            pause(interval_seconds)

    raise WaitTimeoutError(
        f"{resource_name} {resource_uid} did not provision within {attempts} attempts",
        resource_uid=resource_uid,
    )
