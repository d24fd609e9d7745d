"""Exception hierarchy shared by the transport and every service."""

from __future__ import annotations


class MegaportError(Exception):
    """Base client exception for deterministic failure handling."""

    error_code = "megaport_error"

    def __init__(self, message: str, *, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class MegaportRequestError(MegaportError):
    """Raised when the HTTP request could not be completed."""

    error_code = "megaport_request_error"


class MegaportResponseError(MegaportError):
    """Raised when a response payload does not have the expected shape."""

    error_code = "megaport_response_error"


class MegaportAPIError(MegaportError):
    """Raised for any non-2xx API response."""

    error_code = "megaport_api_error"

    def __init__(
        self,
        message: str,
        *,
        status_code: int,
        method: str,
        url: str,
        trace_id: str | None = None,
    ) -> None:
        super().__init__(message, status_code=status_code)
        self.api_message = message
        self.method = method
        self.url = url
        self.trace_id = trace_id

    def __str__(self) -> str:
        if self.trace_id:
            return (
                f"{self.method} {self.url}: {self.status_code} "
                f"(trace_id {self.trace_id!r}) {self.api_message}"
            )
        return f"{self.method} {self.url}: {self.status_code} {self.api_message}"


class MegaportAuthError(MegaportAPIError):
    error_code = "megaport_auth_error"


class MegaportNotFoundError(MegaportAPIError):
    error_code = "megaport_not_found"


class MegaportAuthenticationError(MegaportError):
    """Raised when the client credentials exchange fails."""

    error_code = "megaport_authentication_error"


class MegaportValidationError(MegaportError, ValueError):
    """Raised when a request is rejected before it is sent."""

    error_code = "megaport_validation_error"

    def __init__(self, argument: str, reason: str) -> None:
        super().__init__(f"{argument} is invalid because {reason}")
        self.argument = argument
        self.reason = reason


class MegaportStateError(MegaportError):
    """Raised when a resource is not in a state that allows the operation."""

    error_code = "megaport_state_error"


class MegaportLookupError(MegaportError):
    """Raised when an in-memory lookup over fetched data finds nothing."""

    error_code = "megaport_lookup_error"


class ProvisioningWaitError(MegaportError):
    error_code = "provisioning_wait_error"

    def __init__(self, message: str, *, resource_uid: str) -> None:
        super().__init__(message)
        self.resource_uid = resource_uid


class WaitTimeoutError(ProvisioningWaitError):
    error_code = "provisioning_wait_timeout"


class WaitCancelledError(ProvisioningWaitError):
    error_code = "provisioning_wait_cancelled"
