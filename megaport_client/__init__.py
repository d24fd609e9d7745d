"""Python client for the Megaport API."""

__version__ = "0.1.0"

from megaport_client.client import ApiEnvelope, Client  # noqa: E402
from megaport_client.config import ClientSettings, get_settings  # noqa: E402
from megaport_client.errors import (  # noqa: E402
    MegaportAPIError,
    MegaportAuthenticationError,
    MegaportAuthError,
    MegaportError,
    MegaportLookupError,
    MegaportNotFoundError,
    MegaportRequestError,
    MegaportResponseError,
    MegaportStateError,
    MegaportValidationError,
    ProvisioningWaitError,
    WaitCancelledError,
    WaitTimeoutError,
)
from megaport_client.factory import create_client  # noqa: E402

__all__ = [
    "ApiEnvelope",
    "Client",
    "ClientSettings",
    "MegaportAPIError",
    "MegaportAuthError",
    "MegaportAuthenticationError",
    "MegaportError",
    "MegaportLookupError",
    "MegaportNotFoundError",
    "MegaportRequestError",
    "MegaportResponseError",
    "MegaportStateError",
    "MegaportValidationError",
    "ProvisioningWaitError",
    "WaitCancelledError",
    "WaitTimeoutError",
    "__version__",
    "create_client",
    "get_settings",
]
