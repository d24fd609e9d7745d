"""Product types, provisioning states and order constants."""

from enum import StrEnum


class ProductType(StrEnum):
    MEGAPORT = "megaport"
    VXC = "vxc"
    MCR = "mcr2"
    MVE = "mve"
    IX = "ix"


class ServiceState(StrEnum):
    NEW = "NEW"
    DESIGN = "DESIGN"
    DEPLOYABLE = "DEPLOYABLE"
    CONFIGURED = "CONFIGURED"
    LIVE = "LIVE"
    DECOMMISSIONED = "DECOMMISSIONED"
    CANCELLED = "CANCELLED"


READY_SERVICE_STATES = frozenset({ServiceState.CONFIGURED, ServiceState.LIVE})
INACTIVE_SERVICE_STATES = frozenset({ServiceState.CANCELLED, ServiceState.DECOMMISSIONED})

MODIFIABLE_PRODUCT_TYPES = frozenset(
    {
        ProductType.MEGAPORT,
        ProductType.MCR,
        ProductType.MVE,
    }
)

VALID_CONTRACT_TERMS = (1, 12, 24, 36)
MCR_PORT_SPEEDS = (1000, 2500, 5000, 10000)
MAX_COST_CENTRE_LENGTH = 255


def is_ready_state(status: str | None) -> bool:
    return status in READY_SERVICE_STATES


def is_valid_term(term: int) -> bool:
    return term in VALID_CONTRACT_TERMS
