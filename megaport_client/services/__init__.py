"""Per-resource service exports."""

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

__all__ = [
    "BillingMarketService",
    "IXService",
    "LocationService",
    "MCRService",
    "MVEService",
    "ManagedAccountService",
    "PartnerService",
    "PortService",
    "ProductService",
    "ServiceKeyService",
    "UserManagementService",
    "VXCService",
]
