"""Megaport Virtual Edge (MVE) ordering, vendor configuration and catalogue lookups."""

from __future__ import annotations

import threading
from collections.abc import Sequence
from dataclasses import dataclass, field, fields
from datetime import datetime
from enum import StrEnum
from typing import Any, ClassVar

from megaport_client._payload import (
    coerce_bool,
    coerce_int,
    coerce_mapping,
    coerce_mapping_list,
    coerce_str,
    coerce_str_dict,
    parse_epoch_millis,
    require_mapping,
)
from megaport_client.enums import ProductType, ServiceState
from megaport_client.errors import MegaportResponseError
from megaport_client.services.base import (
    BaseService,
    WaitOptions,
    first_order_uid,
    validate_cost_centre,
    validate_term,
)
from megaport_client.services.port import (
    PortInterface,
    ProductLocationDetails,
    parse_location_details,
    parse_port_interface,
)


class MVESize(StrEnum):
    SMALL = "SMALL"
    MEDIUM = "MEDIUM"
    LARGE = "LARGE"
    X_LARGE_12 = "X_LARGE_12"


@dataclass(frozen=True, slots=True, kw_only=True)
class VendorConfig:
    """Common vendor image selection; subclasses add the vendor's bootstrap fields.

    Empty optional fields are left out of the order payload.
    """

    vendor: ClassVar[str] = ""

    image_id: int
    product_size: str = ""
    mve_label: str = ""

    def to_payload(self) -> dict[str, Any]:
        payload: dict[str, Any] = {
            "vendor": self.vendor,
            "imageId": self.image_id,
            "productSize": self.product_size,
        }
        for item in fields(self):
            if item.name in {"image_id", "product_size"}:
                continue
            value = getattr(self, item.name)
            if value in ("", None) or value is False:
                continue
            payload[_camel_case(item.name)] = value
        return payload


@dataclass(frozen=True, slots=True, kw_only=True)
class ArubaConfig(VendorConfig):
    vendor: ClassVar[str] = "ARUBA"

    account_name: str = ""
    account_key: str = ""
    system_tag: str = ""


@dataclass(frozen=True, slots=True, kw_only=True)
class AviatrixConfig(VendorConfig):
    vendor: ClassVar[str] = "AVIATRIX"

    cloud_init: str = ""


@dataclass(frozen=True, slots=True, kw_only=True)
class CiscoConfig(VendorConfig):
    vendor: ClassVar[str] = "CISCO"

    manage_locally: bool = False
    admin_ssh_public_key: str = ""
    ssh_public_key: str = ""
    cloud_init: str = ""
    fmc_ip_address: str = ""
    fmc_registration_key: str = ""
    fmc_nat_id: str = ""


@dataclass(frozen=True, slots=True, kw_only=True)
class FortinetConfig(VendorConfig):
    vendor: ClassVar[str] = "FORTINET"

    admin_ssh_public_key: str = ""
    ssh_public_key: str = ""
    license_data: str = ""


@dataclass(frozen=True, slots=True, kw_only=True)
class PaloAltoConfig(VendorConfig):
    vendor: ClassVar[str] = "PALO_ALTO"

    admin_ssh_public_key: str = ""
    ssh_public_key: str = ""
    admin_password_hash: str = ""
    license_data: str = ""


@dataclass(frozen=True, slots=True, kw_only=True)
class PrismaConfig(VendorConfig):
    vendor: ClassVar[str] = "PRISMA"

    ion_key: str = ""
    secret_key: str = ""


@dataclass(frozen=True, slots=True, kw_only=True)
class SixwindVSRConfig(VendorConfig):
    vendor: ClassVar[str] = "6WIND"

    ssh_public_key: str = ""


@dataclass(frozen=True, slots=True, kw_only=True)
class VersaConfig(VendorConfig):
    vendor: ClassVar[str] = "VERSA"

    director_address: str = ""
    controller_address: str = ""
    local_auth: str = ""
    remote_auth: str = ""
    serial_number: str = ""


@dataclass(frozen=True, slots=True, kw_only=True)
class VmwareConfig(VendorConfig):
    vendor: ClassVar[str] = "VMWARE"

    admin_ssh_public_key: str = ""
    ssh_public_key: str = ""
    vco_address: str = ""
    vco_activation_code: str = ""


@dataclass(frozen=True, slots=True, kw_only=True)
class MerakiConfig(VendorConfig):
    vendor: ClassVar[str] = "MERAKI"

    token: str = ""


@dataclass(frozen=True, slots=True)
class MVENetworkInterface:
    description: str
    vlan: int = 0

    def to_payload(self) -> dict[str, Any]:
        return {"description": self.description, "vlan": self.vlan}


DEFAULT_MVE_VNICS = (MVENetworkInterface(description="Data Plane", vlan=0),)


@dataclass(frozen=True, slots=True)
class MVEVirtualMachineImage:
    id: int
    vendor: str
    product: str
    version: str


@dataclass(frozen=True, slots=True)
class MVEVirtualMachine:
    id: int
    cpu_count: int
    image: MVEVirtualMachineImage | None
    resource_type: str
    up: bool
    vnics: tuple[MVENetworkInterface, ...]


@dataclass(frozen=True, slots=True)
class MVE:
    id: int
    uid: str
    name: str
    product_type: str
    provisioning_status: str
    create_date: datetime | None
    created_by: str
    terminate_date: datetime | None
    live_date: datetime | None
    market: str
    location_id: int
    usage_algorithm: str
    marketplace_visibility: bool
    vxc_permitted: bool
    vxc_auto_approval: bool
    secondary_name: str
    company_uid: str
    company_name: str
    contract_start_date: datetime | None
    contract_end_date: datetime | None
    contract_term_months: int
    cost_centre: str
    virtual: bool
    buyout_port: bool
    locked: bool
    admin_locked: bool
    cancelable: bool
    vendor: str
    size: str
    diversity_zone: str
    network_interfaces: tuple[MVENetworkInterface, ...]
    interface: PortInterface
    virtual_machines: tuple[MVEVirtualMachine, ...]
    location_details: ProductLocationDetails | None
    associated_vxc_uids: tuple[str, ...] = ()
    associated_ix_uids: tuple[str, ...] = ()
    attribute_tags: dict[str, str] = field(default_factory=dict)


@dataclass(frozen=True, slots=True)
class MVEImage:
    id: int
    version: str
    product: str
    vendor: str
    vendor_description: str
    release_image: bool
    product_code: str
    available_sizes: tuple[str, ...]


@dataclass(frozen=True, slots=True)
class MVESizeDetails:
    size: str
    label: str
    cpu_core_count: int
    ram_gb: int


@dataclass(slots=True)
class BuyMVERequest:
    location_id: int
    name: str
    term: int
    vendor_config: VendorConfig
    vnics: Sequence[MVENetworkInterface] = ()
    diversity_zone: str = ""
    promo_code: str = ""
    cost_centre: str = ""
    resource_tags: dict[str, str] = field(default_factory=dict)
    wait_for_provision: bool = False
    wait_timeout_seconds: float | None = None


@dataclass(slots=True)
class ModifyMVERequest:
    name: str
    cost_centre: str = ""
    marketplace_visibility: bool = False
    wait_for_update: bool = False
    wait_timeout_seconds: float | None = None


class MVEService(BaseService):
    def buy_mve(
        self,
        request: BuyMVERequest,
        *,
        cancel_event: threading.Event | None = None,
    ) -> str:
        data = self._client.products.execute_order([build_mve_order(request)])
        uid = first_order_uid(data, "technicalServiceUid", context="mve")

        options = WaitOptions(
            enabled=request.wait_for_provision,
            timeout_seconds=request.wait_timeout_seconds,
            cancel_event=cancel_event,
        )
        if options.enabled:
            self._wait(
                lambda: self.get_mve(uid),
                options=options,
                resource_name="MVE",
                resource_uid=uid,
            )
        return uid

    def validate_mve_order(self, request: BuyMVERequest) -> None:
        self._client.products.validate_order([build_mve_order(request)])

    def get_mve(self, mve_uid: str) -> MVE:
        return parse_mve(self._client.products.get_product(mve_uid))

    def list_mves(self) -> list[MVE]:
        return [
            parse_mve(item)
            for item in self._client.products.list_products()
            if coerce_str(item.get("productType")).lower() == ProductType.MVE
        ]

    def modify_mve(
        self,
        mve_uid: str,
        request: ModifyMVERequest,
        *,
        cancel_event: threading.Event | None = None,
    ) -> MVE | None:
        validate_cost_centre(request.cost_centre)
        self._client.products.modify_product(
            mve_uid,
            product_type=ProductType.MVE,
            name=request.name,
            cost_centre=request.cost_centre,
            marketplace_visibility=request.marketplace_visibility,
        )

        options = WaitOptions(
            enabled=request.wait_for_update,
            timeout_seconds=request.wait_timeout_seconds,
            cancel_event=cancel_event,
        )
        if not options.enabled:
            return None
        return self._wait(
            lambda: self.get_mve(mve_uid),
            options=options,
            resource_name="MVE",
            resource_uid=mve_uid,
            action="update",
            is_ready=lambda mve: mve.name == request.name
            and mve.provisioning_status == ServiceState.LIVE,
        )

    def delete_mve(self, mve_uid: str) -> None:
        self._client.products.delete_product(mve_uid, delete_now=True)

    def list_mve_images(self) -> list[MVEImage]:
        envelope = self._client.call("GET", "/v4/product/mve/images")
        return parse_mve_images(envelope.data)

    def list_available_mve_sizes(self) -> list[MVESizeDetails]:
        envelope = self._client.call("GET", "/v3/product/mve/variants")
        return [
            MVESizeDetails(
                size=coerce_str(item.get("size")),
                label=coerce_str(item.get("label")),
                cpu_core_count=coerce_int(item.get("cpuCoreCount")),
                ram_gb=coerce_int(item.get("ramGB")),
            )
            for item in coerce_mapping_list(envelope.data)
        ]


def build_mve_order(request: BuyMVERequest) -> dict[str, Any]:
    validate_term(request.term)
    validate_cost_centre(request.cost_centre)

    vnics = tuple(request.vnics) or DEFAULT_MVE_VNICS
    order: dict[str, Any] = {
        "locationId": request.location_id,
        "productName": request.name,
        "term": request.term,
        "productType": ProductType.MVE.value.upper(),
        "vnics": [vnic.to_payload() for vnic in vnics],
        "vendorConfig": request.vendor_config.to_payload(),
        "config": {"diversityZone": request.diversity_zone} if request.diversity_zone else {},
    }
    if request.promo_code:
        order["promoCode"] = request.promo_code
    if request.cost_centre:
        order["costCentre"] = request.cost_centre
    if request.resource_tags:
        order["resourceTags"] = [
            {"key": key, "value": value} for key, value in request.resource_tags.items()
        ]
    return order


def parse_mve_images(data: Any) -> list[MVEImage]:
    """Flatten the vendor/product groups into one image per version."""
    groups = coerce_mapping_list(coerce_mapping(data).get("mveImages"))
    images: list[MVEImage] = []
    for group in groups:
        product = coerce_str(group.get("product"))
        vendor = coerce_str(group.get("vendor"))
        for image in coerce_mapping_list(group.get("images")):
            images.append(
                MVEImage(
                    id=coerce_int(image.get("id")),
                    version=coerce_str(image.get("version")),
                    product=product,
                    vendor=vendor,
                    vendor_description=coerce_str(image.get("vendorDescription")),
                    release_image=coerce_bool(image.get("releaseImage")),
                    product_code=coerce_str(image.get("productCode")),
                    available_sizes=tuple(
                        coerce_str(size) for size in image.get("availableSizes") or ()
                    ),
                )
            )
    return images


def parse_mve(data: Any) -> MVE:
    payload = require_mapping(data, context="mve")
    uid = coerce_str(payload.get("productUid"))
    if not uid:
        raise MegaportResponseError("mve payload missing productUid")

    resources = coerce_mapping(payload.get("resources"))
    return MVE(
        id=coerce_int(payload.get("productId")),
        uid=uid,
        name=coerce_str(payload.get("productName")),
        product_type=coerce_str(payload.get("productType")),
        provisioning_status=coerce_str(payload.get("provisioningStatus")),
        create_date=parse_epoch_millis(payload.get("createDate")),
        created_by=coerce_str(payload.get("createdBy")),
        terminate_date=parse_epoch_millis(payload.get("terminateDate")),
        live_date=parse_epoch_millis(payload.get("liveDate")),
        market=coerce_str(payload.get("market")),
        location_id=coerce_int(payload.get("locationId")),
        usage_algorithm=coerce_str(payload.get("usageAlgorithm")),
        marketplace_visibility=coerce_bool(payload.get("marketplaceVisibility")),
        vxc_permitted=coerce_bool(payload.get("vxcpermitted")),
        vxc_auto_approval=coerce_bool(payload.get("vxcAutoApproval")),
        secondary_name=coerce_str(payload.get("secondaryName")),
        company_uid=coerce_str(payload.get("companyUid")),
        company_name=coerce_str(payload.get("companyName")),
        contract_start_date=parse_epoch_millis(payload.get("contractStartDate")),
        contract_end_date=parse_epoch_millis(payload.get("contractEndDate")),
        contract_term_months=coerce_int(payload.get("contractTermMonths")),
        cost_centre=coerce_str(payload.get("costCentre")),
        virtual=coerce_bool(payload.get("virtual")),
        buyout_port=coerce_bool(payload.get("buyoutPort")),
        locked=coerce_bool(payload.get("locked")),
        admin_locked=coerce_bool(payload.get("adminLocked")),
        cancelable=coerce_bool(payload.get("cancelable")),
        vendor=coerce_str(payload.get("vendor")),
        size=coerce_str(payload.get("mveSize")),
        diversity_zone=coerce_str(payload.get("diversityZone")),
        network_interfaces=_parse_vnics(payload.get("vnics")),
        interface=parse_port_interface(resources.get("interface")),
        virtual_machines=tuple(
            _parse_virtual_machine(item)
            for item in coerce_mapping_list(resources.get("virtual_machine"))
        ),
        location_details=parse_location_details(payload.get("locationDetail")),
        associated_vxc_uids=_associated_uids(payload.get("associatedVxcs")),
        associated_ix_uids=_associated_uids(payload.get("associatedIxs")),
        attribute_tags=coerce_str_dict(payload.get("attributeTags")),
    )


def _parse_vnics(value: Any) -> tuple[MVENetworkInterface, ...]:
    return tuple(
        MVENetworkInterface(
            description=coerce_str(item.get("description")),
            vlan=coerce_int(item.get("vlan")),
        )
        for item in coerce_mapping_list(value)
    )


def _parse_virtual_machine(data: Any) -> MVEVirtualMachine:
    payload = coerce_mapping(data)
    image_payload = coerce_mapping(payload.get("image"))
    return MVEVirtualMachine(
        id=coerce_int(payload.get("id")),
        cpu_count=coerce_int(payload.get("cpu_count")),
        image=(
            MVEVirtualMachineImage(
                id=coerce_int(image_payload.get("id")),
                vendor=coerce_str(image_payload.get("vendor")),
                product=coerce_str(image_payload.get("product")),
                version=coerce_str(image_payload.get("version")),
            )
            if image_payload
            else None
        ),
        resource_type=coerce_str(payload.get("resource_type")),
        up=coerce_bool(payload.get("up")),
        vnics=_parse_vnics(payload.get("vnics")),
    )


def _associated_uids(value: Any) -> tuple[str, ...]:
    uids: list[str] = []
    for item in coerce_mapping_list(value):
        uid = coerce_str(item.get("productUid"))
        if uid:
            uids.append(uid)
    return tuple(uids)


def _camel_case(name: str) -> str:
    head, *rest = name.split("_")
    return head + "".join(part.capitalize() for part in rest)
