"""Megaport Cloud Router (MCR) operations."""

from __future__ import annotations

import threading
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any

from megaport_client._payload import (
    coerce_bool,
    coerce_int,
    coerce_mapping,
    coerce_str,
    coerce_str_dict,
    parse_epoch_millis,
    require_mapping,
)
from megaport_client.enums import (
    INACTIVE_SERVICE_STATES,
    MCR_PORT_SPEEDS,
    ProductType,
    is_ready_state,
)
from megaport_client.errors import MegaportResponseError, MegaportValidationError
from megaport_client.services.base import (
    BaseService,
    WaitOptions,
    order_uids,
    validate_cost_centre,
    validate_term,
)
from megaport_client.services.port import (
    PortInterface,
    ProductLocationDetails,
    parse_location_details,
    parse_port_interface,
)
from megaport_client.services.product import PrefixFilterList, PrefixFilterListSummary
from megaport_client.waiting import poll_attempts


@dataclass(frozen=True, slots=True)
class MCRVirtualRouter:
    id: int = 0
    asn: int = 0
    name: str = ""
    resource_name: str = ""
    resource_type: str = ""
    speed: int = 0


@dataclass(frozen=True, slots=True)
class MCR:
    id: int
    uid: str
    name: str
    product_type: str
    provisioning_status: str
    create_date: datetime | None
    created_by: str
    cost_centre: str
    port_speed: int
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
    virtual: bool
    locked: bool
    admin_locked: bool
    cancelable: bool
    diversity_zone: str
    interface: PortInterface
    virtual_router: MCRVirtualRouter
    location_details: ProductLocationDetails | None
    attribute_tags: dict[str, str] = field(default_factory=dict)
    resource_tags: dict[str, str] = field(default_factory=dict)


@dataclass(slots=True)
class BuyMCRRequest:
    location_id: int
    name: str
    term: int
    port_speed: int
    asn: int = 0
    diversity_zone: str = ""
    cost_centre: str = ""
    promo_code: str = ""
    resource_tags: dict[str, str] = field(default_factory=dict)
    wait_for_provision: bool = False
    wait_timeout_seconds: float | None = None


@dataclass(slots=True)
class ModifyMCRRequest:
    name: str
    cost_centre: str = ""
    marketplace_visibility: bool = False
    wait_for_update: bool = False
    wait_timeout_seconds: float | None = None


class MCRService(BaseService):
    def buy_mcr(
        self,
        request: BuyMCRRequest,
        *,
        cancel_event: threading.Event | None = None,
    ) -> list[str]:
        """Order an MCR and return the technical service UIDs from the confirmation."""
        order = build_mcr_order(request)
        data = self._client.products.execute_order([order])
        uids = order_uids(data, "technicalServiceUid", context="mcr")

        options = WaitOptions(
            enabled=request.wait_for_provision,
            timeout_seconds=request.wait_timeout_seconds,
            cancel_event=cancel_event,
        )
        if options.enabled:
            self._wait_each(uids, self.get_mcr, options=options, resource_name="MCR")
        return uids

    def validate_mcr_order(self, request: BuyMCRRequest) -> None:
        self._client.products.validate_order([build_mcr_order(request)])

    def get_mcr(self, mcr_uid: str) -> MCR:
        return parse_mcr(self._client.products.get_product(mcr_uid))

    def list_mcrs(self, *, include_inactive: bool = False) -> list[MCR]:
        mcrs: list[MCR] = []
        for item in self._client.products.list_products():
            if coerce_str(item.get("productType")).lower() != ProductType.MCR:
                continue
            mcr = parse_mcr(item)
            if not include_inactive and mcr.provisioning_status in INACTIVE_SERVICE_STATES:
                continue
            mcrs.append(mcr)
        return mcrs

    def modify_mcr(
        self,
        mcr_uid: str,
        request: ModifyMCRRequest,
        *,
        cancel_event: threading.Event | None = None,
    ) -> MCR | None:
        validate_cost_centre(request.cost_centre)
        self._client.products.modify_product(
            mcr_uid,
            product_type=ProductType.MCR,
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
            lambda: self.get_mcr(mcr_uid),
            options=options,
            resource_name="MCR",
            resource_uid=mcr_uid,
            action="update",
            is_ready=lambda mcr: (
                mcr.name == request.name and is_ready_state(mcr.provisioning_status)
            ),
        )

    def delete_mcr(self, mcr_uid: str, *, delete_now: bool = False) -> None:
        self._client.products.delete_product(mcr_uid, delete_now=delete_now)

    def restore_mcr(self, mcr_uid: str) -> None:
        self._client.products.restore_product(mcr_uid)

    def wait_for_mcr_provisioning(self, mcr_uid: str) -> MCR:
        return poll_attempts(
            lambda: self.get_mcr(mcr_uid),
            resource_name="MCR",
            resource_uid=mcr_uid,
            is_ready=lambda mcr: is_ready_state(mcr.provisioning_status),
        )

    def create_prefix_filter_list(
        self,
        mcr_uid: str,
        prefix_filter_list: PrefixFilterList,
    ) -> int | None:
        return self._client.products.create_mcr_prefix_filter_list(mcr_uid, prefix_filter_list)

    def list_prefix_filter_lists(self, mcr_uid: str) -> list[PrefixFilterListSummary]:
        return self._client.products.list_mcr_prefix_filter_lists(mcr_uid)


def build_mcr_order(request: BuyMCRRequest) -> dict[str, Any]:
    validate_term(request.term)
    if request.port_speed not in MCR_PORT_SPEEDS:
        raise MegaportValidationError(
            "port_speed",
            f"MCR speed must be one of {', '.join(str(speed) for speed in MCR_PORT_SPEEDS)} Mbps",
        )
    validate_cost_centre(request.cost_centre)

    config: dict[str, Any] = {}
    if request.asn:
        config["mcrAsn"] = request.asn

    order: dict[str, Any] = {
        "locationId": request.location_id,
        "productName": request.name,
        "term": request.term,
        "productType": ProductType.MCR.value.upper(),
        "portSpeed": request.port_speed,
        "config": config,
    }
    if request.diversity_zone:
        order["diversityZone"] = request.diversity_zone
    if request.cost_centre:
        order["costCentre"] = request.cost_centre
    if request.promo_code:
        order["promoCode"] = request.promo_code
    if request.resource_tags:
        order["resourceTags"] = [
            {"key": key, "value": value} for key, value in request.resource_tags.items()
        ]
    return order


def parse_mcr(data: Any) -> MCR:
    payload = require_mapping(data, context="mcr")
    uid = coerce_str(payload.get("productUid"))
    if not uid:
        raise MegaportResponseError("mcr payload missing productUid")

    resources = coerce_mapping(payload.get("resources"))
    router = coerce_mapping(resources.get("virtual_router"))
    return MCR(
        id=coerce_int(payload.get("productId")),
        uid=uid,
        name=coerce_str(payload.get("productName")),
        product_type=coerce_str(payload.get("productType")),
        provisioning_status=coerce_str(payload.get("provisioningStatus")),
        create_date=parse_epoch_millis(payload.get("createDate")),
        created_by=coerce_str(payload.get("createdBy")),
        cost_centre=coerce_str(payload.get("costCentre")),
        port_speed=coerce_int(payload.get("portSpeed")),
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
        virtual=coerce_bool(payload.get("virtual")),
        locked=coerce_bool(payload.get("locked")),
        admin_locked=coerce_bool(payload.get("adminLocked")),
        cancelable=coerce_bool(payload.get("cancelable")),
        diversity_zone=coerce_str(payload.get("diversityZone")),
        interface=parse_port_interface(resources.get("interface")),
        virtual_router=MCRVirtualRouter(
            id=coerce_int(router.get("id")),
            asn=coerce_int(router.get("mcrAsn")),
            name=coerce_str(router.get("name")),
            resource_name=coerce_str(router.get("resource_name")),
            resource_type=coerce_str(router.get("resource_type")),
            speed=coerce_int(router.get("speed")),
        ),
        location_details=parse_location_details(payload.get("locationDetail")),
        attribute_tags=coerce_str_dict(payload.get("attributeTags")),
        resource_tags=coerce_str_dict(payload.get("resourceTags")),
    )
