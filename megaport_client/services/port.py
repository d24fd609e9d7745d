"""Port ordering, lookup and lifecycle operations."""

from __future__ import annotations

import logging
import threading
import time
from collections.abc import Mapping
from dataclasses import dataclass, field, replace
from datetime import datetime
from typing import Any

from megaport_client._payload import (
    coerce_bool,
    coerce_int,
    coerce_int_list,
    coerce_mapping,
    coerce_str,
    coerce_str_dict,
    parse_epoch_millis,
    require_mapping,
)
from megaport_client.enums import ProductType, ServiceState, is_ready_state
from megaport_client.errors import (
    MegaportResponseError,
    MegaportStateError,
    MegaportValidationError,
)
from megaport_client.services.base import (
    BaseService,
    WaitOptions,
    order_uids,
    validate_cost_centre,
    validate_term,
)
from megaport_client.waiting import poll_attempts

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class ProductLocationDetails:
    name: str
    city: str
    metro: str
    country: str


@dataclass(frozen=True, slots=True)
class PortInterface:
    demarcation: str = ""
    description: str = ""
    id: int = 0
    loa_template: str = ""
    media: str = ""
    name: str = ""
    port_speed: int = 0
    resource_name: str = ""
    resource_type: str = ""
    up: int = 0


@dataclass(frozen=True, slots=True)
class Port:
    id: int
    uid: str
    name: str
    product_type: str
    provisioning_status: str
    create_date: datetime | None
    created_by: str
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
    lag_primary: bool
    lag_id: int
    aggregation_id: int
    company_uid: str
    company_name: str
    cost_centre: str
    contract_start_date: datetime | None
    contract_end_date: datetime | None
    contract_term_months: int
    virtual: bool
    buyout_port: bool
    locked: bool
    admin_locked: bool
    cancelable: bool
    diversity_zone: str
    interface: PortInterface
    location_details: ProductLocationDetails | None
    resource_tags: dict[str, str] = field(default_factory=dict)
    attribute_tags: dict[str, str] = field(default_factory=dict)


@dataclass(slots=True)
class BuyPortRequest:
    name: str
    term: int
    port_speed: int
    location_id: int
    market: str = ""
    is_lag: bool = False
    lag_count: int = 0
    is_private: bool = False
    diversity_zone: str = ""
    cost_centre: str = ""
    promo_code: str = ""
    resource_tags: dict[str, str] = field(default_factory=dict)
    wait_for_provision: bool = False
    wait_timeout_seconds: float | None = None


@dataclass(frozen=True, slots=True)
class BuyPortResult:
    technical_service_uids: tuple[str, ...]

    @property
    def technical_service_uid(self) -> str:
        return self.technical_service_uids[0]


class PortService(BaseService):
    def buy_port(
        self,
        request: BuyPortRequest,
        *,
        cancel_event: threading.Event | None = None,
    ) -> BuyPortResult:
        order = self._build_order(request)
        data = self._client.products.execute_order([order])
        uids = tuple(order_uids(data, "technicalServiceUid", context="port"))

        options = WaitOptions(
            enabled=request.wait_for_provision,
            timeout_seconds=request.wait_timeout_seconds,
            cancel_event=cancel_event,
        )
        if options.enabled:
            self._wait_each(uids, self.get_port, options=options, resource_name="port")
        return BuyPortResult(technical_service_uids=uids)

    def buy_single_port(
        self,
        request: BuyPortRequest,
        *,
        cancel_event: threading.Event | None = None,
    ) -> BuyPortResult:
        return self.buy_port(
            replace(request, is_lag=False, lag_count=0), cancel_event=cancel_event
        )

    def buy_lag_port(
        self,
        request: BuyPortRequest,
        *,
        cancel_event: threading.Event | None = None,
    ) -> BuyPortResult:
        if request.lag_count < 1:
            raise MegaportValidationError("lag_count", "a LAG needs at least one member port")
        return self.buy_port(replace(request, is_lag=True), cancel_event=cancel_event)

    def validate_port_order(self, request: BuyPortRequest) -> None:
        self._client.products.validate_order([self._build_order(request)])

    def list_ports(self) -> list[Port]:
        ports: list[Port] = []
        for item in self._client.products.list_products():
            if coerce_str(item.get("productType")).lower() != ProductType.MEGAPORT:
                continue
            try:
                ports.append(parse_port(item))
            except MegaportResponseError as exc:
                logger.warning("could not parse product as port: %s", exc)
        return ports

    def get_port(self, port_uid: str) -> Port:
        return parse_port(self._client.products.get_product(port_uid))

    def modify_port(
        self,
        port_uid: str,
        *,
        name: str,
        cost_centre: str = "",
        marketplace_visibility: bool = False,
        wait_for_update: bool = False,
        wait_timeout_seconds: float | None = None,
        cancel_event: threading.Event | None = None,
    ) -> Port | None:
        validate_cost_centre(cost_centre)
        self._client.products.modify_product(
            port_uid,
            product_type=ProductType.MEGAPORT,
            name=name,
            cost_centre=cost_centre,
            marketplace_visibility=marketplace_visibility,
        )

        options = WaitOptions(
            enabled=wait_for_update,
            timeout_seconds=wait_timeout_seconds,
            cancel_event=cancel_event,
        )
        if not options.enabled:
            return None
        return self._wait(
            lambda: self.get_port(port_uid),
            options=options,
            resource_name="port",
            resource_uid=port_uid,
            action="update",
            is_ready=lambda port: port.name == name and is_ready_state(port.provisioning_status),
        )

    def delete_port(self, port_uid: str, *, delete_now: bool = False) -> None:
        self._client.products.delete_product(port_uid, delete_now=delete_now)

    def restore_port(self, port_uid: str) -> None:
        self._client.products.restore_product(port_uid)

    def lock_port(self, port_uid: str) -> None:
        port = self.get_port(port_uid)
        if port.locked:
            raise MegaportStateError(f"port {port_uid} is already locked")
        self._client.products.manage_product_lock(port_uid, should_lock=True)

    def unlock_port(self, port_uid: str) -> None:
        port = self.get_port(port_uid)
        if not port.locked:
            raise MegaportStateError(f"port {port_uid} is not locked")
        self._client.products.manage_product_lock(port_uid, should_lock=False)

    def check_port_vlan_availability(self, port_uid: str, vlan: int) -> bool:
        envelope = self._client.call(
            "GET",
            f"/v2/product/port/{port_uid}/vlan",
            params={"vlan": vlan},
        )
        return vlan in coerce_int_list(envelope.data)

    def wait_for_port_provisioning(self, port_uid: str) -> Port:
        return poll_attempts(
            lambda: self.get_port(port_uid),
            resource_name="port",
            resource_uid=port_uid,
            is_ready=lambda port: port.provisioning_status == ServiceState.LIVE,
        )

    def _build_order(self, request: BuyPortRequest) -> dict[str, Any]:
        validate_term(request.term)
        validate_cost_centre(request.cost_centre)

        order: dict[str, Any] = {
            "productName": request.name,
            "term": request.term,
            "productType": "MEGAPORT",
            "portSpeed": request.port_speed,
            "locationId": request.location_id,
            "createDate": int(time.time() * 1000),
            "virtual": False,
            "market": request.market,
            "marketplaceVisibility": not request.is_private,
            "config": {"diversityZone": request.diversity_zone} if request.diversity_zone else {},
        }
        if request.is_lag and request.lag_count:
            order["lagPortCount"] = request.lag_count
        if request.cost_centre:
            order["costCentre"] = request.cost_centre
        if request.promo_code:
            order["promoCode"] = request.promo_code
        if request.resource_tags:
            order["resourceTags"] = [
                {"key": key, "value": value} for key, value in request.resource_tags.items()
            ]
        return order


def parse_location_details(value: Any) -> ProductLocationDetails | None:
    if not isinstance(value, Mapping):
        return None
    return ProductLocationDetails(
        name=coerce_str(value.get("name")),
        city=coerce_str(value.get("city")),
        metro=coerce_str(value.get("metro")),
        country=coerce_str(value.get("country")),
    )


def parse_port_interface(value: Any) -> PortInterface:
    # Ports report one interface object; some products wrap it in a list.
    if isinstance(value, list):
        value = value[0] if value else {}
    data = coerce_mapping(value)
    return PortInterface(
        demarcation=coerce_str(data.get("demarcation")),
        description=coerce_str(data.get("description")),
        id=coerce_int(data.get("id")),
        loa_template=coerce_str(data.get("loa_template")),
        media=coerce_str(data.get("media")),
        name=coerce_str(data.get("name")),
        port_speed=coerce_int(data.get("port_speed")),
        resource_name=coerce_str(data.get("resource_name")),
        resource_type=coerce_str(data.get("resource_type")),
        up=coerce_int(data.get("up")),
    )


def parse_port(data: Any) -> Port:
    payload = require_mapping(data, context="port")
    uid = coerce_str(payload.get("productUid"))
    if not uid:
        raise MegaportResponseError("port payload missing productUid")

    resources = coerce_mapping(payload.get("resources"))
    return Port(
        id=coerce_int(payload.get("productId")),
        uid=uid,
        name=coerce_str(payload.get("productName")),
        product_type=coerce_str(payload.get("productType")),
        provisioning_status=coerce_str(payload.get("provisioningStatus")),
        create_date=parse_epoch_millis(payload.get("createDate")),
        created_by=coerce_str(payload.get("createdBy")),
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
        lag_primary=coerce_bool(payload.get("lagPrimary")),
        lag_id=coerce_int(payload.get("lagId")),
        aggregation_id=coerce_int(payload.get("aggregationId")),
        company_uid=coerce_str(payload.get("companyUid")),
        company_name=coerce_str(payload.get("companyName")),
        cost_centre=coerce_str(payload.get("costCentre")),
        contract_start_date=parse_epoch_millis(payload.get("contractStartDate")),
        contract_end_date=parse_epoch_millis(payload.get("contractEndDate")),
        contract_term_months=coerce_int(payload.get("contractTermMonths")),
        virtual=coerce_bool(payload.get("virtual")),
        buyout_port=coerce_bool(payload.get("buyoutPort")),
        locked=coerce_bool(payload.get("locked")),
        admin_locked=coerce_bool(payload.get("adminLocked")),
        cancelable=coerce_bool(payload.get("cancelable")),
        diversity_zone=coerce_str(payload.get("diversityZone")),
        interface=parse_port_interface(resources.get("interface")),
        location_details=parse_location_details(payload.get("locationDetail")),
        resource_tags=coerce_str_dict(payload.get("resourceTags")),
        attribute_tags=coerce_str_dict(payload.get("attributeTags")),
    )
