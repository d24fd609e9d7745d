"""Internet Exchange (IX) connections attached to ports."""

from __future__ import annotations

import threading
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any

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
from megaport_client.enums import ProductType
from megaport_client.errors import MegaportResponseError
from megaport_client.services.base import (
    BaseService,
    WaitOptions,
    drop_none,
    first_order_uid,
    validate_cost_centre,
)
from megaport_client.services.port import ProductLocationDetails, parse_location_details


@dataclass(frozen=True, slots=True)
class IXBGPConnection:
    asn: int
    customer_asn: int
    customer_ip_address: str
    isp_asn: int
    isp_ip_address: str
    ix_peer_policy: str
    max_prefixes: int
    resource_name: str
    resource_type: str


@dataclass(frozen=True, slots=True)
class IXIPAddress:
    address: str
    resource_name: str
    resource_type: str
    version: int
    reverse_dns: str


@dataclass(frozen=True, slots=True)
class IX:
    id: int
    uid: str
    name: str
    location_id: int
    location_details: ProductLocationDetails | None
    term: int
    provisioning_status: str
    rate_limit: int
    promo_code: str
    create_date: datetime | None
    deploy_date: datetime | None
    secondary_name: str
    vlan: int
    mac_address: str
    ix_peer_macro: str
    asn: int
    network_service_type: str
    public_graph: bool
    usage_algorithm: str
    bgp_connections: tuple[IXBGPConnection, ...] = ()
    ip_addresses: tuple[IXIPAddress, ...] = ()
    attribute_tags: dict[str, str] = field(default_factory=dict)


@dataclass(slots=True)
class BuyIXRequest:
    port_uid: str
    name: str
    network_service_type: str
    asn: int
    mac_address: str
    rate_limit: int
    vlan: int
    shutdown: bool = False
    promo_code: str = ""
    wait_for_provision: bool = False
    wait_timeout_seconds: float | None = None


@dataclass(slots=True)
class UpdateIXRequest:
    name: str | None = None
    rate_limit: int | None = None
    cost_centre: str | None = None
    vlan: int | None = None
    mac_address: str | None = None
    asn: int | None = None
    password: str | None = None
    public_graph: bool | None = None
    reverse_dns: str | None = None
    a_end_product_uid: str | None = None
    shutdown: bool | None = None
    wait_for_update: bool = False
    wait_timeout_seconds: float | None = None

    def to_payload(self) -> dict[str, Any]:
        return drop_none(
            {
                "name": self.name,
                "rateLimit": self.rate_limit,
                "costCentre": self.cost_centre,
                "vlan": self.vlan,
                "macAddress": self.mac_address,
                "asn": self.asn,
                "password": self.password,
                "publicGraph": self.public_graph,
                "reverseDns": self.reverse_dns,
                "aEndProductUid": self.a_end_product_uid,
                "shutdown": self.shutdown,
            }
        )


class IXService(BaseService):
    def buy_ix(
        self,
        request: BuyIXRequest,
        *,
        cancel_event: threading.Event | None = None,
    ) -> str:
        order = build_ix_order(request)
        self._client.products.validate_order(order)
        data = self._client.products.execute_order(order)
        uid = first_order_uid(data, "technicalServiceUid", context="ix")

        options = WaitOptions(
            enabled=request.wait_for_provision,
            timeout_seconds=request.wait_timeout_seconds,
            cancel_event=cancel_event,
        )
        if options.enabled:
            self._wait(
                lambda: self.get_ix(uid),
                options=options,
                resource_name="IX",
                resource_uid=uid,
            )
        return uid

    def validate_ix_order(self, request: BuyIXRequest) -> None:
        self._client.products.validate_order(build_ix_order(request))

    def get_ix(self, ix_uid: str) -> IX:
        return parse_ix(self._client.products.get_product(ix_uid))

    def update_ix(
        self,
        ix_uid: str,
        request: UpdateIXRequest,
        *,
        cancel_event: threading.Event | None = None,
    ) -> IX:
        validate_cost_centre(request.cost_centre)
        envelope = self._client.call(
            "PUT",
            f"/v2/product/{ProductType.IX}/{ix_uid}",
            json_body=request.to_payload(),
        )

        options = WaitOptions(
            enabled=request.wait_for_update,
            timeout_seconds=request.wait_timeout_seconds,
            cancel_event=cancel_event,
        )
        if options.enabled:
            return self._wait(
                lambda: self.get_ix(ix_uid),
                options=options,
                resource_name="IX",
                resource_uid=ix_uid,
                action="update",
            )
        if isinstance(envelope.data, dict) and envelope.data.get("productUid"):
            return parse_ix(envelope.data)
        return self.get_ix(ix_uid)

    def delete_ix(self, ix_uid: str, *, delete_now: bool = False) -> None:
        self._client.products.delete_product(ix_uid, delete_now=delete_now)


def build_ix_order(request: BuyIXRequest) -> list[dict[str, Any]]:
    ix: dict[str, Any] = {
        "productName": request.name,
        "networkServiceType": request.network_service_type,
        "asn": request.asn,
        "macAddress": request.mac_address,
        "rateLimit": request.rate_limit,
        "vlan": request.vlan,
        "shutdown": request.shutdown,
    }
    if request.promo_code:
        ix["promoCode"] = request.promo_code
    return [{"productUid": request.port_uid, "associatedIxs": [ix]}]


def parse_ix(data: Any) -> IX:
    payload = require_mapping(data, context="ix")
    uid = coerce_str(payload.get("productUid"))
    if not uid:
        raise MegaportResponseError("ix payload missing productUid")

    resources = coerce_mapping(payload.get("resources"))
    return IX(
        id=coerce_int(payload.get("productId")),
        uid=uid,
        name=coerce_str(payload.get("productName")),
        location_id=coerce_int(payload.get("locationId")),
        location_details=parse_location_details(payload.get("locationDetail")),
        term=coerce_int(payload.get("term")),
        provisioning_status=coerce_str(payload.get("provisioningStatus")),
        rate_limit=coerce_int(payload.get("rateLimit")),
        promo_code=coerce_str(payload.get("promoCode")),
        create_date=parse_epoch_millis(payload.get("createDate")),
        deploy_date=parse_epoch_millis(payload.get("deployDate")),
        secondary_name=coerce_str(payload.get("secondaryName")),
        vlan=coerce_int(payload.get("vlan")),
        mac_address=coerce_str(payload.get("macAddress")),
        ix_peer_macro=coerce_str(payload.get("ixPeerMacro")),
        asn=coerce_int(payload.get("asn")),
        network_service_type=coerce_str(payload.get("networkServiceType")),
        public_graph=coerce_bool(payload.get("publicGraph")),
        usage_algorithm=coerce_str(payload.get("usageAlgorithm")),
        bgp_connections=tuple(
            IXBGPConnection(
                asn=coerce_int(item.get("asn")),
                customer_asn=coerce_int(item.get("customer_asn")),
                customer_ip_address=coerce_str(item.get("customer_ip_address")),
                isp_asn=coerce_int(item.get("isp_asn")),
                isp_ip_address=coerce_str(item.get("isp_ip_address")),
                ix_peer_policy=coerce_str(item.get("ix_peer_policy")),
                max_prefixes=coerce_int(item.get("max_prefixes")),
                resource_name=coerce_str(item.get("resource_name")),
                resource_type=coerce_str(item.get("resource_type")),
            )
            for item in coerce_mapping_list(resources.get("bgp_connection"))
        ),
        ip_addresses=tuple(
            IXIPAddress(
                address=coerce_str(item.get("address")),
                resource_name=coerce_str(item.get("resource_name")),
                resource_type=coerce_str(item.get("resource_type")),
                version=coerce_int(item.get("version")),
                reverse_dns=coerce_str(item.get("reverse_dns")),
            )
            for item in coerce_mapping_list(resources.get("ip_address"))
        ),
        attribute_tags=coerce_str_dict(payload.get("attributeTags")),
    )
