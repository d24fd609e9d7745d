"""Virtual Cross Connect (VXC) ordering, updates and partner port lookup."""

from __future__ import annotations

import threading
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, ClassVar, Protocol

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
from megaport_client.errors import MegaportLookupError, MegaportResponseError
from megaport_client.services.base import (
    BaseService,
    WaitOptions,
    drop_none,
    first_order_uid,
    validate_cost_centre,
    validate_term,
)


class PartnerConfig(Protocol):
    def to_payload(self) -> dict[str, Any]: ...


@dataclass(frozen=True, slots=True)
class AWSPartnerConfig:
    connect_type: ClassVar[str] = "AWS"

    type: str
    owner_account: str
    asn: int = 0
    amazon_asn: int = 0
    auth_key: str = ""
    prefixes: str = ""
    customer_ip_address: str = ""
    amazon_ip_address: str = ""
    name: str = ""
    hosted_connection: bool = False

    def to_payload(self) -> dict[str, Any]:
        payload: dict[str, Any] = {
            "connectType": "AWSHC" if self.hosted_connection else self.connect_type,
            "type": self.type,
            "ownerAccount": self.owner_account,
        }
        optional = {
            "asn": self.asn,
            "amazonAsn": self.amazon_asn,
            "authKey": self.auth_key,
            "prefixes": self.prefixes,
            "customerIpAddress": self.customer_ip_address,
            "amazonIpAddress": self.amazon_ip_address,
            "name": self.name,
        }
        payload.update({key: value for key, value in optional.items() if value})
        return payload


@dataclass(frozen=True, slots=True)
class AzurePeeringConfig:
    type: str
    peer_asn: str
    primary_subnet: str
    secondary_subnet: str
    vlan: int
    prefixes: str = ""
    shared_key: str = ""

    def to_payload(self) -> dict[str, Any]:
        payload: dict[str, Any] = {
            "type": self.type,
            "peer_asn": self.peer_asn,
            "primary_subnet": self.primary_subnet,
            "secondary_subnet": self.secondary_subnet,
            "vlan": self.vlan,
        }
        if self.prefixes:
            payload["prefixes"] = self.prefixes
        if self.shared_key:
            payload["shared_key"] = self.shared_key
        return payload


@dataclass(frozen=True, slots=True)
class AzurePartnerConfig:
    connect_type: ClassVar[str] = "AZURE"

    service_key: str
    peers: tuple[AzurePeeringConfig, ...] = ()

    def to_payload(self) -> dict[str, Any]:
        return {
            "connectType": self.connect_type,
            "serviceKey": self.service_key,
            "peers": [peer.to_payload() for peer in self.peers],
        }


@dataclass(frozen=True, slots=True)
class GooglePartnerConfig:
    connect_type: ClassVar[str] = "GOOGLE"

    pairing_key: str

    def to_payload(self) -> dict[str, Any]:
        return {"connectType": self.connect_type, "pairingKey": self.pairing_key}


@dataclass(frozen=True, slots=True)
class OraclePartnerConfig:
    connect_type: ClassVar[str] = "ORACLE"

    virtual_circuit_id: str

    def to_payload(self) -> dict[str, Any]:
        return {"connectType": self.connect_type, "virtualCircuitId": self.virtual_circuit_id}


@dataclass(frozen=True, slots=True)
class IpRoute:
    prefix: str
    next_hop: str
    description: str = ""

    def to_payload(self) -> dict[str, Any]:
        payload: dict[str, Any] = {"prefix": self.prefix, "nextHop": self.next_hop}
        if self.description:
            payload["description"] = self.description
        return payload


@dataclass(frozen=True, slots=True)
class BfdConfig:
    tx_interval: int = 0
    rx_interval: int = 0
    multiplier: int = 0

    def to_payload(self) -> dict[str, Any]:
        optional = {
            "txInterval": self.tx_interval,
            "rxInterval": self.rx_interval,
            "multiplier": self.multiplier,
        }
        return {key: value for key, value in optional.items() if value}


@dataclass(frozen=True, slots=True)
class BgpConnectionConfig:
    peer_asn: int
    local_ip_address: str
    peer_ip_address: str
    password: str = ""
    shutdown: bool = False
    description: str = ""
    med_in: int = 0
    med_out: int = 0
    bfd_enabled: bool = False
    export_policy: str = ""
    permit_export_to: tuple[str, ...] = ()
    deny_export_to: tuple[str, ...] = ()
    import_whitelist: int = 0
    import_blacklist: int = 0
    export_whitelist: int = 0
    export_blacklist: int = 0

    def to_payload(self) -> dict[str, Any]:
        payload: dict[str, Any] = {
            "peerAsn": self.peer_asn,
            "localIpAddress": self.local_ip_address,
            "peerIpAddress": self.peer_ip_address,
            "shutdown": self.shutdown,
            "bfdEnabled": self.bfd_enabled,
        }
        optional: dict[str, Any] = {
            "password": self.password,
            "description": self.description,
            "medIn": self.med_in,
            "medOut": self.med_out,
            "exportPolicy": self.export_policy,
            "permitExportTo": list(self.permit_export_to),
            "denyExportTo": list(self.deny_export_to),
            "importWhitelist": self.import_whitelist,
            "importBlacklist": self.import_blacklist,
            "exportWhitelist": self.export_whitelist,
            "exportBlacklist": self.export_blacklist,
        }
        payload.update({key: value for key, value in optional.items() if value})
        return payload


@dataclass(frozen=True, slots=True)
class PartnerConfigInterface:
    ip_addresses: tuple[str, ...] = ()
    ip_routes: tuple[IpRoute, ...] = ()
    nat_ip_addresses: tuple[str, ...] = ()
    bfd: BfdConfig = field(default_factory=BfdConfig)
    bgp_connections: tuple[BgpConnectionConfig, ...] = ()

    def to_payload(self) -> dict[str, Any]:
        payload: dict[str, Any] = {}
        if self.ip_addresses:
            payload["ipAddresses"] = list(self.ip_addresses)
        if self.ip_routes:
            payload["ipRoutes"] = [route.to_payload() for route in self.ip_routes]
        if self.nat_ip_addresses:
            payload["natIpAddresses"] = list(self.nat_ip_addresses)
        bfd = self.bfd.to_payload()
        if bfd:
            payload["bfd"] = bfd
        if self.bgp_connections:
            payload["bgpConnections"] = [
                connection.to_payload() for connection in self.bgp_connections
            ]
        return payload


@dataclass(frozen=True, slots=True)
class VRouterPartnerConfig:
    """BGP and addressing for a VXC end terminating on an MCR."""

    interfaces: tuple[PartnerConfigInterface, ...] = ()

    def to_payload(self) -> dict[str, Any]:
        return {"interfaces": [interface.to_payload() for interface in self.interfaces]}


@dataclass(frozen=True, slots=True)
class VXCOrderEndpoint:
    product_uid: str = ""
    vlan: int = 0
    inner_vlan: int = 0
    vnic_index: int | None = None
    partner_config: PartnerConfig | None = None

    def to_payload(self) -> dict[str, Any]:
        payload: dict[str, Any] = {}
        if self.product_uid:
            payload["productUid"] = self.product_uid
        if self.vlan:
            payload["vlan"] = self.vlan
        if self.inner_vlan:
            payload["innerVlan"] = self.inner_vlan
        if self.vnic_index is not None:
            payload["vNicIndex"] = self.vnic_index
        if self.partner_config is not None:
            payload["partnerConfig"] = self.partner_config.to_payload()
        return payload


@dataclass(frozen=True, slots=True)
class VXCEnd:
    owner_uid: str
    product_uid: str
    product_name: str
    location_id: int
    location: str
    vlan: int
    inner_vlan: int
    vnic_index: int
    secondary_name: str


@dataclass(frozen=True, slots=True)
class VXCApproval:
    status: str
    message: str
    uid: str
    type: str
    new_speed: int


@dataclass(frozen=True, slots=True)
class VXC:
    id: int
    uid: str
    service_id: int
    name: str
    product_type: str
    rate_limit: int
    distance_band: str
    provisioning_status: str
    a_end: VXCEnd
    b_end: VXCEnd
    secondary_name: str
    usage_algorithm: str
    created_by: str
    live_date: datetime | None
    create_date: datetime | None
    approval: VXCApproval
    contract_start_date: datetime | None
    contract_end_date: datetime | None
    contract_term_months: int
    company_uid: str
    company_name: str
    cost_centre: str
    shutdown: bool
    locked: bool
    admin_locked: bool
    cancelable: bool
    attribute_tags: dict[str, str] = field(default_factory=dict)
    resources: dict[str, Any] = field(default_factory=dict)


@dataclass(slots=True)
class BuyVXCRequest:
    port_uid: str
    name: str
    rate_limit: int
    term: int
    a_end: VXCOrderEndpoint = field(default_factory=VXCOrderEndpoint)
    b_end: VXCOrderEndpoint = field(default_factory=VXCOrderEndpoint)
    shutdown: bool = False
    promo_code: str = ""
    service_key: str = ""
    cost_centre: str = ""
    wait_for_provision: bool = False
    wait_timeout_seconds: float | None = None


@dataclass(slots=True)
class UpdateVXCRequest:
    """Partial update; only fields that are not ``None`` are sent."""

    name: str | None = None
    rate_limit: int | None = None
    a_end_vlan: int | None = None
    b_end_vlan: int | None = None
    a_end_product_uid: str | None = None
    b_end_product_uid: str | None = None
    cost_centre: str | None = None
    term: int | None = None
    shutdown: bool | None = None
    wait_for_update: bool = False
    wait_timeout_seconds: float | None = None

    def to_payload(self) -> dict[str, Any]:
        return drop_none(
            {
                "name": self.name,
                "rateLimit": self.rate_limit,
                "aEndVlan": self.a_end_vlan,
                "bEndVlan": self.b_end_vlan,
                "aEndProductUid": self.a_end_product_uid,
                "bEndProductUid": self.b_end_product_uid,
                "costCentre": self.cost_centre,
                "term": self.term,
                "shutdown": self.shutdown,
            }
        )


class VXCService(BaseService):
    def buy_vxc(
        self,
        request: BuyVXCRequest,
        *,
        cancel_event: threading.Event | None = None,
    ) -> str:
        data = self._client.products.execute_order(build_vxc_order(request))
        uid = first_order_uid(data, "vxcJTechnicalServiceUid", context="vxc")

        options = WaitOptions(
            enabled=request.wait_for_provision,
            timeout_seconds=request.wait_timeout_seconds,
            cancel_event=cancel_event,
        )
        if options.enabled:
            self._wait(
                lambda: self.get_vxc(uid),
                options=options,
                resource_name="VXC",
                resource_uid=uid,
            )
        return uid

    def validate_vxc_order(self, request: BuyVXCRequest) -> None:
        self._client.products.validate_order(build_vxc_order(request))

    def get_vxc(self, vxc_uid: str) -> VXC:
        return parse_vxc(self._client.products.get_product(vxc_uid))

    def delete_vxc(self, vxc_uid: str, *, delete_now: bool = False) -> None:
        self._client.products.delete_product(vxc_uid, delete_now=delete_now)

    def update_vxc(
        self,
        vxc_uid: str,
        request: UpdateVXCRequest,
        *,
        cancel_event: threading.Event | None = None,
    ) -> VXC:
        if request.term is not None:
            validate_term(request.term)
        validate_cost_centre(request.cost_centre)

        envelope = self._client.call(
            "PUT",
            f"/v3/product/{ProductType.VXC}/{vxc_uid}",
            json_body=request.to_payload(),
        )

        options = WaitOptions(
            enabled=request.wait_for_update,
            timeout_seconds=request.wait_timeout_seconds,
            cancel_event=cancel_event,
        )
        if options.enabled:
            return self._wait(
                lambda: self.get_vxc(vxc_uid),
                options=options,
                resource_name="VXC",
                resource_uid=vxc_uid,
                action="update",
                is_ready=lambda vxc: vxc.provisioning_status == ServiceState.LIVE,
            )
        if isinstance(envelope.data, dict) and envelope.data.get("productUid"):
            return parse_vxc(envelope.data)
        return self.get_vxc(vxc_uid)

    def lookup_partner_ports(
        self,
        *,
        key: str,
        port_speed: int,
        partner: str,
        product_uid: str = "",
    ) -> str:
        """Return the UID of the first free partner port that fits the requested speed."""
        envelope = self._client.call("GET", f"/v2/secure/{partner.lower()}/{key}")
        megaports = coerce_mapping_list(coerce_mapping(envelope.data).get("megaports"))
        for item in megaports:
            if coerce_int(item.get("vxc")) != 0:
                continue
            if coerce_int(item.get("portSpeed")) < port_speed:
                continue
            candidate = coerce_str(item.get("productUid"))
            if not product_uid or candidate == product_uid:
                return candidate

        raise MegaportLookupError(
            f"no available {partner} ports for key with speed of at least {port_speed} Mbps"
        )


def build_vxc_order(request: BuyVXCRequest) -> list[dict[str, Any]]:
    validate_term(request.term)
    validate_cost_centre(request.cost_centre)

    vxc: dict[str, Any] = {
        "productName": request.name,
        "rateLimit": request.rate_limit,
        "term": request.term,
        "shutdown": request.shutdown,
        "aEnd": request.a_end.to_payload(),
        "bEnd": request.b_end.to_payload(),
    }
    if request.promo_code:
        vxc["promoCode"] = request.promo_code
    if request.service_key:
        vxc["serviceKey"] = request.service_key
    if request.cost_centre:
        vxc["costCentre"] = request.cost_centre
    return [{"productUid": request.port_uid, "associatedVxcs": [vxc]}]


def parse_vxc(data: Any) -> VXC:
    payload = require_mapping(data, context="vxc")
    uid = coerce_str(payload.get("productUid"))
    if not uid:
        raise MegaportResponseError("vxc payload missing productUid")

    approval = coerce_mapping(payload.get("vxcApproval"))
    return VXC(
        id=coerce_int(payload.get("productId")),
        uid=uid,
        service_id=coerce_int(payload.get("nServiceId")),
        name=coerce_str(payload.get("productName")),
        product_type=coerce_str(payload.get("productType")),
        rate_limit=coerce_int(payload.get("rateLimit")),
        distance_band=coerce_str(payload.get("distanceBand")),
        provisioning_status=coerce_str(payload.get("provisioningStatus")),
        a_end=_parse_end(payload.get("aEnd")),
        b_end=_parse_end(payload.get("bEnd")),
        secondary_name=coerce_str(payload.get("secondaryName")),
        usage_algorithm=coerce_str(payload.get("usageAlgorithm")),
        created_by=coerce_str(payload.get("createdBy")),
        live_date=parse_epoch_millis(payload.get("liveDate")),
        create_date=parse_epoch_millis(payload.get("createDate")),
        approval=VXCApproval(
            status=coerce_str(approval.get("status")),
            message=coerce_str(approval.get("message")),
            uid=coerce_str(approval.get("uid")),
            type=coerce_str(approval.get("type")),
            new_speed=coerce_int(approval.get("newSpeed")),
        ),
        contract_start_date=parse_epoch_millis(payload.get("contractStartDate")),
        contract_end_date=parse_epoch_millis(payload.get("contractEndDate")),
        contract_term_months=coerce_int(payload.get("contractTermMonths")),
        company_uid=coerce_str(payload.get("companyUid")),
        company_name=coerce_str(payload.get("companyName")),
        cost_centre=coerce_str(payload.get("costCentre")),
        shutdown=coerce_bool(payload.get("shutdown")),
        locked=coerce_bool(payload.get("locked")),
        admin_locked=coerce_bool(payload.get("adminLocked")),
        cancelable=coerce_bool(payload.get("cancelable")),
        attribute_tags=coerce_str_dict(payload.get("attributeTags")),
        resources=dict(coerce_mapping(payload.get("resources"))),
    )


def _parse_end(value: Any) -> VXCEnd:
    end = coerce_mapping(value)
    return VXCEnd(
        owner_uid=coerce_str(end.get("ownerUid")),
        product_uid=coerce_str(end.get("productUid")),
        product_name=coerce_str(end.get("productName")),
        location_id=coerce_int(end.get("locationId")),
        location=coerce_str(end.get("location")),
        vlan=coerce_int(end.get("vlan")),
        inner_vlan=coerce_int(end.get("innerVlan")),
        vnic_index=coerce_int(end.get("vNicIndex")),
        secondary_name=coerce_str(end.get("secondaryName")),
    )
