"""Service keys that let another company connect a VXC to one of our ports."""

from __future__ import annotations

import logging
from collections.abc import Mapping
from dataclasses import dataclass
from datetime import datetime
from typing import Any

from megaport_client._payload import (
    coerce_bool,
    coerce_int,
    coerce_mapping,
    coerce_mapping_list,
    coerce_str,
    parse_epoch_millis,
    require_mapping,
    to_epoch_millis,
)
from megaport_client.errors import MegaportResponseError
from megaport_client.services.base import BaseService

logger = logging.getLogger(__name__)

SERVICE_KEY_PATH = "/v2/service/key"


@dataclass(frozen=True, slots=True)
class ValidFor:
    start: datetime
    end: datetime

    def to_payload(self) -> dict[str, int]:
        return {"start": to_epoch_millis(self.start), "end": to_epoch_millis(self.end)}


@dataclass(frozen=True, slots=True)
class ServiceKey:
    key: str
    create_date: datetime | None
    company_id: int
    company_uid: str
    company_name: str
    description: str
    product_id: int
    product_uid: str
    product_name: str
    vlan: int
    max_speed: int
    pre_approved: bool
    single_use: bool
    last_used: datetime | None
    active: bool
    valid_from: datetime | None
    valid_until: datetime | None
    expired: bool
    valid: bool
    promo_code: str


@dataclass(slots=True)
class CreateServiceKeyRequest:
    """Either ``product_uid`` or ``product_id`` identifies the port."""

    max_speed: int
    product_uid: str = ""
    product_id: int = 0
    single_use: bool = False
    active: bool = False
    pre_approved: bool = False
    description: str = ""
    vlan: int = 0
    valid_for: ValidFor | None = None

    def to_payload(self) -> dict[str, Any]:
        payload: dict[str, Any] = {"singleUse": self.single_use, "maxSpeed": self.max_speed}
        if self.product_uid:
            payload["productUid"] = self.product_uid
        if self.product_id:
            payload["productId"] = self.product_id
        if self.active:
            payload["active"] = True
        if self.pre_approved:
            payload["preApproved"] = True
        if self.description:
            payload["description"] = self.description
        if self.vlan:
            payload["vlan"] = self.vlan
        if self.valid_for is not None:
            payload["validFor"] = self.valid_for.to_payload()
        return payload


@dataclass(slots=True)
class UpdateServiceKeyRequest:
    key: str
    single_use: bool
    active: bool
    product_uid: str = ""
    product_id: int = 0
    valid_for: ValidFor | None = None

    def to_payload(self) -> dict[str, Any]:
        payload: dict[str, Any] = {
            "key": self.key,
            "singleUse": self.single_use,
            "active": self.active,
        }
        if self.product_uid:
            payload["productUid"] = self.product_uid
        if self.product_id:
            payload["productId"] = self.product_id
        if self.valid_for is not None:
            payload["validFor"] = self.valid_for.to_payload()
        return payload


class ServiceKeyService(BaseService):
    def create_service_key(self, request: CreateServiceKeyRequest) -> str:
        """Create a service key and return the generated key."""
        envelope = self._client.call("POST", SERVICE_KEY_PATH, json_body=request.to_payload())
        key = coerce_str(coerce_mapping(envelope.data).get("key"))
        if not key:
            raise MegaportResponseError("service key response missing key")
        logger.debug("created service key product_uid=%s", request.product_uid)
        return key

    def list_service_keys(self, product_uid: str | None = None) -> list[ServiceKey]:
        params = {"productIdOrUid": product_uid} if product_uid else None
        envelope = self._client.call("GET", SERVICE_KEY_PATH, params=params)
        return [parse_service_key(item) for item in coerce_mapping_list(envelope.data)]

    def get_service_key(self, key: str) -> ServiceKey:
        envelope = self._client.call("GET", SERVICE_KEY_PATH, params={"key": key})
        return parse_service_key(require_mapping(envelope.data, context="service key"))

    def update_service_key(self, request: UpdateServiceKeyRequest) -> bool:
        self._client.call("PUT", SERVICE_KEY_PATH, json_body=request.to_payload())
        return True


def parse_service_key(payload: Mapping[str, Any]) -> ServiceKey:
    valid_for = coerce_mapping(payload.get("validFor"))
    return ServiceKey(
        key=coerce_str(payload.get("key")),
        create_date=parse_epoch_millis(payload.get("createDate")),
        company_id=coerce_int(payload.get("companyId")),
        company_uid=coerce_str(payload.get("companyUid")),
        company_name=coerce_str(payload.get("companyName")),
        description=coerce_str(payload.get("description")),
        product_id=coerce_int(payload.get("productId")),
        product_uid=coerce_str(payload.get("productUid")),
        product_name=coerce_str(payload.get("productName")),
        vlan=coerce_int(payload.get("vlan")),
        max_speed=coerce_int(payload.get("maxSpeed")),
        pre_approved=coerce_bool(payload.get("preApproved")),
        single_use=coerce_bool(payload.get("singleUse")),
        last_used=parse_epoch_millis(payload.get("lastUsed")),
        active=coerce_bool(payload.get("active")),
        valid_from=parse_epoch_millis(valid_for.get("start")),
        valid_until=parse_epoch_millis(valid_for.get("end")),
        expired=coerce_bool(payload.get("expired")),
        valid=coerce_bool(payload.get("valid")),
        promo_code=coerce_str(payload.get("promoCode")),
    )
