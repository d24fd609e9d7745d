"""Generic product endpoints shared by ports, MCRs, MVEs, VXCs and IXs."""

from __future__ import annotations

import logging
import threading
from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field
from typing import Any

from megaport_client._payload import (
    coerce_int,
    coerce_mapping_list,
    coerce_optional_int,
    coerce_str,
    require_mapping,
)
from megaport_client.enums import MODIFIABLE_PRODUCT_TYPES, ProductType
from megaport_client.errors import MegaportValidationError
from megaport_client.services.base import BaseService, WaitOptions

logger = logging.getLogger(__name__)

ORDER_BUY_PATH = "/v3/networkdesign/buy"
ORDER_VALIDATE_PATH = "/v3/networkdesign/validate"


@dataclass(frozen=True, slots=True)
class PrefixListEntry:
    action: str
    prefix: str
    ge: int | None = None
    le: int | None = None

    def to_payload(self) -> dict[str, Any]:
        payload: dict[str, Any] = {"action": self.action, "prefix": self.prefix}
        if self.ge:
            payload["ge"] = self.ge
        if self.le:
            payload["le"] = self.le
        return payload


@dataclass(frozen=True, slots=True)
class PrefixFilterList:
    """A prefix filter list as submitted to an MCR."""

    description: str
    address_family: str
    entries: tuple[PrefixListEntry, ...] = field(default_factory=tuple)

    def to_payload(self) -> dict[str, Any]:
        return {
            "description": self.description,
            "addressFamily": self.address_family,
            "entries": [entry.to_payload() for entry in self.entries],
        }


@dataclass(frozen=True, slots=True)
class PrefixFilterListSummary:
    id: int
    description: str
    address_family: str


@dataclass(frozen=True, slots=True)
class ProductSummary:
    uid: str
    name: str
    product_type: str
    provisioning_status: str


class ProductService(BaseService):
    def execute_order(self, orders: Sequence[Mapping[str, Any]]) -> Any:
        """Submit an order to the network design endpoint and return its ``data``."""
        envelope = self._client.call("POST", ORDER_BUY_PATH, json_body=list(orders))
        logger.debug("executed product order items=%d", len(orders))
        return envelope.data

    def validate_order(self, orders: Sequence[Mapping[str, Any]]) -> Any:
        envelope = self._client.call("POST", ORDER_VALIDATE_PATH, json_body=list(orders))
        return envelope.data

    def list_products(self) -> list[Mapping[str, Any]]:
        envelope = self._client.call("GET", "/v2/products")
        return coerce_mapping_list(envelope.data)

    def get_product(self, product_uid: str) -> Mapping[str, Any]:
        envelope = self._client.call("GET", f"/v2/product/{product_uid}")
        return require_mapping(envelope.data, context="product")

    def get_product_type(self, product_uid: str) -> str:
        return coerce_str(self.get_product(product_uid).get("productType"))

    def get_product_summary(self, product_uid: str) -> ProductSummary:
        payload = self.get_product(product_uid)
        return ProductSummary(
            uid=coerce_str(payload.get("productUid"), product_uid),
            name=coerce_str(payload.get("productName")),
            product_type=coerce_str(payload.get("productType")),
            provisioning_status=coerce_str(payload.get("provisioningStatus")),
        )

    def wait_for_product(
        self,
        product_uid: str,
        *,
        timeout_seconds: float | None = None,
        cancel_event: threading.Event | None = None,
    ) -> ProductSummary:
        """Wait until any product type reaches a ready provisioning state."""
        return self._wait(
            lambda: self.get_product_summary(product_uid),
            options=WaitOptions(
                enabled=True,
                timeout_seconds=timeout_seconds,
                cancel_event=cancel_event,
            ),
            resource_name="product",
            resource_uid=product_uid,
        )

    def modify_product(
        self,
        product_uid: str,
        *,
        product_type: str,
        name: str,
        cost_centre: str = "",
        marketplace_visibility: bool = False,
    ) -> None:
        normalized_type = product_type.strip().lower()
        if normalized_type not in MODIFIABLE_PRODUCT_TYPES:
            raise MegaportValidationError(
                "product_type",
                f"only {', '.join(sorted(MODIFIABLE_PRODUCT_TYPES))} products can be modified "
                f"(received {product_type!r})",
            )

        self._client.call(
            "PUT",
            f"/v2/product/{normalized_type}/{product_uid}",
            json_body={
                "name": name,
                "costCentre": cost_centre,
                "marketplaceVisibility": marketplace_visibility,
            },
        )

    def delete_product(self, product_uid: str, *, delete_now: bool = False) -> None:
        action = "CANCEL_NOW" if delete_now else "CANCEL"
        self._client.call("POST", f"/v3/product/{product_uid}/action/{action}")

    def restore_product(self, product_uid: str) -> None:
        self._client.call("POST", f"/v3/product/{product_uid}/action/UN_CANCEL")

    def manage_product_lock(self, product_uid: str, *, should_lock: bool) -> None:
        method = "POST" if should_lock else "DELETE"
        self._client.call(method, f"/v2/product/{product_uid}/lock")

    def list_mcr_prefix_filter_lists(self, mcr_uid: str) -> list[PrefixFilterListSummary]:
        envelope = self._client.call("GET", f"/v2/product/{ProductType.MCR}/{mcr_uid}/prefixLists")
        return [
            PrefixFilterListSummary(
                id=coerce_int(item.get("id")),
                description=coerce_str(item.get("description")),
                address_family=coerce_str(item.get("addressFamily")),
            )
            for item in coerce_mapping_list(envelope.data)
        ]

    def create_mcr_prefix_filter_list(
        self,
        mcr_uid: str,
        prefix_filter_list: PrefixFilterList,
    ) -> int | None:
        envelope = self._client.call(
            "POST",
            f"/v2/product/{ProductType.MCR}/{mcr_uid}/prefixList",
            json_body=prefix_filter_list.to_payload(),
        )
        if isinstance(envelope.data, Mapping):
            return coerce_optional_int(envelope.data.get("id"))
        return None
