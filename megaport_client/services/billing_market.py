"""Billing market registration per supplier country."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any

from megaport_client._payload import (
    coerce_bool,
    coerce_float,
    coerce_int,
    coerce_mapping,
    coerce_mapping_list,
    coerce_str,
)
from megaport_client.errors import MegaportResponseError
from megaport_client.services.base import BaseService

BILLING_MARKET_PATH = "/v2/market"

FIRST_PARTY_IDS: dict[str, int] = {
    "US": 1558,
    "AU": 808,
    "AT": 20442,
    "BE": 20449,
    "BG": 4640,
    "CA": 1652,
    "CH": 8299,
    "DE": 4515,
    "DK": 20447,
    "ES": 30369,
    "FI": 20440,
    "FR": 20451,
    "HK": 819,
    "IE": 2683,
    "IT": 30367,
    "JP": 20453,
    "LU": 30423,
    "NL": 2685,
    "NO": 20438,
    "NZ": 855,
    "PL": 20444,
    "SE": 2681,
    "SG": 817,
    "UK": 2675,
}


@dataclass(frozen=True, slots=True)
class BillingMarket:
    id: int
    well_known_supplier: str
    supplier_name: str
    currency: str
    language: str
    billing_contact_name: str
    billing_contact_email: str
    billing_contact_phone: str
    address1: str
    postcode: str
    country: str
    city: str
    state: str
    tax_rate: float
    first_party_id: int
    second_party_id: int
    region: str
    payment_term_in_days: int
    vat_exempt: bool
    active: bool


@dataclass(slots=True)
class SetBillingMarketRequest:
    currency: str
    language: str
    billing_contact_name: str
    billing_contact_phone: str
    billing_contact_email: str
    address1: str
    city: str
    state: str
    postcode: str
    country: str
    first_party_id: int
    address2: str | None = None
    your_po_number: str = ""
    tax_number: str = ""

    def to_payload(self) -> dict[str, Any]:
        payload: dict[str, Any] = {
            "currencyEnum": self.currency,
            "language": self.language,
            "billingContactName": self.billing_contact_name,
            "billingContactPhone": self.billing_contact_phone,
            "billingContactEmail": self.billing_contact_email,
            "address1": self.address1,
            "address2": self.address2,
            "city": self.city,
            "state": self.state,
            "postcode": self.postcode,
            "country": self.country,
            "firstPartyId": self.first_party_id,
        }
        if self.your_po_number:
            payload["yourPoNumber"] = self.your_po_number
        if self.tax_number:
            payload["taxNumber"] = self.tax_number
        return payload


def first_party_id_for(country_code: str) -> int | None:
    return FIRST_PARTY_IDS.get(country_code.upper())


class BillingMarketService(BaseService):
    def get_billing_markets(self) -> list[BillingMarket]:
        envelope = self._client.call("GET", BILLING_MARKET_PATH)
        return [parse_billing_market(item) for item in coerce_mapping_list(envelope.data)]

    def set_billing_market(self, request: SetBillingMarketRequest) -> int:
        """Register a billing market and return the supply id."""
        envelope = self._client.call("POST", BILLING_MARKET_PATH, json_body=request.to_payload())
        supply_id = coerce_int(coerce_mapping(envelope.data).get("supplyId"))
        if not supply_id:
            raise MegaportResponseError("billing market response missing supplyId")
        return supply_id


def parse_billing_market(payload: Mapping[str, Any]) -> BillingMarket:
    return BillingMarket(
        id=coerce_int(payload.get("id")),
        well_known_supplier=coerce_str(payload.get("wellKnownSupplier")),
        supplier_name=coerce_str(payload.get("supplierName")),
        currency=coerce_str(payload.get("currencyEnum")),
        language=coerce_str(payload.get("language")),
        billing_contact_name=coerce_str(payload.get("billingContactName")),
        billing_contact_email=coerce_str(payload.get("billingContactEmail")),
        billing_contact_phone=coerce_str(payload.get("billingContactPhone")),
        address1=coerce_str(payload.get("address1")),
        postcode=coerce_str(payload.get("postcode")),
        country=coerce_str(payload.get("country")),
        city=coerce_str(payload.get("city")),
        state=coerce_str(payload.get("state")),
        tax_rate=coerce_float(payload.get("taxRate")),
        first_party_id=coerce_int(payload.get("firstPartyId")),
        second_party_id=coerce_int(payload.get("secondPartyId")),
        region=coerce_str(payload.get("region")),
        payment_term_in_days=coerce_int(payload.get("paymentTermInDays")),
        vat_exempt=coerce_bool(payload.get("vatExempt")),
        active=coerce_bool(payload.get("active")),
    )
