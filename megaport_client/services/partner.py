"""Marketplace partner ports and the filters used to pick a VXC B-End."""

from __future__ import annotations

from collections.abc import Callable, Iterable, Mapping
from dataclasses import dataclass
from typing import Any

from megaport_client._payload import coerce_bool, coerce_int, coerce_mapping_list, coerce_str
from megaport_client.errors import MegaportLookupError
from megaport_client.services.base import BaseService
from megaport_client.utils import fuzzy_match


@dataclass(frozen=True, slots=True)
class PartnerMegaport:
    connect_type: str
    product_uid: str
    product_name: str
    company_uid: str
    company_name: str
    diversity_zone: str
    location_id: int
    speed: int
    rank: int
    vxc_permitted: bool


class PartnerService(BaseService):
    def list_partner_megaports(self) -> list[PartnerMegaport]:
        envelope = self._client.call("GET", "/v2/dropdowns/partner/megaports")
        return [parse_partner_megaport(item) for item in coerce_mapping_list(envelope.data)]


def filter_by_product_name(
    partners: Iterable[PartnerMegaport],
    product_name: str,
    *,
    exact: bool = True,
) -> list[PartnerMegaport]:
    return _filter_by_text(partners, product_name, exact, lambda partner: partner.product_name)


def filter_by_connect_type(
    partners: Iterable[PartnerMegaport],
    connect_type: str,
    *,
    exact: bool = True,
) -> list[PartnerMegaport]:
    return _filter_by_text(partners, connect_type, exact, lambda partner: partner.connect_type)


def filter_by_company_name(
    partners: Iterable[PartnerMegaport],
    company_name: str,
    *,
    exact: bool = True,
) -> list[PartnerMegaport]:
    return _filter_by_text(partners, company_name, exact, lambda partner: partner.company_name)


def filter_by_diversity_zone(
    partners: Iterable[PartnerMegaport],
    diversity_zone: str,
    *,
    exact: bool = True,
) -> list[PartnerMegaport]:
    return _filter_by_text(partners, diversity_zone, exact, lambda partner: partner.diversity_zone)


def filter_by_location_id(
    partners: Iterable[PartnerMegaport],
    location_id: int,
) -> list[PartnerMegaport]:
    """Keep VXC-permitted partners at ``location_id``; a negative id keeps every partner."""
    if location_id < 0:
        matches = list(partners)
    else:
        matches = [
            partner
            for partner in partners
            if partner.location_id == location_id and partner.vxc_permitted
        ]
    if not matches:
        raise MegaportLookupError("no partner ports match the given filter")
    return matches


def _filter_by_text(
    partners: Iterable[PartnerMegaport],
    value: str,
    exact: bool,
    attribute: Callable[[PartnerMegaport], str],
) -> list[PartnerMegaport]:
    matches: list[PartnerMegaport] = []
    for partner in partners:
        if not partner.vxc_permitted:
            continue
        candidate = attribute(partner)
        if not value or (candidate == value if exact else fuzzy_match(value, candidate)):
            matches.append(partner)
    if not matches:
        raise MegaportLookupError("no partner ports match the given filter")
    return matches


def parse_partner_megaport(payload: Mapping[str, Any]) -> PartnerMegaport:
    return PartnerMegaport(
        connect_type=coerce_str(payload.get("connectType")),
        product_uid=coerce_str(payload.get("productUid")),
        product_name=coerce_str(payload.get("title")),
        company_uid=coerce_str(payload.get("companyUid")),
        company_name=coerce_str(payload.get("companyName")),
        diversity_zone=coerce_str(payload.get("diversityZone")),
        location_id=coerce_int(payload.get("locationId")),
        speed=coerce_int(payload.get("speed")),
        rank=coerce_int(payload.get("rank")),
        vxc_permitted=coerce_bool(payload.get("vxcPermitted")),
    )
