"""Data centre locations, countries and market codes."""

from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from typing import Any

from megaport_client._payload import (
    coerce_bool,
    coerce_float,
    coerce_int,
    coerce_int_list,
    coerce_mapping,
    coerce_mapping_list,
    coerce_str,
)
from megaport_client.errors import MegaportLookupError
from megaport_client.services.base import BaseService
from megaport_client.utils import fuzzy_match

logger = logging.getLogger(__name__)

PRIMARY_NETWORK_REGION = "MP1"


@dataclass(frozen=True, slots=True)
class LocationAddress:
    street: str = ""
    suburb: str = ""
    city: str = ""
    state: str = ""
    postcode: str = ""
    country: str = ""


@dataclass(frozen=True, slots=True)
class DiversityZone:
    mcr_speeds_mbps: tuple[int, ...] = ()
    megaport_speeds_mbps: tuple[int, ...] = ()
    mve_max_cpu_core_count: int = 0
    mve_available: bool = False


@dataclass(frozen=True, slots=True)
class Location:
    id: int
    name: str
    market: str
    metro: str
    status: str
    latitude: float
    longitude: float
    address: LocationAddress
    diversity_zones: dict[str, DiversityZone] = field(default_factory=dict)

    def has_diversity_zone(self, zone: str) -> bool:
        return zone in self.diversity_zones

    def diversity_zone_names(self) -> list[str]:
        return sorted(self.diversity_zones)

    def get_megaport_speeds(self) -> list[int]:
        return _merged_speeds(zone.megaport_speeds_mbps for zone in self.diversity_zones.values())

    def get_mcr_speeds(self) -> list[int]:
        return _merged_speeds(zone.mcr_speeds_mbps for zone in self.diversity_zones.values())

    def has_mcr_support(self) -> bool:
        return any(zone.mcr_speeds_mbps for zone in self.diversity_zones.values())

    def has_mve_support(self) -> bool:
        return any(
            zone.mve_available and zone.mve_max_cpu_core_count > 0
            for zone in self.diversity_zones.values()
        )

    def supports_port_speed(self, speed: int, zone: str | None = None) -> bool:
        """Check a port speed against one diversity zone, or any zone when ``zone`` is None."""
        if zone is not None:
            details = self.diversity_zones.get(zone)
            return details is not None and speed in details.megaport_speeds_mbps
        return speed in self.get_megaport_speeds()


@dataclass(frozen=True, slots=True)
class Country:
    code: str
    name: str
    prefix: str
    site_count: int


class LocationService(BaseService):
    def list_locations(self) -> list[Location]:
        envelope = self._client.call("GET", "/v3/locations")
        return [parse_location(item) for item in coerce_mapping_list(envelope.data)]

    def get_location_by_id(self, location_id: int) -> Location:
        for location in self.list_locations():
            if location.id == location_id:
                return location
        raise MegaportLookupError(f"location {location_id} not found")

    def get_location_by_name(self, name: str) -> Location:
        for location in self.list_locations():
            if location.name == name:
                return location
        raise MegaportLookupError(f"location {name!r} not found")

    def get_location_by_name_fuzzy(self, search: str) -> list[Location]:
        matches = [
            location for location in self.list_locations() if fuzzy_match(search, location.name)
        ]
        if not matches:
            raise MegaportLookupError(f"no locations match {search!r}")
        return matches

    def list_countries(self) -> list[Country]:
        envelope = self._client.call("GET", "/v2/networkRegions")
        countries: list[Country] = []
        for region in coerce_mapping_list(envelope.data):
            if coerce_str(region.get("networkRegion")) != PRIMARY_NETWORK_REGION:
                continue
            countries = [
                Country(
                    code=coerce_str(item.get("code")),
                    name=coerce_str(item.get("name")),
                    prefix=coerce_str(item.get("prefix")),
                    site_count=coerce_int(item.get("siteCount")),
                )
                for item in coerce_mapping_list(region.get("countries"))
            ]
        return countries

    def list_market_codes(self) -> list[str]:
        return [country.prefix for country in self.list_countries()]

    def is_valid_market_code(self, market_code: str) -> bool:
        return market_code in self.list_market_codes()

    def filter_locations_by_market_code(
        self,
        market_code: str,
        locations: Iterable[Location],
    ) -> list[Location]:
        if not self.is_valid_market_code(market_code):
            logger.debug("unknown market code market_code=%s", market_code)
            return []
        return [location for location in locations if location.market == market_code]


def filter_locations_by_mcr_availability(
    available: bool,
    locations: Iterable[Location],
) -> list[Location]:
    return [location for location in locations if location.has_mcr_support() == available]


def filter_locations_by_diversity_zone(
    zone: str,
    locations: Iterable[Location],
) -> list[Location]:
    return [location for location in locations if location.has_diversity_zone(zone)]


def parse_location(payload: Mapping[str, Any]) -> Location:
    address = coerce_mapping(payload.get("address"))
    zones = {
        str(name): _parse_diversity_zone(coerce_mapping(details))
        for name, details in coerce_mapping(payload.get("diversityZones")).items()
    }
    return Location(
        id=coerce_int(payload.get("id")),
        name=coerce_str(payload.get("name")),
        market=coerce_str(payload.get("market")),
        metro=coerce_str(payload.get("metro")),
        status=coerce_str(payload.get("status")),
        latitude=coerce_float(payload.get("latitude")),
        longitude=coerce_float(payload.get("longitude")),
        address=LocationAddress(
            street=coerce_str(address.get("street")),
            suburb=coerce_str(address.get("suburb")),
            city=coerce_str(address.get("city")),
            state=coerce_str(address.get("state")),
            postcode=coerce_str(address.get("postcode")),
            country=coerce_str(address.get("country")),
        ),
        diversity_zones=zones,
    )


def _parse_diversity_zone(payload: Mapping[str, Any]) -> DiversityZone:
    return DiversityZone(
        mcr_speeds_mbps=coerce_int_list(payload.get("mcrSpeedMbps")),
        megaport_speeds_mbps=coerce_int_list(payload.get("megaportSpeedMbps")),
        mve_max_cpu_core_count=coerce_int(payload.get("mveMaxCpuCoreCount")),
        mve_available=coerce_bool(payload.get("mveAvailable")),
    )


def _merged_speeds(groups: Iterable[tuple[int, ...]]) -> list[int]:
    return sorted({speed for group in groups for speed in group})
