from __future__ import annotations

from typing import TYPE_CHECKING, Any

import pytest

from megaport_client.errors import MegaportLookupError
from megaport_client.services.location import (
    filter_locations_by_diversity_zone,
    filter_locations_by_mcr_availability,
    parse_location,
)

if TYPE_CHECKING:
    from conftest import RecordingAPI

    from megaport_client import Client


def _envelope(data: Any) -> dict[str, Any]:
    return {"message": "", "terms": "", "data": data}


def _location(location_id: int, name: str, market: str, **zones: Any) -> dict[str, Any]:
    return {
        "id": location_id,
        "name": name,
        "market": market,
        "metro": "Sydney",
        "status": "Active",
        "latitude": -33.92,
        "longitude": 151.18,
        "address": {"street": "639 Gardeners Rd", "city": "Mascot", "country": "Australia"},
        "diversityZones": zones,
    }


LOCATIONS = [
    _location(
        67,
        "Equinix SY3",
        "AU",
        red={
            "megaportSpeedMbps": [10000, 1000],
            "mcrSpeedMbps": [1000, 5000],
            "mveMaxCpuCoreCount": 12,
            "mveAvailable": True,
        },
        blue={"megaportSpeedMbps": [100000, 10000], "mcrSpeedMbps": []},
    ),
    _location(3, "Global Switch Sydney", "AU", blue={"megaportSpeedMbps": [1000]}),
    _location(142, "Equinix LD5", "UK", red={"megaportSpeedMbps": [10000]}),
]

REGIONS = [
    {
        "networkRegion": "MP1",
        "countries": [
            {"code": "AUS", "name": "Australia", "prefix": "AU", "siteCount": 40},
            {"code": "GBR", "name": "United Kingdom", "prefix": "UK", "siteCount": 20},
        ],
    },
    {
        "networkRegion": "MP2",
        "countries": [{"code": "XXX", "name": "Elsewhere", "prefix": "XX", "siteCount": 1}],
    },
]


@pytest.fixture
def locations_api(api: RecordingAPI) -> RecordingAPI:
    api.add("GET", "/v3/locations", _envelope(LOCATIONS))
    api.add("GET", "/v2/networkRegions", _envelope(REGIONS))
    return api


def test_parse_location_reads_diversity_zones() -> None:
    location = parse_location(LOCATIONS[0])

    assert location.address.city == "Mascot"
    assert location.latitude == pytest.approx(-33.92)
    assert location.diversity_zone_names() == ["blue", "red"]
    assert location.get_megaport_speeds() == [1000, 10000, 100000]
    assert location.get_mcr_speeds() == [1000, 5000]
    assert location.has_mcr_support()
    assert location.has_mve_support()


def test_location_without_mcr_or_mve_zones() -> None:
    location = parse_location(LOCATIONS[1])

    assert not location.has_mcr_support()
    assert not location.has_mve_support()
    assert location.has_diversity_zone("blue")
    assert not location.has_diversity_zone("red")


@pytest.mark.parametrize(
    ("speed", "zone", "expected"),
    [
        (100000, None, True),
        (100000, "blue", True),
        (100000, "red", False),
        (1000, "green", False),
        (400, None, False),
    ],
)
def test_supports_port_speed(speed: int, zone: str | None, expected: bool) -> None:
    assert parse_location(LOCATIONS[0]).supports_port_speed(speed, zone) is expected


def test_get_location_by_id(locations_api: RecordingAPI, client: Client) -> None:
    assert client.locations.get_location_by_id(142).name == "Equinix LD5"

    with pytest.raises(MegaportLookupError, match="location 999 not found"):
        client.locations.get_location_by_id(999)


def test_get_location_by_name_is_exact(locations_api: RecordingAPI, client: Client) -> None:
    assert client.locations.get_location_by_name("Equinix SY3").id == 67

    with pytest.raises(MegaportLookupError):
        client.locations.get_location_by_name("equinix sy3")


def test_get_location_by_name_fuzzy(locations_api: RecordingAPI, client: Client) -> None:
    matches = client.locations.get_location_by_name_fuzzy("EqSY")

    assert [location.id for location in matches] == [67]

    with pytest.raises(MegaportLookupError, match="no locations match"):
        client.locations.get_location_by_name_fuzzy("Tokyo")


def test_list_countries_reads_primary_region_only(
    locations_api: RecordingAPI,
    client: Client,
) -> None:
    countries = client.locations.list_countries()

    assert [country.prefix for country in countries] == ["AU", "UK"]
    assert countries[0].site_count == 40
    assert client.locations.list_market_codes() == ["AU", "UK"]


@pytest.mark.parametrize(("code", "valid"), [("AU", True), ("XX", False), ("", False)])
def test_is_valid_market_code(
    locations_api: RecordingAPI,
    client: Client,
    code: str,
    valid: bool,
) -> None:
    assert client.locations.is_valid_market_code(code) is valid


def test_filter_locations_by_market_code(locations_api: RecordingAPI, client: Client) -> None:
    locations = client.locations.list_locations()

    au = client.locations.filter_locations_by_market_code("AU", locations)
    unknown = client.locations.filter_locations_by_market_code("ZZ", locations)

    assert [location.id for location in au] == [67, 3]
    assert unknown == []


def test_module_filters() -> None:
    locations = [parse_location(item) for item in LOCATIONS]

    with_mcr = filter_locations_by_mcr_availability(True, locations)
    without_mcr = filter_locations_by_mcr_availability(False, locations)
    red = filter_locations_by_diversity_zone("red", locations)

    assert [location.id for location in with_mcr] == [67]
    assert [location.id for location in without_mcr] == [3, 142]
    assert [location.id for location in red] == [67, 142]
