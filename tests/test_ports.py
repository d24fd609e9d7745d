from __future__ import annotations

import json
import time
from typing import TYPE_CHECKING, Any

import httpx
import pytest

from megaport_client.errors import (
    MegaportStateError,
    MegaportValidationError,
    WaitTimeoutError,
)
from megaport_client.services.port import BuyPortRequest

if TYPE_CHECKING:
    from conftest import ClientBuilder, RecordingAPI

    from megaport_client import Client


def _envelope(data: Any) -> dict[str, Any]:
    return {"message": "", "terms": "", "data": data}


def _port_payload(**overrides: Any) -> dict[str, Any]:
    payload: dict[str, Any] = {
        "productId": 1001,
        "productUid": "port-1",
        "productName": "edge-port",
        "productType": "MEGAPORT",
        "provisioningStatus": "LIVE",
        "createDate": 1700000000000,
        "portSpeed": 10000,
        "locationId": 67,
        "market": "AU",
        "marketplaceVisibility": False,
        "vxcpermitted": True,
        "locked": False,
        "diversityZone": "red",
        "locationDetail": {
            "name": "Equinix SY3",
            "city": "Sydney",
            "metro": "Sydney",
            "country": "Australia",
        },
        "resources": {"interface": {"demarcation": "Level 3", "port_speed": 10000, "up": 1}},
        "resourceTags": [{"key": "env", "value": "prod"}],
    }
    payload.update(overrides)
    return payload


def _request(**overrides: Any) -> BuyPortRequest:
    options: dict[str, Any] = {
        "name": "edge-port",
        "term": 12,
        "port_speed": 10000,
        "location_id": 67,
        "market": "AU",
    }
    options.update(overrides)
    return BuyPortRequest(**options)


def test_buy_port_builds_single_order(api: RecordingAPI, client: Client) -> None:
    api.add("POST", "/v3/networkdesign/buy", _envelope([{"technicalServiceUid": "port-1"}]))

    result = client.ports.buy_port(
        _request(
            is_private=True,
            diversity_zone="blue",
            cost_centre="network-ops",
            promo_code="SPRING",
            resource_tags={"env": "prod"},
        )
    )

    assert result.technical_service_uid == "port-1"
    [order] = json.loads(api.last("POST", "/v3/networkdesign/buy").content)
    assert order["productName"] == "edge-port"
    assert order["productType"] == "MEGAPORT"
    assert order["term"] == 12
    assert order["portSpeed"] == 10000
    assert order["locationId"] == 67
    assert order["market"] == "AU"
    assert order["virtual"] is False
    assert order["marketplaceVisibility"] is False
    assert order["config"] == {"diversityZone": "blue"}
    assert order["costCentre"] == "network-ops"
    assert order["promoCode"] == "SPRING"
    assert order["resourceTags"] == [{"key": "env", "value": "prod"}]
    assert "lagPortCount" not in order
    assert isinstance(order["createDate"], int)


def test_buy_lag_port_sets_lag_count(api: RecordingAPI, client: Client) -> None:
    api.add(
        "POST",
        "/v3/networkdesign/buy",
        _envelope([{"technicalServiceUid": "lag-1"}, {"technicalServiceUid": "lag-2"}]),
    )

    result = client.ports.buy_lag_port(_request(lag_count=2))

    assert result.technical_service_uids == ("lag-1", "lag-2")
    [order] = json.loads(api.last("POST", "/v3/networkdesign/buy").content)
    assert order["lagPortCount"] == 2
    assert order["config"] == {}


def test_buy_lag_port_requires_members(client: Client) -> None:
    with pytest.raises(MegaportValidationError, match="lag_count is invalid"):
        client.ports.buy_lag_port(_request(lag_count=0))


def test_buy_single_port_ignores_lag_fields(api: RecordingAPI, client: Client) -> None:
    api.add("POST", "/v3/networkdesign/buy", _envelope([{"technicalServiceUid": "port-1"}]))

    client.ports.buy_single_port(_request(is_lag=True, lag_count=4))

    [order] = json.loads(api.last("POST", "/v3/networkdesign/buy").content)
    assert "lagPortCount" not in order


@pytest.mark.parametrize("term", [0, 6, 48])
def test_buy_port_rejects_invalid_term(api: RecordingAPI, client: Client, term: int) -> None:
    with pytest.raises(MegaportValidationError, match="term is invalid"):
        client.ports.buy_port(_request(term=term))

    assert api.requests == []


def test_buy_port_waits_for_provisioning(api: RecordingAPI, make_client: ClientBuilder) -> None:
    statuses = iter(["DEPLOYABLE", "CONFIGURED"])
    api.add("POST", "/v3/networkdesign/buy", _envelope([{"technicalServiceUid": "port-1"}]))
    api.add(
        "GET",
        "/v2/product/port-1",
        lambda _: httpx.Response(
            status_code=200,
            json=_envelope(_port_payload(provisioningStatus=next(statuses))),
        ),
    )
    client = make_client(api.handler, poll_interval_seconds=0.01, wait_timeout_seconds=5)

    client.ports.buy_port(_request(wait_for_provision=True))

    assert api.paths().count(("GET", "/v2/product/port-1")) == 2


def test_buy_port_wait_times_out(api: RecordingAPI, make_client: ClientBuilder) -> None:
    api.add("POST", "/v3/networkdesign/buy", _envelope([{"technicalServiceUid": "port-1"}]))
    api.add("GET", "/v2/product/port-1", _envelope(_port_payload(provisioningStatus="DEPLOYABLE")))
    client = make_client(api.handler, poll_interval_seconds=0.01)

    with pytest.raises(WaitTimeoutError, match="time expired waiting for port port-1"):
        client.ports.buy_port(_request(wait_for_provision=True, wait_timeout_seconds=0.05))


def test_validate_port_order_posts_to_validate(api: RecordingAPI, client: Client) -> None:
    api.add("POST", "/v3/networkdesign/validate", _envelope([]))

    client.ports.validate_port_order(_request())

    assert api.paths() == [("POST", "/v3/networkdesign/validate")]


def test_get_port_parses_payload(api: RecordingAPI, client: Client) -> None:
    api.add("GET", "/v2/product/port-1", _envelope(_port_payload()))

    port = client.ports.get_port("port-1")

    assert port.uid == "port-1"
    assert port.name == "edge-port"
    assert port.port_speed == 10000
    assert port.vxc_permitted is True
    assert port.create_date is not None and port.create_date.year == 2023
    assert port.interface.demarcation == "Level 3"
    assert port.location_details is not None
    assert port.location_details.city == "Sydney"
    assert port.resource_tags == {"env": "prod"}


def test_list_ports_keeps_megaports_and_skips_bad_entries(
    api: RecordingAPI,
    client: Client,
    caplog: pytest.LogCaptureFixture,
) -> None:
    api.add(
        "GET",
        "/v2/products",
        _envelope(
            [
                _port_payload(),
                {"productUid": "mcr-1", "productType": "MCR2"},
                {"productType": "MEGAPORT", "productName": "broken"},
            ]
        ),
    )

    ports = client.ports.list_ports()

    assert [port.uid for port in ports] == ["port-1"]
    assert "could not parse product as port" in caplog.text


def test_modify_port_puts_to_megaport_path(api: RecordingAPI, client: Client) -> None:
    api.add("PUT", "/v2/product/megaport/port-1", _envelope({}))

    result = client.ports.modify_port("port-1", name="renamed", cost_centre="cc-1")

    assert result is None
    body = json.loads(api.last("PUT", "/v2/product/megaport/port-1").content)
    assert body == {"name": "renamed", "costCentre": "cc-1", "marketplaceVisibility": False}


def test_modify_port_waits_for_new_name(api: RecordingAPI, make_client: ClientBuilder) -> None:
    names = iter(["edge-port", "renamed"])
    api.add("PUT", "/v2/product/megaport/port-1", _envelope({}))
    api.add(
        "GET",
        "/v2/product/port-1",
        lambda _: httpx.Response(
            status_code=200,
            json=_envelope(_port_payload(productName=next(names))),
        ),
    )
    client = make_client(api.handler, poll_interval_seconds=0.01, wait_timeout_seconds=5)

    port = client.ports.modify_port("port-1", name="renamed", wait_for_update=True)

    assert port is not None
    assert port.name == "renamed"


@pytest.mark.parametrize(("delete_now", "action"), [(True, "CANCEL_NOW"), (False, "CANCEL")])
def test_delete_port_uses_cancel_action(
    api: RecordingAPI,
    client: Client,
    delete_now: bool,
    action: str,
) -> None:
    api.add("POST", f"/v3/product/port-1/action/{action}", _envelope(None))

    client.ports.delete_port("port-1", delete_now=delete_now)

    assert api.paths() == [("POST", f"/v3/product/port-1/action/{action}")]


def test_restore_port_uses_uncancel_action(api: RecordingAPI, client: Client) -> None:
    api.add("POST", "/v3/product/port-1/action/UN_CANCEL", _envelope(None))

    client.ports.restore_port("port-1")

    assert api.paths() == [("POST", "/v3/product/port-1/action/UN_CANCEL")]


def test_lock_port_posts_lock(api: RecordingAPI, client: Client) -> None:
    api.add("GET", "/v2/product/port-1", _envelope(_port_payload(locked=False)))
    api.add("POST", "/v2/product/port-1/lock", _envelope(None))

    client.ports.lock_port("port-1")

    assert ("POST", "/v2/product/port-1/lock") in api.paths()


def test_lock_port_rejects_locked_port(api: RecordingAPI, client: Client) -> None:
    api.add("GET", "/v2/product/port-1", _envelope(_port_payload(locked=True)))

    with pytest.raises(MegaportStateError, match="already locked"):
        client.ports.lock_port("port-1")


def test_unlock_port_deletes_lock(api: RecordingAPI, client: Client) -> None:
    api.add("GET", "/v2/product/port-1", _envelope(_port_payload(locked=True)))
    api.add("DELETE", "/v2/product/port-1/lock", _envelope(None))

    client.ports.unlock_port("port-1")

    assert ("DELETE", "/v2/product/port-1/lock") in api.paths()


def test_unlock_port_rejects_unlocked_port(api: RecordingAPI, client: Client) -> None:
    api.add("GET", "/v2/product/port-1", _envelope(_port_payload(locked=False)))

    with pytest.raises(MegaportStateError, match="is not locked"):
        client.ports.unlock_port("port-1")


@pytest.mark.parametrize(("vlan", "available"), [(100, True), (200, False)])
def test_check_port_vlan_availability(
    api: RecordingAPI,
    client: Client,
    vlan: int,
    available: bool,
) -> None:
    api.add("GET", "/v2/product/port/port-1/vlan", _envelope([100, 101, 102]))

    assert client.ports.check_port_vlan_availability("port-1", vlan) is available
    assert api.last("GET", "/v2/product/port/port-1/vlan").url.params["vlan"] == str(vlan)


def test_buy_lag_port_wait_shares_one_deadline(
    api: RecordingAPI,
    make_client: ClientBuilder,
) -> None:
    first_member_polls = iter(["DEPLOYABLE"] * 4 + ["LIVE"])
    api.add(
        "POST",
        "/v3/networkdesign/buy",
        _envelope([{"technicalServiceUid": "lag-0"}, {"technicalServiceUid": "lag-1"}]),
    )
    api.add(
        "GET",
        "/v2/product/lag-0",
        lambda _: httpx.Response(
            status_code=200,
            json=_envelope(
                _port_payload(productUid="lag-0", provisioningStatus=next(first_member_polls))
            ),
        ),
    )
    api.add(
        "GET",
        "/v2/product/lag-1",
        _envelope(_port_payload(productUid="lag-1", provisioningStatus="DEPLOYABLE")),
    )
    client = make_client(api.handler, poll_interval_seconds=0.05)

    started = time.monotonic()
    with pytest.raises(WaitTimeoutError) as exc_info:
        client.ports.buy_lag_port(
            _request(lag_count=2, wait_for_provision=True, wait_timeout_seconds=0.6)
        )
    elapsed = time.monotonic() - started

    assert exc_info.value.resource_uid == "lag-1"
    assert elapsed < 0.8
    assert api.paths().count(("GET", "/v2/product/lag-0")) == 5
