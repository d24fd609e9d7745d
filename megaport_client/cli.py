"""Command line helpers for inspecting Megaport locations and products."""

from __future__ import annotations

import argparse
import logging
import sys
from collections.abc import Callable, Sequence
from typing import TypeAlias

from megaport_client.client import Client
from megaport_client.config import ClientSettings, get_settings
from megaport_client.errors import MegaportError
from megaport_client.factory import create_client
from megaport_client.services.location import filter_locations_by_diversity_zone

ClientFactory: TypeAlias = Callable[[ClientSettings], Client]


def main(
    argv: Sequence[str] | None = None,
    *,
    client_factory: ClientFactory | None = None,
) -> int:
    parser = _build_parser()
    args = parser.parse_args(list(argv) if argv is not None else None)
    if args.verbose:
        logging.basicConfig(level=logging.DEBUG)

    try:
        client = (client_factory or create_client)(get_settings())
        if client.access_token is None:
            client.authorize()

        if args.command == "locations":
            return _run_locations(client, args)

        if args.command == "ports":
            for port in client.ports.list_ports():
                print(f"{port.uid}\t{port.name}\t{port.port_speed}\t{port.provisioning_status}")
            return 0

        if args.command == "product-status":
            summary = client.products.get_product_summary(args.product_uid)
            print(f"{summary.uid}\t{summary.product_type}\t{summary.provisioning_status}")
            return 0

        if args.command == "wait":
            summary = client.products.wait_for_product(
                args.product_uid,
                timeout_seconds=args.timeout,
            )
            print(f"product {summary.uid} is {summary.provisioning_status}")
            return 0

        raise ValueError(f"unsupported command: {args.command}")
    except (MegaportError, ValueError) as exc:
        print(f"error: {exc}", file=sys.stderr)
        return 2


def _run_locations(client: Client, args: argparse.Namespace) -> int:
    if args.search:
        locations = client.locations.get_location_by_name_fuzzy(args.search)
    else:
        locations = client.locations.list_locations()
    if args.market:
        locations = client.locations.filter_locations_by_market_code(args.market, locations)
    if args.diversity_zone:
        locations = filter_locations_by_diversity_zone(args.diversity_zone, locations)

    for location in locations:
        zones = ",".join(location.diversity_zone_names()) or "-"
        print(f"{location.id}\t{location.name}\t{location.market}\t{zones}")
    return 0


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="python -m megaport_client.cli")
    parser.add_argument("--verbose", action="store_true", help="enable debug logging")
    subparsers = parser.add_subparsers(dest="command", required=True)

    locations_parser = subparsers.add_parser("locations", help="list data centre locations")
    locations_parser.add_argument("--market", help="keep locations in this market code")
    locations_parser.add_argument("--search", help="fuzzy match on location name")
    locations_parser.add_argument(
        "--diversity-zone",
        dest="diversity_zone",
        help="keep locations offering this diversity zone",
    )

    subparsers.add_parser("ports", help="list ports, including cancelled ones")

    status_parser = subparsers.add_parser("product-status", help="show a product's status")
    status_parser.add_argument("product_uid")

    wait_parser = subparsers.add_parser(
        "wait",
        help="wait until a product reaches CONFIGURED or LIVE",
    )
    wait_parser.add_argument("product_uid")
    wait_parser.add_argument("--timeout", type=float, default=None)

    return parser


if __name__ == "__main__":
    raise SystemExit(main())
