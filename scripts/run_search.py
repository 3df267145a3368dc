"""Entry point for manual searches and housekeeping."""
from __future__ import annotations

import argparse
import asyncio
import json
import logging
import sys
from pathlib import Path
from typing import Iterable, Sequence

from supplier_scraper.auth.session_store import SessionStore
from supplier_scraper.catalog.vendors import VendorCatalog
from supplier_scraper.config.settings import Settings
from supplier_scraper.core.errors import AuthError, SearchTimeoutError
from supplier_scraper.core.logging import configure_logging
from supplier_scraper.hotels import HotelResult
from supplier_scraper.services import SearchOrchestrator
from supplier_scraper.storage import ResultCache
from supplier_scraper.tasks.search_payloads import SearchParams


def _int_list(raw: str) -> list[int]:
    return [int(part) for part in raw.split(",") if part.strip()]


def _child_ages(raw: Sequence[str] | None, rooms: int) -> list[list[int]]:
    """``--child-ages 5,8 --child-ages 3`` gives one age list per room."""
    if not raw:
        return []
    ages = [_int_list(entry) for entry in raw]
    ages.extend([] for _ in range(rooms - len(ages)))
    return ages


def _params_from_args(args: argparse.Namespace) -> SearchParams:
    rooms = args.rooms
    adults = _int_list(args.adults) if args.adults else [2] * rooms
    children = _int_list(args.children) if args.children else [0] * rooms
    return SearchParams(
        origin=args.origin,
        destination=args.destination,
        check_in=args.check_in,
        check_out=args.check_out,
        rooms=rooms,
        adults_per_room=adults,
        children_per_room=children,
        child_ages=_child_ages(args.child_ages, rooms),
    )


def _print_pairs(rows: Iterable[tuple[str, str]]) -> None:
    for code, name in rows:
        print(f"{code:10} | {name}")


def _write_hotels(hotels: Sequence[HotelResult], output: Path | None) -> None:
    payload = json.dumps(HotelResult.from_iterable(hotels), indent=2)
    if output is None:
        print(payload)
        return
    output.parent.mkdir(parents=True, exist_ok=True)
    output.write_text(payload)
    logging.info("Wrote %s hotels to %s", len(hotels), output)


async def _search(settings: Settings, args: argparse.Namespace) -> int:
    params = _params_from_args(args)
    async with SearchOrchestrator.from_settings(settings) as orchestrator:
        try:
            hotels = await orchestrator.search_all_vendors(params)
        except AuthError as exc:
            logging.error("Login failed (%s): %s", exc.reason.name, exc)
            return 2
        except SearchTimeoutError as exc:
            logging.error("%s", exc)
            return 3
        for result in orchestrator.last_results:
            if not result.ok:
                logging.warning("Vendor %s failed: %s", result.vendor.id, result.error)
    _write_hotels(hotels, args.output)
    return 0


async def _vendors(settings: Settings, args: argparse.Namespace) -> int:
    if args.cached:
        catalog = VendorCatalog.load(settings.vendor_catalog_path)
        _print_pairs((vendor.id, vendor.name) for vendor in sorted(catalog.values(), key=lambda v: v.id))
        return 0
    async with SearchOrchestrator.from_settings(settings) as orchestrator:
        vendors = await orchestrator.list_vendors()
    _print_pairs((vendor.id, vendor.name) for vendor in vendors)
    return 0


async def _markets(settings: Settings, args: argparse.Namespace) -> int:
    async with SearchOrchestrator.from_settings(settings) as orchestrator:
        if args.command == "origins":
            markets = await orchestrator.list_origin_markets(args.package)
        else:
            markets = await orchestrator.list_destination_markets(args.origin or "", args.package)
    _print_pairs((market.id, market.name) for market in markets)
    return 0


def _sessions(settings: Settings, args: argparse.Namespace) -> int:
    store = SessionStore(settings.session_dir)
    if args.command == "cleanup-sessions":
        print(f"Removed {store.cleanup_expired()} expired sessions")
        return 0
    active = store.list_active()
    if not active:
        print("No active sessions")
    for session_id in active:
        print(session_id)
    return 0


async def _evict(settings: Settings, args: argparse.Namespace) -> int:
    days = args.days if args.days is not None else settings.cache_max_age_days
    cache = ResultCache(settings.cache_path)
    try:
        removed = await cache.evict_older_than(days)
    finally:
        await cache.close()
    print(f"Evicted {removed} cache entries older than {days} days")
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Search every supplier vendor and manage local state.")
    sub = parser.add_subparsers(dest="command", required=True)

    search = sub.add_parser("search", help="Run a multi-vendor hotel search")
    search.add_argument("--origin", required=True, help="Origin market code, e.g. ATL")
    search.add_argument("--destination", required=True, help="Destination market code, e.g. CUN")
    search.add_argument("--check-in", required=True, help="Check-in date (YYYY-MM-DD)")
    search.add_argument("--check-out", required=True, help="Check-out date (YYYY-MM-DD)")
    search.add_argument("--rooms", type=int, default=1)
    search.add_argument("--adults", help="Comma separated adults per room, e.g. 2,1")
    search.add_argument("--children", help="Comma separated children per room, e.g. 1,0")
    search.add_argument(
        "--child-ages",
        action="append",
        help="Comma separated child ages for one room; repeat once per room",
    )
    search.add_argument("--output", type=Path, help="Write results JSON here instead of stdout")

    vendors = sub.add_parser("vendors", help="List vendors offered by the search page")
    vendors.add_argument("--cached", action="store_true", help="Read the saved vendor catalog instead")

    origins = sub.add_parser("origins", help="List origin markets across vendors")
    origins.add_argument("--package", help="Package type (defaults to settings)")
    destinations = sub.add_parser("destinations", help="List destination markets across vendors")
    destinations.add_argument("--origin", help="Restrict to destinations served from this origin")
    destinations.add_argument("--package", help="Package type (defaults to settings)")

    sub.add_parser("sessions", help="List active persisted sessions")
    sub.add_parser("cleanup-sessions", help="Delete expired persisted sessions")

    evict = sub.add_parser("evict-cache", help="Remove cached searches older than N days")
    evict.add_argument("--days", type=float, help="Age threshold (defaults to settings)")
    return parser


async def run(args: argparse.Namespace, settings: Settings) -> int:
    if args.command == "search":
        return await _search(settings, args)
    if args.command == "vendors":
        return await _vendors(settings, args)
    if args.command in {"origins", "destinations"}:
        return await _markets(settings, args)
    if args.command in {"sessions", "cleanup-sessions"}:
        return _sessions(settings, args)
    if args.command == "evict-cache":
        return await _evict(settings, args)
    raise SystemExit(f"Unknown command {args.command}")


def main(argv: Sequence[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    settings = Settings()
    settings.ensure_directories()
    configure_logging(settings.log_level, settings.log_dir)
    return asyncio.run(run(args, settings))


if __name__ == "__main__":
    sys.exit(main())
