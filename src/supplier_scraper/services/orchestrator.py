"""Top-level multi-vendor search workflow."""
from __future__ import annotations

import asyncio
import logging
from typing import Awaitable, Callable, Dict, List, Optional

import httpx

from supplier_scraper.auth.login_flow import LoginFlow
from supplier_scraper.auth.session_store import SessionStore
from supplier_scraper.config.settings import Settings
from supplier_scraper.core.errors import SearchTimeoutError, VendorSearchError
from supplier_scraper.core.http import build_http_client
from supplier_scraper.hotels.models import HotelResult, Market, Vendor
from supplier_scraper.services.market_client import MarketClient, merge_markets
from supplier_scraper.services.search_client import SearchClient, VendorSearchResult
from supplier_scraper.storage.cache_key import canonicalize
from supplier_scraper.storage.response_dump import ResponseDump
from supplier_scraper.storage.sqlite_store import ResultCache
from supplier_scraper.tasks.search_payloads import SearchParams
from supplier_scraper.utils.throttling import vendor_pause

logger = logging.getLogger(__name__)

Pause = Callable[[float], Awaitable[None]]


class SearchOrchestrator:
    """Runs one search across every live vendor on a single upstream session.

    Each instance owns its own HTTP client, cookie jar and session. Concurrent
    searches need separate instances.
    """

    def __init__(
        self,
        settings: Settings,
        *,
        login: LoginFlow,
        search_client: SearchClient,
        market_client: MarketClient,
        cache: ResultCache,
        pause: Pause = vendor_pause,
    ) -> None:
        self.settings = settings
        self.login = login
        self.search_client = search_client
        self.market_client = market_client
        self.cache = cache
        self._pause = pause
        self.last_results: List[VendorSearchResult] = []

    @classmethod
    def from_settings(
        cls,
        settings: Settings,
        *,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        pause: Pause = vendor_pause,
    ) -> "SearchOrchestrator":
        http = build_http_client(
            user_agent=settings.user_agent,
            timeout=settings.http_timeout_s,
            transport=transport,
        )
        store = SessionStore(settings.session_dir) if settings.session_cache_enabled else None
        dump = ResponseDump(settings.response_dump_dir) if settings.response_dump_dir else None
        credentials = settings.credentials() if settings.username else None
        login = LoginFlow(settings, http, credentials=credentials, store=store, dump=dump)
        return cls(
            settings,
            login=login,
            search_client=SearchClient(settings, login, dump=dump),
            market_client=MarketClient(settings, login),
            cache=ResultCache(settings.cache_path),
            pause=pause,
        )

    async def __aenter__(self) -> "SearchOrchestrator":
        await self.cache.initialize()
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self.cache.close()
        await self.login.http.aclose()

    async def search_all_vendors(self, params: SearchParams) -> List[HotelResult]:
        """Search every vendor for ``params`` and return the aggregated hotels.

        Served from the result cache without any network traffic when an entry
        exists. Raises :class:`SearchTimeoutError` once ``search_timeout_s``
        elapses, :class:`AuthError` when login fails.
        """
        timeout = self.settings.search_timeout_s
        try:
            return await asyncio.wait_for(self._search_all_vendors(params), timeout=timeout)
        except asyncio.TimeoutError as exc:
            logger.error("Search %s abandoned after %ss", canonicalize(params), timeout)
            raise SearchTimeoutError(f"Search did not complete within {timeout}s") from exc

    async def _search_all_vendors(self, params: SearchParams) -> List[HotelResult]:
        cached = await self.cache.get(params)
        if cached is not None:
            return cached

        await self.login.ensure_logged_in()
        vendors = await self.search_client.list_vendors(refresh=True)
        logger.info("Searching %s vendors for %s -> %s", len(vendors), params.origin, params.destination)

        self.last_results = []
        hotels: List[HotelResult] = []
        for index, vendor in enumerate(vendors):
            if index:
                await self._pause(self.settings.vendor_delay_s)
            try:
                result = await self.search_client.search_vendor(vendor, params)
            except Exception as exc:  # noqa: BLE001 - failures are per vendor
                logger.exception("Search raised for vendor %s", vendor.id)
                result = VendorSearchResult(
                    vendor=vendor,
                    error=VendorSearchError(vendor.id, str(exc) or type(exc).__name__),
                )
            self.last_results.append(result)
            if not result.ok:
                logger.warning("Skipping vendor %s: %s", vendor.id, result.error)
                continue
            logger.info("Vendor %s returned %s hotels", vendor.id, len(result.hotels))
            hotels.extend(result.hotels)

        failed = sum(1 for result in self.last_results if not result.ok)
        if vendors and failed == len(vendors):
            logger.error("Every vendor failed for %s", canonicalize(params))
        await self.cache.put(params, hotels)
        return hotels

    async def list_vendors(self) -> List[Vendor]:
        await self.login.ensure_logged_in()
        return await self.search_client.list_vendors()

    async def list_origin_markets(self, package_type: Optional[str] = None) -> List[Market]:
        return await self._gather_markets("origin", package_type)

    async def list_destination_markets(
        self,
        origin_code: str = "",
        package_type: Optional[str] = None,
    ) -> List[Market]:
        return await self._gather_markets("destination", package_type, origin_code=origin_code)

    async def _gather_markets(self, kind: str, package_type: Optional[str], *, origin_code: str = "") -> List[Market]:
        package = package_type or self.settings.package_type
        vendors = await self.list_vendors()
        per_vendor: Dict[str, List[Market]] = {}
        for index, vendor in enumerate(vendors):
            if index:
                await self._pause(self.settings.vendor_delay_s)
            try:
                if kind == "origin":
                    markets = await self.market_client.origin_markets(vendor.id, package)
                else:
                    markets = await self.market_client.destination_markets(
                        vendor.id, package, origin_code=origin_code
                    )
            except Exception as exc:  # noqa: BLE001 - failures are per vendor
                logger.warning("Failed to list %s markets for vendor %s: %s", kind, vendor.id, exc)
                continue
            per_vendor[vendor.id] = markets
        merged = merge_markets(per_vendor.values())
        self.search_client.remember_markets(merged)
        return sorted(merged, key=lambda market: market.id)

    def logout(self) -> None:
        self.login.logout()
