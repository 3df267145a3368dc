"""Client for the search surface's market lookup web services."""
from __future__ import annotations

import logging
from typing import Any, Dict, Iterable, List, Optional

from supplier_scraper.auth.login_flow import LoginFlow
from supplier_scraper.config.settings import Settings
from supplier_scraper.core.errors import ProtocolShapeError
from supplier_scraper.hotels.models import Market
from supplier_scraper.selectors.search_page import SearchSelectors

logger = logging.getLogger(__name__)


def quoted(value: Optional[str]) -> str:
    """Render a web-service argument: quoted literal, or bare ``null`` when absent."""
    if value is None:
        return "null"
    return f'"{value}"'


def unwrap_markets(payload: Dict[str, Any]) -> List[Market]:
    """Unwrap the single-field ``{"d": [...]}`` envelope into markets."""
    entries = payload.get("d")
    if not isinstance(entries, list):
        raise ProtocolShapeError("Market response is missing its 'd' envelope")
    markets: List[Market] = []
    for entry in entries:
        code = entry.get("C")
        if not code:
            continue
        markets.append(Market(id=str(code), name=str(entry.get("D") or code)))
    return markets


def merge_markets(groups: Iterable[Iterable[Market]]) -> List[Market]:
    """Flatten per-vendor market lists; the first description seen for a code wins."""
    merged: Dict[str, Market] = {}
    for group in groups:
        for market in group:
            merged.setdefault(market.id, market)
    return list(merged.values())


class MarketClient:
    """Thin wrapper around the origin/destination market endpoints."""

    def __init__(self, settings: Settings, login: LoginFlow) -> None:
        self.settings = settings
        self.login = login

    def _headers(self) -> Dict[str, str]:
        return {
            "Accept": "*/*",
            "Content-Type": "application/json; charset=utf-8",
            "Cookie": self.login.jar.header(),
            "Referer": self.settings.search_url,
            "Origin": self.settings.app_base_url,
            "X-Requested-With": "XMLHttpRequest",
        }

    async def _lookup(self, path: str, params: Dict[str, str]) -> List[Market]:
        self.login.require_session()
        url = f"{self.settings.app_base_url}{path}"
        logger.debug("Market lookup %s params=%s", path, params)
        response = await self.login.http.get(url, params=params, headers=self._headers())
        response.raise_for_status()
        return unwrap_markets(response.json())

    async def origin_markets(
        self,
        vendor_code: str,
        package_code: str,
        *,
        destination_code: str = "",
        filter_orgs: str = "",
        pl_code: str = "",
    ) -> List[Market]:
        return await self._lookup(
            SearchSelectors.origin_markets_path,
            {
                "vendorCode": quoted(vendor_code),
                "packageCode": quoted(package_code),
                "destinationCode": quoted(destination_code),
                "filterOrgs": quoted(filter_orgs),
                "plCode": quoted(pl_code),
            },
        )

    async def destination_markets(
        self,
        vendor_code: str,
        package_code: str,
        *,
        origin_code: str = "",
        region_code: Optional[str] = None,
        theme_ids: Optional[str] = None,
        special_id: Optional[str] = None,
        filter_dests: str = "",
        pl_code: str = "",
        supplier_code: str = "",
    ) -> List[Market]:
        return await self._lookup(
            SearchSelectors.destination_markets_path,
            {
                "vendorCode": quoted(vendor_code),
                "packageCode": quoted(package_code),
                "originCode": quoted(origin_code),
                "regionCode": quoted(region_code or None),
                "themeIds": quoted(theme_ids or None),
                "specialId": quoted(special_id or None),
                "filterDests": quoted(filter_dests),
                "plCode": quoted(pl_code),
                "supplierCode": quoted(supplier_code),
            },
        )
