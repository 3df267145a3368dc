"""Client for the per-vendor search postback."""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Dict, List, Mapping, Optional

import httpx

from supplier_scraper.auth.login_flow import LoginFlow
from supplier_scraper.catalog.vendors import VendorCatalog, parse_vendor_options
from supplier_scraper.config.settings import Settings
from supplier_scraper.core.errors import ProtocolShapeError, VendorSearchError
from supplier_scraper.core.http import FORM_CONTENT_TYPE
from supplier_scraper.hotels.models import HotelResult, Vendor
from supplier_scraper.hotels.parser import parse_results
from supplier_scraper.selectors.search_page import FORM_ID, search_form_key
from supplier_scraper.storage.response_dump import ResponseDump
from supplier_scraper.tasks.search_payloads import SearchParams
from supplier_scraper.utils.postback_form import find_script_manager_id, parse_hidden_inputs
from supplier_scraper.utils.short_dates import format_short_date

logger = logging.getLogger(__name__)

ANY = "~"


@dataclass
class VendorSearchResult:
    vendor: Vendor
    hotels: List[HotelResult] = field(default_factory=list)
    error: Optional[VendorSearchError] = None

    @property
    def ok(self) -> bool:
        return self.error is None


def market_label(code: str, names: Mapping[str, str]) -> str:
    """Render a market the way the search form's autocomplete fills it in."""
    name = names.get(code)
    return f"{name} ({code})" if name else code


def build_search_form(
    hidden_fields: Mapping[str, str],
    script_manager_id: str,
    *,
    vendor_code: str,
    package_type: str,
    params: SearchParams,
    origin_label: str,
    destination_label: str,
) -> Dict[str, str]:
    """Layer harvested state, protocol keys and business fields into one postback body.

    Air and vehicle filters are not used by a hotel search but the page
    validates their presence, so they are sent with inert values.
    """
    check_in = format_short_date(params.check_in_date)
    check_out = format_short_date(params.check_out_date)

    body: Dict[str, str] = dict(hidden_fields)
    body[search_form_key("sm", scope="page")] = script_manager_id
    body[search_form_key("ReservationToolType", scope="components")] = "SingleStop"

    tool = {
        "vendor": vendor_code,
        "package": package_type,
        "Origin": origin_label,
        "Destination": destination_label,
        "departure": check_in,
        "numberOfNights": str(params.nights),
        "return": check_out,
        "passengers$numrooms": str(params.rooms),
        "passengers$MaxPaxTextBox": "",
        "promocode": "",
        "aircarrier": ANY,
        "aircabin": "Y",
        "airstops": "50",
        "airdepart": "",
        "airreturn": "",
        "airfare": "",
        "hotelname": "",
        "drpDownHotelBrandInput": ANY,
        "hotelcheckin": check_in,
        "hotelcheckout": check_out,
        "vehiclebrand": ANY,
        "vehiclepickupdate": check_in,
        "vehicledropoffdate": check_out,
        "submit": "Search",
    }
    for name, value in tool.items():
        body[search_form_key(name)] = value

    for room in range(params.rooms):
        body[search_form_key("adults", room=room)] = str(params.adults_per_room[room])
        body[search_form_key("children", room=room)] = str(params.children_per_room[room])
        ages = params.ages_for_room(room)
        # The first child block is always rendered, even for rooms without children.
        for child in range(max(len(ages), 1)):
            age = str(ages[child]) if child < len(ages) else ""
            body[search_form_key("ChildAgeInput", room=room, child=child)] = age
            body[search_form_key("ChildDOBInput", room=room, child=child)] = ""
            body[search_form_key("DateDropDownComponentDisplay$MonthDropDown", room=room, child=child)] = ""
            body[search_form_key("DateDropDownComponentDisplay$YearDropDown", room=room, child=child)] = ""

    body["__ASYNCPOST"] = "false"
    return body


class SearchClient:
    """Runs the harvest-then-post search for one vendor at a time.

    Shares the cookie jar of its :class:`LoginFlow`; not safe for concurrent use.
    """

    def __init__(
        self,
        settings: Settings,
        login: LoginFlow,
        *,
        dump: Optional[ResponseDump] = None,
    ) -> None:
        self.settings = settings
        self.login = login
        self.dump = dump
        self.market_names: Dict[str, str] = {}
        self._vendors: Optional[List[Vendor]] = None

    @property
    def http(self) -> httpx.AsyncClient:
        return self.login.http

    def remember_markets(self, markets) -> None:
        for market in markets:
            self.market_names.setdefault(market.id, market.name)

    async def fetch_search_page(self) -> str:
        self.login.require_session()
        response = await self.http.get(
            self.settings.search_url,
            headers={"Cookie": self.login.jar.header()},
        )
        response.raise_for_status()
        self.login.jar.update_from_response(response)
        return response.text

    async def list_vendors(self, *, refresh: bool = False) -> List[Vendor]:
        """Return the live vendor list, fetching the search page on first use."""
        if self._vendors is not None and not refresh:
            return list(self._vendors)
        html = await self.fetch_search_page()
        return self._remember_vendors(html)

    def _remember_vendors(self, html: str) -> List[Vendor]:
        vendors = parse_vendor_options(html)
        if vendors == self._vendors:
            return list(vendors)
        self._vendors = vendors
        try:
            VendorCatalog.save(self.settings.vendor_catalog_path, vendors)
        except OSError:
            logger.warning("Failed to write vendor catalog %s", self.settings.vendor_catalog_path, exc_info=True)
        return list(vendors)

    async def search_vendor(
        self,
        vendor: Vendor,
        params: SearchParams,
        *,
        package_type: Optional[str] = None,
    ) -> VendorSearchResult:
        """Search one vendor; every failure is reported in the result, never raised."""
        try:
            hotels = await self._search_vendor(vendor, params, package_type or self.settings.package_type)
        except Exception as exc:  # noqa: BLE001 - failures are per vendor
            logger.warning("Search failed for vendor %s (%s): %s", vendor.name, vendor.id, exc)
            return VendorSearchResult(vendor=vendor, error=VendorSearchError(vendor.id, str(exc) or type(exc).__name__))
        return VendorSearchResult(vendor=vendor, hotels=hotels)

    async def _search_vendor(self, vendor: Vendor, params: SearchParams, package_type: str) -> List[HotelResult]:
        page = await self.fetch_search_page()
        await self._dump(f"search_get_{vendor.id}", page)
        try:
            self._remember_vendors(page)
        except ProtocolShapeError:
            logger.warning("Vendor list not found on search page; keeping previous list")

        hidden_fields = parse_hidden_inputs(page, FORM_ID)
        script_manager_id = find_script_manager_id(page)
        if not script_manager_id:
            raise ProtocolShapeError("Script manager id not found on search page")

        body = build_search_form(
            hidden_fields,
            script_manager_id,
            vendor_code=vendor.id,
            package_type=package_type,
            params=params,
            origin_label=market_label(params.origin, self.market_names),
            destination_label=market_label(params.destination, self.market_names),
        )
        logger.info("Posting search for vendor %s (%s -> %s)", vendor.id, params.origin, params.destination)
        response = await self.http.post(
            self.settings.search_url,
            data=body,
            headers={
                "Accept": "*/*",
                "Content-Type": f"{FORM_CONTENT_TYPE}; charset=UTF-8",
                "Cookie": self.login.jar.header(),
                "Referer": self.settings.search_url,
            },
        )
        response.raise_for_status()
        self.login.jar.update_from_response(response)
        await self._dump(f"search_post_{vendor.id}", response.text)
        return parse_results(response.text)

    async def _dump(self, label: str, body: str) -> None:
        if self.dump is not None:
            await self.dump.write(label, body)
