"""Centralised control names and selectors for the search surface.

The upstream page nests every search control several naming containers deep;
all key construction goes through :func:`search_form_key` so the hierarchy is
spelled out exactly once.
"""
from __future__ import annotations

import re
from typing import Optional

FORM_ID = "aspnetForm"

_CONTENT_PLACEHOLDER = "ctl00$ctl00$ContentPlaceHolder$ContentPlaceHolder$"
_SEARCH_COMPONENTS = "scncc$ctl00$NavigationRepeater$ctl00$ctl00$SearchComponents$"
_RESERVATION_TOOL = "scc$rt$"

SCOPES = ("page", "components", "tool")


def search_form_key(
    name: str,
    *,
    scope: str = "tool",
    room: Optional[int] = None,
    child: Optional[int] = None,
) -> str:
    """Return the postback field name for control ``name``.

    ``scope`` picks the naming container: ``page`` (content placeholder),
    ``components`` (search component host) or ``tool`` (reservation tool,
    the default). ``room`` and ``child`` are zero-based indexes that place
    the control inside a room's passenger block and a child's age block.
    """
    if scope not in SCOPES:
        raise ValueError(f"Unknown form scope '{scope}'")
    if child is not None and room is None:
        raise ValueError("child index requires a room index")
    key = _CONTENT_PLACEHOLDER
    if scope in ("components", "tool"):
        key += _SEARCH_COMPONENTS
    if scope == "tool":
        key += _RESERVATION_TOOL
    if room is not None:
        key += f"passengers$pr$ctl{room:02d}$pi$"
        if child is not None:
            key += f"cr$ctl{child + 1:02d}$"
    return key + name


def search_form_id(name: str, **kwargs) -> str:
    """Return the DOM id the page renders for control ``name``."""
    return search_form_key(name, **kwargs).replace("$", "_")


class SearchSelectors:
    script_manager_pattern = re.compile(r"Sys\.WebForms\.PageRequestManager\._initialize\('([^']+)'")
    script_manager_marker = "Sys.WebForms.PageRequestManager._initialize"
    vendor_select_id = search_form_id("vendor")
    origin_markets_path = "/Search/RestoolConfiguration.asmx/GetOriginMarkets"
    destination_markets_path = "/Search/RestoolConfiguration.asmx/GetDestinationMarkets"


class ResultSelectors:
    header = ".avail-content-wrap"
    check_in_pattern = re.compile(r"Check-in\s*-\s*(\d{2}[A-Z]{3}\d{2})", re.IGNORECASE)
    check_out_pattern = re.compile(r"Check-out\s*-\s*(\d{2}[A-Z]{3}\d{2})", re.IGNORECASE)

    hotel_row_class = "room-repeater-visibility"
    hotel_row = f"tr.{hotel_row_class}"
    hotel_info = ".hotel-info-wrapper"
    hotel_link = 'a[onclick*="HotelInformation/Default.aspx"]'
    hotel_id_pattern = re.compile(r"HotelId=(\d+)")
    vendor_pattern = re.compile(r"VendorCode=([^&'\"]+)")
    source_pattern = re.compile(r"RemoteSourceCode=([^&'\"]+)")
    destination_pattern = re.compile(r"DestinationCode=([^&'\"]+)")
    rating_marker = ".rating_ST"
    review_image = 'img[alt*="of 5 stars"]'
    review_rating_pattern = re.compile(r"([\d.]+) of 5 stars")
    review_count_pattern = re.compile(r"Based on ([\d,]+) reviews")
    location = ".hotel-location-info"
    distance_pattern = re.compile(r"([\d.]+) miles")
    badge_button = "button.cleaning-badge"
    badge_pattern = re.compile(r"program=([^&'\"]+)")

    room_wrapper = ".hotel-avail-room-type-wrap"
    room_link = 'a[onclick*="room="]'
    room_code_pattern = re.compile(r"room=([^&'\"]+)")
    price_column = ".hotel-room-col-3"
    total_price_pattern = re.compile(r"\$([0-9,]+\.\d{2})")
    per_person_pattern = re.compile(r"\$([0-9,]+\.\d{2}) per person")
    promotions = ".added-value-wrap button.link"
    value_indicators = '[id*="ValueTooltipTrigger"]'
