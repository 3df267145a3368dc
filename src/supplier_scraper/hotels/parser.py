"""Extraction of hotel and room inventory from a raw search response document.

The response is a table: each hotel opens with a boundary row and its room
types follow as plain rows until the next boundary row. Extraction is
best-effort per record; only the document-wide stay dates are mandatory.
"""
from __future__ import annotations

import logging
from datetime import date
from typing import Iterator, List, Optional, Tuple

from bs4 import BeautifulSoup, Tag

from supplier_scraper.core.errors import ParseError, ProtocolShapeError
from supplier_scraper.selectors.search_page import ResultSelectors as S
from supplier_scraper.utils.short_dates import parse_short_date

from .models import HotelResult, RoomOption

logger = logging.getLogger(__name__)


def _to_amount(raw: str) -> float:
    try:
        return float(raw.replace(",", ""))
    except ValueError as exc:
        raise ParseError(f"Unreadable amount {raw!r}") from exc


def _match(pattern, text: str) -> Optional[str]:
    found = pattern.search(text or "")
    return found.group(1) if found else None


def parse_stay_dates(soup: BeautifulSoup) -> Tuple[date, date]:
    """Return the check-in/check-out shown in the results header."""
    header = soup.select_one(S.header)
    text = header.get_text(" ", strip=True) if header else ""
    check_in = _match(S.check_in_pattern, text)
    check_out = _match(S.check_out_pattern, text)
    if not check_in or not check_out:
        raise ProtocolShapeError("Failed to extract check-in/check-out dates from search results")
    try:
        return parse_short_date(check_in), parse_short_date(check_out)
    except ValueError as exc:
        raise ProtocolShapeError(f"Unparseable stay dates {check_in!r}/{check_out!r}") from exc


def _is_hotel_row(row: Tag) -> bool:
    return S.hotel_row_class in (row.get("class") or [])


def _following_rows(hotel_row: Tag) -> Iterator[Tag]:
    for sibling in hotel_row.find_next_siblings("tr"):
        if _is_hotel_row(sibling):
            return
        yield sibling


def _parse_reviews(hotel_info: Tag) -> Tuple[Optional[float], Optional[int]]:
    review_rating: Optional[float] = None
    review_count: Optional[int] = None
    image = hotel_info.select_one(S.review_image)
    if image is not None:
        raw = _match(S.review_rating_pattern, image.get("alt", ""))
        if raw:
            value = float(raw)
            if 0 <= value <= 5:
                review_rating = value
            else:
                logger.debug("Ignoring out-of-range review rating %s", raw)
    for link in hotel_info.find_all("a"):
        raw = _match(S.review_count_pattern, link.get_text(" ", strip=True))
        if raw:
            review_count = int(raw.replace(",", ""))
            break
    return review_rating, review_count


def _parse_distance(hotel_info: Tag) -> Optional[float]:
    for strong in hotel_info.find_all("strong"):
        raw = _match(S.distance_pattern, strong.get_text(" ", strip=True))
        if raw:
            return float(raw)
    return None


def _parse_certification(hotel_row: Tag) -> Optional[str]:
    button = hotel_row.select_one(S.badge_button)
    if button is None:
        return None
    return _match(S.badge_pattern, button.get("onclick", ""))


def parse_room(row: Tag) -> Optional[RoomOption]:
    """Parse one room row; ``None`` when the row carries no named room."""
    wrapper = row.select_one(S.room_wrapper)
    if wrapper is None:
        return None
    link = wrapper.select_one(S.room_link)
    if link is None:
        return None
    name = link.get_text(strip=True)
    if not name:
        return None
    code = _match(S.room_code_pattern, link.get("onclick", "")) or ""

    price_column = row.select_one(S.price_column)
    total_price = 0.0
    price_per_person: Optional[float] = None
    if price_column is not None:
        strong = price_column.find("strong")
        raw_total = _match(S.total_price_pattern, strong.get_text(" ", strip=True) if strong else "")
        if raw_total:
            total_price = _to_amount(raw_total)
        raw_pp = _match(S.per_person_pattern, price_column.get_text(" ", strip=True))
        if raw_pp:
            price_per_person = _to_amount(raw_pp)

    promotions = [
        text for text in (node.get_text(strip=True) for node in row.select(S.promotions)) if text
    ]
    indicators = [
        text for text in (node.get_text(strip=True) for node in row.select(S.value_indicators)) if text
    ]
    return RoomOption(
        code=code,
        name=name,
        total_price=total_price,
        price_per_person=price_per_person,
        promotions=promotions,
        value_indicators=indicators,
    )


def parse_rooms(hotel_row: Tag) -> List[RoomOption]:
    rooms: List[RoomOption] = []
    for row in _following_rows(hotel_row):
        try:
            room = parse_room(row)
        except Exception:  # noqa: BLE001 - one bad room must not drop the hotel
            logger.warning("Failed to parse room option", exc_info=True)
            continue
        if room is not None:
            rooms.append(room)
    return rooms


def parse_hotel(hotel_row: Tag, check_in: date, check_out: date) -> Optional[HotelResult]:
    """Parse one hotel block; ``None`` when the boundary row is not a real hotel."""
    hotel_info = hotel_row.select_one(S.hotel_info)
    if hotel_info is None:
        return None
    link = hotel_info.select_one(S.hotel_link)
    name = link.get_text(strip=True) if link is not None else ""
    if not name:
        return None

    onclick = link.get("onclick", "")
    hotel_id = _match(S.hotel_id_pattern, onclick) or ""
    if not hotel_id:
        logger.debug("Hotel %r has no HotelId in its link", name)

    rating = len(hotel_info.select(S.rating_marker))
    if rating > 5:
        logger.debug("Hotel %s shows %s rating markers; capping at 5", hotel_id, rating)
        rating = 5
    review_rating, review_count = _parse_reviews(hotel_info)
    location_node = hotel_info.select_one(S.location)

    return HotelResult(
        id=hotel_id,
        name=name,
        rating=rating,
        location=location_node.get_text(" ", strip=True) if location_node is not None else "",
        vendor=_match(S.vendor_pattern, onclick) or "",
        source=_match(S.source_pattern, onclick) or "",
        destination_code=_match(S.destination_pattern, onclick) or "",
        check_in=check_in,
        check_out=check_out,
        rooms=parse_rooms(hotel_row),
        review_rating=review_rating,
        review_count=review_count,
        distance_miles=_parse_distance(hotel_info),
        certification=_parse_certification(hotel_row),
    )


def parse_results(raw_document: str) -> List[HotelResult]:
    """Extract every hotel in document order.

    Raises :class:`ProtocolShapeError` when the header stay dates are missing;
    malformed individual records are logged and dropped.
    """
    soup = BeautifulSoup(raw_document, "html.parser")
    check_in, check_out = parse_stay_dates(soup)

    hotels: List[HotelResult] = []
    skipped = 0
    for hotel_row in soup.select(S.hotel_row):
        try:
            hotel = parse_hotel(hotel_row, check_in, check_out)
        except Exception:  # noqa: BLE001 - isolate failures per record
            logger.warning("Failed to parse hotel section", exc_info=True)
            skipped += 1
            continue
        if hotel is not None:
            hotels.append(hotel)
    logger.debug("Parsed %s hotels (%s malformed rows dropped)", len(hotels), skipped)
    return hotels
