"""Hotel domain models and the search-result extraction engine."""

from .models import HotelResult, Market, RoomOption, Vendor
from .parser import parse_hotel, parse_results, parse_room, parse_rooms, parse_stay_dates

__all__ = [
    "HotelResult",
    "Market",
    "RoomOption",
    "Vendor",
    "parse_hotel",
    "parse_results",
    "parse_room",
    "parse_rooms",
    "parse_stay_dates",
]
