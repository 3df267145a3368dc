"""Dataclasses for hotel and room inventory extracted from search results."""
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from typing import Any, Iterable, List, Optional


@dataclass(frozen=True, slots=True)
class Vendor:
    id: str
    name: str

    def to_dict(self) -> dict[str, str]:
        return {"id": self.id, "name": self.name}


@dataclass(frozen=True, slots=True)
class Market:
    """Origin or destination market as offered by the search surface."""

    id: str
    name: str

    def to_dict(self) -> dict[str, str]:
        return {"id": self.id, "name": self.name}


@dataclass(slots=True)
class RoomOption:
    """One bookable room type offered by a hotel."""

    code: str
    name: str
    total_price: float = 0.0
    price_per_person: Optional[float] = None
    promotions: List[str] = field(default_factory=list)
    value_indicators: List[str] = field(default_factory=list)

    def __post_init__(self) -> None:
        if self.total_price < 0:
            raise ValueError("total_price must not be negative")

    def to_dict(self) -> dict[str, object]:
        return {
            "code": self.code,
            "name": self.name,
            "total_price": self.total_price,
            "price_per_person": self.price_per_person,
            "promotions": list(self.promotions),
            "value_indicators": list(self.value_indicators),
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "RoomOption":
        return cls(
            code=data["code"],
            name=data["name"],
            total_price=float(data.get("total_price") or 0.0),
            price_per_person=data.get("price_per_person"),
            promotions=list(data.get("promotions") or []),
            value_indicators=list(data.get("value_indicators") or []),
        )


@dataclass(slots=True)
class HotelResult:
    """A hotel row from one vendor's search response, with its rooms in document order."""

    id: str
    name: str
    rating: int
    location: str
    vendor: str
    source: str
    destination_code: str
    check_in: date
    check_out: date
    rooms: List[RoomOption] = field(default_factory=list)
    review_rating: Optional[float] = None
    review_count: Optional[int] = None
    distance_miles: Optional[float] = None
    certification: Optional[str] = None

    def __post_init__(self) -> None:
        if not 0 <= self.rating <= 5:
            raise ValueError(f"rating out of range: {self.rating}")
        if self.review_rating is not None and not 0 <= self.review_rating <= 5:
            raise ValueError(f"review_rating out of range: {self.review_rating}")

    def to_dict(self) -> dict[str, object]:
        return {
            "id": self.id,
            "name": self.name,
            "rating": self.rating,
            "review_rating": self.review_rating,
            "review_count": self.review_count,
            "location": self.location,
            "distance_miles": self.distance_miles,
            "vendor": self.vendor,
            "source": self.source,
            "destination_code": self.destination_code,
            "check_in": self.check_in.isoformat(),
            "check_out": self.check_out.isoformat(),
            "certification": self.certification,
            "rooms": [room.to_dict() for room in self.rooms],
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "HotelResult":
        return cls(
            id=data["id"],
            name=data["name"],
            rating=int(data["rating"]),
            location=data.get("location") or "",
            vendor=data.get("vendor") or "",
            source=data.get("source") or "",
            destination_code=data.get("destination_code") or "",
            check_in=date.fromisoformat(data["check_in"]),
            check_out=date.fromisoformat(data["check_out"]),
            rooms=[RoomOption.from_dict(room) for room in data.get("rooms") or []],
            review_rating=data.get("review_rating"),
            review_count=data.get("review_count"),
            distance_miles=data.get("distance_miles"),
            certification=data.get("certification"),
        )

    @classmethod
    def from_iterable(cls, records: Iterable["HotelResult"]) -> List[dict[str, object]]:
        return [record.to_dict() for record in records]
