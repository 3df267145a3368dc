"""Search parameters as accepted by the orchestrator and the search client."""
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from typing import List


@dataclass
class SearchParams:
    origin: str
    destination: str
    check_in: str
    check_out: str
    rooms: int = 1
    adults_per_room: List[int] = field(default_factory=lambda: [2])
    children_per_room: List[int] = field(default_factory=lambda: [0])
    child_ages: List[List[int]] = field(default_factory=list)

    def __post_init__(self) -> None:
        if self.rooms < 1:
            raise ValueError("At least one room is required")
        if len(self.adults_per_room) != self.rooms:
            raise ValueError("adults_per_room must have one entry per room")
        if len(self.children_per_room) != self.rooms:
            raise ValueError("children_per_room must have one entry per room")
        if self.child_ages and len(self.child_ages) != self.rooms:
            raise ValueError("child_ages must have one list per room when provided")
        if self.check_out_date <= self.check_in_date:
            raise ValueError("check_out must be after check_in")

    @property
    def check_in_date(self) -> date:
        return date.fromisoformat(self.check_in)

    @property
    def check_out_date(self) -> date:
        return date.fromisoformat(self.check_out)

    @property
    def nights(self) -> int:
        return (self.check_out_date - self.check_in_date).days

    @property
    def has_children(self) -> bool:
        return any(count > 0 for count in self.children_per_room)

    def ages_for_room(self, room: int) -> List[int]:
        if room < len(self.child_ages):
            return list(self.child_ages[room])
        return []

    def to_dict(self) -> dict[str, object]:
        return {
            "origin": self.origin,
            "destination": self.destination,
            "check_in": self.check_in,
            "check_out": self.check_out,
            "rooms": self.rooms,
            "adults_per_room": list(self.adults_per_room),
            "children_per_room": list(self.children_per_room),
            "child_ages": [list(ages) for ages in self.child_ages],
        }
