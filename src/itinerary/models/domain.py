"""Domain models for stops, travel modes and day windows."""

from dataclasses import dataclass
from enum import Enum


class StopKind(str, Enum):
    HOTEL = "hotel"
    PLACE = "place"
    AIRPORT = "airport"


class TravelMode(str, Enum):
    DRIVING = "driving"
    WALKING = "walking"
    CYCLING = "cycling"
    TRANSIT = "transit"
    FLIGHT = "flight"


@dataclass(slots=True, frozen=True)
class Stop:
    """A point of interest the traveller sleeps at, visits or flies from."""

    stop_id: str
    latitude: float
    longitude: float
    kind: StopKind
    visit_min: float = 0.0
    name: str = ""

    @property
    def is_hotel(self) -> bool:
        return self.kind is StopKind.HOTEL


def parse_time_to_minutes(value: str) -> int:
    """Convert an ``HH:MM`` clock string into minutes since midnight.

    Hours are clamped to 0-23 and minutes to 0-59. Anything unparsable maps to 0.
    """

    hours_raw, _, minutes_raw = value.partition(":")
    try:
        hours = int(hours_raw)
        minutes = int(minutes_raw)
    except ValueError:
        return 0
    return max(0, min(23, hours)) * 60 + max(0, min(59, minutes))


@dataclass(slots=True, frozen=True)
class DayWindow:
    """Clock interval available for travel and visits, in minutes since midnight."""

    start: int
    end: int

    @classmethod
    def from_strings(cls, start: str, end: str) -> "DayWindow":
        return cls(start=parse_time_to_minutes(start), end=parse_time_to_minutes(end))

    @property
    def length(self) -> int:
        return max(0, self.end - self.start)
