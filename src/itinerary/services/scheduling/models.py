"""Itinerary domain models."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import List

from ...models.domain import StopKind


@dataclass(slots=True, frozen=True)
class ItineraryStep:
    stop_id: str
    kind: StopKind
    travel_min_from_prev: float
    arrive_min_of_day: float
    depart_min_of_day: float
    visit_min: float
    reachable: bool = True


@dataclass(slots=True)
class ItineraryDay:
    day: int
    steps: List[ItineraryStep]
    start_hotel_id: str
    end_hotel_id: str
    travel_min_total: float
    visit_min_total: float
    overflow: bool

    @property
    def total_min(self) -> float:
        return self.travel_min_total + self.visit_min_total


@dataclass(slots=True)
class ItineraryPlan:
    """Days plus the flattened drawing trace.

    ``leg_days[i]`` is the 1-based day of the leg ``path_stop_ids[i] -> path_stop_ids[i + 1]``.
    """

    days: List[ItineraryDay] = field(default_factory=list)
    path_stop_ids: List[str] = field(default_factory=list)
    leg_days: List[int] = field(default_factory=list)
    activity_order_ids: List[str] = field(default_factory=list)

    @property
    def overflow_days(self) -> List[int]:
        return [day.day for day in self.days if day.overflow]
