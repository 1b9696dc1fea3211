"""Greedy day-by-day scheduling of an ordered stop queue.

Attractions and airports are consumed in the order given. Each day starts at a
hotel, accepts stops while the visit plus the trip back to the closest hotel still
fits the day window, then ends at the hotel nearest to the last stop. Reordering
within a day is left to the route optimizer.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from enum import Enum
from typing import Sequence

from ...models.domain import DayWindow, Stop, StopKind
from ..routing.matrix import TravelTimeMatrix
from .models import ItineraryDay, ItineraryPlan, ItineraryStep

logger = logging.getLogger(__name__)


class DayState(Enum):
    ACCEPTING_STOPS = "accepting_stops"
    CLOSING_DAY = "closing_day"
    DONE = "done"


@dataclass(slots=True, frozen=True)
class HotelReturn:
    hotel_id: str
    minutes: float


class _DayScheduler:
    def __init__(self, stops: Sequence[Stop], window: DayWindow, matrix: TravelTimeMatrix) -> None:
        self.window_min = window.length
        self.matrix = matrix
        self.index_by_id = {stop.stop_id: index for index, stop in enumerate(stops)}
        self.hotel_ids = [stop.stop_id for stop in stops if stop.is_hotel]
        self.queue = tuple(stop for stop in stops if not stop.is_hotel)
        self.cursor = 0
        self.max_days = max(1, len(self.queue) + 2)
        self.plan = ItineraryPlan()

        self.day = 0
        self.hotel_id = self.hotel_ids[0]
        self.position_id = self.hotel_id
        self.elapsed = 0.0
        self.travel_total = 0.0
        self.visit_total = 0.0
        self.overflow = False
        self.steps: list[ItineraryStep] = []

    def travel_min(self, from_id: str, to_id: str) -> float:
        return self.matrix.minutes(self.index_by_id[from_id], self.index_by_id[to_id])

    def nearest_hotel(self, from_id: str) -> HotelReturn:
        """Closest hotel by travel time; ties go to the hotel listed latest."""

        best = HotelReturn(hotel_id=self.hotel_ids[0], minutes=math.inf)
        for hotel_id in self.hotel_ids:
            minutes = self.travel_min(from_id, hotel_id)
            if math.isfinite(minutes) and minutes <= best.minutes:
                best = HotelReturn(hotel_id=hotel_id, minutes=minutes)
        return best

    @property
    def exhausted(self) -> bool:
        return self.cursor >= len(self.queue)

    def run(self) -> ItineraryPlan:
        self.open_day()
        state = DayState.ACCEPTING_STOPS
        while state is not DayState.DONE:
            if state is DayState.ACCEPTING_STOPS:
                state = self.accept_next()
            else:
                state = self.close_day()
        return self.plan

    def open_day(self) -> None:
        self.day += 1
        self.position_id = self.hotel_id
        self.elapsed = 0.0
        self.travel_total = 0.0
        self.visit_total = 0.0
        self.overflow = False
        self.steps = [
            ItineraryStep(
                stop_id=self.hotel_id,
                kind=StopKind.HOTEL,
                travel_min_from_prev=0.0,
                arrive_min_of_day=0.0,
                depart_min_of_day=0.0,
                visit_min=0.0,
            )
        ]
        path = self.plan.path_stop_ids
        if not path:
            path.append(self.hotel_id)
        elif path[-1] != self.hotel_id:
            path.append(self.hotel_id)
            self.plan.leg_days.append(self.day)

    def accept_next(self) -> DayState:
        if self.exhausted:
            return DayState.CLOSING_DAY

        candidate = self.queue[self.cursor]
        travel = self.travel_min(self.position_id, candidate.stop_id)
        visit = max(0.0, candidate.visit_min)
        back = self.nearest_hotel(candidate.stop_id).minutes
        fits = self.elapsed + travel + visit + back <= self.window_min

        if not fits and len(self.steps) > 1:
            return DayState.CLOSING_DAY
        if not fits:
            # Nothing placed yet today: force the stop so the queue keeps moving.
            self.overflow = True
            logger.info(f"Day {self.day}: forcing {candidate.stop_id} beyond the {self.window_min} min window")

        reachable = math.isfinite(travel)
        leg = travel if reachable else 0.0
        self.elapsed += leg
        self.travel_total += leg
        arrive = self.elapsed
        self.elapsed += visit
        self.visit_total += visit
        self.steps.append(
            ItineraryStep(
                stop_id=candidate.stop_id,
                kind=StopKind.AIRPORT if candidate.kind is StopKind.AIRPORT else StopKind.PLACE,
                travel_min_from_prev=leg,
                arrive_min_of_day=arrive,
                depart_min_of_day=self.elapsed,
                visit_min=visit,
                reachable=reachable,
            )
        )
        self.plan.path_stop_ids.append(candidate.stop_id)
        self.plan.leg_days.append(self.day)
        self.plan.activity_order_ids.append(candidate.stop_id)
        self.position_id = candidate.stop_id
        self.cursor += 1
        return DayState.ACCEPTING_STOPS if fits else DayState.CLOSING_DAY

    def close_day(self) -> DayState:
        nearest = self.nearest_hotel(self.position_id)
        end_hotel_id = nearest.hotel_id

        if end_hotel_id != self.position_id or len(self.steps) == 1:
            reachable = math.isfinite(nearest.minutes)
            leg = nearest.minutes if reachable else 0.0
            self.elapsed += leg
            self.travel_total += leg
            self.steps.append(
                ItineraryStep(
                    stop_id=end_hotel_id,
                    kind=StopKind.HOTEL,
                    travel_min_from_prev=leg,
                    arrive_min_of_day=self.elapsed,
                    depart_min_of_day=self.elapsed,
                    visit_min=0.0,
                    reachable=reachable,
                )
            )
            if self.plan.path_stop_ids[-1] != end_hotel_id:
                self.plan.path_stop_ids.append(end_hotel_id)
                self.plan.leg_days.append(self.day)

        self.plan.days.append(
            ItineraryDay(
                day=self.day,
                steps=self.steps,
                start_hotel_id=self.hotel_id,
                end_hotel_id=end_hotel_id,
                travel_min_total=self.travel_total,
                visit_min_total=self.visit_total,
                overflow=self.overflow,
            )
        )
        self.hotel_id = end_hotel_id

        if self.exhausted or self.day >= self.max_days:
            return DayState.DONE
        self.open_day()
        return DayState.ACCEPTING_STOPS


def build_itinerary_plan(
    stops: Sequence[Stop],
    window: DayWindow,
    matrix: TravelTimeMatrix,
) -> ItineraryPlan:
    """Assign ``stops`` to successive days within ``window``.

    ``matrix`` is indexed positionally by ``stops``. Without any hotel the plan is
    empty. The number of days never exceeds ``attractions + 2``.
    """

    if not any(stop.is_hotel for stop in stops):
        logger.warning("No hotel among the stops; returning an empty itinerary")
        return ItineraryPlan()
    matrix.require_size(len(stops))

    plan = _DayScheduler(stops, window, matrix).run()
    logger.info(
        f"Scheduled {len(plan.activity_order_ids)} stops over {len(plan.days)} days "
        f"(window {window.length} min, overflow days: {plan.overflow_days})"
    )
    return plan
