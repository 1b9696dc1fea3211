"""Itinerary orchestration service."""

from __future__ import annotations

import logging
from dataclasses import asdict
from typing import Sequence

from ...config import settings
from ...errors import InsufficientInstanceError, MissingHotelError
from ...models.domain import DayWindow, Stop, StopKind, TravelMode
from ...schemas.itinerary import (
    DayOptimizationRequest,
    DayOptimizationResponse,
    ItineraryDayModel,
    ItineraryRequest,
    ItineraryResponse,
    ItineraryStepModel,
    LegModel,
    StopModel,
)
from ..routing.matrix import TravelTimeMatrix
from ..routing.osrm_client import OSRMClient
from ..scheduling.models import ItineraryPlan
from ..scheduling.scheduler import build_itinerary_plan
from .day_optimizer import optimize_day, summarize_legs

logger = logging.getLogger(__name__)


def _default_visit_min(kind: StopKind) -> float:
    if kind is StopKind.HOTEL:
        return 0.0
    if kind is StopKind.AIRPORT:
        return float(settings.default_airport_duration_min)
    return float(settings.default_place_duration_min)


def to_stop(model: StopModel) -> Stop:
    if model.kind is StopKind.HOTEL:
        visit = 0.0
    elif model.duration_min is None:
        visit = _default_visit_min(model.kind)
    else:
        visit = float(model.duration_min)
    return Stop(
        stop_id=model.id,
        latitude=model.lat,
        longitude=model.lon,
        kind=model.kind,
        visit_min=visit,
        name=model.name,
    )


def resolve_matrix(
    stops: Sequence[Stop],
    durations: Sequence[Sequence[float | None]] | None,
    profile: TravelMode | None,
) -> TravelTimeMatrix:
    """Use the caller's matrix when supplied, otherwise ask OSRM for one."""

    if durations is not None:
        matrix = TravelTimeMatrix.from_rows(durations)
    elif len(stops) < 2:
        matrix = TravelTimeMatrix.from_rows([[0.0] * len(stops) for _ in stops])
    else:
        client = OSRMClient(profile=profile)
        coordinates = [(stop.latitude, stop.longitude) for stop in stops]
        logger.info(f"Fetching {len(coordinates)}x{len(coordinates)} travel-time matrix from OSRM")
        matrix = TravelTimeMatrix.from_osrm(client.table(coordinates))
    matrix.require_size(len(stops))
    return matrix


def _plan_to_response(plan: ItineraryPlan, window: DayWindow, matrix: TravelTimeMatrix) -> ItineraryResponse:
    days = [
        ItineraryDayModel(
            day=day.day,
            start_hotel_id=day.start_hotel_id,
            end_hotel_id=day.end_hotel_id,
            travel_min_total=day.travel_min_total,
            visit_min_total=day.visit_min_total,
            total_min=day.total_min,
            overflow=day.overflow,
            steps=[ItineraryStepModel(**asdict(step)) for step in day.steps],
        )
        for day in plan.days
    ]
    metadata = {
        "window_start_min": window.start,
        "window_end_min": window.end,
        "window_length_min": window.length,
        "day_count": len(plan.days),
        "overflow_days": plan.overflow_days,
        "unreachable_pairs": matrix.unreachable_count(),
    }
    return ItineraryResponse(
        days=days,
        path_stop_ids=plan.path_stop_ids,
        leg_days=plan.leg_days,
        activity_order_ids=plan.activity_order_ids,
        metadata=metadata,
    )


def plan_itinerary(payload: ItineraryRequest) -> ItineraryResponse:
    stops = [to_stop(model) for model in payload.stops]
    if not any(stop.is_hotel for stop in stops):
        raise MissingHotelError("At least one hotel is required to build an itinerary.")

    window = DayWindow.from_strings(
        payload.day_start or settings.default_day_start,
        payload.day_end or settings.default_day_end,
    )
    matrix = resolve_matrix(stops, payload.durations, payload.profile)
    plan = build_itinerary_plan(stops, window, matrix)
    return _plan_to_response(plan, window, matrix)


def optimize_day_route(payload: DayOptimizationRequest) -> DayOptimizationResponse:
    stops = [to_stop(model) for model in payload.stops]
    if len(stops) < 3:
        raise InsufficientInstanceError(f"Need at least 3 stops to optimize a day, got {len(stops)}.")
    default_mode = TravelMode(settings.default_travel_mode)
    matrix = resolve_matrix(stops, payload.durations, payload.profile)

    result = optimize_day(stops, matrix, payload.modes, default_mode=default_mode, exact=payload.exact)
    ordered_stops = [stops[position] for position in result.positions]
    legs = summarize_legs(ordered_stops, matrix.submatrix(result.positions), result.modes, default_mode=default_mode)

    return DayOptimizationResponse(
        stop_ids=result.stop_ids,
        modes=result.modes,
        changed=result.changed,
        cost_before_min=result.cost_before_min,
        cost_after_min=result.cost_after_min,
        legs=[LegModel(**asdict(leg)) for leg in legs],
    )
