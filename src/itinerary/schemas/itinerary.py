"""Itinerary request/response schemas."""

from __future__ import annotations

from typing import List, Optional

from pydantic import BaseModel, Field, model_validator

from ..models.domain import StopKind, TravelMode

CLOCK_PATTERN = r"^\d{1,2}:\d{2}$"


class StopModel(BaseModel):
    id: str = Field(..., min_length=1)
    name: str = ""
    lat: float = Field(..., ge=-90, le=90)
    lon: float = Field(..., ge=-180, le=180)
    kind: StopKind = StopKind.PLACE
    duration_min: Optional[float] = Field(
        default=None,
        ge=0,
        description="Visit duration. Defaults by kind when omitted; hotels are always 0.",
    )


class ItineraryRequest(BaseModel):
    stops: List[StopModel] = Field(..., min_length=1)
    day_start: Optional[str] = Field(default=None, pattern=CLOCK_PATTERN, description="HH:MM")
    day_end: Optional[str] = Field(default=None, pattern=CLOCK_PATTERN, description="HH:MM")
    durations: Optional[List[List[Optional[float]]]] = Field(
        default=None,
        description="Travel seconds indexed like `stops`; null marks an unreachable pair. Fetched from OSRM when omitted.",
    )
    profile: Optional[TravelMode] = None

    @model_validator(mode="after")
    def _unique_ids(self) -> "ItineraryRequest":
        ids = [stop.id for stop in self.stops]
        if len(set(ids)) != len(ids):
            raise ValueError("Stop ids must be unique.")
        return self


class ItineraryStepModel(BaseModel):
    stop_id: str
    kind: StopKind
    travel_min_from_prev: float
    arrive_min_of_day: float
    depart_min_of_day: float
    visit_min: float
    reachable: bool


class ItineraryDayModel(BaseModel):
    day: int
    start_hotel_id: str
    end_hotel_id: str
    travel_min_total: float
    visit_min_total: float
    total_min: float
    overflow: bool
    steps: List[ItineraryStepModel]


class ItineraryResponse(BaseModel):
    days: List[ItineraryDayModel]
    path_stop_ids: List[str]
    leg_days: List[int]
    activity_order_ids: List[str]
    metadata: dict


class DayOptimizationRequest(BaseModel):
    stops: List[StopModel] = Field(..., min_length=1, description="The day's stops in their current order.")
    modes: Optional[List[TravelMode]] = Field(
        default=None,
        description="Travel mode into each stop (index 0 unused). Missing entries use the default mode.",
    )
    durations: Optional[List[List[Optional[float]]]] = None
    profile: Optional[TravelMode] = None
    exact: bool = Field(default=False, description="Use the exact solver instead of the heuristics.")


class LegModel(BaseModel):
    from_id: str
    to_id: str
    mode: TravelMode
    minutes: Optional[float]
    estimated: bool


class DayOptimizationResponse(BaseModel):
    stop_ids: List[str]
    modes: List[TravelMode]
    changed: bool
    cost_before_min: float
    cost_after_min: float
    legs: List[LegModel]
