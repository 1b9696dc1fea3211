"""Itinerary endpoints."""

from __future__ import annotations

import logging

from fastapi import APIRouter, HTTPException, status

from ...schemas.itinerary import (
    DayOptimizationRequest,
    DayOptimizationResponse,
    ItineraryRequest,
    ItineraryResponse,
)
from ...services.planning.service import optimize_day_route, plan_itinerary

router = APIRouter(prefix="/itinerary", tags=["itinerary"])


@router.post("/plan", response_model=ItineraryResponse, status_code=status.HTTP_200_OK)
def plan(payload: ItineraryRequest) -> ItineraryResponse:
    try:
        return plan_itinerary(payload)
    except ValueError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc
    except ConnectionError as exc:
        raise HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail=str(exc)) from exc
    except Exception as exc:
        logging.exception(f"Error building itinerary: {exc}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Failed to build itinerary: {str(exc)}"
        ) from exc


@router.post("/days/optimize", response_model=DayOptimizationResponse, status_code=status.HTTP_200_OK)
def optimize_day(payload: DayOptimizationRequest) -> DayOptimizationResponse:
    """Reorder one day's intermediate stops; the first and last stop stay in place."""
    try:
        return optimize_day_route(payload)
    except ValueError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc
    except ConnectionError as exc:
        raise HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail=str(exc)) from exc
    except Exception as exc:
        logging.exception(f"Error optimizing day: {exc}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Failed to optimize day: {str(exc)}"
        ) from exc
