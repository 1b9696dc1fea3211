"""Precondition failures raised by the planning core."""

from __future__ import annotations


class PlanningError(ValueError):
    """Base class for malformed planning input."""


class InsufficientInstanceError(PlanningError):
    """Too few nodes to reorder, or too many for the exact solver."""


class ShapeMismatchError(PlanningError):
    """Travel-time matrix dimensions do not match the stop index space."""


class MissingHotelError(PlanningError):
    """An itinerary was requested without any hotel stop."""
