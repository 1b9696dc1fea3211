"""Reordering of one day's stops with flight-linked airports kept together."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import List, Sequence

from ...config import settings
from ...errors import InsufficientInstanceError
from ...models.domain import Stop, StopKind, TravelMode
from ..geospatial import estimate_flight_minutes, haversine_km
from ..routing.blocks import block_cost_matrix, chain_blocks, expand_blocks, flight_lock
from ..routing.matrix import TravelTimeMatrix
from ..routing.optimizer import optimize_route, path_cost

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class DayOptimization:
    stop_ids: List[str]
    positions: List[int]
    modes: List[TravelMode]
    changed: bool
    cost_before_min: float
    cost_after_min: float


@dataclass(slots=True, frozen=True)
class LegSummary:
    from_id: str
    to_id: str
    mode: TravelMode
    minutes: float | None
    estimated: bool


def _fill_modes(count: int, modes: Sequence[TravelMode] | None, default_mode: TravelMode) -> list[TravelMode]:
    filled = list(modes or [])[:count]
    filled.extend([default_mode] * (count - len(filled)))
    return [TravelMode(mode) for mode in filled]


def optimize_day(
    day_stops: Sequence[Stop],
    matrix: TravelTimeMatrix,
    modes: Sequence[TravelMode] | None = None,
    *,
    default_mode: TravelMode = TravelMode.DRIVING,
    exact: bool = False,
) -> DayOptimization:
    """Reorder the interior of a day, first and last stop fixed.

    ``modes[i]`` is the travel mode into ``day_stops[i]`` (``modes[0]`` is unused
    but preserved). After reordering every stop keeps the mode it was reached by.
    """

    count = len(day_stops)
    if count < 3:
        raise InsufficientInstanceError(f"Need at least 3 stops to optimize a day, got {count}.")
    matrix.require_size(count)

    ids = [stop.stop_id for stop in day_stops]
    old_modes = _fill_modes(count, modes, default_mode)
    minutes = matrix.minutes_rows()

    blocks = chain_blocks(ids, flight_lock({stop.stop_id: stop for stop in day_stops}), old_modes)
    block_matrix = block_cost_matrix(blocks, minutes)
    cost_before = path_cost(block_matrix, list(range(len(blocks))))

    if len(blocks) < 3:
        logger.info(f"Day has {len(blocks)} movable blocks; nothing to reorder")
        return DayOptimization(ids, list(range(count)), old_modes, False, cost_before, cost_before)

    order = optimize_route(block_matrix, 0, len(blocks) - 1, exact=exact)
    ordered_blocks = [blocks[index] for index in order]
    new_ids = expand_blocks(ordered_blocks)
    positions = [position for block in ordered_blocks for position in block.positions]
    new_modes = [old_modes[0]] + [old_modes[position] for position in positions[1:]]
    cost_after = path_cost(block_matrix, order)

    if cost_after + settings.improvement_tolerance >= cost_before:
        # An equal-cost order (a reversed round trip) is not an improvement.
        logger.info(f"Day of {count} stops already optimal at {cost_before:.1f} min")
        return DayOptimization(ids, list(range(count)), old_modes, False, cost_before, cost_before)

    changed = new_ids != ids
    logger.info(
        f"Optimized day of {count} stops in {len(blocks)} blocks: "
        f"{cost_before:.1f} -> {cost_after:.1f} min (changed={changed})"
    )
    return DayOptimization(new_ids, positions, new_modes, changed, cost_before, cost_after)


def summarize_legs(
    day_stops: Sequence[Stop],
    matrix: TravelTimeMatrix,
    modes: Sequence[TravelMode] | None = None,
    *,
    default_mode: TravelMode = TravelMode.DRIVING,
) -> list[LegSummary]:
    """Per-leg minutes for a day; airport -> airport flights use a great-circle estimate."""

    count = len(day_stops)
    matrix.require_size(count)
    filled = _fill_modes(count, modes, default_mode)

    legs: list[LegSummary] = []
    for index in range(1, count):
        source, target = day_stops[index - 1], day_stops[index]
        mode = filled[index]
        if source.kind is StopKind.AIRPORT and target.kind is StopKind.AIRPORT and mode is TravelMode.FLIGHT:
            distance = haversine_km(source.latitude, source.longitude, target.latitude, target.longitude)
            legs.append(LegSummary(source.stop_id, target.stop_id, mode, estimate_flight_minutes(distance), True))
            continue
        minutes = matrix.minutes(index - 1, index) if matrix.is_reachable(index - 1, index) else None
        legs.append(LegSummary(source.stop_id, target.stop_id, mode, minutes, False))
    return legs
