"""Typed travel-time matrix parsed at the routing-service boundary."""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from typing import Any, Sequence

from ...errors import ShapeMismatchError

logger = logging.getLogger(__name__)

UNREACHABLE = math.inf


def _to_seconds(value: Any) -> float:
    if value is None or isinstance(value, bool):
        return UNREACHABLE
    try:
        seconds = float(value)
    except (TypeError, ValueError):
        return UNREACHABLE
    if not math.isfinite(seconds):
        return UNREACHABLE
    return max(0.0, seconds)


@dataclass(slots=True, frozen=True)
class TravelTimeMatrix:
    """Square ``(from, to) -> seconds`` table indexed by caller-supplied stop order.

    Unreachable pairs are stored as ``math.inf``.
    """

    durations: tuple[tuple[float, ...], ...]

    @classmethod
    def from_rows(cls, rows: Sequence[Sequence[Any]]) -> "TravelTimeMatrix":
        size = len(rows)
        parsed: list[tuple[float, ...]] = []
        for index, row in enumerate(rows):
            if row is None or len(row) != size:
                raise ShapeMismatchError(
                    f"Travel-time matrix row {index} has {0 if row is None else len(row)} entries, expected {size}."
                )
            parsed.append(tuple(_to_seconds(value) for value in row))
        matrix = cls(durations=tuple(parsed))
        unreachable = matrix.unreachable_count()
        if unreachable:
            logger.warning(f"Travel-time matrix has {unreachable} unreachable pairs out of {size * size}")
        return matrix

    @classmethod
    def from_osrm(cls, payload: dict) -> "TravelTimeMatrix":
        """Build from an OSRM ``table`` response (``durations`` in seconds, ``null`` when unroutable)."""

        durations = payload.get("durations") if isinstance(payload, dict) else None
        if not isinstance(durations, list):
            raise ValueError("OSRM table response missing durations.")
        return cls.from_rows(durations)

    @property
    def size(self) -> int:
        return len(self.durations)

    def seconds(self, from_index: int, to_index: int) -> float:
        return self.durations[from_index][to_index]

    def minutes(self, from_index: int, to_index: int) -> float:
        """Travel minutes, ``math.inf`` for unreachable pairs."""

        return self.durations[from_index][to_index] / 60.0

    def is_reachable(self, from_index: int, to_index: int) -> bool:
        return math.isfinite(self.durations[from_index][to_index])

    def unreachable_count(self) -> int:
        return sum(1 for row in self.durations for value in row if not math.isfinite(value))

    def require_size(self, expected: int) -> None:
        if self.size != expected:
            raise ShapeMismatchError(
                f"Travel-time matrix covers {self.size} stops but {expected} were supplied."
            )

    def submatrix(self, indices: Sequence[int]) -> "TravelTimeMatrix":
        """Restrict to a working subset, re-indexed positionally."""

        for index in indices:
            if not 0 <= index < self.size:
                raise ShapeMismatchError(f"Index {index} outside travel-time matrix of size {self.size}.")
        return TravelTimeMatrix(
            durations=tuple(tuple(self.durations[i][j] for j in indices) for i in indices)
        )

    def minutes_rows(self) -> list[list[float]]:
        """Plain ``list[list[float]]`` in minutes, non-finite entries kept as ``math.inf``."""

        return [[value / 60.0 for value in row] for row in self.durations]
