"""Route ordering heuristics and exact solver for a single day's stops.

All functions work on a plain square cost matrix (``matrix[i][j]`` is the cost of
travelling from node ``i`` to node ``j``) and return orders as lists of node
indices. Non-finite entries stand for unreachable pairs; they are skipped by the
nearest-neighbor construction and priced at ``settings.unreachable_penalty``
everywhere a total cost is compared.
"""

from __future__ import annotations

import logging
import math
from typing import Sequence

from ...config import settings
from ...errors import InsufficientInstanceError, PlanningError, ShapeMismatchError

logger = logging.getLogger(__name__)

Matrix = Sequence[Sequence[float]]


def _validate_square(matrix: Matrix) -> int:
    size = len(matrix)
    for index, row in enumerate(matrix):
        if len(row) != size:
            raise ShapeMismatchError(f"Cost matrix row {index} has {len(row)} entries, expected {size}.")
    return size


def _check_index(index: int, size: int, label: str) -> None:
    if not 0 <= index < size:
        raise ShapeMismatchError(f"{label} index {index} outside cost matrix of size {size}.")


def edge_cost(matrix: Matrix, from_index: int, to_index: int, penalty: float | None = None) -> float:
    value = matrix[from_index][to_index]
    if math.isfinite(value):
        return value
    return settings.unreachable_penalty if penalty is None else penalty


def path_cost(matrix: Matrix, order: Sequence[int], penalty: float | None = None) -> float:
    """Total cost of visiting ``order`` left to right (open path, no return leg)."""

    return sum(edge_cost(matrix, a, b, penalty) for a, b in zip(order, order[1:]))


def nearest_neighbor_order(matrix: Matrix, start: int = 0, end: int | None = None) -> list[int]:
    """Greedy construction from ``start``; ``end`` (when given) is held back and appended last.

    Only finite costs are eligible. If no finite candidate remains the walk stops
    and the leftover nodes are appended in index order. Ties go to the lowest index.
    """

    size = _validate_square(matrix)
    _check_index(start, size, "Start")
    visited = [False] * size
    visited[start] = True
    if end is not None:
        _check_index(end, size, "End")
        visited[end] = True

    order = [start]
    current = start
    while True:
        best = -1
        best_cost = math.inf
        for candidate in range(size):
            if visited[candidate]:
                continue
            cost = matrix[current][candidate]
            if math.isfinite(cost) and cost < best_cost:
                best = candidate
                best_cost = cost
        if best == -1:
            break
        visited[best] = True
        order.append(best)
        current = best

    order.extend(index for index in range(size) if not visited[index])
    if end is not None and end != start:
        order.append(end)
    return order


def two_opt_improve(
    matrix: Matrix,
    order: Sequence[int],
    *,
    max_sweeps: int | None = None,
    tolerance: float | None = None,
) -> list[int]:
    """Reverse interior segments while that lowers the path cost.

    Positions 0 and ``len(order) - 1`` never move. A reversal is kept only when it
    beats the current cost by more than ``tolerance``; sweeps repeat until one
    finds nothing or ``max_sweeps`` is reached.
    """

    max_sweeps = max_sweeps if max_sweeps is not None else settings.two_opt_max_sweeps
    tolerance = tolerance if tolerance is not None else settings.improvement_tolerance

    best = list(order)
    count = len(best)
    if count < 4:
        return best

    best_cost = path_cost(matrix, best)
    sweeps = 0
    improved = True
    while improved and sweeps < max_sweeps:
        improved = False
        sweeps += 1
        for i in range(1, count - 2):
            for k in range(i + 1, count - 1):
                candidate = best[:i] + best[i : k + 1][::-1] + best[k + 1 :]
                cost = path_cost(matrix, candidate)
                if cost + tolerance < best_cost:
                    best = candidate
                    best_cost = cost
                    improved = True
        logger.debug(f"2-opt sweep {sweeps}: cost={best_cost:.3f} improved={improved}")

    if improved:
        logger.warning(f"2-opt stopped at the sweep cap ({max_sweeps}) while still improving")
    return best


def held_karp_path(matrix: Matrix, start: int = 0, end: int | None = None) -> list[int]:
    """Minimum-cost Hamiltonian path from ``start`` by bitmask dynamic programming.

    ``DP[mask][j]`` is the cheapest way to reach ``j`` having visited exactly the
    nodes in ``mask``. With ``end=None`` the path may finish anywhere; otherwise it
    must finish at ``end``. Exponential in the node count, so instances above
    ``settings.exact_solver_max_nodes`` are refused.
    """

    size = _validate_square(matrix)
    if size > settings.exact_solver_max_nodes:
        raise InsufficientInstanceError(
            f"Exact solver is limited to {settings.exact_solver_max_nodes} nodes, got {size}."
        )
    _check_index(start, size, "Start")
    if end is not None:
        _check_index(end, size, "End")
    if size <= 1:
        return [start]
    if end == start:
        raise PlanningError("Exact solver needs distinct start and end nodes.")

    full = (1 << size) - 1
    dp = [[math.inf] * size for _ in range(1 << size)]
    parent = [[-1] * size for _ in range(1 << size)]
    start_mask = 1 << start
    dp[start_mask][start] = 0.0

    for mask in range(1 << size):
        if not mask & start_mask:
            continue
        row = dp[mask]
        for j in range(size):
            current = row[j]
            if current == math.inf or not mask & (1 << j):
                continue
            for k in range(size):
                if mask & (1 << k):
                    continue
                if end is not None and k == end and (mask | (1 << k)) != full:
                    continue
                next_mask = mask | (1 << k)
                next_cost = current + edge_cost(matrix, j, k)
                if next_cost < dp[next_mask][k]:
                    dp[next_mask][k] = next_cost
                    parent[next_mask][k] = j

    if end is None:
        last = min(range(size), key=lambda j: dp[full][j])
    else:
        last = end

    order: list[int] = []
    mask = full
    current = last
    while current != -1:
        order.append(current)
        previous = parent[mask][current]
        mask &= ~(1 << current)
        current = previous
    order.reverse()
    return order


def optimize_route(
    matrix: Matrix,
    first: int = 0,
    last: int | None = None,
    *,
    exact: bool = False,
) -> list[int]:
    """Reorder the interior of a path, keeping ``first`` at the head and ``last`` at the tail.

    The default pipeline is nearest-neighbor construction refined by 2-opt.
    ``exact=True`` asks for Held-Karp instead (small instances only).
    """

    size = _validate_square(matrix)
    if size < 3:
        raise InsufficientInstanceError(f"Need at least 3 nodes to reorder, got {size}.")
    last = size - 1 if last is None else last
    _check_index(first, size, "First")
    _check_index(last, size, "Last")
    if first == last:
        raise PlanningError("First and last nodes must differ.")

    if exact:
        order = held_karp_path(matrix, first, last)
        logger.info(f"Held-Karp path over {size} nodes: cost={path_cost(matrix, order):.3f}")
        return order

    initial = nearest_neighbor_order(matrix, first, last)
    improved = two_opt_improve(matrix, initial)
    logger.info(
        f"Route over {size} nodes: nearest-neighbor cost={path_cost(matrix, initial):.3f}, "
        f"2-opt cost={path_cost(matrix, improved):.3f}"
    )
    return improved
