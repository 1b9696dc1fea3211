"""Grouping of stops that must stay adjacent while a day is reordered."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Mapping, Sequence

from ...models.domain import Stop, StopKind, TravelMode
from .optimizer import Matrix, edge_cost

LockPredicate = Callable[[str, str, TravelMode | None], bool]


@dataclass(slots=True, frozen=True)
class Block:
    """Run of stops that moves as one unit.

    ``positions`` are the members' indices in the sequence that was chained, so
    inter-block costs can be read straight from that sequence's matrix.
    """

    ids: tuple[str, ...]
    positions: tuple[int, ...]

    @property
    def first(self) -> str:
        return self.ids[0]

    @property
    def last(self) -> str:
        return self.ids[-1]

    @property
    def first_position(self) -> int:
        return self.positions[0]

    @property
    def last_position(self) -> int:
        return self.positions[-1]


def chain_blocks(
    ordered_ids: Sequence[str],
    lock_predicate: LockPredicate,
    modes: Sequence[TravelMode | None] | None = None,
) -> list[Block]:
    """Split ``ordered_ids`` into blocks in a single pass.

    Every element opens a new block unless ``lock_predicate(prev_id, id, mode_into_id)``
    ties it to the current block's tail. ``modes[i]`` is the travel mode into
    ``ordered_ids[i]``.
    """

    blocks: list[Block] = []
    for index, stop_id in enumerate(ordered_ids):
        mode = modes[index] if modes is not None and index < len(modes) else None
        if blocks and lock_predicate(ordered_ids[index - 1], stop_id, mode):
            tail = blocks[-1]
            blocks[-1] = Block(ids=tail.ids + (stop_id,), positions=tail.positions + (index,))
        else:
            blocks.append(Block(ids=(stop_id,), positions=(index,)))
    return blocks


def expand_blocks(blocks: Sequence[Block]) -> list[str]:
    return [stop_id for block in blocks for stop_id in block.ids]


def flight_lock(stops_by_id: Mapping[str, Stop]) -> LockPredicate:
    """Lock airport -> airport legs explicitly travelled by flight."""

    def predicate(prev_id: str, stop_id: str, mode: TravelMode | None) -> bool:
        prev = stops_by_id.get(prev_id)
        current = stops_by_id.get(stop_id)
        return (
            prev is not None
            and current is not None
            and prev.kind is StopKind.AIRPORT
            and current.kind is StopKind.AIRPORT
            and mode == TravelMode.FLIGHT
        )

    return predicate


def block_cost_matrix(blocks: Sequence[Block], matrix: Matrix) -> list[list[float]]:
    """Cost of going from block A to block B is ``matrix[last(A)][first(B)]``, unreachable priced as penalty."""

    return [
        [edge_cost(matrix, source.last_position, target.first_position) for target in blocks]
        for source in blocks
    ]
