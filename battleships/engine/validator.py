"""Consistency checks and final verification of solved grids."""

from __future__ import annotations

from collections import Counter
from dataclasses import dataclass
from typing import List, Optional, Set

from ..core.constants import (
    CARDINAL_DIRECTIONS,
    DIAGONAL_DIRECTIONS,
    KNOWN_SEGMENTS,
    OPEN_SIDE,
    Axis,
    CellState,
)
from ..core.exceptions import ContradictionError
from ..core.models import Coord, Ship
from ..utils.logger import get_logger
from .context import SolverContext
from .grid import ShipGrid


LOGGER = get_logger(__name__)


@dataclass
class ValidationResult:
    ok: bool
    messages: List[str]


def check_consistency(ctx: SolverContext) -> None:
    """Raise :class:`ContradictionError` if the partial grid is already broken.

    Only local facts are checked: line counts that are overshot or can no
    longer be reached, diagonally touching segments, and known segments
    whose shape disagrees with a neighbour.
    """

    grid = ctx.grid
    for axis, index in ctx.constraints.lines():
        required = ctx.constraints.required(axis, index)
        filled = grid.count_in_line(axis, index, grid.is_segment)
        if filled > required:
            raise ContradictionError(
                f"{axis.value.lower()} {index} holds {filled} segments, needs {required}"
            )
        open_cells = grid.count_in_line(axis, index, lambda c: not grid.is_water(c))
        if open_cells < required:
            raise ContradictionError(
                f"{axis.value.lower()} {index} has room for {open_cells} segments, needs {required}"
            )

    for coord in grid.coords():
        state = grid.get(coord)
        if not grid.is_segment(coord):
            continue
        for direction in DIAGONAL_DIRECTIONS:
            if grid.is_segment(coord.step(direction)):
                raise ContradictionError(f"Segments touch diagonally at {tuple(coord)}")
        if state not in KNOWN_SEGMENTS:
            continue
        if state in OPEN_SIDE and grid.is_blocked(coord.step(OPEN_SIDE[state])):
            raise ContradictionError(f"End cap at {tuple(coord)} is closed on its open side")
        if state == CellState.MIDDLE and not any(
            not grid.is_blocked(coord.step(axis.forward))
            and not grid.is_blocked(coord.step(axis.forward.opposite))
            for axis in Axis
        ):
            raise ContradictionError(f"Middle segment at {tuple(coord)} cannot extend both ways")
        for direction in CARDINAL_DIRECTIONS:
            if not grid.is_segment(coord.step(direction)):
                continue
            if state == CellState.SINGLE:
                raise ContradictionError(f"Single ship at {tuple(coord)} touches a segment")
            if state in OPEN_SIDE and OPEN_SIDE[state] != direction:
                raise ContradictionError(f"End cap at {tuple(coord)} touches a segment behind it")


def _extract_ship(grid: ShipGrid, start: Coord, seen: Set[Coord]) -> Optional[Ship]:
    """Collect the straight run of segments starting at its top-left cell."""

    right = grid.is_segment(start.step(Axis.HORIZONTAL.forward))
    down = grid.is_segment(start.step(Axis.VERTICAL.forward))
    if right and down:
        return None
    if not right and not down:
        seen.add(start)
        return Ship(1, start)
    axis = Axis.HORIZONTAL if right else Axis.VERTICAL
    length = 0
    current = start
    while grid.is_segment(current):
        seen.add(current)
        length += 1
        current = current.step(axis.forward)
    return Ship(length, start, axis)


class GridValidator:
    """Runs the deterministic checks a finished grid must pass."""

    def validate(self, ctx: SolverContext) -> ValidationResult:
        messages: List[str] = []
        grid = ctx.grid

        leftover = [
            coord
            for coord in grid.coords()
            if grid.get(coord) in (CellState.BLANK, CellState.UNKNOWN)
        ]
        if leftover:
            messages.append(f"{len(leftover)} cell(s) unresolved, first at {tuple(leftover[0])}")

        for axis, index in ctx.constraints.lines():
            required = ctx.constraints.required(axis, index)
            filled = grid.count_in_line(axis, index, grid.is_segment)
            if filled != required:
                messages.append(
                    f"{axis.value.lower()} {index} holds {filled} segments, needs {required}"
                )

        try:
            check_consistency(ctx)
        except ContradictionError as exc:
            messages.append(str(exc))

        lengths: Counter = Counter()
        seen: Set[Coord] = set()
        for coord in grid.coords():
            if coord in seen or not grid.is_segment(coord):
                continue
            ship = _extract_ship(grid, coord, seen)
            if ship is None:
                messages.append(f"Segments branch at {tuple(coord)}")
                seen.add(coord)
                continue
            for index, cell in enumerate(ship.cells):
                if grid.get(cell) != ship.role_at(index):
                    messages.append(
                        f"Ship at {tuple(ship.start)} has {grid.get(cell).value} "
                        f"where {ship.role_at(index).value} belongs"
                    )
                    break
            lengths[ship.length] += 1

        longest = max([ctx.fleet.longest_possible, *lengths.keys()], default=0)
        for length in range(1, longest + 1):
            expected = ctx.fleet.original_count(length)
            if lengths[length] != expected:
                messages.append(
                    f"Found {lengths[length]} ship(s) of length {length}, fleet has {expected}"
                )

        if messages:
            LOGGER.debug("Validation failed: %s", "; ".join(messages))
        return ValidationResult(ok=not messages, messages=messages)
