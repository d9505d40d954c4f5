"""Placement legality and fit-feasibility tests.

Both checks only reject what the grid already rules out. A ship belonging
to the true solution always passes them, and the forced-placement rule
relies on that to treat the passing candidates as exhaustive.
"""

from __future__ import annotations

from typing import Optional

from ..core.constants import (
    ANY_SEGMENTS,
    CARDINAL_DIRECTIONS,
    DIAGONAL_DIRECTIONS,
    KNOWN_SEGMENTS,
    OPEN_SIDE,
    Axis,
    CellState,
    Direction,
)
from ..core.models import Coord, Ship
from .context import SolverContext
from .grid import ShipGrid


def _role_connects(role: CellState, direction: Direction, axis: Optional[Axis]) -> bool:
    """Whether a segment of ``role`` may have a ship neighbour on that side."""

    if role == CellState.SINGLE:
        return False
    if role in OPEN_SIDE:
        return OPEN_SIDE[role] == direction
    if role == CellState.MIDDLE:
        return axis is None or direction.axis == axis
    return True


def _state_connects(state: CellState, direction: Direction) -> bool:
    """Whether an already-known segment continues toward ``direction``."""

    if state == CellState.SINGLE:
        return False
    if state in OPEN_SIDE:
        return OPEN_SIDE[state] == direction
    return True


def can_place_segment(
    grid: ShipGrid,
    coord: Coord,
    role: CellState,
    axis: Optional[Axis] = None,
) -> bool:
    """Check whether ``coord`` may hold a segment of type ``role``.

    ``axis`` is the orientation of the ship the segment belongs to; it only
    matters for middle segments, whose role does not imply one.
    """

    current = grid.get(coord)
    if current is None:
        return False
    if current not in (CellState.BLANK, CellState.UNKNOWN) and current != role:
        return False

    for direction in DIAGONAL_DIRECTIONS:
        if grid.is_segment(coord.step(direction)):
            return False

    for direction in CARDINAL_DIRECTIONS:
        neighbour = grid.get(coord.step(direction))
        if neighbour not in ANY_SEGMENTS:
            continue
        if not _role_connects(role, direction, axis):
            return False
        if neighbour in KNOWN_SEGMENTS and not _state_connects(neighbour, direction.opposite):
            return False
    return True


def line_has_room(ctx: SolverContext, axis: Axis, index: int, extra: int) -> bool:
    """Whether ``extra`` more segments still fit under the line's count."""

    grid = ctx.grid
    filled = grid.count_in_line(axis, index, grid.is_segment)
    return filled + extra <= ctx.constraints.required(axis, index)


def _line_index(coord: Coord, axis: Axis) -> int:
    return coord.row if axis == Axis.HORIZONTAL else coord.col


def can_ship_fit(ctx: SolverContext, ship: Ship) -> bool:
    """Fit-feasibility test for a whole ship placement."""

    grid = ctx.grid
    cells = ship.cells
    for coord in cells:
        if not grid.contains(coord) or ctx.fleet.in_found_ship(coord):
            return False

    if ship.length == 1:
        coord = ship.start
        if not can_place_segment(grid, coord, CellState.SINGLE):
            return False
        if grid.is_segment(coord):
            return True
        return all(
            line_has_room(ctx, axis, _line_index(coord, axis), 1)
            for axis in (Axis.HORIZONTAL, Axis.VERTICAL)
        )

    axis = ship.axis
    if axis is None:
        raise ValueError(f"Ship of length {ship.length} at {tuple(ship.start)} needs an axis")
    for index, coord in enumerate(cells):
        if not can_place_segment(grid, coord, ship.role_at(index), axis):
            return False

    # Segments of the ship's own line that lie outside the path, plus the
    # ship itself, must not overshoot the line's count.
    line_index = _line_index(ship.start, axis)
    path = set(cells)
    outside = sum(
        1
        for coord in grid.line(axis, line_index)
        if coord not in path and grid.is_segment(coord)
    )
    if outside + ship.length > ctx.constraints.required(axis, line_index):
        return False

    across = axis.across
    for coord in cells:
        if grid.is_segment(coord):
            continue
        if not line_has_room(ctx, across, _line_index(coord, across), 1):
            return False
    return True


def place_ship(ctx: SolverContext, ship: Ship) -> None:
    """Write the caps and middles of ``ship`` onto the grid."""

    for index, coord in enumerate(ship.cells):
        ctx.grid.set(coord, ship.role_at(index))
