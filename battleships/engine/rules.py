"""Deduction rules run by the solver's propagation loop.

Every rule takes the shared :class:`SolverContext`, mutates it in place and
only ever writes facts implied by the current grid. Rules raise
:class:`ContradictionError` when the grid they are given cannot belong to any
solution; they never raise for a consistent grid.
"""

from __future__ import annotations

from typing import Callable, List, Optional, Set, Tuple

from ..core.constants import (
    ANY_SEGMENTS,
    CARDINAL_DIRECTIONS,
    DIAGONAL_DIRECTIONS,
    OPEN_SIDE,
    Axis,
    CellState,
    Direction,
)
from ..core.exceptions import ContradictionError
from ..core.models import Coord, Ship
from ..utils.logger import get_logger
from .context import SolverContext
from .placement import can_ship_fit, place_ship


LOGGER = get_logger(__name__)

Rule = Callable[[SolverContext], None]


# ----------------------------------------------------------------------
# Pre-pass
# ----------------------------------------------------------------------
def mark_zero_lines(ctx: SolverContext) -> None:
    """Flood every line with a zero count with water."""

    grid = ctx.grid
    for axis, index in ctx.constraints.lines():
        if ctx.constraints.required(axis, index) > 0:
            continue
        for coord in grid.line(axis, index):
            grid.mark_if_blank(coord, CellState.WATER)
        ctx.constraints.mark_satisfied(axis, index)


def register_completed_ships(ctx: SolverContext) -> None:
    """Register ships the hints already spell out from cap to cap."""

    grid = ctx.grid
    visited: Set[Coord] = set()
    for coord in grid.coords():
        if coord in visited:
            continue
        visited.add(coord)
        if ctx.fleet.in_found_ship(coord):
            continue

        state = grid.get(coord)
        if state == CellState.SINGLE:
            ctx.fleet.register(Ship(1, coord))
            continue

        axis = Axis.of_start_cap(state)
        if axis is None:
            continue

        length = 1
        current = coord
        while True:
            current = current.step(axis.forward)
            ahead = grid.get(current)
            if ahead == CellState.MIDDLE:
                visited.add(current)
                length += 1
                continue
            if ahead == axis.finish_cap:
                visited.add(current)
                length += 1
                ctx.fleet.register(Ship(length, coord, axis))
            break


# ----------------------------------------------------------------------
# Propagation loop rules
# ----------------------------------------------------------------------
def apply_segment_rules(ctx: SolverContext) -> None:
    """Surround segments with the water and continuations they imply."""

    grid = ctx.grid
    for coord in grid.coords():
        state = grid.get(coord)
        if state not in ANY_SEGMENTS:
            continue
        grid.mark_directions_as_water(coord, DIAGONAL_DIRECTIONS)
        if state == CellState.SINGLE:
            grid.mark_directions_as_water(coord, CARDINAL_DIRECTIONS)
        elif state in OPEN_SIDE:
            open_side = OPEN_SIDE[state]
            grid.mark_directions_as_water(
                coord, (d for d in CARDINAL_DIRECTIONS if d != open_side)
            )
            grid.mark_if_blank(coord.step(open_side), CellState.UNKNOWN)


def check_satisfied_constraints(ctx: SolverContext) -> None:
    """Close lines whose count is met, or whose open cells must all be ships."""

    grid = ctx.grid
    constraints = ctx.constraints
    for axis, index in constraints.lines():
        if constraints.is_satisfied(axis, index):
            continue
        required = constraints.required(axis, index)
        filled = grid.count_in_line(axis, index, grid.is_segment)
        if filled == required:
            fill = CellState.WATER
        elif grid.count_in_line(axis, index, lambda c: not grid.is_water(c)) == required:
            fill = CellState.UNKNOWN
        else:
            continue
        for coord in grid.line(axis, index):
            grid.mark_if_blank(coord, fill)
        constraints.mark_satisfied(axis, index)
        LOGGER.debug("%s %s satisfied (%s)", axis.value.lower(), index, fill.value)


def _resolve_unknown(ctx: SolverContext, coord: Coord) -> Optional[CellState]:
    grid = ctx.grid
    for direction in CARDINAL_DIRECTIONS:
        ahead = coord.step(direction)
        behind = coord.step(direction.opposite)
        if grid.is_segment(ahead):
            if grid.is_blocked(behind):
                return direction.end_cap_facing_away()
            if grid.is_segment(behind):
                grid.mark_directions_as_water(coord, direction.perpendiculars)
                return CellState.MIDDLE
        elif grid.is_water(ahead) and grid.is_segment(behind):
            return direction.end_cap_facing_toward()
    return None


def resolve_unknown_segments(ctx: SolverContext) -> None:
    """Give unknown segments a type once a neighbour fixes their orientation."""

    grid = ctx.grid
    for coord in grid.coords():
        if not grid.is_unknown_segment(coord):
            continue
        resolved = _resolve_unknown(ctx, coord)
        if resolved is not None:
            grid.set(coord, resolved)


def _close_bounded_unknown(ctx: SolverContext, coord: Coord) -> Optional[CellState]:
    grid = ctx.grid
    blocked = {d: grid.is_blocked(coord.step(d)) for d in CARDINAL_DIRECTIONS}
    if all(blocked.values()):
        return CellState.SINGLE
    if blocked[Direction.UP] and blocked[Direction.DOWN] and blocked[Direction.LEFT]:
        if grid.is_segment(coord.step(Direction.RIGHT)):
            return CellState.LEFT_END
    if blocked[Direction.UP] and blocked[Direction.LEFT] and blocked[Direction.RIGHT]:
        if grid.is_segment(coord.step(Direction.DOWN)):
            return CellState.TOP_END
    return None


def _promote_to_middle(ctx: SolverContext, coord: Coord) -> None:
    state = ctx.grid.get(coord)
    if state == CellState.UNKNOWN:
        ctx.grid.set(coord, CellState.MIDDLE)
    elif state != CellState.MIDDLE:
        raise ContradictionError(f"Cell {tuple(coord)} cannot be a middle segment")


def _walk_ship(ctx: SolverContext, start: Coord, axis: Axis) -> Optional[Ship]:
    """Follow a start cap forward; ``None`` while the far end is still open."""

    grid = ctx.grid
    finish = axis.finish_cap
    length = 1
    current = start
    while True:
        ahead_coord = current.step(axis.forward)
        ahead = grid.get(ahead_coord)
        if ahead is None or ahead == CellState.WATER:
            if current == start:
                raise ContradictionError(f"Start cap at {tuple(start)} has no continuation")
            if grid.get(current) not in (CellState.UNKNOWN, finish):
                raise ContradictionError(f"Ship from {tuple(start)} cannot end at {tuple(current)}")
            grid.set(current, finish)
            return Ship(length, start, axis)
        if ahead == finish:
            if current != start:
                _promote_to_middle(ctx, current)
            return Ship(length + 1, start, axis)
        if ahead == CellState.BLANK:
            return None
        if ahead in (CellState.MIDDLE, CellState.UNKNOWN):
            if current != start:
                _promote_to_middle(ctx, current)
            current = ahead_coord
            length += 1
            continue
        raise ContradictionError(
            f"Ship from {tuple(start)} runs into {ahead.value} at {tuple(ahead_coord)}"
        )


def resolve_ships_of_unknown_length(ctx: SolverContext) -> None:
    """Close off ships whose extent is now fully determined and register them."""

    grid = ctx.grid
    for coord in grid.coords():
        if ctx.fleet.in_found_ship(coord):
            continue
        state = grid.get(coord)

        if state == CellState.UNKNOWN:
            closed = _close_bounded_unknown(ctx, coord)
            if closed is None:
                continue
            grid.set(coord, closed)
            state = closed

        if state == CellState.SINGLE:
            ctx.fleet.register(Ship(1, coord))
            continue

        axis = Axis.of_start_cap(state)
        if axis is None:
            continue
        ship = _walk_ship(ctx, coord, axis)
        if ship is not None:
            ctx.fleet.register(ship)


def _touching(first: Ship, second: Ship) -> bool:
    return any(
        abs(a.row - b.row) <= 1 and abs(a.col - b.col) <= 1
        for a in first.cells
        for b in second.cells
    )


def find_placement_candidates(ctx: SolverContext, length: int) -> List[Ship]:
    """Every position a ship of ``length`` could still take."""

    grid = ctx.grid
    candidates: List[Ship] = []
    for coord in grid.coords():
        if ctx.fleet.in_found_ship(coord):
            continue
        state = grid.get(coord)
        if length == 1:
            if state in (CellState.BLANK, CellState.UNKNOWN, CellState.SINGLE):
                ship = Ship(1, coord)
                if can_ship_fit(ctx, ship):
                    candidates.append(ship)
            continue
        for axis in (Axis.HORIZONTAL, Axis.VERTICAL):
            if state not in (CellState.BLANK, CellState.UNKNOWN, axis.start_cap):
                continue
            ship = Ship(length, coord, axis)
            if can_ship_fit(ctx, ship):
                candidates.append(ship)
    return candidates


def place_forced_ships(ctx: SolverContext) -> None:
    """Commit the longest ships when every possible position must be used."""

    length = ctx.fleet.max_remaining_length()
    if length == 0:
        return
    remaining = ctx.fleet.remaining(length)
    candidates = find_placement_candidates(ctx, length)
    if len(candidates) != remaining:
        LOGGER.debug(
            "%s candidate(s) for %s ship(s) of length %s; nothing forced",
            len(candidates),
            remaining,
            length,
        )
        return

    for index, ship in enumerate(candidates):
        for other in candidates[index + 1:]:
            if _touching(ship, other):
                raise ContradictionError(
                    f"Forced ships of length {length} at {tuple(ship.start)} and "
                    f"{tuple(other.start)} would touch"
                )
    for ship in candidates:
        place_ship(ctx, ship)
        ctx.fleet.register(ship)
        ctx.stats.forced_placements += 1
    LOGGER.debug("Forced %s ship(s) of length %s", len(candidates), length)


PIPELINE: Tuple[Rule, ...] = (
    apply_segment_rules,
    check_satisfied_constraints,
    resolve_unknown_segments,
    resolve_ships_of_unknown_length,
    place_forced_ships,
)
