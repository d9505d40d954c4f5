"""CP-SAT battleships solver using OR-Tools.

An independent engine: every legal ship position becomes a boolean and the
fleet, line counts, hints and no-touch rule become linear constraints. It is
used as an alternative to the deduction engine and to cross-check it.
"""

from __future__ import annotations

from collections import defaultdict
from typing import Dict, List, Optional, Sequence, Tuple

from ortools.sat.python import cp_model

from ..core.constants import ALL_DIRECTIONS, ANY_SEGMENTS, Axis, CellState
from ..core.models import Coord, Ship
from ..utils.logger import get_logger

LOGGER = get_logger(__name__)


def _enumerate_placements(size: int, length: int) -> List[Ship]:
    if length > size:
        return []
    if length == 1:
        return [Ship(1, Coord(r, c)) for r in range(size) for c in range(size)]
    ships = []
    for r in range(size):
        for c in range(size - length + 1):
            ships.append(Ship(length, Coord(r, c), Axis.HORIZONTAL))
    for r in range(size - length + 1):
        for c in range(size):
            ships.append(Ship(length, Coord(r, c), Axis.VERTICAL))
    return ships


def _halo(ship: Ship, size: int) -> List[Coord]:
    """On-grid cells touching the ship, diagonals included."""

    body = set(ship.cells)
    halo = set()
    for cell in body:
        for direction in ALL_DIRECTIONS:
            near = cell.step(direction)
            if near in body or not (0 <= near.row < size and 0 <= near.col < size):
                continue
            halo.add(near)
    return sorted(halo)


def _matches_hints(hints: Sequence[Sequence[CellState]], ship: Ship, size: int) -> bool:
    for index, cell in enumerate(ship.cells):
        hint = hints[cell.row][cell.col]
        if hint not in (CellState.BLANK, CellState.UNKNOWN, ship.role_at(index)):
            return False
    return all(hints[c.row][c.col] not in ANY_SEGMENTS for c in _halo(ship, size))


def solve_with_cp_sat(
    hints: Sequence[Sequence[CellState]],
    rows: Sequence[int],
    cols: Sequence[int],
    fleet: Sequence[int],
    timeout: float = 30.0,
    num_workers: int = 4,
) -> Optional[List[List[CellState]]]:
    """Solve a puzzle via CP-SAT.

    Args:
        hints: Square matrix of given cell states (``BLANK`` for no information).
        rows: Required segment count per row.
        cols: Required segment count per column.
        fleet: ``fleet[i]`` ships of length ``i + 1``.
        timeout: Solver time limit in seconds.
        num_workers: CP-SAT search workers.

    Returns:
        The solved matrix, or ``None`` if no solution was found.
    """
    size = len(hints)
    model = cp_model.CpModel()

    # ------------------------------------------------------------------
    # Step 1: One boolean per placement compatible with the hints
    # ------------------------------------------------------------------
    placements: List[Tuple[Ship, cp_model.IntVar]] = []
    covering: Dict[Coord, List[cp_model.IntVar]] = defaultdict(list)
    roles: Dict[Coord, List[Tuple[CellState, cp_model.IntVar]]] = defaultdict(list)

    for length, count in enumerate(fleet, start=1):
        if count == 0:
            continue
        ship_vars = []
        for ship in _enumerate_placements(size, length):
            if not _matches_hints(hints, ship, size):
                continue
            axis = ship.axis.value[0] if ship.axis else "S"
            var = model.new_bool_var(f"ship_{length}_{ship.start.row}_{ship.start.col}_{axis}")
            placements.append((ship, var))
            ship_vars.append(var)
            for index, cell in enumerate(ship.cells):
                covering[cell].append(var)
                roles[cell].append((ship.role_at(index), var))
        if len(ship_vars) < count:
            LOGGER.debug("Only %d position(s) for %d ship(s) of length %d", len(ship_vars), count, length)
            return None
        model.add(sum(ship_vars) == count)

    # ------------------------------------------------------------------
    # Step 2: Cell occupancy and line counts
    # ------------------------------------------------------------------
    occupied: Dict[Coord, cp_model.IntVar] = {}
    for r in range(size):
        for c in range(size):
            coord = Coord(r, c)
            occ = model.new_bool_var(f"occ_{r}_{c}")
            occupied[coord] = occ
            if covering[coord]:
                model.add(sum(covering[coord]) == occ)
            else:
                model.add(occ == 0)

    for r in range(size):
        model.add(sum(occupied[Coord(r, c)] for c in range(size)) == rows[r])
    for c in range(size):
        model.add(sum(occupied[Coord(r, c)] for r in range(size)) == cols[c])

    # ------------------------------------------------------------------
    # Step 3: Hints and the no-touch rule
    # ------------------------------------------------------------------
    for r in range(size):
        for c in range(size):
            coord = Coord(r, c)
            hint = hints[r][c]
            if hint == CellState.WATER:
                model.add(occupied[coord] == 0)
            elif hint == CellState.UNKNOWN:
                model.add(occupied[coord] == 1)
            elif hint != CellState.BLANK:
                typed = [var for role, var in roles[coord] if role == hint]
                if not typed:
                    LOGGER.debug("No placement yields %s at (%d,%d)", hint.value, r, c)
                    return None
                model.add(sum(typed) == 1)

    for ship, var in placements:
        for near in _halo(ship, size):
            model.add_implication(var, ~occupied[near])

    # ------------------------------------------------------------------
    # Step 4: Solve
    # ------------------------------------------------------------------
    solver = cp_model.CpSolver()
    solver.parameters.max_time_in_seconds = timeout
    solver.parameters.num_workers = num_workers

    LOGGER.info(
        "CP-SAT: %d placements on %dx%d, solving (timeout=%0.1fs)...",
        len(placements),
        size,
        size,
        timeout,
    )

    status = solver.solve(model)

    if status not in (cp_model.OPTIMAL, cp_model.FEASIBLE):
        LOGGER.warning("CP-SAT: no solution found (status=%s)", solver.status_name(status))
        return None

    LOGGER.info("CP-SAT: solution found in %.2fs", solver.wall_time)

    # ------------------------------------------------------------------
    # Step 5: Extract solution
    # ------------------------------------------------------------------
    result = [[CellState.WATER] * size for _ in range(size)]
    for ship, var in placements:
        if solver.value(var):
            for index, cell in enumerate(ship.cells):
                result[cell.row][cell.col] = ship.role_at(index)
    return result
