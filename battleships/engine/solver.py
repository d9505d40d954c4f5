"""Solve orchestration: deduction to a fixpoint, then backtracking search.

Two phases:
  1. Propagation: run the deduction pipeline until the grid stops changing.
  2. Search: guess a role for the first blank cell, propagate again, and
     restore the saved context whenever a guess leads to a contradiction.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import List, Optional, Sequence

from ..core.constants import Axis, CellState, Direction, Engine
from ..core.exceptions import ContradictionError, PuzzleConfigError
from ..core.models import Coord, SolveStats
from ..utils import pretty
from ..utils.logger import get_logger
from .constraints import LineConstraints
from .context import ContextSnapshot, SolverContext
from .cp_sat import solve_with_cp_sat
from .fleet import Fleet
from .grid import ShipGrid
from .placement import can_place_segment
from .rules import PIPELINE, mark_zero_lines, register_completed_ships
from .rules import resolve_ships_of_unknown_length, resolve_unknown_segments
from .validator import GridValidator, check_consistency


LOGGER = get_logger(__name__)

# Roles for a blank cell that does not continue a ship from above or the left.
OPENING_ROLES = (CellState.SINGLE, CellState.LEFT_END, CellState.TOP_END, CellState.WATER)
# Roles for a blank cell directly below or right of a segment.
CONTINUATION_ROLES = (CellState.UNKNOWN, CellState.WATER)

_ROLE_AXIS = {
    CellState.LEFT_END: Axis.HORIZONTAL,
    CellState.TOP_END: Axis.VERTICAL,
}


@dataclass
class SolverConfig:
    """Configuration values driving a solve attempt."""

    engine: Engine = Engine.DEDUCE
    backtracking: bool = True
    cp_sat_timeout: float = 30.0
    cp_sat_workers: int = 4


@dataclass
class _Frame:
    coord: Coord
    snapshot: ContextSnapshot
    roles: List[CellState] = field(default_factory=list)


class BattleshipsPuzzle:
    """A battleships puzzle and the engine that solves it in place.

    Args:
        grid: Square matrix of cell hints (``CellState`` values, glyphs or
            digit codes); blank cells carry no information.
        col_constraints: Required segment count for each column.
        row_constraints: Required segment count for each row.
        fleet: ``fleet[i]`` is the number of ships of length ``i + 1``.
        config: Optional solver configuration.
    """

    def __init__(
        self,
        grid: Sequence[Sequence[object]],
        col_constraints: Sequence[int],
        row_constraints: Sequence[int],
        fleet: Sequence[int],
        config: Optional[SolverConfig] = None,
    ) -> None:
        if not grid:
            raise PuzzleConfigError("Grid must contain at least one row")
        self.config = config or SolverConfig()
        ship_grid = ShipGrid(grid)
        self.context = SolverContext(
            grid=ship_grid,
            constraints=LineConstraints(row_constraints, col_constraints, ship_grid.size),
            fleet=Fleet(fleet),
        )
        self.validator = GridValidator()
        self._prepared = False

    # ------------------------------------------------------------------
    # Read-only accessors
    # ------------------------------------------------------------------
    @property
    def size(self) -> int:
        return self.context.grid.size

    @property
    def stats(self) -> SolveStats:
        return self.context.stats

    @property
    def row_constraints(self) -> Sequence[int]:
        return self.context.constraints.rows

    @property
    def col_constraints(self) -> Sequence[int]:
        return self.context.constraints.cols

    @property
    def fleet(self) -> Fleet:
        return self.context.fleet

    def get_grid(self) -> List[List[CellState]]:
        return self.context.grid.snapshot()

    def get_grid_string(self) -> str:
        return pretty.grid_string(self.get_grid())

    def get_grid_html(self) -> str:
        return pretty.grid_html(self.get_grid(), self.row_constraints, self.col_constraints)

    def format_grid(self) -> str:
        return pretty.format_grid(self.get_grid(), self.row_constraints, self.col_constraints)

    def is_solved(self) -> bool:
        return self.validator.validate(self.context).ok

    # ------------------------------------------------------------------
    # Public entrypoint
    # ------------------------------------------------------------------
    def solve(self) -> bool:
        """Solve in place; ``False`` leaves the most-deduced partial grid."""

        if self.config.engine == Engine.CP_SAT:
            solved = self._solve_with_cp_sat()
        else:
            solved = self._deduce()
        self.context.stats.ships_found = list(self.context.fleet.found)
        return solved

    def _deduce(self) -> bool:
        ctx = self.context
        try:
            if not self._prepared:
                mark_zero_lines(ctx)
                register_completed_ships(ctx)
                self._prepared = True
            self._propagate()
            if self._finish():
                LOGGER.info("Solved by deduction after %s pass(es)", ctx.stats.passes)
                return True
        except ContradictionError as exc:
            LOGGER.info("Puzzle has no solution: %s", exc)
            return False

        if not self.config.backtracking:
            LOGGER.info("Deduction stalled after %s pass(es); backtracking disabled", ctx.stats.passes)
            return False

        solved = self._search()
        LOGGER.info(
            "%s after %s guess(es), %s backtrack(s)",
            "Solved" if solved else "No solution",
            ctx.stats.guesses,
            ctx.stats.backtracks,
        )
        return solved

    # ------------------------------------------------------------------
    # Propagation
    # ------------------------------------------------------------------
    def _propagate(self) -> None:
        """Run the pipeline until the grid stops changing or has no blanks."""

        ctx = self.context
        while True:
            before = ctx.grid.snapshot()
            ctx.stats.passes += 1
            for rule in PIPELINE:
                rule(ctx)
            check_consistency(ctx)
            if ctx.grid.cells == before or not ctx.grid.has_blank():
                return

    def _settle(self) -> None:
        """Resolve unknown segments left over once no blank cells remain."""

        ctx = self.context
        while True:
            before = ctx.grid.snapshot()
            resolve_unknown_segments(ctx)
            resolve_ships_of_unknown_length(ctx)
            if ctx.grid.cells == before:
                return

    def _finish(self) -> bool:
        """``True`` once the grid is a verified solution.

        Returns ``False`` while blank cells remain and raises
        :class:`ContradictionError` for a complete grid that fails validation.
        """

        if self.context.grid.has_blank():
            return False
        self._settle()
        result = self.validator.validate(self.context)
        if not result.ok:
            raise ContradictionError("; ".join(result.messages))
        return True

    # ------------------------------------------------------------------
    # Backtracking
    # ------------------------------------------------------------------
    def _open_frame(self) -> Optional[_Frame]:
        grid = self.context.grid
        coord = grid.first_blank()
        if coord is None:
            return None
        continues = grid.is_segment(coord.step(Direction.UP)) or grid.is_segment(
            coord.step(Direction.LEFT)
        )
        roles = CONTINUATION_ROLES if continues else OPENING_ROLES
        return _Frame(coord=coord, snapshot=self.context.snapshot(), roles=list(roles))

    def _next_legal_role(self, frame: _Frame) -> Optional[CellState]:
        grid = self.context.grid
        while frame.roles:
            role = frame.roles.pop(0)
            if role == CellState.WATER:
                return role
            if can_place_segment(grid, frame.coord, role, _ROLE_AXIS.get(role)):
                return role
        return None

    def _search(self) -> bool:
        """Depth-first search over an explicit stack of guess frames."""

        ctx = self.context
        root = self._open_frame()
        if root is None:
            return False
        stack = [root]
        while stack:
            frame = stack[-1]
            ctx.restore(frame.snapshot)
            role = self._next_legal_role(frame)
            if role is None:
                stack.pop()
                ctx.stats.backtracks += 1
                continue

            ctx.stats.guesses += 1
            LOGGER.debug(
                "Guess %s at (%s,%s), depth %s",
                role.value,
                frame.coord.row,
                frame.coord.col,
                len(stack),
            )
            ctx.grid.set(frame.coord, role)
            try:
                self._propagate()
                if self._finish():
                    return True
            except ContradictionError as exc:
                LOGGER.debug("Guess rejected: %s", exc)
                continue

            child = self._open_frame()
            if child is not None:
                stack.append(child)

        ctx.restore(root.snapshot)
        return False

    # ------------------------------------------------------------------
    # Alternative engine
    # ------------------------------------------------------------------
    def _solve_with_cp_sat(self) -> bool:
        ctx = self.context
        solution = solve_with_cp_sat(
            ctx.grid.snapshot(),
            ctx.constraints.rows,
            ctx.constraints.cols,
            ctx.fleet.original,
            timeout=self.config.cp_sat_timeout,
            num_workers=self.config.cp_sat_workers,
        )
        if solution is None:
            return False
        ctx.grid.restore(solution)
        return True
