"""Data models supporting the battleships solver."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import List, NamedTuple, Optional

from .constants import Axis, CellState, Direction


class Coord(NamedTuple):
    """Grid coordinate as ``(row, col)``."""

    row: int
    col: int

    def step(self, direction: Direction, distance: int = 1) -> "Coord":
        return Coord(
            self.row + direction.row_delta * distance,
            self.col + direction.col_delta * distance,
        )


@dataclass(frozen=True)
class Ship:
    """A ship whose full extent is known.

    ``axis`` is ``None`` for length-1 ships, where orientation is meaningless.
    """

    length: int
    start: Coord
    axis: Optional[Axis] = None

    @property
    def cells(self) -> List[Coord]:
        if self.length == 1 or self.axis is None:
            return [self.start]
        return [self.start.step(self.axis.forward, i) for i in range(self.length)]

    def role_at(self, index: int) -> CellState:
        """Cell state the ``index``-th cell of this ship must hold."""

        if self.length == 1 or self.axis is None:
            return CellState.SINGLE
        if index == 0:
            return self.axis.start_cap
        if index == self.length - 1:
            return self.axis.finish_cap
        return CellState.MIDDLE


@dataclass
class SolveStats:
    """Counters collected while solving."""

    passes: int = 0
    guesses: int = 0
    backtracks: int = 0
    forced_placements: int = 0
    ships_found: List[Ship] = field(default_factory=list)
