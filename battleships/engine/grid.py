"""Grid representation and cell predicates."""

from __future__ import annotations

from typing import Callable, Iterable, Iterator, List, Optional, Sequence

from ..core.constants import (
    ANY_SEGMENTS,
    END_CAPS,
    KNOWN_SEGMENTS,
    Axis,
    Bounds,
    CellState,
    Direction,
)
from ..core.exceptions import PuzzleConfigError
from ..core.models import Coord


GridSnapshot = List[List[CellState]]


class ShipGrid:
    """Owns the N×N matrix of cell states.

    Reads outside the board return ``None`` rather than a cell state, so an
    off-grid neighbour never satisfies any of the predicates below.
    """

    def __init__(self, cells: Sequence[Sequence[object]]) -> None:
        size = len(cells)
        for index, row in enumerate(cells):
            if not isinstance(row, Sequence):
                raise PuzzleConfigError(
                    f"Grid row {index} must be a sequence of cells, got {type(row).__name__}"
                )
            if len(row) != size:
                raise PuzzleConfigError(
                    f"Grid must be square: row {index} has {len(row)} cells, expected {size}"
                )
        self.bounds = Bounds(size)
        try:
            self.cells: List[List[CellState]] = [
                [CellState.parse(value) for value in row] for row in cells
            ]
        except ValueError as exc:
            raise PuzzleConfigError(str(exc)) from exc

    @classmethod
    def blank(cls, size: int) -> "ShipGrid":
        return cls([[CellState.BLANK] * size for _ in range(size)])

    @property
    def size(self) -> int:
        return self.bounds.size

    # ------------------------------------------------------------------
    # Access
    # ------------------------------------------------------------------
    def contains(self, coord: Coord) -> bool:
        return self.bounds.contains(coord.row, coord.col)

    def get(self, coord: Coord) -> Optional[CellState]:
        if not self.contains(coord):
            return None
        return self.cells[coord.row][coord.col]

    def get_in_direction(self, coord: Coord, direction: Direction) -> Optional[CellState]:
        return self.get(coord.step(direction))

    def set(self, coord: Coord, state: CellState) -> None:
        self.cells[coord.row][coord.col] = state

    def mark_if_blank(self, coord: Coord, state: CellState) -> bool:
        """Write ``state`` only onto an on-grid blank cell."""

        if self.get(coord) != CellState.BLANK:
            return False
        self.set(coord, state)
        return True

    def mark_directions_as_water(self, coord: Coord, directions: Iterable[Direction]) -> None:
        for direction in directions:
            self.mark_if_blank(coord.step(direction), CellState.WATER)

    # ------------------------------------------------------------------
    # Predicates
    # ------------------------------------------------------------------
    def is_water(self, coord: Coord) -> bool:
        return self.get(coord) == CellState.WATER

    def is_blank(self, coord: Coord) -> bool:
        return self.get(coord) == CellState.BLANK

    def is_middle(self, coord: Coord) -> bool:
        return self.get(coord) == CellState.MIDDLE

    def is_end_cap(self, coord: Coord) -> bool:
        return self.get(coord) in END_CAPS

    def is_known_segment(self, coord: Coord) -> bool:
        return self.get(coord) in KNOWN_SEGMENTS

    def is_unknown_segment(self, coord: Coord) -> bool:
        return self.get(coord) == CellState.UNKNOWN

    def is_segment(self, coord: Coord) -> bool:
        return self.get(coord) in ANY_SEGMENTS

    def is_blocked(self, coord: Coord) -> bool:
        """Water or off-grid: nothing of a ship can continue there."""

        state = self.get(coord)
        return state is None or state == CellState.WATER

    # ------------------------------------------------------------------
    # Iteration
    # ------------------------------------------------------------------
    def coords(self) -> Iterator[Coord]:
        """All coordinates in row-major order."""

        for row in range(self.size):
            for col in range(self.size):
                yield Coord(row, col)

    def line(self, axis: Axis, index: int) -> List[Coord]:
        """Cells of row ``index`` (horizontal) or column ``index`` (vertical)."""

        if axis == Axis.HORIZONTAL:
            return [Coord(index, col) for col in range(self.size)]
        return [Coord(row, index) for row in range(self.size)]

    def count_in_line(
        self, axis: Axis, index: int, predicate: Callable[[Coord], bool]
    ) -> int:
        return sum(1 for coord in self.line(axis, index) if predicate(coord))

    def first_blank(self) -> Optional[Coord]:
        for coord in self.coords():
            if self.is_blank(coord):
                return coord
        return None

    def has_blank(self) -> bool:
        return self.first_blank() is not None

    def has_unknown(self) -> bool:
        return any(self.is_unknown_segment(coord) for coord in self.coords())

    # ------------------------------------------------------------------
    # Snapshots
    # ------------------------------------------------------------------
    def snapshot(self) -> GridSnapshot:
        return [list(row) for row in self.cells]

    def restore(self, snapshot: GridSnapshot) -> None:
        self.cells = [list(row) for row in snapshot]
