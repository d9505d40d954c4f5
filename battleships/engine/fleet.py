"""Remaining ship counts and the registry of confirmed ships."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, List, Optional, Sequence, Tuple

from ..core.exceptions import ContradictionError, PuzzleConfigError
from ..core.models import Coord, Ship
from ..utils.logger import get_logger


LOGGER = get_logger(__name__)


@dataclass
class FleetSnapshot:
    remaining: Tuple[int, ...]
    found: Tuple[Ship, ...]


class Fleet:
    """Tracks which ships are still to be located.

    ``counts[i]`` is the number of ships of length ``i + 1``. A ship is
    moved from *remaining* to *found* only through :meth:`register`, so
    ``remaining(n) + found_count(n) == original(n)`` holds for every length.
    """

    def __init__(self, counts: Sequence[int]) -> None:
        original = []
        for index, count in enumerate(counts):
            try:
                value = int(count)
            except (TypeError, ValueError) as exc:
                raise PuzzleConfigError(
                    f"Fleet count for length {index + 1} is not a number: {count!r}"
                ) from exc
            if value < 0:
                raise PuzzleConfigError(
                    f"Fleet count for length {index + 1} is negative: {value}"
                )
            original.append(value)
        self.original: Tuple[int, ...] = tuple(original)
        self._remaining: List[int] = list(original)
        self.found: List[Ship] = []
        self._cells: Dict[Coord, Ship] = {}

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------
    @property
    def longest_possible(self) -> int:
        """Longest length the fleet was built with (zero counts included)."""
        return len(self.original)

    def original_count(self, length: int) -> int:
        if 1 <= length <= len(self.original):
            return self.original[length - 1]
        return 0

    def remaining(self, length: int) -> int:
        if 1 <= length <= len(self._remaining):
            return self._remaining[length - 1]
        return 0

    def found_count(self, length: int) -> int:
        return sum(1 for ship in self.found if ship.length == length)

    def max_remaining_length(self) -> int:
        """Greatest length still to be found, or 0 once the fleet is exhausted."""

        for length in range(len(self._remaining), 0, -1):
            if self._remaining[length - 1] > 0:
                return length
        return 0

    def is_exhausted(self) -> bool:
        return self.max_remaining_length() == 0

    def ship_at(self, coord: Coord) -> Optional[Ship]:
        return self._cells.get(coord)

    def in_found_ship(self, coord: Coord) -> bool:
        return coord in self._cells

    # ------------------------------------------------------------------
    # Mutation
    # ------------------------------------------------------------------
    def register(self, ship: Ship) -> None:
        """Record a confirmed ship and decrement the matching count."""

        if self.remaining(ship.length) <= 0:
            raise ContradictionError(
                f"No ship of length {ship.length} left to place at {tuple(ship.start)}"
            )
        for coord in ship.cells:
            if coord in self._cells:
                raise ContradictionError(
                    f"Cell {tuple(coord)} already belongs to a confirmed ship"
                )
        self._remaining[ship.length - 1] -= 1
        self.found.append(ship)
        for coord in ship.cells:
            self._cells[coord] = ship
        LOGGER.debug(
            "Found ship of length %s at (%s,%s); %s left of that length",
            ship.length,
            ship.start.row,
            ship.start.col,
            self._remaining[ship.length - 1],
        )

    def snapshot(self) -> FleetSnapshot:
        return FleetSnapshot(remaining=tuple(self._remaining), found=tuple(self.found))

    def restore(self, snapshot: FleetSnapshot) -> None:
        self._remaining = list(snapshot.remaining)
        self.found = list(snapshot.found)
        self._cells = {coord: ship for ship in self.found for coord in ship.cells}
