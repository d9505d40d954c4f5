"""Shared constants and enumerations for the battleships solver."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Dict, Optional, Tuple


class CellState(str, Enum):
    """All supported cell states in the grid."""

    BLANK = "BLANK"
    WATER = "WATER"
    SINGLE = "SINGLE"
    LEFT_END = "LEFT_END"
    RIGHT_END = "RIGHT_END"
    TOP_END = "TOP_END"
    BOTTOM_END = "BOTTOM_END"
    MIDDLE = "MIDDLE"
    UNKNOWN = "UNKNOWN"

    @property
    def code(self) -> str:
        """Digit used by the flattened grid string."""
        return _CODES[self]

    @property
    def glyph(self) -> str:
        """Character used by the plain-text puzzle format."""
        return _GLYPHS[self]

    @classmethod
    def parse(cls, value: object) -> "CellState":
        """Accept a ``CellState``, its name, a glyph or a digit code."""

        if isinstance(value, CellState):
            return value
        if isinstance(value, int) and not isinstance(value, bool):
            value = str(value)
        if isinstance(value, str):
            if value in _BY_GLYPH:
                return _BY_GLYPH[value]
            if value in _BY_CODE:
                return _BY_CODE[value]
            try:
                return cls[value.upper()]
            except KeyError:
                pass
        raise ValueError(f"Unrecognised cell value: {value!r}")


_CODES: Dict[CellState, str] = {
    CellState.BLANK: "0",
    CellState.SINGLE: "1",
    CellState.LEFT_END: "2",
    CellState.MIDDLE: "3",
    CellState.RIGHT_END: "4",
    CellState.TOP_END: "5",
    CellState.BOTTOM_END: "6",
    CellState.WATER: "7",
    CellState.UNKNOWN: "8",
}

_GLYPHS: Dict[CellState, str] = {
    CellState.BLANK: "0",
    CellState.SINGLE: "S",
    CellState.LEFT_END: "<",
    CellState.MIDDLE: "M",
    CellState.RIGHT_END: ">",
    CellState.TOP_END: "^",
    CellState.BOTTOM_END: "v",
    CellState.WATER: ".",
    CellState.UNKNOWN: "?",
}

# Glyphs are checked first, so "0" resolves to BLANK either way.
_BY_GLYPH: Dict[str, CellState] = {glyph: state for state, glyph in _GLYPHS.items()}
_BY_CODE: Dict[str, CellState] = {code: state for state, code in _CODES.items()}


END_CAPS = frozenset(
    {CellState.LEFT_END, CellState.RIGHT_END, CellState.TOP_END, CellState.BOTTOM_END}
)
KNOWN_SEGMENTS = frozenset(END_CAPS | {CellState.SINGLE, CellState.MIDDLE})
ANY_SEGMENTS = frozenset(KNOWN_SEGMENTS | {CellState.UNKNOWN})


class Direction(Enum):
    """Unit steps on the grid, stored as ``(row_delta, col_delta)``."""

    UP = (-1, 0)
    DOWN = (1, 0)
    LEFT = (0, -1)
    RIGHT = (0, 1)
    UP_LEFT = (-1, -1)
    UP_RIGHT = (-1, 1)
    DOWN_LEFT = (1, -1)
    DOWN_RIGHT = (1, 1)

    @property
    def row_delta(self) -> int:
        return self.value[0]

    @property
    def col_delta(self) -> int:
        return self.value[1]

    @property
    def opposite(self) -> "Direction":
        return _OPPOSITES[self]

    @property
    def perpendiculars(self) -> Tuple["Direction", "Direction"]:
        if self in (Direction.UP, Direction.DOWN):
            return (Direction.LEFT, Direction.RIGHT)
        if self in (Direction.LEFT, Direction.RIGHT):
            return (Direction.UP, Direction.DOWN)
        raise ValueError(f"{self.name} has no perpendiculars")

    @property
    def axis(self) -> "Axis":
        if self in (Direction.LEFT, Direction.RIGHT):
            return Axis.HORIZONTAL
        if self in (Direction.UP, Direction.DOWN):
            return Axis.VERTICAL
        raise ValueError(f"{self.name} is not a cardinal direction")

    def end_cap_facing_toward(self) -> CellState:
        """End cap whose closed side points this way (its partner is behind it)."""
        return _FACING_TOWARD[self]

    def end_cap_facing_away(self) -> CellState:
        """End cap whose open side points this way (its partner lies ahead)."""
        return _FACING_TOWARD[self.opposite]


CARDINAL_DIRECTIONS: Tuple[Direction, ...] = (
    Direction.UP,
    Direction.DOWN,
    Direction.LEFT,
    Direction.RIGHT,
)
DIAGONAL_DIRECTIONS: Tuple[Direction, ...] = (
    Direction.UP_LEFT,
    Direction.UP_RIGHT,
    Direction.DOWN_LEFT,
    Direction.DOWN_RIGHT,
)
ALL_DIRECTIONS: Tuple[Direction, ...] = CARDINAL_DIRECTIONS + DIAGONAL_DIRECTIONS

_OPPOSITES: Dict[Direction, Direction] = {
    Direction.UP: Direction.DOWN,
    Direction.DOWN: Direction.UP,
    Direction.LEFT: Direction.RIGHT,
    Direction.RIGHT: Direction.LEFT,
    Direction.UP_LEFT: Direction.DOWN_RIGHT,
    Direction.DOWN_RIGHT: Direction.UP_LEFT,
    Direction.UP_RIGHT: Direction.DOWN_LEFT,
    Direction.DOWN_LEFT: Direction.UP_RIGHT,
}

_FACING_TOWARD: Dict[Direction, CellState] = {
    Direction.UP: CellState.TOP_END,
    Direction.DOWN: CellState.BOTTOM_END,
    Direction.LEFT: CellState.LEFT_END,
    Direction.RIGHT: CellState.RIGHT_END,
}


class Axis(str, Enum):
    """Ship orientations."""

    HORIZONTAL = "HORIZONTAL"
    VERTICAL = "VERTICAL"

    @property
    def forward(self) -> Direction:
        return Direction.RIGHT if self == Axis.HORIZONTAL else Direction.DOWN

    @property
    def start_cap(self) -> CellState:
        return CellState.LEFT_END if self == Axis.HORIZONTAL else CellState.TOP_END

    @property
    def finish_cap(self) -> CellState:
        return CellState.RIGHT_END if self == Axis.HORIZONTAL else CellState.BOTTOM_END

    @property
    def across(self) -> "Axis":
        return Axis.VERTICAL if self == Axis.HORIZONTAL else Axis.HORIZONTAL

    @classmethod
    def of_start_cap(cls, state: CellState) -> Optional["Axis"]:
        if state == CellState.LEFT_END:
            return cls.HORIZONTAL
        if state == CellState.TOP_END:
            return cls.VERTICAL
        return None


# Side of each end cap that continues into the rest of its ship.
OPEN_SIDE: Dict[CellState, Direction] = {
    CellState.LEFT_END: Direction.RIGHT,
    CellState.RIGHT_END: Direction.LEFT,
    CellState.TOP_END: Direction.DOWN,
    CellState.BOTTOM_END: Direction.UP,
}


@dataclass(frozen=True)
class Bounds:
    """Square board bounds helper."""

    size: int

    def contains(self, row: int, col: int) -> bool:
        return 0 <= row < self.size and 0 <= col < self.size


class Engine(str, Enum):
    """Solving strategies available to :class:`BattleshipsPuzzle`."""

    DEDUCE = "deduce"
    CP_SAT = "cp-sat"
