"""Row and column segment counts with their satisfied-set."""

from __future__ import annotations

from typing import FrozenSet, Iterator, Sequence, Set, Tuple

from ..core.constants import Axis
from ..core.exceptions import PuzzleConfigError


ConstraintSnapshot = Tuple[FrozenSet[int], FrozenSet[int]]


class LineConstraints:
    """Required segment counts per line plus the lines already resolved.

    Rows are horizontal lines and columns vertical ones. Counts never change
    after construction; the satisfied sets only grow during a solve attempt.
    """

    def __init__(self, rows: Sequence[int], cols: Sequence[int], size: int) -> None:
        self.rows: Tuple[int, ...] = self._validated("row", rows, size)
        self.cols: Tuple[int, ...] = self._validated("column", cols, size)
        self.satisfied_rows: Set[int] = set()
        self.satisfied_cols: Set[int] = set()

    @staticmethod
    def _validated(label: str, counts: Sequence[int], size: int) -> Tuple[int, ...]:
        if len(counts) != size:
            raise PuzzleConfigError(
                f"Expected {size} {label} constraints, got {len(counts)}"
            )
        values = []
        for index, count in enumerate(counts):
            try:
                value = int(count)
            except (TypeError, ValueError) as exc:
                raise PuzzleConfigError(
                    f"{label.capitalize()} constraint {index} is not a number: {count!r}"
                ) from exc
            if value < 0 or value > size:
                raise PuzzleConfigError(
                    f"{label.capitalize()} constraint {index} out of range 0..{size}: {value}"
                )
            values.append(value)
        return tuple(values)

    def lines(self) -> Iterator[Tuple[Axis, int]]:
        """Every row, then every column."""

        for index in range(len(self.rows)):
            yield Axis.HORIZONTAL, index
        for index in range(len(self.cols)):
            yield Axis.VERTICAL, index

    def required(self, axis: Axis, index: int) -> int:
        if axis == Axis.HORIZONTAL:
            return self.rows[index]
        return self.cols[index]

    def _satisfied(self, axis: Axis) -> Set[int]:
        return self.satisfied_rows if axis == Axis.HORIZONTAL else self.satisfied_cols

    def is_satisfied(self, axis: Axis, index: int) -> bool:
        return index in self._satisfied(axis)

    def mark_satisfied(self, axis: Axis, index: int) -> None:
        self._satisfied(axis).add(index)

    def snapshot(self) -> ConstraintSnapshot:
        return frozenset(self.satisfied_rows), frozenset(self.satisfied_cols)

    def restore(self, snapshot: ConstraintSnapshot) -> None:
        rows, cols = snapshot
        self.satisfied_rows = set(rows)
        self.satisfied_cols = set(cols)
