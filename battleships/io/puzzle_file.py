"""Puzzle file loading and solution saving.

Two formats are understood:

* JSON documents with ``rows``, ``cols``, ``fleet`` and ``grid`` keys, where
  ``grid`` is a list of glyph strings (or lists of glyphs / digit codes).
* Plain text: the row counts, the column counts and the fleet counts on the
  first three lines, followed by one line of glyphs per grid row. Counts may
  be written as contiguous digits (``"1203"``) or separated by spaces or
  commas when a value needs more than one digit.
"""

from __future__ import annotations

import json
import re
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, List, Sequence

from ..core.constants import CellState
from ..core.exceptions import PuzzleFileError
from ..utils.logger import get_logger
from ..utils.pretty import glyph_rows


LOGGER = get_logger(__name__)

_SEPARATORS = re.compile(r"[\s,;]+")


@dataclass
class Puzzle:
    """Everything needed to construct a :class:`BattleshipsPuzzle`."""

    grid: List[List[CellState]]
    rows: List[int]
    cols: List[int]
    fleet: List[int]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "rows": list(self.rows),
            "cols": list(self.cols),
            "fleet": list(self.fleet),
            "grid": glyph_rows(self.grid),
        }


# ----------------------------------------------------------------------
# Parsing
# ----------------------------------------------------------------------
def _parse_counts(line: str, label: str) -> List[int]:
    text = line.strip()
    if not text:
        raise PuzzleFileError(f"Missing {label} line")
    tokens = [token for token in _SEPARATORS.split(text) if token]
    if len(tokens) == 1:
        tokens = list(tokens[0])
    try:
        return [int(token) for token in tokens]
    except ValueError as exc:
        raise PuzzleFileError(f"Invalid {label} line: {line.strip()!r}") from exc


def _parse_row(row: Any, index: int) -> List[CellState]:
    values = list(row) if isinstance(row, str) else row
    if not isinstance(values, list):
        raise PuzzleFileError(f"Grid row {index} must be a string or a list")
    try:
        return [CellState.parse(value) for value in values]
    except ValueError as exc:
        raise PuzzleFileError(f"Grid row {index}: {exc}") from exc


def parse_text_puzzle(text: str) -> Puzzle:
    """Parse the plain-text puzzle format."""

    lines = [line.rstrip("\r") for line in text.splitlines()]
    lines = [line for line in lines if line.strip() and not line.lstrip().startswith("#")]
    if len(lines) < 3:
        raise PuzzleFileError("Text puzzle needs row, column and fleet lines")
    rows = _parse_counts(lines[0], "row constraint")
    cols = _parse_counts(lines[1], "column constraint")
    fleet = _parse_counts(lines[2], "fleet")
    grid_lines = lines[3:]
    if grid_lines:
        grid = [_parse_row(line.strip(), index) for index, line in enumerate(grid_lines)]
    else:
        grid = [[CellState.BLANK] * len(rows) for _ in rows]
    return Puzzle(grid=grid, rows=rows, cols=cols, fleet=fleet)


def parse_json_puzzle(payload: Dict[str, Any]) -> Puzzle:
    """Build a :class:`Puzzle` from a decoded JSON document."""

    if not isinstance(payload, dict):
        raise PuzzleFileError("JSON puzzle must be an object")
    missing = [key for key in ("rows", "cols", "fleet") if key not in payload]
    if missing:
        raise PuzzleFileError(f"JSON puzzle is missing key(s): {', '.join(missing)}")

    counts: Dict[str, List[int]] = {}
    for key in ("rows", "cols", "fleet"):
        value = payload[key]
        if isinstance(value, str):
            counts[key] = _parse_counts(value, key)
        elif isinstance(value, list):
            try:
                counts[key] = [int(item) for item in value]
            except (TypeError, ValueError) as exc:
                raise PuzzleFileError(f"Invalid {key!r} entry: {value!r}") from exc
        else:
            raise PuzzleFileError(f"{key!r} must be a list of integers")

    size = len(counts["rows"])
    raw_grid = payload.get("grid")
    if raw_grid is None:
        grid = [[CellState.BLANK] * size for _ in range(size)]
    elif isinstance(raw_grid, list):
        grid = [_parse_row(row, index) for index, row in enumerate(raw_grid)]
    else:
        raise PuzzleFileError("'grid' must be a list of rows")
    return Puzzle(grid=grid, rows=counts["rows"], cols=counts["cols"], fleet=counts["fleet"])


def load_puzzle(path: Path | str) -> Puzzle:
    """Load a puzzle from ``path``; ``.json`` files use the JSON format."""

    path = Path(path)
    try:
        text = path.read_text(encoding="utf-8")
    except OSError as exc:
        raise PuzzleFileError(f"Cannot read puzzle file {path}: {exc}") from exc

    if path.suffix.lower() == ".json":
        try:
            payload = json.loads(text)
        except json.JSONDecodeError as exc:
            raise PuzzleFileError(f"Invalid JSON in {path}: {exc}") from exc
        puzzle = parse_json_puzzle(payload)
    else:
        puzzle = parse_text_puzzle(text)
    LOGGER.info(
        "Loaded %dx%d puzzle from %s (fleet %s)",
        len(puzzle.grid),
        len(puzzle.grid),
        path,
        puzzle.fleet,
    )
    return puzzle


# ----------------------------------------------------------------------
# Writing
# ----------------------------------------------------------------------
def dump_solution_text(cells: Sequence[Sequence[CellState]]) -> str:
    """One line of glyphs per row, newline-terminated."""

    return "".join(row + "\n" for row in glyph_rows(cells))


def save_solution(cells: Sequence[Sequence[CellState]], path: Path | str) -> Path:
    """Write the solved grid rows to ``path``; the count lines are not repeated."""

    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(dump_solution_text(cells), encoding="utf-8")
    LOGGER.info("Solution written to %s", path)
    return path
