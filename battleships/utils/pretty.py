"""Read-only projections of a grid: text, flat string and HTML table."""

from __future__ import annotations

import html
import sys
from collections import Counter
from typing import TYPE_CHECKING, List, Sequence

from ..core.constants import CellState

if TYPE_CHECKING:
    from ..core.models import SolveStats


Matrix = Sequence[Sequence[CellState]]

HTML_SYMBOLS = {
    CellState.SINGLE: "⬤",
    CellState.MIDDLE: "■",
    CellState.LEFT_END: "◀",
    CellState.RIGHT_END: "▶",
    CellState.TOP_END: "▲",
    CellState.BOTTOM_END: "▼",
    CellState.UNKNOWN: "?",
}

_CELL_STYLE = (
    "font-size:1rem;width:1.25rem;text-align:center;"
    "padding:0;border:1px solid white;line-height:1;"
)


def grid_string(cells: Matrix) -> str:
    """Rows of digit codes joined with commas, e.g. ``"120,777,004"``."""

    return ",".join("".join(state.code for state in row) for row in cells)


def glyph_rows(cells: Matrix) -> List[str]:
    return ["".join(state.glyph for state in row) for row in cells]


def format_grid(cells: Matrix, rows: Sequence[int], cols: Sequence[int]) -> str:
    width = len(cells)
    lines = ["    " + " ".join(f"{count:>2}" for count in cols)]
    lines.append("    " + "-" * (3 * width - 1))
    for r, row in enumerate(cells):
        row_render = " ".join(f"{state.glyph:>2}" for state in row)
        lines.append(f"{rows[r]:>2} | {row_render}")
    return "\n".join(lines)


def grid_html(cells: Matrix, rows: Sequence[int], cols: Sequence[int]) -> str:
    """HTML table with column counts on top and row counts on the left."""

    parts = ['<table style="background:white;border-collapse:collapse;">']
    parts.append('<tr style="height:1.25rem;"><th></th>')
    for count in cols:
        parts.append(f'<th style="text-align:center;">{count}</th>')
    parts.append("</tr>")
    for r, row in enumerate(cells):
        parts.append(
            '<tr style="height:1.25rem;">'
            f'<th style="text-align:center;width:1.25rem;">{rows[r]}</th>'
        )
        for state in row:
            style = _CELL_STYLE
            if state == CellState.WATER:
                style += "background:aqua;"
            elif state == CellState.BLANK:
                style += "background:gray;"
            elif state == CellState.UNKNOWN:
                style += "color:purple;"
            symbol = html.escape(HTML_SYMBOLS.get(state, ""))
            parts.append(f'<td style="{style}">{symbol}</td>')
        parts.append("</tr>")
    parts.append("</table>")
    return "".join(parts)


def print_solve_stats(stats: SolveStats, *, stream=None) -> None:
    """Print counters collected by a solve attempt."""

    stream = stream or sys.stdout
    lengths = Counter(ship.length for ship in stats.ships_found)

    print(file=stream)
    print("--- Solve ---", file=stream)
    print(f"  Passes:        {stats.passes}", file=stream)
    print(f"  Guesses:       {stats.guesses}", file=stream)
    print(f"  Backtracks:    {stats.backtracks}", file=stream)
    print(f"  Forced ships:  {stats.forced_placements}", file=stream)
    if lengths:
        dist_parts = [f"{length}:{count}" for length, count in sorted(lengths.items())]
        print(f"  Ships found:   {' '.join(dist_parts)}", file=stream)
