"""CLI entrypoint for the battleships solitaire solver."""

from __future__ import annotations

import argparse
import json
import sys
from pathlib import Path
from typing import Any, Dict

from battleships.core.constants import Engine
from battleships.core.exceptions import BattleshipsError
from battleships.engine.solver import BattleshipsPuzzle, SolverConfig
from battleships.io.puzzle_file import dump_solution_text, load_puzzle, save_solution
from battleships.utils.logger import configure_logging
from battleships.utils.pretty import print_solve_stats


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Solve battleships solitaire puzzles",
    )
    parser.add_argument(
        "--puzzle",
        type=Path,
        required=True,
        metavar="FILE",
        help="Puzzle file (.json, or plain text with rows/cols/fleet lines then the grid)",
    )
    parser.add_argument(
        "--engine",
        type=str,
        choices=[e.value for e in Engine],
        default=Engine.DEDUCE.value,
        help="Solving strategy (default: deduce)",
    )
    parser.add_argument(
        "--no-backtracking",
        action="store_true",
        help="Stop once deduction stalls instead of guessing",
    )
    parser.add_argument(
        "--format",
        type=str,
        choices=["text", "string", "json", "html"],
        default="text",
        help="Output format for the resulting grid",
    )
    parser.add_argument("--output", type=Path, help="Optional path to write the output to")
    parser.add_argument(
        "--save-solution",
        type=Path,
        metavar="FILE",
        help="Also write the solved grid as glyph rows (plain-text puzzle grid format)",
    )
    parser.add_argument(
        "--timeout",
        type=float,
        default=30.0,
        help="Time limit in seconds for the cp-sat engine",
    )
    parser.add_argument(
        "--log-level",
        type=str,
        default="INFO",
        help="Logging level (DEBUG, INFO, WARNING, ERROR)",
    )
    parser.add_argument(
        "--stats",
        action="store_true",
        help="Print solve counters to stderr",
    )
    return parser


def render(puzzle: BattleshipsPuzzle, fmt: str, solved: bool) -> str:
    if fmt == "string":
        return puzzle.get_grid_string()
    if fmt == "html":
        return puzzle.get_grid_html()
    if fmt == "json":
        stats = puzzle.stats
        payload: Dict[str, Any] = {
            "solved": solved,
            "rows": list(puzzle.row_constraints),
            "cols": list(puzzle.col_constraints),
            "fleet": list(puzzle.fleet.original),
            "grid": dump_solution_text(puzzle.get_grid()).splitlines(),
            "stats": {
                "passes": stats.passes,
                "guesses": stats.guesses,
                "backtracks": stats.backtracks,
                "forced_placements": stats.forced_placements,
                "ships_found": [
                    {
                        "length": ship.length,
                        "start": [ship.start.row, ship.start.col],
                        "axis": ship.axis.value if ship.axis else None,
                    }
                    for ship in stats.ships_found
                ],
            },
        }
        return json.dumps(payload, ensure_ascii=False, indent=2)
    return puzzle.format_grid()


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    configure_logging(args.log_level)

    if args.timeout <= 0:
        parser.error("--timeout must be positive")

    config = SolverConfig(
        engine=Engine(args.engine),
        backtracking=not args.no_backtracking,
        cp_sat_timeout=args.timeout,
    )

    try:
        data = load_puzzle(args.puzzle)
        puzzle = BattleshipsPuzzle(data.grid, data.cols, data.rows, data.fleet, config)
    except BattleshipsError as exc:
        parser.error(str(exc))

    solved = puzzle.solve()
    output_text = render(puzzle, args.format, solved)
    if args.output:
        args.output.write_text(output_text + "\n", encoding="utf-8")
    else:
        print(output_text)
    if args.save_solution and solved:
        save_solution(puzzle.get_grid(), args.save_solution)
    if args.stats:
        print_solve_stats(puzzle.stats, stream=sys.stderr)
    return 0 if solved else 1


if __name__ == "__main__":  # pragma: no cover
    sys.exit(main())
