"""Battleships solitaire solver package.

This package exposes the public API surface via:

- ``battleships.engine.solver.BattleshipsPuzzle``: deduction plus backtracking.
- ``battleships.engine.cp_sat.solve_with_cp_sat``: OR-Tools alternative engine.
- ``battleships.io.puzzle_file.load_puzzle``: JSON and plain-text puzzle files.
"""

from .core.constants import CellState, Engine
from .engine.cp_sat import solve_with_cp_sat
from .engine.solver import BattleshipsPuzzle, SolverConfig
from .io.puzzle_file import Puzzle, load_puzzle

__all__ = [
    "BattleshipsPuzzle",
    "SolverConfig",
    "CellState",
    "Engine",
    "solve_with_cp_sat",
    "Puzzle",
    "load_puzzle",
]

__version__ = "0.1.0"
