import unittest
from unittest import mock

from battleships.core.constants import ANY_SEGMENTS, Axis, CellState, Engine
from battleships.core.exceptions import PuzzleConfigError
from battleships.engine.rules import PIPELINE
from battleships.engine.solver import BattleshipsPuzzle, SolverConfig
from battleships.engine.validator import check_consistency


def blank(size: int):
    return [["0"] * size for _ in range(size)]


def rows_of(puzzle: BattleshipsPuzzle):
    return ["".join(state.glyph for state in row) for row in puzzle.get_grid()]


class TrivialPuzzleTests(unittest.TestCase):
    def test_single_cell_single_ship(self) -> None:
        puzzle = BattleshipsPuzzle([["0"]], [1], [1], [1])
        self.assertTrue(puzzle.solve())
        self.assertEqual(puzzle.get_grid(), [[CellState.SINGLE]])
        self.assertEqual(puzzle.get_grid_string(), "1")

    def test_all_water_board(self) -> None:
        puzzle = BattleshipsPuzzle(blank(3), [0, 0, 0], [0, 0, 0], [])
        self.assertTrue(puzzle.solve())
        self.assertEqual(puzzle.get_grid_string(), "777,777,777")

    def test_already_solved_grid_round_trips(self) -> None:
        solved = ["<>.S", "....", "^.S.", "v..."]
        puzzle = BattleshipsPuzzle(
            [list(row) for row in solved], [3, 1, 1, 1], [3, 0, 2, 1], [2, 2]
        )
        self.assertTrue(puzzle.is_solved())
        self.assertTrue(puzzle.solve())
        self.assertEqual(rows_of(puzzle), solved)
        self.assertEqual(puzzle.get_grid_string(), "2471,7777,5717,6777")
        self.assertEqual(puzzle.stats.guesses, 0)


class DeductionTests(unittest.TestCase):
    def test_forced_placement_solves_without_guessing(self) -> None:
        puzzle = BattleshipsPuzzle(
            blank(4), [1, 1, 0, 1], [2, 0, 1, 0], [1, 1], SolverConfig(backtracking=False)
        )
        self.assertTrue(puzzle.solve())
        self.assertEqual(rows_of(puzzle), ["<>..", "....", "...S", "...."])
        self.assertEqual(puzzle.stats.forced_placements, 1)

    def test_hints_are_propagated(self) -> None:
        grid = blank(4)
        grid[3][0] = "S"
        puzzle = BattleshipsPuzzle(grid, [1, 1, 1, 0], [2, 0, 0, 1], [1, 1])
        self.assertTrue(puzzle.solve())
        self.assertEqual(rows_of(puzzle), [".<>.", "....", "....", "S..."])
        self.assertEqual(puzzle.stats.guesses, 0)

    def test_fleet_is_conserved_and_ships_recorded(self) -> None:
        puzzle = BattleshipsPuzzle(blank(4), [1, 1, 0, 1], [2, 0, 1, 0], [1, 1])
        self.assertTrue(puzzle.solve())
        for length in (1, 2):
            self.assertEqual(
                puzzle.fleet.remaining(length) + puzzle.fleet.found_count(length),
                puzzle.fleet.original_count(length),
            )
        self.assertEqual(sorted(ship.length for ship in puzzle.stats.ships_found), [1, 2])

    def test_second_solve_is_a_no_op(self) -> None:
        puzzle = BattleshipsPuzzle(blank(4), [1, 1, 0, 1], [2, 0, 1, 0], [1, 1])
        self.assertTrue(puzzle.solve())
        first = puzzle.get_grid()
        self.assertTrue(puzzle.solve())
        self.assertEqual(puzzle.get_grid(), first)


class BacktrackingTests(unittest.TestCase):
    def make(self, backtracking: bool, rows=(2, 1, 1, 0)) -> BattleshipsPuzzle:
        return BattleshipsPuzzle(
            blank(4), [2, 1, 0, 1], list(rows), [2, 1], SolverConfig(backtracking=backtracking)
        )

    def test_deduction_alone_stalls(self) -> None:
        puzzle = self.make(backtracking=False)
        self.assertFalse(puzzle.solve())
        self.assertEqual(rows_of(puzzle), ["00.0", "00.0", "00.0", "...."])
        self.assertFalse(puzzle.is_solved())

    def test_backtracking_finds_the_unique_completion(self) -> None:
        puzzle = self.make(backtracking=True)
        self.assertTrue(puzzle.solve())
        self.assertEqual(rows_of(puzzle), ["<>..", "...S", "S...", "...."])
        self.assertTrue(puzzle.is_solved())
        self.assertEqual(puzzle.stats.guesses, 2)

    def test_over_constrained_variant_fails(self) -> None:
        puzzle = self.make(backtracking=True, rows=(2, 1, 1, 1))
        self.assertFalse(puzzle.solve())
        self.assertFalse(puzzle.is_solved())

    def test_ambiguous_board_takes_first_completion(self) -> None:
        puzzle = BattleshipsPuzzle(blank(4), [1, 1, 1, 0], [2, 0, 0, 1], [1, 1])
        self.assertTrue(puzzle.solve())
        self.assertEqual(rows_of(puzzle), ["<>..", "....", "....", "..S."])

    def test_unsolvable_puzzle_returns_false(self) -> None:
        puzzle = BattleshipsPuzzle(blank(4), [1, 0, 1, 0], [1, 0, 1, 0], [3])
        self.assertFalse(puzzle.solve())
        self.assertFalse(puzzle.is_solved())
        self.assertGreaterEqual(puzzle.stats.backtracks, 1)
        self.assertEqual(rows_of(puzzle), ["0.0.", "....", "0.0.", "...."])

    def test_touching_forced_ships_fail_without_search(self) -> None:
        puzzle = BattleshipsPuzzle(blank(4), [1, 1, 1, 0], [2, 0, 0, 1], [0, 2])
        self.assertFalse(puzzle.solve())
        self.assertEqual(puzzle.stats.guesses, 0)


class PassRecorder:
    """Stands in for the per-pass consistency check and records the state it saw."""

    def __init__(self) -> None:
        self.grids = []
        self.satisfied = []
        self.fleet_counts = []

    def __call__(self, ctx) -> None:
        check_consistency(ctx)
        fleet = ctx.fleet
        self.grids.append(ctx.grid.snapshot())
        self.satisfied.append(
            (frozenset(ctx.constraints.satisfied_rows), frozenset(ctx.constraints.satisfied_cols))
        )
        self.fleet_counts.append(
            [
                (fleet.remaining(length), fleet.found_count(length), fleet.original_count(length))
                for length in range(1, len(fleet.original) + 1)
            ]
        )


def diagonal_touches(cells):
    size = len(cells)
    touches = []
    for row in range(size):
        for col in range(size):
            if cells[row][col] not in ANY_SEGMENTS:
                continue
            for d_col in (-1, 1):
                r, c = row + 1, col + d_col
                if 0 <= r < size and 0 <= c < size and cells[r][c] in ANY_SEGMENTS:
                    touches.append(((row, col), (r, c)))
    return touches


def solve_recording(puzzle: BattleshipsPuzzle) -> PassRecorder:
    recorder = PassRecorder()
    with mock.patch("battleships.engine.solver.check_consistency", side_effect=recorder):
        puzzle.solve()
    return recorder


class PassInvariantTests(unittest.TestCase):
    def test_satisfied_lines_only_grow_and_hold_no_blanks(self) -> None:
        puzzle = BattleshipsPuzzle(
            blank(4), [1, 1, 0, 1], [2, 0, 1, 0], [1, 1], SolverConfig(backtracking=False)
        )
        recorder = solve_recording(puzzle)
        self.assertTrue(puzzle.is_solved())
        self.assertGreater(len(recorder.satisfied), 1)

        for (rows_before, cols_before), (rows_after, cols_after) in zip(
            recorder.satisfied, recorder.satisfied[1:]
        ):
            self.assertLessEqual(rows_before, rows_after)
            self.assertLessEqual(cols_before, cols_after)

        for cells, (rows, cols) in zip(recorder.grids, recorder.satisfied):
            for index in rows:
                self.assertNotIn(CellState.BLANK, cells[index])
            for index in cols:
                self.assertNotIn(CellState.BLANK, [row[index] for row in cells])

    def test_fleet_is_conserved_and_segments_never_touch_after_any_pass(self) -> None:
        for backtracking in (False, True):
            with self.subTest(backtracking=backtracking):
                puzzle = BattleshipsPuzzle(
                    blank(4), [2, 1, 0, 1], [2, 1, 1, 0], [2, 1],
                    SolverConfig(backtracking=backtracking),
                )
                recorder = solve_recording(puzzle)
                self.assertGreater(len(recorder.grids), 0)
                for counts in recorder.fleet_counts:
                    for remaining, found, original in counts:
                        self.assertEqual(remaining + found, original)
                for cells in recorder.grids:
                    self.assertEqual(diagonal_touches(cells), [])


class FixpointTests(unittest.TestCase):
    def assert_rules_change_nothing(self, puzzle: BattleshipsPuzzle) -> None:
        ctx = puzzle.context
        for rule in PIPELINE:
            with self.subTest(rule=rule.__name__):
                before = ctx.grid.snapshot()
                rule(ctx)
                self.assertEqual(ctx.grid.cells, before)

    def test_rules_are_idempotent_on_a_stalled_grid(self) -> None:
        puzzle = BattleshipsPuzzle(
            blank(4), [2, 1, 0, 1], [2, 1, 1, 0], [2, 1], SolverConfig(backtracking=False)
        )
        self.assertFalse(puzzle.solve())
        remaining = [puzzle.fleet.remaining(length) for length in (1, 2)]
        self.assert_rules_change_nothing(puzzle)
        self.assertEqual([puzzle.fleet.remaining(length) for length in (1, 2)], remaining)

    def test_rules_are_idempotent_on_a_solved_grid(self) -> None:
        puzzle = BattleshipsPuzzle(blank(4), [1, 1, 0, 1], [2, 0, 1, 0], [1, 1])
        self.assertTrue(puzzle.solve())
        self.assert_rules_change_nothing(puzzle)
        self.assertTrue(puzzle.fleet.is_exhausted())

    def test_rules_are_idempotent_on_a_hinted_grid(self) -> None:
        grid = blank(4)
        grid[3][0] = "S"
        puzzle = BattleshipsPuzzle(
            grid, [1, 1, 1, 0], [2, 0, 0, 1], [1, 1], SolverConfig(backtracking=False)
        )
        puzzle.solve()
        self.assert_rules_change_nothing(puzzle)
        self.assertTrue(
            all(puzzle.context.constraints.is_satisfied(Axis.HORIZONTAL, index) for index in (1, 2))
        )


class ConfigErrorTests(unittest.TestCase):
    def test_non_square_grid(self) -> None:
        with self.assertRaises(PuzzleConfigError):
            BattleshipsPuzzle([["0", "0"], ["0"]], [0, 0], [0, 0], [])

    def test_empty_grid(self) -> None:
        with self.assertRaises(PuzzleConfigError):
            BattleshipsPuzzle([], [], [], [])

    def test_constraint_length_mismatch(self) -> None:
        with self.assertRaises(PuzzleConfigError):
            BattleshipsPuzzle(blank(3), [0, 0], [0, 0, 0], [])

    def test_negative_fleet_count(self) -> None:
        with self.assertRaises(PuzzleConfigError):
            BattleshipsPuzzle(blank(2), [0, 0], [0, 0], [-1])


class CpSatEngineTests(unittest.TestCase):
    def test_engines_agree_on_unique_puzzle(self) -> None:
        deduced = BattleshipsPuzzle(blank(4), [1, 1, 0, 1], [2, 0, 1, 0], [1, 1])
        modelled = BattleshipsPuzzle(
            blank(4), [1, 1, 0, 1], [2, 0, 1, 0], [1, 1], SolverConfig(engine=Engine.CP_SAT)
        )
        self.assertTrue(deduced.solve())
        self.assertTrue(modelled.solve())
        self.assertEqual(modelled.get_grid(), deduced.get_grid())
        self.assertTrue(modelled.is_solved())

    def test_engines_agree_where_search_is_needed(self) -> None:
        modelled = BattleshipsPuzzle(
            blank(4), [2, 1, 0, 1], [2, 1, 1, 0], [2, 1], SolverConfig(engine=Engine.CP_SAT)
        )
        self.assertTrue(modelled.solve())
        self.assertEqual(rows_of(modelled), ["<>..", "...S", "S...", "...."])

    def test_cp_sat_reports_unsolvable_puzzle(self) -> None:
        puzzle = BattleshipsPuzzle(
            blank(4), [1, 0, 1, 0], [1, 0, 1, 0], [3], SolverConfig(engine=Engine.CP_SAT)
        )
        self.assertFalse(puzzle.solve())


if __name__ == "__main__":
    unittest.main()
