import io
import json
import tempfile
import unittest
from contextlib import redirect_stderr, redirect_stdout
from pathlib import Path

import main


class CliTests(unittest.TestCase):
    def setUp(self) -> None:
        self._tmp = tempfile.TemporaryDirectory()
        self.addCleanup(self._tmp.cleanup)
        self.tmpdir = Path(self._tmp.name)
        self.puzzle_path = self.tmpdir / "puzzle.txt"
        self.puzzle_path.write_text("2010\n1101\n11\n", encoding="utf-8")

    def run_main(self, *extra: str):
        stream = io.StringIO()
        with redirect_stdout(stream):
            code = main.main(["--puzzle", str(self.puzzle_path), "--log-level", "WARNING", *extra])
        return code, stream.getvalue()

    def test_string_output(self) -> None:
        code, output = self.run_main("--format", "string")
        self.assertEqual(code, 0)
        self.assertEqual(output.strip(), "2477,7777,7771,7777")

    def test_json_output(self) -> None:
        code, output = self.run_main("--format", "json")
        payload = json.loads(output)
        self.assertEqual(code, 0)
        self.assertTrue(payload["solved"])
        self.assertEqual(payload["grid"], ["<>..", "....", "...S", "...."])
        self.assertEqual(len(payload["stats"]["ships_found"]), 2)

    def test_cp_sat_engine_writes_output_file(self) -> None:
        target = self.tmpdir / "solution.html"
        code, output = self.run_main("--engine", "cp-sat", "--format", "html", "--output", str(target))
        self.assertEqual(code, 0)
        self.assertEqual(output, "")
        self.assertIn("<table", target.read_text(encoding="utf-8"))

    def test_save_solution_and_stats(self) -> None:
        target = self.tmpdir / "solution.txt"
        errors = io.StringIO()
        with redirect_stderr(errors):
            code, _ = self.run_main("--save-solution", str(target), "--stats")
        self.assertEqual(code, 0)
        self.assertEqual(target.read_text(encoding="utf-8"), "<>..\n....\n...S\n....\n")
        self.assertIn("Forced ships:  1", errors.getvalue())

    def test_unsolved_puzzle_exits_with_one(self) -> None:
        self.puzzle_path.write_text("2001\n1110\n11\n", encoding="utf-8")
        code, output = self.run_main("--no-backtracking")
        self.assertEqual(code, 1)
        self.assertIn(" 2 | ", output)

    def test_malformed_puzzle_is_a_usage_error(self) -> None:
        self.puzzle_path.write_text("21\n1\n1\n", encoding="utf-8")
        with self.assertRaises(SystemExit):
            self.run_main()


if __name__ == "__main__":
    unittest.main()
