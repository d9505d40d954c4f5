"""Custom exception hierarchy for the battleships solver."""


class BattleshipsError(Exception):
    """Base exception for solver failures."""


class PuzzleConfigError(BattleshipsError, ValueError):
    """Raised when construction input is malformed."""


class PuzzleFileError(BattleshipsError):
    """Raised when a puzzle file cannot be read or parsed."""


class ContradictionError(BattleshipsError):
    """Raised when the current grid cannot lead to any solution."""
