"""Exceptions raised outside the pure scheduling core."""


class CadenceError(Exception):
    """Base class for recoverable cadence errors."""


class StaleCardError(CadenceError):
    """
    Raised when a card transition was computed from an out-of-date card.

    SM-2 derives the new interval from the previous one, so the caller must
    reload the latest card and recompute instead of overwriting.
    """

    def __init__(self, problem_id: str):
        super().__init__(f"Card '{problem_id}' was modified concurrently; reload and retry.")
        self.problem_id = problem_id


class CatalogError(CadenceError):
    """Raised when a problem catalog file cannot be read or validated."""
