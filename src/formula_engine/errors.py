"""Exception hierarchy for the formula engine."""

from typing import List, Optional


class FormulaEngineError(Exception):
    """Base class for all errors raised by the engine."""
    pass


class ValidationError(FormulaEngineError):
    """
    Raised when a formula definition is structurally invalid.

    Caught once when a formula is saved or loaded, never while pricing.
    `errors` holds every problem found so the author can fix them together.
    """

    def __init__(self, message: str, errors: Optional[List[str]] = None):
        super().__init__(message)
        self.errors = list(errors) if errors else [message]


class FormulaError(FormulaEngineError):
    """Raised when formula text cannot be parsed or evaluated safely."""
    pass
