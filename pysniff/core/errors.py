"""Exception hierarchy for the message inspector."""

from typing import Optional


class PySniffError(Exception):
    """Base class for all PySniff errors."""


class InvariantViolation(PySniffError):
    """Raised when a record would break the append-only id ordering."""


class FilterSyntaxError(PySniffError):
    """Filter text could not be parsed."""

    def __init__(self, message: str, position: Optional[int] = None):
        super().__init__(message)
        self.message = message
        self.position = position

    def __str__(self) -> str:
        if self.position is None:
            return self.message
        return f"{self.message} (at column {self.position + 1})"


class FilterTypeError(PySniffError):
    """Filter text parsed but does not type-check against the schema."""

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class EvaluationError(PySniffError):
    """A single record could not be evaluated against a valid predicate."""


class DecodeError(PySniffError):
    """A captured line is not a valid message record."""
