"""Pluggable filter language interface.

The filter controller only talks to a PredicateEngine, so the matching
language can be swapped (typed expressions, plain key/value matching, ...)
without touching the controller.
"""

from abc import ABC, abstractmethod
from typing import Any, Mapping

from .schema import FieldType


class PredicateEngine(ABC):
    """Parses, type-checks and evaluates filter text against records."""

    name: str = ""
    help_text: str = ""

    @abstractmethod
    def parse(self, text: str) -> Any:
        """Compile filter text into an engine-specific predicate.

        Raises:
            FilterSyntaxError: if the text is not valid syntax.
        """

    @abstractmethod
    def check(self, predicate: Any, schema: Mapping[str, FieldType]) -> None:
        """Validate a parsed predicate against the field schema.

        Raises:
            FilterTypeError: if the predicate does not type-check.
        """

    @abstractmethod
    def evaluate(self, predicate: Any, fields: Mapping[str, Any]) -> bool:
        """Decide whether one record's fields match.

        Raises:
            EvaluationError: if this record cannot be evaluated.
        """

    @abstractmethod
    def quick_filter(self, field_name: str, value: Any) -> str:
        """Render filter text meaning "field equals value".

        Raises:
            ValueError: for unknown fields or values the language cannot express.
        """
