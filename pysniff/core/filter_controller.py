"""Filter state and filtered view derivation."""

from dataclasses import dataclass, field
from enum import Enum, auto
from typing import Any, List, Mapping, Optional, Sequence

from pysniff.logging import get_logger
from .errors import EvaluationError, FilterSyntaxError, FilterTypeError
from .expression_engine import ExpressionEngine
from .message_record import MessageRecord
from .predicate_engine import PredicateEngine
from .record_store import RecordStore
from .schema import MESSAGE_SCHEMA, FieldType

logger = get_logger(__name__)


class FilterState(Enum):
    """Validation state of the current filter text."""
    EMPTY = auto()          # No filter, everything matches
    VALID = auto()
    SYNTAX_ERROR = auto()
    TYPE_ERROR = auto()


@dataclass(frozen=True)
class FilterStatus:
    """Current filter state plus the error text or compiled predicate."""

    state: FilterState
    message: str = ""
    position: Optional[int] = None
    predicate: Any = field(default=None, repr=False, compare=False)

    @property
    def is_error(self) -> bool:
        return self.state in (FilterState.SYNTAX_ERROR, FilterState.TYPE_ERROR)

    @classmethod
    def empty(cls) -> "FilterStatus":
        return cls(FilterState.EMPTY)

    @classmethod
    def valid(cls, predicate: Any) -> "FilterStatus":
        return cls(FilterState.VALID, predicate=predicate)

    @classmethod
    def syntax_error(cls, error: FilterSyntaxError) -> "FilterStatus":
        return cls(FilterState.SYNTAX_ERROR, message=str(error), position=error.position)

    @classmethod
    def type_error(cls, error: FilterTypeError) -> "FilterStatus":
        return cls(FilterState.TYPE_ERROR, message=error.message)


class FilterController:
    """Keeps the filter state in step with the filter text and derives the view."""

    def __init__(self, engine: Optional[PredicateEngine] = None,
                 schema: Optional[Mapping[str, FieldType]] = None):
        self._engine = engine if engine is not None else ExpressionEngine()
        self._schema = dict(schema if schema is not None else MESSAGE_SCHEMA)
        self._text = ""
        self._status = FilterStatus.empty()

        # Resume state: view built from the first _scanned records of generation _generation
        self._view: List[MessageRecord] = []
        self._scanned = 0
        self._generation = -1
        self._evaluation_failures = 0

    @property
    def engine(self) -> PredicateEngine:
        return self._engine

    @property
    def text(self) -> str:
        """Raw filter text as last set."""
        return self._text

    @property
    def status(self) -> FilterStatus:
        return self._status

    @property
    def evaluation_failures(self) -> int:
        """Records excluded by evaluation errors in the current view."""
        return self._evaluation_failures

    def set_filter_text(self, text: str) -> FilterStatus:
        """Parse and check new filter text, updating the filter state."""
        self._text = text
        self._invalidate()

        query = text.strip()
        if not query:
            self._status = FilterStatus.empty()
            logger.debug("Filter cleared")
            return self._status

        try:
            predicate = self._engine.parse(query)
        except FilterSyntaxError as e:
            self._status = FilterStatus.syntax_error(e)
            logger.debug("Filter syntax error: %s", e)
            return self._status

        try:
            self._engine.check(predicate, self._schema)
        except FilterTypeError as e:
            self._status = FilterStatus.type_error(e)
            logger.debug("Filter type error: %s", e.message)
            return self._status

        self._status = FilterStatus.valid(predicate)
        logger.debug("Filter set: %r", query)
        return self._status

    def build_quick_filter(self, field_name: str, value: Any) -> FilterStatus:
        """Replace the filter with "field equals value".

        Raises:
            ValueError: if the engine cannot express the value.
        """
        return self.set_filter_text(self._engine.quick_filter(field_name, value))

    def recompute(self, store: RecordStore) -> Sequence[MessageRecord]:
        """Derive the filtered view from the store as it is now."""
        snapshot = store.snapshot()
        state = self._status.state

        if state is FilterState.EMPTY:
            return snapshot
        if self._status.is_error:
            return ()

        if store.generation != self._generation or self._scanned > len(snapshot):
            self._view = []
            self._scanned = 0
            self._generation = store.generation
            self._evaluation_failures = 0

        predicate = self._status.predicate
        failures = 0
        for record in snapshot[self._scanned:]:
            try:
                matched = self._engine.evaluate(predicate, record.fields())
            except EvaluationError:
                failures += 1
                continue
            if matched:
                self._view.append(record)
        self._scanned = len(snapshot)

        if failures:
            self._evaluation_failures += failures
            logger.debug("%d record(s) could not be evaluated and were excluded", failures)
        return tuple(self._view)

    def _invalidate(self) -> None:
        self._view = []
        self._scanned = 0
        self._generation = -1
        self._evaluation_failures = 0
