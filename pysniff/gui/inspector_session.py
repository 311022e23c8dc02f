"""
Live inspection session: record store, filter, selection and scheduling.

Extracted from MainWindow so the update flow can be driven without widgets.
Every mutation requests an update cycle; each cycle recomputes the view,
reconciles the selection against it and emits ``rendered``.
"""

from typing import Any, Optional, Sequence

from PyQt6.QtCore import QObject, pyqtSignal

from pysniff.logging import get_logger
from ..core.filter_controller import FilterController, FilterStatus
from ..core.message_record import MessageRecord
from ..core.predicate_engine import PredicateEngine
from ..core.record_store import RecordStore
from ..core.selection import MoveDirection, SelectionController
from .update_scheduler import DEFAULT_DELAY_MS, UpdateScheduler

logger = get_logger(__name__)


class InspectorSession(QObject):
    """
    Owns the state of one viewing session.

    Signals:
        rendered: (view, selected_id, status) after each update cycle
    """

    rendered = pyqtSignal(object, object, object)

    def __init__(self, engine: Optional[PredicateEngine] = None,
                 delay_ms: int = DEFAULT_DELAY_MS, parent: Optional[QObject] = None):
        super().__init__(parent)
        self._store = RecordStore()
        self._filter = FilterController(engine)
        self._selection = SelectionController()
        self._scheduler = UpdateScheduler(self._run_cycle, delay_ms, parent=self)
        self._view: Sequence[MessageRecord] = ()

    # === Accessors ===

    @property
    def store(self) -> RecordStore:
        return self._store

    @property
    def filter(self) -> FilterController:
        return self._filter

    @property
    def selection(self) -> SelectionController:
        return self._selection

    @property
    def scheduler(self) -> UpdateScheduler:
        return self._scheduler

    @property
    def view(self) -> Sequence[MessageRecord]:
        """View as of the last update cycle."""
        return self._view

    @property
    def status(self) -> FilterStatus:
        return self._filter.status

    @property
    def selected_record(self) -> Optional[MessageRecord]:
        return self._selection.selected_record(self._view)

    # === Mutations ===

    def append(self, record: MessageRecord) -> int:
        """
        Add an incoming record and schedule an update.

        Raises:
            InvariantViolation: if the record's id is out of order.
        """
        size = self._store.append(record)
        self._scheduler.trigger()
        return size

    def set_filter_text(self, text: str) -> FilterStatus:
        status = self._filter.set_filter_text(text)
        self._scheduler.trigger()
        return status

    def apply_quick_filter(self, field_name: str, value: Any) -> FilterStatus:
        """Filter on "field equals value". Raises ValueError if not expressible."""
        status = self._filter.build_quick_filter(field_name, value)
        logger.debug("Quick filter applied: %s", self._filter.text)
        self._scheduler.trigger()
        return status

    def clear(self) -> None:
        """Drop all records and the selection; the filter text is kept."""
        self._store.clear()
        self._selection.clear()
        # move/select before the next cycle must not see the old records
        self._view = ()
        self._scheduler.trigger()

    def select(self, message_id: int) -> Optional[MessageRecord]:
        self._selection.select(message_id)
        self._scheduler.trigger()
        return self._selection.selected_record(self._view)

    def move(self, direction: MoveDirection) -> Optional[MessageRecord]:
        """Step the selection within the current view and return the new record."""
        record = self._selection.move(direction, self._view)
        self._scheduler.trigger()
        return record

    def refresh(self) -> None:
        """Run an update cycle now."""
        self._scheduler.trigger()
        self._scheduler.flush()

    def dispose(self) -> None:
        """End the session; pending updates are dropped."""
        self._scheduler.dispose()
        logger.debug("Inspector session disposed")

    # === Update cycle ===

    def _run_cycle(self) -> None:
        view = self._filter.recompute(self._store)
        selected_id = self._selection.reconcile(view)
        self._view = view
        logger.debug(
            "Update cycle: %d of %d messages shown, selected=%s",
            len(view), len(self._store), selected_id,
        )
        self.rendered.emit(view, selected_id, self._filter.status)
