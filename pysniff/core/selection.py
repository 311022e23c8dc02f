"""Selected record tracking over the filtered view."""

from bisect import bisect_left
from enum import Enum
from typing import Optional, Sequence

from pysniff.logging import get_logger
from .message_record import MessageRecord

logger = get_logger(__name__)


class MoveDirection(Enum):
    PREVIOUS = -1
    NEXT = 1


class SelectionController:
    """
    Tracks at most one selected message id.

    The id may briefly point outside the view after select(); reconcile()
    runs after every view change and drops it if it is no longer visible.
    """

    def __init__(self):
        self._selected_id: Optional[int] = None

    @property
    def selected_id(self) -> Optional[int]:
        return self._selected_id

    def select(self, message_id: int) -> None:
        self._selected_id = message_id

    def clear(self) -> None:
        self._selected_id = None

    def index_in(self, view: Sequence[MessageRecord]) -> Optional[int]:
        """Position of the selected record in the view, if present."""
        if self._selected_id is None:
            return None
        # Views keep store order, so ids are strictly increasing
        index = bisect_left(view, self._selected_id, key=lambda r: r.message_id)
        if index < len(view) and view[index].message_id == self._selected_id:
            return index
        return None

    def selected_record(self, view: Sequence[MessageRecord]) -> Optional[MessageRecord]:
        index = self.index_in(view)
        return None if index is None else view[index]

    def reconcile(self, view: Sequence[MessageRecord]) -> Optional[int]:
        """Drop the selection if the view no longer contains it."""
        if self._selected_id is not None and self.index_in(view) is None:
            logger.debug("Selected message %s left the view", self._selected_id)
            self._selected_id = None
        return self._selected_id

    def move(self, direction: MoveDirection,
             view: Sequence[MessageRecord]) -> Optional[MessageRecord]:
        """Step the selection one record, clamped to the ends of the view."""
        if not view:
            return None
        index = self.index_in(view)
        if index is None:
            target = 0
        else:
            target = min(max(index + direction.value, 0), len(view) - 1)
        record = view[target]
        self._selected_id = record.message_id
        return record
