"""
Message list widget: one row per message in the filtered view.
"""

from typing import Optional, Sequence
from PyQt6.QtWidgets import QListWidget, QListWidgetItem, QWidget
from PyQt6.QtCore import Qt, pyqtSignal
from PyQt6.QtGui import QBrush, QColor

from ..core.formatting import TIMEZONE_LOCAL, format_timestamp, strip_namespace
from ..core.message_record import Direction, MessageRecord

RECV_COLOR = QColor("#00ffff")
SEND_COLOR = QColor("#ffcc66")
ERROR_BACKGROUND = QColor("#5c1f24")


def row_text(record: MessageRecord, tz: str = TIMEZONE_LOCAL) -> str:
    """Row label: id, time and 'Method (Message)' without namespaces."""
    return (
        f"{record.message_id:>6}  {format_timestamp(record.time, tz)}  "
        f"{strip_namespace(record.method)} ({strip_namespace(record.message)})"
    )


class MessageListWidget(QListWidget):
    """
    Renders the filtered view and reports row clicks.

    Rows are rebuilt on every render; the scheduler keeps that to a few
    times per second.
    """

    message_clicked = pyqtSignal(int)   # message_id

    def __init__(self, parent: Optional[QWidget] = None):
        super().__init__(parent)
        self._timezone = TIMEZONE_LOCAL
        self.setUniformItemSizes(True)
        # Arrow keys are handled by the main window
        self.setFocusPolicy(Qt.FocusPolicy.NoFocus)
        self.itemClicked.connect(self._on_item_clicked)

    def set_timezone(self, tz: str) -> None:
        self._timezone = tz

    def render_view(self, view: Sequence[MessageRecord], selected_id: Optional[int]) -> None:
        """Replace all rows with the given view."""
        self.setUpdatesEnabled(False)
        try:
            self.clear()
            selected_item = None
            for record in view:
                item = QListWidgetItem(row_text(record, self._timezone))
                item.setData(Qt.ItemDataRole.UserRole, record.message_id)
                item.setForeground(QBrush(
                    RECV_COLOR if record.direction is Direction.RECV else SEND_COLOR
                ))
                if record.is_error:
                    item.setBackground(QBrush(ERROR_BACKGROUND))
                    item.setToolTip(record.error)
                self.addItem(item)
                if record.message_id == selected_id:
                    selected_item = item

            if selected_item is not None:
                self.setCurrentItem(selected_item)
                self.scrollToItem(selected_item)
        finally:
            self.setUpdatesEnabled(True)

    def message_id_at(self, row: int) -> Optional[int]:
        item = self.item(row)
        if item is None:
            return None
        return item.data(Qt.ItemDataRole.UserRole)

    def _on_item_clicked(self, item: QListWidgetItem):
        self.message_clicked.emit(item.data(Qt.ItemDataRole.UserRole))
