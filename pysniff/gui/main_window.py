"""
Main application window: filter bar, message list and details pane.
"""

from typing import Any, Optional, Sequence
from PyQt6.QtWidgets import (
    QMainWindow, QWidget, QHBoxLayout, QVBoxLayout, QSplitter, QLineEdit,
    QLabel, QPushButton, QMessageBox
)
from PyQt6.QtCore import Qt
from PyQt6.QtGui import QAction, QKeyEvent

from pysniff.logging import get_logger
logger = get_logger(__name__)

from ..core import settings
from ..core.filter_controller import FilterState, FilterStatus
from ..core.formatting import TIMEZONE_LOCAL, TIMEZONE_UTC
from ..core.message_record import MessageRecord
from ..core.predicate_engine import PredicateEngine
from ..core.selection import MoveDirection
from ..ipc.file_tail import FileTailer
from .inspector_session import InspectorSession
from .message_details import MessageDetailsWidget
from .message_handler import MessageHandler
from .message_list import MessageListWidget
from .update_scheduler import DEFAULT_DELAY_MS

MIN_PANE_WIDTH = 100


class MainWindow(QMainWindow):
    """
    Main PySniff window.

    Layout:
    ┌──────────────────────────────────────────────────────────┐
    │ [filter........................] status  [Clear] UTC ? │
    ├───────────────────────┬──────────────────────────────────┤
    │  1  12:00:01.123 Say… │  Message ID   2                  │
    │  2  12:00:01.125 Say… │  Method       /helloworld...     │
    │                       │  Payload { ... }                 │
    ├───────────────────────┴──────────────────────────────────┤
    │  2 of 2 messages                                         │
    └──────────────────────────────────────────────────────────┘
    """

    def __init__(
        self,
        capture_path: Optional[str] = None,
        engine: Optional[PredicateEngine] = None,
        delay_ms: int = DEFAULT_DELAY_MS,
        initial_filter: str = "",
        timezone: str = TIMEZONE_LOCAL,
    ):
        super().__init__()

        self._capture_path = capture_path
        self._timezone = timezone
        self._session = InspectorSession(engine=engine, delay_ms=delay_ms, parent=self)
        self._handler: Optional[MessageHandler] = None

        self._setup_ui()
        self._setup_signals()

        if initial_filter:
            self._filter_edit.setText(initial_filter)

        if capture_path:
            self._start_capture(capture_path)

        self._session.refresh()

    @property
    def session(self) -> InspectorSession:
        return self._session

    @property
    def message_handler(self) -> Optional[MessageHandler]:
        return self._handler

    def _setup_ui(self):
        """Create the main window UI."""
        title = "PySniff"
        if self._capture_path:
            title += f" - {self._capture_path}"
        self.setWindowTitle(title)
        self.resize(1200, 800)

        central = QWidget()
        layout = QVBoxLayout(central)
        layout.setContentsMargins(4, 4, 4, 4)

        # Filter bar
        bar = QHBoxLayout()
        self._filter_edit = QLineEdit()
        self._filter_edit.setPlaceholderText("Filter messages...")
        self._filter_edit.setClearButtonEnabled(True)
        bar.addWidget(self._filter_edit, stretch=1)

        self._filter_status = QLabel()
        self._filter_status.setStyleSheet("color: #ff6b6b;")
        bar.addWidget(self._filter_status)

        self._clear_btn = QPushButton("Clear")
        self._clear_btn.setToolTip("Remove all messages")
        bar.addWidget(self._clear_btn)
        layout.addLayout(bar)

        # List | details, resizable
        self._splitter = QSplitter(Qt.Orientation.Horizontal)
        self._splitter.setChildrenCollapsible(False)
        self._message_list = MessageListWidget()
        self._message_list.setMinimumWidth(MIN_PANE_WIDTH)
        self._message_list.set_timezone(self._timezone)
        self._details = MessageDetailsWidget()
        self._details.setMinimumWidth(MIN_PANE_WIDTH)
        self._details.set_timezone(self._timezone)
        self._splitter.addWidget(self._message_list)
        self._splitter.addWidget(self._details)
        self._splitter.setSizes([500, 700])
        layout.addWidget(self._splitter, stretch=1)

        self.setCentralWidget(central)

        # Toolbar actions
        toolbar = self.addToolBar("View")
        toolbar.setMovable(False)
        self._utc_action = QAction("UTC", self)
        self._utc_action.setCheckable(True)
        self._utc_action.setChecked(self._timezone == TIMEZONE_UTC)
        self._utc_action.setToolTip("Show capture times in UTC")
        toolbar.addAction(self._utc_action)
        self._help_action = QAction("Help", self)
        self._help_action.setShortcut("F1")
        toolbar.addAction(self._help_action)

        self.statusBar().showMessage("No messages")

    def _setup_signals(self):
        self._filter_edit.textChanged.connect(self._on_filter_text_changed)
        self._clear_btn.clicked.connect(self._on_clear_clicked)
        self._utc_action.toggled.connect(self._on_utc_toggled)
        self._help_action.triggered.connect(self._show_help)
        self._message_list.message_clicked.connect(self._on_message_clicked)
        self._details.quick_filter_requested.connect(self._on_quick_filter)
        self._session.rendered.connect(self._on_rendered)

    def _start_capture(self, path: str) -> None:
        self._handler = MessageHandler(FileTailer(path), self._session, parent=self)
        self._handler.decode_failed.connect(
            lambda msg: self.statusBar().showMessage(f"Skipped line: {msg}", 5000)
        )
        try:
            self._handler.start_polling()
        except OSError as e:
            logger.error(f"Cannot open capture file {path}: {e}")
            QMessageBox.critical(self, "PySniff", f"Cannot open {path}:\n{e}")

    # === User actions ===

    def _on_filter_text_changed(self, text: str) -> None:
        self._session.set_filter_text(text)

    def _on_clear_clicked(self) -> None:
        self._session.clear()
        self._details.show_placeholder()

    def _on_message_clicked(self, message_id: int) -> None:
        self._details.show_record(self._session.select(message_id))

    def _on_quick_filter(self, field_name: str, value: Any) -> None:
        try:
            self._session.apply_quick_filter(field_name, value)
        except ValueError as e:
            self.statusBar().showMessage(str(e), 5000)
            return
        # The session already holds the new text; don't parse it twice
        self._filter_edit.blockSignals(True)
        self._filter_edit.setText(self._session.filter.text)
        self._filter_edit.blockSignals(False)

    def _on_utc_toggled(self, checked: bool) -> None:
        self._timezone = TIMEZONE_UTC if checked else TIMEZONE_LOCAL
        settings.set_timezone(self._timezone)
        self._message_list.set_timezone(self._timezone)
        self._details.set_timezone(self._timezone)
        self._session.refresh()

    def _show_help(self) -> None:
        QMessageBox.information(self, "Filter syntax", self._session.filter.engine.help_text)

    def keyPressEvent(self, event: QKeyEvent):
        key = event.key()
        if key in (Qt.Key.Key_Up, Qt.Key.Key_Down):
            direction = MoveDirection.PREVIOUS if key == Qt.Key.Key_Up else MoveDirection.NEXT
            record = self._session.move(direction)
            if record is not None:
                self._details.show_record(record)
            event.accept()
            return
        super().keyPressEvent(event)

    # === Rendering ===

    def _on_rendered(self, view: Sequence[MessageRecord], selected_id: Optional[int],
                     status: FilterStatus) -> None:
        self._message_list.render_view(view, selected_id)
        if selected_id is None and self._details.record is not None:
            self._details.show_placeholder()

        if status.is_error:
            kind = "Syntax error" if status.state is FilterState.SYNTAX_ERROR else "Type error"
            self._filter_status.setText(f"{kind}: {status.message}")
        else:
            self._filter_status.setText("")

        self.statusBar().showMessage(f"{len(view)} of {len(self._session.store)} messages")

    def closeEvent(self, event):
        if self._handler is not None:
            self._handler.stop_polling()
        self._session.dispose()
        super().closeEvent(event)
