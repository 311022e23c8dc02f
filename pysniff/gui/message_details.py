"""
Details pane for the selected message.

Field values are links: clicking one asks for a quick filter on that value.
"""

import html
import json
from typing import Any, Dict, Optional
from PyQt6.QtWidgets import (
    QWidget, QVBoxLayout, QFormLayout, QLabel, QPlainTextEdit, QStackedWidget
)
from PyQt6.QtCore import Qt, pyqtSignal
from PyQt6.QtGui import QFont

from ..core.formatting import TIMEZONE_LOCAL, format_timestamp
from ..core.message_record import MessageRecord

PLACEHOLDER_TEXT = "Select a message to view details"

# (field, label) in display order; stream_id and error are shown only when present
_LINK_FIELDS = (
    ("method", "Method"),
    ("message", "Message"),
    ("direction", "Direction"),
    ("peer_address", "Peer address"),
    ("stream_id", "Stream ID"),
    ("error", "Error"),
)
_OPTIONAL_ROWS = ("stream_id", "error")


class MessageDetailsWidget(QStackedWidget):
    """Shows either a placeholder or the fields of one message."""

    quick_filter_requested = pyqtSignal(str, object)   # field, value

    def __init__(self, parent: Optional[QWidget] = None):
        super().__init__(parent)
        self._record: Optional[MessageRecord] = None
        self._timezone = TIMEZONE_LOCAL
        self._value_labels: Dict[str, QLabel] = {}
        self._value_texts: Dict[str, str] = {}
        self._setup_ui()

    def _setup_ui(self):
        self._placeholder = QLabel(PLACEHOLDER_TEXT)
        self._placeholder.setAlignment(Qt.AlignmentFlag.AlignCenter)
        self._placeholder.setStyleSheet("color: #888888;")
        self.addWidget(self._placeholder)

        page = QWidget()
        layout = QVBoxLayout(page)
        layout.setContentsMargins(8, 8, 8, 8)

        self._form = QFormLayout()
        self._id_label = QLabel()
        self._time_label = QLabel()
        self._form.addRow("Message ID", self._id_label)
        self._form.addRow("Time", self._time_label)

        for field_name, title in _LINK_FIELDS:
            label = QLabel()
            label.setTextFormat(Qt.TextFormat.RichText)
            label.setTextInteractionFlags(Qt.TextInteractionFlag.LinksAccessibleByMouse)
            label.linkActivated.connect(
                lambda _href, f=field_name: self._on_link_activated(f)
            )
            self._value_labels[field_name] = label
            self._form.addRow(title, label)
        layout.addLayout(self._form)

        self._payload = QPlainTextEdit()
        self._payload.setReadOnly(True)
        mono = QFont("JetBrains Mono")
        mono.setStyleHint(QFont.StyleHint.Monospace)
        self._payload.setFont(mono)
        layout.addWidget(QLabel("Payload"))
        layout.addWidget(self._payload, stretch=1)

        self._details_page = page
        self.addWidget(page)
        self.setCurrentWidget(self._placeholder)

    @property
    def record(self) -> Optional[MessageRecord]:
        """Message currently shown, if any."""
        return self._record

    def set_timezone(self, tz: str) -> None:
        self._timezone = tz
        if self._record is not None:
            self._time_label.setText(format_timestamp(self._record.time, tz))

    def show_placeholder(self) -> None:
        self._record = None
        self._value_texts = {}
        self.setCurrentWidget(self._placeholder)

    def show_record(self, record: Optional[MessageRecord]) -> None:
        if record is None:
            self.show_placeholder()
            return

        self._record = record
        fields = record.fields()
        self._id_label.setText(str(record.message_id))
        self._time_label.setText(format_timestamp(record.time, self._timezone))

        self._value_texts = {}
        for field_name, label in self._value_labels.items():
            present = field_name in fields
            if field_name in _OPTIONAL_ROWS:
                self._form.setRowVisible(label, present)
            if present:
                self._value_texts[field_name] = str(fields[field_name])
                label.setText(self._link_html(field_name, fields[field_name]))

        self._payload.setPlainText(json.dumps(record.content, indent=2, ensure_ascii=False))
        self.setCurrentWidget(self._details_page)

    def field_text(self, field_name: str) -> str:
        """Plain text shown for a linked field, empty if hidden."""
        return self._value_texts.get(field_name, "")

    @staticmethod
    def _link_html(field_name: str, value: Any) -> str:
        color = "#ff6b6b" if field_name == "error" else "#00ffff"
        return (
            f'<a href="#{field_name}" style="color: {color};">'
            f'{html.escape(str(value))}</a>'
        )

    def _on_link_activated(self, field_name: str) -> None:
        if self._record is None:
            return
        fields = self._record.fields()
        if field_name in fields:
            self.quick_filter_requested.emit(field_name, fields[field_name])
