"""
Capture file polling and dispatch into the inspector session.

Handles: polling the tailer, decoding lines, appending records, emitting
Qt signals for the status bar.
"""

from typing import Optional
from PyQt6.QtCore import QObject, pyqtSignal, QTimer

from pysniff.logging import get_logger
logger = get_logger(__name__)

from ..core.errors import DecodeError, InvariantViolation
from ..ipc.file_tail import FileTailer
from ..ipc.record_decoder import decode_record
from .inspector_session import InspectorSession

DEFAULT_POLL_INTERVAL_MS = 100
MAX_LINES_PER_POLL = 500


class MessageHandler(QObject):
    """
    Polls a capture file and feeds decoded records to a session.
    
    Signals:
        records_received: Number of records appended by one poll
        decode_failed: Error text for a line that could not be decoded
        capture_restarted: The capture file was truncated or replaced
    """
    
    records_received = pyqtSignal(int)
    decode_failed = pyqtSignal(str)
    capture_restarted = pyqtSignal()
    
    def __init__(self, tailer: FileTailer, session: InspectorSession,
                 max_lines: int = MAX_LINES_PER_POLL, parent: Optional[QObject] = None):
        """
        Initialize MessageHandler.
        
        Args:
            tailer: FileTailer over the capture file (opened by start_polling)
            session: Session receiving the decoded records
            max_lines: Upper bound on lines handled per poll
            parent: Parent QObject
        """
        super().__init__(parent)
        self._tailer = tailer
        self._session = session
        self._max_lines = max_lines
        self._record_count = 0
        self._decode_errors = 0
        self._rejected = 0
        
        self._poll_timer = QTimer(self)
        self._poll_timer.timeout.connect(self.poll)
        
    @property
    def record_count(self) -> int:
        """Records appended since the handler was created."""
        return self._record_count

    @property
    def decode_errors(self) -> int:
        return self._decode_errors

    @property
    def rejected(self) -> int:
        """Records refused by the store for out-of-order ids."""
        return self._rejected

    @property
    def is_polling(self) -> bool:
        return self._poll_timer.isActive()
        
    def start_polling(self, interval_ms: int = DEFAULT_POLL_INTERVAL_MS):
        """
        Open the capture file and start polling it.
        
        Raises:
            OSError: if the capture file cannot be opened
        """
        if not self._tailer.is_open:
            self._tailer.open()
        self._poll_timer.setInterval(interval_ms)
        self._poll_timer.start()
        logger.debug(f"Started polling {self._tailer.path} at {interval_ms}ms interval")
        
    def stop_polling(self):
        """Stop polling and close the capture file."""
        self._poll_timer.stop()
        self._tailer.close()
        logger.debug("Stopped polling")
        
    def poll(self) -> int:
        """Read newly appended lines. Returns the number of records appended."""
        lines = self._tailer.read_lines(self._max_lines)

        if self._tailer.consume_truncation():
            logger.info("Capture file restarted, clearing session")
            self._session.clear()
            self.capture_restarted.emit()

        appended = 0
        for line in lines:
            try:
                record = decode_record(line)
            except DecodeError as e:
                self._decode_errors += 1
                logger.warning(f"Skipping capture line: {e}")
                self.decode_failed.emit(str(e))
                continue

            try:
                self._session.append(record)
            except InvariantViolation:
                # Already logged by the store
                self._rejected += 1
                continue
            appended += 1

        if appended:
            self._record_count += appended
            self.records_received.emit(appended)
        return appended
