"""Coalescing of view recomputation under bursty input."""

from typing import Callable, Optional

from PyQt6.QtCore import QObject, QTimer, pyqtSignal

from pysniff.logging import get_logger

logger = get_logger(__name__)

DEFAULT_DELAY_MS = 250


class UpdateScheduler(QObject):
    """
    Runs a callback at most once per delay window, however many triggers arrive.

    The first trigger arms a single-shot timer; further triggers while it is
    pending are absorbed. The callback reads state when the timer fires, so
    every change made during the window is picked up by that one cycle.

    Signals:
        fired: Emitted after each cycle's callback returns
    """

    fired = pyqtSignal()

    def __init__(self, callback: Callable[[], None], delay_ms: int = DEFAULT_DELAY_MS,
                 parent: Optional[QObject] = None):
        super().__init__(parent)
        self._callback = callback
        self._pending = False
        self._alive = True
        self._fire_count = 0

        self._timer = QTimer(self)
        self._timer.setSingleShot(True)
        self._timer.setInterval(delay_ms)
        self._timer.timeout.connect(self._on_timeout)

    @property
    def delay_ms(self) -> int:
        return self._timer.interval()

    @property
    def is_pending(self) -> bool:
        return self._pending

    @property
    def is_alive(self) -> bool:
        return self._alive

    @property
    def fire_count(self) -> int:
        """Number of cycles run so far."""
        return self._fire_count

    def trigger(self) -> bool:
        """Request a cycle. Returns True if this call armed the timer."""
        if not self._alive or self._pending:
            return False
        self._pending = True
        self._timer.start()
        return True

    def flush(self) -> None:
        """Run a pending cycle now instead of waiting for the timer."""
        if self._pending:
            self._timer.stop()
            self._on_timeout()

    def dispose(self) -> None:
        """Stop for good. An armed timer will not run the callback."""
        self._alive = False
        self._pending = False
        self._timer.stop()

    def _on_timeout(self) -> None:
        if not self._alive:
            return
        self._pending = False
        self._fire_count += 1
        try:
            self._callback()
        except Exception:
            # A failing cycle must not stop later ones
            logger.exception("Update cycle failed")
        self.fired.emit()
