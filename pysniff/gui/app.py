"""
Application entry point and setup.
"""

import sys
from typing import Optional
from PyQt6.QtWidgets import QApplication
from PyQt6.QtCore import Qt

from .main_window import MainWindow
from .update_scheduler import DEFAULT_DELAY_MS
from ..core.predicate_engine import PredicateEngine
from ..core.settings import get_timezone


def create_app() -> QApplication:
    """Create and configure the QApplication."""
    QApplication.setHighDpiScaleFactorRoundingPolicy(
        Qt.HighDpiScaleFactorRoundingPolicy.PassThrough
    )

    app = QApplication(sys.argv)
    app.setApplicationName("PySniff")
    app.setOrganizationName("PySniff")
    return app


def run_app(
    capture_path: Optional[str] = None,
    engine: Optional[PredicateEngine] = None,
    delay_ms: int = DEFAULT_DELAY_MS,
    initial_filter: str = "",
    timezone: Optional[str] = None,
) -> int:
    """Run the PySniff application."""
    app = create_app()

    window = MainWindow(
        capture_path=capture_path,
        engine=engine,
        delay_ms=delay_ms,
        initial_filter=initial_filter,
        timezone=timezone or get_timezone(),
    )
    window.show()

    return app.exec()
