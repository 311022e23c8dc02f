import pytest
from PyQt6.QtCore import Qt

from pysniff.core import settings
from pysniff.core.formatting import TIMEZONE_UTC
from pysniff.core.simple_match_engine import SimpleMatchEngine
from pysniff.gui.main_window import MIN_PANE_WIDTH, MainWindow
from pysniff.gui.message_details import PLACEHOLDER_TEXT


@pytest.fixture
def make_window(qtbot, qapp):
    windows = []

    def _make(**kwargs):
        kwargs.setdefault("delay_ms", 10)
        window = MainWindow(**kwargs)
        qtbot.addWidget(window)
        windows.append(window)
        return window

    yield _make
    for window in windows:
        window.close()
        window.deleteLater()
    qapp.processEvents()


def _fill(window, record_factory, *specs):
    for spec in specs:
        window.session.append(record_factory(**spec))
    window.session.refresh()


def test_starts_with_empty_list_and_placeholder(make_window) -> None:
    window = make_window()

    assert window._message_list.count() == 0
    assert window._details.currentWidget() is window._details._placeholder
    assert window._details._placeholder.text() == PLACEHOLDER_TEXT
    assert window.statusBar().currentMessage() == "0 of 0 messages"


def test_panes_have_minimum_width(make_window) -> None:
    window = make_window()

    assert window._message_list.minimumWidth() == MIN_PANE_WIDTH
    assert window._details.minimumWidth() == MIN_PANE_WIDTH


def test_records_are_listed(make_window, record_factory) -> None:
    window = make_window()

    _fill(window, record_factory, {"message_id": 1}, {"message_id": 2, "direction": "send"})

    assert window._message_list.count() == 2
    assert window._message_list.message_id_at(1) == 2
    assert "SayHello (HelloRequest)" in window._message_list.item(0).text()
    assert window.statusBar().currentMessage() == "2 of 2 messages"


def test_filter_text_updates_view(qtbot, make_window, record_factory) -> None:
    window = make_window()
    _fill(window, record_factory, {"message_id": 1, "direction": "send"}, {"message_id": 2})

    window._filter_edit.setText('direction == "recv"')
    qtbot.waitUntil(lambda: window._message_list.count() == 1, timeout=1000)

    assert window._message_list.message_id_at(0) == 2
    assert window._filter_status.text() == ""


def test_filter_errors_are_shown(qtbot, make_window, record_factory) -> None:
    window = make_window()
    _fill(window, record_factory, {"message_id": 1})

    window._filter_edit.setText("direction ==")
    qtbot.waitUntil(lambda: window._filter_status.text() != "", timeout=1000)
    assert window._filter_status.text().startswith("Syntax error:")
    assert window._message_list.count() == 0

    window._filter_edit.setText("direction == 1")
    qtbot.waitUntil(lambda: window._filter_status.text().startswith("Type error:"), timeout=1000)


def test_initial_filter_is_applied(make_window, record_factory) -> None:
    window = make_window(initial_filter='direction == "send"')
    _fill(window, record_factory, {"message_id": 1}, {"message_id": 2, "direction": "send"})

    assert window._filter_edit.text() == 'direction == "send"'
    assert window._message_list.count() == 1


def test_arrow_keys_move_selection(qtbot, make_window, record_factory) -> None:
    window = make_window()
    _fill(window, record_factory, {"message_id": 1}, {"message_id": 2}, {"message_id": 3})

    qtbot.keyClick(window, Qt.Key.Key_Down)
    assert window.session.selection.selected_id == 1
    assert window._details.record.message_id == 1

    qtbot.keyClick(window, Qt.Key.Key_Up)
    assert window.session.selection.selected_id == 1

    for _ in range(5):
        qtbot.keyClick(window, Qt.Key.Key_Down)
    assert window.session.selection.selected_id == 3

    qtbot.waitUntil(lambda: window._message_list.currentRow() == 2, timeout=1000)


def test_quick_filter_from_details(qtbot, make_window, record_factory) -> None:
    window = make_window()
    _fill(window, record_factory,
          {"message_id": 1, "method": "/svc.A/One"},
          {"message_id": 2, "method": "/svc.A/Two"})
    window._on_message_clicked(2)
    assert window._details.field_text("method") == "/svc.A/Two"

    window._details.quick_filter_requested.emit("method", "/svc.A/Two")
    qtbot.waitUntil(lambda: window._message_list.count() == 1, timeout=1000)

    assert window._filter_edit.text() == 'method == "/svc.A/Two"'
    assert window.session.selection.selected_id == 2


def test_unexpressible_quick_filter_reports_in_status_bar(make_window, record_factory) -> None:
    window = make_window()
    _fill(window, record_factory, {"message_id": 1})

    window._details.quick_filter_requested.emit("content", {"name": "x"})

    assert window._filter_edit.text() == ""
    assert "quick filter" in window.statusBar().currentMessage()


def test_clear_button_empties_list(qtbot, make_window, record_factory) -> None:
    window = make_window()
    _fill(window, record_factory, {"message_id": 1}, {"message_id": 2})
    window._on_message_clicked(1)

    qtbot.mouseClick(window._clear_btn, Qt.MouseButton.LeftButton)
    qtbot.waitUntil(lambda: window._message_list.count() == 0, timeout=1000)

    assert window._details.record is None
    assert len(window.session.store) == 0


def test_utc_toggle_is_persisted(make_window) -> None:
    window = make_window()

    window._utc_action.setChecked(True)

    assert settings.get_timezone() == TIMEZONE_UTC


def test_simple_engine_window(qtbot, make_window, record_factory) -> None:
    window = make_window(engine=SimpleMatchEngine())
    _fill(window, record_factory,
          {"message_id": 1, "method": "/svc.A/One"},
          {"message_id": 2, "method": "/svc.A/Two"})

    window._filter_edit.setText("two")
    qtbot.waitUntil(lambda: window._message_list.count() == 1, timeout=1000)


def test_follows_capture_file(qtbot, make_window, tmp_path, capture_line) -> None:
    path = tmp_path / "messages.jsonl"
    path.write_text(capture_line(1) + "\n")

    window = make_window(capture_path=str(path))
    assert window.message_handler.is_polling

    with open(path, "a", encoding="utf-8") as f:
        f.write(capture_line(2) + "\n")

    qtbot.waitUntil(lambda: window._message_list.count() == 2, timeout=3000)

    window.close()
    assert not window.message_handler.is_polling
    assert not window.session.scheduler.is_alive
