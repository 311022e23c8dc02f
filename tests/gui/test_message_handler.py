import pytest

from pysniff.gui.inspector_session import InspectorSession
from pysniff.gui.message_handler import MessageHandler
from pysniff.ipc.file_tail import FileTailer


@pytest.fixture
def capture_file(tmp_path):
    path = tmp_path / "messages.jsonl"
    path.write_text("")
    return path


@pytest.fixture
def session(qapp):
    session = InspectorSession(delay_ms=10)
    yield session
    session.dispose()


@pytest.fixture
def handler(capture_file, session):
    handler = MessageHandler(FileTailer(str(capture_file)), session)
    handler.start_polling(interval_ms=10)
    yield handler
    handler.stop_polling()


def _write(path, *lines) -> None:
    with open(path, "a", encoding="utf-8") as f:
        for line in lines:
            f.write(line + "\n")


def test_poll_appends_decoded_records(capture_file, session, handler, capture_line) -> None:
    _write(capture_file, capture_line(1), capture_line(2, direction="send"))

    assert handler.poll() == 2
    assert handler.record_count == 2
    assert [r.message_id for r in session.store.snapshot()] == [1, 2]


def test_timer_polls_file(qtbot, capture_file, session, handler, capture_line) -> None:
    assert handler.is_polling

    with qtbot.waitSignal(handler.records_received, timeout=2000) as blocker:
        _write(capture_file, capture_line(1))

    assert blocker.args == [1]
    qtbot.waitUntil(lambda: len(session.view) == 1, timeout=2000)


def test_bad_lines_are_skipped(qtbot, capture_file, session, handler, capture_line) -> None:
    errors = []
    handler.decode_failed.connect(errors.append)
    _write(capture_file, "garbage", capture_line(1), '{"message_id": 2}')

    assert handler.poll() == 1
    assert handler.decode_errors == 2
    assert len(errors) == 2
    assert "Invalid JSON" in errors[0]


def test_out_of_order_records_are_rejected(capture_file, session, handler, capture_line) -> None:
    _write(capture_file, capture_line(3), capture_line(2), capture_line(4))

    assert handler.poll() == 2
    assert handler.rejected == 1
    assert [r.message_id for r in session.store.snapshot()] == [3, 4]


def test_poll_respects_line_limit(capture_file, session, capture_line) -> None:
    handler = MessageHandler(FileTailer(str(capture_file)), session, max_lines=2)
    handler.start_polling(interval_ms=10_000)
    try:
        _write(capture_file, *(capture_line(i) for i in range(1, 6)))

        assert handler.poll() == 2
        assert handler.poll() == 2
        assert handler.poll() == 1
    finally:
        handler.stop_polling()


def test_truncated_capture_clears_session(capture_file, session, handler, capture_line) -> None:
    _write(capture_file, capture_line(1), capture_line(2), capture_line(3))
    handler.poll()
    restarted = []
    handler.capture_restarted.connect(lambda: restarted.append(True))

    capture_file.write_text(capture_line(1) + "\n")

    assert handler.poll() == 1
    assert restarted == [True]
    assert [r.message_id for r in session.store.snapshot()] == [1]


def test_stop_polling_closes_file(handler) -> None:
    handler.stop_polling()

    assert not handler.is_polling
    assert handler.poll() == 0


def test_start_polling_missing_file_raises(tmp_path, session) -> None:
    handler = MessageHandler(FileTailer(str(tmp_path / "missing.jsonl")), session)

    with pytest.raises(OSError):
        handler.start_polling()
    assert not handler.is_polling
