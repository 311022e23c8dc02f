import os

import pytest

from pysniff.ipc.file_tail import FileTailer


@pytest.fixture
def capture_file(tmp_path):
    path = tmp_path / "capture.jsonl"
    path.write_bytes(b"")
    return path


def _append(path, data: bytes) -> None:
    with open(path, "ab") as f:
        f.write(data)


def test_reads_existing_lines_from_start(capture_file) -> None:
    _append(capture_file, b'{"a": 1}\n{"a": 2}\n')

    with FileTailer(str(capture_file)) as tailer:
        assert tailer.read_lines() == ['{"a": 1}', '{"a": 2}']
        assert tailer.read_lines() == []


def test_partial_line_is_held_until_complete(capture_file) -> None:
    with FileTailer(str(capture_file)) as tailer:
        _append(capture_file, b'{"a": ')
        assert tailer.read_lines() == []

        _append(capture_file, b'1}\r\n{"b"')
        assert tailer.read_lines() == ['{"a": 1}']

        _append(capture_file, b': 2}\n')
        assert tailer.read_lines() == ['{"b": 2}']


def test_blank_lines_are_skipped(capture_file) -> None:
    _append(capture_file, b'\n   \n{"a": 1}\n\n')

    with FileTailer(str(capture_file)) as tailer:
        assert tailer.read_lines() == ['{"a": 1}']


def test_max_lines_limits_each_read(capture_file) -> None:
    _append(capture_file, b"".join(b'{"n": %d}\n' % i for i in range(5)))

    with FileTailer(str(capture_file)) as tailer:
        assert len(tailer.read_lines(max_lines=2)) == 2
        assert len(tailer.read_lines(max_lines=2)) == 2
        assert tailer.read_lines(max_lines=2) == ['{"n": 4}']


def test_truncation_restarts_from_beginning(capture_file) -> None:
    _append(capture_file, b'{"a": 1}\n{"a": 2}\n')

    with FileTailer(str(capture_file)) as tailer:
        tailer.read_lines()
        assert tailer.consume_truncation() is False

        capture_file.write_bytes(b'{"b": 1}\n')

        assert tailer.read_lines() == ['{"b": 1}']
        assert tailer.consume_truncation() is True
        assert tailer.consume_truncation() is False


def test_replaced_file_is_reopened(capture_file, tmp_path) -> None:
    _append(capture_file, b'{"a": 1}\n')

    with FileTailer(str(capture_file)) as tailer:
        tailer.read_lines()

        replacement = tmp_path / "replacement.jsonl"
        replacement.write_bytes(b'{"new": 1}\n{"new": 2}\n')
        os.replace(replacement, capture_file)

        assert tailer.read_lines() == ['{"new": 1}', '{"new": 2}']
        assert tailer.consume_truncation() is True


def test_read_before_open_returns_nothing(capture_file) -> None:
    tailer = FileTailer(str(capture_file))

    assert not tailer.is_open
    assert tailer.read_lines() == []


def test_open_missing_file_raises(tmp_path) -> None:
    tailer = FileTailer(str(tmp_path / "missing.jsonl"))

    with pytest.raises(OSError):
        tailer.open()
    assert not tailer.is_open
