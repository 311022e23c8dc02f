"""Shared test fixtures for PySniff test suite.

Provides the session-wide QApplication, message record factories and a
settings directory redirected into tmp_path.
"""

import os
import sys

os.environ.setdefault("QT_QPA_PLATFORM", "offscreen")

import pytest
from PyQt6.QtWidgets import QApplication

from pysniff.core import settings
from pysniff.core.message_record import Direction, MessageRecord


@pytest.fixture(scope="session")
def qapp():
    """Session-scoped QApplication: shared by all tests."""
    app = QApplication.instance()
    if app is None:
        app = QApplication(sys.argv)
    yield app


@pytest.fixture
def record_factory():
    """Factory fixture: create MessageRecords with increasing ids."""
    _seq = [0]

    def _make(message_id=None, direction=Direction.RECV,
              method="/helloworld.Greeter/SayHello",
              message="helloworld.HelloRequest",
              peer_address="127.0.0.1:50312",
              time="2025-01-15T10:20:30.123456789Z",
              content=None, stream_id=None, error=None):
        if message_id is None:
            _seq[0] += 1
            message_id = _seq[0]
        else:
            _seq[0] = max(_seq[0], message_id)
        if content is None:
            content = {"name": f"world-{message_id}"}
        return MessageRecord(
            message_id=message_id,
            time=time,
            direction=Direction(direction),
            method=method,
            message=message,
            peer_address=peer_address,
            content=content,
            stream_id=stream_id,
            error=error,
        )
    return _make


@pytest.fixture
def capture_line():
    """Factory fixture: one capture file line in the current format."""
    import json

    def _make(message_id, /, direction="recv", **extra):
        payload = {
            "message_id": message_id,
            "direction": direction,
            "time": "2025-01-15T10:20:30.123456789Z",
            "method": "/helloworld.Greeter/SayHello",
            "message": "helloworld.HelloRequest",
            "peer_address": "127.0.0.1:50312",
            "content": {"name": "world"},
        }
        payload.update(extra)
        return json.dumps(payload)
    return _make


@pytest.fixture(autouse=True)
def _isolated_settings(tmp_path, monkeypatch):
    """Keep settings writes out of the real home directory."""
    settings_dir = tmp_path / "settings"
    monkeypatch.setattr(settings, "SETTINGS_DIR", settings_dir)
    monkeypatch.setattr(settings, "SETTINGS_PATH", settings_dir / "settings.json")
    yield
