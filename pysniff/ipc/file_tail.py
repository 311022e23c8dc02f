"""
Non-blocking reader for a growing JSON-lines capture file.

The interceptor appends one JSON object per line and recreates the file
when it restarts. FileTailer hands out complete lines only; a trailing
partial line is held back until its newline arrives.
"""

import os
from typing import BinaryIO, List, Optional

from pysniff.logging import get_logger

logger = get_logger(__name__)


class FileTailer:
    """Reads lines appended to a file since the last call."""

    def __init__(self, path: str, encoding: str = 'utf-8'):
        self._path = path
        self._encoding = encoding
        self._file: Optional[BinaryIO] = None
        self._partial = b''
        self._truncated = False

    @property
    def path(self) -> str:
        return self._path

    @property
    def is_open(self) -> bool:
        return self._file is not None

    def open(self) -> None:
        """Open the file from the start.

        Raises:
            OSError: if the file cannot be opened.
        """
        self.close()
        self._file = open(self._path, 'rb')
        self._partial = b''
        logger.debug(f"Tailing {self._path}")

    def close(self) -> None:
        if self._file is not None:
            self._file.close()
            self._file = None

    def consume_truncation(self) -> bool:
        """Return True once after the file was found truncated and reopened."""
        truncated = self._truncated
        self._truncated = False
        return truncated

    def read_lines(self, max_lines: Optional[int] = None) -> List[str]:
        """Return up to ``max_lines`` complete, non-blank lines."""
        if self._file is None:
            return []

        self._check_truncation()

        lines: List[str] = []
        while max_lines is None or len(lines) < max_lines:
            chunk = self._file.readline()
            if not chunk:
                break
            if not chunk.endswith(b'\n'):
                # Writer is mid-line; keep it for the next poll
                self._partial += chunk
                break
            raw = self._partial + chunk
            self._partial = b''
            line = raw.decode(self._encoding, errors='replace').rstrip('\r\n')
            if line.strip():
                lines.append(line)
        return lines

    def _check_truncation(self) -> None:
        try:
            current = os.fstat(self._file.fileno())
            on_disk = os.stat(self._path)
        except OSError:
            return
        if on_disk.st_ino != current.st_ino:
            logger.info(f"{self._path} was replaced, reopening")
            self.open()
            self._truncated = True
            return
        if current.st_size < self._file.tell():
            logger.info(f"{self._path} was truncated, reading from the start")
            self._file.seek(0)
            self._partial = b''
            self._truncated = True

    def __enter__(self) -> "FileTailer":
        self.open()
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()
