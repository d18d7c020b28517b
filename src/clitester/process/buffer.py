#
# src/clitester/process/buffer.py
#
"""
Append-only output buffer shared between a drain task and its readers.
"""

import threading


class OutputBuffer:
    """
    Thread-safe, append-only byte accumulator with a search cursor.

    One drain task appends; any number of readers take snapshots. The cursor
    marks how far `wait_for_text` has already consumed the buffer and never
    moves past the current length.
    """

    def __init__(self, name: str):
        self.name = name
        self._data = bytearray()
        self._cursor = 0
        self._lock = threading.Lock()

    def append(self, chunk: bytes) -> int:
        """Appends a chunk atomically and returns the new length."""
        with self._lock:
            self._data.extend(chunk)
            return len(self._data)

    def __len__(self) -> int:
        with self._lock:
            return len(self._data)

    def snapshot(self, start: int = 0) -> bytes:
        with self._lock:
            return bytes(self._data[start:])

    def text(self, start: int = 0) -> str:
        return self.snapshot(start).decode("utf-8", errors="replace")

    @property
    def cursor(self) -> int:
        with self._lock:
            return self._cursor

    def read_from_cursor(self) -> tuple[int, bytes]:
        """Returns the cursor position and everything appended after it."""
        with self._lock:
            return self._cursor, bytes(self._data[self._cursor :])

    def consume(self, needle: bytes) -> bytes | None:
        """
        Finds `needle` after the cursor and moves the cursor past it.

        Returns the bytes from the old cursor up to and including the match,
        or None when there is no match. Search and advance happen under one
        lock, so concurrent callers never consume the same match twice.
        """
        with self._lock:
            index = self._data.find(needle, self._cursor)
            if index == -1:
                return None
            start, self._cursor = self._cursor, index + len(needle)
            return bytes(self._data[start : self._cursor])

    def advance(self, position: int) -> None:
        """Moves the cursor forward to `position`, clamped to the buffer length."""
        with self._lock:
            position = min(position, len(self._data))
            if position > self._cursor:
                self._cursor = position

    def __repr__(self) -> str:
        return f"OutputBuffer(name={self.name!r}, size={len(self)}, cursor={self.cursor})"


# 🔼⚙️
