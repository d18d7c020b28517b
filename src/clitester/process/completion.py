#
# src/clitester/process/completion.py
#
"""
One-shot holder for a child's terminal status.
"""

import threading

import structlog

from clitester.state import ProcessStatus

log = structlog.get_logger("process.completion")


class CompletionSignal:
    """
    Single-slot, write-once status cell.

    The first `try_set` wins; later writers get False back and change nothing.
    Readers never consume the value and may read it any number of times.
    """

    def __init__(self) -> None:
        self._status: ProcessStatus | None = None
        self._lock = threading.Lock()
        self._event = threading.Event()

    def try_set(self, status: ProcessStatus) -> bool:
        with self._lock:
            if self._status is not None:
                log.debug("Completion already recorded, ignoring", status=str(status), recorded=str(self._status))
                return False
            self._status = status
        self._event.set()
        return True

    def get(self) -> ProcessStatus | None:
        with self._lock:
            return self._status

    def wait(self, timeout: float | None = None) -> ProcessStatus | None:
        """Blocks until a status is recorded or `timeout` elapses (None on timeout)."""
        if not self._event.wait(timeout):
            return None
        return self.get()

    @property
    def is_set(self) -> bool:
        return self._event.is_set()


# 🔼⚙️
