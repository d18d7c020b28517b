#
# src/clitester/process/tasks.py
#
"""
Background threads that keep a child process unblocked and observe its exit.

`OutputDrainTask` copies one output pipe into an `OutputBuffer` so the child
never stalls on a full pipe. `ExitWatcher` waits for the child to terminate,
lets the drains collect the final bytes, then publishes the terminal status.
"""

import os
import selectors
import subprocess
import sys
import threading
from collections.abc import Callable, Sequence
from typing import IO

import structlog

from clitester.exceptions import StreamFaultError
from clitester.process.buffer import OutputBuffer
from clitester.state import ProcessStatus
from clitester.telemetry import StructLogger

log: StructLogger = structlog.get_logger("process.tasks")

IS_WINDOWS = sys.platform == "win32"

DEFAULT_CHUNK_SIZE = 1024
DEFAULT_POLL_INTERVAL = 0.05


class OutputDrainTask:
    """
    Drains one output pipe into its buffer until end-of-data, a fault, or stop.

    The task owns the read end of the pipe and closes it exactly once when it
    finishes. `stop()` does not interrupt a pending chunk: whatever is already
    readable is still collected, then the loop ends at the next idle poll.
    """

    def __init__(
        self,
        pipe: IO[bytes],
        buffer: OutputBuffer,
        *,
        chunk_size: int = DEFAULT_CHUNK_SIZE,
        poll_interval: float = DEFAULT_POLL_INTERVAL,
        pid: int | None = None,
    ):
        self.pipe = pipe
        self.buffer = buffer
        self.chunk_size = chunk_size
        self.poll_interval = poll_interval
        self.fault: StreamFaultError | None = None
        self._stop = threading.Event()
        self._closed = False
        self._close_lock = threading.Lock()
        self._thread: threading.Thread | None = None
        self._log = log.bind(stream=buffer.name, pid=pid)
        self._thread_name = f"clitester-drain-{buffer.name}-{pid}"

    @property
    def name(self) -> str:
        return self.buffer.name

    def start(self) -> None:
        self._thread = threading.Thread(target=self._run, name=self._thread_name, daemon=True)
        self._thread.start()

    def stop(self) -> None:
        """Asks the task to finish once nothing more is readable."""
        self._stop.set()

    def join(self, timeout: float | None = None) -> bool:
        """Waits for the task to finish. Returns True if it has."""
        if self._thread is None:
            return True
        self._thread.join(timeout)
        return not self._thread.is_alive()

    @property
    def is_alive(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def _run(self) -> None:
        try:
            if IS_WINDOWS:
                self._drain_blocking()
            else:
                self._drain_polling()
        except OSError as e:
            self.fault = StreamFaultError(self.name, details=e)
            self._log.warning("Error reading from stream, draining stopped", error=str(e), exc_info=self.fault, emoji_key="stream")
        except Exception:
            self._log.error("Unhandled error in output drain task", exc_info=True)
        finally:
            self._close_pipe()

    def _drain_polling(self) -> None:
        fd = self.pipe.fileno()
        with selectors.DefaultSelector() as sel:
            sel.register(fd, selectors.EVENT_READ)
            while True:
                if not sel.select(self.poll_interval):
                    if self._stop.is_set():
                        self._log.debug("Drain stopped while stream idle")
                        return
                    continue
                if not self._read_chunk(fd):
                    return

    def _drain_blocking(self) -> None:
        fd = self.pipe.fileno()
        while self._read_chunk(fd):
            pass

    def _read_chunk(self, fd: int) -> bool:
        """Reads one chunk into the buffer. Returns False at end-of-data."""
        chunk = os.read(fd, self.chunk_size)
        if not chunk:
            self._log.debug("Stream reached end of data")
            return False
        size = self.buffer.append(chunk)
        self._log.debug("Read bytes from stream", bytes=len(chunk), buffered=size)
        return True

    def _close_pipe(self) -> None:
        with self._close_lock:
            if self._closed:
                return
            self._closed = True
        try:
            self.pipe.close()
        except OSError as e:
            self._log.debug("Ignoring error while closing pipe", error=str(e))


class ExitWatcher:
    """
    Waits for the child to terminate and publishes its status once.

    Before publishing, the drains get up to `drain_join_timeout` seconds to
    reach end-of-data so that output written right before exit is already
    buffered when waiters wake up. Drains still running after that (a
    grandchild may hold the pipe open) are told to stop.
    """

    def __init__(
        self,
        process: subprocess.Popen,
        drains: Sequence[OutputDrainTask],
        publish: Callable[[ProcessStatus], None],
        *,
        drain_join_timeout: float = 1.0,
    ):
        self.process = process
        self.drains = tuple(drains)
        self.publish = publish
        self.drain_join_timeout = drain_join_timeout
        self._thread: threading.Thread | None = None
        self._log = log.bind(pid=process.pid)

    def start(self) -> None:
        self._thread = threading.Thread(target=self._run, name=f"clitester-exit-{self.process.pid}", daemon=True)
        self._thread.start()

    def join(self, timeout: float | None = None) -> bool:
        if self._thread is None:
            return True
        self._thread.join(timeout)
        return not self._thread.is_alive()

    def _run(self) -> None:
        status = ProcessStatus.unknown()
        try:
            returncode = self.process.wait()
            status = ProcessStatus.from_returncode(returncode)
            self._log.debug("Process exited", exit_code=status.exit_code, signal=status.signal, emoji_key="exit")
        except Exception:
            # Reaped elsewhere or wait() itself failed; waiters must still wake up.
            self._log.error("Error waiting for process exit", exc_info=True)
        finally:
            self._settle_drains()
            self.publish(status)

    def _settle_drains(self) -> None:
        for drain in self.drains:
            if not drain.join(self.drain_join_timeout):
                self._log.debug("Stream still open after exit, stopping drain", stream=drain.name)
            drain.stop()


# 🔼⚙️
