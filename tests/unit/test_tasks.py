#
# tests/unit/test_tasks.py
#
"""
Tests for the drain and exit-watcher background tasks, using plain OS pipes.
"""

import os
import threading
from unittest.mock import patch

import pytest

from clitester.exceptions import StreamFaultError
from clitester.process import ExitWatcher, OutputBuffer, OutputDrainTask
from clitester.state import ProcessStatus


@pytest.fixture
def pipe_pair():
    read_fd, write_fd = os.pipe()
    reader = os.fdopen(read_fd, "rb", buffering=0)
    writer = os.fdopen(write_fd, "wb", buffering=0)
    yield reader, writer
    for stream in (reader, writer):
        if not stream.closed:
            stream.close()


class FakeProcess:
    """Stands in for subprocess.Popen inside ExitWatcher."""

    def __init__(self, returncode: int = 0, error: Exception | None = None):
        self.pid = 4242
        self.returncode = returncode
        self.error = error
        self.release = threading.Event()
        self.release.set()

    def wait(self) -> int:
        self.release.wait(5)
        if self.error is not None:
            raise self.error
        return self.returncode


class TestOutputDrainTask:
    def test_drains_until_end_of_data_and_closes_pipe(self, pipe_pair) -> None:
        reader, writer = pipe_pair
        buffer = OutputBuffer("stdout")
        drain = OutputDrainTask(reader, buffer, chunk_size=4, poll_interval=0.01)
        drain.start()

        writer.write(b"first chunk, ")
        writer.write(b"second chunk")
        writer.close()

        assert drain.join(5)
        assert buffer.snapshot() == b"first chunk, second chunk"
        assert reader.closed
        assert drain.fault is None

    def test_stop_ends_idle_drain(self, pipe_pair) -> None:
        reader, writer = pipe_pair
        buffer = OutputBuffer("stdout")
        drain = OutputDrainTask(reader, buffer, poll_interval=0.01)
        drain.start()
        writer.write(b"partial")

        drain.stop()

        assert drain.join(5)
        assert not drain.is_alive
        assert buffer.snapshot() == b"partial"
        assert reader.closed

    def test_read_fault_is_recorded_and_pipe_closed(self, pipe_pair) -> None:
        reader, writer = pipe_pair
        buffer = OutputBuffer("stderr")
        drain = OutputDrainTask(reader, buffer, poll_interval=0.01)
        writer.write(b"data")

        with patch("clitester.process.tasks.os.read", side_effect=OSError(5, "Input/output error")):
            drain.start()
            assert drain.join(5)

        assert isinstance(drain.fault, StreamFaultError)
        assert drain.fault.stream == "stderr"
        assert isinstance(drain.fault.details, OSError)
        assert reader.closed
        assert len(buffer) == 0

    def test_join_before_start_is_a_no_op(self, pipe_pair) -> None:
        reader, _ = pipe_pair
        drain = OutputDrainTask(reader, OutputBuffer("stdout"))

        assert drain.join(0)
        assert not drain.is_alive


class TestExitWatcher:
    def test_publishes_status_after_drains_finish(self, pipe_pair) -> None:
        reader, writer = pipe_pair
        buffer = OutputBuffer("stdout")
        drain = OutputDrainTask(reader, buffer, poll_interval=0.01)
        published: list[tuple[ProcessStatus, bytes]] = []
        process = FakeProcess(returncode=0)
        process.release.clear()

        watcher = ExitWatcher(
            process,
            [drain],
            lambda status: published.append((status, buffer.snapshot())),
            drain_join_timeout=2,
        )
        drain.start()
        watcher.start()

        writer.write(b"final words")
        writer.close()
        process.release.set()

        assert watcher.join(5)
        assert published == [(ProcessStatus(exit_code=0), b"final words")]

    def test_signal_return_code_is_translated(self) -> None:
        published: list[ProcessStatus] = []
        watcher = ExitWatcher(FakeProcess(returncode=-9), [], published.append)
        watcher.start()

        assert watcher.join(5)
        assert published == [ProcessStatus(exit_code=137, signal=9)]

    def test_wait_failure_still_publishes_unknown_status(self) -> None:
        published: list[ProcessStatus] = []
        watcher = ExitWatcher(FakeProcess(error=ChildProcessError("already reaped")), [], published.append)
        watcher.start()

        assert watcher.join(5)
        assert published == [ProcessStatus.unknown()]

    def test_drain_held_open_is_stopped_after_grace_period(self, pipe_pair) -> None:
        reader, writer = pipe_pair
        buffer = OutputBuffer("stdout")
        drain = OutputDrainTask(reader, buffer, poll_interval=0.01)
        published: list[ProcessStatus] = []
        watcher = ExitWatcher(FakeProcess(), [drain], published.append, drain_join_timeout=0.1)

        drain.start()
        writer.write(b"grandchild keeps the pipe")
        watcher.start()

        assert watcher.join(5)
        assert drain.join(5)
        assert published == [ProcessStatus(exit_code=0)]
        assert buffer.snapshot() == b"grandchild keeps the pipe"
