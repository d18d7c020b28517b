#
# src/clitester/process/interactive.py
#
"""
Controller for an interactively driven child process.

An `InteractiveProcess` owns one child started with all three standard
streams redirected to pipes. Two drain threads and an exit watcher run for
its whole lifetime; the methods here only read their shared state, so a test
can write input, wait for prompts and wait for termination step by step.
"""

import subprocess
import threading
import time
from collections.abc import Mapping, Sequence
from pathlib import Path

import structlog

from clitester.config.models import HarnessConfig
from clitester.exceptions import (
    InvalidArgumentError,
    NotRunningError,
    ProcessExitedError,
    ProcessTimeoutError,
    SpawnError,
)
from clitester.process.buffer import OutputBuffer
from clitester.process.completion import CompletionSignal
from clitester.process.tasks import ExitWatcher, OutputDrainTask
from clitester.state import ProcessState, ProcessStatus, Stream
from clitester.telemetry import StructLogger

log: StructLogger = structlog.get_logger("process.interactive")

# Key names accepted by press_key and the characters they produce.
KEY_SEQUENCES: dict[str, str] = {
    "enter": "\n",
    "return": "\n",
    "tab": "\t",
    "space": " ",
    "escape": "\x1b",
    "esc": "\x1b",
}

Command = str | Sequence[str]


def describe_command(command: Command) -> str:
    if isinstance(command, str):
        return command
    return " ".join(str(part) for part in command)


class InteractiveProcess:
    """
    Drives a running child process: send input, await output, await exit.

    Usually created by `Environment.spawn`. Input operations require the
    process to be running; output operations work in any state.
    """

    def __init__(
        self,
        process: subprocess.Popen,
        command: Command = "",
        config: HarnessConfig | None = None,
    ):
        if process.stdin is None or process.stdout is None or process.stderr is None:
            raise InvalidArgumentError("InteractiveProcess requires stdin, stdout and stderr pipes")

        self.config = config or HarnessConfig()
        self.process = process
        self.command = describe_command(command)
        self.stdout_buffer = OutputBuffer(Stream.STDOUT.value)
        self.stderr_buffer = OutputBuffer(Stream.STDERR.value)
        self._buffers = {Stream.STDOUT: self.stdout_buffer, Stream.STDERR: self.stderr_buffer}
        self._stdin = process.stdin
        self._stdin_closed = False
        self._stdin_lock = threading.Lock()
        self._completion = CompletionSignal()
        # Serializes kill() against the exit watcher's publish so the first
        # writer decides the terminal state.
        self._lifecycle_lock = threading.Lock()
        self._kill_requested = False
        self._log = log.bind(pid=process.pid, command=self.command)

        self._drains = (
            self._make_drain(process.stdout, self.stdout_buffer),
            self._make_drain(process.stderr, self.stderr_buffer),
        )
        self._watcher = ExitWatcher(
            process,
            self._drains,
            self._publish_exit,
            drain_join_timeout=self.config.drain_join_timeout,
        )
        for drain in self._drains:
            drain.start()
        self._watcher.start()
        self._log.debug("Interactive process started")

    @classmethod
    def start(
        cls,
        command: Command,
        cwd: str | Path | None = None,
        env: Mapping[str, str] | None = None,
        config: HarnessConfig | None = None,
    ) -> "InteractiveProcess":
        """
        Spawns `command` with piped standard streams and wraps it.

        A string runs through the shell; a sequence is executed directly.

        Raises:
            SpawnError: If the executable cannot be started.
        """
        shell = isinstance(command, str)
        args = command if shell else [str(part) for part in command]
        try:
            process = subprocess.Popen(
                args,
                shell=shell,
                stdin=subprocess.PIPE,
                stdout=subprocess.PIPE,
                stderr=subprocess.PIPE,
                cwd=cwd,
                env=dict(env) if env is not None else None,
            )
        except OSError as e:
            log.error("Failed to spawn process", command=describe_command(command), error=str(e))
            raise SpawnError("Could not start process", command=describe_command(command), details=e) from e
        return cls(process, command, config)

    def _make_drain(self, pipe, buffer: OutputBuffer) -> OutputDrainTask:
        return OutputDrainTask(
            pipe,
            buffer,
            chunk_size=self.config.read_chunk_size,
            poll_interval=self.config.poll_interval,
            pid=self.process.pid,
        )

    # --- State ---

    @property
    def pid(self) -> int:
        return self.process.pid

    @property
    def state(self) -> ProcessState:
        status = self._completion.get()
        if status is None:
            return ProcessState.RUNNING
        return ProcessState.KILLED if status.killed else ProcessState.EXITED

    @property
    def is_running(self) -> bool:
        return self.state is ProcessState.RUNNING and not self._kill_requested and not self._child_exited()

    def _child_exited(self) -> bool:
        """True once the child has terminated, even if its status is not published yet."""
        return self.process.poll() is not None

    def get_status(self) -> ProcessStatus | None:
        """Returns the terminal status, or None while the process is running."""
        return self._completion.get()

    def get_exit_code(self) -> int | None:
        status = self._completion.get()
        return status.exit_code if status is not None else None

    def get_stdout(self) -> str:
        """All standard output captured so far."""
        return self.stdout_buffer.text()

    def get_stderr(self) -> str:
        """All standard error captured so far."""
        return self.stderr_buffer.text()

    # --- Input ---

    def write_text(self, text: str, add_newline: bool = True) -> None:
        """Writes `text` to stdin, followed by a newline unless `add_newline` is False."""
        self._check_running()
        self._log.debug("Writing text", text=text, newline=add_newline)
        self._write(text + "\n" if add_newline else text)

    def press_enter(self) -> None:
        self.press_key("enter")

    def press_key(self, key_name: str) -> None:
        """Sends a named key. Only keys that map to literal characters are supported."""
        sequence = KEY_SEQUENCES.get(key_name.lower())
        if sequence is None:
            raise InvalidArgumentError(
                f"Unsupported key name: {key_name!r}. Supported keys: {sorted(KEY_SEQUENCES)}"
            )
        self._check_running()
        self._log.debug("Pressing key", key=key_name)
        self._write(sequence)

    def close_stdin(self) -> None:
        """Closes the child's input stream so it reads end-of-file."""
        with self._stdin_lock:
            self._close_stdin_locked()

    def _write(self, data: str) -> None:
        with self._stdin_lock:
            if self._stdin_closed:
                raise NotRunningError("Process stdin is closed.", pid=self.pid)
            try:
                self._stdin.write(data.encode("utf-8"))
                self._stdin.flush()
            except (OSError, ValueError) as e:
                raise NotRunningError("Process stopped accepting input.", pid=self.pid, details=e) from e

    def _check_running(self) -> None:
        if not self.is_running:
            raise NotRunningError(f"Process is not running (state: {self.state.name}).", pid=self.pid)

    # --- Waiting ---

    def _resolve_stream(self, stream: Stream | str) -> Stream:
        if isinstance(stream, Stream):
            return stream
        try:
            return Stream(str(stream).lower())
        except ValueError:
            raise InvalidArgumentError(f"Unknown stream {stream!r}; expected 'stdout' or 'stderr'") from None

    def wait_for_text(
        self,
        pattern: str,
        stream: Stream | str = Stream.STDOUT,
        timeout: float | None = None,
    ) -> str:
        """
        Waits until `pattern` appears on `stream` and returns the output up to the match.

        Only output not consumed by an earlier successful call on the same
        stream is searched; on success the stream's cursor moves past the
        match.

        Raises:
            ProcessTimeoutError: If the text does not appear within `timeout` seconds.
            ProcessExitedError: If the process terminated without producing it.
        """
        if not pattern:
            raise InvalidArgumentError("wait_for_text requires a non-empty pattern")
        resolved = self._resolve_stream(stream)
        buffer = self._buffers[resolved]
        timeout = self.config.default_timeout if timeout is None else timeout
        needle = pattern.encode("utf-8")
        start_time = time.monotonic()

        self._log.debug("Waiting for text", pattern=pattern, stream=resolved.value, timeout=timeout)
        while True:
            if time.monotonic() - start_time >= timeout:
                raise ProcessTimeoutError(
                    f"Timeout waiting for text {pattern!r} in {resolved.value}",
                    timeout=timeout,
                    pattern=pattern,
                    stream=resolved.value,
                )

            # Sampled before the search: once set, the buffers already hold
            # everything the child wrote before terminating.
            finished = self._completion.is_set

            matched = self._consume_match(buffer, needle)
            if matched is not None:
                self._log.debug("Found text", pattern=pattern, stream=resolved.value)
                return matched

            if finished:
                status = self._completion.get()
                raise ProcessExitedError(
                    f"Process exited ({status}) before text was found: {pattern!r} in {resolved.value}",
                    status=status,
                    pattern=pattern,
                    stream=resolved.value,
                )

            time.sleep(self.config.poll_interval)

    @staticmethod
    def _consume_match(buffer: OutputBuffer, needle: bytes) -> str | None:
        consumed = buffer.consume(needle)
        return consumed.decode("utf-8", errors="replace") if consumed is not None else None

    def wait_for_finish(self, timeout: float | None = None) -> ProcessStatus:
        """
        Waits for the process to terminate and returns its status.

        On timeout the process is killed before `ProcessTimeoutError` is raised.
        """
        status = self._completion.get()
        if status is not None:
            return status

        timeout = self.config.default_timeout if timeout is None else timeout
        self._log.debug("Waiting for process to finish", timeout=timeout)
        status = self._completion.wait(timeout)
        if status is None and self._child_exited():
            # The child is gone; the exit watcher is still collecting output from
            # pipes a grandchild holds open and publishes within drain_join_timeout.
            self._log.debug("Process exited, waiting for its status to be published")
            status = self._completion.wait(self._publish_grace())
        if status is None:
            self._log.warning("Timeout waiting for process finish. Killing process.", timeout=timeout, emoji_key="time")
            self.kill()
            raise ProcessTimeoutError(f"Timeout waiting for process {self.pid} to finish", timeout=timeout)
        self._log.debug("Process finished", status=str(status))
        return status

    # --- Termination ---

    def kill(self) -> None:
        """
        Forcefully terminates the process. Repeated calls do nothing.

        A child that has already exited is not marked as killed: the exit
        watcher's real status is awaited instead.
        """
        with self._lifecycle_lock:
            if self._kill_requested or self._completion.is_set:
                return
            already_exited = self._child_exited()
            if not already_exited:
                self._kill_requested = True
                self._terminate_locked()
        if already_exited:
            self._await_published_exit()

    def _terminate_locked(self) -> None:
        self._log.warning("Killing process", emoji_key="kill")
        try:
            self.process.kill()
        except OSError as e:
            # Already gone; the desired end state holds.
            self._log.debug("Process already terminated before kill", error=str(e))
        self._close_pipes()
        self._completion.try_set(ProcessStatus.killed_status())

    def _await_published_exit(self) -> None:
        self._log.debug("Process already exited, waiting for its status instead of killing")
        for drain in self._drains:
            drain.stop()
        if self._completion.wait(self._publish_grace()) is None:
            self._log.warning("Exit status not published in time", grace=self._publish_grace())

    def _publish_grace(self) -> float:
        """Upper bound for the exit watcher to publish once the child has exited."""
        return self.config.drain_join_timeout + self.config.kill_wait_timeout

    def close(self, timeout: float | None = None) -> None:
        """Kills the process if needed and waits for the background threads to finish."""
        self.kill()
        timeout = self.config.kill_wait_timeout if timeout is None else timeout
        deadline = time.monotonic() + timeout
        for task in (*self._drains, self._watcher):
            if not task.join(max(0.0, deadline - time.monotonic())):
                self._log.debug("Background task still running after close", task=type(task).__name__)

    def _publish_exit(self, status: ProcessStatus) -> None:
        with self._lifecycle_lock:
            if self._completion.try_set(status):
                self._log.debug("Process exit recorded", status=str(status))
            with self._stdin_lock:
                self._close_stdin_locked()

    def _close_pipes(self) -> None:
        with self._stdin_lock:
            self._close_stdin_locked()
        for drain in self._drains:
            drain.stop()

    def _close_stdin_locked(self) -> None:
        if self._stdin_closed:
            return
        self._stdin_closed = True
        try:
            self._stdin.close()
        except OSError as e:
            self._log.debug("Ignoring error while closing stdin", error=str(e))

    # --- Context manager ---

    def __enter__(self) -> "InteractiveProcess":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()

    def __repr__(self) -> str:
        return f"InteractiveProcess(pid={self.pid}, state={self.state.name}, command={self.command!r})"


# 🔼⚙️
