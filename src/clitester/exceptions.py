#
# src/clitester/exceptions.py
#
"""
Exception hierarchy for clitester.

Everything raised by the harness derives from `CliTesterError`. A few errors
also derive from a builtin so that plain `except TimeoutError` or pytest's
assertion reporting keep working.
"""

from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from clitester.state import ProcessStatus


class CliTesterError(Exception):
    """Base class for all clitester errors."""

    def __init__(self, message: str, details: Exception | None = None, **context: Any):
        self.details = details
        self.context = context
        super().__init__(message)
        if details and hasattr(self, "add_note"):
            self.add_note(f"Original error: {type(details).__name__}: {details}")


class ConfigurationError(CliTesterError):
    """Invalid or unreadable harness configuration."""

    pass


class SandboxError(CliTesterError):
    """Raised when the sandbox directory cannot be created or manipulated."""

    pass


class SpawnError(CliTesterError):
    """The child process could not be started."""

    def __init__(self, message: str, command: str | None = None, details: Exception | None = None):
        self.command = command
        full_message = message if command is None else f"{message} (command: {command!r})"
        super().__init__(full_message, details=details, command=command)


class NotRunningError(CliTesterError):
    """Input was sent to a process that is no longer accepting it."""

    def __init__(self, message: str = "Process is not running.", pid: int | None = None, details: Exception | None = None):
        self.pid = pid
        super().__init__(message, details=details, pid=pid)


class InvalidArgumentError(CliTesterError, ValueError):
    """An argument has an unsupported value (unknown key name, unknown stream)."""

    pass


class ProcessTimeoutError(CliTesterError, TimeoutError):
    """A deadline passed while waiting for output or for the process to finish."""

    def __init__(self, message: str, timeout: float | None = None, pattern: str | None = None, stream: str | None = None):
        self.timeout = timeout
        self.pattern = pattern
        self.stream = stream
        super().__init__(message, timeout=timeout, pattern=pattern, stream=stream)


class ProcessExitedError(CliTesterError):
    """The process terminated before the awaited text appeared."""

    def __init__(
        self,
        message: str,
        status: "ProcessStatus | None" = None,
        pattern: str | None = None,
        stream: str | None = None,
    ):
        self.status = status
        self.pattern = pattern
        self.stream = stream
        super().__init__(message, status=status, pattern=pattern, stream=stream)


class StreamFaultError(CliTesterError):
    """
    An I/O fault inside an output drain task.

    Never raised to callers; it is created so the fault can be logged with a
    consistent type and context.
    """

    def __init__(self, stream: str, details: Exception | None = None):
        self.stream = stream
        super().__init__(f"Error reading from {stream}", details=details, stream=stream)


class SnapshotMismatchError(CliTesterError, AssertionError):
    """Actual output differs from the stored snapshot."""

    def __init__(self, message: str, snapshot_file: str, diff: str = ""):
        self.snapshot_file = snapshot_file
        self.diff = diff
        super().__init__(message, snapshot_file=snapshot_file)


# 🔼⚙️
