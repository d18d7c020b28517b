#
# src/clitester/state.py
#
"""
Lifecycle state and terminal status models for spawned processes.
"""

import signal as _signal
from enum import Enum, auto

from attrs import define, field

# Exit code reported for the synthetic status written by an explicit kill.
KILLED_EXIT_CODE = -1


class ProcessState(Enum):
    """Lifecycle of an interactive process. Only RUNNING is non-terminal."""

    RUNNING = auto()
    EXITED = auto()  # Exit watcher observed natural termination.
    KILLED = auto()  # An explicit kill published its status first.

    @property
    def is_terminal(self) -> bool:
        return self is not ProcessState.RUNNING


class Stream(Enum):
    """Output streams of a child process."""

    STDOUT = "stdout"
    STDERR = "stderr"


@define(frozen=True, slots=True)
class ProcessStatus:
    """
    Final status of a child process.

    `exit_code` follows the shell convention for signal terminations
    (128 + signal number) so it is always an integer; `signal` carries the
    signal number itself when one ended the process.
    """

    exit_code: int
    signal: int | None = field(default=None)
    killed: bool = field(default=False)

    @classmethod
    def from_returncode(cls, returncode: int) -> "ProcessStatus":
        """Builds a status from a `subprocess.Popen.returncode`."""
        if returncode < 0:
            signum = -returncode
            return cls(exit_code=128 + signum, signal=signum)
        return cls(exit_code=returncode)

    @classmethod
    def killed_status(cls) -> "ProcessStatus":
        """The synthetic status recorded when the harness kills a process."""
        return cls(exit_code=KILLED_EXIT_CODE, signal=int(getattr(_signal, "SIGKILL", 9)), killed=True)

    @classmethod
    def unknown(cls) -> "ProcessStatus":
        """Best-effort status used when the exit code could not be collected."""
        return cls(exit_code=KILLED_EXIT_CODE)

    @property
    def success(self) -> bool:
        return self.exit_code == 0 and not self.killed

    @property
    def terminated_by_signal(self) -> bool:
        return self.signal is not None

    @property
    def signal_name(self) -> str | None:
        if self.signal is None:
            return None
        try:
            return _signal.Signals(self.signal).name
        except ValueError:
            return f"SIG{self.signal}"

    def __str__(self) -> str:
        if self.killed:
            return f"killed ({self.signal_name})"
        if self.signal is not None:
            return f"terminated by {self.signal_name} (exit code {self.exit_code})"
        return f"exit code {self.exit_code}"


# 🔼⚙️
