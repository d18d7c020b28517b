#
# src/clitester/result.py
#
"""
Result of a one-shot command run through `Environment.execute`.
"""

from pathlib import Path
from typing import TYPE_CHECKING

from attrs import define, field

from clitester import normalizer
from clitester.state import ProcessStatus

if TYPE_CHECKING:
    from clitester.environment import Environment


def _base_path(env_or_base: "Environment | str | Path") -> str:
    path = getattr(env_or_base, "path", env_or_base)
    return str(path)


@define(frozen=True, slots=True)
class ExecutionResult:
    """
    Captured output and exit status of a completed command.
    """

    stdout: str
    stderr: str
    status: ProcessStatus
    command: str = field(default="")
    duration: float = field(default=0.0)  # Wall-clock seconds.

    @property
    def exit_code(self) -> int:
        return self.status.exit_code

    @property
    def success(self) -> bool:
        return self.status.success

    def normalized_stdout(self, env_or_base: "Environment | str | Path") -> str:
        """Stdout with ANSI codes stripped and sandbox/home paths replaced by placeholders."""
        return normalizer.normalize(self.stdout, _base_path(env_or_base))

    def normalized_stderr(self, env_or_base: "Environment | str | Path") -> str:
        return normalizer.normalize(self.stderr, _base_path(env_or_base))

    def __str__(self) -> str:
        return (
            "ExecutionResult(\n"
            f"  exit_code: {self.exit_code},\n"
            f"  success: {self.success},\n"
            f"  stdout_size: {len(self.stdout.encode('utf-8'))} bytes,\n"
            f"  stderr_size: {len(self.stderr.encode('utf-8'))} bytes\n"
            ")"
        )


# 🔼⚙️
