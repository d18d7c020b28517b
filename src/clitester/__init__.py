#
# src/clitester/__init__.py
#
"""
clitester: end-to-end testing for command-line programs.

Provides an isolated sandbox directory, one-shot command execution with
captured output, and step-by-step control of interactive commands.

Example:
    from clitester import cli_test

    with cli_test() as env:
        env.write_file("input.txt", "Hello World")
        result = env.execute("my_cli --input input.txt")
        assert result.success
        assert "Expected output" in result.stdout

        proc = env.spawn("my_cli --interactive")
        proc.wait_for_text("Enter name:")
        proc.write_text("Ada")
        proc.wait_for_text("Hello Ada")
        assert proc.wait_for_finish().success
"""

from collections.abc import Iterator
from contextlib import contextmanager
from importlib.metadata import PackageNotFoundError, version

from .config import HarnessConfig, load_config
from .environment import Environment
from .exceptions import (
    CliTesterError,
    ConfigurationError,
    InvalidArgumentError,
    NotRunningError,
    ProcessExitedError,
    ProcessTimeoutError,
    SandboxError,
    SnapshotMismatchError,
    SpawnError,
    StreamFaultError,
)
from .process import InteractiveProcess
from .protocols import MockAdapter
from .result import ExecutionResult
from .snapshot import assert_match_snapshot
from .state import ProcessState, ProcessStatus, Stream

try:
    __version__ = version("clitester")
except PackageNotFoundError:
    __version__ = "0.0.0-dev"


@contextmanager
def cli_test(config: HarnessConfig | None = None) -> Iterator[Environment]:
    """
    Yields a fresh `Environment` with the working directory switched into it.

    The sandbox, and every process spawned in it, is cleaned up when the block
    exits, whether or not it raised.
    """
    env = Environment(config)
    try:
        with env.chdir():
            yield env
    finally:
        env.cleanup()


__all__ = [
    "CliTesterError",
    "ConfigurationError",
    "Environment",
    "ExecutionResult",
    "HarnessConfig",
    "InteractiveProcess",
    "InvalidArgumentError",
    "MockAdapter",
    "NotRunningError",
    "ProcessExitedError",
    "ProcessState",
    "ProcessStatus",
    "ProcessTimeoutError",
    "SandboxError",
    "SnapshotMismatchError",
    "SpawnError",
    "Stream",
    "StreamFaultError",
    "__version__",
    "assert_match_snapshot",
    "cli_test",
    "load_config",
]

# 🔼⚙️
