#
# src/clitester/environment.py
#
"""
Isolated sandbox for end-to-end tests of command-line programs.

An `Environment` owns a temporary directory with its own XDG base
directories, runs commands inside it (one-shot via `execute`, step by step
via `spawn`) and tears everything down in `cleanup`, killing any interactive
process it started first.
"""

import os
import secrets
import shutil
import subprocess
import tempfile
import time
from collections.abc import Iterator, Mapping
from contextlib import contextmanager
from pathlib import Path

import structlog

from clitester import normalizer, snapshot
from clitester.config.models import HarnessConfig
from clitester.exceptions import ProcessTimeoutError, SandboxError, SpawnError
from clitester.process.interactive import Command, InteractiveProcess, describe_command
from clitester.protocols import MockAdapter
from clitester.result import ExecutionResult
from clitester.state import ProcessStatus
from clitester.telemetry import StructLogger

log: StructLogger = structlog.get_logger("environment")

XDG_DIRS = {
    "XDG_CONFIG_HOME": "config",
    "XDG_CACHE_HOME": "cache",
    "XDG_DATA_HOME": "data",
    "XDG_STATE_HOME": "state",
}


class Environment:
    """
    A temporary working directory plus the processes started inside it.

    Relative paths given to the file helpers are resolved against the sandbox
    root; absolute paths are used as they are.
    """

    def __init__(self, config: HarnessConfig | None = None):
        self.config = config or HarnessConfig()
        temp_root = self.config.temp_root or Path(tempfile.gettempdir())
        self.path = temp_root / f"{self.config.temp_prefix}{secrets.token_hex(8)}"
        try:
            self.path.mkdir(parents=True)
        except OSError as e:
            raise SandboxError(f"Could not create sandbox directory '{self.path}'", details=e) from e
        self.env: dict[str, str] = {}
        self._processes: list[InteractiveProcess] = []
        self._cleaned_up = False
        self._log = log.bind(sandbox=str(self.path))
        self._setup_xdg_environment()
        self._log.debug("Sandbox created", emoji_key="sandbox")

    def _setup_xdg_environment(self) -> None:
        xdg_base = self.path / "xdg"
        for var, name in XDG_DIRS.items():
            directory = xdg_base / name
            directory.mkdir(parents=True, exist_ok=True)
            self.env[var] = str(directory)

    @property
    def processes(self) -> tuple[InteractiveProcess, ...]:
        """Interactive processes spawned by this environment."""
        return tuple(self._processes)

    # --- Lifecycle ---

    def cleanup(self) -> None:
        """Kills spawned processes, then removes the sandbox directory. Safe to call twice."""
        for process in self._processes:
            try:
                process.close()
            except Exception:
                self._log.error("Error while stopping interactive process", pid=process.pid, exc_info=True)
        self._processes.clear()

        if self.path.exists():
            shutil.rmtree(self.path, ignore_errors=True)
        if not self._cleaned_up:
            self._log.debug("Sandbox removed", emoji_key="sandbox")
        self._cleaned_up = True

    def __enter__(self) -> "Environment":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.cleanup()

    @contextmanager
    def chdir(self) -> Iterator[Path]:
        """Switches the current working directory to the sandbox for the block."""
        previous = os.getcwd()
        os.chdir(self.path)
        try:
            yield self.path
        finally:
            os.chdir(previous)

    # --- File system helpers ---

    def resolve(self, path: str | Path) -> Path:
        return self.path / path

    def make_dir(self, path: str | Path) -> Path:
        """Creates a directory, including missing parents."""
        full_path = self.resolve(path)
        full_path.mkdir(parents=True, exist_ok=True)
        return full_path

    def write_file(self, path: str | Path, content: str | bytes) -> Path:
        """Writes a file, creating parent directories and overwriting existing content."""
        full_path = self.resolve(path)
        full_path.parent.mkdir(parents=True, exist_ok=True)
        if isinstance(content, bytes):
            full_path.write_bytes(content)
        else:
            full_path.write_text(content, encoding="utf-8")
        return full_path

    def read_file(self, path: str | Path) -> str:
        return self.resolve(path).read_text(encoding="utf-8")

    def read_file_bytes(self, path: str | Path) -> bytes:
        return self.resolve(path).read_bytes()

    def remove_file(self, path: str | Path) -> None:
        """Removes a file (or directory tree). Missing paths are ignored."""
        full_path = self.resolve(path)
        if full_path.is_dir() and not full_path.is_symlink():
            shutil.rmtree(full_path, ignore_errors=True)
        else:
            full_path.unlink(missing_ok=True)

    def remove_dir(self, path: str | Path) -> None:
        self.remove_file(path)

    def exists(self, path: str | Path) -> bool:
        return self.resolve(path).exists()

    def ls(self, path: str | Path = ".") -> list[str]:
        """Names of the entries directly inside `path`, sorted."""
        return sorted(entry.name for entry in self.resolve(path).iterdir())

    def create_xdg_config(self, app_name: str, filename: str, content: str | bytes) -> Path:
        """Writes a config file under `$XDG_CONFIG_HOME/<app_name>/`."""
        config_home = self.env.get("XDG_CONFIG_HOME")
        if not config_home:
            raise SandboxError("XDG_CONFIG_HOME not set up in environment")
        return self.write_file(Path(config_home) / app_name / filename, content)

    # --- Process environment ---

    @contextmanager
    def with_temp_env(self, env_vars: Mapping[str, str | None]) -> Iterator[None]:
        """
        Temporarily sets (or, for None values, unsets) variables in `os.environ`.

        Original values are restored when the block exits, even on error.
        """
        original = {key: os.environ.get(key) for key in env_vars}
        try:
            for key, value in env_vars.items():
                if value is None:
                    os.environ.pop(key, None)
                else:
                    os.environ[key] = value
            yield
        finally:
            for key, value in original.items():
                if value is None:
                    os.environ.pop(key, None)
                else:
                    os.environ[key] = value

    @contextmanager
    def with_mocks(self, adapter: MockAdapter) -> Iterator[MockAdapter]:
        """Applies `adapter`'s mocks for the duration of the block."""
        adapter.apply_mocks()
        try:
            yield adapter
        finally:
            teardown = getattr(adapter, "teardown_mocks", None)
            if callable(teardown):
                teardown()

    def build_env(self, extra: Mapping[str, str] | None = None) -> dict[str, str]:
        """The environment commands run with: inherited vars, XDG dirs, then `extra`."""
        merged = dict(os.environ)
        merged.update(self.env)
        if extra:
            merged.update(extra)
        return merged

    # --- Running commands ---

    def execute(
        self,
        command: Command,
        input: str | bytes | None = None,
        env: Mapping[str, str] | None = None,
        timeout: float | None = None,
    ) -> ExecutionResult:
        """
        Runs a command to completion inside the sandbox and captures its output.

        A string runs through the shell; a sequence is executed directly.

        Raises:
            SpawnError: If the executable cannot be started.
            ProcessTimeoutError: If the command outlives `timeout` (it is killed first).
        """
        description = describe_command(command)
        shell = isinstance(command, str)
        timeout = self.config.default_timeout if timeout is None else timeout
        stdin_data = input.encode("utf-8") if isinstance(input, str) else input
        run_log = self._log.bind(command=description)
        run_log.debug("Executing command", timeout=timeout)

        started = time.monotonic()
        try:
            completed = subprocess.run(
                command if shell else [str(part) for part in command],
                shell=shell,
                input=stdin_data,
                stdin=subprocess.DEVNULL if stdin_data is None else None,
                capture_output=True,
                cwd=self.path,
                env=self.build_env(env),
                timeout=timeout,
            )
        except subprocess.TimeoutExpired as e:
            run_log.warning("Command timed out and was killed", timeout=timeout, emoji_key="time")
            raise ProcessTimeoutError(f"Command timed out after {timeout}s: {description}", timeout=timeout) from e
        except OSError as e:
            run_log.error("Failed to start command", error=str(e))
            raise SpawnError("Could not start process", command=description, details=e) from e

        result = ExecutionResult(
            stdout=completed.stdout.decode("utf-8", errors="replace"),
            stderr=completed.stderr.decode("utf-8", errors="replace"),
            status=ProcessStatus.from_returncode(completed.returncode),
            command=description,
            duration=time.monotonic() - started,
        )
        run_log.debug("Command finished", exit_code=result.exit_code, stdout_len=len(result.stdout), stderr_len=len(result.stderr))
        return result

    def spawn(
        self,
        command: Command,
        env: Mapping[str, str] | None = None,
        cwd: str | Path | None = None,
    ) -> InteractiveProcess:
        """
        Starts a command for step-by-step interaction.

        The process is registered with this environment and killed by `cleanup`.

        Example:
            process = env.spawn("my_cli --interactive")
            process.wait_for_text("Username:")
            process.write_text("test_user")
            process.wait_for_finish()

        Raises:
            SpawnError: If the executable cannot be started.
        """
        workdir = self.path if cwd is None else self.resolve(cwd)
        process = InteractiveProcess.start(command, cwd=workdir, env=self.build_env(env), config=self.config)
        self._processes.append(process)
        self._log.debug("Spawned interactive process", pid=process.pid, command=process.command, emoji_key="spawn")
        return process

    # --- Output helpers ---

    def normalize(self, text: str) -> str:
        """Normalizes output produced inside this sandbox."""
        return normalizer.normalize(text, self.path)

    def assert_snapshot(self, actual: str, snapshot_file: str | Path, message: str | None = None) -> None:
        """Normalizes `actual` and compares it with a snapshot file (relative to the cwd)."""
        snapshot.assert_match_snapshot(
            self.normalize(actual),
            snapshot_file,
            message=message,
            update=True if self.config.update_snapshots else None,
        )

    def __repr__(self) -> str:
        return f"Environment(path={str(self.path)!r}, processes={len(self._processes)})"


# 🔼⚙️
