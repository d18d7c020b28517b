#
# src/clitester/snapshot.py
#
"""
Golden-file snapshot assertions for command output.
"""

import difflib
import os
from pathlib import Path

import structlog
from rich.console import Console
from rich.text import Text

from clitester.config.loader import ENV_PREFIX, parse_bool
from clitester.exceptions import SnapshotMismatchError
from clitester.telemetry import StructLogger

log: StructLogger = structlog.get_logger("snapshot")

UPDATE_ENV_VAR = f"{ENV_PREFIX}UPDATE_SNAPSHOTS"


def _update_requested(update: bool | None) -> bool:
    if update is not None:
        return update
    try:
        return parse_bool(os.environ.get(UPDATE_ENV_VAR, ""))
    except ValueError:
        log.warning("Ignoring unrecognized snapshot update flag", env_var=UPDATE_ENV_VAR)
        return False


def unified_diff(expected: str, actual: str, snapshot_file: str | Path = "snapshot") -> str:
    lines = difflib.unified_diff(
        expected.splitlines(keepends=True),
        actual.splitlines(keepends=True),
        fromfile=f"{snapshot_file} (expected)",
        tofile=f"{snapshot_file} (actual)",
    )
    return "".join(line if line.endswith("\n") else line + "\n" for line in lines)


def render_diff(expected: str, actual: str, snapshot_file: str | Path = "snapshot", console: Console | None = None) -> None:
    """Prints a colorized unified diff between a snapshot and actual output."""
    console = console or Console(stderr=True)
    for line in unified_diff(expected, actual, snapshot_file).splitlines():
        if line.startswith(("+++", "---")):
            style = "bold"
        elif line.startswith("+"):
            style = "green"
        elif line.startswith("-"):
            style = "red"
        elif line.startswith("@@"):
            style = "cyan"
        else:
            style = ""
        console.print(Text(line, style=style))


def assert_match_snapshot(
    actual: str,
    snapshot_file: str | Path,
    message: str | None = None,
    update: bool | None = None,
) -> None:
    """
    Asserts that `actual` equals the contents of `snapshot_file`.

    A missing snapshot is created from `actual`. When `update` is true (or
    CLITESTER_UPDATE_SNAPSHOTS is set) a differing snapshot is rewritten
    instead of failing.

    Raises:
        SnapshotMismatchError: If the contents differ and no update was requested.
    """
    snapshot_path = Path(snapshot_file).expanduser().resolve()
    snapshot_path.parent.mkdir(parents=True, exist_ok=True)

    if not snapshot_path.exists():
        snapshot_path.write_text(actual, encoding="utf-8")
        log.info("Snapshot created", snapshot=str(snapshot_file), emoji_key="snapshot")
        return

    expected = snapshot_path.read_text(encoding="utf-8")
    if actual == expected:
        return

    if _update_requested(update):
        snapshot_path.write_text(actual, encoding="utf-8")
        log.info("Snapshot updated", snapshot=str(snapshot_file), emoji_key="snapshot")
        return

    diff = unified_diff(expected, actual, snapshot_file)
    error_message = message or f"Snapshot mismatch for '{snapshot_file}'\n{diff}"
    log.debug("Snapshot mismatch", snapshot=str(snapshot_file))
    raise SnapshotMismatchError(error_message, snapshot_file=str(snapshot_file), diff=diff)


# 🔼⚙️
