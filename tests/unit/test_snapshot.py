#
# tests/unit/test_snapshot.py
#
from pathlib import Path

import pytest
from rich.console import Console

from clitester import snapshot
from clitester.exceptions import SnapshotMismatchError


@pytest.fixture(autouse=True)
def no_update_env(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv(snapshot.UPDATE_ENV_VAR, raising=False)


class TestAssertMatchSnapshot:
    def test_missing_snapshot_is_created(self, tmp_path: Path) -> None:
        snapshot_file = tmp_path / "snapshots" / "new.snap"

        snapshot.assert_match_snapshot("first output\n", snapshot_file)

        assert snapshot_file.read_text() == "first output\n"

    def test_matching_snapshot_passes(self, tmp_path: Path) -> None:
        snapshot_file = tmp_path / "same.snap"
        snapshot_file.write_text("same\n")

        snapshot.assert_match_snapshot("same\n", snapshot_file)

    def test_mismatch_raises_with_diff(self, tmp_path: Path) -> None:
        snapshot_file = tmp_path / "diff.snap"
        snapshot_file.write_text("line one\nline two\n")

        with pytest.raises(SnapshotMismatchError) as exc_info:
            snapshot.assert_match_snapshot("line one\nline 2\n", snapshot_file)

        error = exc_info.value
        assert str(error).startswith(f"Snapshot mismatch for '{snapshot_file}'")
        assert "-line two" in error.diff
        assert "+line 2" in error.diff
        assert isinstance(error, AssertionError)
        assert snapshot_file.read_text() == "line one\nline two\n"

    def test_custom_message(self, tmp_path: Path) -> None:
        snapshot_file = tmp_path / "msg.snap"
        snapshot_file.write_text("a")

        with pytest.raises(SnapshotMismatchError, match="help output changed"):
            snapshot.assert_match_snapshot("b", snapshot_file, message="help output changed")

    def test_update_flag_rewrites(self, tmp_path: Path) -> None:
        snapshot_file = tmp_path / "update.snap"
        snapshot_file.write_text("old")

        snapshot.assert_match_snapshot("new", snapshot_file, update=True)

        assert snapshot_file.read_text() == "new"

    def test_update_env_var_rewrites(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        snapshot_file = tmp_path / "env.snap"
        snapshot_file.write_text("old")
        monkeypatch.setenv(snapshot.UPDATE_ENV_VAR, "1")

        snapshot.assert_match_snapshot("new", snapshot_file)

        assert snapshot_file.read_text() == "new"

    def test_explicit_false_overrides_env_var(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        snapshot_file = tmp_path / "env.snap"
        snapshot_file.write_text("old")
        monkeypatch.setenv(snapshot.UPDATE_ENV_VAR, "true")

        with pytest.raises(SnapshotMismatchError):
            snapshot.assert_match_snapshot("new", snapshot_file, update=False)


class TestRenderDiff:
    def test_renders_changed_lines(self) -> None:
        console = Console(record=True, width=80, color_system=None)

        snapshot.render_diff("a\nb\n", "a\nc\n", "x.snap", console=console)

        output = console.export_text()
        assert "-b" in output
        assert "+c" in output
        assert "x.snap (expected)" in output
