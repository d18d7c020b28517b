#
# tests/unit/test_shell.py
#
import subprocess
import sys

import pytest

from clitester import shell


class TestPosixEscaping:
    @pytest.mark.parametrize(
        ("argument", "expected"),
        [
            ("simple", "simple"),
            ("--flag=value", "--flag=value"),
            ("with space", "'with space'"),
            ("it's", "'it'\"'\"'s'"),
            ("$HOME", "'$HOME'"),
            ("", "''"),
        ],
    )
    def test_escape_posix(self, argument: str, expected: str) -> None:
        assert shell.escape(argument, windows=False) == expected

    @pytest.mark.skipif(sys.platform == "win32", reason="needs a POSIX shell")
    @pytest.mark.parametrize("argument", ["it's", 'say "hi"', "a;b && c", "$(whoami)", "back\\slash"])
    def test_shell_receives_argument_verbatim(self, argument: str) -> None:
        command = "printf '%s' " + shell.escape(argument, windows=False)

        output = subprocess.run(command, shell=True, capture_output=True, text=True, check=True).stdout

        assert output == argument

    def test_join(self) -> None:
        assert shell.join(["echo", "a b", "c"], windows=False) == "echo 'a b' c"


class TestWindowsEscaping:
    @pytest.mark.parametrize(
        ("argument", "expected"),
        [
            ("simple", '"simple"'),
            ('say "hi"', '"say \\"hi\\""'),
            ('trail\\"', '"trail\\\\\\""'),
            ("C:\\path with space", '"C:\\path with space"'),
        ],
    )
    def test_escape_windows(self, argument: str, expected: str) -> None:
        assert shell.escape(argument, windows=True) == expected


class TestXdgCommand:
    def test_posix(self) -> None:
        assert shell.xdg_command("my_cli --init", "/tmp/x y", windows=False) == "XDG_CONFIG_HOME='/tmp/x y' my_cli --init"

    def test_windows(self) -> None:
        assert shell.xdg_command("my_cli", "C:\\cfg", windows=True) == 'set XDG_CONFIG_HOME="C:\\cfg" && my_cli'
