#
# src/clitester/shell.py
#
"""
Shell quoting helpers for building command strings.
"""

import re
import shlex
import sys
from collections.abc import Iterable

IS_WINDOWS = sys.platform == "win32"

_BACKSLASHES_BEFORE_QUOTE = re.compile(r'(\\*)"')


def escape_posix(argument: str) -> str:
    """Quotes `argument` for sh/bash/zsh, leaving plain words untouched."""
    return shlex.quote(argument)


def escape_windows(argument: str) -> str:
    """Double-quotes `argument` for cmd.exe, escaping quotes and the backslashes before them."""
    escaped = _BACKSLASHES_BEFORE_QUOTE.sub(lambda m: m.group(1) * 2 + '\\"', argument)
    return f'"{escaped}"'


def escape(argument: str, windows: bool | None = None) -> str:
    """Escapes a string for use as a single shell argument on the current platform."""
    windows = IS_WINDOWS if windows is None else windows
    return escape_windows(argument) if windows else escape_posix(argument)


def join(arguments: Iterable[str], windows: bool | None = None) -> str:
    return " ".join(escape(str(arg), windows=windows) for arg in arguments)


def xdg_command(command: str, config_home: str, windows: bool | None = None) -> str:
    """Prefixes `command` so it runs with XDG_CONFIG_HOME set to `config_home`."""
    windows = IS_WINDOWS if windows is None else windows
    if windows:
        return f'set XDG_CONFIG_HOME="{config_home}" && {command}'
    return f"XDG_CONFIG_HOME={escape_posix(config_home)} {command}"


# 🔼⚙️
