#
# src/clitester/normalizer.py
#
"""
Normalizes command output for stable comparisons.

`normalize` strips ANSI escape sequences, unifies line endings, replaces the
sandbox path with `{base}` and the home directory with `{home}`, and drops
non-printable characters other than newline and tab.
"""

import os
import re
from pathlib import Path

BASE_PLACEHOLDER = "{base}"
HOME_PLACEHOLDER = "{home}"

# CSI sequences (colors, cursor movement) and OSC sequences (titles, links).
_ANSI_RE = re.compile(r"\x1b\[[0-?]*[ -/]*[@-~]|\x1b\][^\x07\x1b]*(?:\x07|\x1b\\)")
_LINE_ENDING_RE = re.compile(r"\r\n?")


def strip_ansi_codes(text: str) -> str:
    return _ANSI_RE.sub("", text)


def normalize_line_endings(text: str) -> str:
    return _LINE_ENDING_RE.sub("\n", text)


def _home_dir() -> str | None:
    home = os.environ.get("HOME")
    if home:
        return home
    try:
        return str(Path.home())
    except RuntimeError:
        return None


def normalize_paths(text: str, base_path: str | Path) -> str:
    """Replaces `base_path` with `{base}`, then the home directory with `{home}`."""
    bases = {str(base_path).rstrip("/\\") or str(base_path)}
    try:
        bases.add(os.path.realpath(base_path).rstrip("/\\"))
    except OSError:
        pass
    # Longest first so a resolved path containing the other is replaced whole.
    for base in sorted((b for b in bases if b), key=len, reverse=True):
        text = text.replace(base, BASE_PLACEHOLDER)

    home = _home_dir()
    if home and home.rstrip("/\\"):
        text = text.replace(home.rstrip("/\\"), HOME_PLACEHOLDER)
    return text


def clean_special_chars(text: str) -> str:
    """Removes non-printable characters except newline and tab."""
    return "".join(ch for ch in text if ch in "\n\t" or ch.isprintable())


def normalize(text: str, base_path: str | Path) -> str:
    text = strip_ansi_codes(text)
    text = normalize_line_endings(text)
    text = normalize_paths(text, base_path)
    return clean_special_chars(text)


# 🔼⚙️
