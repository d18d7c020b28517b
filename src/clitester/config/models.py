#
# config/models.py
#
"""
Attrs-based data models for clitester configuration.
"""

import logging
from pathlib import Path
from typing import Any

from attrs import define, field


def _validate_log_level(inst: Any, attr: Any, value: str) -> None:
    """Validator for standard logging level names."""
    valid = logging._nameToLevel.keys()
    if value.upper() not in valid:
        raise ValueError(f"Invalid log_level '{value}'. Must be one of {list(valid)}.")


def _validate_positive_number(inst: Any, attr: Any, value: float) -> None:
    """Validator ensures a number is strictly positive."""
    if isinstance(value, bool) or not isinstance(value, int | float) or value <= 0:
        raise ValueError(f"Field '{attr.name}' must be a positive number, got {value!r}")


def _validate_positive_int(inst: Any, attr: Any, value: int) -> None:
    """Validator ensures integer is positive."""
    if isinstance(value, bool) or not isinstance(value, int) or value <= 0:
        raise ValueError(f"Field '{attr.name}' must be positive integer, got {value!r}")


def _optional_path(value: Any) -> Path | None:
    if value is None or value == "":
        return None
    return Path(value).expanduser()


@define(frozen=True, slots=True)
class HarnessConfig:
    """Settings shared by every sandbox and interactive process."""

    # Seconds for wait_for_text / wait_for_finish / execute when no timeout is given.
    default_timeout: float = field(default=5.0, validator=_validate_positive_number)
    # Sleep between buffer checks in wait_for_text, and idle poll of the drains.
    poll_interval: float = field(default=0.05, validator=_validate_positive_number)
    read_chunk_size: int = field(default=1024, validator=_validate_positive_int)
    # How long the exit watcher lets drains reach end-of-data before publishing.
    drain_join_timeout: float = field(default=1.0, validator=_validate_positive_number)
    kill_wait_timeout: float = field(default=2.0, validator=_validate_positive_number)
    temp_prefix: str = field(default="clitester-")
    temp_root: Path | None = field(default=None, converter=_optional_path)
    update_snapshots: bool = field(default=False)
    log_level: str = field(default="WARNING", validator=_validate_log_level)

    @property
    def numeric_log_level(self) -> int:
        return logging.getLevelName(self.log_level.upper())


# 🔼⚙️
