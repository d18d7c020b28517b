#
# config/loader.py
#
"""
Loads `HarnessConfig` from a TOML file and `CLITESTER_*` environment variables.

Precedence: environment variables > config file > defaults.
"""

import os
import tomllib
from collections.abc import Callable, Mapping
from pathlib import Path
from typing import Any

import attrs
import structlog

from clitester.config.models import HarnessConfig
from clitester.exceptions import ConfigurationError
from clitester.telemetry import StructLogger

log: StructLogger = structlog.get_logger("config.loader")

ENV_PREFIX = "CLITESTER_"
TRUTHY = {"1", "true", "yes", "on"}
FALSY = {"0", "false", "no", "off", ""}


def parse_bool(value: str) -> bool:
    lowered = value.strip().lower()
    if lowered in TRUTHY:
        return True
    if lowered in FALSY:
        return False
    raise ValueError(f"Expected a boolean value, got {value!r}")


_ENV_PARSERS: dict[str, Callable[[str], Any]] = {
    "default_timeout": float,
    "poll_interval": float,
    "read_chunk_size": int,
    "drain_join_timeout": float,
    "kill_wait_timeout": float,
    "temp_prefix": str,
    "temp_root": str,
    "update_snapshots": parse_bool,
    "log_level": str,
}


def _field_names() -> set[str]:
    return {a.name for a in attrs.fields(HarnessConfig)}


def _read_toml_table(path: Path) -> dict[str, Any]:
    """Returns the clitester table of a TOML file, supporting pyproject.toml's [tool.clitester]."""
    try:
        with path.open("rb") as f:
            data = tomllib.load(f)
    except FileNotFoundError as e:
        raise ConfigurationError(f"Config file not found: '{path}'", details=e) from e
    except (OSError, tomllib.TOMLDecodeError) as e:
        raise ConfigurationError(f"Could not parse config file '{path}': {e}", details=e) from e

    if "clitester" in data:
        table = data["clitester"]
    else:
        table = data.get("tool", {}).get("clitester", {})
    if not isinstance(table, dict):
        raise ConfigurationError(f"The clitester section in '{path}' must be a table")
    return table


def _read_env(environ: Mapping[str, str]) -> dict[str, Any]:
    values: dict[str, Any] = {}
    for name, parser in _ENV_PARSERS.items():
        env_var = f"{ENV_PREFIX}{name.upper()}"
        if env_var not in environ:
            continue
        raw = environ[env_var]
        try:
            values[name] = parser(raw)
        except ValueError as e:
            raise ConfigurationError(f"Invalid value for {env_var}: {raw!r}", details=e) from e
        log.debug("Config value overridden from environment", env_var=env_var)
    return values


def load_config(path: str | Path | None = None, environ: Mapping[str, str] | None = None) -> HarnessConfig:
    """
    Builds the effective configuration.

    Args:
        path: Optional TOML file with a `[clitester]` table (or a
            pyproject.toml with `[tool.clitester]`).
        environ: Environment mapping; defaults to `os.environ`.

    Raises:
        ConfigurationError: If the file is unreadable or a value is invalid.
    """
    environ = os.environ if environ is None else environ
    values: dict[str, Any] = {}

    if path is not None:
        config_path = Path(path)
        values.update(_read_toml_table(config_path))
        log.debug("Loaded config file", path=str(config_path))

    unknown = set(values) - _field_names()
    if unknown:
        raise ConfigurationError(f"Unknown configuration keys: {sorted(unknown)}")

    values.update(_read_env(environ))

    try:
        config = HarnessConfig(**values)
    except (TypeError, ValueError) as e:
        raise ConfigurationError(f"Invalid configuration: {e}", details=e) from e

    log.debug("Configuration loaded", config=attrs.asdict(config))
    return config


# 🔼⚙️
