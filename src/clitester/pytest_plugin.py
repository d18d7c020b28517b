#
# src/clitester/pytest_plugin.py
#
"""
pytest fixtures for clitester, registered through the `pytest11` entry point.

    def test_greets(cli_env):
        proc = cli_env.spawn("my_cli greet")
        proc.wait_for_text("Enter name:")
        proc.write_text("Ada")
        proc.wait_for_text("Hello Ada")
"""

import logging
import os
from collections.abc import Iterator

import pytest

from clitester.config import HarnessConfig, load_config
from clitester.environment import Environment
from clitester.exceptions import ConfigurationError
from clitester.telemetry import setup_logging


def pytest_addoption(parser: pytest.Parser) -> None:
    group = parser.getgroup("clitester")
    group.addoption(
        "--clitester-log-level",
        action="store",
        default=None,
        help="Enable clitester's structured logging at this level (e.g. DEBUG).",
    )
    group.addoption(
        "--clitester-config",
        action="store",
        default=None,
        help="TOML file with a [clitester] table.",
    )


def pytest_configure(config: pytest.Config) -> None:
    level_name = config.getoption("--clitester-log-level")
    config_path = config.getoption("--clitester-config")
    # Without the flag, a config file or CLITESTER_LOG_LEVEL supplies the level.
    if not level_name and (config_path or "CLITESTER_LOG_LEVEL" in os.environ):
        try:
            level_name = load_config(config_path).log_level
        except ConfigurationError as e:
            raise pytest.UsageError(f"Invalid clitester configuration: {e}") from e
    if level_name:
        level = logging.getLevelName(level_name.upper())
        if not isinstance(level, int):
            raise pytest.UsageError(f"Invalid --clitester-log-level: {level_name!r}")
        setup_logging(level=level)


@pytest.fixture(scope="session")
def cli_config(pytestconfig: pytest.Config) -> HarnessConfig:
    """The harness configuration for this test session."""
    return load_config(pytestconfig.getoption("--clitester-config"))


@pytest.fixture
def cli_env(cli_config: HarnessConfig) -> Iterator[Environment]:
    """A fresh sandbox, torn down (with its processes) after the test."""
    env = Environment(cli_config)
    try:
        yield env
    finally:
        env.cleanup()

# 🔼⚙️
