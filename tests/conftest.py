#
# tests/conftest.py
#
import logging
from collections.abc import Iterator

import pytest

from clitester import Environment, HarnessConfig


@pytest.fixture(autouse=True)
def restore_logging() -> Iterator[None]:
    """setup_logging() installs root handlers; drop them after each test."""
    root = logging.getLogger()
    handlers, level = list(root.handlers), root.level
    yield
    for handler in list(root.handlers):
        if handler not in handlers:
            handler.close()
            root.removeHandler(handler)
    for handler in handlers:
        if handler not in root.handlers:
            root.addHandler(handler)
    root.setLevel(level)


@pytest.fixture
def fast_config() -> HarnessConfig:
    """Harness settings with short polling so tests stay quick."""
    return HarnessConfig(poll_interval=0.01, drain_join_timeout=0.5, kill_wait_timeout=1.0)


@pytest.fixture
def env(fast_config: HarnessConfig) -> Iterator[Environment]:
    environment = Environment(fast_config)
    try:
        yield environment
    finally:
        environment.cleanup()
