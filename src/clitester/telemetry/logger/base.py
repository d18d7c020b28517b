# src/clitester/telemetry/logger/base.py

"""
structlog configuration for clitester.

Logging is set up by whoever drives the harness (the CLI, or the pytest plugin
when `--clitester-log-level` is given), never on import. Reconfiguring replaces
only the handlers installed here, so pytest's own capture handlers survive.
"""

import logging
import sys

import structlog
from structlog.typing import FilteringBoundLogger

from clitester.telemetry.logger.processors import (
    add_emoji_processor,
    remove_extra_keys_processor,
)

BASE_LOGGER_NAME = "clitester"

# Marks handlers owned by setup_logging().
_HANDLER_FLAG = "_clitester_handler"


def _shared_processors() -> list[structlog.types.Processor]:
    return [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
        add_emoji_processor,
        remove_extra_keys_processor,
        structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
    ]


def _owned(handler: logging.Handler) -> logging.Handler:
    setattr(handler, _HANDLER_FLAG, True)
    return handler


def _remove_owned_handlers(root_logger: logging.Logger) -> None:
    for handler in list(root_logger.handlers):
        if getattr(handler, _HANDLER_FLAG, False):
            handler.close()
            root_logger.removeHandler(handler)


def _console_handler(json_logs: bool) -> logging.Handler:
    # stderr keeps harness logs apart from the output of commands under test.
    stream = sys.stderr
    if json_logs:
        renderer = structlog.processors.JSONRenderer(sort_keys=True)
    else:
        renderer = structlog.dev.ConsoleRenderer(colors=stream.isatty())
    handler = logging.StreamHandler(stream)
    handler.setFormatter(structlog.stdlib.ProcessorFormatter(processor=renderer))
    return _owned(handler)


def _file_handler(log_file: str, level: int) -> logging.Handler:
    handler = logging.FileHandler(log_file, encoding="utf-8")
    handler.setFormatter(
        structlog.stdlib.ProcessorFormatter(processor=structlog.processors.JSONRenderer(sort_keys=True))
    )
    handler.setLevel(level)
    return _owned(handler)


def setup_logging(
    level: int = logging.WARNING,
    json_logs: bool = False,
    log_file: str | None = None,
    file_only: bool = False,
) -> None:
    """
    Routes structlog through stdlib logging at `level`.

    Console output goes to stderr (colored when it is a terminal, JSON with
    `json_logs`). `log_file` adds a JSON-lines file; `file_only` drops the
    console handler.
    """
    structlog.configure(
        processors=_shared_processors(),
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        # Module-level loggers must pick up a later reconfiguration.
        cache_logger_on_first_use=False,
    )

    root_logger = logging.getLogger()
    _remove_owned_handlers(root_logger)
    root_logger.setLevel(level)

    slog = structlog.get_logger(BASE_LOGGER_NAME)

    if not file_only:
        root_logger.addHandler(_console_handler(json_logs))

    if log_file:
        try:
            root_logger.addHandler(_file_handler(log_file, level))
        except OSError as e:
            slog.error("Failed to set up file logging", log_file=log_file, error=str(e))
        else:
            slog.debug("File logging enabled", log_file=log_file)

    slog.debug(
        "Logging configured",
        log_level=logging.getLevelName(level),
        json_console_format=json_logs,
        console_output_enabled=not file_only,
        log_file=log_file or "None",
    )


StructLogger = FilteringBoundLogger

# 🔼⚙️
