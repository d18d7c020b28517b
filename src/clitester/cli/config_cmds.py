# src/clitester/cli/config_cmds.py

from pathlib import Path

import click
import structlog
from rich.pretty import pretty_repr

from clitester.cli.utils import load_config_or_exit, logging_options, setup_logging_from_context
from clitester.telemetry import StructLogger

log: StructLogger = structlog.get_logger("cli.config")


@click.group(name="config")
def config_cli():
    """Commands for inspecting harness configuration."""
    pass


@config_cli.command(name="show")
@click.option(
    "-c",
    "--config-path",
    type=click.Path(exists=True, file_okay=True, dir_okay=False, readable=True, path_type=Path),
    default=None,
    envvar="CLITESTER_CONF",
    help="TOML file with a [clitester] table (env var CLITESTER_CONF).",
    show_envvar=True,
)
@logging_options
@click.pass_context
def show_config(ctx: click.Context, config_path: Path | None, **kwargs):
    """Load, validate, and display the effective configuration."""
    config = load_config_or_exit(ctx, config_path)
    setup_logging_from_context(
        ctx,
        local_log_level=kwargs.get("log_level"),
        local_log_file=kwargs.get("log_file"),
        local_json_logs=kwargs.get("json_logs"),
        default_log_level=config.log_level,
    )
    log.info("Executing 'config show' command", config_path=str(config_path))
    click.echo(pretty_repr(config, expand_all=True))

# 🔼⚙️
