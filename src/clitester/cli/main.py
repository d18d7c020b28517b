# src/clitester/cli/main.py

"""
`clitester` command group.

Global options only configure logging; every subcommand loads its own harness
configuration and runs in its own sandbox.
"""

import click
import structlog

from clitester import __version__
from clitester.cli.config_cmds import config_cli
from clitester.cli.run_cmds import interact_cli, run_cli
from clitester.cli.utils import logging_options, setup_logging_from_context
from clitester.telemetry import StructLogger

log: StructLogger = structlog.get_logger("cli.main")

EPILOG = """\b
Examples:
  clitester run -- ls -la
  clitester run --snapshot help.snap -- my_cli --help
  clitester interact -s "expect:Name:" -s send:Ada -s "expect:Hello Ada" -- my_cli greet
"""


@click.group(context_settings={"help_option_names": ["-h", "--help"]}, epilog=EPILOG)
@click.version_option(__version__, "-V", "--version", prog_name="clitester")
@logging_options
@click.pass_context
def cli(
    ctx: click.Context,
    log_level: str | None,
    log_file: str | None,
    json_logs: bool | None,
):
    """
    clitester: run and script command-line programs inside a throwaway sandbox.

    Option precedence: CLI options > CLITESTER_* environment variables > config file > defaults.
    """
    ctx.obj = {
        "LOG_LEVEL": log_level,
        "LOG_FILE": log_file,
        "JSON_LOGS": bool(json_logs),
    }
    setup_logging_from_context(ctx)
    log.debug("CLI started", subcommand=ctx.invoked_subcommand, **ctx.obj)


for command in (run_cli, interact_cli, config_cli):
    cli.add_command(command)

if __name__ == "__main__":
    cli()

# 🖥️⚙️
