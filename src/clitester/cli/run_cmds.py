# src/clitester/cli/run_cmds.py

"""
`run` and `interact` commands: exercise a program inside a fresh sandbox.
"""

from pathlib import Path

import click
import structlog
from rich.console import Console

from clitester.cli.utils import (
    load_config_or_exit,
    logging_options,
    parse_env_pairs,
    setup_logging_from_context,
)
from clitester.environment import Environment
from clitester.exceptions import (
    CliTesterError,
    ProcessTimeoutError,
    SnapshotMismatchError,
    SpawnError,
)
from clitester.process.interactive import Command, InteractiveProcess
from clitester.snapshot import assert_match_snapshot, render_diff
from clitester.state import Stream
from clitester.telemetry import StructLogger

log: StructLogger = structlog.get_logger("cli.run")

EXIT_STEP_FAILED = 1
EXIT_TIMEOUT = 124
EXIT_SPAWN_FAILED = 127

STEP_KINDS = ("expect", "expect-err", "send", "type", "key", "close-stdin")

config_path_option = click.option(
    "-c",
    "--config-path",
    type=click.Path(exists=True, file_okay=True, dir_okay=False, readable=True, path_type=Path),
    default=None,
    envvar="CLITESTER_CONF",
    help="TOML file with a [clitester] table (env var CLITESTER_CONF).",
)


def _as_command(parts: tuple[str, ...]) -> Command:
    """A single argument runs through the shell; several are executed directly."""
    return parts[0] if len(parts) == 1 else list(parts)


def parse_step(raw: str) -> tuple[str, str]:
    kind, _, value = raw.partition(":")
    kind = kind.strip().lower()
    if kind not in STEP_KINDS:
        raise click.BadParameter(f"Unknown step {raw!r}; expected one of {', '.join(STEP_KINDS)}", param_hint="--step")
    if kind != "close-stdin" and not value:
        raise click.BadParameter(f"Step {raw!r} needs a value after ':'", param_hint="--step")
    return kind, value


def run_step(process: InteractiveProcess, kind: str, value: str, timeout: float | None) -> None:
    if kind == "expect":
        process.wait_for_text(value, Stream.STDOUT, timeout)
    elif kind == "expect-err":
        process.wait_for_text(value, Stream.STDERR, timeout)
    elif kind == "send":
        process.write_text(value)
    elif kind == "type":
        process.write_text(value, add_newline=False)
    elif kind == "key":
        process.press_key(value)
    elif kind == "close-stdin":
        process.close_stdin()


@click.command(name="run", context_settings={"ignore_unknown_options": True})
@click.argument("command", nargs=-1, required=True, type=click.UNPROCESSED)
@click.option("--input", "input_text", default=None, help="Text passed to the command's stdin.")
@click.option("-e", "--env", "env_pairs", multiple=True, metavar="KEY=VALUE", help="Extra environment variable (repeatable).")
@click.option("--normalize", is_flag=True, help="Strip colors and replace sandbox/home paths in the output.")
@click.option(
    "--snapshot",
    "snapshot_path",
    type=click.Path(dir_okay=False, path_type=Path),
    default=None,
    help="Compare normalized stdout with this snapshot file (created if missing).",
)
@click.option("--update", is_flag=True, help="Rewrite the snapshot instead of failing on mismatch.")
@click.option("-t", "--timeout", type=click.FloatRange(min=0, min_open=True), default=None, help="Seconds before the command is killed.")
@config_path_option
@logging_options
@click.pass_context
def run_cli(
    ctx: click.Context,
    command: tuple[str, ...],
    input_text: str | None,
    env_pairs: tuple[str, ...],
    normalize: bool,
    snapshot_path: Path | None,
    update: bool,
    timeout: float | None,
    config_path: Path | None,
    **kwargs,
):
    """Run COMMAND once inside a fresh sandbox and report its output.

    Use `--` before the command when it has options of its own.
    """
    config = load_config_or_exit(ctx, config_path)
    setup_logging_from_context(
        ctx,
        local_log_level=kwargs.get("log_level"),
        local_log_file=kwargs.get("log_file"),
        local_json_logs=kwargs.get("json_logs"),
        default_log_level=config.log_level,
    )
    extra_env = parse_env_pairs(env_pairs)
    snapshot_file = snapshot_path.resolve() if snapshot_path else None

    with Environment(config) as env:
        log.info("Executing 'run' command", command=" ".join(command), sandbox=str(env.path))
        try:
            result = env.execute(_as_command(command), input=input_text, env=extra_env, timeout=timeout)
        except ProcessTimeoutError as e:
            click.echo(f"Error: {e}", err=True)
            ctx.exit(EXIT_TIMEOUT)
        except SpawnError as e:
            click.echo(f"Error: {e}", err=True)
            ctx.exit(EXIT_SPAWN_FAILED)

        stdout = result.normalized_stdout(env) if normalize or snapshot_file else result.stdout
        stderr = result.normalized_stderr(env) if normalize else result.stderr
        click.echo(stdout, nl=False)
        if stderr:
            click.echo(stderr, nl=False, err=True)

        if snapshot_file is not None:
            try:
                assert_match_snapshot(stdout, snapshot_file, update=update or None)
            except SnapshotMismatchError as e:
                expected = snapshot_file.read_text(encoding="utf-8")
                render_diff(expected, stdout, snapshot_file, console=Console(stderr=True))
                click.echo(f"Error: Snapshot mismatch for '{e.snapshot_file}'", err=True)
                ctx.exit(EXIT_STEP_FAILED)

    ctx.exit(result.exit_code)


@click.command(name="interact", context_settings={"ignore_unknown_options": True})
@click.argument("command", nargs=-1, required=True, type=click.UNPROCESSED)
@click.option(
    "-s",
    "--step",
    "steps",
    multiple=True,
    required=True,
    metavar="KIND:VALUE",
    help="Step to perform, in order: expect:TEXT, expect-err:TEXT, send:LINE, type:TEXT, key:NAME, close-stdin.",
)
@click.option("-e", "--env", "env_pairs", multiple=True, metavar="KEY=VALUE", help="Extra environment variable (repeatable).")
@click.option("-t", "--timeout", type=click.FloatRange(min=0, min_open=True), default=None, help="Seconds allowed per step and for the final exit.")
@click.option("--show-output", is_flag=True, help="Print the captured stdout/stderr at the end.")
@config_path_option
@logging_options
@click.pass_context
def interact_cli(
    ctx: click.Context,
    command: tuple[str, ...],
    steps: tuple[str, ...],
    env_pairs: tuple[str, ...],
    timeout: float | None,
    show_output: bool,
    config_path: Path | None,
    **kwargs,
):
    """Spawn COMMAND in a sandbox and drive it through a scripted dialogue.

    Exits with the command's exit code when every step succeeds, 1 otherwise.
    """
    parsed_steps = [parse_step(raw) for raw in steps]
    config = load_config_or_exit(ctx, config_path)
    setup_logging_from_context(
        ctx,
        local_log_level=kwargs.get("log_level"),
        local_log_file=kwargs.get("log_file"),
        local_json_logs=kwargs.get("json_logs"),
        default_log_level=config.log_level,
    )
    extra_env = parse_env_pairs(env_pairs)

    with Environment(config) as env:
        try:
            process = env.spawn(_as_command(command), env=extra_env)
        except SpawnError as e:
            click.echo(f"Error: {e}", err=True)
            ctx.exit(EXIT_SPAWN_FAILED)

        failed = False
        for kind, value in parsed_steps:
            label = f"{kind}:{value}" if value else kind
            try:
                run_step(process, kind, value, timeout)
            except CliTesterError as e:
                click.echo(f"✗ {label}: {e}")
                failed = True
                break
            click.echo(f"✓ {label}")

        if not failed:
            try:
                status = process.wait_for_finish(timeout)
                click.echo(f"Process finished: {status}")
            except ProcessTimeoutError as e:
                click.echo(f"✗ finish: {e}")
                failed = True
        else:
            process.kill()

        if show_output or failed:
            click.echo("--- STDOUT ---")
            click.echo(process.get_stdout(), nl=False)
            click.echo("--- STDERR ---")
            click.echo(process.get_stderr(), nl=False)

        exit_code = EXIT_STEP_FAILED if failed else process.get_exit_code()

    log.info("'interact' command finished", failed=failed, exit_code=exit_code)
    ctx.exit(exit_code or 0)

# 🔼⚙️
