"""CLI entry point for Tidemark."""

from __future__ import annotations

import logging
from pathlib import Path

import click

from tidemark import __version__
from tidemark.cli.commands import detect, diff, diff_remote, info, restore, snapshot
from tidemark.cli.context import CLIContext, ExitCode
from tidemark.cli.output import describe_error
from tidemark.config import load_config
from tidemark.exceptions import ConfigError
from tidemark.logging import configure_logging, level_for_verbosity


@click.group(invoke_without_command=True)
@click.version_option(version=__version__, prog_name="tidemark")
@click.option(
    "-c",
    "--config",
    "config_file",
    type=click.Path(exists=False, path_type=str),
    default=None,
    help="Path to config file (overrides ./tidemark.yaml).",
)
@click.option(
    "-v",
    "--verbose",
    count=True,
    help="Increase verbosity (-v for INFO, -vv for DEBUG).",
)
@click.option(
    "-q",
    "--quiet",
    is_flag=True,
    default=False,
    help="Suppress non-essential output (ERROR level only).",
)
@click.pass_context
def cli(
    ctx: click.Context,
    config_file: str | None,
    verbose: int,
    quiet: bool,
) -> None:
    """Tidemark - revision control helpers for git and darcs workspaces."""
    ctx.ensure_object(dict)

    config_path = Path(config_file) if config_file else None
    try:
        config = load_config(config_path)
    except ConfigError as e:
        # Logging is not configured yet
        click.echo(describe_error(e), err=True)
        ctx.exit(ExitCode.FAILURE)

    ctx.obj["cli_ctx"] = CLIContext(
        config=config,
        config_path=config_path,
        verbosity=verbose,
        quiet=quiet,
    )

    # Priority: quiet > verbose > config
    if quiet:
        level = logging.ERROR
    elif verbose > 0:
        level = logging.INFO if verbose == 1 else logging.DEBUG
    else:
        level = level_for_verbosity(config.verbosity)
    configure_logging(level=level)

    if ctx.invoked_subcommand is None:
        click.echo(ctx.get_help())


cli.add_command(detect)
cli.add_command(info)
cli.add_command(diff)
cli.add_command(diff_remote)
cli.add_command(snapshot)
cli.add_command(restore)

if __name__ == "__main__":
    cli()
