"""Tidemark CLI commands."""

from __future__ import annotations

import dataclasses
from pathlib import Path

import click
from rich.table import Table

from tidemark.cli.console import console, err_console
from tidemark.cli.context import CLIContext, ExitCode, async_command
from tidemark.cli.output import OutputFormat, describe_error, format_error, format_json
from tidemark.darcs.client import DarcsClient
from tidemark.darcs.info import collect_darcs_info
from tidemark.exceptions import TidemarkError
from tidemark.git.client import GitClient
from tidemark.git.info import collect_git_info, recent_commits
from tidemark.git.remote_diff import diff_to_remote
from tidemark.logging import get_logger
from tidemark.snapshots.manager import RepoSnapshotManager
from tidemark.vcs.detection import (
    MissingToolNotifier,
    detect_revision_control,
    resolve_project_root_for_trust,
)
from tidemark.vcs.diff import get_repo_diff
from tidemark.vcs.models import DetectedRevisionControl, RevisionControlKind

__all__ = ["detect", "diff", "diff_remote", "info", "restore", "snapshot"]

logger = get_logger(__name__)

_format_option = click.option(
    "-f",
    "--format",
    "fmt",
    type=click.Choice([f.value for f in OutputFormat]),
    default=OutputFormat.TEXT.value,
    help="Output format.",
)

_path_option = click.option(
    "-C",
    "--path",
    "path",
    type=click.Path(exists=True, file_okay=False, path_type=Path),
    default=None,
    help="Run as if started in this directory.",
)


def _fail(error: TidemarkError) -> None:
    logger.debug("command_failed", error=type(error).__name__, message=error.message)
    err_console.print(
        describe_error(error), markup=False, highlight=False, soft_wrap=True
    )
    raise SystemExit(ExitCode.FAILURE)


def _scope_path(cwd: Path, scope: Path | None) -> Path | None:
    """Anchor a --scope value at the directory the command runs in."""
    if scope is None:
        return None
    return (cwd / scope).absolute()


def _require_repository(path: Path) -> DetectedRevisionControl:
    detected = detect_revision_control(path)
    if detected is None:
        err_console.print(
            format_error(
                f"{path} is not inside a git or darcs repository",
                suggestion="Run tidemark from inside a checkout or pass --path.",
            ),
            markup=False,
            soft_wrap=True,
        )
        raise SystemExit(ExitCode.FAILURE)
    message = MissingToolNotifier().check(detected)
    if message is not None:
        err_console.print(f"[yellow]Warning:[/yellow] {message}")
    return detected


@click.command()
@_path_option
@_format_option
def detect(path: Path | None, fmt: str) -> None:
    """Show which revision control system manages a directory.

    Examples:
        tidemark detect
        tidemark detect --path ../other --format json
    """
    cwd = path or Path.cwd()
    detected = detect_revision_control(cwd)

    if fmt == OutputFormat.JSON.value:
        payload = None
        if detected is not None:
            payload = {
                "kind": detected.kind.value,
                "root": str(detected.root),
                "capabilities": dataclasses.asdict(detected.capabilities),
            }
        click.echo(format_json(payload))
    elif detected is None:
        console.print("No revision control system detected.")
    else:
        caps = detected.capabilities
        console.print(
            f"[bold]{detected.display_name}[/bold] repository at {detected.root}"
        )
        console.print(f"  diffs: {'yes' if caps.supports_diffs else 'no'}")
        console.print(f"  snapshots: {'yes' if caps.supports_snapshots else 'no'}")

    if detected is None:
        raise SystemExit(ExitCode.FAILURE)


@click.command()
@_path_option
@_format_option
@click.option(
    "-n",
    "--commits",
    type=click.IntRange(min=0),
    default=0,
    help="Also list this many recent commits (git only).",
)
@click.pass_context
@async_command
async def info(
    ctx: click.Context, path: Path | None, fmt: str, commits: int
) -> None:
    """Print repository metadata (head, branch, remote).

    Examples:
        tidemark info
        tidemark info --commits 5 --format json
    """
    cli_ctx: CLIContext = ctx.obj["cli_ctx"]
    timeout = cli_ctx.config.commands.timeout_seconds
    cwd = path or Path.cwd()
    detected = _require_repository(cwd)
    trust_root = await resolve_project_root_for_trust(cwd, detected, timeout=timeout)

    payload: dict[str, object] = {
        "kind": detected.kind.value,
        "root": str(detected.root),
        "project_root": str(trust_root) if trust_root is not None else None,
    }
    match detected.kind:
        case RevisionControlKind.GIT:
            git_client = GitClient(cwd, timeout=timeout)
            git_info = await collect_git_info(cwd, client=git_client)
            payload["info"] = dataclasses.asdict(git_info) if git_info else None
            if commits:
                payload["commits"] = [
                    dataclasses.asdict(entry)
                    for entry in await recent_commits(cwd, commits, client=git_client)
                ]
        case RevisionControlKind.DARCS:
            darcs_client = DarcsClient(detected.root, timeout=timeout)
            darcs_info = await collect_darcs_info(cwd, client=darcs_client)
            payload["info"] = dataclasses.asdict(darcs_info) if darcs_info else None

    if fmt == OutputFormat.JSON.value:
        click.echo(format_json(payload))
        return

    table = Table(title=f"{detected.display_name} repository", show_header=False)
    table.add_column("key", style="bold")
    table.add_column("value")
    table.add_row("root", str(detected.root))
    table.add_row("project root", str(payload["project_root"] or "-"))
    for key, value in (payload.get("info") or {}).items():  # type: ignore[attr-defined]
        table.add_row(key.replace("_", " "), str(value) if value is not None else "-")
    console.print(table)

    for entry in payload.get("commits", []):  # type: ignore[attr-defined]
        console.print(f"{entry['sha'][:12]}  {entry['subject']}", markup=False)


@click.command()
@_path_option
@click.option(
    "--color/--no-color",
    default=None,
    help="Force colored diff output (default: when writing to a terminal).",
)
@click.pass_context
@async_command
async def diff(ctx: click.Context, path: Path | None, color: bool | None) -> None:
    """Print uncommitted changes, including untracked files.

    Examples:
        tidemark diff
        tidemark diff --no-color > work.patch
    """
    cli_ctx: CLIContext = ctx.obj["cli_ctx"]
    cwd = path or Path.cwd()
    _require_repository(cwd)
    use_color = console.is_terminal if color is None else color
    try:
        _, text = await get_repo_diff(
            cwd, color=use_color, timeout=cli_ctx.config.commands.timeout_seconds
        )
    except TidemarkError as e:
        _fail(e)
        return
    click.echo(text, nl=False)


@click.command("diff-remote")
@_path_option
@click.pass_context
@async_command
async def diff_remote(ctx: click.Context, path: Path | None) -> None:
    """Diff the working tree against the closest commit on a remote.

    The base is the remote commit that HEAD is fewest commits ahead of,
    chosen among the current branch, the default branch, and remote
    branches that already contain HEAD. Prints the base sha on stderr and
    the diff on stdout.

    Examples:
        tidemark diff-remote > since-last-push.patch
    """
    cli_ctx: CLIContext = ctx.obj["cli_ctx"]
    cwd = path or Path.cwd()
    detected = _require_repository(cwd)
    if detected.kind is not RevisionControlKind.GIT:
        err_console.print(
            format_error(
                f"Remote diffs are not available for {detected.display_name} "
                "repositories"
            ),
            markup=False,
            soft_wrap=True,
        )
        raise SystemExit(ExitCode.FAILURE)

    client = GitClient(cwd, timeout=cli_ctx.config.commands.timeout_seconds)
    result = await diff_to_remote(cwd, client=client)
    if result is None:
        err_console.print("No commit shared with a remote was found.")
        raise SystemExit(ExitCode.FAILURE)

    err_console.print(f"base: {result.sha}", markup=False, highlight=False)
    click.echo(result.diff, nl=False)


@click.command()
@_path_option
@click.option(
    "-s",
    "--scope",
    type=click.Path(path_type=Path),
    default=None,
    help="Only capture this sub-path (relative to the current directory).",
)
@click.pass_context
@async_command
async def snapshot(ctx: click.Context, path: Path | None, scope: Path | None) -> None:
    """Record the working tree as a ghost commit and print its id.

    The commit is not added to any branch. Pass the id to
    ``tidemark restore`` to roll back. A scoped snapshot records its scope,
    and restoring it leaves files outside that scope alone. Git only: darcs
    snapshots are held in temporary storage that does not outlive the
    process.

    Examples:
        tidemark snapshot
        tidemark snapshot --scope src/
    """
    cli_ctx: CLIContext = ctx.obj["cli_ctx"]
    cwd = path or Path.cwd()
    detected = _require_repository(cwd)
    if detected.kind is not RevisionControlKind.GIT:
        err_console.print(
            format_error(
                "Persistent snapshots are only available for Git repositories",
                suggestion="Use the tidemark API to snapshot Darcs workspaces.",
            ),
            markup=False,
            soft_wrap=True,
        )
        raise SystemExit(ExitCode.FAILURE)

    manager = RepoSnapshotManager(detected, cli_ctx.config)
    try:
        created = await manager.create_snapshot(_scope_path(cwd, scope))
    except TidemarkError as e:
        _fail(e)
        return
    click.echo(created.id)


@click.command()
@_path_option
@click.option(
    "-s",
    "--scope",
    type=click.Path(path_type=Path),
    default=None,
    help="Only reset this sub-path (relative to the current directory).",
)
@click.argument("commit_id")
@click.pass_context
@async_command
async def restore(
    ctx: click.Context, path: Path | None, scope: Path | None, commit_id: str
) -> None:
    """Reset the working tree and index to COMMIT_ID.

    Uncommitted changes are discarded. Branch refs are left alone. For a
    scoped snapshot only the recorded scope is reset unless --scope says
    otherwise.

    Examples:
        tidemark restore 3f2a9c1
        tidemark restore 3f2a9c1 --scope src/
    """
    cli_ctx: CLIContext = ctx.obj["cli_ctx"]
    cwd = path or Path.cwd()
    detected = _require_repository(cwd)
    manager = RepoSnapshotManager(detected, cli_ctx.config)
    try:
        await manager.restore_to_commit(commit_id, _scope_path(cwd, scope))
    except TidemarkError as e:
        _fail(e)
        return
    if not cli_ctx.quiet:
        err_console.print(f"Restored working tree to {commit_id}", highlight=False)
