"""CLI context, exit codes, and the sync-to-async bridge for click."""

from __future__ import annotations

import asyncio
import functools
from collections.abc import Callable
from dataclasses import dataclass
from enum import IntEnum
from pathlib import Path
from typing import Any, TypeVar

from tidemark.config import TidemarkConfig

__all__ = [
    "CLIContext",
    "ExitCode",
    "async_command",
]


class ExitCode(IntEnum):
    """Exit codes for the tidemark CLI.

    - 0 for success
    - 1 for failure
    - 130 for keyboard interrupt (128 + SIGINT=2)
    """

    SUCCESS = 0
    FAILURE = 1
    INTERRUPTED = 130


@dataclass(frozen=True, slots=True)
class CLIContext:
    """Global options and configuration shared by every command.

    Attributes:
        config: Loaded configuration.
        config_path: Path given with ``--config``, if any.
        verbosity: Count of ``-v`` flags.
        quiet: Suppress non-essential output.
    """

    config: TidemarkConfig
    config_path: Path | None = None
    verbosity: int = 0
    quiet: bool = False


F = TypeVar("F", bound=Callable[..., Any])


def async_command(f: F) -> F:
    """Run an async click command with ``asyncio.run()``.

    Example:
        >>> @cli.command()
        >>> @async_command
        >>> async def info(ctx: click.Context) -> None:
        >>>     await collect_git_info(Path.cwd())
    """

    @functools.wraps(f)
    def wrapper(*args: Any, **kwargs: Any) -> Any:
        try:
            return asyncio.run(f(*args, **kwargs))
        except KeyboardInterrupt:
            raise SystemExit(ExitCode.INTERRUPTED) from None

    return wrapper  # type: ignore[return-value]
