"""Command-line interface for Tidemark."""

from __future__ import annotations

from tidemark.cli.context import CLIContext, ExitCode, async_command

__all__ = ["CLIContext", "ExitCode", "async_command"]
