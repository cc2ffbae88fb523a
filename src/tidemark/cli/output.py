"""Output formatting helpers for CLI commands."""

from __future__ import annotations

import json
from enum import Enum
from typing import Any

from tidemark.exceptions import (
    CommandFailedError,
    ConfigError,
    PathOutsideRepositoryError,
    TidemarkError,
)

__all__ = [
    "OutputFormat",
    "describe_error",
    "format_error",
    "format_json",
]


class OutputFormat(str, Enum):
    """Output formats accepted by ``--format``."""

    TEXT = "text"
    JSON = "json"


def format_error(
    message: str, details: list[str] | None = None, suggestion: str | None = None
) -> str:
    """Format an error message with optional details and suggestion.

    Example:
        >>> print(format_error("No repository", suggestion="Run inside a checkout"))
        Error: No repository
        Suggestion: Run inside a checkout
    """
    lines = [f"Error: {message}"]
    if details:
        lines.extend(f"  {detail}" for detail in details)
    if suggestion:
        lines.append(f"Suggestion: {suggestion}")
    return "\n".join(lines)


def describe_error(error: TidemarkError) -> str:
    """Render a tidemark exception with the context it carries."""
    details: list[str] = []
    match error:
        case CommandFailedError():
            details.append(f"Command: {error.command_line}")
            details.append(f"Exit status: {error.returncode}")
        case PathOutsideRepositoryError():
            details.append(f"Path: {error.path}")
            details.append(f"Repository root: {error.root}")
        case ConfigError():
            if error.field:
                details.append(f"Field: {error.field}")
            if error.value is not None:
                details.append(f"Value: {error.value}")
    return format_error(error.message, details=details or None)


def format_json(data: Any) -> str:
    """Serialize ``data`` as indented JSON, stringifying paths and enums."""
    return json.dumps(data, indent=2, default=str)
