"""Subprocess runners for backend CLIs."""

from __future__ import annotations

from tidemark.runners.command import CommandRunner
from tidemark.runners.models import CommandResult

__all__ = ["CommandResult", "CommandRunner"]
