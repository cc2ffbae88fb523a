"""Darcs repository metadata."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

from tidemark.darcs.client import DarcsClient, extract_key_value
from tidemark.vcs.detection import cli_available, get_darcs_repo_root

__all__ = ["DarcsInfo", "collect_darcs_info"]


@dataclass(frozen=True, slots=True)
class DarcsInfo:
    """Basic darcs repository identity.

    Attributes:
        patch_hash: Hash of the most recently recorded patch.
        branch: Current (or default) branch reported by ``show repo``.
        default_remote: Default pull/push location.
    """

    patch_hash: str | None = None
    branch: str | None = None
    default_remote: str | None = None


async def collect_darcs_info(
    cwd: Path,
    *,
    client: DarcsClient | None = None,
) -> DarcsInfo | None:
    """Collect darcs metadata for the repository containing ``cwd``.

    Returns:
        :class:`DarcsInfo`, or None outside a darcs repository, when the
        CLI is missing, or when ``darcs show repo`` fails.
    """
    root = get_darcs_repo_root(cwd)
    if root is None or not cli_available("darcs"):
        return None
    client = client or DarcsClient(root)

    text = await client.show_repo()
    if text is None:
        return None

    branch = extract_key_value(text, "Current branch") or extract_key_value(
        text, "Default branch"
    )
    return DarcsInfo(
        patch_hash=await client.latest_patch_hash(),
        branch=branch,
        default_remote=extract_key_value(text, "Default remote"),
    )
