"""Async client for the ``darcs`` CLI.

Wraps ``darcs`` commands in :class:`~tidemark.runners.command.CommandRunner`.
Query methods (:meth:`DarcsClient.show_repo`,
:meth:`DarcsClient.latest_patch_hash`) return None when darcs gives no usable
answer. Methods that snapshots depend on raise instead, so that a failed
checkpoint is never mistaken for a successful one.
"""

from __future__ import annotations

from pathlib import Path
from typing import TYPE_CHECKING
from xml.etree import ElementTree

from tidemark.constants import COMMAND_TIMEOUT_SECONDS, SNAPSHOT_COMMAND_TIMEOUT_SECONDS
from tidemark.exceptions import (
    CommandFailedError,
    CommandTimeoutError,
    MissingToolError,
)
from tidemark.logging import get_logger
from tidemark.runners.command import CommandRunner
from tidemark.runners.models import COMMAND_NOT_FOUND

if TYPE_CHECKING:
    from collections.abc import Sequence

    from tidemark.runners.models import CommandResult

__all__ = ["DarcsClient", "extract_key_value", "patch_hash_from_xml"]

logger = get_logger(__name__)

# `darcs whatsnew` exits 1 when there is nothing to report
_WHATSNEW_OK_CODES: tuple[int, ...] = (0, 1)


class DarcsClient:
    """Async wrapper around the ``darcs`` CLI.

    Args:
        cwd: Repository root (or any directory inside it).
        runner: Optional pre-configured CommandRunner. Created if not provided.
        timeout: Budget for query commands in seconds.
        snapshot_timeout: Budget for ``record``/``revert`` during snapshots.
    """

    def __init__(
        self,
        cwd: Path,
        runner: CommandRunner | None = None,
        *,
        timeout: float = COMMAND_TIMEOUT_SECONDS,
        snapshot_timeout: float = SNAPSHOT_COMMAND_TIMEOUT_SECONDS,
    ) -> None:
        self._cwd = cwd
        self._timeout = timeout
        self._snapshot_timeout = snapshot_timeout
        self._runner = runner or CommandRunner(cwd=cwd, timeout=timeout)

    @property
    def cwd(self) -> Path:
        """Working directory for darcs commands."""
        return self._cwd

    # =====================================================================
    # Internal helpers
    # =====================================================================

    async def _run_darcs(
        self,
        args: Sequence[str],
        *,
        error_msg: str = "darcs command failed",
        ok_codes: tuple[int, ...] = (0,),
        timeout: float | None = None,
    ) -> CommandResult:
        """Run ``darcs <args>``, raising unless it exits with ``ok_codes``.

        Raises:
            MissingToolError: If the darcs executable cannot be found.
            CommandTimeoutError: If the command exceeds its budget.
            CommandFailedError: For any other exit status.
        """
        cmd = ["darcs", *args]
        effective_timeout = timeout if timeout is not None else self._timeout
        result = await self._runner.run(cmd, cwd=self._cwd, timeout=effective_timeout)
        if result.timed_out:
            raise CommandTimeoutError(
                f"{error_msg}: timed out after {effective_timeout}s",
                timeout_seconds=effective_timeout,
                command=cmd,
            )
        if result.spawn_failed and result.returncode == COMMAND_NOT_FOUND:
            raise MissingToolError("darcs")
        if result.returncode not in ok_codes:
            raise CommandFailedError(
                cmd,
                result.returncode,
                result.stderr,
                message=f"{error_msg}: {result.stderr.strip()}",
            )
        return result

    async def _query(self, *args: str) -> str | None:
        result = await self._runner.run(
            ["darcs", *args], cwd=self._cwd, timeout=self._timeout
        )
        if not result.success:
            logger.debug(
                "darcs_query_failed",
                args=list(args),
                returncode=result.returncode,
                timed_out=result.timed_out,
            )
            return None
        return result.stdout

    # =====================================================================
    # Queries
    # =====================================================================

    async def verify_available(self) -> bool:
        """Check if ``darcs --version`` runs."""
        result = await self._runner.run(["darcs", "--version"], cwd=self._cwd)
        if result.success:
            logger.debug("darcs_available", version=result.stdout.strip())
            return True
        logger.debug("darcs_not_available", stderr=result.stderr.strip())
        return False

    async def show_repo(self) -> str | None:
        """Output of ``darcs show repo``, or None on failure."""
        return await self._query("show", "repo")

    async def latest_patch_hash(self) -> str | None:
        """Hash of the most recent patch.

        Reads the ``hash`` attribute of ``changes --last=1 --xml`` and falls
        back to the ``Patch hash:`` line of the plain listing.
        """
        xml = await self._query("changes", "--last=1", "--xml")
        if xml is not None and (patch_hash := patch_hash_from_xml(xml)):
            return patch_hash

        plain = await self._query("changes", "--last=1")
        if plain is None:
            return None
        return extract_key_value(plain, "Patch hash")

    async def whatsnew(self, *, color: bool = False) -> str:
        """Unified diff of unrecorded changes, including new files.

        Raises:
            CommandFailedError: If darcs exits with anything but 0 or 1.
        """
        args = ["whatsnew", "--unified", "--look-for-adds"]
        if color:
            args.insert(2, "--color=always")
        result = await self._run_darcs(
            args,
            error_msg="darcs whatsnew failed",
            ok_codes=_WHATSNEW_OK_CODES,
        )
        return result.stdout

    # =====================================================================
    # Snapshot support
    # =====================================================================

    async def record_dry_run(self, patch_name: str, author: str) -> None:
        """Check that every local change could be recorded.

        Surfaces conflicts and other repository problems without creating a
        patch.
        """
        await self._run_darcs(
            [
                "record",
                "--dry-run",
                "--all",
                "--look-for-adds",
                "--patch",
                patch_name,
                "--author",
                author,
            ],
            error_msg="darcs record --dry-run failed",
            timeout=self._snapshot_timeout,
        )

    async def revert_all(self) -> None:
        """Discard every unrecorded change in the working tree."""
        await self._run_darcs(
            ["revert", "--all"],
            error_msg="darcs revert failed",
            timeout=self._snapshot_timeout,
        )
        logger.debug("darcs_reverted", cwd=str(self._cwd))


def extract_key_value(text: str, key: str) -> str | None:
    """Value of the first ``Key: value`` line whose key starts with ``key``.

    Matching ignores case; empty values are skipped.
    """
    key_lower = key.lower()
    for line in text.splitlines():
        trimmed = line.strip()
        if not trimmed.lower().startswith(key_lower):
            continue
        _, sep, value = trimmed.partition(":")
        if sep and value.strip():
            return value.strip()
    return None


def patch_hash_from_xml(text: str) -> str | None:
    """``hash`` attribute of the first ``<patch>`` in ``changes --xml`` output."""
    try:
        root = ElementTree.fromstring(text)
    except ElementTree.ParseError:
        logger.debug("darcs_changes_xml_unparsable", length=len(text))
        return None
    patch = root if root.tag == "patch" else root.find(".//patch")
    if patch is None:
        return None
    return (patch.get("hash") or "").strip() or None
