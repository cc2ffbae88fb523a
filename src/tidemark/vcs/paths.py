"""Scope paths for snapshot operations."""

from __future__ import annotations

import os
from pathlib import Path, PurePath

from tidemark.exceptions import PathOutsideRepositoryError

__all__ = ["resolve_scope", "within_scope"]


def resolve_scope(
    root: Path,
    scope: Path | str | None,
    *,
    backend: str | None = None,
) -> Path | None:
    """Express ``scope`` relative to ``root``.

    ``scope`` may be absolute or relative to ``root``. A direct prefix match
    is tried first; when that fails (or the remainder climbs out with ``..``)
    both paths are canonicalized so that symlinked roots still match.

    Returns:
        The scope relative to ``root``, or None when it is the root itself.

    Raises:
        PathOutsideRepositoryError: If ``scope`` is not inside ``root``.
    """
    if scope is None:
        return None
    candidate = Path(scope)
    if not candidate.is_absolute():
        candidate = root / candidate
    if candidate == root:
        return None

    try:
        relative = candidate.relative_to(root)
    except ValueError:
        relative = None
    if relative is not None and os.pardir not in relative.parts:
        return _non_empty(relative)

    root_canonical = root.resolve()
    scope_canonical = candidate.resolve()
    if not scope_canonical.is_relative_to(root_canonical):
        raise PathOutsideRepositoryError(candidate, root, backend=backend)
    return _non_empty(scope_canonical.relative_to(root_canonical))


def within_scope(relative: PurePath, scope: PurePath | None) -> bool:
    """True if ``relative`` is ``scope`` or lies beneath it."""
    if scope is None:
        return True
    return relative == scope or relative.is_relative_to(scope)


def _non_empty(path: Path) -> Path | None:
    if path == Path():
        return None
    return path
