"""Workspace context, destination path rewriting, and conflict detection."""

from __future__ import annotations

import os
import posixpath
from contextlib import contextmanager
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable, Iterator

from .exceptions import (
    LocalFileError,
    PathConflictError,
    PathTransformError,
    WorkspaceBoundaryError,
)
from .tree import normalize_path


# ---------------------------------------------------------------------------
# Workspace
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class Workspace:
    """Where files are read from.

    Attributes:
        root: Absolute workspace root.
        cwd: Absolute directory globs and remote paths are resolved
            against; the source directory when one is configured.
        source: *cwd* relative to *root* (forward slashes), or None when
            *cwd* is the root itself.
    """
    root: str
    cwd: str
    source: str | None = None

    def local_path(self, path: str) -> str:
        """Absolute path of a *cwd*-relative path."""
        return os.path.join(self.cwd, path)

    def root_relative(self, path: str) -> str:
        """Re-express a *cwd*-relative path relative to *root*."""
        return posixpath.normpath(posixpath.join(self.source or "", path))


@contextmanager
def workspace_scope(
    root: str | os.PathLike[str] = ".",
    source: str | os.PathLike[str] | None = None,
) -> Iterator[Workspace]:
    """Resolve the workspace for one commit.

    The source directory must resolve inside *root* and exist.  No
    process-wide working directory is changed, so leaving the scope on
    any path (including errors) leaves the process as it found it.
    """
    root_path = Path(root).resolve()
    if source is None or os.fspath(source) in ("", "."):
        yield Workspace(str(root_path), str(root_path))
        return

    resolved = (root_path / source).resolve()
    if resolved != root_path and root_path not in resolved.parents:
        raise WorkspaceBoundaryError(os.fspath(source), str(root_path))
    if not resolved.is_dir():
        raise LocalFileError(os.fspath(source), "Source directory does not exist")

    rel = resolved.relative_to(root_path).as_posix()
    yield Workspace(str(root_path), str(resolved), None if rel == "." else rel)


# ---------------------------------------------------------------------------
# Path transformation
# ---------------------------------------------------------------------------

def _to_posix(path: str) -> str:
    """Translate the native separator; on POSIX a backslash is a name character."""
    if os.sep != "/":
        path = path.replace(os.sep, "/")
    return path


def _clean_dir(value: str | None) -> str | None:
    """Normalize a configured directory; empty, '.' and '/' mean unset."""
    if value is None:
        return None
    value = posixpath.normpath(_to_posix(value)).strip("/")
    if value in ("", "."):
        return None
    return value


def transform_path(
    path: str,
    *,
    source: str | None = None,
    flatten: bool = False,
    target: str | None = None,
) -> str:
    """Map a workspace-relative *path* to its destination in the tree.

    Applied in order: strip *source* (which *path* must be under), keep
    only the file name when *flatten* is set, then prefix *target*.
    """
    path = posixpath.normpath(_to_posix(path))
    source = _clean_dir(source)
    if source is not None:
        if not path.startswith(source + "/"):
            raise PathTransformError(path, source)
        path = path[len(source) + 1:]

    if flatten:
        # A bare file name has no parent to drop
        path = posixpath.basename(path)

    target = _clean_dir(target)
    if target is not None:
        path = f"{target}/{path}"

    try:
        return normalize_path(path)
    except ValueError:
        raise PathTransformError(path, source or target or ".")


# ---------------------------------------------------------------------------
# Conflict detection
# ---------------------------------------------------------------------------

class ConflictDetector:
    """Remembers which source claimed each destination."""

    def __init__(self):
        self._claims: dict[str, str] = {}

    def __len__(self) -> int:
        return len(self._claims)

    def add(self, destination: str, source: str) -> None:
        other = self._claims.setdefault(destination, source)
        if other != source:
            raise PathConflictError(destination, source, other)


def check_conflicts(pairs: Iterable[tuple[str, str]]) -> None:
    """Raise :class:`PathConflictError` if any two sources share a destination.

    *pairs* are ``(destination, source)`` tuples; every pair is checked.
    """
    detector = ConflictDetector()
    for destination, source in pairs:
        detector.add(destination, source)
