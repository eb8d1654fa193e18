"""Candidate selection: include/exclude globs over the workspace."""

from __future__ import annotations

import logging
import os
import stat
from typing import Container, Iterable, Sequence

from ._glob import expand_glob, is_valid_pattern

logger = logging.getLogger(__name__)


def parse_patterns(lines: Iterable[str] | None) -> tuple[str, ...] | None:
    """Turn raw input lines into an ordered tuple of usable glob patterns.

    Each value may hold several newline-separated patterns.  Blank lines
    and patterns that fail to parse are dropped silently.  Returns None
    when no input was given at all.
    """
    if lines is None:
        return None
    patterns: list[str] = []
    for value in lines:
        for line in value.splitlines():
            line = line.strip()
            if not line:
                continue
            if is_valid_pattern(line):
                patterns.append(line)
            else:
                logger.debug("dropping invalid pattern %r", line)
    return tuple(patterns)


def select(
    include: Sequence[str] | None,
    exclude: Sequence[str] | None,
    root: str | os.PathLike[str],
    unchanged: Container[str] = frozenset(),
) -> set[str]:
    """Expand include patterns, skip unchanged paths, then drop excludes.

    Paths are relative to *root*.  Without include patterns the result is
    empty.  Excluding a path that was never selected is not an error.
    """
    candidates: set[str] = set()
    for pattern in include or ():
        for path in expand_glob(pattern, root):
            if path not in unchanged:
                candidates.add(path)
    for pattern in exclude or ():
        for path in expand_glob(pattern, root):
            candidates.discard(path)
    logger.debug("selected %d candidate(s)", len(candidates))
    return candidates


def regular_files(candidates: Iterable[str], root: str | os.PathLike[str]) -> list[str]:
    """Return the candidates that are regular files, sorted.

    Directories, symlinks and other special files are dropped.  Paths
    that cannot be inspected are kept so that reading them later reports
    the failure.
    """
    files: list[str] = []
    for path in candidates:
        try:
            st = os.lstat(os.path.join(root, path))
        except OSError:
            files.append(path)
            continue
        if stat.S_ISREG(st.st_mode):
            files.append(path)
    return sorted(files)
