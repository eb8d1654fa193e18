"""Disk-side glob expansion relative to a workspace directory.

Supports ``*``, ``?``, ``[...]`` / ``[!...]`` within a segment and
``**`` as a whole segment meaning zero or more directories.  ``*`` never
crosses ``/`` and, unlike shell globbing, dotfiles are matched.
"""

from __future__ import annotations

import os
from fnmatch import fnmatchcase

_WILDCARDS = ("*", "?", "[")


def _glob_match(pattern: str, name: str) -> bool:
    """Match *name* against a single glob *pattern* segment."""
    return fnmatchcase(name, pattern)


def _native_to_posix(pattern: str) -> str:
    return pattern.replace(os.sep, "/") if os.sep != "/" else pattern


def _has_wildcard(segment: str) -> bool:
    return any(ch in segment for ch in _WILDCARDS)


def is_valid_pattern(pattern: str) -> bool:
    """Return False for patterns the matcher cannot interpret.

    Rejects empty patterns, unterminated ``[`` classes, and ``**`` used
    inside a segment rather than as a whole segment.
    """
    if not pattern.strip():
        return False
    for seg in _native_to_posix(pattern).split("/"):
        if "**" in seg and seg != "**":
            return False
        i = 0
        while i < len(seg):
            if seg[i] == "[":
                j = i + 1
                if j < len(seg) and seg[j] in "!^":
                    j += 1
                if j < len(seg) and seg[j] == "]":
                    j += 1
                close = seg.find("]", j)
                if close == -1:
                    return False
                i = close
            i += 1
    return True


def expand_glob(pattern: str, root: str | os.PathLike[str]) -> list[str]:
    """Expand *pattern* against the directory *root*.

    Returns sorted paths relative to *root* with forward slashes.
    Unreadable directories are skipped.  Absolute patterns are allowed;
    their matches are reported relative to *root*, and matches outside
    *root* are kept with their ``..`` prefix.
    """
    root = os.fspath(root)
    pattern = _native_to_posix(pattern).rstrip("/")
    if not pattern:
        return []

    if os.path.isabs(pattern):
        drive, rest = os.path.splitdrive(pattern)
        base = (drive or "") + os.sep
        segments = [s for s in rest.split("/") if s]
        matches = _disk_glob_walk(segments, base, "")
        found = {_relative(os.path.join(base, m), root) for m in matches}
    else:
        segments = [s for s in pattern.split("/") if s and s != "."]
        found = set(_disk_glob_walk(segments, root, ""))
    return sorted(found)


def _relative(path: str, root: str) -> str:
    return os.path.relpath(path, root).replace(os.sep, "/")


def _join(prefix: str, name: str) -> str:
    return f"{prefix}/{name}" if prefix else name


def _listdir(base: str, prefix: str) -> list[str]:
    try:
        return os.listdir(os.path.join(base, prefix) if prefix else base)
    except OSError:
        return []


def _disk_glob_walk(segments: list[str], base: str, prefix: str) -> list[str]:
    if not segments:
        return [prefix] if prefix else []
    seg = segments[0]
    rest = segments[1:]

    if seg == "**":
        results: list[str] = []
        # Zero directories
        if rest:
            results.extend(_disk_glob_walk(rest, base, prefix))
        elif prefix:
            results.append(prefix)
        # One or more directories
        for name in _listdir(base, prefix):
            full = _join(prefix, name)
            abs_full = os.path.join(base, full)
            if os.path.isdir(abs_full) and not os.path.islink(abs_full):
                results.extend(_disk_glob_walk(segments, base, full))
            elif not rest:
                results.append(full)
        return results

    if _has_wildcard(seg):
        results = []
        for name in _listdir(base, prefix):
            if _glob_match(seg, name):
                results.extend(_disk_glob_walk(rest, base, _join(prefix, name)))
        return results

    full = _join(prefix, seg)
    if rest:
        return _disk_glob_walk(rest, base, full)
    if os.path.lexists(os.path.join(base, full)):
        return [full]
    return []
