"""Low-level tree manipulation for treecommit.

Provides the layered tree merge used to apply new blob entries onto a
base tree, plus filemode classification and path normalization.
"""

from __future__ import annotations

import os
from collections import defaultdict
from typing import Iterator, NamedTuple

from . import _compat as pygit2
from .exceptions import UnsupportedModeError


class WalkEntry(NamedTuple):
    """A file entry yielded by :func:`walk_tree`."""

    name: str
    oid: pygit2.Oid
    filemode: int


GIT_FILEMODE_TREE = 0o040000
GIT_FILEMODE_BLOB = 0o100644
GIT_FILEMODE_BLOB_EXECUTABLE = 0o100755
GIT_FILEMODE_LINK = 0o120000
GIT_FILEMODE_COMMIT = 0o160000


def classify_mode(mode: int, path: str = "") -> int:
    """Return the git filemode for POSIX permission bits.

    Any execute bit gives an executable blob, otherwise any read bit gives
    a regular blob.  Anything else raises :class:`UnsupportedModeError`.
    """
    if mode & 0o111:
        return GIT_FILEMODE_BLOB_EXECUTABLE
    if mode & 0o444:
        return GIT_FILEMODE_BLOB
    raise UnsupportedModeError(path, mode)


def normalize_path(path: str | os.PathLike[str]) -> str:
    """Normalize a path: forward slashes, strip outer slashes, reject bad segments."""
    path = os.fspath(path)
    if os.sep != "/":
        path = path.replace(os.sep, "/")
    path = path.strip("/")
    if not path:
        raise ValueError("Path must not be empty")
    segments = path.split("/")
    for seg in segments:
        if not seg:
            raise ValueError(f"Empty segment in path: {path!r}")
        if seg in (".", ".."):
            raise ValueError(f"Invalid path segment: {seg!r}")
    return "/".join(segments)


def rebuild_tree(
    repo: pygit2.Repository,
    base_tree_oid: pygit2.Oid | None,
    writes: dict[str, tuple[pygit2.Oid, int]],
) -> pygit2.Oid:
    """Layer *writes* onto a base tree and return the new root tree OID.

    Only the ancestor chain from changed leaves to root is rebuilt.
    Entries not named in *writes* keep their exact OID and filemode.

    Args:
        repo: The repository wrapper.
        base_tree_oid: OID of the existing tree (or None for empty).
        writes: Mapping of normalized path → (blob OID, filemode).
    """
    # Group changes by first path segment
    sub_writes: dict[str, dict[str, tuple[pygit2.Oid, int]]] = defaultdict(dict)
    leaf_writes: dict[str, tuple[pygit2.Oid, int]] = {}

    for path, value in writes.items():
        parts = path.split("/", 1)
        if len(parts) == 1:
            leaf_writes[parts[0]] = value
        else:
            sub_writes[parts[0]][parts[1]] = value

    tree = repo[base_tree_oid] if base_tree_oid is not None else None
    tb = repo.TreeBuilder(tree)

    existing_subtrees: dict[str, pygit2.Oid] = {}
    if tree is not None:
        for entry in tree:
            if entry.filemode == GIT_FILEMODE_TREE:
                existing_subtrees[entry.name] = entry.id

    # Leaf writes may replace a subtree with a blob
    for name, (blob_oid, mode) in leaf_writes.items():
        tb.insert(name, blob_oid, mode)

    for subdir, nested in sub_writes.items():
        existing_oid = existing_subtrees.get(subdir)
        # A blob in the way of a new directory is replaced
        if existing_oid is None and tree is not None:
            try:
                tree[subdir]
            except KeyError:
                pass
            else:
                tb.remove(subdir)
        new_subtree_oid = rebuild_tree(repo, existing_oid, nested)
        tb.insert(subdir, new_subtree_oid, GIT_FILEMODE_TREE)

    return tb.write()


def walk_tree(
    repo: pygit2.Repository,
    tree_oid: pygit2.Oid,
    prefix: str = "",
) -> Iterator[tuple[str, list[str], list[WalkEntry]]]:
    """Walk the tree recursively, yielding (dirpath, dirnames, file_entries).

    Each file entry is a :class:`WalkEntry` with *name*, *oid*, and *filemode*.
    """
    tree = repo[tree_oid]
    dirs: list[str] = []
    files: list[WalkEntry] = []
    dir_oids: list[tuple[str, pygit2.Oid]] = []

    for entry in tree:
        if entry.filemode == GIT_FILEMODE_TREE:
            dirs.append(entry.name)
            dir_oids.append((entry.name, entry.id))
        else:
            files.append(WalkEntry(entry.name, entry.id, entry.filemode))

    yield (prefix, dirs, files)

    for name, oid in dir_oids:
        child_prefix = f"{prefix}/{name}" if prefix else name
        yield from walk_tree(repo, oid, child_prefix)
