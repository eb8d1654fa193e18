"""Remote tree scanning and unchanged-file detection.

A subtree that cannot be fetched does not abort the scan; it is recorded
in the result and every local file under it is treated as possibly
changed.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Callable, Iterator, TypeVar

from ._parallel import run_all
from .exceptions import TreeCommitError
from .hashing import file_oid
from .paths import Workspace
from .remote import BlobEntry, RemoteRepository, TreeEntry

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass
class FailedSubtree:
    """A subtree whose listing could not be fetched."""
    path: str
    error: str


@dataclass
class TreeScan:
    """Every blob found in a tree, plus the subtrees that failed to load.

    Attributes:
        entries: Blob entries with full paths from the scanned root.
        failed: Subtrees skipped because fetching them raised.
    """
    entries: list[BlobEntry] = field(default_factory=list)
    failed: list[FailedSubtree] = field(default_factory=list)

    @property
    def complete(self) -> bool:
        return not self.failed


@dataclass
class UnchangedSet:
    """Local paths whose content already matches the remote tree.

    Attributes:
        paths: Paths relative to the workspace directory.
        failed_subtrees: Subtrees that could not be compared.
    """
    paths: set[str] = field(default_factory=set)
    failed_subtrees: list[FailedSubtree] = field(default_factory=list)

    def __contains__(self, path: object) -> bool:
        return path in self.paths

    def __len__(self) -> int:
        return len(self.paths)

    def __iter__(self) -> Iterator[str]:
        return iter(self.paths)


def _fetch_subtree(remote: RemoteRepository, subtree: TreeEntry) -> list[BlobEntry]:
    entries = remote.get_tree(subtree.oid, recursive=True)
    return [
        BlobEntry(f"{subtree.path}/{e.path}", e.oid, e.mode)
        for e in entries if isinstance(e, BlobEntry)
    ]


def _fan_out(
    remote: RemoteRepository,
    tree_oid: str,
    max_workers: int | None,
    visit: Callable[[list[BlobEntry]], T],
) -> tuple[T, list[T], list[FailedSubtree]]:
    """Split *tree_oid* into its direct blobs and subtrees.

    *visit* runs on the direct blobs in the calling thread, then once
    per subtree (after a recursive fetch) in the pool.  Returns the
    direct result, the results of subtrees that loaded, and the
    subtrees that failed.
    """
    blobs: list[BlobEntry] = []
    subtrees: list[TreeEntry] = []
    for entry in remote.get_tree(tree_oid, recursive=False):
        if isinstance(entry, TreeEntry):
            subtrees.append(entry)
        else:
            blobs.append(entry)
    direct = visit(blobs)

    outcomes = run_all(lambda t: visit(_fetch_subtree(remote, t)), subtrees, max_workers)
    results: list[T] = []
    failed: list[FailedSubtree] = []
    for subtree, outcome in zip(subtrees, outcomes):
        if outcome.ok:
            results.append(outcome.value)
        else:
            logger.warning("skipping subtree %s: %s", subtree.path, outcome.error)
            failed.append(FailedSubtree(subtree.path, str(outcome.error)))
    return direct, results, failed


def scan_tree(
    remote: RemoteRepository,
    tree_oid: str,
    max_workers: int | None = None,
) -> TreeScan:
    """List every blob under *tree_oid*, fetching subtrees in parallel.

    The top-level listing must succeed; a failing subtree only adds an
    entry to :attr:`TreeScan.failed`.
    """
    direct, fetched, failed = _fan_out(remote, tree_oid, max_workers, list)
    scan = TreeScan(direct, failed)
    for entries in fetched:
        scan.entries.extend(entries)
    return scan


def _matches_local(workspace: Workspace, entry: BlobEntry) -> bool:
    try:
        return file_oid(workspace.local_path(entry.path)) == entry.oid
    except TreeCommitError:
        return False


def resolve_unchanged(
    remote: RemoteRepository,
    tree_oid: str,
    workspace: Workspace,
    max_workers: int | None = None,
) -> UnchangedSet:
    """Find workspace files identical to the blob at the same path in the tree.

    Top-level blobs are compared serially; each subtree is fetched and
    compared in its own task.  A file that cannot be hashed counts as
    changed.
    """
    def unchanged_in(entries: list[BlobEntry]) -> set[str]:
        return {e.path for e in entries if _matches_local(workspace, e)}

    direct, matched, failed = _fan_out(remote, tree_oid, max_workers, unchanged_in)
    result = UnchangedSet(direct, failed)
    for paths in matched:
        result.paths.update(paths)

    logger.debug(
        "%d unchanged path(s), %d subtree(s) skipped",
        len(result.paths), len(result.failed_subtrees),
    )
    return result
