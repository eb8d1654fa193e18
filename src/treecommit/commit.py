"""Assemble and publish a single commit from a local working tree.

The pipeline runs stage by stage, each fully materialized before the
next starts::

    scan remote tree → select → transform paths → check conflicts
        → commit gate → create blobs → merge tree → commit → update ref

Nothing is written to the repository until every destination path is
known to be unique.
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field

from ._parallel import first_error, run_all
from .exceptions import LocalFileError
from .options import CommitOptions
from .paths import Workspace, check_conflicts, transform_path, workspace_scope
from .remote import BlobEntry, CommitInfo, RemoteRepository
from .scan import UnchangedSet, resolve_unchanged
from .selector import regular_files, select
from .tree import classify_mode

logger = logging.getLogger(__name__)


@dataclass
class PlannedFile:
    """A local file and the tree path it will be committed to.

    Attributes:
        source: Path relative to the workspace directory.
        destination: Path in the repository tree.
    """
    source: str
    destination: str


@dataclass
class CommitPlan:
    """Everything decided before the first repository write."""
    base: CommitInfo
    files: list[PlannedFile] = field(default_factory=list)
    unchanged: UnchangedSet = field(default_factory=UnchangedSet)

    @property
    def empty(self) -> bool:
        return not self.files


@dataclass
class CommitResult:
    """Outcome of :func:`commit`.

    Attributes:
        oid: The new commit, or the base commit when nothing was created.
        created: True if a commit was created and the ref moved.
        entries: Blob entries layered onto the base tree.
        unchanged: Files skipped because the tree already had them.
    """
    oid: str
    created: bool
    entries: list[BlobEntry] = field(default_factory=list)
    unchanged: UnchangedSet = field(default_factory=UnchangedSet)


# ---------------------------------------------------------------------------
# Planning
# ---------------------------------------------------------------------------

def plan_commit(
    remote: RemoteRepository,
    ref: str,
    options: CommitOptions,
    workspace: Workspace,
) -> CommitPlan:
    """Decide which files go where, without writing to *remote*.

    Raises :class:`PathTransformError` or :class:`PathConflictError`
    before any blob exists.
    """
    base = remote.get_commit(ref)
    unchanged = resolve_unchanged(remote, base.tree_oid, workspace, options.max_workers)
    candidates = select(options.include, options.exclude, workspace.cwd, unchanged)

    files = [
        PlannedFile(path, transform_path(
            workspace.root_relative(path),
            source=workspace.source,
            flatten=options.flatten,
            target=options.target,
        ))
        for path in regular_files(candidates, workspace.cwd)
    ]
    check_conflicts((f.destination, f.source) for f in files)
    return CommitPlan(base, files, unchanged)


# ---------------------------------------------------------------------------
# Blob creation
# ---------------------------------------------------------------------------

def _build_blob(remote: RemoteRepository, workspace: Workspace, planned: PlannedFile) -> BlobEntry:
    local = workspace.local_path(planned.source)
    try:
        st = os.lstat(local)
        mode = classify_mode(st.st_mode, planned.source)
        with open(local, "rb") as f:
            data = f.read()
    except OSError as exc:
        raise LocalFileError(planned.source, exc.strerror or "Cannot read file") from exc
    return BlobEntry(planned.destination, remote.create_blob(data), mode)


def build_blobs(
    remote: RemoteRepository,
    files: list[PlannedFile],
    workspace: Workspace,
    max_workers: int | None = None,
) -> list[BlobEntry]:
    """Create one blob per planned file, in parallel.

    All tasks run to completion; the first failure in *files* order is
    raised.  Blobs created by other tasks are left in the repository.
    """
    outcomes = run_all(lambda f: _build_blob(remote, workspace, f), files, max_workers)
    return first_error(outcomes)


# ---------------------------------------------------------------------------
# Gate, tree, commit
# ---------------------------------------------------------------------------

def should_commit(entries: list, always: bool = False) -> bool:
    """True unless the final entry set is empty and *always* is off."""
    return always or bool(entries)


def assemble_tree(remote: RemoteRepository, base: CommitInfo, entries: list[BlobEntry]) -> str:
    """Return the tree for the new commit: the base tree layered with *entries*."""
    if not entries:
        return base.tree_oid
    return remote.create_tree(base.tree_oid, entries)


def publish(
    remote: RemoteRepository,
    ref: str,
    base: CommitInfo,
    tree_oid: str,
    message: str,
    force: bool = False,
) -> str:
    """Create a commit on top of *base* and move *ref* to it."""
    oid = remote.create_commit([base.oid], tree_oid, message)
    remote.update_ref(ref, oid, force=force)
    return oid


def commit(
    remote: RemoteRepository,
    ref: str,
    options: CommitOptions,
    root: str | os.PathLike[str] = ".",
) -> CommitResult:
    """Commit selected files under *root* to *ref* in *remote*.

    Returns the base commit unchanged, without touching the repository,
    when no file differs and ``options.always`` is off.
    """
    with workspace_scope(root, options.source) as workspace:
        plan = plan_commit(remote, ref, options, workspace)
        if not should_commit(plan.files, options.always):
            logger.info("nothing to commit; %s stays at %s", ref, plan.base.oid)
            return CommitResult(plan.base.oid, False, [], plan.unchanged)

        entries = build_blobs(remote, plan.files, workspace, options.max_workers)
        tree_oid = assemble_tree(remote, plan.base, entries)
        oid = publish(remote, ref, plan.base, tree_oid, options.message, options.force)
        logger.info("committed %d file(s) to %s as %s", len(entries), ref, oid)
        return CommitResult(oid, True, entries, plan.unchanged)
