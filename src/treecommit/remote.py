"""Remote object store: the repository a commit is published to.

:class:`RemoteRepository` is the contract the commit engine relies on.
:class:`BareRepository` implements it over a bare git repository.
"""

from __future__ import annotations

import logging
import threading
from abc import ABC, abstractmethod
from pathlib import Path
from typing import NamedTuple, Sequence, Union

from . import _compat as pygit2
from .exceptions import RefUpdateRejectedError, RemoteOperationError
from .tree import (
    GIT_FILEMODE_BLOB,
    GIT_FILEMODE_COMMIT,
    GIT_FILEMODE_TREE,
    normalize_path,
    rebuild_tree,
    walk_tree,
)

logger = logging.getLogger(__name__)


class BlobEntry(NamedTuple):
    """A file in a tree: path, content id and git filemode."""

    path: str
    oid: str
    mode: int = GIT_FILEMODE_BLOB


class TreeEntry(NamedTuple):
    """A subtree reference inside a tree listing."""

    path: str
    oid: str


RemoteEntry = Union[BlobEntry, TreeEntry]


class CommitInfo(NamedTuple):
    """A commit id together with the id of its root tree."""

    oid: str
    tree_oid: str


def ref_name(ref: str) -> str:
    """Expand a short branch name to a full ref name (``main`` → ``refs/heads/main``)."""
    if ref.startswith("refs/"):
        return ref
    return f"refs/heads/{ref}"


class RemoteRepository(ABC):
    """Operations the commit engine needs from a repository."""

    @abstractmethod
    def get_commit(self, ref: str) -> CommitInfo:
        """Return the commit *ref* points at."""

    @abstractmethod
    def get_tree(self, tree_oid: str, recursive: bool = False) -> list[RemoteEntry]:
        """List a tree.

        Non-recursive listings return direct blobs and subtrees.  Recursive
        listings return every blob below the tree at its nested path, and
        no subtree entries.
        """

    @abstractmethod
    def create_blob(self, data: bytes) -> str:
        """Store *data* as a blob and return its id."""

    @abstractmethod
    def create_tree(self, base_tree_oid: str, entries: Sequence[BlobEntry]) -> str:
        """Layer *entries* onto the base tree, preserving everything else."""

    @abstractmethod
    def create_commit(self, parents: Sequence[str], tree_oid: str, message: str) -> str:
        """Create a commit object and return its id."""

    @abstractmethod
    def update_ref(self, ref: str, commit_oid: str, force: bool = False) -> None:
        """Point *ref* at *commit_oid*.

        Raises :class:`RefUpdateRejectedError` when the update is not a
        fast-forward and *force* is not set.
        """


class BareRepository(RemoteRepository):
    """A :class:`RemoteRepository` backed by a bare git repository on disk."""

    def __init__(self, repo: pygit2.Repository, author: str = "treecommit",
                 email: str = "treecommit@localhost"):
        self._repo = repo
        self._signature = pygit2.Signature(author, email)
        # dulwich object stores are not safe for concurrent writers
        self._lock = threading.Lock()

    def __repr__(self) -> str:
        return f"BareRepository({self._repo.path!r})"

    @property
    def path(self) -> str:
        return self._repo.path

    @classmethod
    def open(
        cls,
        path: str | Path,
        *,
        create: bool = False,
        branch: str | None = "main",
        author: str = "treecommit",
        email: str = "treecommit@localhost",
    ) -> BareRepository:
        """Open a bare repository, optionally creating it.

        Args:
            path: Path to the bare repository.
            create: If True, create the repo when it doesn't exist.
                    If False (default), raise FileNotFoundError when missing.
            branch: Initial branch name when creating (default "main").
                    None to create a repo with no branches.
            author: Author and committer name for new commits.
            email: Author and committer email for new commits.
        """
        path = Path(path)

        if path.exists():
            return cls(pygit2.Repository(str(path)), author, email)

        if not create:
            raise FileNotFoundError(f"Repository not found: {path}")

        repo = pygit2.init_repository(str(path), bare=True)
        remote = cls(repo, author, email)

        if branch is not None:
            tree_oid = repo.TreeBuilder().write()
            sig = remote._signature
            commit_oid = repo.create_commit(sig, sig, f"Initialize {branch}", tree_oid, [])
            repo.references.create(ref_name(branch), commit_oid, message=b"init")
            repo.set_head_branch(branch)

        return remote

    # -- reads ---------------------------------------------------------------

    def get_commit(self, ref: str) -> CommitInfo:
        name = ref_name(ref)
        with self._lock:
            try:
                oid = self._repo.references[name].target
                commit = self._repo[oid]
            except KeyError:
                raise RemoteOperationError("get commit", f"unknown ref {name}")
            if commit.type != pygit2.GIT_OBJECT_COMMIT:
                raise RemoteOperationError("get commit", f"{name} does not point to a commit")
            return CommitInfo(str(commit.id), str(commit.tree_id))

    def get_tree(self, tree_oid: str, recursive: bool = False) -> list[RemoteEntry]:
        oid = pygit2.Oid(tree_oid)
        with self._lock:
            try:
                tree = self._repo[oid]
            except KeyError:
                raise RemoteOperationError("get tree", f"unknown tree {tree_oid}")
            if tree.type != pygit2.GIT_OBJECT_TREE:
                raise RemoteOperationError("get tree", f"{tree_oid} is not a tree")

            entries: list[RemoteEntry] = []
            if not recursive:
                for entry in tree:
                    if entry.filemode == GIT_FILEMODE_TREE:
                        entries.append(TreeEntry(entry.name, str(entry.id)))
                    elif entry.filemode != GIT_FILEMODE_COMMIT:
                        entries.append(BlobEntry(entry.name, str(entry.id), entry.filemode))
                return entries

            try:
                for dirpath, _dirs, files in walk_tree(self._repo, oid):
                    for f in files:
                        if f.filemode == GIT_FILEMODE_COMMIT:
                            continue
                        path = f"{dirpath}/{f.name}" if dirpath else f.name
                        entries.append(BlobEntry(path, str(f.oid), f.filemode))
            except KeyError as exc:
                raise RemoteOperationError("get tree", f"missing object below {tree_oid}") from exc
            return entries

    # -- writes --------------------------------------------------------------

    def create_blob(self, data: bytes) -> str:
        with self._lock:
            return str(self._repo.create_blob(data))

    def create_tree(self, base_tree_oid: str, entries: Sequence[BlobEntry]) -> str:
        writes: dict[str, tuple[pygit2.Oid, int]] = {}
        for entry in entries:
            try:
                path = normalize_path(entry.path)
            except ValueError as exc:
                raise RemoteOperationError("create tree", str(exc))
            writes[path] = (pygit2.Oid(entry.oid), entry.mode)
        with self._lock:
            base = pygit2.Oid(base_tree_oid)
            if base not in self._repo:
                raise RemoteOperationError("create tree", f"unknown base tree {base_tree_oid}")
            for path, (oid, _mode) in writes.items():
                if oid not in self._repo:
                    raise RemoteOperationError("create tree", f"unknown blob {oid} for {path}")
            return str(rebuild_tree(self._repo, base, writes))

    def create_commit(self, parents: Sequence[str], tree_oid: str, message: str) -> str:
        with self._lock:
            tree = pygit2.Oid(tree_oid)
            if tree not in self._repo:
                raise RemoteOperationError("create commit", f"unknown tree {tree_oid}")
            parent_oids = [pygit2.Oid(p) for p in parents]
            for p in parent_oids:
                if p not in self._repo:
                    raise RemoteOperationError("create commit", f"unknown parent {p}")
            sig = self._signature
            return str(self._repo.create_commit(sig, sig, message, tree, parent_oids))

    def update_ref(self, ref: str, commit_oid: str, force: bool = False) -> None:
        name = ref_name(ref)
        new = pygit2.Oid(commit_oid)
        with self._lock:
            if new not in self._repo:
                raise RemoteOperationError("update ref", f"unknown commit {commit_oid}")
            refs = self._repo.references
            if name not in refs:
                if not refs.create(name, new, message=b"treecommit: created"):
                    raise RemoteOperationError("update ref", f"{name} was created concurrently")
                logger.debug("created %s at %s", name, commit_oid)
                return

            reference = refs[name]
            current = reference.target
            if not force and not self._repo.descendant_of(new, current):
                raise RefUpdateRejectedError(name, str(current), commit_oid)
            message = b"treecommit: forced update" if force else b"treecommit: fast-forward"
            if not reference.set_target(new, expected=current, message=message):
                raise RemoteOperationError("update ref", f"{name} moved concurrently")
            logger.debug("moved %s from %s to %s", name, current, commit_oid)
