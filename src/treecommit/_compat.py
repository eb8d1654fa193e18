"""pygit2-style wrappers around dulwich.

The remote object store talks to git objects through this module only,
so the rest of treecommit never touches dulwich types directly.
"""

from __future__ import annotations

import time as _time
from collections import deque

from dulwich.objects import Blob as _DBlob
from dulwich.objects import Commit as _DCommit
from dulwich.objects import Tree as _DTree
from dulwich.repo import Repo as _DRepo

# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------

GIT_OBJECT_COMMIT = 1    # dulwich Commit.type_num
GIT_OBJECT_TREE = 2      # dulwich Tree.type_num

# ---------------------------------------------------------------------------
# Oid
# ---------------------------------------------------------------------------

class Oid:
    """pygit2.Oid-compatible wrapper around dulwich hex SHA bytes."""

    __slots__ = ("_sha",)

    def __init__(self, sha: bytes | str):
        if isinstance(sha, str):
            sha = sha.encode("ascii")
        self._sha = sha

    def __str__(self) -> str:
        return self._sha.decode()

    def __repr__(self) -> str:
        return f"Oid({self._sha.decode()[:7]})"

    def __eq__(self, other):
        if isinstance(other, Oid):
            return self._sha == other._sha
        return NotImplemented

    def __hash__(self) -> int:
        return hash(self._sha)

    @property
    def raw(self) -> bytes:
        """The raw 40-char hex bytes (dulwich native format)."""
        return self._sha

# ---------------------------------------------------------------------------
# Signature
# ---------------------------------------------------------------------------

class Signature:
    """pygit2.Signature-compatible identity."""

    def __init__(self, name: str, email: str):
        self.name = name
        self.email = email
        self._identity = f"{name} <{email}>".encode()

# ---------------------------------------------------------------------------
# GitError
# ---------------------------------------------------------------------------

class GitError(Exception):
    """Drop-in for pygit2.GitError."""

# ---------------------------------------------------------------------------
# Wrapped objects
# ---------------------------------------------------------------------------

class _TreeEntry:
    """Mimics pygit2 tree entry: .name, .id, .filemode."""

    __slots__ = ("name", "id", "filemode")

    def __init__(self, name: str, oid: Oid, filemode: int):
        self.name = name
        self.id = oid
        self.filemode = filemode


class _WrappedObject:
    """Base wrapper for dulwich objects."""

    def __init__(self, dulwich_obj, repo: Repository):
        self._obj = dulwich_obj
        self._repo = repo

    @property
    def id(self) -> Oid:
        return Oid(self._obj.id)

    @property
    def type(self) -> int:
        return self._obj.type_num


class _WrappedBlob(_WrappedObject):
    @property
    def data(self) -> bytes:
        return self._obj.data


class _WrappedTree(_WrappedObject):
    def __getitem__(self, name: str) -> _TreeEntry:
        name_bytes = name.encode() if isinstance(name, str) else name
        mode, sha = self._obj[name_bytes]
        return _TreeEntry(name if isinstance(name, str) else name.decode(), Oid(sha), mode)

    def __iter__(self):
        for entry in self._obj.iteritems():
            yield _TreeEntry(entry.path.decode(), Oid(entry.sha), entry.mode)

    def __len__(self) -> int:
        return len(self._obj)


class _WrappedCommit(_WrappedObject):
    @property
    def tree_id(self) -> Oid:
        return Oid(self._obj.tree)


def _wrap(dulwich_obj, repo: Repository) -> _WrappedObject:
    if isinstance(dulwich_obj, _DBlob):
        return _WrappedBlob(dulwich_obj, repo)
    elif isinstance(dulwich_obj, _DTree):
        return _WrappedTree(dulwich_obj, repo)
    elif isinstance(dulwich_obj, _DCommit):
        return _WrappedCommit(dulwich_obj, repo)
    return _WrappedObject(dulwich_obj, repo)

# ---------------------------------------------------------------------------
# References
# ---------------------------------------------------------------------------

class _Reference:
    """Mimics a pygit2 reference, with compare-and-swap updates."""

    def __init__(self, refs_container, ref_name: bytes):
        self._refs = refs_container
        self._name = ref_name

    @property
    def target(self) -> Oid:
        return Oid(self._refs[self._name])

    def set_target(self, oid: Oid, *, expected: Oid, message: bytes | None = None) -> bool:
        """Move the ref to *oid* only if it still points at *expected*."""
        return self._refs.set_if_equals(
            self._name, expected.raw, oid.raw, message=message,
        )


class _References:
    """Wraps dulwich refs to match repo.references API."""

    def __init__(self, dulwich_repo: _DRepo):
        self._refs = dulwich_repo.refs

    def __getitem__(self, name: str) -> _Reference:
        ref_bytes = name.encode() if isinstance(name, str) else name
        if ref_bytes not in self._refs:
            raise KeyError(name)
        return _Reference(self._refs, ref_bytes)

    def __contains__(self, name: str) -> bool:
        ref_bytes = name.encode() if isinstance(name, str) else name
        return ref_bytes in self._refs

    def create(self, name: str, oid: Oid, message: bytes | None = None) -> bool:
        """Create *name* at *oid*; returns False if it already exists."""
        ref_bytes = name.encode() if isinstance(name, str) else name
        return self._refs.add_if_new(ref_bytes, oid.raw, message=message)

# ---------------------------------------------------------------------------
# TreeBuilder
# ---------------------------------------------------------------------------

class TreeBuilder:
    """Wraps dulwich Tree construction to match pygit2's TreeBuilder."""

    def __init__(self, repo: _DRepo, base_tree=None):
        self._repo = repo
        self._entries: dict[bytes, tuple[int, bytes]] = {}
        if base_tree is not None:
            obj = base_tree._obj if isinstance(base_tree, _WrappedTree) else base_tree
            for entry in obj.iteritems():
                self._entries[entry.path] = (entry.mode, entry.sha)

    def insert(self, name: str, oid: Oid, mode: int):
        self._entries[name.encode()] = (mode, oid.raw)

    def remove(self, name: str):
        key = name.encode()
        if key not in self._entries:
            raise GitError(f"Entry not found: {name}")
        del self._entries[key]

    def write(self) -> Oid:
        tree = _DTree()
        for name_bytes, (mode, sha) in sorted(self._entries.items()):
            tree.add(name_bytes, mode, sha)
        self._repo.object_store.add_object(tree)
        return Oid(tree.id)

# ---------------------------------------------------------------------------
# Repository
# ---------------------------------------------------------------------------

class Repository:
    """pygit2.Repository-compatible wrapper around dulwich Repo."""

    def __init__(self, path_or_repo):
        if isinstance(path_or_repo, str):
            self._repo = _DRepo(path_or_repo)
        else:
            self._repo = path_or_repo

    @property
    def path(self) -> str:
        p = self._repo.path
        # pygit2 includes trailing slash for bare repos
        if not p.endswith("/"):
            p += "/"
        return p

    def __getitem__(self, oid: Oid) -> _WrappedObject:
        obj = self._repo.object_store[oid.raw]
        return _wrap(obj, self)

    def __contains__(self, oid: Oid) -> bool:
        return oid.raw in self._repo.object_store

    def create_blob(self, data: bytes) -> Oid:
        blob = _DBlob.from_string(data)
        self._repo.object_store.add_object(blob)
        return Oid(blob.id)

    def create_commit(
        self,
        author: Signature,
        committer: Signature,
        message: str,
        tree_oid: Oid,
        parent_oids: list[Oid],
    ) -> Oid:
        c = _DCommit()
        c.tree = tree_oid.raw
        c.parents = [p.raw for p in parent_oids]
        c.author = author._identity
        c.committer = committer._identity
        now = int(_time.time())
        c.author_time = c.commit_time = now
        c.author_timezone = c.commit_timezone = 0
        msg = message.encode() if isinstance(message, str) else message
        if not msg.endswith(b"\n"):
            msg += b"\n"
        c.message = msg
        c.encoding = b"UTF-8"
        self._repo.object_store.add_object(c)
        return Oid(c.id)

    def descendant_of(self, oid: Oid, ancestor: Oid) -> bool:
        """True if *ancestor* is reachable from *oid* through parent links.

        A commit counts as its own descendant, so a no-op update is a
        fast-forward.
        """
        seen: set[bytes] = set()
        queue = deque([oid.raw])
        while queue:
            sha = queue.popleft()
            if sha == ancestor.raw:
                return True
            if sha in seen:
                continue
            seen.add(sha)
            try:
                obj = self._repo.object_store[sha]
            except KeyError:
                continue
            if isinstance(obj, _DCommit):
                queue.extend(obj.parents)
        return False

    def set_head_branch(self, branch: str) -> None:
        self._repo.refs.set_symbolic_ref(b"HEAD", f"refs/heads/{branch}".encode())

    def TreeBuilder(self, tree=None) -> TreeBuilder:
        return TreeBuilder(self._repo, tree)

    @property
    def references(self) -> _References:
        return _References(self._repo)

# ---------------------------------------------------------------------------
# init_repository
# ---------------------------------------------------------------------------

def init_repository(path: str, bare: bool = True) -> Repository:
    """Create a new git repository (matches pygit2.init_repository)."""
    repo = _DRepo.init_bare(path, mkdir=True)
    return Repository(repo)
