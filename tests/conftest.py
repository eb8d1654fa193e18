"""Shared fixtures for treecommit tests."""

import os
import threading

import pytest
from click.testing import CliRunner

from treecommit.exceptions import RemoteOperationError
from treecommit.remote import BareRepository, BlobEntry


class RecordingRepository(BareRepository):
    """BareRepository that counts every write it is asked to perform."""

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self.calls = {"blob": 0, "tree": 0, "commit": 0, "ref": 0}
        self._calls_lock = threading.Lock()

    def _count(self, kind):
        with self._calls_lock:
            self.calls[kind] += 1

    @property
    def writes(self) -> int:
        return sum(self.calls.values())

    def create_blob(self, data):
        self._count("blob")
        return super().create_blob(data)

    def create_tree(self, base_tree_oid, entries):
        self._count("tree")
        return super().create_tree(base_tree_oid, entries)

    def create_commit(self, parents, tree_oid, message):
        self._count("commit")
        return super().create_commit(parents, tree_oid, message)

    def update_ref(self, ref, commit_oid, force=False):
        self._count("ref")
        return super().update_ref(ref, commit_oid, force=force)


class FlakyRepository(RecordingRepository):
    """Fails recursive listings of the trees named in ``broken``."""

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self.broken: set[str] = set()

    def get_tree(self, tree_oid, recursive=False):
        if recursive and tree_oid in self.broken:
            raise RemoteOperationError("get tree", "connection reset")
        return super().get_tree(tree_oid, recursive=recursive)


def seed(remote, files, ref="main", message="seed"):
    """Commit ``{path: bytes | (bytes, mode)}`` onto *ref*; return the commit id."""
    base = remote.get_commit(ref)
    entries = []
    for path, value in files.items():
        data, mode = value if isinstance(value, tuple) else (value, 0o100644)
        entries.append(BlobEntry(path, remote.create_blob(data), mode))
    tree = remote.create_tree(base.tree_oid, entries)
    oid = remote.create_commit([base.oid], tree, message)
    remote.update_ref(ref, oid)
    return oid


def write_files(root, files):
    """Write ``{relative path: bytes}`` under *root*, creating directories."""
    for rel, data in files.items():
        p = root / rel
        p.parent.mkdir(parents=True, exist_ok=True)
        p.write_bytes(data)


@pytest.fixture
def repo_path(tmp_path):
    return str(tmp_path / "remote.git")


@pytest.fixture
def remote(repo_path):
    """A bare repository with an empty initial commit on 'main'."""
    return RecordingRepository.open(repo_path, create=True)


@pytest.fixture
def flaky_remote(tmp_path):
    return FlakyRepository.open(str(tmp_path / "flaky.git"), create=True)


@pytest.fixture
def work(tmp_path):
    """An empty workspace directory."""
    d = tmp_path / "work"
    d.mkdir()
    return d


@pytest.fixture
def keep_cwd():
    """Fail the test if the process working directory changes."""
    before = os.getcwd()
    yield before
    assert os.getcwd() == before


@pytest.fixture
def runner():
    return CliRunner()
