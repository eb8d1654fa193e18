"""Tests for treecommit.hashing."""

import pytest
from dulwich.objects import Blob

from treecommit.exceptions import LocalFileError
from treecommit.hashing import EMPTY_BLOB_OID, blob_oid, file_oid


class TestBlobOid:
    def test_empty_content_constant(self):
        assert blob_oid(b"") == EMPTY_BLOB_OID

    def test_known_content(self):
        # git hash-object of "hello world\n"
        assert blob_oid(b"hello world\n") == "3b18e512dba79e4c8300dd08aeb37f8e728b8dad"

    def test_deterministic(self):
        assert blob_oid(b"abc") == blob_oid(b"abc")

    def test_different_content_differs(self):
        assert blob_oid(b"abc") != blob_oid(b"abd")
        assert blob_oid(b"abc") != blob_oid(b"abc\n")

    def test_lowercase_hex(self):
        oid = blob_oid(b"\x00\xff" * 10)
        assert len(oid) == 40
        assert oid == oid.lower()
        int(oid, 16)

    def test_matches_dulwich(self):
        data = b"\x00\x01binary\nstuff" * 1000
        assert blob_oid(data) == Blob.from_string(data).id.decode()


class TestFileOid:
    def test_matches_in_memory(self, tmp_path):
        p = tmp_path / "f.bin"
        data = bytes(range(256)) * 700  # larger than one read chunk
        p.write_bytes(data)
        assert file_oid(p) == blob_oid(data)

    def test_empty_file(self, tmp_path):
        p = tmp_path / "empty"
        p.write_bytes(b"")
        assert file_oid(str(p)) == EMPTY_BLOB_OID

    def test_missing_file(self, tmp_path):
        with pytest.raises(LocalFileError) as exc_info:
            file_oid(tmp_path / "gone.txt")
        assert exc_info.value.path.endswith("gone.txt")

    def test_directory(self, tmp_path):
        with pytest.raises(LocalFileError):
            file_oid(tmp_path)

    def test_error_is_oserror(self, tmp_path):
        with pytest.raises(OSError):
            file_oid(tmp_path / "gone.txt")
