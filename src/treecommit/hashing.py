"""Git blob hashing for local content."""

from __future__ import annotations

import hashlib
import os

from .exceptions import LocalFileError

_HASH_CHUNK_SIZE = 65536

EMPTY_BLOB_OID = "e69de29bb2d1d6434b8b29ae775ad8c2e48c5391"


def blob_hasher(size: int) -> hashlib._Hash:
    """Return a SHA-1 hasher pre-loaded with the git blob header.

    Git blob OID = SHA-1(``blob <size>\\0`` + content).
    """
    return hashlib.sha1(f"blob {size}\0".encode())


def blob_oid(data: bytes) -> str:
    """Compute the git blob OID of in-memory *data*."""
    h = blob_hasher(len(data))
    h.update(data)
    return h.hexdigest()


def file_oid(path: str | os.PathLike[str]) -> str:
    """Compute the git blob OID of a file on disk.

    The size comes from ``fstat`` on the same handle the content is
    streamed from, so a file replaced between discovery and read is
    hashed consistently.  Content appended while streaming still yields
    a hash that matches neither state.
    """
    try:
        with open(path, "rb") as f:
            size = os.fstat(f.fileno()).st_size
            h = blob_hasher(size)
            while True:
                chunk = f.read(_HASH_CHUNK_SIZE)
                if not chunk:
                    break
                h.update(chunk)
    except OSError as exc:
        raise LocalFileError(os.fspath(path), exc.strerror or "Cannot read file") from exc
    return h.hexdigest()
