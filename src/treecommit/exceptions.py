"""Exceptions for treecommit."""

from __future__ import annotations


class TreeCommitError(Exception):
    """Base class for every error raised by the commit engine."""


class MissingConfigurationError(TreeCommitError, ValueError):
    """Raised when a required option is absent or empty."""

    def __init__(self, name: str):
        super().__init__(f"Missing required option: {name!r}")
        self.name = name


class LocalFileError(TreeCommitError, OSError):
    """Raised when a local file cannot be read or inspected.

    Covers files deleted between discovery and read, unreadable files,
    and missing source directories.
    """

    def __init__(self, path: str, reason: str):
        super().__init__(f"{reason}: {path!r}")
        self.path = path
        self.reason = reason


class PathTransformError(TreeCommitError, ValueError):
    """Raised when a candidate path is not under the configured source root."""

    def __init__(self, path: str, root: str):
        super().__init__(f"Path {path!r} is not under source root {root!r}")
        self.path = path
        self.root = root


class PathConflictError(TreeCommitError):
    """Raised when two distinct source paths map to the same destination."""

    def __init__(self, destination: str, path: str, other: str):
        super().__init__(
            f"Destination conflict for paths: [ '{path}', '{other}' ]"
            f" -> '{destination}'"
        )
        self.destination = destination
        self.path = path
        self.other = other


class UnsupportedModeError(TreeCommitError):
    """Raised when permission bits are neither executable nor readable."""

    def __init__(self, path: str, mode: int):
        super().__init__(f"Unsupported mode: '{mode:o}' for {path!r}")
        self.path = path
        self.mode = mode


class RemoteOperationError(TreeCommitError):
    """Raised when the object store rejects a read or write."""

    def __init__(self, operation: str, message: str):
        super().__init__(f"{operation} failed: {message}")
        self.operation = operation


class RefUpdateRejectedError(RemoteOperationError):
    """Raised when a ref update is not a fast-forward and force is not set.

    Retry with ``force=True`` to overwrite the diverged ref.
    """

    def __init__(self, ref: str, current: str, new: str):
        super().__init__(
            "update ref",
            f"{ref} at {current[:7]} is not an ancestor of {new[:7]} (use force to overwrite)",
        )
        self.ref = ref
        self.current = current
        self.new = new


class WorkspaceBoundaryError(TreeCommitError, ValueError):
    """Raised when the source directory resolves outside the workspace."""

    def __init__(self, path: str, root: str):
        super().__init__(f"Source path is not within workspace: {path!r} (workspace {root!r})")
        self.path = path
        self.root = root
