from .commit import CommitPlan, CommitResult, PlannedFile, commit, plan_commit
from .exceptions import (
    LocalFileError,
    MissingConfigurationError,
    PathConflictError,
    PathTransformError,
    RefUpdateRejectedError,
    RemoteOperationError,
    TreeCommitError,
    UnsupportedModeError,
    WorkspaceBoundaryError,
)
from .hashing import EMPTY_BLOB_OID, blob_oid, file_oid
from .options import CommitOptions
from .remote import BareRepository, BlobEntry, CommitInfo, RemoteRepository, TreeEntry
from .scan import TreeScan, UnchangedSet, resolve_unchanged, scan_tree

__all__ = [
    "commit", "plan_commit", "CommitPlan", "CommitResult", "PlannedFile",
    "CommitOptions",
    "RemoteRepository", "BareRepository", "BlobEntry", "TreeEntry", "CommitInfo",
    "scan_tree", "resolve_unchanged", "TreeScan", "UnchangedSet",
    "blob_oid", "file_oid", "EMPTY_BLOB_OID",
    "TreeCommitError", "MissingConfigurationError", "LocalFileError",
    "PathTransformError", "PathConflictError", "UnsupportedModeError",
    "RemoteOperationError", "RefUpdateRejectedError", "WorkspaceBoundaryError",
]
