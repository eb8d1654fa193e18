"""Commit configuration."""

from __future__ import annotations

import dataclasses
from dataclasses import dataclass
from typing import Sequence

from .exceptions import MissingConfigurationError


@dataclass(frozen=True)
class CommitOptions:
    """Immutable settings for one commit.

    Attributes:
        message: Commit message (required, non-empty).
        source: Directory inside the workspace to commit from.  Its prefix
            is stripped from destination paths.
        target: Directory in the repository tree to commit into.
        include: Glob patterns selecting files, applied in order.
        exclude: Glob patterns removing files, applied after *include*.
        flatten: Keep only the file name of each destination path.
        force: Allow a non-fast-forward ref update.
        always: Create a commit even when nothing changed.
        max_workers: Thread pool bound for parallel stages (None: default).
    """
    message: str
    source: str | None = None
    target: str | None = None
    include: tuple[str, ...] | None = None
    exclude: tuple[str, ...] | None = None
    flatten: bool = False
    force: bool = False
    always: bool = False
    max_workers: int | None = None

    def __post_init__(self):
        if not self.message or not self.message.strip():
            raise MissingConfigurationError("message")
        if self.include is not None and not isinstance(self.include, tuple):
            object.__setattr__(self, "include", tuple(self.include))
        if self.exclude is not None and not isinstance(self.exclude, tuple):
            object.__setattr__(self, "exclude", tuple(self.exclude))
        if self.max_workers is not None and self.max_workers < 1:
            raise ValueError(f"max_workers must be at least 1, got {self.max_workers}")

    def with_source_directory(self, source: str | None) -> CommitOptions:
        return dataclasses.replace(self, source=source)

    def with_target_directory(self, target: str | None) -> CommitOptions:
        return dataclasses.replace(self, target=target)

    def with_include(self, include: Sequence[str] | None) -> CommitOptions:
        return dataclasses.replace(self, include=include)

    def with_exclude(self, exclude: Sequence[str] | None) -> CommitOptions:
        return dataclasses.replace(self, exclude=exclude)

    def with_flattening(self, flatten: bool = True) -> CommitOptions:
        return dataclasses.replace(self, flatten=flatten)

    def with_force(self, force: bool = True) -> CommitOptions:
        return dataclasses.replace(self, force=force)

    def with_always_commit(self, always: bool = True) -> CommitOptions:
        return dataclasses.replace(self, always=always)
