"""Commands: init, commit."""

from __future__ import annotations

import os

import click

from ..commit import commit as do_commit
from ..commit import plan_commit
from ..exceptions import TreeCommitError
from ..options import CommitOptions
from ..paths import workspace_scope
from ..remote import BareRepository
from ..selector import parse_patterns
from ._helpers import (
    main,
    _open_repo,
    _pattern_option,
    _repo_option,
    _require_repo,
    _status,
)


# ---------------------------------------------------------------------------
# init
# ---------------------------------------------------------------------------

@main.command()
@_repo_option
@click.option("--branch", "-b", default="main", help="Initial branch name (default: main).")
@click.pass_context
def init(ctx, branch):
    """Create a new bare git repository with an empty initial commit."""
    repo_path = _require_repo(ctx)
    if os.path.exists(repo_path):
        raise click.ClickException(f"Repository already exists: {repo_path}")
    BareRepository.open(repo_path, create=True, branch=branch)
    _status(ctx, f"Initialized {repo_path}")


# ---------------------------------------------------------------------------
# commit
# ---------------------------------------------------------------------------

@main.command()
@_repo_option
@click.option("--ref", default="main", envvar="TREECOMMIT_REF", show_default=True,
              help="Branch or full ref name to commit to.")
@click.option("-m", "--message", default=None, help="Commit message (required).")
@click.option("--source", default=None, help="Directory inside the workspace to commit from.")
@click.option("--target", default=None, help="Directory in the tree to commit into.")
@_pattern_option("include", "Glob of files to commit (repeatable).")
@_pattern_option("exclude", "Glob of files to leave out (repeatable).")
@click.option("--flatten", is_flag=True, default=False,
              help="Drop directories from destination paths.")
@click.option("--force", is_flag=True, default=False,
              help="Allow a non-fast-forward ref update.")
@click.option("--always", is_flag=True, default=False,
              help="Commit even when nothing changed.")
@click.option("--workspace", "-w", type=click.Path(file_okay=False), default=".",
              help="Workspace root (default: current directory).")
@click.option("-j", "--jobs", type=click.IntRange(min=1), default=None,
              help="Worker threads for hashing and blob creation.")
@click.option("-n", "--dry-run", is_flag=True, default=False,
              help="Show what would be committed without writing.")
@click.pass_context
def commit(ctx, ref, message, source, target, include, exclude, flatten,
           force, always, workspace, jobs, dry_run):
    """Commit files matching --include (minus --exclude) to a branch.

    Prints the resulting commit hash.  When nothing changed and --always
    is not given, the branch is left alone and its current hash is
    printed.

    \b
    Examples:
      treecommit commit -r site.git -m "Deploy" --source build --include '**'
      treecommit commit -r site.git -m "Docs" --include '*.md' --target docs
      treecommit commit -r site.git -m "Bins" --include 'out/*/*' --flatten
    """
    repo_path = _require_repo(ctx)
    if not message:
        raise click.ClickException("Missing option '--message'.")
    try:
        options = CommitOptions(
            message,
            source=source,
            target=target,
            include=parse_patterns(include) if include else None,
            exclude=parse_patterns(exclude) if exclude else None,
            flatten=flatten,
            force=force,
            always=always,
            max_workers=jobs,
        )
    except ValueError as exc:
        raise click.ClickException(str(exc))

    remote = _open_repo(repo_path)

    if dry_run:
        try:
            with workspace_scope(workspace, options.source) as ws:
                plan = plan_commit(remote, ref, options, ws)
        except TreeCommitError as exc:
            raise click.ClickException(str(exc))
        for f in plan.files:
            click.echo(f"+ {f.source} -> {f.destination}")
        _status(ctx, f"{len(plan.files)} file(s), {len(plan.unchanged)} unchanged")
        return

    try:
        result = do_commit(remote, ref, options, root=workspace)
    except TreeCommitError as exc:
        raise click.ClickException(str(exc))

    if result.created:
        _status(ctx, f"Committed {len(result.entries)} file(s) to {ref}")
    else:
        _status(ctx, f"Nothing to commit on {ref}")
    click.echo(result.oid)
