"""Shared helpers, option decorators, and the main CLI group."""

from __future__ import annotations

import logging

import click

from ..remote import BareRepository


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def _status(ctx, msg):
    """Emit a status message to stderr when verbose mode (-v) is on."""
    if ctx.obj.get("verbose"):
        click.echo(msg, err=True)


def _store_repo(ctx, param, value):
    """Click callback: store --repo value in the context."""
    ctx.ensure_object(dict)
    if value is not None:
        ctx.obj["repo_path"] = value
    return value


def _repo_option(f):
    """Shared --repo/-r option decorator for all commands."""
    return click.option(
        "--repo", "-r", type=click.Path(), envvar="TREECOMMIT_REPO",
        help="Path to bare git repository (or set TREECOMMIT_REPO).",
        expose_value=False, callback=_store_repo, is_eager=True,
    )(f)


def _require_repo(ctx) -> str:
    """Get the repo path from context, raising a clear error if missing."""
    repo = ctx.obj.get("repo_path")
    if not repo:
        raise click.ClickException(
            "No repository specified. Use --repo or set TREECOMMIT_REPO."
        )
    return repo


def _open_repo(repo_path: str) -> BareRepository:
    try:
        return BareRepository.open(repo_path, create=False)
    except FileNotFoundError as exc:
        raise click.ClickException(str(exc))


class _PatternOption(click.Option):
    """Option whose environment value is split on newlines only.

    Click splits ``multiple`` envvars on whitespace, which would break
    patterns such as ``My Docs/*.txt``.
    """

    def value_from_envvar(self, ctx):
        rv = self.resolve_envvar_value(ctx)
        if rv is None:
            return None
        return rv.splitlines()


def _pattern_option(name: str, help: str):
    """Repeatable glob option; each value may hold newline-separated patterns."""
    def decorator(f):
        return click.option(
            f"--{name}", multiple=True, metavar="PATTERN", cls=_PatternOption,
            envvar=f"TREECOMMIT_{name.upper()}", help=help,
        )(f)
    return decorator


def _configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )


# ---------------------------------------------------------------------------
# Main group
# ---------------------------------------------------------------------------

@click.group()
@click.option("--repo", "-r", type=click.Path(), envvar="TREECOMMIT_REPO",
              help="Path to bare git repository (or set TREECOMMIT_REPO).",
              expose_value=False, callback=_store_repo, is_eager=True)
@click.option("-v", "--verbose", is_flag=True, help="Verbose output on stderr.")
@click.pass_context
def main(ctx, verbose):
    """treecommit: commit a working tree into a bare git repository.

    Selects files with include/exclude globs, skips files whose content
    already matches the branch, and publishes one commit with only the
    changed blobs.

    \b
    Quick start:
      treecommit init -r site.git
      treecommit commit -r site.git -m "Publish" --include '**/*.html'

    \b
    Set TREECOMMIT_REPO to avoid passing --repo on every call.
    """
    ctx.ensure_object(dict)
    ctx.obj["verbose"] = verbose
    _configure_logging(verbose)
