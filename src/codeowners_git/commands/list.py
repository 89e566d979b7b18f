"""Implementation for the ``codeowners-git list`` command."""

from __future__ import annotations

from rich import box
from rich.table import Table

from .. import log
from ..io import say
from ..matcher import match_owners
from ..ownership import owner_files
from .resolve import resolve_runtime


def list_owners(args: object) -> None:
    """List changed files with their codeowners.

    Args:
        args: CLI argument object with optional ``owner`` (exact match) and
            ``include`` (comma-separated owner globs).

    Example:
        $ codeowners-git list -i "*ui*"
    """
    runtime = resolve_runtime()
    changed = runtime.git.changed_files()
    owner = getattr(args, "owner", None)
    if owner:
        files = owner_files(runtime.owners, owner, changed)
        log.header(f"Files owned by {owner}:")
        if not files:
            say("No files found.")
            return
        for path in files:
            log.file(path)
        return

    include = getattr(args, "include", None)
    rows = [(path, runtime.owners.owners_of(path)) for path in changed]
    if include:
        rows = [(path, owners) for path, owners in rows if match_owners(owners, include)]
    log.header(
        f"Changed files matching owners: {include}" if include else "Changed files with code owners:"
    )
    if not rows:
        say("No changed files found.")
        return
    table = Table(box=box.SIMPLE)
    table.add_column("No", justify="right", no_wrap=True)
    table.add_column("File", overflow="fold")
    table.add_column("Owners", overflow="fold")
    for index, (path, owners) in enumerate(rows, start=1):
        table.add_row(str(index), path, ", ".join(owners) or "-")
    log.console().print(table)
