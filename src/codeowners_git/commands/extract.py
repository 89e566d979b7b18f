"""Implementation for the ``codeowners-git extract`` command."""

from __future__ import annotations

from ..services import ExtractRequest, ExtractService
from .resolve import resolve_remote, resolve_runtime


def extract_files(args: object) -> None:
    """Copy files changed on ``args.source`` into the working tree, unstaged.

    Example:
        $ codeowners-git extract -s feature/other -o "*ui*"
    """
    runtime = resolve_runtime()
    service = ExtractService(git=runtime.git, owners=runtime.owners)
    service(
        ExtractRequest(
            source=args.source,
            owner=args.owner,
            compare_main=args.compare_main,
            remote=resolve_remote(args, runtime),
        )
    )
