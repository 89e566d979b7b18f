"""Implementation for the ``codeowners-git branch`` command."""

from __future__ import annotations

from .. import log
from ..services import BranchRequest, BranchService
from .resolve import resolve_remote, resolve_runtime


def create_branch(args: object) -> None:
    """Commit one owner's changed files to a branch.

    Args:
        args: CLI argument object with ``owner``, ``branch``, ``message`` and
            the push/PR flags.

    Example:
        $ codeowners-git branch -o @org/ui -b feature/ui -m "Update UI" -p
    """
    runtime = resolve_runtime()
    service = BranchService(
        git=runtime.git,
        owners=runtime.owners,
        store=runtime.store,
        github=runtime.github,
    )
    result = service(
        BranchRequest(
            owner=args.owner,
            branch_name=args.branch,
            message=args.message,
            verify=not args.no_verify,
            push=args.push,
            remote=resolve_remote(args, runtime),
            upstream=args.upstream,
            force=args.force,
            keep_branch_on_failure=args.keep_branch_on_failure,
            append=args.append,
            pr=args.pr,
            draft_pr=args.draft_pr,
        )
    )
    if result.no_files:
        log.warning(f"Nothing to commit for {args.owner}.")
        return
    if result.pr_error:
        log.warning(f"Branch is ready but the pull request was not created: {result.pr_error}")
