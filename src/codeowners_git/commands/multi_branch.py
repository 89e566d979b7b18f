"""Implementation for the ``codeowners-git multi-branch`` command."""

from __future__ import annotations

from .. import log
from ..errors import CodeownersGitError
from ..models import MultiBranchSummary
from ..services import MultiBranchRequest, MultiBranchService
from .resolve import resolve_remote, resolve_runtime


class OwnerFailuresError(CodeownersGitError):
    """At least one owner's branch could not be produced."""

    def __init__(self, owners: list[str]) -> None:
        super().__init__(
            "external_command_failed",
            f"branch operation failed for {len(owners)} owner(s): {', '.join(owners)}",
        )
        self.owners = owners


def render_summary(summary: MultiBranchSummary, *, append: bool, pr: bool, draft: bool) -> None:
    """Print the per-owner outcome of a multi-branch run."""
    if summary.nothing_to_do:
        log.info(f"Nothing to do: {summary.nothing_to_do}")
        return
    verb = "updated" if append else "created"
    log.header(f"Multi-branch {'update' if append else 'creation'} summary")
    log.info(
        f"Successfully {verb} branches for {len(summary.succeeded)} of "
        f"{len(summary.owners)} codeowners"
    )
    if summary.succeeded:
        log.success(f"Successful: {', '.join(summary.succeeded)}")
    if summary.skipped:
        log.info(f"Skipped (no files left): {', '.join(summary.skipped)}")
    if summary.failed:
        log.error(f"Failed: {', '.join(summary.failed)}")
    if summary.default_owner and summary.unowned_files:
        log.info(
            f"{len(summary.unowned_files)} unowned file(s) attributed to "
            f"{summary.default_owner} by default"
        )
    if pr or draft:
        label = "Draft pull request" if draft else "Pull request"
        log.header(f"{label} creation summary")
        branches = len(summary.succeeded) - len(summary.skipped)
        log.info(
            f"Created {len(summary.pr_succeeded)} of {branches} "
            f"{'draft ' if draft else ''}pull request(s)"
        )
        if summary.pr_succeeded:
            log.success(f"PRs created for: {', '.join(summary.pr_succeeded)}")
        if summary.pr_failed:
            log.warning(f"PR creation failed for: {', '.join(summary.pr_failed)}")


def create_multi_branch(args: object) -> None:
    """Create one branch per codeowner of the changed files.

    Example:
        $ codeowners-git multi-branch -b feature/x -m "Update" -p --pr
    """
    runtime = resolve_runtime()
    service = MultiBranchService(
        git=runtime.git,
        owners=runtime.owners,
        store=runtime.store,
        github=runtime.github,
    )
    summary = service(
        MultiBranchRequest(
            branch=args.branch,
            message=args.message,
            verify=not args.no_verify,
            push=args.push,
            remote=resolve_remote(args, runtime),
            upstream=args.upstream,
            force=args.force,
            keep_branch_on_failure=args.keep_branch_on_failure,
            default_owner=args.default_owner,
            ignore=args.ignore,
            include=args.include,
            append=args.append,
            pr=args.pr,
            draft_pr=args.draft_pr,
        )
    )
    render_summary(summary, append=args.append, pr=args.pr, draft=args.draft_pr)
    if summary.has_failures:
        raise OwnerFailuresError(summary.failed)
