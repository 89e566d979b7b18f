"""Multi-owner orchestration.

One ``BranchService`` run per distinct owner touching the change-set, strictly
sequential, all nested under a single ``multi-branch`` operation record. One
owner's failure is recorded and reported without stopping the owners after
it, unless the repository could not be returned to the original branch.
"""

from __future__ import annotations

import re
from collections import defaultdict
from dataclasses import dataclass

from .. import log
from ..errors import (
    CodeownersGitError,
    PreconditionFailedError,
    UnexpectedStateError,
    ValidationFailedError,
)
from ..git import GitProvider
from ..github import PullRequestProvider
from ..matcher import filter_owners
from ..models import MultiBranchSummary, OperationOptions
from ..ownership import OwnerLookup
from ..state import OperationStore
from .base import BaseService
from .branch import (
    BranchRequest,
    BranchService,
    ensure_no_staged_changes,
    resolve_original_branch,
    validate_pr_flags,
)

_UNSAFE_BRANCH_CHARS = re.compile(r"[^a-zA-Z0-9\-_@]")

NO_CODEOWNERS_FOUND = "no codeowners found"
NO_OWNERS_AFTER_FILTER = "no owners left after filtering"


def sanitize_owner(owner: str) -> str:
    """Map an owner identifier to a branch-name-safe suffix.

    Example:
        >>> sanitize_owner("@org/team.ui")
        'org-team-ui'
        >>> sanitize_owner("dev@example.com")
        'dev@example-com'
    """
    return _UNSAFE_BRANCH_CHARS.sub("-", owner).removeprefix("@")


def branch_name_for(base_branch: str, owner: str) -> str:
    """Return the per-owner branch name under ``base_branch``.

    Example:
        >>> branch_name_for("feature/x", "@frontend")
        'feature/x/frontend'
    """
    return f"{base_branch}/{sanitize_owner(owner)}"


@dataclass(frozen=True)
class MultiBranchRequest:
    branch: str
    message: str
    verify: bool = True
    push: bool = False
    remote: str = "origin"
    upstream: str | None = None
    force: bool = False
    keep_branch_on_failure: bool = False
    default_owner: str | None = None
    ignore: str | None = None
    include: str | None = None
    append: bool = False
    pr: bool = False
    draft_pr: bool = False

    def options(self) -> OperationOptions:
        return OperationOptions(
            verify=self.verify,
            push=self.push,
            remote=self.remote,
            upstream=self.upstream,
            force=self.force,
            keep_branch_on_failure=self.keep_branch_on_failure,
            append=self.append,
            pr=self.pr,
            draft_pr=self.draft_pr,
            default_owner=self.default_owner,
            ignore=self.ignore,
            include=self.include,
        )


@dataclass(frozen=True)
class _PlannedBranch:
    owner: str
    branch_name: str
    message: str
    upstream: str | None


def find_collisions(plan: list[_PlannedBranch]) -> dict[str, list[str]]:
    by_branch: dict[str, list[str]] = defaultdict(list)
    for item in plan:
        by_branch[item.branch_name].append(item.owner)
    return {name: owners for name, owners in by_branch.items() if len(owners) > 1}


class MultiBranchService(BaseService[MultiBranchRequest, MultiBranchSummary]):
    """Fan the working-tree change-set out into one branch per owner."""

    def __init__(
        self,
        *,
        git: GitProvider,
        owners: OwnerLookup,
        store: OperationStore,
        github: PullRequestProvider | None = None,
    ) -> None:
        self.git = git
        self.owners = owners
        self.store = store
        self.branch_service = BranchService(git=git, owners=owners, store=store, github=github)

    def _validate(self, request: MultiBranchRequest) -> None:
        if not request.branch or not request.branch.strip():
            raise ValidationFailedError("missing required option: --branch")
        if not request.message or not request.message.strip():
            raise ValidationFailedError("missing required option: --message")
        if request.ignore and request.include:
            raise ValidationFailedError(
                "cannot use both --ignore and --include options at the same time"
            )
        validate_pr_flags(pr=request.pr, draft_pr=request.draft_pr, push=request.push)

    def _run(self, request: MultiBranchRequest) -> MultiBranchSummary:
        self._validate(request)
        ensure_no_staged_changes(self.git)
        original_branch = resolve_original_branch(self.git)

        changed = self.git.changed_files()
        if not changed:
            raise PreconditionFailedError("no changed files found in the repository")

        owners, unowned = self._collect_owners(changed)
        summary = MultiBranchSummary(
            operation_id="",
            original_branch=original_branch,
            default_owner=request.default_owner,
        )
        if unowned:
            log.warning(f"{len(unowned)} changed file(s) have no owner")
            if request.default_owner:
                summary.unowned_files = unowned
                if request.default_owner not in owners:
                    owners.append(request.default_owner)
                log.info(f"Unowned files will be assigned to {request.default_owner}")

        if not owners:
            log.warning("No codeowners found for the changed files")
            summary.nothing_to_do = NO_CODEOWNERS_FOUND
            return summary

        owners = filter_owners(owners, include=request.include, ignore=request.ignore)
        if not owners:
            log.warning("No owners left after filtering")
            summary.nothing_to_do = NO_OWNERS_AFTER_FILTER
            return summary
        summary.owners = list(owners)

        plan = self._plan(request, owners)
        collisions = find_collisions(plan)
        if collisions:
            details = "; ".join(
                f"{name} <- {', '.join(colliding)}" for name, colliding in collisions.items()
            )
            raise ValidationFailedError(
                f"owners map to the same branch name: {details}",
                recovery_hint="use --include or --ignore to process the colliding owners separately",
            )

        record = self.store.create("multi-branch", original_branch, request.options())
        summary.operation_id = record.id
        log.info(f"Operation ID: {record.id}")
        log.info(f"Found {len(owners)} owner(s): {', '.join(owners)}")
        try:
            for item in plan:
                self._process(request, item, record.id, summary)
                self._ensure_on_original(original_branch, item)
        except Exception as exc:
            self.store.fail(record.id, str(exc))
            if isinstance(exc, CodeownersGitError):
                recover = f"codeowners-git recover --id {record.id}"
                exc.recovery_hint = (
                    f"{exc.recovery_hint}; then run: {recover}" if exc.recovery_hint else recover
                )
            raise
        self.store.complete(record.id)
        return summary

    def _collect_owners(self, changed: list[str]) -> tuple[list[str], list[str]]:
        """Return the owner universe in order of first appearance and the unowned paths."""
        owners: dict[str, None] = {}
        unowned: list[str] = []
        for path in changed:
            resolved = self.owners.owners_of(path)
            if not resolved:
                unowned.append(path)
            for owner in resolved:
                owners.setdefault(owner, None)
        return list(owners), unowned

    def _plan(self, request: MultiBranchRequest, owners: list[str]) -> list[_PlannedBranch]:
        plan: list[_PlannedBranch] = []
        for owner in owners:
            suffix = sanitize_owner(owner)
            plan.append(
                _PlannedBranch(
                    owner=owner,
                    branch_name=branch_name_for(request.branch, owner),
                    message=f"{request.message} - {owner}",
                    upstream=f"{request.upstream}/{suffix}" if request.upstream else None,
                )
            )
        return plan

    def _ensure_on_original(self, original_branch: str, item: _PlannedBranch) -> None:
        """Stop the run if an owner left the repository off the original branch.

        Later owners would otherwise branch from the wrong commit.
        """
        current = self.git.current_branch()
        if current == original_branch:
            return
        raise UnexpectedStateError(
            f'repository is on "{current}" instead of "{original_branch}" after '
            f"processing {item.owner}; remaining owners were not processed",
            recovery_hint=f"git checkout {original_branch}",
        )

    def _process(
        self,
        request: MultiBranchRequest,
        item: _PlannedBranch,
        operation_id: str,
        summary: MultiBranchSummary,
    ) -> None:
        log.header(f"Processing owner: {item.owner}")
        log.info(f"Branch: {item.branch_name}")
        result = self.branch_service(
            BranchRequest(
                owner=item.owner,
                branch_name=item.branch_name,
                message=item.message,
                verify=request.verify,
                push=request.push,
                remote=request.remote,
                upstream=item.upstream,
                force=request.force,
                keep_branch_on_failure=request.keep_branch_on_failure,
                is_default_owner=item.owner == request.default_owner,
                append=request.append,
                pr=request.pr,
                draft_pr=request.draft_pr,
                operation_id=operation_id,
                raise_on_failure=False,
            )
        )
        summary.results[item.owner] = result
        if result.no_files:
            summary.succeeded.append(item.owner)
            summary.skipped.append(item.owner)
            return
        if not result.success:
            log.error(f"Failed to process {item.owner}: {result.error}")
            if result.preserved:
                log.info(f"Preserved: {result.preserved}")
            summary.failed.append(item.owner)
            return
        summary.succeeded.append(item.owner)
        if request.pr or request.draft_pr:
            if result.pr_created:
                summary.pr_succeeded.append(item.owner)
            else:
                summary.pr_failed.append(item.owner)
