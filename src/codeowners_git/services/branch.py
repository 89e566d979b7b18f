"""Single-owner branch operation.

Creates (or appends to) one branch holding exactly one owner's changed files,
optionally pushes it and opens a pull request, and always hands the
repository back on its original branch. When a git stage fails, committed
files are restored into the working tree before a freshly created branch is
deleted; if restoring fails the branch is kept instead. Appending to an
existing branch carries the owner's files across the checkout in a git
stash, which is dropped once the commit lands and applied back onto the
original branch if it does not.
"""

from __future__ import annotations

from dataclasses import dataclass

from .. import log
from ..errors import (
    BranchOperationError,
    CodeownersGitError,
    IoFailedError,
    PreconditionFailedError,
    UnexpectedStateError,
    ValidationFailedError,
)
from ..git import GitProvider
from ..github import GithubClient, PullRequestProvider, find_pr_template
from ..models import NO_FILES_ERROR, BranchResult, OperationOptions, OperationStage
from ..ownership import OwnerLookup, owner_files
from ..state import OperationStore
from .base import BaseService


@dataclass(frozen=True)
class BranchRequest:
    owner: str
    branch_name: str
    message: str
    verify: bool = True
    push: bool = False
    remote: str = "origin"
    upstream: str | None = None
    force: bool = False
    keep_branch_on_failure: bool = False
    is_default_owner: bool = False
    append: bool = False
    pr: bool = False
    draft_pr: bool = False
    operation_id: str | None = None
    raise_on_failure: bool = True

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
        )


@dataclass
class _Progress:
    files: tuple[str, ...]
    stage: OperationStage = "initializing"
    on_branch: bool = False
    created: bool = False
    staged: bool = False
    committed: bool = False
    pushed: bool = False
    stash: str | None = None


def validate_pr_flags(*, pr: bool, draft_pr: bool, push: bool) -> None:
    if pr and draft_pr:
        raise ValidationFailedError("cannot use both --pr and --draft-pr options")
    if (pr or draft_pr) and not push:
        raise ValidationFailedError("pull request creation requires --push option")


def ensure_no_staged_changes(git: GitProvider) -> None:
    """Refuse to run while the index holds user-staged work."""
    staged = git.staged_files()
    if not staged:
        return
    listing = "\n".join(f"  - {path}" for path in staged)
    raise PreconditionFailedError(
        "staged changes detected; changes need to be unstaged for this to work.\n"
        f"Staged files:\n{listing}",
        recovery_hint="git restore --staged .  (or: git restore --staged <file>)",
    )


def resolve_original_branch(git: GitProvider) -> str:
    branch = git.current_branch()
    if not branch or branch == "HEAD":
        raise PreconditionFailedError(
            "repository is in a detached HEAD state",
            recovery_hint="check out a branch before running this command",
        )
    return branch


class BranchService(BaseService[BranchRequest, BranchResult]):
    """Run the branch/commit/push/PR sequence for one owner."""

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
        self.github = github or GithubClient()

    def _validate(self, request: BranchRequest) -> None:
        missing = [
            label
            for label, value in (
                ("owner", request.owner),
                ("branch", request.branch_name),
                ("message", request.message),
            )
            if not value or not value.strip()
        ]
        if missing:
            raise ValidationFailedError(
                f"missing required options for branch creation: {', '.join(missing)}"
            )
        validate_pr_flags(pr=request.pr, draft_pr=request.draft_pr, push=request.push)
        if not self.git.is_valid_branch_name(request.branch_name):
            raise ValidationFailedError(f'"{request.branch_name}" is not a valid branch name')

    def _run(self, request: BranchRequest) -> BranchResult:
        self._validate(request)
        ensure_no_staged_changes(self.git)
        original_branch = resolve_original_branch(self.git)

        files = owner_files(
            self.owners,
            request.owner,
            self.git.changed_files(),
            include_unowned=request.is_default_owner,
        )
        if not files:
            log.warning(f"No files found for {request.owner}")
            return BranchResult(
                success=False,
                branch_name=request.branch_name,
                owner=request.owner,
                error=f"{NO_FILES_ERROR} {request.owner}",
                no_files=True,
            )

        exists = self.git.branch_exists(request.branch_name)
        if exists and not request.append:
            raise PreconditionFailedError(
                f'branch "{request.branch_name}" already exists',
                recovery_hint="use --append to add a commit to the existing branch",
            )
        if request.append and not exists:
            raise PreconditionFailedError(
                f'branch "{request.branch_name}" does not exist; nothing to append to',
                recovery_hint="drop --append to create the branch",
            )

        owns_record = request.operation_id is None
        if owns_record:
            record = self.store.create("single-branch", original_branch, request.options())
            operation_id = record.id
            log.info(f"Operation ID: {operation_id}")
        else:
            operation_id = request.operation_id
        self.store.upsert_branch(
            operation_id, request.branch_name, owner=request.owner, files=files
        )

        log.info(f"Currently on branch: {original_branch}")
        log.info("Files to be committed:")
        for path in files:
            log.file(path)

        progress = _Progress(files=tuple(files))
        pr_url: str | None = None
        pr_number: int | None = None
        pr_error: str | None = None
        finished = False
        try:
            self._checkout_target(request, operation_id, progress, exists=exists)
            self._commit(request, operation_id, progress)
            self._release_stash(progress)
            if request.push:
                self._push(request, operation_id, progress)
            if request.pr or request.draft_pr:
                pr_url, pr_number, pr_error = self._open_pull_request(
                    request, operation_id, progress
                )
            finished = True
        except Exception as exc:
            message = f"{progress.stage} failed for {request.branch_name}: {exc}"
            log.error(message)
            preserved = self._cleanup_after_failure(request, original_branch, progress)
            if isinstance(exc, IoFailedError):
                log.info(f"Preserved: {preserved}")
                raise
            self.store.upsert_branch(operation_id, request.branch_name, error=message)
            if owns_record:
                self.store.fail(operation_id, message)
            hint = None
            if owns_record:
                hint = f"codeowners-git recover --id {operation_id}"
            raise BranchOperationError(
                message,
                branch_name=request.branch_name,
                stage=progress.stage,
                files=progress.files,
                preserved=preserved,
                recovery_hint=hint,
            ) from exc
        finally:
            returned = self._return_to(original_branch)
            if not returned and finished:
                raise UnexpectedStateError(
                    f'could not return to original branch "{original_branch}"',
                    recovery_hint=f"git checkout {original_branch}",
                )

        if owns_record:
            self.store.complete(operation_id)
        verb = "updated" if request.append else "created"
        log.success(f'Branch "{request.branch_name}" {verb} and changes committed.')
        return BranchResult(
            success=True,
            branch_name=request.branch_name,
            owner=request.owner,
            files=progress.files,
            created=progress.created,
            committed=progress.committed,
            pushed=progress.pushed,
            pr_url=pr_url,
            pr_number=pr_number,
            pr_error=pr_error,
        )

    def _handle_failure(self, request: BranchRequest, error: CodeownersGitError) -> BranchResult:
        if request.raise_on_failure or isinstance(error, IoFailedError):
            raise error
        files: tuple[str, ...] = ()
        preserved = None
        if isinstance(error, BranchOperationError):
            files = error.files
            preserved = error.preserved
        elif request.operation_id is not None:
            self.store.upsert_branch(
                request.operation_id,
                request.branch_name,
                owner=request.owner,
                error=str(error),
            )
        return BranchResult(
            success=False,
            branch_name=request.branch_name,
            owner=request.owner,
            files=files,
            error=str(error),
            preserved=preserved,
        )

    def _stage(self, operation_id: str, progress: _Progress, stage: OperationStage) -> None:
        progress.stage = stage
        self.store.update(operation_id, current_stage=stage)

    def _checkout_target(
        self,
        request: BranchRequest,
        operation_id: str,
        progress: _Progress,
        *,
        exists: bool,
    ) -> None:
        self._stage(operation_id, progress, "creating-branch")
        if exists:
            # The owner's edits would block the checkout; carry them over in a stash.
            files = list(progress.files)
            progress.stash = self.git.stash_files(
                files, f"codeowners-git: {request.branch_name}"
            )
            log.info(f'Checking out existing branch "{request.branch_name}"...')
            self.git.checkout(request.branch_name)
            progress.on_branch = True
            if progress.stash is not None:
                self.git.apply_stashed_files(progress.stash, files)
            return
        log.info(f'Creating new branch "{request.branch_name}"...')
        self.git.create_branch(request.branch_name)
        progress.on_branch = True
        progress.created = True
        self.store.upsert_branch(operation_id, request.branch_name, created=True)

    def _commit(self, request: BranchRequest, operation_id: str, progress: _Progress) -> None:
        self._stage(operation_id, progress, "committing")
        progress.staged = True
        self.git.commit(list(progress.files), request.message, verify=request.verify)
        progress.committed = True
        self.store.upsert_branch(operation_id, request.branch_name, committed=True)

    def _push(self, request: BranchRequest, operation_id: str, progress: _Progress) -> None:
        self._stage(operation_id, progress, "pushing")
        self.git.push(
            request.branch_name,
            remote=request.remote,
            upstream=request.upstream,
            force=request.force,
            verify=request.verify,
        )
        progress.pushed = True
        self.store.upsert_branch(operation_id, request.branch_name, pushed=True)

    def _release_stash(self, progress: _Progress) -> None:
        if progress.stash is None:
            return
        stash, progress.stash = progress.stash, None
        try:
            self.git.drop_stash(stash)
        except CodeownersGitError as exc:
            log.warning(f"Could not drop stash {stash}: {exc}")

    def _open_pull_request(
        self, request: BranchRequest, operation_id: str, progress: _Progress
    ) -> tuple[str | None, int | None, str | None]:
        """Create the PR; failures are annotated on the branch record, never raised."""
        self._stage(operation_id, progress, "creating-pr")
        kind = "draft pull request" if request.draft_pr else "pull request"
        log.info(f"Creating {kind} for {request.branch_name}...")
        try:
            base = self.git.default_branch(request.remote)
            template = find_pr_template(self.git.repo_dir)
            if template is not None:
                log.info("Using PR template for pull request body")
            pull_request = self.github.create_pull_request(
                title=request.message,
                body=template.content if template else "",
                draft=request.draft_pr,
                base=base,
                head=request.upstream or request.branch_name,
                cwd=self.git.repo_dir,
            )
        except Exception as exc:
            message = f"PR creation failed: {exc}"
            log.warning(message)
            self.store.upsert_branch(operation_id, request.branch_name, error=message)
            return None, None, message
        if not pull_request.url:
            message = "PR creation failed: gh reported no pull request"
            log.warning(message)
            self.store.upsert_branch(operation_id, request.branch_name, error=message)
            return None, None, message
        self.store.upsert_branch(
            operation_id,
            request.branch_name,
            pr_created=True,
            pr_url=pull_request.url,
        )
        return pull_request.url, pull_request.number, None

    def _return_to(self, original_branch: str) -> bool:
        try:
            if self.git.current_branch() == original_branch:
                return True
            log.info(f'Checking out original branch "{original_branch}"...')
            self.git.checkout(original_branch)
        except CodeownersGitError as exc:
            log.error(f"Failed to return to {original_branch}: {exc}")
            log.info(f"You may need to manually run: git checkout {original_branch}")
            return False
        return True

    def _bring_back_stash(
        self, request: BranchRequest, original_branch: str, progress: _Progress
    ) -> str:
        """Return files set aside for an append to the original branch's working tree."""
        name = request.branch_name
        stash = progress.stash
        files = list(progress.files)
        if progress.on_branch:
            try:
                self.git.restore_files_from_ref(name, files)
            except CodeownersGitError as exc:
                log.warning(f"Could not reset files on {name}: {exc}")
        if not self._return_to(original_branch):
            return (
                f'repository left on branch "{name}"; files kept in stash {stash}; '
                f"run: git checkout {original_branch} && git stash apply {stash}"
            )
        try:
            self.git.apply_stashed_files(stash, files)
        except CodeownersGitError as exc:
            log.error(f"Failed to bring back stashed files: {exc}")
            return f"files kept in stash {stash}; run: git stash apply {stash}"
        self._release_stash(progress)
        return "files left in the working tree"

    def _cleanup_after_failure(
        self, request: BranchRequest, original_branch: str, progress: _Progress
    ) -> str:
        """Put the working tree back and decide the branch's fate.

        Returns:
            A short description of what was preserved.
        """
        name = request.branch_name
        files = list(progress.files)
        if progress.staged and not progress.committed:
            try:
                self.git.unstage(files)
            except CodeownersGitError as exc:
                log.warning(f"Could not unstage files after failed commit: {exc}")
        if progress.stash is not None:
            return self._bring_back_stash(request, original_branch, progress)
        if not progress.on_branch:
            return "working tree left unchanged"
        if not self._return_to(original_branch):
            return f'repository left on branch "{name}"; run: git checkout {original_branch}'
        if not progress.created:
            if progress.committed:
                return f'changes committed on existing branch "{name}"'
            return "files left in the working tree"
        if request.keep_branch_on_failure:
            log.info(f'Keeping branch "{name}" (--keep-branch-on-failure)')
            if progress.committed:
                return f'changes kept in commit on branch "{name}"'
            return f'branch "{name}" kept; files left in the working tree'
        if progress.committed:
            try:
                self.git.restore_files_from_ref(name, files)
            except CodeownersGitError as exc:
                log.error(f"Failed to restore files from {name}: {exc}")
                log.warning(f'Branch "{name}" was NOT deleted so its changes stay reachable.')
                log.info("Recover the files manually with:")
                for path in files:
                    log.info(f"  git checkout {name} -- {path}")
                return f'branch "{name}" kept because restoring files failed'
            log.success("Files restored to working directory")
        try:
            self.git.delete_branch(name, force=True)
        except CodeownersGitError as exc:
            log.error(f"Failed to delete branch {name}: {exc}")
            log.info(f"You may need to manually run: git branch -D {name}")
            if progress.committed:
                return f'files restored unstaged; branch "{name}" could not be deleted'
            return f'files left in the working tree; branch "{name}" could not be deleted'
        if progress.committed:
            return f'files restored unstaged; branch "{name}" deleted'
        return f'files left in the working tree; branch "{name}" deleted'
