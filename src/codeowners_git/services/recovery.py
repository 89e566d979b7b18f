"""Recovery of failed or interrupted operations."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable

from .. import log
from ..errors import CodeownersGitError, UnexpectedStateError, ValidationFailedError
from ..git import GitProvider
from ..models import OperationRecord, RecoveryReport
from ..state import OperationStore
from .base import BaseService

OperationChooser = Callable[[list[OperationRecord]], OperationRecord | None]


@dataclass(frozen=True)
class RecoverRequest:
    operation_id: str | None = None
    auto: bool = False
    keep_branches: bool = False


class RecoveryService(BaseService[RecoverRequest, RecoveryReport | None]):
    """Return the repository to an operation's original branch and drop its record.

    Created branches are deleted unless ``keep_branches`` is set. A branch
    holding a commit that never reached a remote has its files restored into
    the working tree first; if that restore fails the branch is kept.
    """

    def __init__(
        self,
        *,
        git: GitProvider,
        store: OperationStore,
        chooser: OperationChooser | None = None,
    ) -> None:
        self.git = git
        self.store = store
        self.chooser = chooser

    def select(self, request: RecoverRequest) -> OperationRecord | None:
        """Pick the record to recover.

        Order: explicit id, the only incomplete record, the newest one with
        ``auto``, then the interactive chooser.
        """
        if request.operation_id:
            return self.store.get(request.operation_id)
        incomplete = self.store.list_incomplete()
        if not incomplete:
            return None
        if len(incomplete) == 1:
            return incomplete[0]
        if request.auto:
            log.info(f"Auto-selecting most recent operation: {incomplete[0].id}")
            return incomplete[0]
        if self.chooser is None:
            raise ValidationFailedError(
                f"{len(incomplete)} incomplete operations found",
                recovery_hint="choose one with --id <id>, or use --auto for the most recent",
            )
        return self.chooser(incomplete)

    def _run(self, request: RecoverRequest) -> RecoveryReport | None:
        record = self.select(request)
        if record is None:
            log.info("No incomplete operations found.")
            return None
        return self.recover(record, keep_branches=request.keep_branches)

    def recover(self, record: OperationRecord, *, keep_branches: bool = False) -> RecoveryReport:
        log.header(f"Recovering operation {record.id}")
        switched = self._return_to_original(record)

        deleted: list[str] = []
        absent: list[str] = []
        kept: list[str] = []
        failed: list[str] = []
        restored: list[str] = []
        created = record.created_branches()
        if keep_branches:
            kept = [branch.name for branch in created]
            if kept:
                log.info(f"Keeping {len(kept)} branch(es) (--keep-branches)")
        else:
            for branch in created:
                if not self.git.branch_exists(branch.name):
                    log.info(f'Branch "{branch.name}" already removed')
                    absent.append(branch.name)
                    continue
                if branch.committed and not branch.pushed and branch.files:
                    try:
                        restored.extend(
                            self.git.restore_files_from_ref(branch.name, list(branch.files))
                        )
                    except CodeownersGitError as exc:
                        log.error(f"Failed to restore files from {branch.name}: {exc}")
                        log.warning(f'Branch "{branch.name}" was kept so its commit stays reachable.')
                        failed.append(branch.name)
                        continue
                try:
                    self.git.delete_branch(branch.name, force=True)
                except CodeownersGitError as exc:
                    log.error(str(exc))
                    failed.append(branch.name)
                    continue
                deleted.append(branch.name)

        self.store.delete(record.id)
        log.success(f"Operation {record.id} recovered")
        if failed:
            log.warning(f"{len(failed)} branch(es) need manual cleanup: {', '.join(failed)}")
        return RecoveryReport(
            operation_id=record.id,
            original_branch=record.original_branch,
            switched_branch=switched,
            deleted=tuple(deleted),
            already_absent=tuple(absent),
            kept=tuple(kept),
            failed=tuple(failed),
            restored_files=tuple(restored),
        )

    def _return_to_original(self, record: OperationRecord) -> bool:
        current = self.git.current_branch()
        if current == record.original_branch:
            return False
        log.info(f'Returning from "{current}" to original branch "{record.original_branch}"...')
        try:
            self.git.checkout(record.original_branch)
        except CodeownersGitError as exc:
            raise UnexpectedStateError(
                f'failed to return to original branch "{record.original_branch}": {exc}',
                recovery_hint=(
                    f"resolve the working tree (git status), run "
                    f"'git checkout {record.original_branch}', then "
                    f"'codeowners-git recover --id {record.id}'"
                ),
            ) from exc
        return True
