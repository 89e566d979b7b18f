"""Implementation for the ``codeowners-git recover`` command."""

from __future__ import annotations

from rich import box
from rich.table import Table

from .. import log
from ..io import confirm, say, select
from ..models import OperationRecord, RecoveryReport
from ..services import RecoverRequest, RecoveryService
from ..state import OperationStore
from .resolve import resolve_runtime


def _branch_table(record: OperationRecord) -> Table:
    table = Table(box=box.SIMPLE)
    table.add_column("Branch", overflow="fold")
    table.add_column("Owner", no_wrap=True)
    table.add_column("Files", justify="right")
    table.add_column("Status", overflow="fold")
    for branch in record.branches:
        table.add_row(
            branch.name,
            branch.owner,
            str(len(branch.files)),
            ", ".join(branch.status_labels()) or "pending",
        )
    return table


def describe_operation(record: OperationRecord) -> None:
    log.header(f"Operation {record.id}")
    say(f"  Type: {record.kind}")
    say(f"  Started: {record.timestamp.isoformat(timespec='seconds')}")
    say(f"  Original branch: {record.original_branch}")
    say(f"  Stage: {record.current_stage}")
    if record.error:
        say(f"  Error: {record.error}")
    if record.branches:
        log.console().print(_branch_table(record))


def list_operations(store: OperationStore) -> None:
    incomplete = store.list_incomplete()
    if not incomplete:
        say("No incomplete operations found.")
        return
    log.header(f"Found {len(incomplete)} incomplete operation(s):")
    for record in incomplete:
        describe_operation(record)
    log.info("Recover with: codeowners-git recover --id <id>  (or --auto for the most recent)")


def choose_operation(records: list[OperationRecord]) -> OperationRecord | None:
    choices = [
        (
            f"{record.id}  {record.kind}  {record.timestamp.isoformat(timespec='seconds')}"
            f"  ({record.current_stage})",
            record.id,
        )
        for record in records
    ]
    selected = select("Select an operation to recover:", choices)
    for record in records:
        if record.id == selected:
            return record
    return None


def _report(report: RecoveryReport) -> None:
    if report.switched_branch:
        log.info(f"Returned to {report.original_branch}")
    for name in report.deleted:
        log.info(f"Deleted branch {name}")
    if report.restored_files:
        log.info(f"Restored {len(report.restored_files)} file(s) into the working tree")
    for name in report.kept:
        log.info(f"Kept branch {name}")
    for name in report.failed:
        log.warning(f"Branch {name} still needs manual cleanup: git branch -D {name}")


def recover_operation(args: object) -> None:
    """List or recover incomplete operations.

    Example:
        $ codeowners-git recover --auto
    """
    runtime = resolve_runtime()
    if getattr(args, "list", False):
        list_operations(runtime.store)
        return
    service = RecoveryService(git=runtime.git, store=runtime.store, chooser=choose_operation)
    keep_branches = bool(getattr(args, "keep_branches", False))
    auto = bool(getattr(args, "auto", False))
    record = service.select(
        RecoverRequest(operation_id=getattr(args, "id", None), auto=auto, keep_branches=keep_branches)
    )
    if record is None:
        say("No incomplete operations found.")
        return
    describe_operation(record)
    if not (auto or getattr(args, "yes", False)):
        action = "keep" if keep_branches else "delete"
        if not confirm(
            f"Return to {record.original_branch} and {action} the branches created by this operation?",
            default=True,
        ):
            say("Recovery cancelled.")
            return
    _report(service.recover(record, keep_branches=keep_branches))
