from __future__ import annotations

from pathlib import Path

import pytest

from codeowners_git.errors import (
    ExternalCommandFailedError,
    OperationNotFoundError,
    UnexpectedStateError,
    ValidationFailedError,
)
from codeowners_git.models import OperationRecord
from codeowners_git.services import RecoverRequest, RecoveryService
from codeowners_git.state import OperationStore
from tests.codeowners_git.helpers import FakeGit


@pytest.fixture
def store(tmp_path: Path) -> OperationStore:
    return OperationStore(tmp_path / "state")


def _failed_operation(store: OperationStore, *branches: tuple[str, dict[str, object]]) -> OperationRecord:
    record = store.create("multi-branch", "main")
    for name, fields in branches:
        store.upsert_branch(record.id, name, **fields)
    store.fail(record.id, "interrupted")
    return store.get(record.id)


def test_recover_returns_to_original_and_deletes_created_branches(store: OperationStore) -> None:
    record = _failed_operation(
        store,
        ("feature/x/frontend", {"owner": "@frontend", "created": True, "committed": True, "pushed": True}),
        ("feature/x/backend", {"owner": "@backend", "created": True}),
    )
    git = FakeGit(current="feature/x/backend", branches=["main", "feature/x/frontend", "feature/x/backend"])

    report = RecoveryService(git=git, store=store)(RecoverRequest(operation_id=record.id))

    assert report is not None
    assert report.switched_branch is True
    assert git.current == "main"
    assert report.deleted == ("feature/x/frontend", "feature/x/backend")
    assert sorted(git.branches) == ["main"]
    assert store.list() == []


def test_branch_already_removed_counts_as_recovered(store: OperationStore) -> None:
    record = _failed_operation(store, ("feature/x/frontend", {"created": True}))
    git = FakeGit()

    report = RecoveryService(git=git, store=store).recover(record)

    assert report.already_absent == ("feature/x/frontend",)
    assert report.failed == ()
    assert report.switched_branch is False
    assert store.list() == []


def test_unpushed_commits_are_restored_before_deletion(store: OperationStore) -> None:
    record = _failed_operation(
        store,
        ("feature/x/frontend", {"files": ["frontend/a.ts"], "created": True, "committed": True}),
    )
    git = FakeGit(branches=["main", "feature/x/frontend"])

    report = RecoveryService(git=git, store=store).recover(record)

    assert report.restored_files == ("frontend/a.ts",)
    assert git.calls.index("restore feature/x/frontend") < git.calls.index("delete feature/x/frontend")
    assert git.changed == ["frontend/a.ts"]


def test_failed_restore_keeps_branch(store: OperationStore) -> None:
    record = _failed_operation(
        store,
        ("feature/x/frontend", {"files": ["frontend/a.ts"], "created": True, "committed": True}),
    )
    git = FakeGit(branches=["main", "feature/x/frontend"])
    git.fail_on["restore_files_from_ref"] = ExternalCommandFailedError("conflict")

    report = RecoveryService(git=git, store=store).recover(record)

    assert report.failed == ("feature/x/frontend",)
    assert "feature/x/frontend" in git.branches


def test_keep_branches_only_switches_back(store: OperationStore) -> None:
    record = _failed_operation(store, ("feature/x/frontend", {"created": True}))
    git = FakeGit(current="feature/x/frontend", branches=["main", "feature/x/frontend"])

    report = RecoveryService(git=git, store=store).recover(record, keep_branches=True)

    assert report.kept == ("feature/x/frontend",)
    assert "feature/x/frontend" in git.branches
    assert git.current == "main"
    assert store.list() == []


def test_uncreated_branches_are_left_alone(store: OperationStore) -> None:
    record = _failed_operation(store, ("feature/x/frontend", {"error": "already exists"}))
    git = FakeGit(branches=["main", "feature/x/frontend"])

    report = RecoveryService(git=git, store=store).recover(record)

    assert report.deleted == ()
    assert "feature/x/frontend" in git.branches


def test_checkout_failure_is_fatal_and_keeps_record(store: OperationStore) -> None:
    record = _failed_operation(store, ("feature/x/frontend", {"created": True}))
    git = FakeGit(current="feature/x/frontend", branches=["main", "feature/x/frontend"])
    git.fail_on["checkout:main"] = ExternalCommandFailedError("local changes would be overwritten")

    with pytest.raises(UnexpectedStateError) as excinfo:
        RecoveryService(git=git, store=store).recover(record)

    assert f"recover --id {record.id}" in (excinfo.value.recovery_hint or "")
    assert "feature/x/frontend" in git.branches
    assert len(store.list()) == 1


def test_select_single_incomplete_record(store: OperationStore) -> None:
    record = _failed_operation(store)

    selected = RecoveryService(git=FakeGit(), store=store).select(RecoverRequest())

    assert selected is not None
    assert selected.id == record.id


def test_select_nothing_when_no_incomplete_records(store: OperationStore) -> None:
    assert RecoveryService(git=FakeGit(), store=store)(RecoverRequest()) is None


def test_select_auto_picks_most_recent(store: OperationStore) -> None:
    _failed_operation(store)
    newest = _failed_operation(store)

    selected = RecoveryService(git=FakeGit(), store=store).select(RecoverRequest(auto=True))

    assert selected is not None
    assert selected.id == newest.id


def test_select_several_without_auto_uses_chooser(store: OperationStore) -> None:
    first = _failed_operation(store)
    _failed_operation(store)
    offered: list[int] = []

    def chooser(records: list[OperationRecord]) -> OperationRecord | None:
        offered.append(len(records))
        return next(record for record in records if record.id == first.id)

    selected = RecoveryService(git=FakeGit(), store=store, chooser=chooser).select(RecoverRequest())

    assert offered == [2]
    assert selected is not None
    assert selected.id == first.id


def test_select_several_without_chooser_asks_for_an_id(store: OperationStore) -> None:
    _failed_operation(store)
    _failed_operation(store)

    with pytest.raises(ValidationFailedError) as excinfo:
        RecoveryService(git=FakeGit(), store=store).select(RecoverRequest())

    assert "--id" in (excinfo.value.recovery_hint or "")


def test_unknown_id_is_reported(store: OperationStore) -> None:
    with pytest.raises(OperationNotFoundError):
        RecoveryService(git=FakeGit(), store=store)(RecoverRequest(operation_id="missing"))
