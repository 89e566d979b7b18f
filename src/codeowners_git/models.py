"""Data models for operation records and branch operation outcomes.

Operation records are persisted as JSON and validated with Pydantic; per-call
results are plain frozen dataclasses.
"""

from __future__ import annotations

import datetime as dt
from dataclasses import dataclass, field
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field

OperationKind = Literal["single-branch", "multi-branch"]
OperationStage = Literal[
    "initializing",
    "creating-branch",
    "committing",
    "pushing",
    "creating-pr",
    "complete",
    "failed",
]
BRANCH_PROGRESS_FLAGS = ("created", "committed", "pushed", "pr_created")
NO_FILES_ERROR = "no files found for owner"


def utc_now() -> dt.datetime:
    return dt.datetime.now(tz=dt.timezone.utc)


class OperationOptions(BaseModel):
    """Snapshot of the flags an operation was started with.

    Kept for audit and diagnostics; recovery does not read it.

    Example:
        >>> OperationOptions(push=True).remote
        'origin'
    """

    model_config = ConfigDict(extra="allow")

    verify: bool = True
    push: bool = False
    remote: str = "origin"
    upstream: str | None = None
    force: bool = False
    keep_branch_on_failure: bool = False
    append: bool = False
    pr: bool = False
    draft_pr: bool = False


class BranchRecord(BaseModel):
    """Per-owner sub-operation progress.

    The four progress flags only move from ``False`` to ``True``; the store
    enforces this when merging updates.

    Example:
        >>> BranchRecord(name="feature/x/frontend", owner="@frontend").created
        False
    """

    model_config = ConfigDict(extra="ignore")

    name: str
    owner: str = ""
    files: list[str] = Field(default_factory=list)
    created: bool = False
    committed: bool = False
    pushed: bool = False
    pr_created: bool = False
    pr_url: str | None = None
    error: str | None = None

    def status_labels(self) -> list[str]:
        labels: list[str] = []
        if self.created:
            labels.append("created")
        if self.committed:
            labels.append("committed")
        if self.pushed:
            labels.append("pushed")
        if self.pr_created:
            labels.append("PR created")
        if self.error:
            labels.append(f"error: {self.error}")
        return labels


class OperationRecord(BaseModel):
    """Durable record of one top-level branch-producing command.

    Example:
        >>> record = OperationRecord(
        ...     id="abc", kind="multi-branch", original_branch="main"
        ... )
        >>> record.current_stage
        'initializing'
    """

    model_config = ConfigDict(extra="ignore")

    id: str
    timestamp: dt.datetime = Field(default_factory=utc_now)
    kind: OperationKind
    original_branch: str
    current_stage: OperationStage = "initializing"
    options: OperationOptions = Field(default_factory=OperationOptions)
    branches: list[BranchRecord] = Field(default_factory=list)
    last_branch: str | None = None
    error: str | None = None

    @property
    def is_complete(self) -> bool:
        return self.current_stage == "complete"

    def branch(self, name: str) -> BranchRecord | None:
        for record in self.branches:
            if record.name == name:
                return record
        return None

    def created_branches(self) -> list[BranchRecord]:
        return [record for record in self.branches if record.created]


@dataclass(frozen=True)
class PullRequest:
    url: str
    number: int


@dataclass(frozen=True)
class BranchResult:
    """Outcome of one single-owner branch operation.

    ``no_files`` marks the benign "owner has nothing to commit" case, which
    still reports ``success=False`` so standalone callers can tell it apart
    from a completed branch.
    """

    success: bool
    branch_name: str
    owner: str
    files: tuple[str, ...] = ()
    created: bool = False
    committed: bool = False
    pushed: bool = False
    pr_url: str | None = None
    pr_number: int | None = None
    pr_error: str | None = None
    error: str | None = None
    no_files: bool = False
    preserved: str | None = None

    @property
    def pr_created(self) -> bool:
        return bool(self.pr_url)


@dataclass
class MultiBranchSummary:
    """Aggregated outcome of a multi-owner run."""

    operation_id: str
    original_branch: str
    owners: list[str] = field(default_factory=list)
    succeeded: list[str] = field(default_factory=list)
    failed: list[str] = field(default_factory=list)
    skipped: list[str] = field(default_factory=list)
    pr_succeeded: list[str] = field(default_factory=list)
    pr_failed: list[str] = field(default_factory=list)
    results: dict[str, BranchResult] = field(default_factory=dict)
    unowned_files: list[str] = field(default_factory=list)
    default_owner: str | None = None
    nothing_to_do: str | None = None

    @property
    def has_failures(self) -> bool:
        return bool(self.failed)


@dataclass(frozen=True)
class RecoveryReport:
    """What a recovery pass did to the repository and state store."""

    operation_id: str
    original_branch: str
    switched_branch: bool
    deleted: tuple[str, ...] = ()
    already_absent: tuple[str, ...] = ()
    kept: tuple[str, ...] = ()
    failed: tuple[str, ...] = ()
    restored_files: tuple[str, ...] = ()


@dataclass(frozen=True)
class ExtractResult:
    source: str
    base: str
    files: tuple[str, ...] = ()
