"""Durable operation-state store.

One JSON file per operation lives under a per-repository directory keyed by a
hash of the repository path. Every mutation is written to a temporary file,
fsynced, and atomically renamed into place before the call returns, so a
crash right after any update never loses it.
"""

from __future__ import annotations

import json
import os
import uuid
from pathlib import Path
from tempfile import NamedTemporaryFile

from pydantic import ValidationError

from . import log, paths
from .errors import IoFailedError, OperationNotFoundError
from .models import (
    BRANCH_PROGRESS_FLAGS,
    BranchRecord,
    OperationKind,
    OperationOptions,
    OperationRecord,
)

_IMMUTABLE_FIELDS = frozenset({"id", "timestamp", "kind", "original_branch"})


def write_text_durable(path: Path, content: str, *, encoding: str = "utf-8") -> None:
    """Atomically replace a text file and flush it to stable storage."""
    path.parent.mkdir(parents=True, exist_ok=True)
    temp_path: Path | None = None
    try:
        with NamedTemporaryFile(
            "w",
            encoding=encoding,
            delete=False,
            dir=path.parent,
            prefix=f".{path.name}.",
            suffix=".tmp",
        ) as handle:
            handle.write(content)
            handle.flush()
            os.fsync(handle.fileno())
            temp_path = Path(handle.name)
        os.replace(temp_path, path)
        temp_path = None
    finally:
        if temp_path is not None and temp_path.exists():
            temp_path.unlink(missing_ok=True)


class OperationStore:
    """Create, read, merge, and delete ``OperationRecord`` files."""

    def __init__(self, state_dir: Path) -> None:
        self.state_dir = state_dir

    @classmethod
    def for_project(cls, project_path: Path, *, root: Path | None = None) -> OperationStore:
        return cls(paths.project_state_dir(project_path, root=root))

    def path_for(self, operation_id: str) -> Path:
        return paths.state_file_path(self.state_dir, operation_id)

    def save(self, record: OperationRecord) -> None:
        payload = record.model_dump(mode="json")
        try:
            write_text_durable(self.path_for(record.id), json.dumps(payload, indent=2) + "\n")
        except OSError as exc:
            raise IoFailedError(
                f"failed to write operation state {record.id}: {exc}"
            ) from exc

    def create(
        self,
        kind: OperationKind,
        original_branch: str,
        options: OperationOptions | None = None,
    ) -> OperationRecord:
        """Allocate an id and persist an ``initializing`` record."""
        record = OperationRecord(
            id=str(uuid.uuid4()),
            kind=kind,
            original_branch=original_branch,
            options=options or OperationOptions(),
        )
        self.save(record)
        log.debug(f"operation state written: {self.path_for(record.id)}")
        return record

    def load(self, operation_id: str) -> OperationRecord | None:
        path = self.path_for(operation_id)
        if not path.exists():
            return None
        try:
            with path.open("r", encoding="utf-8") as fh:
                payload = json.load(fh)
            return OperationRecord.model_validate(payload)
        except (OSError, json.JSONDecodeError, ValidationError) as exc:
            log.error(f"failed to load state file {operation_id}: {exc}")
            return None

    def get(self, operation_id: str) -> OperationRecord:
        record = self.load(operation_id)
        if record is None:
            raise OperationNotFoundError(operation_id)
        return record

    def update(self, operation_id: str, **fields: object) -> OperationRecord:
        """Merge ``fields`` into the stored record.

        Raises:
            OperationNotFoundError: The record is missing.
            ValueError: An immutable field was passed.
        """
        immutable = _IMMUTABLE_FIELDS.intersection(fields)
        if immutable:
            raise ValueError(f"cannot update immutable fields: {', '.join(sorted(immutable))}")
        record = self.get(operation_id)
        payload = record.model_dump()
        payload.update(fields)
        merged = OperationRecord.model_validate(payload)
        self.save(merged)
        return merged

    def upsert_branch(
        self, operation_id: str, branch_name: str, **fields: object
    ) -> OperationRecord:
        """Insert a branch record or merge ``fields`` into the one named ``branch_name``.

        ``files`` is only taken when the record is first created.
        """
        record = self.get(operation_id)
        existing = record.branch(branch_name)
        if existing is None:
            branch = BranchRecord.model_validate({**fields, "name": branch_name})
            record.branches.append(branch)
        else:
            payload = existing.model_dump()
            for key, value in fields.items():
                if key == "files" and payload.get("files"):
                    continue
                if key in BRANCH_PROGRESS_FLAGS:
                    value = bool(payload.get(key)) or bool(value)
                payload[key] = value
            branch = BranchRecord.model_validate({**payload, "name": branch_name})
            index = record.branches.index(existing)
            record.branches[index] = branch
        record.last_branch = branch_name
        self.save(record)
        return record

    def complete(self, operation_id: str, *, delete_on_success: bool = True) -> None:
        self.update(operation_id, current_stage="complete")
        if delete_on_success:
            self.delete(operation_id)

    def fail(self, operation_id: str, message: str) -> None:
        """Mark the record failed and attach ``message`` to the last-touched branch.

        A missing record is logged rather than raised; failure reporting must
        not mask the error that triggered it.
        """
        record = self.load(operation_id)
        if record is None:
            log.warning(f"cannot mark operation {operation_id} failed: record not found")
            return
        record.current_stage = "failed"
        record.error = message
        target = record.branch(record.last_branch) if record.last_branch else None
        if target is None and record.branches:
            target = record.branches[-1]
        if target is not None and not target.error:
            target.error = message
        self.save(record)

    def delete(self, operation_id: str) -> bool:
        path = self.path_for(operation_id)
        if not path.exists():
            return False
        try:
            path.unlink()
        except OSError as exc:
            raise IoFailedError(
                f"failed to delete operation state {operation_id}: {exc}"
            ) from exc
        return True

    def list(self) -> list[OperationRecord]:
        """Return every readable record for this repository, newest first."""
        if not self.state_dir.exists():
            return []
        records: list[OperationRecord] = []
        for path in sorted(self.state_dir.glob(f"*{paths.STATE_FILE_SUFFIX}")):
            record = self.load(path.name[: -len(paths.STATE_FILE_SUFFIX)])
            if record is not None:
                records.append(record)
        return sorted(records, key=lambda item: item.timestamp, reverse=True)

    def list_incomplete(self) -> list[OperationRecord]:
        return [record for record in self.list() if not record.is_complete]
