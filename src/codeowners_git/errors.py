"""Failure contracts for codeowners-git operations.

Core services raise these on expected precondition, validation, and runtime
failures. Programmer bugs raise normal exceptions. Only the CLI boundary turns
a ``CodeownersGitError`` into a printed message and a process exit code.
"""

from __future__ import annotations

from typing import Literal

FailureCode = Literal[
    "validation_failed",
    "precondition_failed",
    "dependency_missing",
    "external_command_failed",
    "io_failed",
    "unexpected_state",
]


class CodeownersGitError(Exception):
    """Expected failure: validation, precondition, or runtime error.

    Use ``raise CodeownersGitError(...) from exc`` to chain a causing
    exception; it is available as ``__cause__``.
    """

    def __init__(
        self,
        code: FailureCode,
        message: str,
        *,
        recovery_hint: str | None = None,
    ) -> None:
        super().__init__(message)
        self.code = code
        self.recovery_hint = recovery_hint


class ValidationFailedError(CodeownersGitError):
    """Invalid input or conflicting options."""

    def __init__(self, message: str, *, recovery_hint: str | None = None) -> None:
        super().__init__("validation_failed", message, recovery_hint=recovery_hint)


class PreconditionFailedError(CodeownersGitError):
    """Repository state does not allow the operation to start."""

    def __init__(self, message: str, *, recovery_hint: str | None = None) -> None:
        super().__init__("precondition_failed", message, recovery_hint=recovery_hint)


class DependencyMissingError(CodeownersGitError):
    """Required executable is missing or unavailable."""

    def __init__(self, message: str, *, recovery_hint: str | None = None) -> None:
        super().__init__("dependency_missing", message, recovery_hint=recovery_hint)


class ExternalCommandFailedError(CodeownersGitError):
    """External command (git, gh) failed."""

    def __init__(self, message: str, *, recovery_hint: str | None = None) -> None:
        super().__init__("external_command_failed", message, recovery_hint=recovery_hint)


class IoFailedError(CodeownersGitError):
    """Reading or writing local files failed."""

    def __init__(self, message: str, *, recovery_hint: str | None = None) -> None:
        super().__init__("io_failed", message, recovery_hint=recovery_hint)


class UnexpectedStateError(CodeownersGitError):
    """Unexpected or inconsistent state."""

    def __init__(self, message: str, *, recovery_hint: str | None = None) -> None:
        super().__init__("unexpected_state", message, recovery_hint=recovery_hint)


class OperationNotFoundError(UnexpectedStateError):
    """No stored operation record exists for the requested id."""

    def __init__(self, operation_id: str) -> None:
        super().__init__(
            f"operation {operation_id} not found",
            recovery_hint="run 'codeowners-git recover --list' to see available operations",
        )
        self.operation_id = operation_id


class BranchOperationError(ExternalCommandFailedError):
    """A git stage of a single-owner branch operation failed.

    Carries which branch and stage failed plus what the cleanup preserved, so
    callers can report it without re-deriving repository state.
    """

    def __init__(
        self,
        message: str,
        *,
        branch_name: str,
        stage: str,
        files: tuple[str, ...] = (),
        preserved: str | None = None,
        recovery_hint: str | None = None,
    ) -> None:
        super().__init__(message, recovery_hint=recovery_hint)
        self.branch_name = branch_name
        self.stage = stage
        self.files = files
        self.preserved = preserved
