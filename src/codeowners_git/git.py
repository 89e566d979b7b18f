"""Git capability provider used by codeowners-git operations.

All repository mutation funnels through a ``Git`` handle bound to one
repository root. Reads of the current branch are explicit method calls rather
than ambient state, so services can be exercised against a fake.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from pathlib import Path
from typing import Protocol

from . import exec as exec_util
from . import log
from .errors import ExternalCommandFailedError, PreconditionFailedError

_REMOTE_HEAD_PREFIX = "refs/remotes/"
_FALLBACK_DEFAULT_BRANCH = "main"


def git_command(args: list[str], *, git_path: str | None = None) -> list[str]:
    """Build a git command using an optional executable path.

    Example:
        >>> git_command(["status"], git_path=" ")
        ['git', 'status']
    """
    resolved = git_path.strip() if isinstance(git_path, str) else ""
    if not resolved:
        resolved = "git"
    return [resolved, *args]


def git_repo_root(
    start: Path,
    *,
    git_path: str | None = None,
    runner: exec_util.CommandRunner | None = None,
) -> Path | None:
    """Return the git repository root for a starting path, or ``None``."""
    result = exec_util.run_with_runner(
        exec_util.CommandRequest(
            argv=tuple(
                git_command(["-C", str(start), "rev-parse", "--show-toplevel"], git_path=git_path)
            )
        ),
        runner=runner,
    )
    if result is None:
        raise ExternalCommandFailedError("missing required command: git")
    if result.returncode != 0:
        return None
    resolved = result.stdout.strip()
    return Path(resolved) if resolved else None


@dataclass(frozen=True)
class StatusEntry:
    """One ``git status --porcelain`` entry.

    ``index`` and ``worktree`` are the two status columns; renamed entries
    carry the new path in ``path``.
    """

    index: str
    worktree: str
    path: str
    original_path: str | None = None

    @property
    def staged(self) -> bool:
        return self.index not in {" ", "?", "!"}

    @property
    def changed_in_worktree(self) -> bool:
        return self.worktree not in {" ", "!"}


def parse_porcelain_z(output: str) -> list[StatusEntry]:
    """Parse ``git status --porcelain=v1 -z`` output.

    Example:
        >>> [e.path for e in parse_porcelain_z(" M a.py\\0?? b.py\\0")]
        ['a.py', 'b.py']
        >>> parse_porcelain_z("R  new.py\\0old.py\\0")[0].original_path
        'old.py'
    """
    entries: list[StatusEntry] = []
    tokens = output.split("\0")
    position = 0
    while position < len(tokens):
        token = tokens[position]
        position += 1
        if len(token) < 4:
            continue
        x, y, path = token[0], token[1], token[3:]
        original = None
        if x in {"R", "C"} or y in {"R", "C"}:
            if position < len(tokens):
                original = tokens[position]
                position += 1
        entries.append(StatusEntry(index=x, worktree=y, path=path, original_path=original))
    return entries


class GitProvider(Protocol):
    """Git operations consumed by the branch, recovery, and extract services."""

    repo_dir: Path

    def current_branch(self) -> str: ...

    def checkout(self, name: str) -> None: ...

    def branch_exists(self, name: str) -> bool: ...

    def is_valid_branch_name(self, name: str) -> bool: ...

    def create_branch(self, name: str) -> None: ...

    def delete_branch(self, name: str, *, force: bool = True) -> bool: ...

    def changed_files(self) -> list[str]: ...

    def staged_files(self) -> list[str]: ...

    def commit(self, files: list[str], message: str, *, verify: bool = True) -> None: ...

    def push(
        self,
        branch: str,
        *,
        remote: str = "origin",
        upstream: str | None = None,
        force: bool = False,
        verify: bool = True,
    ) -> None: ...

    def unstage(self, files: list[str]) -> None: ...

    def restore_files_from_ref(self, ref: str, files: list[str]) -> list[str]: ...

    def stash_files(self, files: list[str], message: str) -> str | None: ...

    def apply_stashed_files(self, stash: str, files: list[str]) -> list[str]: ...

    def drop_stash(self, stash: str) -> None: ...

    def default_branch(self, remote: str = "origin") -> str: ...

    def merge_base(self, first: str, second: str) -> str: ...

    def changed_files_between(self, base: str, ref: str) -> list[str]: ...


class Git:
    """Repository handle backed by the ``git`` executable."""

    def __init__(
        self,
        repo_dir: Path,
        *,
        git_path: str | None = None,
        runner: exec_util.CommandRunner | None = None,
    ) -> None:
        self.repo_dir = repo_dir
        self.git_path = git_path
        self.runner = runner

    @classmethod
    def discover(
        cls,
        start: Path,
        *,
        git_path: str | None = None,
        runner: exec_util.CommandRunner | None = None,
    ) -> Git:
        root = git_repo_root(start, git_path=git_path, runner=runner)
        if root is None:
            raise PreconditionFailedError("command must be run inside a git repository")
        return cls(root, git_path=git_path, runner=runner)

    def _request(self, args: list[str], *, capture_output: bool = True) -> exec_util.CommandRequest:
        return exec_util.CommandRequest(
            argv=tuple(git_command(["-C", str(self.repo_dir), *args], git_path=self.git_path)),
            capture_output=capture_output,
        )

    def _run(self, args: list[str]) -> exec_util.CommandResult:
        return exec_util.run_checked(self._request(args), runner=self.runner)

    def _try(self, args: list[str]) -> exec_util.CommandResult:
        result = exec_util.run_with_runner(self._request(args), runner=self.runner)
        if result is None:
            raise ExternalCommandFailedError("missing required command: git")
        return result

    def current_branch(self) -> str:
        try:
            result = self._run(["rev-parse", "--abbrev-ref", "HEAD"])
        except ExternalCommandFailedError as exc:
            raise ExternalCommandFailedError(f"failed to get current branch: {exc}") from exc
        return result.stdout.strip()

    def checkout(self, name: str) -> None:
        log.debug(f'Switching to branch: "{name}"')
        try:
            self._run(["checkout", name])
        except ExternalCommandFailedError as exc:
            raise ExternalCommandFailedError(
                f'failed to checkout branch "{name}": {exc}',
                recovery_hint=f"git checkout {name}",
            ) from exc

    def branch_exists(self, name: str) -> bool:
        result = self._try(["show-ref", "--verify", "--quiet", f"refs/heads/{name}"])
        return result.returncode == 0

    def is_valid_branch_name(self, name: str) -> bool:
        result = self._try(["check-ref-format", "--branch", name])
        return result.returncode == 0

    def create_branch(self, name: str) -> None:
        log.info(f'Switching to a new local branch: "{name}"')
        try:
            self._run(["checkout", "-b", name])
        except ExternalCommandFailedError as exc:
            raise ExternalCommandFailedError(f'failed to create branch "{name}": {exc}') from exc

    def delete_branch(self, name: str, *, force: bool = True) -> bool:
        """Delete a local branch; return ``False`` when it does not exist."""
        if not self.branch_exists(name):
            return False
        log.info(f'Deleting branch: "{name}"{" (forced)" if force else ""}')
        try:
            self._run(["branch", "-D" if force else "-d", name])
        except ExternalCommandFailedError as exc:
            raise ExternalCommandFailedError(
                f'failed to delete branch "{name}": {exc}',
                recovery_hint=f"git branch -D {name}",
            ) from exc
        return True

    def status(self) -> list[StatusEntry]:
        result = self._run(["status", "--porcelain=v1", "-z", "--untracked-files=all"])
        return parse_porcelain_z(result.stdout)

    def changed_files(self) -> list[str]:
        """Return unstaged and untracked paths in the working tree."""
        return [entry.path for entry in self.status() if entry.changed_in_worktree]

    def staged_files(self) -> list[str]:
        return [entry.path for entry in self.status() if entry.staged]

    def commit(self, files: list[str], message: str, *, verify: bool = True) -> None:
        """Stage exactly ``files`` and commit them."""
        log.info("Adding files to commit...")
        self._run(["add", "--", *files])
        log.info(f'Running commit with message: "{message}"')
        args = ["commit", "-m", message]
        if not verify:
            args.append("--no-verify")
        try:
            self._run(args)
        except ExternalCommandFailedError as exc:
            raise ExternalCommandFailedError(f"commit failed: {exc}") from exc
        log.debug("Commit finished successfully.")

    def push(
        self,
        branch: str,
        *,
        remote: str = "origin",
        upstream: str | None = None,
        force: bool = False,
        verify: bool = True,
    ) -> None:
        """Push ``branch`` to ``remote`` with live output."""
        target = upstream or branch
        log.info(f'Pushing branch "{branch}" to {remote}/{target}...')
        args = ["push", remote, f"{branch}:{target}"]
        if force:
            args.append("--force")
        if not verify:
            args.append("--no-verify")
        result = exec_util.run_with_runner(
            self._request(args, capture_output=False), runner=self.runner
        )
        if result is None:
            raise ExternalCommandFailedError("missing required command: git")
        if result.returncode != 0:
            raise ExternalCommandFailedError(
                f"push to {remote}/{target} failed with exit code {result.returncode}"
            )
        log.success(f"Successfully pushed to {remote}/{target}")

    def unstage(self, files: list[str]) -> None:
        if files:
            self._run(["restore", "--staged", "--", *files])

    def path_exists_in_ref(self, ref: str, path: str) -> bool:
        return self._try(["cat-file", "-e", f"{ref}:{path}"]).returncode == 0

    def restore_files_from_ref(self, ref: str, files: list[str]) -> list[str]:
        """Copy ``files`` from ``ref`` into the working tree, leaving them unstaged.

        Paths absent from ``ref`` are removed from the working tree so a
        deletion recorded on ``ref`` is reproduced.

        Returns:
            The restored paths.

        Raises:
            ExternalCommandFailedError: Any path could not be restored.
        """
        if not files:
            return []
        log.info(f'Restoring {len(files)} file(s) from "{ref}"...')
        restored, failed = self._write_paths_from([ref], files)
        if failed:
            raise ExternalCommandFailedError(
                f'failed to restore {len(failed)} file(s) from "{ref}": {", ".join(failed)}',
                recovery_hint=" && ".join(f"git checkout {ref} -- {path}" for path in failed),
            )
        return restored

    def _write_paths_from(self, refs: list[str], files: list[str]) -> tuple[list[str], list[str]]:
        """Check out each path from the first ref holding it, or remove it.

        Returns:
            ``(written, failed)`` path lists. Written paths are left unstaged.
        """
        written: list[str] = []
        failed: list[str] = []
        for path in files:
            source = next((ref for ref in refs if self.path_exists_in_ref(ref, path)), None)
            if source is None:
                try:
                    (self.repo_dir / path).unlink(missing_ok=True)
                except OSError as exc:
                    log.warning(f"Could not remove {path}: {exc}")
                    failed.append(path)
                    continue
                written.append(path)
                continue
            result = self._try(["checkout", source, "--", path])
            if result.returncode != 0:
                log.warning(f"Could not restore {path}: {(result.stderr or '').strip()}")
                failed.append(path)
                continue
            written.append(path)
        tracked = [path for path in written if (self.repo_dir / path).exists()]
        if tracked:
            unstaged = self._try(["restore", "--staged", "--", *tracked])
            if unstaged.returncode != 0:
                log.warning("Files were restored but could not be unstaged")
                log.info("Run 'git restore --staged .' to unstage them")
        return written, failed

    def _stash_head(self) -> str | None:
        result = self._try(["rev-parse", "--verify", "--quiet", "refs/stash"])
        if result.returncode != 0:
            return None
        return result.stdout.strip() or None

    def stash_files(self, files: list[str], message: str) -> str | None:
        """Move ``files`` (untracked ones included) into a new stash entry.

        Returns:
            The stash commit id, or ``None`` when git had nothing to save.
        """
        if not files:
            return None
        before = self._stash_head()
        try:
            self._run(["stash", "push", "--include-untracked", "-m", message, "--", *files])
        except ExternalCommandFailedError as exc:
            raise ExternalCommandFailedError(f"failed to stash changes: {exc}") from exc
        after = self._stash_head()
        if after is None or after == before:
            return None
        log.debug(f"Stashed {len(files)} file(s) as {after}")
        return after

    def apply_stashed_files(self, stash: str, files: list[str]) -> list[str]:
        """Write the stashed version of ``files`` into the working tree, unstaged.

        Tracked paths come from the stash commit and untracked ones from its
        third parent. A path found in neither was a deletion and is removed.

        Raises:
            ExternalCommandFailedError: Any path could not be written.
        """
        written, failed = self._write_paths_from([stash, f"{stash}^3"], files)
        if failed:
            raise ExternalCommandFailedError(
                f"failed to bring back {len(failed)} stashed file(s): {', '.join(failed)}",
                recovery_hint=f"git stash apply {stash}",
            )
        return written

    def drop_stash(self, stash: str) -> None:
        """Drop the stash entry whose commit id is ``stash``, if still listed."""
        listing = self._run(["stash", "list", "--format=%H"]).stdout.splitlines()
        for index, commit in enumerate(line.strip() for line in listing):
            if commit == stash:
                self._run(["stash", "drop", f"stash@{{{index}}}"])
                return

    def default_branch(self, remote: str = "origin") -> str:
        """Determine the repository default branch."""
        result = self._try(["symbolic-ref", f"{_REMOTE_HEAD_PREFIX}{remote}/HEAD"])
        if result.returncode == 0:
            match = re.match(rf"^refs/remotes/{re.escape(remote)}/(.+)$", result.stdout.strip())
            if match:
                return match.group(1).strip()
        for candidate in ("main", "master"):
            if self._try(
                ["show-ref", "--verify", "--quiet", f"refs/remotes/{remote}/{candidate}"]
            ).returncode == 0:
                return candidate
        for candidate in ("main", "master"):
            if self.branch_exists(candidate):
                return candidate
        return _FALLBACK_DEFAULT_BRANCH

    def merge_base(self, first: str, second: str) -> str:
        result = self._run(["merge-base", first, second])
        return result.stdout.strip()

    def changed_files_between(self, base: str, ref: str) -> list[str]:
        """Return paths added, copied, modified, or renamed on ``ref`` since ``base``."""
        result = self._run(
            ["diff", "--name-only", "--no-renames", "--diff-filter=ACMRT", base, ref]
        )
        return [line for line in result.stdout.splitlines() if line.strip()]
