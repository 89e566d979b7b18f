# ruff: noqa: E402

from __future__ import annotations

import subprocess
import sys
from dataclasses import dataclass, field
from pathlib import Path

ROOT = Path(__file__).resolve().parents[2]
SRC = ROOT / "src"
if str(SRC) not in sys.path:
    sys.path.insert(0, str(SRC))

from codeowners_git.errors import ExternalCommandFailedError
from codeowners_git.models import PullRequest


@dataclass(frozen=True)
class FakeCommit:
    message: str
    files: tuple[str, ...]
    verify: bool = True


class FakeGit:
    """In-memory stand-in for ``codeowners_git.git.Git``.

    Committed files leave ``changed``, mirroring how a commit followed by a
    checkout of the original branch removes them from the working tree.
    ``fail_on`` maps a method name (or ``"checkout:<branch>"``) to the error
    it should raise.
    """

    def __init__(
        self,
        changed: list[str] | None = None,
        *,
        current: str = "main",
        branches: list[str] | None = None,
        staged: list[str] | None = None,
        repo_dir: Path | None = None,
    ) -> None:
        self.repo_dir = repo_dir or Path("/repo")
        self.current = current
        self.branches: dict[str, list[FakeCommit]] = {name: [] for name in branches or [current]}
        self.branches.setdefault(current, [])
        self.changed = list(changed or [])
        self.staged = list(staged or [])
        self.pushes: list[dict[str, object]] = []
        self.restored: list[tuple[str, tuple[str, ...]]] = []
        self.ref_files: dict[str, list[str]] = {}
        self.stashes: dict[str, list[str]] = {}
        self.fail_on: dict[str, BaseException] = {}
        self.calls: list[str] = []

    def _maybe_fail(self, key: str) -> None:
        error = self.fail_on.get(key)
        if error is not None:
            raise error

    def current_branch(self) -> str:
        return self.current

    def checkout(self, name: str) -> None:
        self.calls.append(f"checkout {name}")
        self._maybe_fail("checkout")
        self._maybe_fail(f"checkout:{name}")
        if name not in self.branches:
            raise ExternalCommandFailedError(f'failed to checkout branch "{name}"')
        self.current = name

    def branch_exists(self, name: str) -> bool:
        return name in self.branches

    def is_valid_branch_name(self, name: str) -> bool:
        return bool(name) and " " not in name and ".." not in name and not name.endswith("/")

    def create_branch(self, name: str) -> None:
        self.calls.append(f"create {name}")
        self._maybe_fail("create_branch")
        self.branches[name] = list(self.branches[self.current])
        self.current = name

    def delete_branch(self, name: str, *, force: bool = True) -> bool:
        self.calls.append(f"delete {name}")
        self._maybe_fail("delete_branch")
        if name not in self.branches:
            return False
        del self.branches[name]
        return True

    def changed_files(self) -> list[str]:
        return list(self.changed)

    def staged_files(self) -> list[str]:
        return list(self.staged)

    def commit(self, files: list[str], message: str, *, verify: bool = True) -> None:
        self.calls.append(f"commit {self.current}")
        self.staged = list(files)
        self._maybe_fail("commit")
        self.staged = []
        self.branches[self.current].append(FakeCommit(message, tuple(files), verify))
        self.changed = [path for path in self.changed if path not in files]

    def push(
        self,
        branch: str,
        *,
        remote: str = "origin",
        upstream: str | None = None,
        force: bool = False,
        verify: bool = True,
    ) -> None:
        self.calls.append(f"push {branch}")
        self._maybe_fail("push")
        self.pushes.append(
            {"branch": branch, "remote": remote, "upstream": upstream, "force": force}
        )

    def unstage(self, files: list[str]) -> None:
        self.staged = [path for path in self.staged if path not in files]

    def restore_files_from_ref(self, ref: str, files: list[str]) -> list[str]:
        self.calls.append(f"restore {ref}")
        self._maybe_fail("restore_files_from_ref")
        self.restored.append((ref, tuple(files)))
        for path in files:
            if path not in self.changed:
                self.changed.append(path)
        return list(files)

    def stash_files(self, files: list[str], message: str) -> str | None:
        self.calls.append("stash")
        self._maybe_fail("stash_files")
        stash = f"stash-{len(self.stashes) + 1}"
        self.stashes[stash] = list(files)
        self.changed = [path for path in self.changed if path not in files]
        return stash

    def apply_stashed_files(self, stash: str, files: list[str]) -> list[str]:
        self.calls.append(f"unstash {self.current}")
        self._maybe_fail("apply_stashed_files")
        for path in files:
            if path not in self.changed:
                self.changed.append(path)
        return list(files)

    def drop_stash(self, stash: str) -> None:
        self.calls.append("drop-stash")
        self.stashes.pop(stash, None)

    def default_branch(self, remote: str = "origin") -> str:
        return "main"

    def merge_base(self, first: str, second: str) -> str:
        self._maybe_fail("merge_base")
        return f"merge-base:{first}:{second}"

    def changed_files_between(self, base: str, ref: str) -> list[str]:
        return list(self.ref_files.get(ref, []))

    def commits(self, branch: str) -> list[FakeCommit]:
        return self.branches[branch]


class FakeOwners:
    def __init__(self, mapping: dict[str, list[str]]) -> None:
        self.mapping = mapping

    def owners_of(self, path: str) -> list[str]:
        return list(self.mapping.get(path, []))


@dataclass
class FakeGithub:
    error: Exception | None = None
    url: str | None = None
    calls: list[dict[str, object]] = field(default_factory=list)

    def create_pull_request(
        self,
        *,
        title: str,
        body: str = "",
        draft: bool = False,
        base: str | None = None,
        head: str | None = None,
        cwd: Path | None = None,
    ) -> PullRequest:
        self.calls.append({"title": title, "body": body, "draft": draft, "base": base, "head": head})
        if self.error is not None:
            raise self.error
        number = len(self.calls)
        if self.url is not None:
            return PullRequest(url=self.url, number=0)
        return PullRequest(url=f"https://github.com/org/repo/pull/{number}", number=number)


def run_git(repo: Path, *args: str) -> str:
    result = subprocess.run(
        ["git", "-C", str(repo), *args], check=True, capture_output=True, text=True
    )
    return result.stdout


def init_repo(root: Path, codeowners: str) -> tuple[Path, Path]:
    """Create a repository on ``main`` with a bare ``origin`` remote."""
    remote = root / "remote.git"
    repo = root / "repo"
    subprocess.run(["git", "init", "--bare", "-b", "main", str(remote)], check=True, capture_output=True)
    subprocess.run(["git", "init", "-b", "main", str(repo)], check=True, capture_output=True)
    run_git(repo, "config", "user.email", "test@example.com")
    run_git(repo, "config", "user.name", "Test User")
    run_git(repo, "config", "commit.gpgsign", "false")
    (repo / ".github").mkdir()
    (repo / ".github" / "CODEOWNERS").write_text(codeowners, encoding="utf-8")
    (repo / "README.md").write_text("# demo\n", encoding="utf-8")
    run_git(repo, "add", ".")
    run_git(repo, "commit", "-m", "chore: initial")
    run_git(repo, "remote", "add", "origin", str(remote))
    run_git(repo, "push", "origin", "main")
    return repo, remote


def write_file(repo: Path, relative: str, content: str) -> None:
    path = repo / relative
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(content, encoding="utf-8")


def local_branches(repo: Path) -> list[str]:
    output = run_git(repo, "for-each-ref", "--format=%(refname:short)", "refs/heads")
    return sorted(line for line in output.splitlines() if line)


def files_in_commit(repo: Path, ref: str) -> list[str]:
    output = run_git(repo, "show", "--name-only", "--format=", ref)
    return sorted(line for line in output.splitlines() if line)
