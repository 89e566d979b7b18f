"""Pull request creation through the GitHub CLI."""

from __future__ import annotations

import re
import shutil
from dataclasses import dataclass
from pathlib import Path
from typing import Protocol

from . import exec as exec_util
from . import log
from .errors import DependencyMissingError, ExternalCommandFailedError
from .models import PullRequest

PR_TEMPLATE_PATHS = (
    ".github/pull_request_template.md",
    ".github/PULL_REQUEST_TEMPLATE.md",
    ".github/PULL_REQUEST_TEMPLATE/pull_request_template.md",
    "docs/pull_request_template.md",
    "docs/PULL_REQUEST_TEMPLATE.md",
    "pull_request_template.md",
    "PULL_REQUEST_TEMPLATE.md",
)
_URL_RE = re.compile(r"https?://\S+")
_PULL_NUMBER_RE = re.compile(r"/pull/(\d+)")
_HASH_NUMBER_RE = re.compile(r"#(\d+)")


@dataclass(frozen=True)
class PrTemplate:
    path: str
    content: str


class PullRequestProvider(Protocol):
    """PR operations consumed by the branch service."""

    def create_pull_request(
        self,
        *,
        title: str,
        body: str = "",
        draft: bool = False,
        base: str | None = None,
        head: str | None = None,
        cwd: Path | None = None,
    ) -> PullRequest: ...


def find_pr_template(repo_root: Path) -> PrTemplate | None:
    """Return the first PR body template found in the conventional locations."""
    for relative in PR_TEMPLATE_PATHS:
        candidate = repo_root / relative
        if not candidate.is_file():
            continue
        try:
            content = candidate.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as exc:
            log.warning(f"Ignoring unreadable PR template {relative}: {exc}")
            continue
        log.info(f"Found PR template at: {relative}")
        return PrTemplate(path=relative, content=content.strip())
    return None


def parse_pr_output(output: str) -> PullRequest:
    """Extract the PR URL and number from ``gh pr create`` output.

    Example:
        >>> parse_pr_output("https://github.com/org/repo/pull/42\\n")
        PullRequest(url='https://github.com/org/repo/pull/42', number=42)
        >>> parse_pr_output("created").number
        0
    """
    url_match = _URL_RE.search(output)
    if not url_match:
        return PullRequest(url=output.strip(), number=0)
    url = url_match.group(0)
    number_match = _PULL_NUMBER_RE.search(url) or _HASH_NUMBER_RE.search(output)
    number = int(number_match.group(1)) if number_match else 0
    return PullRequest(url=url, number=number)


@dataclass(frozen=True)
class GithubClient:
    """Typed command-boundary adapter for the GitHub CLI."""

    gh_path: str = "gh"
    runner: exec_util.CommandRunner | None = None

    def available(self) -> bool:
        return shutil.which(self.gh_path) is not None

    def run(self, args: list[str], *, cwd: Path | None = None) -> str:
        result = exec_util.run_with_runner(
            exec_util.CommandRequest(argv=(self.gh_path, *args), cwd=cwd),
            runner=self.runner,
        )
        if result is None:
            raise DependencyMissingError(f"missing required command: {self.gh_path}")
        if result.returncode != 0:
            message = (result.stderr or result.stdout or "").strip()
            raise ExternalCommandFailedError(
                message or f"command failed: {self.gh_path} {' '.join(args)}"
            )
        return result.stdout

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
        if not self.available():
            raise DependencyMissingError(
                "GitHub CLI (gh) is not installed. Please install it to create pull requests."
            )
        args = ["pr", "create", "--title", title, "--body", body]
        if draft:
            args.append("--draft")
        if base:
            args.extend(["--base", base])
        if head:
            args.extend(["--head", head])
        try:
            output = self.run(args, cwd=cwd)
        except ExternalCommandFailedError as exc:
            raise ExternalCommandFailedError(f"failed to create pull request: {exc}") from exc
        pull_request = parse_pr_output(output)
        log.success(f"{'Draft ' if draft else ''}Pull request created: {pull_request.url}")
        return pull_request
