from __future__ import annotations

from pathlib import Path

import pytest

from codeowners_git.errors import DependencyMissingError, ExternalCommandFailedError
from codeowners_git.exec import CommandRequest, CommandResult
from codeowners_git.github import GithubClient, find_pr_template, parse_pr_output


class RecordingRunner:
    def __init__(self, result: CommandResult | None) -> None:
        self.result = result
        self.requests: list[CommandRequest] = []

    def run(self, request: CommandRequest) -> CommandResult | None:
        self.requests.append(request)
        return self.result


def _client(runner: RecordingRunner, monkeypatch: pytest.MonkeyPatch) -> GithubClient:
    monkeypatch.setattr("codeowners_git.github.shutil.which", lambda name: f"/usr/bin/{name}")
    return GithubClient(runner=runner)


def test_create_pull_request_builds_gh_arguments(monkeypatch: pytest.MonkeyPatch) -> None:
    runner = RecordingRunner(
        CommandResult(argv=(), returncode=0, stdout="https://github.com/org/repo/pull/7\n", stderr="")
    )

    pull_request = _client(runner, monkeypatch).create_pull_request(
        title="Update UI", body="Body", draft=True, base="main", head="feature/ui"
    )

    assert pull_request.number == 7
    assert runner.requests[0].argv == (
        "gh",
        "pr",
        "create",
        "--title",
        "Update UI",
        "--body",
        "Body",
        "--draft",
        "--base",
        "main",
        "--head",
        "feature/ui",
    )


def test_gh_failure_is_wrapped(monkeypatch: pytest.MonkeyPatch) -> None:
    runner = RecordingRunner(
        CommandResult(argv=(), returncode=1, stdout="", stderr="no commits between main and x")
    )

    with pytest.raises(ExternalCommandFailedError, match="failed to create pull request"):
        _client(runner, monkeypatch).create_pull_request(title="t", head="x")


def test_missing_gh_is_a_dependency_error(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr("codeowners_git.github.shutil.which", lambda name: None)

    with pytest.raises(DependencyMissingError):
        GithubClient().create_pull_request(title="t")


def test_parse_pr_output_reads_hash_number_without_pull_url() -> None:
    pull_request = parse_pr_output("Created #12 at https://github.example/org/repo/issues\n")

    assert pull_request.number == 12


def test_find_pr_template_prefers_github_directory(tmp_path: Path) -> None:
    (tmp_path / "docs").mkdir()
    (tmp_path / "docs" / "pull_request_template.md").write_text("docs\n", encoding="utf-8")
    (tmp_path / ".github").mkdir()
    (tmp_path / ".github" / "PULL_REQUEST_TEMPLATE.md").write_text(" github \n", encoding="utf-8")

    template = find_pr_template(tmp_path)

    assert template is not None
    assert template.path == ".github/PULL_REQUEST_TEMPLATE.md"
    assert template.content == "github"


def test_find_pr_template_returns_none_when_absent(tmp_path: Path) -> None:
    assert find_pr_template(tmp_path) is None
