"""Shared runtime resolution helpers for commands."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

from .. import config, signals
from ..git import Git
from ..github import GithubClient
from ..ownership import OwnershipResolver
from ..state import OperationStore


@dataclass(frozen=True)
class Runtime:
    """Collaborators bound to the repository containing the working directory."""

    settings: config.Settings
    git: Git
    owners: OwnershipResolver
    github: GithubClient
    store: OperationStore


def load_runtime_settings() -> config.Settings:
    return config.load_settings(use_default_path=True)


def resolve_runtime(cwd: Path | None = None) -> Runtime:
    """Resolve settings, the repository handle, and the state store for ``cwd``."""
    settings = load_runtime_settings()
    git = Git.discover(cwd or Path.cwd(), git_path=settings.git_path)
    store = OperationStore.for_project(git.repo_dir, root=settings.state_dir)
    signals.watch(store)
    return Runtime(
        settings=settings,
        git=git,
        owners=OwnershipResolver.from_repo(git.repo_dir),
        github=GithubClient(gh_path=settings.gh_path),
        store=store,
    )


def resolve_remote(args: object, runtime: Runtime) -> str:
    remote = getattr(args, "remote", None)
    return remote or runtime.settings.remote
