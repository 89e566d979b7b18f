"""CODEOWNERS lookups for changed files.

Parsing and rule precedence are delegated to the ``codeowners`` library; this
module only locates the file and adapts lookups to plain owner strings.
"""

from __future__ import annotations

from pathlib import Path
from typing import Iterable, Protocol

from codeowners import CodeOwners

from . import log
from .errors import IoFailedError

CODEOWNERS_PATHS = (
    ".github/CODEOWNERS",
    "CODEOWNERS",
    "docs/CODEOWNERS",
    ".gitlab/CODEOWNERS",
)


class OwnerLookup(Protocol):
    """Maps a repository-relative path to its ordered owner identifiers."""

    def owners_of(self, path: str) -> list[str]: ...


def find_codeowners_file(repo_root: Path) -> Path | None:
    for relative in CODEOWNERS_PATHS:
        candidate = repo_root / relative
        if candidate.is_file():
            return candidate
    return None


class OwnershipResolver:
    """Owner lookups backed by a parsed CODEOWNERS file.

    With no CODEOWNERS file every path resolves to no owners.
    """

    def __init__(self, rules: CodeOwners | None, *, source: Path | None = None) -> None:
        self._rules = rules
        self.source = source
        self._cache: dict[str, list[str]] = {}

    @classmethod
    def from_text(cls, text: str) -> OwnershipResolver:
        return cls(CodeOwners(text))

    @classmethod
    def from_repo(cls, repo_root: Path) -> OwnershipResolver:
        path = find_codeowners_file(repo_root)
        if path is None:
            log.debug("no CODEOWNERS file found; every path resolves to no owners")
            return cls(None)
        try:
            text = path.read_text(encoding="utf-8")
        except OSError as exc:
            raise IoFailedError(f"failed to read {path}: {exc}") from exc
        log.debug(f"using CODEOWNERS file: {path}")
        return cls(CodeOwners(text), source=path)

    def owners_of(self, path: str) -> list[str]:
        cached = self._cache.get(path)
        if cached is not None:
            return list(cached)
        owners: list[str] = []
        if self._rules is not None:
            for _kind, owner in self._rules.of(path):
                if owner not in owners:
                    owners.append(owner)
        self._cache[path] = owners
        return list(owners)


def owner_files(
    lookup: OwnerLookup,
    owner: str,
    changed_files: Iterable[str],
    *,
    include_unowned: bool = False,
) -> list[str]:
    """Return the changed files owned by ``owner``.

    Args:
        lookup: Owner lookup to consult.
        owner: Owner identifier, matched exactly.
        changed_files: Candidate paths in working-tree order.
        include_unowned: Also return paths with no owner at all.
    """
    selected: list[str] = []
    for path in changed_files:
        owners = lookup.owners_of(path)
        if owner in owners or (include_unowned and not owners):
            selected.append(path)
    return selected
