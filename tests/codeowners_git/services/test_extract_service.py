from __future__ import annotations

import pytest

from codeowners_git.errors import PreconditionFailedError, ValidationFailedError
from codeowners_git.services import ExtractRequest, ExtractService
from tests.codeowners_git.helpers import FakeGit, FakeOwners

OWNERS = FakeOwners({"ui/a.ts": ["@org/ui"], "api/b.py": ["@org/api"]})


def test_extracts_changed_files_from_merge_base() -> None:
    git = FakeGit()
    git.ref_files["feature/other"] = ["ui/a.ts", "api/b.py"]

    result = ExtractService(git=git, owners=OWNERS)(ExtractRequest(source="feature/other"))

    assert result.base == "merge-base:main:feature/other"
    assert result.files == ("ui/a.ts", "api/b.py")
    assert git.restored == [("feature/other", ("ui/a.ts", "api/b.py"))]


def test_compare_main_diffs_against_default_branch_tip() -> None:
    git = FakeGit()
    git.ref_files["feature/other"] = ["ui/a.ts"]

    result = ExtractService(git=git, owners=OWNERS)(
        ExtractRequest(source="feature/other", compare_main=True)
    )

    assert result.base == "main"


def test_owner_pattern_filters_files() -> None:
    git = FakeGit()
    git.ref_files["feature/other"] = ["ui/a.ts", "api/b.py", "README.md"]

    result = ExtractService(git=git, owners=OWNERS)(
        ExtractRequest(source="feature/other", owner="*ui*")
    )

    assert result.files == ("ui/a.ts",)


def test_nothing_to_extract_leaves_tree_alone() -> None:
    git = FakeGit()

    result = ExtractService(git=git, owners=OWNERS)(ExtractRequest(source="feature/other"))

    assert result.files == ()
    assert git.restored == []


def test_requires_source() -> None:
    with pytest.raises(ValidationFailedError, match="--source"):
        ExtractService(git=FakeGit(), owners=OWNERS)(ExtractRequest(source=""))


def test_refuses_to_run_with_staged_changes() -> None:
    git = FakeGit(staged=["x.txt"])

    with pytest.raises(PreconditionFailedError):
        ExtractService(git=git, owners=OWNERS)(ExtractRequest(source="feature/other"))
