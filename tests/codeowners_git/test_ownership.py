from pathlib import Path

from codeowners_git.ownership import OwnershipResolver, find_codeowners_file, owner_files

CODEOWNERS = """\
# global fallback
*               @org/core
frontend/       @org/frontend
backend/        @org/backend @org/core
docs/*.md       docs@example.com
"""


def test_later_rules_take_precedence() -> None:
    resolver = OwnershipResolver.from_text(CODEOWNERS)

    assert resolver.owners_of("frontend/app.ts") == ["@org/frontend"]
    assert resolver.owners_of("backend/api.py") == ["@org/backend", "@org/core"]
    assert resolver.owners_of("setup.cfg") == ["@org/core"]
    assert resolver.owners_of("docs/guide.md") == ["docs@example.com"]


def test_missing_codeowners_file_means_no_owners(tmp_path: Path) -> None:
    resolver = OwnershipResolver.from_repo(tmp_path)

    assert resolver.source is None
    assert resolver.owners_of("anything.txt") == []


def test_codeowners_locations_are_searched_in_order(tmp_path: Path) -> None:
    (tmp_path / "docs").mkdir()
    (tmp_path / "docs" / "CODEOWNERS").write_text("* @docs\n", encoding="utf-8")
    (tmp_path / ".github").mkdir()
    (tmp_path / ".github" / "CODEOWNERS").write_text("* @github\n", encoding="utf-8")

    assert find_codeowners_file(tmp_path) == tmp_path / ".github" / "CODEOWNERS"
    assert OwnershipResolver.from_repo(tmp_path).owners_of("x.py") == ["@github"]


def test_owner_files_matches_owner_exactly() -> None:
    resolver = OwnershipResolver.from_text("frontend/ @org/frontend\nbackend/ @org/backend\n")
    changed = ["frontend/a.ts", "backend/b.py", "README.md"]

    assert owner_files(resolver, "@org/frontend", changed) == ["frontend/a.ts"]
    assert owner_files(resolver, "@org/front", changed) == []
    assert owner_files(resolver, "@org/frontend", changed, include_unowned=True) == [
        "frontend/a.ts",
        "README.md",
    ]
