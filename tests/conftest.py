# ruff: noqa: E402

import builtins
import sys
from pathlib import Path

import pytest
from _pytest.doctest import DoctestModule

ROOT = Path(__file__).resolve().parents[1]
SRC = ROOT / "src"
if str(SRC) not in sys.path:
    sys.path.insert(0, str(SRC))

import codeowners_git.io as io
import codeowners_git.log as log
import codeowners_git.paths as paths
import codeowners_git.signals as signals

DOCTEST_MODULES = {
    ROOT / "src" / "codeowners_git" / "__init__.py",
    ROOT / "src" / "codeowners_git" / "config.py",
    ROOT / "src" / "codeowners_git" / "git.py",
    ROOT / "src" / "codeowners_git" / "github.py",
    ROOT / "src" / "codeowners_git" / "matcher.py",
    ROOT / "src" / "codeowners_git" / "models.py",
    ROOT / "src" / "codeowners_git" / "paths.py",
    ROOT / "src" / "codeowners_git" / "services" / "multi_branch.py",
}


@pytest.fixture(autouse=True)
def _isolated_environment(monkeypatch: pytest.MonkeyPatch, tmp_path_factory: pytest.TempPathFactory) -> None:
    data_dir = tmp_path_factory.mktemp("codeowners-git-data")
    monkeypatch.setattr(paths, "data_dir", lambda: data_dir)
    monkeypatch.setenv("CODEOWNERS_GIT_STATE_DIR", str(data_dir / "state"))
    for name in (
        "CODEOWNERS_GIT_LOG_LEVEL",
        "CODEOWNERS_GIT_NO_COLOR",
        "CODEOWNERS_GIT_GIT_PATH",
        "CODEOWNERS_GIT_GH_PATH",
        "CODEOWNERS_GIT_REMOTE",
        "NO_COLOR",
    ):
        monkeypatch.delenv(name, raising=False)
    monkeypatch.setattr(log, "_configured_level", None)
    monkeypatch.setattr(log, "_no_color", None)
    monkeypatch.setattr(signals, "_watched_store", None)
    monkeypatch.setattr(io, "_use_questionary", lambda: False)

    def fail_input(prompt: str = "") -> str:
        raise AssertionError("prompted unexpectedly")

    monkeypatch.setattr(builtins, "input", fail_input)


def pytest_collect_file(
    parent: pytest.Collector, file_path: Path
) -> DoctestModule | None:
    path = file_path if isinstance(file_path, Path) else Path(str(file_path))
    if path in DOCTEST_MODULES:
        return DoctestModule.from_parent(parent, path=path)
    return None
