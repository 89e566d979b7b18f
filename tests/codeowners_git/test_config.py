import json
from pathlib import Path

import pytest

from codeowners_git import paths
from codeowners_git.config import load_settings
from codeowners_git.errors import ValidationFailedError


def test_defaults() -> None:
    settings = load_settings(env={}, path=None)

    assert settings.git_path == "git"
    assert settings.gh_path == "gh"
    assert settings.remote == "origin"
    assert settings.state_dir is None
    assert settings.no_color is False


def test_environment_overrides_config_file(tmp_path: Path) -> None:
    config_path = tmp_path / "config.user.json"
    config_path.write_text(
        json.dumps({"remote": "upstream", "log_level": "debug", "gh_path": "/opt/gh"}),
        encoding="utf-8",
    )

    settings = load_settings(
        env={"CODEOWNERS_GIT_REMOTE": "fork", "CODEOWNERS_GIT_STATE_DIR": str(tmp_path / "s")},
        path=config_path,
    )

    assert settings.remote == "fork"
    assert settings.log_level == "debug"
    assert settings.gh_path == "/opt/gh"
    assert settings.state_dir == tmp_path / "s"


def test_no_color_env_variants() -> None:
    assert load_settings(env={"NO_COLOR": "1"}).no_color is True
    assert load_settings(env={"CODEOWNERS_GIT_NO_COLOR": "yes"}).no_color is True
    assert load_settings(env={"CODEOWNERS_GIT_NO_COLOR": "0", "NO_COLOR": "1"}).no_color is False


def test_blank_command_paths_fall_back_to_defaults() -> None:
    settings = load_settings(env={"CODEOWNERS_GIT_GIT_PATH": "  "})

    assert settings.git_path == "git"


def test_default_path_is_read_when_requested() -> None:
    config_path = paths.user_config_path()
    config_path.parent.mkdir(parents=True, exist_ok=True)
    config_path.write_text(json.dumps({"remote": "mirror"}), encoding="utf-8")

    assert load_settings(env={}, use_default_path=True).remote == "mirror"
    assert load_settings(env={}).remote == "origin"


@pytest.mark.parametrize("content", ["{broken", "[1, 2]", '{"no_color": {"nested": true}}'])
def test_invalid_config_file_is_a_validation_failure(tmp_path: Path, content: str) -> None:
    config_path = tmp_path / "config.user.json"
    config_path.write_text(content, encoding="utf-8")

    with pytest.raises(ValidationFailedError):
        load_settings(env={}, path=config_path)
