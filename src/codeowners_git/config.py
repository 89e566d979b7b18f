"""Runtime settings for codeowners-git.

Settings come from built-in defaults, then the optional ``config.user.json``
in the user data directory, then ``CODEOWNERS_GIT_*`` environment variables.

Example:
    >>> load_settings(env={"CODEOWNERS_GIT_REMOTE": "upstream"}, path=None).remote
    'upstream'
"""

from __future__ import annotations

import json
import os
from pathlib import Path
from typing import Mapping

from pydantic import BaseModel, ConfigDict, ValidationError, ValidationInfo, field_validator

from . import paths
from .errors import IoFailedError, ValidationFailedError

ENV_PREFIX = "CODEOWNERS_GIT_"
_ENV_FIELDS = {
    "LOG_LEVEL": "log_level",
    "NO_COLOR": "no_color",
    "STATE_DIR": "state_dir",
    "GIT_PATH": "git_path",
    "GH_PATH": "gh_path",
    "REMOTE": "remote",
}
_TRUE_VALUES = {"1", "true", "yes", "on"}


class Settings(BaseModel):
    """Resolved runtime settings.

    Attributes:
        log_level: Log level name, or ``None`` for the default.
        no_color: Disable colorized output.
        state_dir: Override for the operation-state root directory.
        git_path: Git executable.
        gh_path: GitHub CLI executable.
        remote: Default remote for pushes.

    Example:
        >>> Settings().git_path
        'git'
    """

    model_config = ConfigDict(extra="ignore")

    log_level: str | None = None
    no_color: bool = False
    state_dir: Path | None = None
    git_path: str = "git"
    gh_path: str = "gh"
    remote: str = "origin"

    @field_validator("git_path", "gh_path", "remote", mode="before")
    @classmethod
    def normalize_command(cls, value: object, info: ValidationInfo) -> object:
        if value is None:
            return cls.model_fields[info.field_name].default
        if isinstance(value, str):
            normalized = value.strip()
            return normalized or cls.model_fields[info.field_name].default
        return value

    @field_validator("log_level", mode="before")
    @classmethod
    def normalize_log_level(cls, value: object) -> object:
        if isinstance(value, str):
            normalized = value.strip().lower()
            return normalized or None
        return value

    @field_validator("no_color", mode="before")
    @classmethod
    def normalize_flag(cls, value: object) -> object:
        if isinstance(value, str):
            return value.strip().lower() in _TRUE_VALUES
        return value

    @field_validator("state_dir", mode="before")
    @classmethod
    def normalize_state_dir(cls, value: object) -> object:
        if isinstance(value, str):
            normalized = value.strip()
            return Path(normalized).expanduser() if normalized else None
        return value


def _load_file_payload(path: Path | None) -> dict:
    if path is None or not path.exists():
        return {}
    try:
        with path.open("r", encoding="utf-8") as fh:
            payload = json.load(fh)
    except json.JSONDecodeError as exc:
        raise ValidationFailedError(f"invalid config file {path}: {exc}") from exc
    except OSError as exc:
        raise IoFailedError(f"failed to read config file {path}: {exc}") from exc
    if not isinstance(payload, dict):
        raise ValidationFailedError(f"invalid config file {path}: expected a JSON object")
    return payload


def _env_payload(env: Mapping[str, str]) -> dict:
    payload: dict[str, object] = {}
    for suffix, field in _ENV_FIELDS.items():
        value = env.get(f"{ENV_PREFIX}{suffix}")
        if value is not None:
            payload[field] = value
    if "no_color" not in payload and env.get("NO_COLOR"):
        payload["no_color"] = True
    return payload


def load_settings(
    *,
    env: Mapping[str, str] | None = None,
    path: Path | None = None,
    use_default_path: bool = False,
) -> Settings:
    """Resolve settings from the config file and environment.

    Args:
        env: Environment mapping (defaults to ``os.environ``).
        path: Explicit config file path.
        use_default_path: Read ``paths.user_config_path()`` when ``path`` is unset.

    Returns:
        Validated ``Settings``.
    """
    source_env = os.environ if env is None else env
    config_path = path
    if config_path is None and use_default_path:
        config_path = paths.user_config_path()
    payload = _load_file_payload(config_path)
    payload.update(_env_payload(source_env))
    try:
        return Settings.model_validate(payload)
    except ValidationError as exc:
        raise ValidationFailedError(f"invalid settings: {exc}") from exc
