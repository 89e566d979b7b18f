"""Path helpers for locating codeowners-git data directories and files."""

from __future__ import annotations

import hashlib
from pathlib import Path

from platformdirs import user_data_dir

APP_NAME = "codeowners-git"
STATE_DIRNAME = "state"
CONFIG_USER_FILENAME = "config.user.json"
STATE_FILE_SUFFIX = ".json"


def data_dir() -> Path:
    """Return the base codeowners-git data directory.

    Returns:
        Path to the user data directory.

    Example:
        >>> isinstance(data_dir(), Path)
        True
    """
    return Path(user_data_dir(APP_NAME))


def user_config_path() -> Path:
    """Return the path to the optional user config file."""
    return data_dir() / CONFIG_USER_FILENAME


def state_root(override: Path | None = None) -> Path:
    """Return the directory holding per-project operation state.

    Example:
        >>> state_root(Path("/tmp/state")).as_posix()
        '/tmp/state'
    """
    if override is not None:
        return override
    return data_dir() / STATE_DIRNAME


def project_key(project_path: Path) -> str:
    """Hash a working-directory path into a short, stable key.

    Example:
        >>> len(project_key(Path("/repo")))
        12
    """
    resolved = str(project_path.expanduser().resolve())
    return hashlib.sha256(resolved.encode("utf-8")).hexdigest()[:12]


def project_state_dir(project_path: Path, *, root: Path | None = None) -> Path:
    """Return the state directory for one repository.

    Example:
        >>> project_state_dir(Path("/repo"), root=Path("/s")).parent.as_posix()
        '/s'
    """
    return state_root(root) / project_key(project_path)


def state_file_path(state_dir: Path, operation_id: str) -> Path:
    """Return the record path for an operation id."""
    return state_dir / f"{operation_id}{STATE_FILE_SUFFIX}"
