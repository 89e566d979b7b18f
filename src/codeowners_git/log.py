"""Terminal output for codeowners-git.

Progress lines (operation ids, owners being processed, the files that went
into a branch) go to stdout; warnings and errors go to stderr so a failed
push or a skipped owner stays visible when stdout is piped. The threshold
comes from ``--log-level`` or ``CODEOWNERS_GIT_LOG_LEVEL``; color is dropped
under ``--no-color``, ``NO_COLOR`` or ``CODEOWNERS_GIT_NO_COLOR``.
"""

from __future__ import annotations

import os
import sys
from enum import IntEnum

from rich.console import Console
from rich.text import Text


class LogLevel(IntEnum):
    TRACE = 10
    DEBUG = 20
    INFO = 30
    SUCCESS = 35
    WARNING = 40
    ERROR = 50


LEVEL_NAMES = ("trace", "debug", "info", "success", "warning", "error")
_LEVEL_BY_NAME = {name: LogLevel[name.upper()] for name in LEVEL_NAMES}
_LEVEL_BY_NAME["warn"] = LogLevel.WARNING
_STYLES = {
    LogLevel.TRACE: "dim",
    LogLevel.DEBUG: "cyan",
    LogLevel.SUCCESS: "green",
    LogLevel.WARNING: "yellow",
    LogLevel.ERROR: "bold red",
}
_DEFAULT_LEVEL = LogLevel.INFO
_configured_level: LogLevel | None = None
_no_color: bool | None = None


def is_level_name(value: str) -> bool:
    """Return whether ``value`` is accepted by ``--log-level``.

    Example:
        >>> is_level_name(" Warn ")
        True
        >>> is_level_name("loud")
        False
    """
    return value.strip().lower() in _LEVEL_BY_NAME


def _parse_level(value: str | None) -> LogLevel:
    # Unknown values from the environment fall back to info; the CLI flag is validated earlier.
    if not value or not value.strip():
        return _DEFAULT_LEVEL
    return _LEVEL_BY_NAME.get(value.strip().lower(), _DEFAULT_LEVEL)


def configured_level() -> LogLevel:
    global _configured_level
    if _configured_level is None:
        _configured_level = _parse_level(os.environ.get("CODEOWNERS_GIT_LOG_LEVEL"))
    return _configured_level


def set_level(value: str | None) -> None:
    """Apply ``--log-level`` for the rest of the command; ``None`` restores info."""
    global _configured_level
    _configured_level = _parse_level(value)


def set_no_color(value: bool) -> None:
    global _no_color
    _no_color = value


def _color_disabled() -> bool:
    if _no_color is not None:
        return _no_color
    return bool(os.environ.get("NO_COLOR") or os.environ.get("CODEOWNERS_GIT_NO_COLOR"))


def console(*, stderr: bool = False) -> Console:
    """Return a console honoring the color settings.

    The ``list`` and ``recover --list`` tables print through this so they
    share the no-color switch with log lines.
    """
    return Console(
        file=sys.stderr if stderr else sys.stdout,
        soft_wrap=True,
        highlight=False,
        no_color=_color_disabled(),
    )


def emit(
    level: LogLevel,
    message: str,
    *,
    style: str | None = None,
    stderr: bool | None = None,
) -> None:
    if level < configured_level():
        return
    if stderr is None:
        stderr = level >= LogLevel.WARNING
    console(stderr=stderr).print(Text(message, style=style or _STYLES.get(level, "")))


def trace(message: str, *, style: str | None = None) -> None:
    emit(LogLevel.TRACE, message, style=style)


def debug(message: str, *, style: str | None = None) -> None:
    emit(LogLevel.DEBUG, message, style=style)


def info(message: str, *, style: str | None = None) -> None:
    emit(LogLevel.INFO, message, style=style)


def success(message: str, *, style: str | None = None) -> None:
    emit(LogLevel.SUCCESS, message, style=style)


def warning(message: str, *, style: str | None = None) -> None:
    emit(LogLevel.WARNING, message, style=style)


def error(message: str, *, style: str | None = None) -> None:
    emit(LogLevel.ERROR, message, style=style)


def header(message: str) -> None:
    """Open a section of output, such as one owner of a multi-branch run."""
    emit(LogLevel.INFO, f"\n{message}", style="bold cyan")


def file(path: str) -> None:
    """List one changed file under the owner or branch being reported."""
    emit(LogLevel.INFO, f"- {path}", style="dim")
