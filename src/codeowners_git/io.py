"""Console I/O helpers for user-facing messages and prompts."""

from __future__ import annotations

import sys
from typing import Sequence

import questionary


def _use_questionary() -> bool:
    return sys.stdin.isatty() and sys.stdout.isatty()


def say(message: str) -> None:
    """Print a normal message to stdout.

    Args:
        message: Text to print.

    Returns:
        None.

    Example:
        >>> say("Hello")
        Hello
    """
    print(message)


def confirm(text: str, default: bool = False) -> bool:
    """Prompt for a yes/no confirmation.

    Args:
        text: Prompt label shown to the user.
        default: Default answer when the user presses enter.

    Returns:
        ``True`` when the user confirms.
    """
    if _use_questionary():
        response = questionary.confirm(text, default=default).ask()
        return bool(response)
    suffix = "[Y/n]" if default else "[y/N]"
    response = input(f"{text} {suffix}: ").strip().lower()
    if response == "":
        return default
    return response in {"y", "yes"}


def select(text: str, choices: Sequence[tuple[str, str]]) -> str | None:
    """Prompt the user to pick one of ``choices``.

    Args:
        text: Prompt label shown to the user.
        choices: ``(label, value)`` pairs in display order.

    Returns:
        The selected value, or ``None`` when the prompt is aborted.
    """
    if not choices:
        return None
    if _use_questionary():
        answer = questionary.select(
            text,
            choices=[questionary.Choice(title=label, value=value) for label, value in choices],
        ).ask()
        return str(answer) if answer is not None else None
    say(text)
    for index, (label, _value) in enumerate(choices, start=1):
        say(f"  {index}. {label}")
    while True:
        raw = input(f"Choice [1-{len(choices)}]: ").strip()
        if raw == "":
            return None
        if raw.isdigit() and 1 <= int(raw) <= len(choices):
            return choices[int(raw) - 1][1]
