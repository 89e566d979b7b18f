"""Glob matching of owner identifiers against comma-separated patterns.

Owners are matched like paths: ``*`` stops at ``/``, ``**`` crosses it,
``{a,b}`` expands, and a leading ``!`` negates.
"""

from __future__ import annotations

from typing import Iterable

from wcmatch import glob

from .errors import ValidationFailedError

OWNER_GLOB_FLAGS = glob.BRACE | glob.GLOBSTAR | glob.NEGATE | glob.NEGATEALL | glob.FORCEUNIX


def split_patterns(value: str | None) -> list[str]:
    """Split a comma-separated pattern list; commas inside braces do not split.

    Example:
        >>> split_patterns(" @team-*, *backend* ,")
        ['@team-*', '*backend*']
        >>> split_patterns("@org/{ui,api},@docs")
        ['@org/{ui,api}', '@docs']
    """
    if not value:
        return []
    items: list[str] = []
    current: list[str] = []
    depth = 0
    for char in value:
        if char == "," and depth == 0:
            items.append("".join(current))
            current = []
            continue
        if char == "{":
            depth += 1
        elif char == "}" and depth:
            depth -= 1
        current.append(char)
    items.append("".join(current))
    return [item.strip() for item in items if item.strip()]


def matches_any(owner: str, patterns: Iterable[str]) -> bool:
    """Return whether ``owner`` matches any glob pattern.

    Example:
        >>> matches_any("@backend", ["*backend*"])
        True
        >>> matches_any("@frontend", ["*backend*"])
        False
        >>> matches_any("@org/backend", ["*backend*"])
        False
        >>> matches_any("@org/backend", ["@org/*"])
        True
    """
    patterns = list(patterns)
    if not patterns:
        return False
    return glob.globmatch(owner, patterns, flags=OWNER_GLOB_FLAGS)


def filter_owners(
    owners: list[str],
    *,
    include: str | None = None,
    ignore: str | None = None,
) -> list[str]:
    """Keep owners matching ``include`` or drop owners matching ``ignore``.

    Raises:
        ValidationFailedError: Both filters were given.
    """
    if include and ignore:
        raise ValidationFailedError(
            "cannot use both --ignore and --include options at the same time"
        )
    if ignore:
        patterns = split_patterns(ignore)
        return [owner for owner in owners if not matches_any(owner, patterns)]
    if include:
        patterns = split_patterns(include)
        return [owner for owner in owners if matches_any(owner, patterns)]
    return list(owners)


def match_owners(owners: list[str], patterns: str | None) -> bool:
    """Return whether any owner matches ``patterns`` with ``/`` ignored.

    Used by ``list --include`` so ``@org/team`` can be matched as ``@orgteam*``
    style patterns without caring about the separator.

    Example:
        >>> match_owners(["@org/ui-team"], "*ui*")
        True
        >>> match_owners(["@org/ui-team"], "")
        False
    """
    if not patterns or not patterns.strip():
        return False
    normalized_owners = [owner.replace("/", "") for owner in owners]
    normalized_patterns = split_patterns(patterns.replace("/", ""))
    return any(matches_any(owner, normalized_patterns) for owner in normalized_owners)
