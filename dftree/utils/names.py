"""Identifier sanitization for the simulator's variable names."""

from __future__ import annotations

import re

_INVALID_RUN = re.compile(r"[^A-Za-z0-9_]+")
_UNDERSCORES = re.compile(r"_+")
_STARTS_WITH_LETTER = re.compile(r"^[A-Za-z]")

#: Prefix added to names that would not start with a letter.
DEFAULT_PREFIX = "E_"


def sanitize_name(name: str, prefix: str = DEFAULT_PREFIX) -> str:
    """Map a free-form display name to a bare identifier.

    Steps, in order:

    1. Every maximal run of characters outside ``[A-Za-z0-9_]`` becomes a
       single underscore.
    2. If the result does not start with a letter, ``prefix`` is prepended.
    3. Repeated underscores are collapsed and trailing underscores removed.

    Examples:
        "Pump A" -> "Pump_A"; "1st valve" -> "E_1st_valve"; "" -> "E".

    Distinct names can map to the same identifier ("a b" and "a-b"); see
    :func:`find_collisions`.

    Args:
        name: Display name. ``None`` is treated as an empty string.
        prefix: Prefix for names that do not start with a letter.

    Returns:
        Sanitized identifier, never empty for a non-empty prefix.
    """
    sanitized = _INVALID_RUN.sub("_", name or "")
    if not _STARTS_WITH_LETTER.match(sanitized):
        sanitized = prefix + sanitized
    sanitized = _UNDERSCORES.sub("_", sanitized)
    return sanitized.rstrip("_")


def find_collisions(
    names: dict[str, str], prefix: str = DEFAULT_PREFIX
) -> dict[str, list[str]]:
    """Group element ids whose display names sanitize to the same identifier.

    Args:
        names: Mapping of element id to display name.
        prefix: Prefix passed to :func:`sanitize_name`.

    Returns:
        Mapping of identifier to the ids sharing it, only for identifiers used
        by more than one element. Id lists keep the input order.
    """
    by_ident: dict[str, list[str]] = {}
    for element_id, display in names.items():
        by_ident.setdefault(sanitize_name(display, prefix), []).append(element_id)
    return {ident: ids for ident, ids in by_ident.items() if len(ids) > 1}
