"""Identifier naming conventions."""

from __future__ import annotations

import re

# Boundary between a lower/digit and an upper letter, or inside an acronym
# right before its last capital ("HTTPService" -> "HTTP|Service").
_WORD_BOUNDARY = re.compile(r"(?<=[a-z0-9])(?=[A-Z])|(?<=[A-Z])(?=[A-Z][a-z])")


def to_snake_case(name: str) -> str:
    """Convert a PascalCase/camelCase name to snake_case.

    Names that already contain an underscore are only lowercased.
    Dotted names are converted segment by segment.
    """
    if not name:
        return name
    if "." in name:
        return ".".join(to_snake_case(part) for part in name.split("."))
    if "_" in name:
        return name.lower()
    return _WORD_BOUNDARY.sub("_", name).lower()
