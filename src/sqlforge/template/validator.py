"""Identifier and SQL fragment validation.

Every placeholder argument that ends up in SQL text (table overrides,
column names, join conditions, where/having fragments, JSON paths) is
checked here first.  A rejection is always a hard error.
"""

from __future__ import annotations

import re
from enum import StrEnum

MAX_IDENTIFIER_LENGTH = 128
MAX_FRAGMENT_LENGTH = 4096

_IDENTIFIER_RE = re.compile(r"[A-Za-z_][A-Za-z0-9_]*")
_DANGEROUS_KEYWORD_RE = re.compile(
    r"\b(?:DROP|DELETE|EXEC|EXECUTE|TRUNCATE|ALTER|INSERT|UPDATE)\b", re.IGNORECASE
)
_DANGEROUS_TOKENS = ("--", "/*", "*/", ";", "\x00")


class FragmentKind(StrEnum):
    IDENTIFIER = "identifier"
    TABLE_PART = "table_part"
    FRAGMENT = "fragment"


class SecurityRejection(Exception):
    """Raised when a placeholder argument fails identifier/fragment validation."""

    def __init__(self, value: str, kind: FragmentKind, what: str = "") -> None:
        self.value = value
        self.kind = kind
        label = what or kind.value.replace("_", " ")
        super().__init__(f"Unsafe {label} rejected: {value!r}")

    @property
    def code(self) -> str:
        if self.kind is FragmentKind.FRAGMENT:
            return "UNSAFE_FRAGMENT"
        return "UNSAFE_IDENTIFIER"


def is_valid_identifier(value: str) -> bool:
    """Letters, digits and underscore; not starting with a digit; bounded length."""
    if not value or len(value) > MAX_IDENTIFIER_LENGTH:
        return False
    return _IDENTIFIER_RE.fullmatch(value) is not None


def is_valid_table_part(value: str) -> bool:
    """A dot-separated sequence of identifiers (``schema.table``)."""
    if not value or len(value) > MAX_IDENTIFIER_LENGTH * 3:
        return False
    return all(is_valid_identifier(part) for part in value.split("."))


def contains_dangerous_keyword(value: str) -> bool:
    """Whole-word DDL/DML keywords, comment markers or statement separators."""
    if any(token in value for token in _DANGEROUS_TOKENS):
        return True
    return _DANGEROUS_KEYWORD_RE.search(value) is not None


def is_valid_fragment(value: str) -> bool:
    """A bounded expression fragment safe to splice into a statement."""
    if not value or not value.strip() or len(value) > MAX_FRAGMENT_LENGTH:
        return False
    if value.count("'") % 2:
        return False
    # backslash-escaped quote (MySQL string literals)
    if "\\'" in value:
        return False
    if not _parens_balanced(_strip_string_literals(value)):
        return False
    return not contains_dangerous_keyword(value)


def validate(value: str, kind: FragmentKind) -> bool:
    match kind:
        case FragmentKind.IDENTIFIER:
            return is_valid_identifier(value)
        case FragmentKind.TABLE_PART:
            return is_valid_table_part(value)
        case FragmentKind.FRAGMENT:
            return is_valid_fragment(value)


def require(value: str, kind: FragmentKind, what: str = "") -> str:
    """Return ``value`` unchanged or raise ``SecurityRejection``."""
    if not validate(value, kind):
        raise SecurityRejection(value, kind, what)
    return value


def _strip_string_literals(value: str) -> str:
    return re.sub(r"'(?:[^']|'')*'", "''", value)


def _parens_balanced(value: str) -> bool:
    depth = 0
    for ch in value:
        if ch == "(":
            depth += 1
        elif ch == ")":
            depth -= 1
            if depth < 0:
                return False
    return depth == 0
