"""Post-generation SQL check using sqlglot."""

from __future__ import annotations

import re

import sqlglot
from sqlglot.errors import SqlglotError

# Map sqlforge dialect names to sqlglot dialect identifiers.
# DB2 has no sqlglot dialect; its output is not checked.
_DIALECT_MAP: dict[str, str] = {
    "mysql": "mysql",
    "sqlserver": "tsql",
    "postgres": "postgres",
    "sqlite": "sqlite",
    "oracle": "oracle",
}

_STATEMENT_RE = re.compile(
    r"^\s*(?:SELECT|INSERT|UPDATE|DELETE|WITH|MERGE)\b", re.IGNORECASE
)


def is_statement(sql: str) -> bool:
    """True when ``sql`` starts like a complete statement rather than a fragment."""
    return _STATEMENT_RE.match(sql) is not None


def validate_sql(sql: str, dialect_name: str) -> list[str]:
    """Parse SQL with sqlglot for the given dialect.

    Returns a list of error messages (empty if valid).
    Validation is non-blocking: callers should treat errors as warnings.
    """
    sg_dialect = _DIALECT_MAP.get(dialect_name)
    if sg_dialect is None:
        return []

    errors: list[str] = []
    try:
        sqlglot.parse(sql, read=sg_dialect)
    except SqlglotError as exc:
        errors.append(str(exc))
    return errors
