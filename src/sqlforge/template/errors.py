"""Exceptions raised while resolving placeholders."""

from __future__ import annotations


class PlaceholderError(Exception):
    """A placeholder could not be resolved; collected by the engine as an error."""

    code = "INVALID_ARGUMENT"

    def __init__(self, message: str, code: str | None = None) -> None:
        if code is not None:
            self.code = code
        super().__init__(message)


class MissingArgumentError(PlaceholderError):
    code = "MISSING_ARGUMENT"


class ConflictingOptionsError(PlaceholderError):
    code = "CONFLICTING_OPTIONS"


class MalformedTemplateError(PlaceholderError):
    """Unbalanced braces, unknown placeholder kinds, or runaway nesting."""

    code = "MALFORMED_TEMPLATE"


class PaginationError(ValueError):
    """Pagination the target dialect cannot express (e.g. OFFSET without LIMIT).

    Not collected as a diagnostic: it aborts processing of the template.
    """
