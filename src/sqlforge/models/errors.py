"""Structured diagnostics and the result of processing one template."""

from __future__ import annotations

from pydantic import BaseModel


class SourceSpan(BaseModel):
    """Character offsets of a placeholder in the text of the pass that saw it."""

    start: int
    end: int


class Diagnostic(BaseModel):
    """A structured error or warning with an optional placeholder location."""

    code: str
    message: str
    placeholder: str | None = None
    span: SourceSpan | None = None

    def __str__(self) -> str:
        if self.placeholder:
            return f"[{self.code}] {self.message} (in {self.placeholder})"
        return f"[{self.code}] {self.message}"


class TemplateProcessingError(Exception):
    """Raised by ``ProcessingResult.raise_for_errors`` when errors were collected."""

    def __init__(self, errors: list[Diagnostic]) -> None:
        self.errors = errors
        msgs = "; ".join(str(e) for e in errors)
        super().__init__(f"Template processing failed: {msgs}")


class ProcessingResult(BaseModel):
    """Outcome of ``TemplateEngine.process``."""

    processed_sql: str
    dialect: str
    errors: list[Diagnostic] = []
    warnings: list[Diagnostic] = []
    parameters: list[str] = []
    passes: int = 0

    @property
    def ok(self) -> bool:
        return not self.errors

    def raise_for_errors(self) -> ProcessingResult:
        """Return ``self`` when clean, raise ``TemplateProcessingError`` otherwise."""
        if self.errors:
            raise TemplateProcessingError(self.errors)
        return self
