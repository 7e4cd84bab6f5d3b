"""Fixed-point template engine: tokenize, resolve innermost placeholders, repeat."""

from __future__ import annotations

import dataclasses
import logging
import re
from typing import TYPE_CHECKING

from sqlforge.dialect import Dialect, DialectRegistry
from sqlforge.models.descriptors import EntityDescriptor, MethodDescriptor
from sqlforge.models.errors import Diagnostic, ProcessingResult
from sqlforge.settings import Settings
from sqlforge.template.errors import PlaceholderError
from sqlforge.template.resolvers import RESOLVERS, ResolutionContext, lookup_kind
from sqlforge.template.sql_check import is_statement, validate_sql
from sqlforge.template.tokenizer import Placeholder, check_balance, find_innermost
from sqlforge.template.validator import SecurityRejection

if TYPE_CHECKING:
    from sqlforge.parser.loader import DescriptorSet, TemplateDefinition

logger = logging.getLogger("sqlforge.template")

# Template-wide constructs rejected (errors) or flagged (warnings) per dialect.
_FORBIDDEN: dict[str, list[tuple[re.Pattern[str], str]]] = {
    "mysql": [
        (re.compile(r"\bLOAD_FILE\s*\(", re.IGNORECASE), "LOAD_FILE reads server files"),
        (
            re.compile(r"\bINTO\s+(?:OUT|DUMP)FILE\b", re.IGNORECASE),
            "INTO OUTFILE writes server files",
        ),
    ],
    "sqlserver": [
        (re.compile(r"\bOPENROWSET\s*\(", re.IGNORECASE), "OPENROWSET reaches external data"),
        (
            re.compile(r"\bOPENDATASOURCE\s*\(", re.IGNORECASE),
            "OPENDATASOURCE reaches external data",
        ),
        (re.compile(r"\bxp_cmdshell\b", re.IGNORECASE), "xp_cmdshell runs shell commands"),
    ],
}
_STACKED_DDL = re.compile(
    r";\s*(?:DROP|TRUNCATE|ALTER|EXEC(?:UTE)?|GRANT|REVOKE|SHUTDOWN)\b", re.IGNORECASE
)
_SUSPICIOUS: dict[str, list[tuple[re.Pattern[str], str]]] = {
    "postgres": [(re.compile(r"\$\$"), "Dollar-quoted strings bypass literal escaping")],
}
_PARAM_NAME_RE = re.compile(r"^[@:$?](\w+)$")


class TemplateEngine:
    """Compiles SQL templates to dialect-specific SQL.

    Stateless between calls; one instance may serve any number of templates
    concurrently.
    """

    def __init__(self, settings: Settings | None = None) -> None:
        self._settings = settings or Settings()

    @property
    def settings(self) -> Settings:
        return self._settings

    def resolve_dialect(self, dialect: str | Dialect | None) -> Dialect:
        if isinstance(dialect, Dialect):
            return dialect
        return DialectRegistry.get(dialect or self._settings.default_dialect, self._settings)

    def process(
        self,
        template: str,
        *,
        dialect: str | Dialect | None = None,
        entity: EntityDescriptor | None = None,
        method: MethodDescriptor | None = None,
        table: str | None = None,
    ) -> ProcessingResult:
        """Resolve every placeholder in ``template`` for ``dialect``.

        Resolver problems are collected into the result.  ``PaginationError``
        propagates: it marks a template authoring bug.
        """
        target = self.resolve_dialect(dialect)
        if not template or not template.strip():
            return ProcessingResult(
                processed_sql=template,
                dialect=target.name,
                warnings=[Diagnostic(code="EMPTY_TEMPLATE", message="Template is empty")],
            )

        errors = self._template_security(template, target)
        warnings = self._template_warnings(template, target)
        if errors:
            return ProcessingResult(
                processed_sql=template, dialect=target.name, errors=errors, warnings=warnings
            )

        errors = check_balance(template)
        if errors:
            logger.debug("Unbalanced placeholder braces in template %r", template)
            return ProcessingResult(
                processed_sql=template, dialect=target.name, errors=errors, warnings=warnings
            )

        ctx = ResolutionContext(
            dialect=target,
            template=template,
            entity=entity,
            method=method,
            table=table,
            max_batch_size=self._settings.max_batch_size,
            warnings=warnings,
        )
        sql, passes = self._resolve(template, ctx, errors)
        result_sql, plan = target.finalize_parameters(sql)
        if not errors:
            if not target.is_positional:
                plan = self._parameter_plan(result_sql, ctx)
            if self._settings.check_output_sql and is_statement(result_sql):
                for message in validate_sql(_neutralize_parameters(result_sql), target.name):
                    ctx.warnings.append(Diagnostic(code="SQL_CHECK", message=message))
        return ProcessingResult(
            processed_sql=result_sql,
            dialect=target.name,
            errors=errors,
            warnings=ctx.warnings,
            parameters=plan,
            passes=passes,
        )

    def process_definition(
        self,
        definition: TemplateDefinition,
        descriptors: DescriptorSet,
        *,
        dialect: str | Dialect | None = None,
    ) -> ProcessingResult:
        """Compile a loaded method template; ``dialect`` overrides the one it names."""
        return self.process(
            definition.sql,
            dialect=dialect or definition.dialect,
            entity=descriptors.entity_for(definition),
            method=definition.method,
            table=definition.table,
        )

    # -- fixed-point loop ---------------------------------------------------------

    def _resolve(
        self, text: str, ctx: ResolutionContext, errors: list[Diagnostic]
    ) -> tuple[str, int]:
        max_passes = self._settings.max_resolution_passes
        passes = 0
        while True:
            try:
                placeholders = find_innermost(text)
            except PlaceholderError as exc:
                errors.append(Diagnostic(code=exc.code, message=str(exc)))
                return text, passes
            if not placeholders:
                return text, passes
            if passes >= max_passes:
                errors.append(
                    Diagnostic(
                        code="NESTING_LIMIT",
                        message=(
                            f"Placeholders still unresolved after {max_passes} passes; "
                            "nesting is too deep"
                        ),
                        placeholder=placeholders[0].raw,
                    )
                )
                return text, passes
            passes += 1
            logger.debug("Pass %d: %d placeholder(s)", passes, len(placeholders))

            # Right to left so earlier offsets stay valid.
            for placeholder in reversed(placeholders):
                replacement = self._resolve_one(placeholder, ctx, errors)
                if replacement is not None:
                    text = text[: placeholder.start] + replacement + text[placeholder.end :]
            if errors:
                logger.debug("Stopping after pass %d with %d error(s)", passes, len(errors))
                return text, passes

    def _resolve_one(
        self, placeholder: Placeholder, ctx: ResolutionContext, errors: list[Diagnostic]
    ) -> str | None:
        kind = lookup_kind(placeholder.kind)
        if kind is None:
            errors.append(
                Diagnostic(
                    code="UNKNOWN_PLACEHOLDER",
                    message=f"Unknown placeholder kind '{placeholder.kind}'",
                    placeholder=placeholder.raw,
                    span=placeholder.span,
                )
            )
            return None
        placeholder = dataclasses.replace(placeholder, kind=kind.value)
        ctx.current = placeholder
        try:
            return RESOLVERS[kind](placeholder, ctx)
        except SecurityRejection as exc:
            logger.warning("Rejected %s: %s", placeholder.raw, exc)
            errors.append(
                Diagnostic(
                    code=exc.code,
                    message=str(exc),
                    placeholder=placeholder.raw,
                    span=placeholder.span,
                )
            )
        except PlaceholderError as exc:
            errors.append(
                Diagnostic(
                    code=exc.code,
                    message=str(exc),
                    placeholder=placeholder.raw,
                    span=placeholder.span,
                )
            )
        finally:
            ctx.current = None
        return None

    # -- template-level checks ------------------------------------------------------

    @staticmethod
    def _template_security(template: str, dialect: Dialect) -> list[Diagnostic]:
        errors = []
        if _STACKED_DDL.search(template):
            errors.append(
                Diagnostic(
                    code="UNSAFE_TEMPLATE",
                    message="Template stacks a DDL or EXEC statement after a semicolon",
                )
            )
        return errors + [
            Diagnostic(code="UNSAFE_TEMPLATE", message=f"{dialect.descriptor.display_name}: {why}")
            for pattern, why in _FORBIDDEN.get(dialect.name, [])
            if pattern.search(template)
        ]

    @staticmethod
    def _template_warnings(template: str, dialect: Dialect) -> list[Diagnostic]:
        return [
            Diagnostic(code="SUSPICIOUS_SQL", message=why)
            for pattern, why in _SUSPICIOUS.get(dialect.name, [])
            if pattern.search(template)
        ]

    # -- parameter plan -------------------------------------------------------------

    def _parameter_plan(self, sql: str, ctx: ResolutionContext) -> list[str]:
        """Referenced parameter names in first-use order.

        Names nobody declared and markers with the wrong prefix are warnings.
        """
        plan: list[str] = []
        known = {n.lower() for n in ctx.generated}
        if ctx.method is not None:
            known.update(n.lower() for n in ctx.method.parameter_names)
        prefix = ctx.dialect.descriptor.parameter_prefix
        for token in ctx.dialect.parameter_tokens(sql):
            match = _PARAM_NAME_RE.match(token)
            if match is None:
                continue
            name = match.group(1)
            if name in plan:
                continue
            plan.append(name)
            if not token.startswith(prefix):
                ctx.warnings.append(
                    Diagnostic(
                        code="PARAMETER_PREFIX",
                        message=(
                            f"Parameter '{token}' does not use the "
                            f"{ctx.dialect.descriptor.display_name} prefix '{prefix}'"
                        ),
                    )
                )
            if ctx.method is not None and name.lower() not in known:
                ctx.warnings.append(
                    Diagnostic(
                        code="UNKNOWN_PARAMETER",
                        message=f"Parameter '{name}' is not a parameter of {ctx.method.name}",
                    )
                )
        return plan


def _neutralize_parameters(sql: str) -> str:
    """Replace bound parameters with NULL so sqlglot sees plain SQL."""
    return re.sub(r"(?<![:\w@$])(?:[@:?]\w+|\$\d+|\?)", "NULL", sql)


def process_template(
    template: str,
    dialect: str | Dialect,
    *,
    entity: EntityDescriptor | None = None,
    method: MethodDescriptor | None = None,
    table: str | None = None,
    settings: Settings | None = None,
) -> ProcessingResult:
    """Convenience wrapper around ``TemplateEngine(settings).process``."""
    return TemplateEngine(settings).process(
        template, dialect=dialect, entity=entity, method=method, table=table
    )
