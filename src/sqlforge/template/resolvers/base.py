"""Resolution context, operand helpers and the kind -> resolver registry."""

from __future__ import annotations

import re
from collections.abc import Callable
from dataclasses import dataclass, field
from enum import StrEnum

from sqlforge.dialect.base import Dialect
from sqlforge.models.descriptors import EntityDescriptor, FieldDescriptor, MethodDescriptor
from sqlforge.models.errors import Diagnostic
from sqlforge.template.errors import ConflictingOptionsError, MissingArgumentError
from sqlforge.template.naming import to_snake_case
from sqlforge.template.tokenizer import Placeholder, PlaceholderArgs
from sqlforge.template.validator import FragmentKind, require


class PlaceholderKind(StrEnum):
    # core
    TABLE = "table"
    COLUMNS = "columns"
    VALUES = "values"
    SET = "set"
    WHERE = "where"
    ORDERBY = "orderby"
    LIMIT = "limit"
    OFFSET = "offset"
    WRAP = "wrap"
    # conditions
    BETWEEN = "between"
    IN = "in"
    NOT_IN = "not_in"
    LIKE = "like"
    ISNULL = "isnull"
    NOTNULL = "notnull"
    # literals and functions
    BOOL_TRUE = "bool_true"
    BOOL_FALSE = "bool_false"
    CURRENT_TIMESTAMP = "current_timestamp"
    TODAY = "today"
    RANDOM = "random"
    UUID = "uuid"
    COUNT = "count"
    SUM = "sum"
    AVG = "avg"
    MAX = "max"
    MIN = "min"
    COALESCE = "coalesce"
    IFNULL = "ifnull"
    CONCAT = "concat"
    ROUND = "round"
    ABS = "abs"
    CEILING = "ceiling"
    FLOOR = "floor"
    UPPER = "upper"
    LOWER = "lower"
    TRIM = "trim"
    LENGTH = "length"
    SUBSTRING = "substring"
    CAST = "cast"
    GROUP_CONCAT = "group_concat"
    DATE_ADD = "date_add"
    DATE_DIFF = "date_diff"
    DISTINCT = "distinct"
    UNION = "union"
    # clauses
    JOIN = "join"
    GROUPBY = "groupby"
    HAVING = "having"
    # dialect-specific syntax
    JSON = "json"
    ARRAY = "array"
    FULLTEXT = "fulltext"
    # statements
    BATCH_INSERT = "batch_insert"
    UPSERT = "upsert"
    INSERT_RETURNING = "insert_returning"


ALIASES: dict[str, PlaceholderKind] = {
    "notin": PlaceholderKind.NOT_IN,
    "order_by": PlaceholderKind.ORDERBY,
    "group_by": PlaceholderKind.GROUPBY,
    "now": PlaceholderKind.CURRENT_TIMESTAMP,
    "timestamp": PlaceholderKind.CURRENT_TIMESTAMP,
    "true": PlaceholderKind.BOOL_TRUE,
    "false": PlaceholderKind.BOOL_FALSE,
    "isnotnull": PlaceholderKind.NOTNULL,
    "is_not_null": PlaceholderKind.NOTNULL,
    "is_null": PlaceholderKind.ISNULL,
    "ceil": PlaceholderKind.CEILING,
    "string_agg": PlaceholderKind.GROUP_CONCAT,
    "batch_values": PlaceholderKind.BATCH_INSERT,
    "returning": PlaceholderKind.INSERT_RETURNING,
    "newid": PlaceholderKind.UUID,
    "len": PlaceholderKind.LENGTH,
    "substr": PlaceholderKind.SUBSTRING,
}

Resolver = Callable[[Placeholder, "ResolutionContext"], str]

RESOLVERS: dict[PlaceholderKind, Resolver] = {}


def resolves(*kinds: PlaceholderKind) -> Callable[[Resolver], Resolver]:
    """Register the decorated function as the resolver for ``kinds``."""

    def decorator(func: Resolver) -> Resolver:
        for kind in kinds:
            if kind in RESOLVERS:
                raise RuntimeError(f"Duplicate resolver for placeholder kind '{kind}'")
            RESOLVERS[kind] = func
        return func

    return decorator


def lookup_kind(name: str) -> PlaceholderKind | None:
    try:
        return PlaceholderKind(name)
    except ValueError:
        return ALIASES.get(name)


# ---------------------------------------------------------------------------
# Context
# ---------------------------------------------------------------------------

_PLACEHOLDER_RE = re.compile(r"\{\{.*?\}\}", re.DOTALL)


@dataclass
class ResolutionContext:
    """Everything a resolver may consult, plus the sinks it reports into."""

    dialect: Dialect
    template: str
    entity: EntityDescriptor | None = None
    method: MethodDescriptor | None = None
    table: str | None = None
    max_batch_size: int = 1000
    warnings: list[Diagnostic] = field(default_factory=list)
    generated: list[str] = field(default_factory=list)
    current: Placeholder | None = None

    def warn(self, code: str, message: str) -> None:
        self.warnings.append(
            Diagnostic(
                code=code,
                message=message,
                placeholder=self.current.raw if self.current else None,
                span=self.current.span if self.current else None,
            )
        )

    def warn_once(self, code: str, message: str) -> None:
        if not any(w.code == code for w in self.warnings):
            self.warn(code, message)

    def param(self, name: str) -> str:
        """Dialect parameter reference for a generated parameter name."""
        if name not in self.generated:
            self.generated.append(name)
        return self.dialect.parameter(name)

    def param_for_column(self, column: str) -> str:
        """Parameter for ``column``, preferring the matching method parameter name."""
        if self.method is not None:
            for p in self.method.parameters:
                if to_snake_case(p.name) == column or p.name.lower() == column.lower():
                    return self.param(p.name)
        return self.param(column)

    def quote(self, name: str) -> str:
        return self.dialect.quote_qualified(name)

    # -- template inspection --------------------------------------------------

    def _plain_template(self) -> str:
        """Template with placeholders blanked out, offsets preserved."""
        return _PLACEHOLDER_RE.sub(lambda m: " " * len(m.group(0)), self.template)

    def clause_position(self, keyword: str, kind: PlaceholderKind | None = None) -> int | None:
        """Offset of the first SQL ``keyword`` or placeholder of ``kind`` (or an alias)."""
        positions: list[int] = []
        match = re.search(rf"\b{keyword}\b", self._plain_template(), re.IGNORECASE)
        if match:
            positions.append(match.start())
        if kind is not None:
            names = [kind.value, *(alias for alias, target in ALIASES.items() if target is kind)]
            pattern = rf"\{{\{{\s*(?:{'|'.join(names)})\b"
            match = re.search(pattern, self.template, re.IGNORECASE)
            if match:
                positions.append(match.start())
        return min(positions, default=None)

    def template_mentions(self, keyword: str, kind: PlaceholderKind | None = None) -> bool:
        """True when the SQL keyword or a placeholder of ``kind`` occurs."""
        return self.clause_position(keyword, kind) is not None

    @property
    def has_order_by(self) -> bool:
        return self.template_mentions(r"ORDER\s+BY", PlaceholderKind.ORDERBY)

    @property
    def limit_position(self) -> int | None:
        limit = self.clause_position("LIMIT", PlaceholderKind.LIMIT)
        fetch = self.clause_position("FETCH")
        return min((p for p in (limit, fetch) if p is not None), default=None)

    @property
    def offset_position(self) -> int | None:
        return self.clause_position("OFFSET", PlaceholderKind.OFFSET)

    @property
    def has_limit(self) -> bool:
        return self.limit_position is not None

    @property
    def has_offset(self) -> bool:
        return self.offset_position is not None

    # -- descriptors ----------------------------------------------------------

    def table_name(self, override: str | None = None) -> str:
        """Snake-cased table: explicit override, caller default, then entity name."""
        if override:
            return to_snake_case(require(override, FragmentKind.TABLE_PART, "table name"))
        if self.table:
            return to_snake_case(require(self.table, FragmentKind.TABLE_PART, "table name"))
        if self.entity is not None:
            return self.entity.table
        raise MissingArgumentError("No table name available: pass a table or an entity")

    def require_entity(self) -> EntityDescriptor:
        if self.entity is None:
            raise MissingArgumentError("This placeholder needs an entity descriptor")
        return self.entity

    def primary_key_columns(self) -> list[str]:
        if self.entity is not None and self.entity.primary_keys:
            return [f.column for f in self.entity.primary_keys]
        return ["id"]

    def select_fields(
        self, args: PlaceholderArgs, *, exclude_primary_keys: bool = False
    ) -> list[FieldDescriptor]:
        """Entity fields in declared order, filtered by ``--exclude`` / ``--only``."""
        entity = self.require_entity()
        excluded = args.values("exclude")
        only = args.values("only")
        if args.has("exclude") and args.has("only"):
            raise ConflictingOptionsError("--exclude and --only cannot be combined")
        for name in (*excluded, *only):
            if entity.field(name) is None:
                self.warn("UNKNOWN_FIELD", f"'{name}' is not a field of {entity.name}")
        fields = list(entity.fields)
        if only:
            wanted = {to_snake_case(n) for n in only} | {n.lower() for n in only}
            fields = [f for f in fields if f.column in wanted or f.name.lower() in wanted]
        elif excluded:
            dropped = {to_snake_case(n) for n in excluded} | {n.lower() for n in excluded}
            fields = [
                f for f in fields if f.column not in dropped and f.name.lower() not in dropped
            ]
        if exclude_primary_keys:
            keys = set(entity.primary_keys)
            fields = [f for f in fields if f not in keys]
        return fields


# ---------------------------------------------------------------------------
# Operands
# ---------------------------------------------------------------------------

PARAMETER_REF_RE = re.compile(r"[@:$?]\w+")
_NUMBER_RE = re.compile(r"-?\d+(?:\.\d+)?")
_STRING_RE = re.compile(r"'(?:[^']|'')*'")
_NAME_RE = re.compile(r"[A-Za-z_]\w*(?:\.[A-Za-z_]\w*)*")


def is_parameter_ref(token: str) -> bool:
    return PARAMETER_REF_RE.fullmatch(token) is not None


def is_number(token: str) -> bool:
    return _NUMBER_RE.fullmatch(token) is not None


def is_name(token: str) -> bool:
    return _NAME_RE.fullmatch(token) is not None


def operand(ctx: ResolutionContext, token: str) -> str:
    """A value operand.

    Caller-supplied parameter references are echoed verbatim, bare names
    become dialect parameters, literals and expressions pass validated.
    """
    token = token.strip()
    if is_parameter_ref(token) or is_number(token):
        return token
    if _STRING_RE.fullmatch(token):
        return require(token, FragmentKind.FRAGMENT, "string literal")
    if token.upper() == "NULL":
        return "NULL"
    if is_name(token) and "." not in token:
        return ctx.param(token)
    return require(token, FragmentKind.FRAGMENT, "expression")


def column_ref(ctx: ResolutionContext, token: str, quoted: bool = False) -> str:
    """A column operand: names are snake-cased, expressions pass validated."""
    token = token.strip()
    if token == "*":
        return token
    if is_name(token):
        require(token, FragmentKind.TABLE_PART, "column name")
        column = to_snake_case(token)
        return ctx.quote(column) if quoted else column
    return require(token, FragmentKind.FRAGMENT, "expression")


def expression(token: str) -> str:
    """An expression operand passed through after fragment validation."""
    return require(token.strip(), FragmentKind.FRAGMENT, "expression")


def wants_quoting(placeholder: Placeholder) -> bool:
    return placeholder.variant == "quoted" or placeholder.args.has("quoted")


def term(ctx: ResolutionContext, token: str) -> str:
    """A function argument: parameters and literals verbatim, names as columns."""
    token = token.strip()
    if is_parameter_ref(token) or is_number(token) or token.upper() == "NULL":
        return token
    if _STRING_RE.fullmatch(token):
        return require(token, FragmentKind.FRAGMENT, "string literal")
    return column_ref(ctx, token)


def operands(args: PlaceholderArgs) -> list[str]:
    """Comma-separated operands, or whitespace-separated when no comma is used."""
    if "," in args.body:
        return args.items()
    return list(args.positional)
