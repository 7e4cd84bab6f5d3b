"""Resolvers for table, column-list, predicate and pagination placeholders."""

from __future__ import annotations

from sqlforge.template.errors import MissingArgumentError, PlaceholderError
from sqlforge.template.naming import to_snake_case
from sqlforge.template.resolvers.base import (
    PlaceholderKind,
    ResolutionContext,
    column_ref,
    expression,
    is_name,
    operand,
    resolves,
    wants_quoting,
)
from sqlforge.template.tokenizer import Placeholder
from sqlforge.template.validator import FragmentKind, require

PAGE_PRESETS: dict[str, int] = {
    "tiny": 5,
    "small": 10,
    "page": 20,
    "default": 20,
    "medium": 50,
    "large": 100,
}

# Method parameters recognised as page size / start row.
_LIMIT_PARAMS = ("limit", "pageSize", "take", "top")
_OFFSET_PARAMS = ("offset", "skip")
_PAGING_PARAMS = {n.lower() for n in (*_LIMIT_PARAMS, *_OFFSET_PARAMS)}


@resolves(PlaceholderKind.TABLE)
def resolve_table(placeholder: Placeholder, ctx: ResolutionContext) -> str:
    args = placeholder.args
    override = args.positional[0] if args.positional else None
    name = ctx.table_name(override)
    return ctx.quote(name) if wants_quoting(placeholder) else name


@resolves(PlaceholderKind.COLUMNS)
def resolve_columns(placeholder: Placeholder, ctx: ResolutionContext) -> str:
    if ctx.entity is None:
        ctx.warn("NO_ENTITY", "No entity descriptor; emitted '*' for {{columns}}")
        return "*"
    fields = ctx.select_fields(placeholder.args, exclude_primary_keys=placeholder.variant == "auto")
    if not fields:
        raise PlaceholderError("Every column was filtered out")
    names = [f.column for f in fields]
    if wants_quoting(placeholder):
        names = [ctx.quote(n) for n in names]
    return ", ".join(names)


@resolves(PlaceholderKind.VALUES)
def resolve_values(placeholder: Placeholder, ctx: ResolutionContext) -> str:
    if ctx.entity is None:
        if ctx.method is None or not ctx.method.parameters:
            raise MissingArgumentError("{{values}} needs an entity or method parameters")
        return ", ".join(ctx.param(p.name) for p in ctx.method.parameters)
    fields = ctx.select_fields(placeholder.args, exclude_primary_keys=placeholder.variant == "auto")
    if not fields:
        raise PlaceholderError("Every value was filtered out")
    return ", ".join(ctx.param(f.column) for f in fields)


@resolves(PlaceholderKind.SET)
def resolve_set(placeholder: Placeholder, ctx: ResolutionContext) -> str:
    quoted = wants_quoting(placeholder)
    if ctx.entity is None:
        if ctx.method is None:
            raise MissingArgumentError("{{set}} needs an entity or method parameters")
        names = [p.name for p in ctx.method.parameters if p.name.lower() != "id"]
        pairs = [(to_snake_case(n), n) for n in names]
    else:
        only = placeholder.args.has("only")
        fields = ctx.select_fields(placeholder.args, exclude_primary_keys=not only)
        pairs = [(f.column, f.column) for f in fields]
    if not pairs:
        raise PlaceholderError("{{set}} has no columns to assign")
    return ", ".join(
        f"{ctx.quote(col) if quoted else col} = {ctx.param(param)}" for col, param in pairs
    )


@resolves(PlaceholderKind.WHERE)
def resolve_where(placeholder: Placeholder, ctx: ResolutionContext) -> str:
    variant = placeholder.variant
    text = placeholder.args.text
    if variant == "auto":
        if ctx.method is None:
            raise MissingArgumentError("{{where:auto}} needs a method descriptor")
        names = [p.name for p in ctx.method.parameters if p.name.lower() not in _PAGING_PARAMS]
        if not names:
            return "WHERE 1=1"
        conditions = [f"{ctx.quote(to_snake_case(n))} = {ctx.param(n)}" for n in names]
        return "WHERE " + " AND ".join(conditions)
    if variant:
        return "WHERE " + _equals_column(variant, ctx)
    if not text:
        keys = ctx.primary_key_columns()
        return "WHERE " + " AND ".join(_equals_column(k, ctx) for k in keys)
    if is_name(text):
        return "WHERE " + _equals_column(text, ctx)
    return "WHERE " + expression(text)


def _equals_column(name: str, ctx: ResolutionContext) -> str:
    require(name, FragmentKind.TABLE_PART, "column name")
    column = to_snake_case(name)
    return f"{ctx.quote(column)} = {ctx.param_for_column(column.split('.')[-1])}"


@resolves(PlaceholderKind.ORDERBY)
def resolve_orderby(placeholder: Placeholder, ctx: ResolutionContext) -> str:
    args = placeholder.args
    default_dir = "DESC" if args.has("desc") or placeholder.variant == "desc" else "ASC"
    items: list[list[str]] = []
    for token in args.positional:
        if token.upper() in ("ASC", "DESC") and items:
            items[-1][1] = token.upper()
        else:
            items.append([column_ref(ctx, token, wants_quoting(placeholder)), default_dir])
    if not items:
        items = [[ctx.primary_key_columns()[0], default_dir]]
    return "ORDER BY " + ", ".join(f"{col} {direction}" for col, direction in items)


def _method_param(ctx: ResolutionContext, candidates: tuple[str, ...]) -> str | None:
    if ctx.method is None:
        return None
    for name in candidates:
        param = ctx.method.parameter(name)
        if param is not None:
            return param.name
    return None


def _page_value(
    token: str | None,
    ctx: ResolutionContext,
    preset: str | None,
    candidates: tuple[str, ...],
    fallback: str,
) -> str:
    if token:
        if token.lower() in PAGE_PRESETS:
            return str(PAGE_PRESETS[token.lower()])
        return operand(ctx, token)
    if preset and preset.lower() in PAGE_PRESETS:
        return str(PAGE_PRESETS[preset.lower()])
    param = _method_param(ctx, candidates)
    return ctx.param(param or fallback)


def _check_order_by(ctx: ResolutionContext, needs_order: bool) -> None:
    if needs_order and not ctx.has_order_by:
        ctx.warn_once(
            "MISSING_ORDER_BY",
            f"{ctx.dialect.descriptor.display_name} pagination requires an ORDER BY clause",
        )


def _check_clause_order(ctx: ResolutionContext) -> None:
    limit_at, offset_at = ctx.limit_position, ctx.offset_position
    if limit_at is not None and offset_at is not None:
        ctx.dialect.check_clause_order(limit_first=limit_at < offset_at)


@resolves(PlaceholderKind.LIMIT)
def resolve_limit(placeholder: Placeholder, ctx: ResolutionContext) -> str:
    args = placeholder.args
    token = args.value("param") or args.value("count") or (
        args.positional[0] if args.positional else None
    )
    limit = _page_value(token, ctx, placeholder.variant, _LIMIT_PARAMS, "limit")
    if args.has("offset"):
        offset = _page_value(args.value("offset"), ctx, None, _OFFSET_PARAMS, "offset")
        clause, needs_order = ctx.dialect.pagination_clause(limit, offset)
    else:
        _check_clause_order(ctx)
        clause = ctx.dialect.limit_clause(limit, has_offset=ctx.has_offset)
        needs_order = ctx.dialect.requires_order_by
    _check_order_by(ctx, needs_order)
    return clause


@resolves(PlaceholderKind.OFFSET)
def resolve_offset(placeholder: Placeholder, ctx: ResolutionContext) -> str:
    args = placeholder.args
    token = args.value("param") or (args.positional[0] if args.positional else None)
    offset = _page_value(token, ctx, None, _OFFSET_PARAMS, "offset")
    _check_clause_order(ctx)
    clause = ctx.dialect.offset_clause(offset, has_limit=ctx.has_limit)
    _check_order_by(ctx, ctx.dialect.requires_order_by)
    return clause


@resolves(PlaceholderKind.WRAP)
def resolve_wrap(placeholder: Placeholder, ctx: ResolutionContext) -> str:
    names = placeholder.args.items() or ([placeholder.variant] if placeholder.variant else [])
    if not names:
        raise MissingArgumentError("{{wrap}} needs an identifier")
    return ", ".join(
        ctx.quote(require(n, FragmentKind.TABLE_PART, "identifier")) for n in names
    )
