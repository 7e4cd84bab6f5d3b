"""Resolvers for literals, aggregates and scalar functions."""

from __future__ import annotations

import re

from sqlforge.dialect.base import DateUnit
from sqlforge.models.descriptors import SemanticType
from sqlforge.template.errors import MissingArgumentError, PlaceholderError
from sqlforge.template.resolvers.base import (
    PlaceholderKind,
    ResolutionContext,
    column_ref,
    operand,
    resolves,
    term,
)
from sqlforge.template.tokenizer import Placeholder
from sqlforge.template.validator import FragmentKind, require

_SQL_TYPE_RE = re.compile(r"[A-Za-z][A-Za-z0-9_ ]*(?:\(\s*\d+\s*(?:,\s*\d+\s*)?\))?")
_STRING_LITERAL_RE = re.compile(r"'(?:[^']|'')*'")


def _items(placeholder: Placeholder) -> list[str]:
    return placeholder.args.items()


# -- literal swaps --------------------------------------------------------------


@resolves(PlaceholderKind.BOOL_TRUE)
def resolve_bool_true(placeholder: Placeholder, ctx: ResolutionContext) -> str:
    return ctx.dialect.bool_literal(True)


@resolves(PlaceholderKind.BOOL_FALSE)
def resolve_bool_false(placeholder: Placeholder, ctx: ResolutionContext) -> str:
    return ctx.dialect.bool_literal(False)


@resolves(PlaceholderKind.CURRENT_TIMESTAMP)
def resolve_current_timestamp(placeholder: Placeholder, ctx: ResolutionContext) -> str:
    return ctx.dialect.current_timestamp_sql()


@resolves(PlaceholderKind.TODAY)
def resolve_today(placeholder: Placeholder, ctx: ResolutionContext) -> str:
    return ctx.dialect.current_date_sql()


@resolves(PlaceholderKind.RANDOM)
def resolve_random(placeholder: Placeholder, ctx: ResolutionContext) -> str:
    return ctx.dialect.random_sql()


@resolves(PlaceholderKind.UUID)
def resolve_uuid(placeholder: Placeholder, ctx: ResolutionContext) -> str:
    return ctx.dialect.uuid_sql()


# -- aggregates -------------------------------------------------------------------


@resolves(
    PlaceholderKind.COUNT,
    PlaceholderKind.SUM,
    PlaceholderKind.AVG,
    PlaceholderKind.MAX,
    PlaceholderKind.MIN,
)
def resolve_aggregate(placeholder: Placeholder, ctx: ResolutionContext) -> str:
    """``FN(col)``, ``FN(DISTINCT col)``; ``{{count}}`` and ``{{count all}}`` are COUNT(*)."""
    args = placeholder.args
    func = placeholder.kind.upper()
    body = args.body
    distinct = args.has("distinct") or placeholder.variant == "distinct"
    if body.upper().startswith("DISTINCT "):
        distinct = True
        body = body[len("DISTINCT ") :].strip()
    column = placeholder.variant if placeholder.variant not in (None, "distinct") else None
    target = body or column

    if not target or target.lower() in ("all", "*"):
        if func != "COUNT":
            raise MissingArgumentError(f"{func} needs a column or expression")
        if distinct:
            raise PlaceholderError("COUNT(DISTINCT *) is not valid SQL")
        sql = "COUNT(*)"
    else:
        expr = column_ref(ctx, target)
        sql = f"{func}(DISTINCT {expr})" if distinct else f"{func}({expr})"

    default = args.value("default")
    if default is not None:
        sql = f"COALESCE({sql}, {term(ctx, default)})"
    return sql


# -- scalar functions -----------------------------------------------------------


@resolves(PlaceholderKind.COALESCE)
def resolve_coalesce(placeholder: Placeholder, ctx: ResolutionContext) -> str:
    items = _items(placeholder)
    if len(items) < 2:
        raise MissingArgumentError("COALESCE needs at least two arguments")
    return f"COALESCE({', '.join(term(ctx, i) for i in items)})"


@resolves(PlaceholderKind.IFNULL)
def resolve_ifnull(placeholder: Placeholder, ctx: ResolutionContext) -> str:
    items = _items(placeholder)
    if len(items) != 2:
        raise MissingArgumentError("IFNULL needs an expression and a fallback")
    return ctx.dialect.render_ifnull(term(ctx, items[0]), term(ctx, items[1]))


@resolves(PlaceholderKind.CONCAT)
def resolve_concat(placeholder: Placeholder, ctx: ResolutionContext) -> str:
    items = _items(placeholder)
    if len(items) < 2:
        raise MissingArgumentError("CONCAT needs at least two arguments")
    return ctx.dialect.concat(*(term(ctx, i) for i in items))


@resolves(PlaceholderKind.ROUND)
def resolve_round(placeholder: Placeholder, ctx: ResolutionContext) -> str:
    items = _items(placeholder)
    if not items or len(items) > 2:
        raise MissingArgumentError("ROUND needs an expression and optional precision")
    expr = term(ctx, items[0])
    if len(items) == 1:
        return f"ROUND({expr}, 0)"
    return f"ROUND({expr}, {operand(ctx, items[1])})"


@resolves(
    PlaceholderKind.ABS,
    PlaceholderKind.CEILING,
    PlaceholderKind.FLOOR,
    PlaceholderKind.UPPER,
    PlaceholderKind.LOWER,
    PlaceholderKind.TRIM,
    PlaceholderKind.LENGTH,
)
def resolve_unary_function(placeholder: Placeholder, ctx: ResolutionContext) -> str:
    items = _items(placeholder)
    if len(items) != 1:
        raise MissingArgumentError(f"{placeholder.kind.upper()} takes exactly one argument")
    name = ctx.dialect.function_name(placeholder.kind.upper())
    return f"{name}({term(ctx, items[0])})"


@resolves(PlaceholderKind.SUBSTRING)
def resolve_substring(placeholder: Placeholder, ctx: ResolutionContext) -> str:
    items = _items(placeholder)
    if len(items) not in (2, 3):
        raise MissingArgumentError("SUBSTRING needs an expression, a start and optional length")
    parts = [term(ctx, items[0])] + [operand(ctx, i) for i in items[1:]]
    return f"{ctx.dialect.function_name('SUBSTRING')}({', '.join(parts)})"


@resolves(PlaceholderKind.CAST)
def resolve_cast(placeholder: Placeholder, ctx: ResolutionContext) -> str:
    """``CAST(expr AS type)``; semantic type names map through the dialect type table."""
    items = _items(placeholder)
    target = placeholder.args.value("as")
    if target is None and len(items) == 2:
        target = items[1]
    elif target is None or not items:
        raise MissingArgumentError("CAST needs an expression and a target type")
    expr = term(ctx, items[0])
    try:
        native = ctx.dialect.native_type(SemanticType(target.lower()))
    except ValueError:
        if _SQL_TYPE_RE.fullmatch(target) is None:
            raise PlaceholderError(f"Invalid CAST target type '{target}'") from None
        native = target.upper()
    return f"CAST({expr} AS {native})"


@resolves(PlaceholderKind.GROUP_CONCAT)
def resolve_group_concat(placeholder: Placeholder, ctx: ResolutionContext) -> str:
    items = _items(placeholder)
    separator = placeholder.args.value("separator")
    if separator is None and len(items) == 2:
        separator = items[1]
    if not items or len(items) > 2:
        raise MissingArgumentError("GROUP_CONCAT needs a column and optional separator")
    separator = require(separator or "','", FragmentKind.FRAGMENT, "separator")
    if _STRING_LITERAL_RE.fullmatch(separator) is None:
        separator = ctx.dialect.string_literal(separator)
    return ctx.dialect.render_group_concat(term(ctx, items[0]), separator)


def _date_unit(value: str) -> DateUnit:
    try:
        return DateUnit.parse(value)
    except ValueError:
        units = ", ".join(u.value for u in DateUnit)
        raise PlaceholderError(f"Unknown date unit '{value}'; expected one of {units}") from None


@resolves(PlaceholderKind.DATE_ADD)
def resolve_date_add(placeholder: Placeholder, ctx: ResolutionContext) -> str:
    """``{{date_add created_at, day, 7}}`` or ``{{date_add:day created_at, @days}}``."""
    items = _items(placeholder)
    if placeholder.variant:
        items = [items[0], placeholder.variant, *items[1:]] if items else []
    if len(items) != 3:
        raise MissingArgumentError("DATE_ADD needs an expression, a unit and an amount")
    expr, unit, amount = items
    return ctx.dialect.render_date_add(term(ctx, expr), _date_unit(unit), operand(ctx, amount))


@resolves(PlaceholderKind.DATE_DIFF)
def resolve_date_diff(placeholder: Placeholder, ctx: ResolutionContext) -> str:
    """``{{date_diff day, start_col, end_col}}`` or ``{{date_diff:day start_col, end_col}}``."""
    items = _items(placeholder)
    if placeholder.variant:
        items = [placeholder.variant, *items]
    if len(items) != 3:
        raise MissingArgumentError("DATE_DIFF needs a unit, a start and an end")
    unit, start, end = items
    return ctx.dialect.render_date_diff(_date_unit(unit), term(ctx, start), term(ctx, end))


# -- keywords -------------------------------------------------------------------


@resolves(PlaceholderKind.DISTINCT)
def resolve_distinct(placeholder: Placeholder, ctx: ResolutionContext) -> str:
    items = _items(placeholder)
    if not items:
        return "DISTINCT"
    return "DISTINCT " + ", ".join(column_ref(ctx, i) for i in items)


@resolves(PlaceholderKind.UNION)
def resolve_union(placeholder: Placeholder, ctx: ResolutionContext) -> str:
    args = placeholder.args
    if placeholder.variant == "all" or args.has("all") or args.body.lower() == "all":
        return "UNION ALL"
    if args.body:
        raise PlaceholderError(f"Unexpected UNION argument '{args.body}'")
    return "UNION"
