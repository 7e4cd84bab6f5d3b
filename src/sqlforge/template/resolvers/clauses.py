"""Resolvers for JOIN, GROUP BY and HAVING clauses."""

from __future__ import annotations

import re

from sqlforge.dialect.base import JoinType
from sqlforge.template.errors import MissingArgumentError, PlaceholderError
from sqlforge.template.naming import to_snake_case
from sqlforge.template.resolvers.base import (
    PlaceholderKind,
    ResolutionContext,
    column_ref,
    expression,
    operand,
    resolves,
)
from sqlforge.template.tokenizer import Placeholder
from sqlforge.template.validator import FragmentKind, require

_JOIN_RE = re.compile(
    r"(?P<table>[\w.]+)(?:\s+(?:AS\s+)?(?!ON\b)(?P<alias>\w+))?(?:\s+ON\s+(?P<on>.+))?",
    re.IGNORECASE | re.DOTALL,
)

_HAVING_PRESETS = ("count", "sum", "avg", "min", "max")


@resolves(PlaceholderKind.JOIN)
def resolve_join(placeholder: Placeholder, ctx: ResolutionContext) -> str:
    """``{{join:left orders o ON o.customer_id = c.id}}`` or ``--on`` for the condition.

    Unsupported RIGHT/FULL joins fall back to LEFT JOIN with a warning.
    """
    args = placeholder.args
    raw_type = placeholder.variant or args.value("type") or "inner"
    try:
        join_type = JoinType(raw_type.lower())
    except ValueError:
        raise PlaceholderError(f"Unknown join type '{raw_type}'") from None

    match = _JOIN_RE.fullmatch(args.body)
    if not args.body or match is None:
        raise MissingArgumentError("{{join}} needs a table, optional alias and ON condition")
    table = to_snake_case(require(match.group("table"), FragmentKind.TABLE_PART, "join table"))
    alias = match.group("alias")
    condition = match.group("on") or (" ".join(args.values("on")) or None)

    keyword, fallback = ctx.dialect.join_keyword(join_type)
    if fallback:
        ctx.warn("DIALECT_FALLBACK", fallback)
    sql = f"{keyword} {table}"
    if alias:
        sql += f" {require(alias, FragmentKind.IDENTIFIER, 'join alias')}"
    if join_type is JoinType.CROSS:
        if condition:
            raise PlaceholderError("CROSS JOIN takes no ON condition")
        return sql
    if not condition:
        raise MissingArgumentError(f"{join_type.value.upper()} JOIN needs an ON condition")
    return f"{sql} ON {expression(condition)}"


@resolves(PlaceholderKind.GROUPBY)
def resolve_groupby(placeholder: Placeholder, ctx: ResolutionContext) -> str:
    items = placeholder.args.items() or list(placeholder.args.values("columns"))
    if placeholder.variant:
        items.insert(0, placeholder.variant)
    if not items:
        raise MissingArgumentError("{{groupby}} needs at least one column")
    return "GROUP BY " + ", ".join(column_ref(ctx, i) for i in items)


@resolves(PlaceholderKind.HAVING)
def resolve_having(placeholder: Placeholder, ctx: ResolutionContext) -> str:
    """Always emits a leading ``HAVING``.

    ``{{having COUNT(*) > 5}}`` takes a fragment; ``{{having:count|min=5}}``
    and ``{{having:sum amount|max=@limit}}`` build the aggregate comparison.
    """
    args = placeholder.args
    variant = (placeholder.variant or "").lower()
    if variant in _HAVING_PRESETS:
        target = args.body or "*"
        if target == "*" and variant != "count":
            raise MissingArgumentError(f"HAVING {variant.upper()} needs a column")
        aggregate = f"{variant.upper()}({column_ref(ctx, target)})"
        bounds = []
        if args.value("min") is not None:
            bounds.append(f"{aggregate} >= {operand(ctx, args.value('min') or '')}")
        if args.value("max") is not None:
            bounds.append(f"{aggregate} <= {operand(ctx, args.value('max') or '')}")
        if not bounds:
            raise MissingArgumentError("HAVING preset needs min= or max=")
        return "HAVING " + " AND ".join(bounds)
    if placeholder.variant:
        raise PlaceholderError(f"Unknown HAVING preset '{placeholder.variant}'")
    text = args.text
    if text.upper().startswith("HAVING "):
        text = text[len("HAVING ") :]
    if not text:
        raise MissingArgumentError("{{having}} needs a condition")
    return "HAVING " + expression(text)
