"""Resolvers for predicate placeholders: BETWEEN, IN, LIKE and NULL tests.

Caller-supplied parameter references (``@minPrice``, ``:id``) are always
echoed verbatim; only bare names are turned into dialect parameters.
"""

from __future__ import annotations

from sqlforge.template.errors import ConflictingOptionsError, MissingArgumentError
from sqlforge.template.resolvers.base import (
    PlaceholderKind,
    ResolutionContext,
    column_ref,
    is_name,
    is_parameter_ref,
    operand,
    operands,
    resolves,
)
from sqlforge.template.tokenizer import Placeholder

LIKE_MODES = ("contains", "starts", "ends", "exact")


def _split_column(
    placeholder: Placeholder, ctx: ResolutionContext, values: list[str], min_values: int
) -> tuple[str | None, list[str]]:
    """Take the optional leading column off ``values``.

    The column comes from the variant, ``--column``, or a leading bare name
    followed by at least ``min_values`` further operands.
    """
    column = placeholder.variant or placeholder.args.value("column")
    if column is None and len(values) > min_values and is_name(values[0]):
        column, values = values[0], values[1:]
    return (column_ref(ctx, column) if column else None), values


def _prefixed(column: str | None, predicate: str) -> str:
    return f"{column} {predicate}" if column else predicate


@resolves(PlaceholderKind.BETWEEN)
def resolve_between(placeholder: Placeholder, ctx: ResolutionContext) -> str:
    args = placeholder.args
    values = operands(args)
    low, high = args.value("min"), args.value("max")
    column, values = _split_column(placeholder, ctx, values, 2 if low is None else 0)
    if low is None or high is None:
        if len(values) != 2:
            raise MissingArgumentError("{{between}} needs a lower and an upper bound")
        low, high = values
    return _prefixed(column, f"BETWEEN {operand(ctx, low)} AND {operand(ctx, high)}")


def _in_list(placeholder: Placeholder, ctx: ResolutionContext, negated: bool) -> str:
    args = placeholder.args
    listed = list(args.values("values"))
    values = operands(args)
    column, values = _split_column(placeholder, ctx, values, 0 if listed else 1)
    if listed and values:
        raise ConflictingOptionsError("Give IN values either positionally or via values=")
    items = listed or values
    if not items:
        raise MissingArgumentError(f"{{{{{placeholder.kind}}}}} needs at least one value")
    keyword = "NOT IN" if negated else "IN"
    return _prefixed(column, f"{keyword} ({', '.join(operand(ctx, v) for v in items)})")


@resolves(PlaceholderKind.IN)
def resolve_in(placeholder: Placeholder, ctx: ResolutionContext) -> str:
    return _in_list(placeholder, ctx, negated=False)


@resolves(PlaceholderKind.NOT_IN)
def resolve_not_in(placeholder: Placeholder, ctx: ResolutionContext) -> str:
    return _in_list(placeholder, ctx, negated=True)


@resolves(PlaceholderKind.LIKE)
def resolve_like(placeholder: Placeholder, ctx: ResolutionContext) -> str:
    args = placeholder.args
    mode = args.value("mode")
    for candidate in LIKE_MODES:
        if args.has(candidate):
            if mode is not None and mode != candidate:
                raise ConflictingOptionsError("Only one LIKE mode may be given")
            mode = candidate
    mode = (mode or "contains").lower()
    if mode not in LIKE_MODES:
        raise MissingArgumentError(
            f"Unknown LIKE mode '{mode}'; expected one of {', '.join(LIKE_MODES)}"
        )

    pattern = args.value("pattern")
    values = operands(args)
    column, values = _split_column(placeholder, ctx, values, 0 if pattern else 1)
    if pattern is None:
        if len(values) != 1:
            raise MissingArgumentError("{{like}} needs exactly one pattern")
        pattern = values[0]
    value = operand(ctx, pattern)

    dialect = ctx.dialect
    if mode == "exact":
        expr = value
    elif mode == "starts":
        expr = dialect.concat(value, "'%'")
    elif mode == "ends":
        expr = dialect.concat("'%'", value)
    else:
        expr = dialect.concat("'%'", value, "'%'")
    return _prefixed(column, f"LIKE {expr}")


def _null_test(placeholder: Placeholder, ctx: ResolutionContext, negated: bool) -> str:
    column = placeholder.variant or placeholder.args.value("column")
    if column is None:
        items = placeholder.args.items()
        if len(items) != 1 or is_parameter_ref(items[0]):
            raise MissingArgumentError(f"{{{{{placeholder.kind}}}}} needs one column")
        column = items[0]
    keyword = "IS NOT NULL" if negated else "IS NULL"
    return f"{column_ref(ctx, column)} {keyword}"


@resolves(PlaceholderKind.ISNULL)
def resolve_isnull(placeholder: Placeholder, ctx: ResolutionContext) -> str:
    return _null_test(placeholder, ctx, negated=False)


@resolves(PlaceholderKind.NOTNULL)
def resolve_notnull(placeholder: Placeholder, ctx: ResolutionContext) -> str:
    return _null_test(placeholder, ctx, negated=True)
