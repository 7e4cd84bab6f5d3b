"""Resolvers whose SQL is entirely dialect-native: JSON paths, arrays, full-text."""

from __future__ import annotations

import re

from sqlforge.template.errors import MissingArgumentError, PlaceholderError
from sqlforge.template.resolvers.base import (
    PlaceholderKind,
    ResolutionContext,
    column_ref,
    is_parameter_ref,
    operands,
    resolves,
)
from sqlforge.template.tokenizer import Placeholder
from sqlforge.template.validator import FragmentKind, SecurityRejection, require

_JSON_PATH_RE = re.compile(r"\$?(?:\.?[A-Za-z_]\w*|\[\d+\])+|\$")
_STRING_LITERAL_RE = re.compile(r"'(?:[^']|'')*'")


@resolves(PlaceholderKind.JSON)
def resolve_json(placeholder: Placeholder, ctx: ResolutionContext) -> str:
    """``{{json data, address.city}}``: extract a JSON member by path."""
    values = operands(placeholder.args)
    path = placeholder.args.value("path")
    if path is None and len(values) == 2:
        path = values[1]
    if not values or path is None:
        raise MissingArgumentError("{{json}} needs a column and a path")
    path = path.strip("'")
    if _JSON_PATH_RE.fullmatch(path) is None:
        raise SecurityRejection(path, FragmentKind.FRAGMENT, "JSON path")
    return ctx.dialect.render_json_path(column_ref(ctx, values[0]), path)


@resolves(PlaceholderKind.ARRAY)
def resolve_array(placeholder: Placeholder, ctx: ResolutionContext) -> str:
    """``{{array tags, 0}}``: element of a JSON array column."""
    values = operands(placeholder.args)
    if len(values) != 2:
        raise MissingArgumentError("{{array}} needs a column and an index")
    column, index = values
    if not index.isdigit():
        raise PlaceholderError(f"Array index must be a non-negative integer, got '{index}'")
    return ctx.dialect.render_array_access(column_ref(ctx, column), index)


@resolves(PlaceholderKind.FULLTEXT)
def resolve_fulltext(placeholder: Placeholder, ctx: ResolutionContext) -> str:
    """``{{fulltext title, body, @term}}``: native full-text predicate.

    The last operand is the search term; plain words become string literals.
    """
    args = placeholder.args
    values = operands(args)
    term = args.value("term")
    if term is None:
        if len(values) < 2:
            raise MissingArgumentError("{{fulltext}} needs at least one column and a term")
        term = values.pop()
    columns = list(args.values("columns")) or values
    if not columns:
        raise MissingArgumentError("{{fulltext}} needs at least one column")

    if is_parameter_ref(term):
        term_sql = term
    else:
        term_sql = require(term, FragmentKind.FRAGMENT, "search term")
        if _STRING_LITERAL_RE.fullmatch(term) is None:
            term_sql = ctx.dialect.string_literal(term)

    sql, fallback = ctx.dialect.render_fulltext([column_ref(ctx, c) for c in columns], term_sql)
    if fallback:
        ctx.warn("DIALECT_FALLBACK", fallback)
    return sql
