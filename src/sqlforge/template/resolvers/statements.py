"""Statement-level generators: batch insert, upsert, insert returning the new key."""

from __future__ import annotations

from sqlforge.template.errors import MissingArgumentError, PlaceholderError
from sqlforge.template.naming import to_snake_case
from sqlforge.template.resolvers.base import PlaceholderKind, ResolutionContext, resolves
from sqlforge.template.tokenizer import Placeholder


def _target_table(placeholder: Placeholder, ctx: ResolutionContext) -> str:
    return ctx.quote(ctx.table_name(placeholder.args.value("table")))


@resolves(PlaceholderKind.BATCH_INSERT)
def resolve_batch_insert(placeholder: Placeholder, ctx: ResolutionContext) -> str:
    """Multi-row INSERT with ``--size n`` value groups.

    Row ``i`` binds ``<column><i>`` so every row has its own parameters:
    columns x size parameters in total.
    """
    args = placeholder.args
    raw_size = args.value("size") or (args.positional[0] if args.positional else None)
    if raw_size is None:
        raise MissingArgumentError("{{batch_insert}} needs --size")
    if not raw_size.isdigit() or int(raw_size) < 1:
        raise PlaceholderError(f"Batch size must be a positive integer, got '{raw_size}'")
    size = int(raw_size)
    if size > ctx.max_batch_size:
        raise PlaceholderError(f"Batch size {size} exceeds the limit of {ctx.max_batch_size}")

    fields = ctx.select_fields(args, exclude_primary_keys=not args.has("with_keys"))
    if not fields:
        raise PlaceholderError("{{batch_insert}} has no columns to insert")
    columns = [f.column for f in fields]
    rows = [[ctx.param(f"{col}{i}") for col in columns] for i in range(size)]

    total = len(columns) * size
    limit = ctx.dialect.descriptor.max_parameters
    if total > limit:
        ctx.warn(
            "PARAMETER_LIMIT",
            f"Batch binds {total} parameters; "
            f"{ctx.dialect.descriptor.display_name} allows at most {limit}",
        )
    return ctx.dialect.render_batch_insert(
        _target_table(placeholder, ctx), [ctx.quote(c) for c in columns], rows
    )


@resolves(PlaceholderKind.UPSERT)
def resolve_upsert(placeholder: Placeholder, ctx: ResolutionContext) -> str:
    """Insert-or-update keyed on ``--key`` columns (primary keys by default).

    Key columns are never part of the update list.
    """
    args = placeholder.args
    entity = ctx.require_entity()
    fields = ctx.select_fields(args)
    columns = [f.column for f in fields]

    keys = [to_snake_case(k) for k in args.values("key")] or ctx.primary_key_columns()
    for key in keys:
        if entity.field(key) is None:
            raise PlaceholderError(f"Upsert key '{key}' is not a field of {entity.name}")
        if key not in columns:
            raise PlaceholderError(f"Upsert key '{key}' is filtered out of the inserted columns")
    updates = [c for c in columns if c not in keys]
    if not updates:
        ctx.warn("EMPTY_UPDATE", "Upsert has no non-key columns; existing rows stay unchanged")

    return ctx.dialect.render_upsert(
        _target_table(placeholder, ctx),
        [ctx.quote(c) for c in columns],
        [ctx.param(c) for c in columns],
        [ctx.quote(k) for k in keys],
        [ctx.quote(c) for c in updates],
    )


@resolves(PlaceholderKind.INSERT_RETURNING)
def resolve_insert_returning(placeholder: Placeholder, ctx: ResolutionContext) -> str:
    """INSERT of the non-key columns that yields the generated key."""
    args = placeholder.args
    ctx.require_entity()
    fields = ctx.select_fields(args, exclude_primary_keys=True)
    if not fields:
        raise PlaceholderError("{{insert_returning}} has no columns to insert")
    columns = [f.column for f in fields]
    id_column = to_snake_case(args.value("id") or ctx.primary_key_columns()[0])
    if id_column not in ctx.generated:
        ctx.generated.append(id_column)  # Oracle binds the key as an OUT parameter
    return ctx.dialect.render_insert_returning(
        _target_table(placeholder, ctx),
        [ctx.quote(c) for c in columns],
        [ctx.param(c) for c in columns],
        ctx.quote(id_column),
    )
