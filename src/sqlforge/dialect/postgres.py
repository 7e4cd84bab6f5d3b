"""PostgreSQL dialect implementation."""

from __future__ import annotations

from collections.abc import Sequence
from typing import TYPE_CHECKING

from sqlforge.dialect.base import (
    SECONDS_PER_UNIT,
    ConcatStrategy,
    DateUnit,
    Dialect,
    DialectDescriptor,
    PaginationStyle,
    UpsertStrategy,
    frozen_type_map,
    json_path_segments,
)
from sqlforge.dialect.registry import DialectRegistry
from sqlforge.models.descriptors import SemanticType as T
from sqlforge.settings import ParameterStyle

if TYPE_CHECKING:
    from sqlforge.settings import Settings


@DialectRegistry.register
class PostgresDialect(Dialect):
    """PostgreSQL: double-quote quoting, ``||``, ON CONFLICT, RETURNING.

    Parameter syntax depends on the driver, so it is taken from settings:
    named (``@name`` by default) or positional ``$1..$n``.
    """

    @classmethod
    def default_descriptor(cls) -> DialectDescriptor:
        return DialectDescriptor(
            name="postgres",
            display_name="PostgreSQL",
            quote_open='"',
            quote_close='"',
            parameter_prefix="@",
            bool_true="true",
            bool_false="false",
            current_timestamp="CURRENT_TIMESTAMP",
            current_date="CURRENT_DATE",
            concat_strategy=ConcatStrategy.PIPES,
            pagination_style=PaginationStyle.LIMIT_OFFSET,
            upsert_strategy=UpsertStrategy.ON_CONFLICT,
            random_function="RANDOM()",
            uuid_function="gen_random_uuid()",
            type_map=frozen_type_map(
                {
                    T.INT16: "SMALLINT",
                    T.INT32: "INTEGER",
                    T.INT64: "BIGINT",
                    T.DECIMAL: "DECIMAL(18,2)",
                    T.DOUBLE: "DOUBLE PRECISION",
                    T.SINGLE: "REAL",
                    T.STRING: "VARCHAR(4000)",
                    T.DATETIME: "TIMESTAMP",
                    T.DATE: "DATE",
                    T.BOOLEAN: "BOOLEAN",
                    T.BYTE: "SMALLINT",
                    T.UUID: "UUID",
                    T.BINARY: "BYTEA",
                }
            ),
        )

    def configured(self, settings: Settings) -> Dialect:
        style = ParameterStyle(settings.postgres_parameter_style)
        prefix = settings.postgres_parameter_prefix
        d = self.descriptor
        if style is d.parameter_style and prefix == d.parameter_prefix:
            return self
        return self._replace(parameter_style=style, parameter_prefix=prefix)

    def render_json_path(self, column: str, path: str) -> str:
        parts = [column]
        for seg in json_path_segments(path):
            if seg.startswith("["):
                parts.append(seg[1:-1])
            else:
                parts.append(self.string_literal(seg))
        return "->".join(parts)

    def render_array_access(self, column: str, index: str) -> str:
        return f"{column}->{index}"

    def render_fulltext(self, columns: Sequence[str], term: str) -> tuple[str, str | None]:
        document = columns[0] if len(columns) == 1 else " || ' ' || ".join(columns)
        return f"to_tsvector({document}) @@ to_tsquery({term})", None

    def render_date_add(self, expr: str, unit: DateUnit, amount: str) -> str:
        return f"({expr} + {amount} * INTERVAL '1 {unit.value}')"

    def render_date_diff(self, unit: DateUnit, start: str, end: str) -> str:
        if unit in SECONDS_PER_UNIT:
            seconds = SECONDS_PER_UNIT[unit]
            return f"CAST(EXTRACT(EPOCH FROM ({end} - {start})) / {seconds} AS BIGINT)"
        age = f"AGE({end}, {start})"
        if unit is DateUnit.YEAR:
            return f"CAST(DATE_PART('year', {age}) AS BIGINT)"
        return f"CAST(DATE_PART('year', {age}) * 12 + DATE_PART('month', {age}) AS BIGINT)"
