"""SQL Server dialect implementation."""

from __future__ import annotations

from collections.abc import Sequence
from types import MappingProxyType

from sqlforge.dialect.base import (
    ConcatStrategy,
    DateUnit,
    Dialect,
    DialectDescriptor,
    PaginationStyle,
    UpsertStrategy,
    frozen_type_map,
)
from sqlforge.dialect.registry import DialectRegistry
from sqlforge.models.descriptors import SemanticType as T


@DialectRegistry.register
class SQLServerDialect(Dialect):
    """SQL Server: bracket quoting, ``+`` concatenation, OFFSET/FETCH, MERGE."""

    @classmethod
    def default_descriptor(cls) -> DialectDescriptor:
        return DialectDescriptor(
            name="sqlserver",
            display_name="SQL Server",
            quote_open="[",
            quote_close="]",
            parameter_prefix="@",
            bool_true="1",
            bool_false="0",
            current_timestamp="GETDATE()",
            current_date="CAST(GETDATE() AS DATE)",
            concat_strategy=ConcatStrategy.PLUS,
            pagination_style=PaginationStyle.OFFSET_FETCH,
            upsert_strategy=UpsertStrategy.MERGE,
            requires_order_by=True,
            limit_template="OFFSET 0 ROWS FETCH NEXT {limit} ROWS ONLY",
            offset_only_template="OFFSET {offset} ROWS",
            limit_offset_template="OFFSET {offset} ROWS FETCH NEXT {limit} ROWS ONLY",
            insert_returning_template=(
                "INSERT INTO {table} ({columns}) OUTPUT INSERTED.{id} VALUES ({values})"
            ),
            max_parameters=2100,
            function_names=MappingProxyType({"LENGTH": "LEN"}),
            random_function="NEWID()",
            uuid_function="NEWID()",
            type_map=frozen_type_map(
                {
                    T.INT16: "SMALLINT",
                    T.INT32: "INT",
                    T.INT64: "BIGINT",
                    T.DECIMAL: "DECIMAL(18,2)",
                    T.DOUBLE: "FLOAT",
                    T.SINGLE: "REAL",
                    T.STRING: "NVARCHAR(4000)",
                    T.DATETIME: "DATETIME2",
                    T.DATE: "DATE",
                    T.BOOLEAN: "BIT",
                    T.BYTE: "TINYINT",
                    T.UUID: "UNIQUEIDENTIFIER",
                    T.BINARY: "VARBINARY(MAX)",
                }
            ),
        )

    def render_ifnull(self, expr: str, fallback: str) -> str:
        return f"ISNULL({expr}, {fallback})"

    def render_fulltext(self, columns: Sequence[str], term: str) -> tuple[str, str | None]:
        if len(columns) == 1:
            return f"CONTAINS({columns[0]}, {term})", None
        return f"CONTAINS(({', '.join(columns)}), {term})", None

    def render_date_add(self, expr: str, unit: DateUnit, amount: str) -> str:
        return f"DATEADD({unit.value}, {amount}, {expr})"

    def render_date_diff(self, unit: DateUnit, start: str, end: str) -> str:
        return f"DATEDIFF({unit.value}, {start}, {end})"

    def render_merge(
        self,
        table: str,
        columns: Sequence[str],
        params: Sequence[str],
        keys: Sequence[str],
        updates: Sequence[str],
    ) -> str:
        # T-SQL requires MERGE to be terminated.
        return super().render_merge(table, columns, params, keys, updates) + ";"
