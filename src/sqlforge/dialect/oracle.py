"""Oracle dialect implementation."""

from __future__ import annotations

from collections.abc import Sequence
from types import MappingProxyType

from sqlforge.dialect.base import (
    SECONDS_PER_UNIT,
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
class OracleDialect(Dialect):
    """Oracle: ``:name`` binds, OFFSET/FETCH, MERGE from DUAL, INSERT ALL batches."""

    @classmethod
    def default_descriptor(cls) -> DialectDescriptor:
        return DialectDescriptor(
            name="oracle",
            display_name="Oracle",
            quote_open='"',
            quote_close='"',
            parameter_prefix=":",
            bool_true="1",
            bool_false="0",
            current_timestamp="SYSTIMESTAMP",
            current_date="TRUNC(SYSDATE)",
            concat_strategy=ConcatStrategy.PIPES,
            pagination_style=PaginationStyle.OFFSET_FETCH,
            upsert_strategy=UpsertStrategy.MERGE,
            requires_order_by=True,
            limit_template="OFFSET 0 ROWS FETCH NEXT {limit} ROWS ONLY",
            offset_only_template="OFFSET {offset} ROWS",
            limit_offset_template="OFFSET {offset} ROWS FETCH NEXT {limit} ROWS ONLY",
            insert_returning_template="{insert} RETURNING {id} INTO {out}",
            max_parameters=65535,
            random_function="DBMS_RANDOM.VALUE",
            uuid_function="SYS_GUID()",
            default_type="VARCHAR2(4000)",
            function_names=MappingProxyType({"CEILING": "CEIL", "SUBSTRING": "SUBSTR"}),
            type_map=frozen_type_map(
                {
                    T.INT16: "NUMBER(5)",
                    T.INT32: "NUMBER(10)",
                    T.INT64: "NUMBER(19)",
                    T.DECIMAL: "NUMBER(18,2)",
                    T.DOUBLE: "BINARY_DOUBLE",
                    T.SINGLE: "BINARY_FLOAT",
                    T.STRING: "VARCHAR2(4000)",
                    T.DATETIME: "TIMESTAMP",
                    T.DATE: "DATE",
                    T.BOOLEAN: "NUMBER(1)",
                    T.BYTE: "NUMBER(3)",
                    T.UUID: "RAW(16)",
                    T.BINARY: "BLOB",
                }
            ),
        )

    def render_ifnull(self, expr: str, fallback: str) -> str:
        return f"NVL({expr}, {fallback})"

    def render_group_concat(self, column: str, separator: str) -> str:
        return f"LISTAGG({column}, {separator}) WITHIN GROUP (ORDER BY {column})"

    def render_fulltext(self, columns: Sequence[str], term: str) -> tuple[str, str | None]:
        if len(columns) == 1:
            return f"CONTAINS({columns[0]}, {term}) > 0", None
        return (
            "(" + " OR ".join(f"CONTAINS({c}, {term}) > 0" for c in columns) + ")",
            "Oracle CONTAINS takes one column; combined per-column predicates with OR",
        )

    def render_date_add(self, expr: str, unit: DateUnit, amount: str) -> str:
        if unit is DateUnit.YEAR:
            return f"ADD_MONTHS({expr}, ({amount}) * 12)"
        if unit is DateUnit.MONTH:
            return f"ADD_MONTHS({expr}, {amount})"
        return f"({expr} + NUMTODSINTERVAL({amount}, '{unit.value.upper()}'))"

    def render_date_diff(self, unit: DateUnit, start: str, end: str) -> str:
        if unit in SECONDS_PER_UNIT:
            factor = 86400 // SECONDS_PER_UNIT[unit]
            days = f"(CAST({end} AS DATE) - CAST({start} AS DATE))"
            return f"TRUNC({days} * {factor})" if factor != 1 else f"TRUNC({days})"
        months = f"MONTHS_BETWEEN({end}, {start})"
        if unit is DateUnit.YEAR:
            return f"TRUNC({months} / 12)"
        return f"TRUNC({months})"

    def render_batch_insert(
        self, table: str, columns: Sequence[str], rows: Sequence[Sequence[str]]
    ) -> str:
        cols = ", ".join(columns)
        intos = " ".join(f"INTO {table} ({cols}) VALUES ({', '.join(row)})" for row in rows)
        return f"INSERT ALL {intos} SELECT 1 FROM DUAL"

    def merge_source(self, columns: Sequence[str], params: Sequence[str]) -> str:
        selected = ", ".join(f"{p} AS {c}" for p, c in zip(params, columns, strict=True))
        return f"USING (SELECT {selected} FROM DUAL) source"

    def render_merge(
        self,
        table: str,
        columns: Sequence[str],
        params: Sequence[str],
        keys: Sequence[str],
        updates: Sequence[str],
    ) -> str:
        # Oracle rejects AS before table aliases.
        sql = super().render_merge(table, columns, params, keys, updates)
        return sql.replace(f"MERGE INTO {table} AS target", f"MERGE INTO {table} target", 1)
