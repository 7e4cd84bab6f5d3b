"""SQLite dialect implementation."""

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
    json_path,
)
from sqlforge.dialect.registry import DialectRegistry
from sqlforge.models.descriptors import SemanticType as T


def _strftime_int(fmt: str, value: str) -> str:
    return f"CAST(strftime('{fmt}', {value}) AS INTEGER)"


@DialectRegistry.register
class SQLiteDialect(Dialect):
    """SQLite: bracket quoting, no RIGHT/FULL JOIN, ``LIMIT -1`` for offset-only."""

    @classmethod
    def default_descriptor(cls) -> DialectDescriptor:
        return DialectDescriptor(
            name="sqlite",
            display_name="SQLite",
            quote_open="[",
            quote_close="]",
            parameter_prefix="@",
            bool_true="1",
            bool_false="0",
            current_timestamp="datetime('now')",
            current_date="date('now')",
            concat_strategy=ConcatStrategy.PIPES,
            pagination_style=PaginationStyle.LIMIT_OFFSET,
            upsert_strategy=UpsertStrategy.ON_CONFLICT,
            offset_only_template="LIMIT -1 OFFSET {offset}",
            insert_returning_template="{insert}; SELECT last_insert_rowid()",
            max_parameters=32766,
            supports_right_join=False,
            supports_full_join=False,
            excluded_alias="excluded",
            function_names=MappingProxyType({"CEILING": "CEIL", "SUBSTRING": "SUBSTR"}),
            random_function="RANDOM()",
            uuid_function="lower(hex(randomblob(16)))",
            type_map=frozen_type_map(
                {
                    T.INT16: "INTEGER",
                    T.INT32: "INTEGER",
                    T.INT64: "INTEGER",
                    T.DECIMAL: "REAL",
                    T.DOUBLE: "REAL",
                    T.SINGLE: "REAL",
                    T.STRING: "TEXT",
                    T.DATETIME: "TEXT",
                    T.DATE: "TEXT",
                    T.BOOLEAN: "INTEGER",
                    T.BYTE: "INTEGER",
                    T.UUID: "TEXT",
                    T.BINARY: "BLOB",
                }
            ),
        )

    def render_ifnull(self, expr: str, fallback: str) -> str:
        return f"IFNULL({expr}, {fallback})"

    def render_group_concat(self, column: str, separator: str) -> str:
        return f"GROUP_CONCAT({column}, {separator})"

    def render_json_path(self, column: str, path: str) -> str:
        return f"json_extract({column}, {self.string_literal(json_path(path))})"

    def render_array_access(self, column: str, index: str) -> str:
        return f"json_extract({column}, '$[{index}]')"

    def render_fulltext(self, columns: Sequence[str], term: str) -> tuple[str, str | None]:
        if len(columns) == 1:
            return f"{columns[0]} MATCH {term}", None
        return (
            "(" + " OR ".join(f"{c} MATCH {term}" for c in columns) + ")",
            "SQLite MATCH takes one column; combined per-column matches with OR",
        )

    def render_date_add(self, expr: str, unit: DateUnit, amount: str) -> str:
        if amount.lstrip("-").isdigit():
            return f"datetime({expr}, '{amount} {unit.value}')"
        return f"datetime({expr}, {amount} || ' {unit.value}')"

    def render_date_diff(self, unit: DateUnit, start: str, end: str) -> str:
        days = f"(julianday({end}) - julianday({start}))"
        if unit in SECONDS_PER_UNIT:
            factor = 86400 // SECONDS_PER_UNIT[unit]
            scaled = days if factor == 1 else f"{days} * {factor}"
            return f"CAST({scaled} AS INTEGER)"
        part = _strftime_int
        months = (
            f"(({part('%Y', end)} - {part('%Y', start)}) * 12"
            f" + {part('%m', end)} - {part('%m', start)})"
        )
        if unit is DateUnit.YEAR:
            return f"({months} / 12)"
        return months
