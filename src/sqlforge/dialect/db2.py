"""IBM DB2 dialect implementation."""

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
from sqlforge.settings import ParameterStyle

# TIMESTAMPDIFF interval codes.
_DIFF_CODES: dict[DateUnit, int] = {
    DateUnit.SECOND: 2,
    DateUnit.MINUTE: 4,
    DateUnit.HOUR: 8,
    DateUnit.DAY: 16,
    DateUnit.MONTH: 64,
    DateUnit.YEAR: 256,
}


@DialectRegistry.register
class DB2Dialect(Dialect):
    """DB2: ``?`` parameter markers, OFFSET/FETCH, MERGE, SELECT FROM FINAL TABLE."""

    @classmethod
    def default_descriptor(cls) -> DialectDescriptor:
        return DialectDescriptor(
            name="db2",
            display_name="DB2",
            quote_open='"',
            quote_close='"',
            parameter_prefix="?",
            parameter_style=ParameterStyle.POSITIONAL,
            positional_marker="?",
            bool_true="1",
            bool_false="0",
            current_timestamp="CURRENT TIMESTAMP",
            current_date="CURRENT DATE",
            concat_strategy=ConcatStrategy.PIPES,
            pagination_style=PaginationStyle.OFFSET_FETCH,
            upsert_strategy=UpsertStrategy.MERGE,
            requires_order_by=True,
            limit_template="OFFSET 0 ROWS FETCH NEXT {limit} ROWS ONLY",
            offset_only_template="OFFSET {offset} ROWS",
            limit_offset_template="OFFSET {offset} ROWS FETCH NEXT {limit} ROWS ONLY",
            insert_returning_template="SELECT {id} FROM FINAL TABLE ({insert})",
            max_parameters=32767,
            random_function="RAND()",
            uuid_function="HEX(GENERATE_UNIQUE())",
            function_names=MappingProxyType({"SUBSTRING": "SUBSTR"}),
            type_map=frozen_type_map(
                {
                    T.INT16: "SMALLINT",
                    T.INT32: "INTEGER",
                    T.INT64: "BIGINT",
                    T.DECIMAL: "DECIMAL(18,2)",
                    T.DOUBLE: "DOUBLE",
                    T.SINGLE: "REAL",
                    T.STRING: "VARCHAR(4000)",
                    T.DATETIME: "TIMESTAMP",
                    T.DATE: "DATE",
                    T.BOOLEAN: "SMALLINT",
                    T.BYTE: "SMALLINT",
                    T.UUID: "CHAR(36)",
                    T.BINARY: "BLOB",
                }
            ),
        )

    def render_group_concat(self, column: str, separator: str) -> str:
        return f"LISTAGG({column}, {separator}) WITHIN GROUP (ORDER BY {column})"

    def render_fulltext(self, columns: Sequence[str], term: str) -> tuple[str, str | None]:
        if len(columns) == 1:
            return f"CONTAINS({columns[0]}, {term}) = 1", None
        return (
            "(" + " OR ".join(f"CONTAINS({c}, {term}) = 1" for c in columns) + ")",
            "DB2 CONTAINS takes one column; combined per-column predicates with OR",
        )

    def render_date_add(self, expr: str, unit: DateUnit, amount: str) -> str:
        return f"({expr} + {amount} {unit.value.upper()}S)"

    def render_date_diff(self, unit: DateUnit, start: str, end: str) -> str:
        return f"TIMESTAMPDIFF({_DIFF_CODES[unit]}, CHAR({end} - {start}))"
