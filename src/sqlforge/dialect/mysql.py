"""MySQL dialect implementation."""

from __future__ import annotations

from collections.abc import Sequence

from sqlforge.dialect.base import (
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


@DialectRegistry.register
class MySQLDialect(Dialect):
    """MySQL: backtick quoting, CONCAT(), LIMIT before OFFSET, ON DUPLICATE KEY."""

    @classmethod
    def default_descriptor(cls) -> DialectDescriptor:
        return DialectDescriptor(
            name="mysql",
            display_name="MySQL",
            quote_open="`",
            quote_close="`",
            parameter_prefix="@",
            bool_true="1",
            bool_false="0",
            current_timestamp="NOW()",
            current_date="CURDATE()",
            concat_strategy=ConcatStrategy.FUNCTION,
            pagination_style=PaginationStyle.LIMIT_OFFSET,
            upsert_strategy=UpsertStrategy.DUPLICATE_KEY_UPDATE,
            offset_requires_limit=True,
            insert_returning_template="{insert}; SELECT LAST_INSERT_ID()",
            random_function="RAND()",
            uuid_function="UUID()",
            supports_full_join=False,
            type_map=frozen_type_map(
                {
                    T.INT16: "SMALLINT",
                    T.INT32: "INT",
                    T.INT64: "BIGINT",
                    T.DECIMAL: "DECIMAL(18,2)",
                    T.DOUBLE: "DOUBLE",
                    T.SINGLE: "FLOAT",
                    T.STRING: "VARCHAR(4000)",
                    T.DATETIME: "DATETIME",
                    T.DATE: "DATE",
                    T.BOOLEAN: "BOOLEAN",
                    T.BYTE: "TINYINT",
                    T.UUID: "CHAR(36)",
                    T.BINARY: "BLOB",
                }
            ),
        )

    def string_literal(self, value: str) -> str:
        """Quoted literal; backslash is an escape character under the default sql_mode."""
        escaped = value.replace("\\", "\\\\").replace("'", "''")
        return f"'{escaped}'"

    def render_ifnull(self, expr: str, fallback: str) -> str:
        return f"IFNULL({expr}, {fallback})"

    def render_group_concat(self, column: str, separator: str) -> str:
        return f"GROUP_CONCAT({column} SEPARATOR {separator})"

    def render_json_path(self, column: str, path: str) -> str:
        return f"JSON_EXTRACT({column}, {self.string_literal(json_path(path))})"

    def render_array_access(self, column: str, index: str) -> str:
        return f"JSON_EXTRACT({column}, '$[{index}]')"

    def render_fulltext(self, columns: Sequence[str], term: str) -> tuple[str, str | None]:
        return f"MATCH({', '.join(columns)}) AGAINST({term} IN NATURAL LANGUAGE MODE)", None

    def render_date_add(self, expr: str, unit: DateUnit, amount: str) -> str:
        return f"DATE_ADD({expr}, INTERVAL {amount} {unit.value.upper()})"

    def render_date_diff(self, unit: DateUnit, start: str, end: str) -> str:
        return f"TIMESTAMPDIFF({unit.value.upper()}, {start}, {end})"
