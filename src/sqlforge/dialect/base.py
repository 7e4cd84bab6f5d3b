"""Dialect descriptor data and the abstract base dialect with default SQL rendering."""

from __future__ import annotations

import dataclasses
import re
from abc import ABC, abstractmethod
from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field
from enum import StrEnum
from types import MappingProxyType
from typing import TYPE_CHECKING

from sqlforge.models.descriptors import SemanticType
from sqlforge.settings import ParameterStyle
from sqlforge.template.errors import PaginationError

if TYPE_CHECKING:
    from sqlforge.settings import Settings


class ConcatStrategy(StrEnum):
    FUNCTION = "function"  # CONCAT(a, b)
    PIPES = "pipes"  # a || b
    PLUS = "plus"  # a + b


class PaginationStyle(StrEnum):
    LIMIT_OFFSET = "limit_offset"
    OFFSET_FETCH = "offset_fetch"


class UpsertStrategy(StrEnum):
    DUPLICATE_KEY_UPDATE = "duplicate_key_update"
    ON_CONFLICT = "on_conflict"
    MERGE = "merge"


class JoinType(StrEnum):
    INNER = "inner"
    LEFT = "left"
    RIGHT = "right"
    FULL = "full"
    CROSS = "cross"


class DateUnit(StrEnum):
    YEAR = "year"
    MONTH = "month"
    DAY = "day"
    HOUR = "hour"
    MINUTE = "minute"
    SECOND = "second"

    @classmethod
    def parse(cls, value: str) -> DateUnit:
        """Accept singular or plural unit names in any case."""
        unit = value.strip().lower()
        if unit.endswith("s"):
            unit = unit[:-1]
        return cls(unit)


SECONDS_PER_UNIT: dict[DateUnit, int] = {
    DateUnit.DAY: 86400,
    DateUnit.HOUR: 3600,
    DateUnit.MINUTE: 60,
    DateUnit.SECOND: 1,
}

_PARAMETER_TOKEN_RE = re.compile(r"(?<![:\w@$])[@:$?]\w+")


def frozen_type_map(data: Mapping[SemanticType, str]) -> Mapping[SemanticType, str]:
    return MappingProxyType(dict(data))


@dataclass(frozen=True)
class DialectDescriptor:
    """Immutable description of one SQL dialect.

    Built once per dialect at import time and shared by every template.
    """

    name: str
    display_name: str
    quote_open: str
    quote_close: str
    parameter_prefix: str
    bool_true: str
    bool_false: str
    current_timestamp: str
    current_date: str
    concat_strategy: ConcatStrategy
    pagination_style: PaginationStyle
    upsert_strategy: UpsertStrategy
    type_map: Mapping[SemanticType, str]
    random_function: str
    uuid_function: str
    parameter_style: ParameterStyle = ParameterStyle.NAMED
    positional_marker: str = "$"  # "$" numbers parameters, "?" repeats per use
    limit_template: str = "LIMIT {limit}"
    offset_only_template: str = "OFFSET {offset}"
    limit_offset_template: str = "LIMIT {limit} OFFSET {offset}"
    offset_requires_limit: bool = False
    requires_order_by: bool = False
    # {insert}, {table}, {columns}, {values}, {id} and {out} (id output parameter)
    insert_returning_template: str = "{insert} RETURNING {id}"
    max_parameters: int = 65535
    default_type: str = "VARCHAR(4000)"
    supports_right_join: bool = True
    supports_full_join: bool = True
    excluded_alias: str = "EXCLUDED"
    function_names: Mapping[str, str] = field(default_factory=lambda: MappingProxyType({}))


class Dialect(ABC):
    """Abstract base for all SQL dialects.

    Reads everything it can from the ``DialectDescriptor``; dialects
    override the renderers whose syntax differs.
    """

    def __init__(self, descriptor: DialectDescriptor | None = None) -> None:
        self._descriptor = descriptor or self.default_descriptor()

    @classmethod
    @abstractmethod
    def default_descriptor(cls) -> DialectDescriptor: ...

    @property
    def descriptor(self) -> DialectDescriptor:
        return self._descriptor

    @property
    def name(self) -> str:
        return self._descriptor.name

    def configured(self, settings: Settings) -> Dialect:
        """Return a dialect adjusted to ``settings`` (``self`` when unaffected)."""
        return self

    def _replace(self, **changes: object) -> Dialect:
        return type(self)(dataclasses.replace(self._descriptor, **changes))

    # -- identifiers and parameters -------------------------------------------

    def quote_identifier(self, name: str) -> str:
        """Wrap ``name`` in the dialect's quote pair, doubling embedded closers."""
        if not name:
            return ""
        d = self._descriptor
        escaped = name.replace(d.quote_close, d.quote_close * 2)
        return f"{d.quote_open}{escaped}{d.quote_close}"

    def quote_qualified(self, name: str) -> str:
        """Quote each segment of a dotted ``schema.table`` name."""
        return ".".join(self.quote_identifier(part) for part in name.split("."))

    @property
    def is_positional(self) -> bool:
        return self._descriptor.parameter_style is ParameterStyle.POSITIONAL

    def parameter(self, name: str) -> str:
        """Bound parameter reference for ``name``.

        Positional dialects get a named ``@name`` marker here that
        ``finalize_parameters`` rewrites once resolution is complete.
        """
        if self.is_positional:
            return f"@{name}"
        return f"{self._descriptor.parameter_prefix}{name}"

    def parameter_at(self, index: int) -> str:
        marker = self._descriptor.positional_marker
        return f"{marker}{index}" if marker == "$" else marker

    def parameter_tokens(self, sql: str) -> list[str]:
        """Marker-prefixed parameter tokens outside string literals, in order."""
        return _PARAMETER_TOKEN_RE.findall(mask_string_literals(sql))

    def finalize_parameters(self, sql: str) -> tuple[str, list[str]]:
        """Rewrite named markers into positional ones for positional dialects.

        Returns the rewritten SQL and the ordered binding plan.
        """
        if not self.is_positional:
            return sql, []
        masked = mask_string_literals(sql)
        numbered = self._descriptor.positional_marker == "$"
        order: list[str] = []
        pieces: list[str] = []
        last = 0
        for match in re.finditer(r"(?<![:\w@$])@(\w+)", masked):
            name = match.group(1)
            if numbered:
                if name not in order:
                    order.append(name)
                marker = self.parameter_at(order.index(name) + 1)
            else:
                order.append(name)
                marker = self.parameter_at(len(order))
            pieces.append(sql[last : match.start()])
            pieces.append(marker)
            last = match.end()
        pieces.append(sql[last:])
        return "".join(pieces), order

    # -- literals and expressions ---------------------------------------------

    def bool_literal(self, value: bool) -> str:
        return self._descriptor.bool_true if value else self._descriptor.bool_false

    def current_timestamp_sql(self) -> str:
        return self._descriptor.current_timestamp

    def current_date_sql(self) -> str:
        return self._descriptor.current_date

    def random_sql(self) -> str:
        return self._descriptor.random_function

    def uuid_sql(self) -> str:
        return self._descriptor.uuid_function

    def concat(self, *parts: str) -> str:
        match self._descriptor.concat_strategy:
            case ConcatStrategy.FUNCTION:
                return f"CONCAT({', '.join(parts)})"
            case ConcatStrategy.PLUS:
                return " + ".join(parts)
            case ConcatStrategy.PIPES:
                return " || ".join(parts)

    def function_name(self, name: str) -> str:
        """Native spelling of a generic scalar function name (``CEILING``, ``LENGTH``)."""
        return self._descriptor.function_names.get(name, name)

    def string_literal(self, value: str) -> str:
        escaped = value.replace("'", "''")
        return f"'{escaped}'"

    def native_type(self, semantic_type: SemanticType | str) -> str:
        """Native column type for a semantic type; unknown types get the default."""
        try:
            key = SemanticType(str(semantic_type).lower())
        except ValueError:
            return self._descriptor.default_type
        return self._descriptor.type_map.get(key, self._descriptor.default_type)

    def render_ifnull(self, expr: str, fallback: str) -> str:
        return f"COALESCE({expr}, {fallback})"

    def render_group_concat(self, column: str, separator: str) -> str:
        return f"STRING_AGG({column}, {separator})"

    def render_json_path(self, column: str, path: str) -> str:
        return f"JSON_VALUE({column}, {self.string_literal(json_path(path))})"

    def render_array_access(self, column: str, index: str) -> str:
        return f"JSON_VALUE({column}, '$[{index}]')"

    @abstractmethod
    def render_fulltext(self, columns: Sequence[str], term: str) -> tuple[str, str | None]:
        """Full-text predicate over ``columns``; second item is a fallback warning."""

    @abstractmethod
    def render_date_add(self, expr: str, unit: DateUnit, amount: str) -> str:
        """Expression adding ``amount`` units to ``expr``."""

    @abstractmethod
    def render_date_diff(self, unit: DateUnit, start: str, end: str) -> str:
        """Whole ``unit`` count between ``start`` and ``end``."""

    # -- pagination -------------------------------------------------------------

    @property
    def requires_order_by(self) -> bool:
        return self._descriptor.requires_order_by

    def limit_clause(self, limit: str, has_offset: bool = False) -> str:
        d = self._descriptor
        if not has_offset:
            return d.limit_template.format(limit=limit)
        if d.pagination_style is PaginationStyle.OFFSET_FETCH:
            return f"FETCH NEXT {limit} ROWS ONLY"
        return f"LIMIT {limit}"

    def offset_clause(self, offset: str, has_limit: bool = False) -> str:
        d = self._descriptor
        if has_limit:
            if d.pagination_style is PaginationStyle.OFFSET_FETCH:
                return f"OFFSET {offset} ROWS"
            return f"OFFSET {offset}"
        if d.offset_requires_limit:
            raise PaginationError(
                f"{d.display_name} cannot express OFFSET without LIMIT; add a limit"
            )
        return d.offset_only_template.format(offset=offset)

    def pagination_clause(self, limit: str | None, offset: str | None) -> tuple[str, bool]:
        """Full pagination clause plus whether the dialect needs an ORDER BY."""
        if limit is None and offset is None:
            return "", False
        if limit is None:
            return self.offset_clause(offset or "0"), self.requires_order_by
        if offset is None:
            return self.limit_clause(limit), self.requires_order_by
        clause = self._descriptor.limit_offset_template.format(limit=limit, offset=offset)
        return clause, self.requires_order_by

    def check_clause_order(self, limit_first: bool) -> None:
        """Raise ``PaginationError`` when separate limit/offset clauses are out of order."""
        d = self._descriptor
        wants_limit_first = d.pagination_style is PaginationStyle.LIMIT_OFFSET
        if limit_first != wants_limit_first:
            first, second = ("LIMIT", "OFFSET") if wants_limit_first else ("OFFSET", "FETCH")
            raise PaginationError(
                f"{d.display_name} requires {first} before {second}; "
                "reorder the pagination placeholders"
            )

    # -- joins ----------------------------------------------------------------

    def join_keyword(self, join_type: JoinType) -> tuple[str, str | None]:
        """JOIN keyword, falling back to LEFT JOIN where unsupported."""
        d = self._descriptor
        unsupported = (join_type is JoinType.RIGHT and not d.supports_right_join) or (
            join_type is JoinType.FULL and not d.supports_full_join
        )
        if unsupported:
            warning = (
                f"{d.display_name} does not support {join_type.value.upper()} JOIN; "
                "emitted LEFT JOIN instead"
            )
            return "LEFT JOIN", warning
        if join_type is JoinType.FULL:
            return "FULL OUTER JOIN", None
        return f"{join_type.value.upper()} JOIN", None

    # -- statements -------------------------------------------------------------

    def render_insert(self, table: str, columns: Sequence[str], params: Sequence[str]) -> str:
        return f"INSERT INTO {table} ({', '.join(columns)}) VALUES ({', '.join(params)})"

    def render_batch_insert(
        self, table: str, columns: Sequence[str], rows: Sequence[Sequence[str]]
    ) -> str:
        values = ", ".join(f"({', '.join(row)})" for row in rows)
        return f"INSERT INTO {table} ({', '.join(columns)}) VALUES {values}"

    def render_insert_returning(
        self, table: str, columns: Sequence[str], params: Sequence[str], id_column: str
    ) -> str:
        """INSERT that also yields the generated key in ``id_column``."""
        d = self._descriptor
        return d.insert_returning_template.format(
            insert=self.render_insert(table, columns, params),
            table=table,
            columns=", ".join(columns),
            values=", ".join(params),
            id=id_column,
            out=self.parameter(id_column.strip(d.quote_open + d.quote_close)),
        )

    def render_upsert(
        self,
        table: str,
        columns: Sequence[str],
        params: Sequence[str],
        keys: Sequence[str],
        updates: Sequence[str],
    ) -> str:
        """Insert-or-update keyed on ``keys``; ``updates`` never contains a key."""
        insert = self.render_insert(table, columns, params)
        match self._descriptor.upsert_strategy:
            case UpsertStrategy.DUPLICATE_KEY_UPDATE:
                if not updates:
                    noop = keys[0]
                    return f"{insert} ON DUPLICATE KEY UPDATE {noop} = {noop}"
                sets = ", ".join(f"{c} = VALUES({c})" for c in updates)
                return f"{insert} ON DUPLICATE KEY UPDATE {sets}"
            case UpsertStrategy.ON_CONFLICT:
                target = f"ON CONFLICT ({', '.join(keys)})"
                if not updates:
                    return f"{insert} {target} DO NOTHING"
                alias = self._descriptor.excluded_alias
                sets = ", ".join(f"{c} = {alias}.{c}" for c in updates)
                return f"{insert} {target} DO UPDATE SET {sets}"
            case UpsertStrategy.MERGE:
                return self.render_merge(table, columns, params, keys, updates)

    def merge_source(self, columns: Sequence[str], params: Sequence[str]) -> str:
        return f"USING (VALUES ({', '.join(params)})) AS source ({', '.join(columns)})"

    def render_merge(
        self,
        table: str,
        columns: Sequence[str],
        params: Sequence[str],
        keys: Sequence[str],
        updates: Sequence[str],
    ) -> str:
        on = " AND ".join(f"target.{k} = source.{k}" for k in keys)
        parts = [
            f"MERGE INTO {table} AS target",
            self.merge_source(columns, params),
            f"ON ({on})",
        ]
        if updates:
            sets = ", ".join(f"target.{c} = source.{c}" for c in updates)
            parts.append(f"WHEN MATCHED THEN UPDATE SET {sets}")
        inserted = ", ".join(f"source.{c}" for c in columns)
        parts.append(
            f"WHEN NOT MATCHED THEN INSERT ({', '.join(columns)}) VALUES ({inserted})"
        )
        return " ".join(parts)


def mask_string_literals(sql: str) -> str:
    """Blank out the contents of single-quoted literals, keeping offsets."""
    return re.sub(r"'(?:[^']|'')*'", lambda m: "'" + " " * (len(m.group(0)) - 2) + "'", sql)


def json_path(path: str) -> str:
    """Normalize ``a.b[0]`` or ``$.a.b[0]`` into a ``$``-rooted JSON path."""
    path = path.strip().strip("'")
    if path.startswith("$"):
        return path
    return f"$.{path}" if not path.startswith("[") else f"${path}"


def json_path_segments(path: str) -> list[str]:
    """Split a JSON path into member names and ``[n]`` indices."""
    normalized = json_path(path)[1:]
    return [seg for seg in re.split(r"\.|(?=\[)", normalized) if seg]
