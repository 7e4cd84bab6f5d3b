"""Tests for the sqlglot-based output check."""

from __future__ import annotations

import pytest

from sqlforge.template.sql_check import is_statement, validate_sql


class TestValidateSQL:
    @pytest.mark.parametrize("dialect", ["mysql", "sqlserver", "postgres", "sqlite", "oracle"])
    def test_valid_select(self, dialect: str) -> None:
        assert validate_sql("SELECT 1", dialect) == []

    def test_unbalanced_parenthesis(self) -> None:
        assert validate_sql("SELECT (1", "postgres") != []

    def test_unchecked_dialect(self) -> None:
        assert validate_sql("SELECT (1", "db2") == []
        assert validate_sql("SELECT (1", "nosuch") == []


class TestIsStatement:
    @pytest.mark.parametrize(
        "sql",
        ["SELECT 1", "  insert into t values (1)", "WITH x AS (SELECT 1) SELECT * FROM x"],
    )
    def test_statements(self, sql: str) -> None:
        assert is_statement(sql)

    @pytest.mark.parametrize("sql", ["BETWEEN 1 AND 2", "COUNT(*)", "selected_value"])
    def test_fragments(self, sql: str) -> None:
        assert not is_statement(sql)
