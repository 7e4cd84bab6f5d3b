"""Shared test fixtures for sqlforge."""

from __future__ import annotations

import pytest

from sqlforge.dialect import Dialect, DialectRegistry
from sqlforge.models.descriptors import (
    EntityDescriptor,
    FieldDescriptor,
    MethodDescriptor,
    ParameterDescriptor,
    SemanticType,
)
from sqlforge.parser.loader import DescriptorLoader
from sqlforge.settings import Settings
from sqlforge.template.engine import TemplateEngine

ALL_DIALECTS = ["mysql", "sqlserver", "postgres", "sqlite", "oracle", "db2"]


@pytest.fixture
def settings() -> Settings:
    """Settings independent of the environment, without the sqlglot output check."""
    return Settings(_env_file=None, check_output_sql=False)


@pytest.fixture
def engine(settings: Settings) -> TemplateEngine:
    return TemplateEngine(settings)


@pytest.fixture
def loader() -> DescriptorLoader:
    return DescriptorLoader()


@pytest.fixture
def user_entity() -> EntityDescriptor:
    return EntityDescriptor(
        name="User",
        fields=(
            FieldDescriptor(name="Id", semantic_type=SemanticType.INT64, is_primary_key=True),
            FieldDescriptor(name="UserName", semantic_type=SemanticType.STRING),
            FieldDescriptor(name="Email", semantic_type=SemanticType.STRING),
            FieldDescriptor(name="Balance", semantic_type=SemanticType.DECIMAL),
            FieldDescriptor(name="IsActive", semantic_type=SemanticType.BOOLEAN),
            FieldDescriptor(
                name="CreatedAt", semantic_type=SemanticType.DATETIME, is_nullable=True
            ),
        ),
    )


@pytest.fixture
def get_by_id() -> MethodDescriptor:
    return MethodDescriptor(
        name="GetByIdAsync",
        parameters=(ParameterDescriptor(name="id", semantic_type=SemanticType.INT64),),
    )


@pytest.fixture
def search_method() -> MethodDescriptor:
    return MethodDescriptor(
        name="SearchAsync",
        parameters=(
            ParameterDescriptor(name="minPrice", semantic_type=SemanticType.DECIMAL),
            ParameterDescriptor(name="maxPrice", semantic_type=SemanticType.DECIMAL),
            ParameterDescriptor(name="limit", semantic_type=SemanticType.INT32),
            ParameterDescriptor(name="offset", semantic_type=SemanticType.INT32),
        ),
    )


@pytest.fixture(params=ALL_DIALECTS)
def any_dialect(request: pytest.FixtureRequest) -> Dialect:
    return DialectRegistry.get(request.param)


SAMPLE_DESCRIPTORS_YAML = """\
entities:
  User:
    fields:
      - name: Id
        type: int64
        primaryKey: true
      - name: UserName
        type: string
      - name: CreatedAt
        type: datetime
        nullable: true

methods:
  GetByIdAsync:
    entity: User
    parameters:
      - name: id
        type: int64
    sql: "SELECT {{columns}} FROM {{table}} {{where:id}}"
  CountAsync:
    entity: User
    table: reporting.UserTotals
    dialect: sqlite
    sql: "SELECT {{count}} FROM {{table}}"
"""
