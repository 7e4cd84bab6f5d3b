"""Entity and method descriptors consumed by the template engine."""

from __future__ import annotations

from enum import StrEnum

from pydantic import BaseModel, ConfigDict, Field

from sqlforge.template.naming import to_snake_case


class SemanticType(StrEnum):
    """Database-independent value type of a field or parameter."""

    STRING = "string"
    INT16 = "int16"
    INT32 = "int32"
    INT64 = "int64"
    BYTE = "byte"
    DECIMAL = "decimal"
    DOUBLE = "double"
    SINGLE = "single"
    BOOLEAN = "boolean"
    DATETIME = "datetime"
    DATE = "date"
    UUID = "uuid"
    BINARY = "binary"


class FieldDescriptor(BaseModel):
    """One persisted field of an entity."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    name: str
    semantic_type: SemanticType = Field(SemanticType.STRING, alias="type")
    is_primary_key: bool = Field(False, alias="primaryKey")
    is_nullable: bool = Field(False, alias="nullable")

    @property
    def column(self) -> str:
        """Column name derived from the field name."""
        return to_snake_case(self.name)


class EntityDescriptor(BaseModel):
    """Ordered field list of an entity. Field order is significant."""

    model_config = ConfigDict(frozen=True)

    name: str
    fields: tuple[FieldDescriptor, ...] = ()

    @property
    def primary_keys(self) -> tuple[FieldDescriptor, ...]:
        """Fields flagged as primary key, else a field called ``id``."""
        flagged = tuple(f for f in self.fields if f.is_primary_key)
        if flagged:
            return flagged
        return tuple(f for f in self.fields if f.name.lower() == "id")

    @property
    def table(self) -> str:
        return to_snake_case(self.name)

    def field(self, name: str) -> FieldDescriptor | None:
        """Look a field up by field name or column name, ignoring case."""
        wanted = name.lower()
        for f in self.fields:
            if f.name.lower() == wanted or f.column == wanted:
                return f
        return None


class ParameterDescriptor(BaseModel):
    """One parameter of a data-access method."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    name: str
    semantic_type: SemanticType = Field(SemanticType.STRING, alias="type")


class MethodDescriptor(BaseModel):
    """Signature of the data-access method a template belongs to."""

    model_config = ConfigDict(frozen=True)

    name: str
    parameters: tuple[ParameterDescriptor, ...] = ()

    def parameter(self, name: str) -> ParameterDescriptor | None:
        wanted = name.lower()
        for p in self.parameters:
            if p.name.lower() == wanted:
                return p
        return None

    @property
    def parameter_names(self) -> list[str]:
        return [p.name for p in self.parameters]
