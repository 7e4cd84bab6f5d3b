"""Dialect registry: one shared, immutable instance per supported dialect."""

from __future__ import annotations

from typing import TYPE_CHECKING

from sqlforge.dialect.base import Dialect

if TYPE_CHECKING:
    from sqlforge.settings import Settings


class UnsupportedDialectError(Exception):
    """Raised when a requested dialect is not registered."""

    def __init__(self, name: str, available: list[str]) -> None:
        self.dialect_name = name
        self.available = available
        super().__init__(f"Unsupported dialect '{name}'. Available: {', '.join(available)}")


class DialectRegistry:
    """Registry for SQL dialects.

    Dialects register at import time; afterwards the table is only read.
    """

    _dialects: dict[str, Dialect] = {}
    _aliases: dict[str, str] = {}

    @classmethod
    def register(cls, dialect_class: type[Dialect]) -> type[Dialect]:
        """Register a dialect class. Can be used as a decorator."""
        instance = dialect_class()
        cls._dialects[instance.name] = instance
        return dialect_class

    @classmethod
    def alias(cls, alias: str, name: str) -> None:
        cls._aliases[alias] = name

    @classmethod
    def get(cls, name: str, settings: Settings | None = None) -> Dialect:
        """Get the shared instance of the named dialect (case-insensitive).

        With ``settings`` the instance is adjusted by ``Dialect.configured``.
        """
        key = name.strip().lower()
        key = cls._aliases.get(key, key)
        if key not in cls._dialects:
            raise UnsupportedDialectError(name, available=cls.available())
        dialect = cls._dialects[key]
        return dialect.configured(settings) if settings is not None else dialect

    @classmethod
    def available(cls) -> list[str]:
        """List registered dialect names."""
        return sorted(cls._dialects.keys())
