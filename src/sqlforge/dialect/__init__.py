"""SQL dialect plugin system for sqlforge."""

# Import dialects to trigger registration
import sqlforge.dialect.db2 as _db2  # noqa: F401
import sqlforge.dialect.mysql as _mysql  # noqa: F401
import sqlforge.dialect.oracle as _oracle  # noqa: F401
import sqlforge.dialect.postgres as _postgres  # noqa: F401
import sqlforge.dialect.sqlite as _sqlite  # noqa: F401
import sqlforge.dialect.sqlserver as _sqlserver  # noqa: F401
from sqlforge.dialect.base import Dialect, DialectDescriptor, JoinType
from sqlforge.dialect.registry import DialectRegistry, UnsupportedDialectError

DialectRegistry.alias("mssql", "sqlserver")
DialectRegistry.alias("tsql", "sqlserver")
DialectRegistry.alias("postgresql", "postgres")
DialectRegistry.alias("pgsql", "postgres")

__all__ = [
    "Dialect",
    "DialectDescriptor",
    "DialectRegistry",
    "JoinType",
    "UnsupportedDialectError",
]
