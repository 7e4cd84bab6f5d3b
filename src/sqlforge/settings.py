"""Shared settings loaded from environment / .env file."""

from __future__ import annotations

from enum import StrEnum

from pydantic_settings import BaseSettings, SettingsConfigDict


class ParameterStyle(StrEnum):
    """How bound parameters are spelled in generated SQL."""

    NAMED = "named"
    POSITIONAL = "positional"


class Settings(BaseSettings):
    """Configuration for the sqlforge template compiler.

    Values are read from ``SQLFORGE_``-prefixed environment variables and
    from a ``.env`` file in the working directory.
    """

    model_config = SettingsConfigDict(
        env_prefix="SQLFORGE_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Compilation
    default_dialect: str = "postgres"
    max_resolution_passes: int = 8
    max_batch_size: int = 1000
    check_output_sql: bool = True  # sqlglot parse of finished statements

    # PostgreSQL drivers disagree on placeholder syntax; pick one explicitly.
    postgres_parameter_style: ParameterStyle = ParameterStyle.NAMED
    postgres_parameter_prefix: str = "@"
