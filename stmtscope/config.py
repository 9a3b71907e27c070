"""
Configuration settings for stmtscope.

Uses Pydantic Settings to load environment variables for the database
connection, logging, and the names of the statement-summary objects
(history table and the three runtime settings of the collector).
"""
from __future__ import annotations

import re
from functools import lru_cache

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

_QUALIFIED_NAME_RE = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*(\.[A-Za-z_][A-Za-z0-9_]*)?$")


class Settings(BaseSettings):
    # Database
    db_host: str = Field("localhost", alias="DB_HOST")
    db_port: int = Field(5432, alias="DB_PORT")
    db_user: str = Field("postgres", alias="DB_USER")
    db_password: str = Field("postgres", alias="DB_PASSWORD")
    db_name: str = Field("stmtscope", alias="DB_NAME")
    db_statement_timeout_ms: int = Field(30_000, alias="DB_STATEMENT_TIMEOUT_MS", ge=0)
    db_pool_min_size: int = Field(1, alias="DB_POOL_MIN_SIZE", ge=0)
    db_pool_max_size: int = Field(10, alias="DB_POOL_MAX_SIZE", ge=1)

    # Application
    app_env: str = Field("development", alias="APP_ENV")
    log_level: str = Field("INFO", alias="LOG_LEVEL")
    log_json: bool = Field(False, alias="LOG_JSON")

    # Statement summary objects
    stmt_table: str = Field("public.statements_summary_history", alias="STMT_TABLE")
    stmt_enable_var: str = Field("stmt_summary.enable", alias="STMT_ENABLE_VAR")
    stmt_refresh_interval_var: str = Field(
        "stmt_summary.refresh_interval", alias="STMT_REFRESH_INTERVAL_VAR"
    )
    stmt_history_size_var: str = Field("stmt_summary.history_size", alias="STMT_HISTORY_SIZE_VAR")

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        populate_by_name=True,
    )

    @field_validator(
        "stmt_table",
        "stmt_enable_var",
        "stmt_refresh_interval_var",
        "stmt_history_size_var",
    )
    @classmethod
    def _check_qualified_name(cls, value: str) -> str:
        # These names end up in SQL text, so only plain identifiers are allowed.
        if not _QUALIFIED_NAME_RE.match(value):
            raise ValueError(f"'{value}' is not a plain [schema.]name identifier")
        return value


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """
    Retrieve a cached instance of Settings to avoid repeated env parsing.
    """
    return Settings()


__all__ = ["Settings", "get_settings"]
