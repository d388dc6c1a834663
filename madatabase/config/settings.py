"""
Configuration Settings
======================

Centralized configuration using Pydantic V2 Settings.

Every value can be set through an environment variable prefixed with
``MADB_`` (e.g. ``MADB_STORAGE=./data/app.sqlite``) or a ``.env`` file.
"""

import os
from typing import Optional

from pydantic import Field, field_validator, ValidationInfo
from pydantic_settings import BaseSettings, SettingsConfigDict


SUPPORTED_DIALECTS = ("sqlite", "postgresql", "mysql", "mariadb", "mssql", "oracle")
MEMORY_STORAGE = ":memory:"


class Settings(BaseSettings):
    """Database settings loaded from environment variables."""

    dialect: str = Field(default="sqlite")
    storage: str = Field(default_factory=lambda: os.path.join(os.getcwd(), "database.sqlite"))
    database_url: Optional[str] = Field(default=None)
    logging: bool = Field(default=False)
    log_level: str = Field(default="INFO")

    @field_validator("dialect")
    @classmethod
    def validate_dialect(cls, v: str) -> str:
        """Normalize the dialect name and reject unknown ones."""
        v = v.strip().lower()
        if v not in SUPPORTED_DIALECTS:
            raise ValueError(f"dialect must be one of {', '.join(SUPPORTED_DIALECTS)} (got '{v}')")
        return v

    @field_validator("database_url")
    @classmethod
    def validate_database_url(cls, v: Optional[str], info: ValidationInfo) -> Optional[str]:
        """A server dialect needs explicit connection parameters."""
        if v is None and info.data.get("dialect", "sqlite") != "sqlite":
            raise ValueError("database_url is required for non-sqlite dialects")
        return v

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        return v.upper()

    model_config = SettingsConfigDict(
        env_prefix="MADB_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
        validate_default=True,
    )

    @property
    def url(self) -> str:
        """SQLAlchemy URL built from the connection settings."""
        if self.database_url:
            return self.database_url
        if self.storage == MEMORY_STORAGE:
            return "sqlite://"
        return f"sqlite:///{self.storage}"

    @property
    def is_memory(self) -> bool:
        return self.database_url is None and self.storage == MEMORY_STORAGE


settings = Settings()


def get_settings() -> Settings:
    """Get the global settings instance."""
    return settings


def print_settings(current: Optional[Settings] = None) -> None:
    """Print the effective settings (the connection URL is never shown)."""
    current = current or settings
    print("=" * 60)
    print("⚙️  Database Settings")
    print("=" * 60)
    print(f"  Dialect:  {current.dialect}")
    if current.database_url:
        print("  URL:      (from MADB_DATABASE_URL)")
    else:
        print(f"  Storage:  {current.storage}")
    print(f"  SQL echo: {'ON' if current.logging else 'OFF'}")
    print(f"  Logging:  {current.log_level}")
    print("=" * 60)
