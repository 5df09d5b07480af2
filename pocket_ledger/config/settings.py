"""
Configuration Management for Pocket Ledger

Uses pydantic-settings for type-safe configuration from environment variables.

All configuration is centralized here: where data lives, how credentials
are hashed, and which time zone draws the calendar-day boundaries for the
weekly trend.
"""

from functools import lru_cache
from pathlib import Path
from typing import Literal
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class StorageSettings(BaseSettings):
    """Key-value store configuration."""

    model_config = SettingsConfigDict(
        env_prefix="LEDGER_STORAGE_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    backend: Literal["file", "memory"] = Field(
        default="file",
        description="Which key-value store backs the ledger"
    )
    data_dir: Path = Field(
        default=Path.home() / ".pocket_ledger",
        description="Directory holding one JSON file per store key"
    )
    retry_attempts: int = Field(
        default=3,
        ge=1,
        le=10,
        description="Attempts for a file read/write before giving up"
    )


class SecuritySettings(BaseSettings):
    """Credential rules and hashing parameters."""

    model_config = SettingsConfigDict(
        env_prefix="LEDGER_SECURITY_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    min_password_length: int = Field(
        default=6,
        ge=1,
        description="Shortest password accepted at registration"
    )
    hash_iterations: int = Field(
        default=120_000,
        ge=1,
        description="PBKDF2 iteration count for new password hashes"
    )
    salt_bytes: int = Field(
        default=16,
        ge=8,
        le=64,
        description="Random salt length per user"
    )


class AppSettings(BaseSettings):
    """
    Main application settings.

    Loads configuration from environment variables and .env file.
    """

    model_config = SettingsConfigDict(
        env_prefix="LEDGER_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    # Logging
    debug_mode: bool = Field(
        default=False,
        description="Emit debug-level log events"
    )

    # Aggregation
    timezone: str = Field(
        default="UTC",
        description="IANA time zone that defines calendar days for the weekly series"
    )

    # Audit trail
    audit_to_store: bool = Field(
        default=False,
        description="Also persist audit events under the 'auditLog' key"
    )
    audit_log_limit: int = Field(
        default=500,
        ge=1,
        description="Most recent audit events kept in the store"
    )

    @field_validator('timezone')
    @classmethod
    def validate_timezone(cls, v: str) -> str:
        """Reject time zone names zoneinfo cannot resolve."""
        try:
            ZoneInfo(v)
        except (ZoneInfoNotFoundError, ValueError):
            raise ValueError(f"Unknown time zone: {v}")
        return v

    @property
    def tzinfo(self) -> ZoneInfo:
        return ZoneInfo(self.timezone)


class Settings(BaseSettings):
    """
    Root settings container.

    Aggregates all sub-settings for easy access.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    @property
    def storage(self) -> StorageSettings:
        return StorageSettings()

    @property
    def security(self) -> SecuritySettings:
        return SecuritySettings()

    @property
    def app(self) -> AppSettings:
        return AppSettings()


@lru_cache()
def get_settings() -> Settings:
    """
    Get application settings (cached).

    Call get_settings.cache_clear() to reload if needed.
    """
    return Settings()


def validate_all_settings() -> dict[str, object]:
    """
    Validate all settings groups load from the current environment.

    Returns a dict of {group_name: is_valid}, plus a
    {group_name}_error entry for each group that failed.
    """
    results: dict[str, object] = {}
    settings = get_settings()

    for name in ("storage", "security", "app"):
        try:
            getattr(settings, name)
            results[name] = True
        except ValueError as e:
            results[name] = False
            results[f"{name}_error"] = str(e)

    return results
