"""
Configuration Management for Ledgerbook

Uses pydantic-settings for type-safe configuration from environment variables.

DESIGN DECISION: All configuration is centralized here.
This makes it easy to see which knobs exist and ensures
all configuration is validated at startup.
"""

from functools import lru_cache
from pathlib import Path
from typing import Literal, Optional
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class StorageSettings(BaseSettings):
    """Ledger storage backend configuration."""

    model_config = SettingsConfigDict(
        env_prefix="LEDGER_STORAGE_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    backend: Literal["memory", "sqlite"] = Field(
        default="memory",
        description="Which store implementation to use"
    )
    database_path: Path = Field(
        default=Path("data/ledgerbook.db"),
        description="Path to the SQLite database file"
    )
    busy_timeout_seconds: float = Field(
        default=10.0,
        ge=1.0,
        le=120.0,
        description="How long SQLite waits on a locked database"
    )


class DisplaySettings(BaseSettings):
    """Presentation settings used by statements and reports."""

    model_config = SettingsConfigDict(
        env_prefix="LEDGER_DISPLAY_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    currency_symbol: str = Field(
        default="₹",
        max_length=5,
        description="Symbol prepended to formatted amounts"
    )
    statement_date_format: str = Field(
        default="%d/%m/%Y",
        description="strftime format for statement dates"
    )
    timezone: Optional[str] = Field(
        default=None,
        description="IANA zone for report periods (empty = process local zone)"
    )

    @field_validator('timezone')
    @classmethod
    def validate_timezone(cls, v: Optional[str]) -> Optional[str]:
        """Reject zone names the tz database does not know."""
        if not v:
            return None
        try:
            ZoneInfo(v)
        except (ZoneInfoNotFoundError, ValueError):
            raise ValueError(f"Unknown timezone: {v}")
        return v

    @property
    def tzinfo(self) -> Optional[ZoneInfo]:
        """Zone object for report periods, or None for the local zone."""
        return ZoneInfo(self.timezone) if self.timezone else None


class SecuritySettings(BaseSettings):
    """PIN gate configuration."""

    model_config = SettingsConfigDict(
        env_prefix="LEDGER_SECURITY_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    pin_min_length: int = Field(
        default=4,
        ge=4,
        le=12,
        description="Minimum number of digits in a PIN"
    )
    pin_hash_iterations: int = Field(
        default=200_000,
        ge=1_000,
        description="PBKDF2 iterations used to hash the PIN"
    )


class AppSettings(BaseSettings):
    """
    Main application settings.

    Loads configuration from environment variables and .env file.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    # Environment
    app_environment: str = Field(
        default="development",
        description="Application environment"
    )
    debug_mode: bool = Field(
        default=False,
        description="Enable debug mode"
    )

    # Logging
    log_level: str = Field(
        default="INFO",
        description="Minimum level for ledger logs"
    )
    log_json: bool = Field(
        default=True,
        description="Render logs as JSON (False = console renderer)"
    )

    @field_validator('log_level')
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        level = v.strip().upper()
        if level not in {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}:
            raise ValueError(f"Invalid log level: {v}")
        return level


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

    # Note: These are loaded lazily to allow partial configuration

    @property
    def storage(self) -> StorageSettings:
        return StorageSettings()

    @property
    def display(self) -> DisplaySettings:
        return DisplaySettings()

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

    Uses LRU cache to ensure settings are only loaded once.
    Call get_settings.cache_clear() to reload if needed.
    """
    return Settings()


def validate_all_settings() -> dict[str, bool]:
    """
    Validate all settings are properly configured.

    Returns a dict of {setting_name: is_valid}, plus
    a "<name>_error" entry for each group that failed to load.
    Useful for startup checks.
    """
    results = {}

    settings = get_settings()

    for name in ("storage", "display", "security", "app"):
        try:
            getattr(settings, name)
            results[name] = True
        except ValueError as e:
            results[name] = False
            results[f"{name}_error"] = str(e)

    return results
