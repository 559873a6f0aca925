"""Configuration for fund_modeling using pydantic-settings.

Settings are read from environment variables prefixed with FUND_MODELING_
or from a .env file. Every field has a default suitable for development.
"""

from __future__ import annotations

from enum import Enum
from functools import lru_cache
from typing import Literal, Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Environment(str, Enum):
    """Runtime environment."""

    DEVELOPMENT = "development"
    TESTING = "testing"
    PRODUCTION = "production"


class LogLevel(str, Enum):
    """Log level options."""

    DEBUG = "DEBUG"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"
    CRITICAL = "CRITICAL"


class Settings(BaseSettings):
    """Library settings.

    Examples:
        FUND_MODELING_ENVIRONMENT=production
        FUND_MODELING_LOG_LEVEL=DEBUG
        FUND_MODELING_VARIANCE_THRESHOLD_PCT=10
    """

    model_config = SettingsConfigDict(
        env_prefix="FUND_MODELING_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    app_name: str = "fund_modeling"
    environment: Environment = Environment.DEVELOPMENT

    # Logging
    log_level: LogLevel = LogLevel.INFO
    log_format: Optional[Literal["json", "console"]] = Field(
        default=None,
        validate_default=True,
        description="'json' for production, 'console' for development",
    )

    # Reconciliation
    variance_threshold_pct: float = Field(
        default=5.0,
        ge=0,
        description="Variance beyond ± this many percentage points is flagged",
    )

    # Presentation
    placeholder: str = Field(
        default="—", description="Shown in place of non-finite numbers"
    )
    default_scenario: Literal["bear", "base", "bull"] = "base"

    @field_validator("log_format", mode="after")
    @classmethod
    def set_log_format_from_environment(cls, v: Optional[str], info) -> str:
        """Default to JSON logging in production."""
        if v is None:
            if info.data.get("environment") == Environment.PRODUCTION:
                return "json"
            return "console"
        return v

    @property
    def is_production(self) -> bool:
        return self.environment == Environment.PRODUCTION


@lru_cache
def get_settings() -> Settings:
    """Get the cached settings instance.

    Call get_settings.cache_clear() to reload from the environment.
    """
    return Settings()
