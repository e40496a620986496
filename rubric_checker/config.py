"""
Configuration management for the Rubric Checker.

Uses Pydantic Settings for type-safe configuration loading from environment variables.
All configuration is validated at startup to fail fast on misconfiguration.
"""

from enum import Enum
from functools import lru_cache

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class VerdictScope(str, Enum):
    """Which sub-items a total's verdict is cross-checked against."""

    DOCUMENT = "document"  # Every sub-item in the document
    GROUP = "group"  # Only sub-items sharing the total's prefix


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.

    Nothing is required: the parser runs without configuration and the
    grammar checker defaults to the public LanguageTool endpoint.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # ==========================================================================
    # LanguageTool Configuration
    # ==========================================================================
    languagetool_url: str = Field(
        default="https://api.languagetool.org/v2/check",
        description="Endpoint of the LanguageTool check API",
    )

    languagetool_language: str = Field(
        default="en-US",
        min_length=2,
        description="Language code sent with every grammar check",
    )

    languagetool_level: str = Field(
        default="picky",
        description="LanguageTool rule level ('default' or 'picky')",
    )

    request_timeout_seconds: float = Field(
        default=15.0,
        gt=0.0,
        le=300.0,
        description="Timeout for a single grammar-check request",
    )

    max_retries: int = Field(
        default=3,
        ge=0,
        le=10,
        description="Retries for a grammar-check request on transient failures",
    )

    retry_base_delay_seconds: float = Field(
        default=1.0,
        ge=0.0,
        le=30.0,
        description="Base delay for exponential backoff between retries",
    )

    max_workers: int = Field(
        default=4,
        ge=1,
        le=32,
        description="Concurrent grammar-check requests",
    )

    # ==========================================================================
    # Audit Configuration
    # ==========================================================================
    verdict_scope: VerdictScope = Field(
        default=VerdictScope.DOCUMENT,
        description="Scope of the verdict consistency check",
    )

    snippet_length: int = Field(
        default=120,
        ge=1,
        le=10_000,
        description="Characters of justification quoted in casing issues",
    )

    # ==========================================================================
    # File Processing Configuration
    # ==========================================================================
    max_file_size_mb: float = Field(
        default=10.0,
        ge=0.1,
        le=100.0,
        description="Maximum allowed rubric file size in megabytes",
    )

    @field_validator("languagetool_url")
    @classmethod
    def validate_url(cls, v: str) -> str:
        """Ensure the endpoint doesn't have a trailing slash."""
        return v.rstrip("/")

    @field_validator("languagetool_level")
    @classmethod
    def validate_level(cls, v: str) -> str:
        """Only the two levels LanguageTool understands are accepted."""
        level = v.strip().lower()
        if level not in ("default", "picky"):
            raise ValueError(f"languagetool_level must be 'default' or 'picky', got {v!r}")
        return level


@lru_cache()
def get_settings() -> Settings:
    """
    Get cached settings instance.

    Uses LRU cache to ensure settings are only loaded once.
    """
    return Settings()
