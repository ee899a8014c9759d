"""
csvsql Configuration Module.

Handles application settings, feature flags, and engine limits.
Uses pydantic-settings for validation and type safety.
"""

from functools import lru_cache
from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class FeatureFlags(BaseSettings):
    """Feature flags for enabling/disabling API surfaces."""

    model_config = SettingsConfigDict(env_prefix="FEATURE_")

    csv_import: bool = True
    query: bool = True
    stateless_query: bool = True
    metrics: bool = True

    def to_dict(self) -> dict[str, bool]:
        """Return feature flags as dictionary for health endpoint."""
        return {
            "csv_import": self.csv_import,
            "query": self.query,
            "stateless_query": self.stateless_query,
            "metrics": self.metrics,
        }


class EngineSettings(BaseSettings):
    """Query engine and import limits."""

    model_config = SettingsConfigDict(env_prefix="ENGINE_")

    type_sample_size: int = Field(
        default=100,
        ge=1,
        description="Non-empty values inspected per column when inferring its type",
    )
    max_upload_bytes: int = Field(
        default=10 * 1024 * 1024,
        ge=1,
        description="Largest CSV upload accepted by the import endpoint",
    )
    csv_encodings: list[str] = Field(
        default_factory=lambda: ["utf-8-sig", "cp1252", "latin-1"],
        description="Encodings tried, in order, when decoding uploaded CSV files",
    )


class Settings(BaseSettings):
    """Main application settings."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Application
    app_env: Literal["development", "staging", "production"] = "development"
    app_debug: bool = False
    app_log_level: str = "INFO"

    # Nested settings
    features: FeatureFlags = Field(default_factory=FeatureFlags)
    engine: EngineSettings = Field(default_factory=EngineSettings)

    @property
    def is_production(self) -> bool:
        """Check if running in production."""
        return self.app_env == "production"


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
