"""Configuration management for Kostos Ledger."""

from decimal import Decimal
from pathlib import Path

from pydantic_settings import BaseSettings, SettingsConfigDict

from .exceptions import ConfigurationError


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_prefix="KOSTOS_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Threshold below which a balance or sum mismatch counts as settled
    tolerance: Decimal = Decimal("0.01")

    # Used when a project snapshot does not name its currency
    default_currency: str = "USD"

    # Default project snapshot for CLI commands
    project_path: Path | None = None


def load_settings() -> Settings:
    """Load application settings from environment variables."""
    try:
        settings = Settings()
    except Exception as e:
        raise ConfigurationError(
            f"Failed to load settings. Check the KOSTOS_* variables in your "
            f"environment or .env file.\n"
            f"Error: {e}"
        ) from e

    if settings.tolerance < 0:
        raise ConfigurationError(
            f"Tolerance must not be negative (got {settings.tolerance})"
        )

    return settings
