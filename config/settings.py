"""Application settings and configuration management."""
from typing import Literal

from pydantic_settings import BaseSettings, SettingsConfigDict


class AuthSettings(BaseSettings):
    """JWT bearer token configuration."""

    secret_key: str = "your-secret-key-keep-it-secret"  # Override in production
    algorithm: str = "HS256"
    access_token_expire_minutes: int = 30

    model_config = SettingsConfigDict(env_prefix="AUTH_")


class HotelDefaultsSettings(BaseSettings):
    """Defaults applied when a hotel has not configured its own times."""

    check_in_time: str = "16:00"
    check_out_time: str = "11:00"
    day_use_hours: int = 4

    model_config = SettingsConfigDict(env_prefix="HOTEL_")


class LoggingSettings(BaseSettings):
    """Logging configuration."""

    level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = "INFO"
    format: Literal["json", "console"] = "console"

    model_config = SettingsConfigDict(env_prefix="LOG_")


class Settings(BaseSettings):
    """Main application settings."""

    environment: Literal["dev", "staging", "prod"] = "dev"
    debug: bool = False

    # Allowed gap between a submitted total and rate * nights
    price_tolerance: int = 1

    # Sub-settings
    auth: AuthSettings = AuthSettings()
    hotel: HotelDefaultsSettings = HotelDefaultsSettings()
    logging: LoggingSettings = LoggingSettings()

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_nested_delimiter="__",
        case_sensitive=False,
        extra="ignore",
    )


# Global settings instance
settings = Settings()
