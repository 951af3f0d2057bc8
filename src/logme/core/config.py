"""Configuration settings for logme."""

from functools import lru_cache

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from logme.observability.config import FetchLoggerConfig, ServerLoggerConfig


class Settings(BaseSettings):
    """Application settings loaded from environment variables.

    Nested options use a double underscore, e.g. ``LOGME_INGRESS__LOG_HEADERS=true``.
    """

    service_name: str = "logme"
    log_level: str = "INFO"
    log_format: str = "json"
    development_mode: bool = False

    egress: FetchLoggerConfig = Field(default_factory=FetchLoggerConfig)
    ingress: ServerLoggerConfig = Field(default_factory=ServerLoggerConfig)

    model_config = SettingsConfigDict(
        env_prefix="LOGME_",
        env_file=".env",
        env_file_encoding="utf-8",
        env_nested_delimiter="__",
        extra="ignore",
    )


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
