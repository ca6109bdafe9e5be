from typing import Optional

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.

    Loading priority (highest to lowest):
    1. Environment variables
    2. .env file
    3. Default values below
    """

    # Environment
    environment: str = "development"
    debug: bool = False
    log_level: str = "INFO"
    log_file: Optional[str] = None

    # Application
    app_name: str = "Shorty"
    app_version: str = "1.0.0"

    # Server
    host: str = "127.0.0.1"
    port: int = 8080

    # Database
    database_url: str = "sqlite:///./shorty.db"

    # Short code generation
    short_code_length: int = 6
    short_code_charset: str = "abcdefghijklmnopqrstuvwxyzABCDEFGHIJKLMNOPQRSTUVWXYZ0123456789"
    max_generation_attempts: int = 10
    max_url_length: int = 2048

    # Visit aggregation
    visit_flush_interval: float = 60.0  # Seconds between tally flushes
    flush_on_shutdown: bool = False

    # Cache settings (redirect lookups)
    cache_backend: str = "memory"  # Options: "redis", "memory", "null"
    redis_url: str = "redis://localhost:6379/0"
    cache_ttl: int = 3600  # Cache TTL in seconds (1 hour)
    cache_max_entries: int = 10000  # In-memory cache size cap

    # Pydantic v2 configuration
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore"
    )

    @field_validator("short_code_length", "max_generation_attempts", "max_url_length", "cache_max_entries")
    @classmethod
    def must_be_positive(cls, value: int) -> int:
        if value < 1:
            raise ValueError("must be a positive integer")
        return value

    @field_validator("short_code_charset")
    @classmethod
    def charset_must_be_distinct(cls, value: str) -> str:
        if not value:
            raise ValueError("charset must not be empty")
        if len(set(value)) != len(value):
            raise ValueError("charset characters must be distinct")
        return value

    @field_validator("visit_flush_interval")
    @classmethod
    def interval_must_be_positive(cls, value: float) -> float:
        if value <= 0:
            raise ValueError("flush interval must be greater than zero")
        return value


# Create settings instance
settings = Settings()
