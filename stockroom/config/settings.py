"""Application settings and configuration."""

import logging

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

logger = logging.getLogger(__name__)


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # Application (hardcoded constants)
    app_name: str = "Stockroom API"
    app_version: str = "0.1.0"

    # Environment-specific settings
    debug: bool = False
    environment: str = "development"  # development, staging, production

    # Database (SQLite via aiosqlite by default, PostgreSQL via asyncpg in production)
    database_url: str = "sqlite+aiosqlite:///./stockroom.db"
    database_pool_size: int = 10
    database_max_overflow: int = 20
    database_pool_timeout: int = 30
    database_pool_recycle: int = 3600
    database_echo: bool = False
    database_create_tables: bool = True

    # API
    api_prefix: str = "/api"

    # CORS (comma-separated origins of the web client)
    cors_allow_origins: str = "http://localhost:5173"

    # Security
    secret_key: str
    jwt_algorithm: str = "HS256"
    jwt_issuer: str = "stockroom-api"
    jwt_audience: str = "stockroom-clients"
    access_token_expire_minutes: int = 30
    refresh_token_expire_days: int = 7

    # Rate limiting
    rate_limit_enabled: bool = True
    login_rate_limit: str = "10/minute"

    # Logging
    log_level: str = "INFO"

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    @field_validator("environment", mode="before")
    @classmethod
    def validate_environment(cls, v: str) -> str:
        """Validate environment value."""
        valid_envs = {"development", "staging", "production"}
        env = str(v).lower()
        if env not in valid_envs:
            raise ValueError(f"Environment must be one of {valid_envs}, got {env}")
        return env

    @field_validator("log_level", mode="before")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Normalize and validate the log level name."""
        level = str(v).upper()
        if level not in logging.getLevelNamesMapping():
            raise ValueError(f"Unknown log level: {v}")
        return level

    @property
    def cors_origins(self) -> list[str]:
        """Allowed CORS origins as a list, trailing slashes stripped."""
        return [o.strip().rstrip("/") for o in self.cors_allow_origins.split(",") if o.strip()]

    @property
    def is_sqlite(self) -> bool:
        return self.database_url.startswith("sqlite")


class ClientSettings(BaseSettings):
    """Settings for the Python API client (the offline-capable field client)."""

    base_url: str = "http://localhost:8000"
    request_timeout: float = 10.0
    storage_path: str = ".stockroom-client.json"
    # None keeps failed offline mutations queued forever
    offline_max_attempts: int | None = None

    model_config = SettingsConfigDict(
        env_prefix="STOCKROOM_CLIENT_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )


settings = Settings()  # type: ignore[call-arg]
