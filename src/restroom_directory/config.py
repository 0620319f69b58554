"""
Application configuration using Pydantic Settings.

All settings are loaded from environment variables or .env file.
No hardcoded secrets or paths; everything is configurable.
"""

from pathlib import Path

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class DatabaseSettings(BaseSettings):
    """Database connection settings."""

    url: str = "sqlite:///./data/restroom_directory.db"
    query_timeout_seconds: float = 10.0
    pool_size: int = 10
    max_overflow: int = 20

    model_config = SettingsConfigDict(env_prefix="DATABASE_")


class APISettings(BaseSettings):
    """FastAPI server settings."""

    host: str = "0.0.0.0"
    port: int = 8000
    reload: bool = True
    cors_origins: list[str] = ["*"]

    model_config = SettingsConfigDict(env_prefix="API_")


class QuerySettings(BaseSettings):
    """Defaults and bounds for restroom lookups."""

    nearby_default_limit: int = 20
    nearby_max_limit: int = 20
    nearby_default_radius_km: float = 5.0

    model_config = SettingsConfigDict(env_prefix="QUERY_")

    @field_validator("nearby_default_limit", "nearby_max_limit")
    @classmethod
    def positive_limit(cls, v: int) -> int:
        if v < 1:
            raise ValueError("limit must be at least 1")
        return v


class LoggingSettings(BaseSettings):
    """Logging configuration."""

    level: str = "INFO"
    file: str = "logs/restroom_directory.log"

    model_config = SettingsConfigDict(env_prefix="LOG_")


class Settings(BaseSettings):
    """Main application settings, aggregating all sub-settings."""

    database: DatabaseSettings = DatabaseSettings()
    api: APISettings = APISettings()
    query: QuerySettings = QuerySettings()
    logging: LoggingSettings = LoggingSettings()

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    def setup(self) -> None:
        """Initialize application: create the log and SQLite data directories."""
        Path(self.logging.file).parent.mkdir(parents=True, exist_ok=True)
        if self.database.url.startswith("sqlite:///") and ":memory:" not in self.database.url:
            db_path = Path(self.database.url.removeprefix("sqlite:///"))
            db_path.parent.mkdir(parents=True, exist_ok=True)


# Global settings instance, import this in other modules
settings = Settings()
