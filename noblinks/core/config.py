"""
Configuration management using Pydantic Settings.

All configuration values are loaded from environment variables
with sensible defaults where appropriate.
"""

from functools import lru_cache
from pathlib import Path
from typing import Literal, Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

# Repository root (where the .env file is located)
# noblinks/core/config.py -> noblinks/core -> noblinks -> root
ROOT_DIR = Path(__file__).resolve().parent.parent.parent
ENV_FILE = ROOT_DIR / ".env"

# Load .env into environment for nested settings models
from dotenv import load_dotenv
load_dotenv(ENV_FILE)


class AppSettings(BaseSettings):
    """Application-level configuration."""

    model_config = SettingsConfigDict(
        env_file=str(ENV_FILE),
        env_file_encoding="utf-8",
        env_nested_delimiter="__",
        case_sensitive=False,
        extra="ignore",
    )

    # Application
    app_env: Literal["development", "staging", "production"] = "development"
    app_name: str = "noblinks"
    app_version: str = "1.0.0"
    app_debug: bool = False

    # API
    api_host: str = "0.0.0.0"
    api_port: int = 8000
    api_workers: int = 4

    # CORS
    cors_origins: str = "http://localhost:3000"
    cors_credentials: bool = True

    @property
    def cors_origins_list(self) -> list[str]:
        """Parse CORS origins into a list."""
        return [origin.strip() for origin in self.cors_origins.split(",")]

    @property
    def is_development(self) -> bool:
        return self.app_env == "development"


class DatabaseSettings(BaseSettings):
    """Database configuration."""

    model_config = SettingsConfigDict(
        env_file=str(ENV_FILE),
        env_prefix="DB_",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Full SQLAlchemy URL; overrides the discrete fields below when set
    url: str = ""

    host: str = "localhost"
    port: int = 5432
    name: str = "noblinks"
    user: str = "noblinks"
    password: str = ""
    pool_size: int = 20
    max_overflow: int = 10
    auto_migrate: bool = False

    @property
    def dsn(self) -> str:
        """Get async database DSN."""
        if self.url:
            return self.url
        auth_part = f"{self.user}:{self.password}@" if self.password else f"{self.user}@"
        return f"postgresql+asyncpg://{auth_part}{self.host}:{self.port}/{self.name}"


class RedisSettings(BaseSettings):
    """Redis configuration."""

    model_config = SettingsConfigDict(
        env_file=str(ENV_FILE),
        env_prefix="REDIS_",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    host: str = "localhost"
    port: int = 6379
    password: str = ""
    db: int = 0
    pool_size: int = 50
    session_prefix: str = "session:"

    @property
    def dsn(self) -> str:
        """Get Redis DSN."""
        if self.password:
            return f"redis://:{self.password}@{self.host}:{self.port}/{self.db}"
        return f"redis://{self.host}:{self.port}/{self.db}"


class SessionSettings(BaseSettings):
    """Session configuration."""

    model_config = SettingsConfigDict(
        env_file=str(ENV_FILE),
        env_prefix="SESSION_",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    cookie_name: str = "session_id"
    ttl: int = 86400  # 1 day
    extend_on_activity: bool = True


class LogSettings(BaseSettings):
    """Logging configuration."""

    model_config = SettingsConfigDict(
        env_file=str(ENV_FILE),
        env_prefix="LOG_",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    level: str = "INFO"
    format: Literal["json", "text"] = "json"
    requests: bool = True


class AISettings(BaseSettings):
    """Generative-model provider configuration for the alert assistant."""

    model_config = SettingsConfigDict(
        env_file=str(ENV_FILE),
        env_prefix="AI_",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # OpenAI takes priority over OpenRouter when both keys are present
    openai_api_key: str = ""
    openai_model: str = "gpt-4o-mini"
    openai_base_url: str = "https://api.openai.com/v1"

    openrouter_api_key: str = ""
    openrouter_model: str = "openai/gpt-5-mini"
    openrouter_base_url: str = "https://openrouter.ai/api/v1"

    timeout_seconds: float = 60.0
    max_retries: int = Field(default=2, ge=0, le=5)
    temperature: float = 0.0

    @property
    def provider(self) -> Optional[str]:
        """Name of the active provider, or None when no key is configured."""
        if self.openai_api_key:
            return "openai"
        if self.openrouter_api_key:
            return "openrouter"
        return None


class Settings(BaseSettings):
    """Main settings class that aggregates all configuration sections."""

    model_config = SettingsConfigDict(
        env_file=str(ENV_FILE),
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    app: AppSettings = Field(default_factory=AppSettings)
    database: DatabaseSettings = Field(default_factory=DatabaseSettings)
    redis: RedisSettings = Field(default_factory=RedisSettings)
    session: SessionSettings = Field(default_factory=SessionSettings)
    log: LogSettings = Field(default_factory=LogSettings)
    ai: AISettings = Field(default_factory=AISettings)

    # DOCS
    docs_enabled: bool = True
    dev_auto_reload: bool = True


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()


# Global settings instance
settings = get_settings()
