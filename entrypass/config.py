"""Application Configuration — environment-driven settings via pydantic-settings.

Invariants:
    - All deployment-specific values come from environment variables / .env
    - get_settings() is cached (lru_cache) — single instance per process
    - validity_window_minutes defaults to 15 (the admission window)

Design Decisions:
    - pydantic-settings over raw os.environ: validation, type coercion, .env file support (ADR: developer UX)
    - Defaults provided for all settings: works out-of-the-box against a local SQLite file
"""

from datetime import timedelta
from functools import lru_cache
from typing import Literal

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from entrypass.core.normalize_import import DEFAULT_CODE_PATTERN


class Settings(BaseSettings):
    """Application settings from environment variables."""

    model_config = SettingsConfigDict(env_file=".env", case_sensitive=False)

    # Database
    database_url: str = "sqlite+aiosqlite:///./entrypass.db"

    @field_validator("database_url", mode="before")
    @classmethod
    def convert_postgres_url(cls, v: str) -> str:
        """Hosting providers hand out postgresql:// but asyncpg needs postgresql+asyncpg://."""
        if isinstance(v, str) and v.startswith("postgres://"):
            v = "postgresql://" + v[len("postgres://"):]
        if isinstance(v, str) and v.startswith("postgresql://"):
            return v.replace("postgresql://", "postgresql+asyncpg://", 1)
        return v

    database_pool_size: int = 20
    database_max_overflow: int = 10
    auto_create_schema: bool = False

    # Code store
    store_backend: Literal["sql", "memory"] = "sql"
    import_batch_size: int = Field(500, ge=1)

    # Lifecycle
    validity_window_minutes: int = Field(15, ge=1)
    code_pattern: str = DEFAULT_CODE_PATTERN

    # API
    cors_origins: list[str] = ["http://localhost:5173"]

    # Observability
    log_level: str = "INFO"
    log_format: str = "json"

    @property
    def validity_window(self) -> timedelta:
        return timedelta(minutes=self.validity_window_minutes)


@lru_cache
def get_settings() -> Settings:
    return Settings()
