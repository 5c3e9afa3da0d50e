"""Application Configuration — environment-driven settings via pydantic-settings.

Invariants:
    - get_settings() is cached (lru_cache) — single instance per process
    - Timing values are milliseconds in the environment, converted at the seam that uses them

Design Decisions:
    - pydantic-settings over raw os.environ: validation, type coercion, .env file support
    - Defaults provided for everything: works out-of-the-box with a local sqlite file
"""

from functools import lru_cache

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings from environment variables."""

    model_config = SettingsConfigDict(env_file=".env", case_sensitive=False)

    # Database
    database_url: str = "sqlite+aiosqlite:///./brainspace.db"

    @field_validator("database_url", mode="before")
    @classmethod
    def convert_postgres_url(cls, v: str) -> str:
        """Hosted Postgres hands out postgresql:// but asyncpg needs postgresql+asyncpg://."""
        if isinstance(v, str) and v.startswith("postgresql://"):
            return v.replace("postgresql://", "postgresql+asyncpg://", 1)
        return v

    database_pool_size: int = 20
    database_max_overflow: int = 10

    # Persistence
    debounce_window_ms: int = 1000
    saved_status_reset_ms: int = 2000
    error_status_reset_ms: int = 3000

    # Topic documents place their root here
    canonical_origin_x: float = 400.0
    canonical_origin_y: float = 300.0

    # Layout
    layout_horizontal_spacing: float = 200.0
    layout_vertical_spacing: float = 100.0
    layout_node_width: float = 250.0
    layout_node_height: float = 80.0

    # Single-user mode until auth exists
    default_user_id: str = "demo-user"

    # API
    cors_origins: list[str] = ["http://localhost:5173"]

    # Observability
    log_level: str = "INFO"
    log_format: str = "json"


@lru_cache
def get_settings() -> Settings:
    return Settings()
