"""
Application Configuration

Settings are read from environment variables and an optional .env file.
"""

from functools import lru_cache

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    database_url: str

    # Pool configuration (ignored for SQLite)
    db_pool_size: int = 10
    db_max_overflow: int = 20
    db_pool_timeout: int = 5  # seconds to wait for a connection
    db_pool_recycle: int = 300  # recycle connections after 5 min

    # Internal retry policy for storage conflicts during a sale
    sale_max_attempts: int = 8
    sale_retry_budget_seconds: float = 2.0

    log_level: str = "INFO"


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return Settings()
