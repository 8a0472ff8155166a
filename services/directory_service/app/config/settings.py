from functools import lru_cache
from typing import List, Optional

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    # Leaving DATABASE_URL unset runs the directory in degraded mode:
    # reads come back empty and writes are refused.
    DATABASE_URL: Optional[str] = None
    PORT: int = 8002
    LOG_LEVEL: str = "INFO"

    DB_POOL_SIZE: int = 10
    DB_MAX_OVERFLOW: int = 5
    DB_POOL_RECYCLE: int = 300
    CREATE_TABLES_ON_STARTUP: bool = True

    # Session tokens are minted by the external login flow.
    SESSION_SECRET: Optional[str] = None
    SESSION_COOKIE_NAME: str = "app_session_id"
    SESSION_EXPIRE_MINUTES: int = 60 * 24

    CORS_ORIGINS: List[str] = []

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8")


@lru_cache()
def get_settings() -> Settings:
    return Settings()
