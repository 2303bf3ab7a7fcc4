# app/core/config.py
from functools import lru_cache

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    Centralized application settings loaded from environment.

    Required env vars (.env):
      - JWT_SECRET (HS256 signing secret shared with the auth service)

    Optional:
      - DATABASE_URL (defaults to a local SQLite file)
      - CORS_ORIGINS, LOG_LEVEL, DB_ECHO
      - CART_MAX_QUANTITY_PER_LINE (0 disables the ceiling)
    """

    PROJECT_NAME: str = "Points Mall Cart API"
    API_V1_STR: str = "/api/v1"

    # DB config
    DATABASE_URL: str = "sqlite:///./mall.db"
    DB_ECHO: bool = False

    # JWT verification (tokens are issued by the auth collaborator)
    JWT_SECRET: str
    JWT_ALG: str = "HS256"

    CORS_ORIGINS: list[str] = ["http://localhost:5173"]

    LOG_LEVEL: str = "INFO"

    # Hard ceiling per cart line, applied on top of the stock check
    CART_MAX_QUANTITY_PER_LINE: int = 999

    model_config = SettingsConfigDict(env_file=".env", extra="ignore")


@lru_cache
def get_settings() -> Settings:
    """
    Cached settings loader.
    Ensures we don't re-parse .env on every import / request.
    """
    return Settings()
