"""Human-friendly configuration loader.

The ``AppSettings`` class centralises every environment variable the service
relies on. Values are read once, the first time ``get_settings`` runs, from the
process environment and the optional ``.env`` / ``.env.local`` files.
"""

from __future__ import annotations

from functools import lru_cache
from typing import Annotated, Any, Iterable

from pydantic import AliasChoices, Field, field_validator
from pydantic_settings import BaseSettings, NoDecode, SettingsConfigDict

DEFAULT_SEED_URL = "https://s3.amazonaws.com/roxiler.com/product_transaction.json"


class AppSettings(BaseSettings):
    """Environment-driven application configuration."""

    model_config = SettingsConfigDict(
        env_file=(".env", ".env.local"),
        env_file_encoding="utf-8",
        extra="ignore",
    )

    APP_NAME: str = "Product Transactions"

    # App binding used by ``python -m transaction_service``
    HOST: str = "0.0.0.0"
    PORT: int = 8000

    DB_URL: str = Field(
        default="sqlite:///./transactions.db",
        validation_alias=AliasChoices("DB_URL", "DATABASE_URL"),
    )

    # Upstream fixture used by the seed endpoint
    SEED_URL: str = DEFAULT_SEED_URL
    SEED_TIMEOUT: float = 10.0

    # Empty means "reflect any origin"
    CORS_ORIGINS: Annotated[list[str], NoDecode] = Field(default_factory=list)

    LOG_LEVEL: str = "INFO"

    @property
    def is_sqlite(self) -> bool:
        return self.DB_URL.startswith("sqlite")

    @field_validator("CORS_ORIGINS", mode="before")
    @classmethod
    def parse_cors_origins(cls, value: Any) -> list[str]:
        if value in (None, "", []):
            return []
        if isinstance(value, str):
            return [item.strip() for item in value.split(",") if item.strip()]
        if isinstance(value, Iterable):
            return [str(item).strip() for item in value if str(item).strip()]
        raise TypeError("CORS_ORIGINS must be a comma separated string or list")

    @field_validator("LOG_LEVEL", mode="before")
    @classmethod
    def normalise_log_level(cls, value: Any) -> str:
        return str(value or "INFO").strip().upper()


@lru_cache(maxsize=1)
def get_settings() -> AppSettings:
    return AppSettings()


settings = get_settings()
