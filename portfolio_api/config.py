"""
Configuration and settings for the portfolio backend.
"""

from __future__ import annotations

from functools import lru_cache
from typing import Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Environment-backed settings for the FastAPI service."""

    model_config = SettingsConfigDict(
        env_file=".env", env_file_encoding="utf-8", extra="ignore"
    )

    api_prefix: str = Field(default="/api")
    log_level: str = Field(default="INFO")

    # Document store (any SQLAlchemy URL; Postgres in production)
    database_url: Optional[str] = Field(default=None)

    # Development toggles
    use_in_memory_backends: bool = Field(default=False)

    # Auth
    jwt_secret: str = Field(default="dev-secret-change-me")
    jwt_algorithm: str = Field(default="HS256")
    token_expiry_days: int = Field(default=7)
    admin_secret: str = Field(default="dev-admin-secret-change-me")

    # Invoicing
    default_tax_rate: float = Field(default=0.0)
    invoice_due_days: int = Field(default=30)
    business_name: str = Field(default="Portfolio Studio")
    business_email: str = Field(default="billing@portfolio.dev")
    business_address: str = Field(default="")


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Return cached settings instance."""
    return Settings()
