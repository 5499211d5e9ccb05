"""Application Configuration: environment-driven settings via pydantic-settings.

Invariants:
    - get_settings() is cached (lru_cache), single instance per process
    - resource_config() is the only bridge from settings to the mappers

Design Decisions:
    - pydantic-settings over raw os.environ: validation, type coercion, .env file support
    - Defaults provided for all settings: works out-of-the-box with docker-compose
    - JSONAPI_* names mirror the pagination/caching options they configure
"""

from functools import lru_cache

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from addressbook.core.domain_types import PaginatorKind
from addressbook.core.resource_config import ResourceConfig


class Settings(BaseSettings):
    """Application settings from environment variables."""

    model_config = SettingsConfigDict(env_file=".env", case_sensitive=False)

    # Database
    database_url: str = (
        "postgresql+asyncpg://addressbook:addressbook@db:5432/addressbook"
    )

    @field_validator("database_url", mode="before")
    @classmethod
    def convert_postgres_url(cls, v: str) -> str:
        """Hosting platforms provide postgresql:// but asyncpg needs postgresql+asyncpg://."""
        if isinstance(v, str) and v.startswith("postgresql://"):
            return v.replace("postgresql://", "postgresql+asyncpg://", 1)
        return v

    database_pool_size: int = 20
    database_max_overflow: int = 10
    database_create_tables: bool = True

    # JSON:API resources
    jsonapi_default_paginator: PaginatorKind = PaginatorKind.PAGED
    jsonapi_default_page_size: int = 5
    jsonapi_maximum_page_size: int = 100
    jsonapi_default_caching: bool = True
    jsonapi_cache_ttl_seconds: float = 300.0
    jsonapi_cache_max_entries: int = 1024

    # API
    cors_origins: list[str] = ["http://localhost:3000"]

    # Observability
    log_level: str = "INFO"
    log_format: str = "json"

    def resource_config(self) -> ResourceConfig:
        return ResourceConfig(
            paginator=self.jsonapi_default_paginator,
            default_page_size=self.jsonapi_default_page_size,
            maximum_page_size=self.jsonapi_maximum_page_size,
            caching=self.jsonapi_default_caching,
            cache_ttl_seconds=self.jsonapi_cache_ttl_seconds,
            cache_max_entries=self.jsonapi_cache_max_entries,
        )


@lru_cache
def get_settings() -> Settings:
    return Settings()
