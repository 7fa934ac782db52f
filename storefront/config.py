"""All client settings, loaded from the environment or a .env file.

Env vars use the STOREFRONT_ prefix, e.g. STOREFRONT_API_BASE_URL.
"""
from functools import lru_cache

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_prefix="STOREFRONT_",
        env_file=".env",
        extra="ignore",
    )

    # App
    environment: str = "development"
    log_level: str = "INFO"

    # Backend API
    api_base_url: str = "http://localhost:3000/api"
    api_timeout_seconds: float = Field(default=10.0, gt=0)

    # Request lifecycle
    enable_validation: bool = True
    enable_logging: bool = True
    enable_retry: bool = True
    max_retries: int = Field(default=2, ge=0, le=10)
    retry_delay_seconds: float = Field(default=1.0, ge=0)

    # Query cache
    query_stale_seconds: float = Field(default=0.0, ge=0)
    query_cache_size: int = Field(default=500, ge=1)

    @property
    def is_production(self) -> bool:
        return self.environment.lower() == "production"


@lru_cache
def get_settings() -> Settings:
    return Settings()
