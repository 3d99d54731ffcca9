"""Environment-driven settings."""
from functools import lru_cache
from typing import Literal

from pydantic import Field, IPvAnyAddress
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Network and logging settings, read from ``CALCULATOR_*`` environment variables."""

    model_config = SettingsConfigDict(env_prefix="CALCULATOR_", extra="ignore")

    host: IPvAnyAddress = Field(default="127.0.0.1", description="Server host address")
    port: int = Field(default=9000, ge=1, le=65535, description="Server TCP port")
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = Field(default="INFO")


@lru_cache
def get_settings() -> Settings:
    """Return cached settings instance."""
    return Settings()
