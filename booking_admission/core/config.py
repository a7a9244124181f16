from __future__ import annotations

from functools import lru_cache

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application configuration.

    Values are loaded from environment variables and optional .env file.
    """

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", case_sensitive=False)

    # App
    app_name: str = "Reservation Admission Engine"
    environment: str = "dev"  # dev|staging|prod
    api_prefix: str = "/api"

    # Database
    database_url: str = "sqlite:///./booking_admission.db"

    # Timezone used when a property declares none
    timezone: str = "America/New_York"

    # Admission
    lock_timeout_seconds: float = 5.0
    warm_index_on_startup: bool = True

    # Logging
    log_level: str = "INFO"
    log_file: str = ""


@lru_cache
def get_settings() -> Settings:
    return Settings()


def reset_settings_cache() -> None:
    get_settings.cache_clear()
