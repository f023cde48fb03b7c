from functools import lru_cache
from typing import Optional

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    # ==============================
    # Application
    # ==============================
    APP_NAME: str = "Boutique Ledger"
    ENVIRONMENT: str = "local"

    # ==============================
    # Database
    # ==============================
    DATABASE_URL: str = "sqlite:///./boutique.db"
    SYNC_DEBOUNCE_SECONDS: float = 1.0

    # ==============================
    # Logging
    # ==============================
    LOG_LEVEL: str = "INFO"
    LOG_JSON: bool = False

    # ==============================
    # Ledger
    # ==============================
    WALK_IN_CUSTOMER_ID: str = "BALCAO"
    MAX_INSTALLMENTS: int = 24
    DEFAULT_MIN_STOCK: int = 2

    # ==============================
    # AI Insights
    # ==============================
    INSIGHT_API_KEY: Optional[str] = None
    INSIGHT_API_URL: str = "https://generativelanguage.googleapis.com/v1beta/models"
    INSIGHT_MODEL: str = "gemini-2.0-flash"
    INSIGHT_TIMEOUT_SECONDS: float = 15.0
    INSIGHT_COOLDOWN_SECONDS: int = 60
    INSIGHT_CACHE_SIZE: int = 32


@lru_cache
def get_settings() -> Settings:
    """Cached settings loader (once per process)."""
    return Settings()


__all__ = ["Settings", "get_settings"]
