from functools import lru_cache
from typing import Optional

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    # ==============================
    # Application
    # ==============================
    APP_NAME: str = "Store Inventory Ledger"
    ENVIRONMENT: str = "local"

    # ==============================
    # Database
    # ==============================
    DATABASE_URL: str = "sqlite:///./stockledger.db"

    # ==============================
    # Logging
    # ==============================
    LOG_LEVEL: str = "INFO"
    LOG_JSON: bool = False

    # ==============================
    # Security
    # ==============================
    API_KEYS: Optional[str] = None
    API_KEY_HEADER: str = "X-API-Key"
    JWT_SECRET: Optional[str] = None
    JWT_ALGORITHM: str = "HS256"
    JWT_AUDIENCE: Optional[str] = None
    JWT_ISSUER: Optional[str] = None
    JWT_REQUIRED: bool = False

    # ==============================
    # Business calendar
    # ==============================
    BUSINESS_TIMEZONE: str = "Asia/Taipei"
    BUSINESS_DAY_START_HOUR: int = 5

    # ==============================
    # Ledger
    # ==============================
    LEDGER_MAX_RETRIES: int = 3
    TRANSACTION_LIST_LIMIT: int = 50
    TRANSACTION_LIST_MAX_LIMIT: int = 500
    AUDIT_LOG_LIST_LIMIT: int = 100
    AUDIT_LOG_LIST_MAX_LIMIT: int = 500

    # ==============================
    # Chat channel
    # ==============================
    SELECTION_TTL_SECONDS: int = 300
    CHANNEL_API_URL: Optional[str] = None
    CHANNEL_ACCESS_TOKEN: Optional[str] = None

    # ==============================
    # Reporting export
    # ==============================
    REPORT_EXPORT_ENABLED: bool = False
    REPORT_DIR: str = "reports"


@lru_cache
def get_settings() -> Settings:
    """Cached settings loader (once per process)."""
    return Settings()


__all__ = ["Settings", "get_settings"]
