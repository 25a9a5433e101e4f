"""
Application Settings
Load from environment variables
"""

from pydantic_settings import BaseSettings, SettingsConfigDict
from typing import List, Optional


class Settings(BaseSettings):
    """Application settings from environment"""

    # ======================
    # Database
    # ======================
    DATABASE_URL: str = "sqlite+aiosqlite:///./portfolio_advisor.db"
    AUTO_CREATE_TABLES: bool = True

    # ======================
    # Application
    # ======================
    APP_ENV: str = "development"
    DEBUG: bool = False
    LOG_LEVEL: str = "INFO"
    API_HOST: str = "0.0.0.0"
    API_PORT: int = 8000
    CORS_ORIGINS: List[str] = ["*"]

    # ======================
    # Market Data
    # ======================
    MARKET_DATA_PROVIDER: Optional[str] = None
    MOCK_MARKET_DATA: bool = False

    # ======================
    # Usage credits
    # ======================
    DAILY_CREDIT_LIMIT: int = 10
    CREDITS_PER_ANALYSIS: int = 1
    USAGE_HISTORY_DAYS: int = 30

    # ======================
    # Timezone
    # ======================
    TIMEZONE: str = "Asia/Kolkata"

    # ======================
    # Pydantic v2 config
    # ======================
    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=True,
        extra="forbid",
    )


settings = Settings()
