"""
Application configuration.

All configuration is loaded from environment variables.
Business-rule thresholds live here too so that operators can
tune them without a code change.
"""

import os
from decimal import Decimal
from functools import lru_cache

from dotenv import load_dotenv

# Load .env file into environment variables
load_dotenv()


class Settings:
    """Application settings loaded from environment variables."""

    # Application
    APP_NAME: str = "Expense Workflow"
    APP_VERSION: str = "0.1.0"
    DEBUG: bool = os.getenv("DEBUG", "false").lower() == "true"
    LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO").upper()

    # Server
    HOST: str = os.getenv("HOST", "0.0.0.0")
    PORT: int = int(os.getenv("PORT", "8000"))

    # Database
    DATABASE_URL: str = os.getenv(
        "DATABASE_URL",
        "sqlite:///./expense_workflow.db"
    )

    # Environment
    ENVIRONMENT: str = os.getenv("ENVIRONMENT", "development")

    # Business rules
    RECEIPT_THRESHOLD: Decimal = Decimal(os.getenv("RECEIPT_THRESHOLD", "100"))
    APPROVAL_CEILING: Decimal = Decimal(os.getenv("APPROVAL_CEILING", "1000"))
    # 0 disables the look-back limit
    EXPENSE_LOOKBACK_DAYS: int = int(os.getenv("EXPENSE_LOOKBACK_DAYS", "90"))

    # Listing
    DEFAULT_PAGE_SIZE: int = int(os.getenv("DEFAULT_PAGE_SIZE", "12"))
    MAX_PAGE_SIZE: int = int(os.getenv("MAX_PAGE_SIZE", "100"))


@lru_cache()
def get_settings() -> Settings:
    """
    Return cached settings instance.

    The Settings object is created once and reused for all
    subsequent calls.
    """
    return Settings()
