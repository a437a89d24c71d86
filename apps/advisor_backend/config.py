from pathlib import Path
from functools import lru_cache
from typing import List, Literal

from pydantic_settings import BaseSettings, SettingsConfigDict

# project root directory
BASIC_DIR = Path(__file__).resolve().parent
ROOT_DIR = BASIC_DIR.parent.parent


class AppSettings(BaseSettings):
    """Application settings."""
    model_config = SettingsConfigDict(
        env_file=ROOT_DIR / ".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    # Application settings
    BACKEND_PROJECT_NAME: str = "AI Financial Advisor API"
    BACKEND_API_PREFIX: str = "/api"
    BACKEND_API_VERSION: str = "0.1.0"
    BACKEND_API_ENVIRONMENT: Literal["development", "production"] = "development"
    BACKEND_API_DESCRIPTION: str = "Linked-account aggregation and AI financial advisor"
    CORS_ALLOWED_ORIGINS: List[str] = [
        "http://localhost:5173",
        "http://127.0.0.1:5173",
        "http://localhost:3000",
    ]

    # OpenAI settings
    OPENAI_API_KEY: str = ""
    DEFAULT_CHAT_MODEL: str = "gpt-5.2"
    FALLBACK_CHAT_MODEL: str = "gpt-4o"
    INSIGHT_MODELS: List[str] = ["gpt-5.2", "gpt-5-mini", "gpt-4o-mini"]
    DEFAULT_LLM_TEMPERATURE: float = 0.7
    CHAT_MAX_TOKENS: int = 1000
    INSIGHTS_MAX_TOKENS: int = 800
    LLM_TIMEOUT_SECONDS: float = 60.0
    MAX_LLM_CALL_RETRIES: int = 1

    # Plaid settings
    PLAID_CLIENT_ID: str = ""
    PLAID_SECRET: str = ""
    PLAID_ENV: Literal["sandbox", "development", "production"] = "sandbox"
    PLAID_CLIENT_NAME: str = "AI Financial Advisor"
    PLAID_CLIENT_USER_ID: str = "user-1"
    PLAID_COUNTRY_CODES: List[str] = ["US"]
    PLAID_TIMEOUT_SECONDS: float = 30.0
    PLAID_TRANSACTIONS_PAGE_SIZE: int = 500
    TRANSACTION_WINDOW_DAYS: int = 90

    # Credential storage
    CREDENTIALS_FILE: Path = ROOT_DIR / ".session-data.json"

    # Logging
    LOG_LEVEL: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = 'INFO'
    LOG_FORMAT: Literal["console", "json"] = "console"


@lru_cache
def get_settings() -> AppSettings:
    """Load settings once and cache globally."""
    return AppSettings()

# Global singleton-style instance
settings = get_settings()

if __name__ == "__main__":
    print(settings)
