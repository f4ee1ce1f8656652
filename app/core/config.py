"""
Application configuration management
"""
import json
from typing import Any, List, Optional
from pydantic import field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict
from dotenv import load_dotenv

# Ensure repository .env values win over stale exported shell variables.
load_dotenv(override=True)

class Settings(BaseSettings):
    """Application settings"""
    model_config = SettingsConfigDict(env_file=".env", case_sensitive=True, extra="ignore")

    # Database
    DATABASE_URL: str = "sqlite:///./stocknote.db"
    DATABASE_AUTO_CREATE: bool = False

    # Market data providers
    FINNHUB_API_KEY: Optional[str] = None
    FINNHUB_BASE_URL: str = "https://finnhub.io/api/v1"
    YAHOO_ENABLED: bool = True
    MARKET_TIMEOUT_SECONDS: int = 5
    MARKET_MAX_RETRIES: int = 2
    MARKET_MAX_CONCURRENCY: int = 8
    QUOTE_CACHE_TTL_SECONDS: int = 60
    MAX_BATCH_SYMBOLS: int = 20
    SEARCH_RESULT_LIMIT: int = 10

    # Journal
    DEFAULT_PAGE_SIZE: int = 50
    MAX_PAGE_SIZE: int = 100
    MAX_REMARKS_LENGTH: int = 500

    # Security
    SECRET_KEY: str = "your-secret-key-change-this"
    API_AUTH_ENABLED: bool = True
    OWNER_HEADER: str = "X-Owner-Id"
    CORS_ORIGINS: str = "http://localhost:5173,http://127.0.0.1:5173"

    # Logging
    LOG_LEVEL: str = "INFO"
    LOG_FILE: str = "logs/stocknote.log"

    @field_validator('MARKET_TIMEOUT_SECONDS', 'QUOTE_CACHE_TTL_SECONDS', 'MAX_BATCH_SYMBOLS')
    @classmethod
    def validate_positive_numbers(cls, v):
        if v <= 0:
            raise ValueError('Must be positive')
        return v

    @field_validator('MARKET_MAX_RETRIES')
    @classmethod
    def validate_market_retries(cls, v):
        if int(v) < 0:
            raise ValueError('MARKET_MAX_RETRIES cannot be negative')
        return int(v)

    @field_validator('LOG_LEVEL')
    @classmethod
    def validate_log_level(cls, v):
        level = str(v or "INFO").strip().upper()
        if level not in {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}:
            raise ValueError('LOG_LEVEL must be a standard logging level name')
        return level

    @model_validator(mode='after')
    def validate_page_sizes(self):
        if self.DEFAULT_PAGE_SIZE <= 0 or self.MAX_PAGE_SIZE <= 0:
            raise ValueError('Page sizes must be positive')
        if self.DEFAULT_PAGE_SIZE > self.MAX_PAGE_SIZE:
            raise ValueError('DEFAULT_PAGE_SIZE cannot exceed MAX_PAGE_SIZE')
        return self

    @staticmethod
    def _parse_str_list(value: Any) -> List[str]:
        if isinstance(value, list):
            return [str(item).strip() for item in value if str(item).strip()]
        if value is None:
            return []
        if isinstance(value, str):
            stripped = value.strip()
            if not stripped:
                return []
            if stripped.startswith('[') and stripped.endswith(']'):
                try:
                    parsed = json.loads(stripped)
                    if isinstance(parsed, list):
                        return [str(item).strip() for item in parsed if str(item).strip()]
                except json.JSONDecodeError:
                    pass
            return [item.strip() for item in stripped.split(',') if item.strip()]
        return [str(value).strip()] if str(value).strip() else []

    def get_cors_origins(self) -> List[str]:
        origins = self._parse_str_list(self.CORS_ORIGINS)
        return origins or ["http://localhost:5173", "http://127.0.0.1:5173"]

# Global settings instance
settings = Settings()
