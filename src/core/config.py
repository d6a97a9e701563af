"""
Configuration settings for the application.
"""
from pydantic_settings import BaseSettings
from typing import Optional

from src.core import constants


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # API Key Authentication (dashboard API)
    API_KEY: Optional[str] = None  # Required for production - set in environment or .env file
    REQUIRE_API_KEY: bool = True  # Set to False to disable bearer authentication (local development only)

    # Logging Configuration
    LOG_LEVEL: str = "INFO"
    LOG_FORMAT: str = "text"  # Options: "text", "json"
    LOG_INCLUDE_REQUEST_ID: bool = True  # Include X-Request-ID in logs

    # HTTP Client Configuration
    HTTP_CLIENT_TIMEOUT: float = constants.DEFAULT_HTTP_TIMEOUT  # Default timeout for Management API calls (seconds)
    HTTP_MAX_KEEPALIVE_CONNECTIONS: int = constants.DEFAULT_KEEPALIVE_CONNECTIONS
    HTTP_MAX_CONNECTIONS: int = constants.DEFAULT_MAX_CONNECTIONS

    # Performance Monitoring
    RESPONSE_TIME_WARNING_THRESHOLD_MS: int = 30000  # Warn if requests take longer than 30s (milliseconds)

    # Kontent.ai Configuration (local development fallback)
    KONTENT_ENVIRONMENT_ID: Optional[str] = None
    KONTENT_MANAGEMENT_API_KEY: Optional[str] = None
    KONTENT_DELIVERY_API_KEY: Optional[str] = None
    KONTENT_MANAGEMENT_API_URL: str = "https://manage.kontent.ai/v2"
    KONTENT_APP_URL: str = "https://app.kontent.ai"

    # Custom App context handed over by the embedding host (JSON object).
    # When present the service runs in custom-app mode and ignores the
    # KONTENT_* local development values above.
    KONTENT_CUSTOM_APP_CONTEXT: Optional[str] = None

    # Async validation polling
    VALIDATION_POLL_INTERVAL_SECONDS: float = 1.0
    DEFAULT_LANGUAGE_ID: str = constants.DEFAULT_LANGUAGE_ID

    # Management API rate limiting (HTTP 429 backoff)
    RATE_LIMIT_MAX_RETRIES: int = 3
    RATE_LIMIT_BASE_DELAY_MS: int = 1000
    RATE_LIMIT_MAX_DELAY_MS: int = 30000

    # Results view
    RESULTS_PAGE_SIZE: int = constants.DEFAULT_PAGE_SIZE

    class Config:
        env_file = ".env"
        case_sensitive = True
        extra = "ignore"  # Allow extra fields in .env for backward compatibility


settings = Settings()
