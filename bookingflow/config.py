"""
Application configuration management
"""

from decimal import Decimal
from typing import Optional
from pydantic_settings import BaseSettings
from pydantic import field_validator


class Settings(BaseSettings):
    # Application
    APP_NAME: str = "Bookingflow"
    APP_VERSION: str = "1.0.0"
    APP_ENV: str = "development"
    DEBUG: bool = False
    API_PREFIX: str = "/api/v1"
    FRONTEND_URL: str = "http://localhost:3000"

    # Server
    HOST: str = "0.0.0.0"
    PORT: int = 8000

    # Database
    DATABASE_URL: str  # Must be provided via environment

    @field_validator('DATABASE_URL')
    @classmethod
    def validate_database_url(cls, v: str) -> str:
        if v.startswith('postgresql://'):
            v = v.replace('postgresql://', 'postgresql+asyncpg://', 1)
        return v
    DB_POOL_SIZE: int = 20
    DB_MAX_OVERFLOW: int = 40
    DB_POOL_TIMEOUT: int = 30
    DB_POOL_RECYCLE: int = 3600
    DB_ECHO: bool = False

    # Payment
    STRIPE_SECRET_KEY: str = ""
    PAYMENT_CURRENCY: str = "aud"
    PROCESSING_FEE_PERCENTAGE: Decimal = Decimal("0.017")
    PROCESSING_FEE_FIXED: Decimal = Decimal("0.30")

    # Email
    SENDGRID_API_KEY: str = ""
    FROM_EMAIL: str = "noreply@bookingflow.app"
    FROM_NAME: str = "Bookingflow"

    # Booking rules
    MAX_TICKETS_PER_BOOKING: int = 10
    UNLIMITED_TICKETS_SENTINEL: int = 999
    PRICING_FETCH_TIMEOUT_SECONDS: float = 10.0
    SUCCESS_REDIRECT_DELAY_SECONDS: float = 2.0
    RESUME_WINDOW_DAYS: int = 7
    DEFAULT_MEMBERSHIP_TYPE: str = "non_member"

    # Client gateways
    API_BASE_URL: str = "http://localhost:8000"
    HTTP_TIMEOUT_SECONDS: float = 15.0

    # Monitoring
    PROMETHEUS_ENABLED: bool = True
    LOG_LEVEL: str = "INFO"
    LOG_FORMAT: str = "json"
    LOG_DIR: Optional[str] = "logs"

    @field_validator("DEFAULT_MEMBERSHIP_TYPE")
    @classmethod
    def validate_membership_type(cls, v: str) -> str:
        if v not in ("member", "non_member"):
            raise ValueError("DEFAULT_MEMBERSHIP_TYPE must be 'member' or 'non_member'")
        return v

    @property
    def is_production(self) -> bool:
        return self.APP_ENV == "production"

    @property
    def is_development(self) -> bool:
        return self.APP_ENV == "development"

    @property
    def is_testing(self) -> bool:
        return self.APP_ENV == "testing"

    @property
    def success_url_template(self) -> str:
        return f"{self.FRONTEND_URL}/booking/success?booking_id={{booking_id}}"

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        case_sensitive = True


# Create global settings instance
settings = Settings()
