"""
Environment configuration for the complaint desk.
Uses Pydantic's settings management to read environment variables (and an
optional .env file) with type validation and defaults.
"""

from functools import lru_cache
from typing import Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from nagar_rakshak.models.notification import SmsProviderConfig


class Settings(BaseSettings):
    """Application settings with environment variable support"""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=True,
        extra="ignore",
    )

    APP_NAME: str = "Nagar Rakshak Complaint Desk"
    APP_VERSION: str = "0.1.0"
    ENVIRONMENT: str = "development"

    # Record store
    DATABASE_PATH: str = ":memory:"

    # Complaint browser
    PAGE_SIZE: int = Field(default=5, ge=1)
    REALTIME_CHANNEL: str = "admin-complaints"
    ENFORCE_FORWARD_STATUS: bool = False
    AUDIT_RETRY_ENABLED: bool = False

    # SMS provider (Twilio). All three must be set for real delivery.
    TWILIO_ACCOUNT_SID: Optional[str] = None
    TWILIO_AUTH_TOKEN: Optional[str] = None
    TWILIO_PHONE_NUMBER: Optional[str] = None
    SMS_REQUEST_TIMEOUT_SECONDS: float = Field(default=10.0, gt=0)

    # Logging
    LOG_LEVEL: str = "INFO"
    LOG_FORMAT: str = "standard"        # "standard" or "json"

    def is_development(self) -> bool:
        return self.ENVIRONMENT.lower() == "development"

    def sms_provider_config(self) -> SmsProviderConfig:
        """Provider credentials for injection into the notification gateway."""
        return SmsProviderConfig(
            account_sid=self.TWILIO_ACCOUNT_SID,
            auth_token=self.TWILIO_AUTH_TOKEN,
            from_number=self.TWILIO_PHONE_NUMBER,
            timeout_seconds=self.SMS_REQUEST_TIMEOUT_SECONDS,
        )


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance"""
    return Settings()
