"""
Application Configuration
Loads settings from environment variables
"""

from pydantic_settings import BaseSettings
from typing import Optional


class Settings(BaseSettings):
    """Application settings loaded from .env file"""

    # Application
    APP_ENV: str = "development"
    APP_NAME: str = "DEVS Membership Portal"
    APP_URL: str = "http://localhost:8000"
    DEBUG: bool = True
    LOG_LEVEL: str = "INFO"
    CORS_ORIGINS: str = "*"

    # Persistence
    DATABASE_URL: str = "sqlite:///./membership.db"
    STORE_BACKEND: str = "sql"  # 'sql' or 'memory'

    # JWT
    JWT_SECRET_KEY: str = "temp-jwt-secret-change-later"
    JWT_ALGORITHM: str = "HS256"
    JWT_EXPIRATION_HOURS: int = 24
    USER_TOKEN_EXPIRATION_DAYS: int = 7

    # Passwords
    BCRYPT_ROUNDS: int = 12

    # Members
    MEMBER_ID_PREFIX: str = "DEVS"
    MEMBER_ID_RETRY_LIMIT: int = 5
    REQUIRE_BATCH_ADMIN: bool = True

    # Events
    REGISTRATION_RETRY_LIMIT: int = 5
    WAITLIST_PROMOTION: bool = True
    DEFAULT_MAX_ATTENDEES: int = 100
    DEFAULT_REGISTRATION_WINDOW_DAYS: int = 7

    # Email
    SMTP_HOST: str = "smtp.gmail.com"
    SMTP_PORT: int = 587
    SMTP_USER: Optional[str] = None
    SMTP_PASSWORD: Optional[str] = None
    EMAIL_FROM: str = "noreply@devs-society.org"

    class Config:
        env_file = ".env"
        case_sensitive = True

    @property
    def cors_origins(self) -> list[str]:
        return [origin.strip() for origin in self.CORS_ORIGINS.split(",") if origin.strip()]


# Create global settings instance
settings = Settings()
