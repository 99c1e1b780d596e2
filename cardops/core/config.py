"""
Core configuration settings for CardOps API
"""
from pydantic_settings import BaseSettings
from typing import List, Optional


class Settings(BaseSettings):
    """Application settings loaded from environment variables"""

    # App Config
    APP_NAME: str = "CardOps"
    APP_ENV: str = "development"
    DEBUG: bool = False
    LOG_LEVEL: str = "INFO"
    BASE_URL: str = "http://localhost:8000"

    # Database
    DATABASE_URL: str = "sqlite:///./cardops.db"
    SQL_ECHO: bool = False

    # JWT (admin sessions)
    JWT_SECRET_KEY: str = "change-this-secret-in-production"
    JWT_ALGORITHM: str = "HS256"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 480  # 8 hours

    # Admin account
    ADMIN_EMAIL: str = "admin@example.com"
    ADMIN_PASSWORD_HASH: Optional[str] = None

    # Mail
    SMTP_HOST: Optional[str] = None
    SMTP_PORT: int = 587
    SMTP_USER: Optional[str] = None
    SMTP_PASSWORD: Optional[str] = None
    SMTP_TIMEOUT: int = 10
    MAIL_FROM: str = "CardOps <no-reply@example.com>"
    MAIL_RELAY_URL: Optional[str] = None
    MAIL_RELAY_TIMEOUT: int = 30
    ADMIN_NOTIFY_EMAIL: Optional[str] = None

    # Approvals
    APPROVAL_EXPIRATION_HOURS: int = 72

    # CORS
    CORS_ORIGINS: str = "*"

    @property
    def cors_origins_list(self) -> List[str]:
        """Convert CORS_ORIGINS string to list"""
        if self.CORS_ORIGINS == "*":
            return ["*"]
        return [origin.strip() for origin in self.CORS_ORIGINS.split(",") if origin.strip()]

    @property
    def admin_notify_address(self) -> str:
        return self.ADMIN_NOTIFY_EMAIL or self.ADMIN_EMAIL

    # Pagination
    DEFAULT_PAGE_SIZE: int = 20
    MAX_PAGE_SIZE: int = 100

    class Config:
        env_file = ".env"
        case_sensitive = True
        extra = "ignore"


# Create global settings instance
settings = Settings()
