"""
Configuration management using pydantic-settings

Loads configuration from environment variables and .env file
"""

from functools import lru_cache
from typing import List, Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables"""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=True,
        extra="ignore",
    )

    # Database Configuration
    DATABASE_URL: Optional[str] = Field(
        default=None,
        description="Full database connection URL (overrides DB_* fields when set)"
    )
    DB_HOST: str = Field(default="localhost", description="Database host")
    DB_PORT: int = Field(default=5432, description="Database port")
    DB_NAME: str = Field(default="servicedesk", description="Database name")
    DB_USER: str = Field(default="servicedesk", description="Database user")
    DB_PASSWORD: str = Field(default="servicedesk", description="Database password")
    DB_POOL_MIN: int = Field(default=1, description="Minimum pooled connections")
    DB_POOL_MAX: int = Field(default=10, description="Maximum pooled connections")

    # Authentication
    JWT_SECRET: Optional[str] = Field(default=None, description="HS256 signing secret for issued tokens")
    JWT_ALGORITHM: str = Field(default="HS256", description="Signing algorithm for issued tokens")
    TOKEN_TTL_DAYS: int = Field(default=7, description="Lifetime of issued tokens in days")
    EXTERNAL_TOKEN_MIN_LENGTH: int = Field(
        default=500,
        description="Tokens at least this long are treated as externally issued (OAuth) tokens"
    )
    RESET_CODE_TTL_SECONDS: int = Field(default=60, description="Password reset code lifetime")

    # Mail Configuration
    EMAIL_USER: Optional[str] = Field(default=None, description="SMTP login and sender address")
    EMAIL_PASSWORD: Optional[str] = Field(default=None, description="SMTP password")
    SMTP_HOST: str = Field(default="smtp.gmail.com", description="SMTP server host")
    SMTP_PORT: int = Field(default=587, description="SMTP server port")
    SMTP_USE_TLS: bool = Field(default=True, description="Upgrade the SMTP session with STARTTLS")
    MAIL_BRAND: str = Field(default="TechnoTrends", description="Company name used in email copy")

    # Push Configuration
    PUSH_URL: str = Field(
        default="https://exp.host/--/api/v2/push/send",
        description="Push relay endpoint"
    )
    PUSH_BATCH_SIZE: int = Field(default=100, description="Maximum messages per push request")
    PUSH_TIMEOUT_SECONDS: float = Field(default=10.0, description="Push request timeout")

    # Application Settings
    API_HOST: str = Field(default="0.0.0.0", description="API host to bind to")
    API_PORT: int = Field(default=8080, description="API port to listen on")
    LOG_LEVEL: str = Field(default="INFO", description="Logging level")
    CORS_ORIGINS: List[str] = Field(default_factory=lambda: ["*"], description="Allowed CORS origins")

    @property
    def dsn(self) -> str:
        """Connection string for psycopg2"""
        if self.DATABASE_URL:
            return self.DATABASE_URL
        return (
            f"host={self.DB_HOST} port={self.DB_PORT} dbname={self.DB_NAME} "
            f"user={self.DB_USER} password={self.DB_PASSWORD}"
        )


@lru_cache()
def get_settings() -> Settings:
    """Get the process-wide settings instance"""
    return Settings()
