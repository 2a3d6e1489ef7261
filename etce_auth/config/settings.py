"""
Configuration settings for the ETCE auth backend
Handles environment variables and application settings
"""
from typing import Annotated, Optional, List, Literal
from pydantic_settings import BaseSettings, NoDecode, SettingsConfigDict
from pydantic import field_validator


class Settings(BaseSettings):
    """Application settings"""

    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=True,
        extra="ignore",  # Ignore extra fields from .env file
    )

    # Application
    APP_NAME: str = "ETCE Portal"
    APP_VERSION: str = "1.0.0"
    DEBUG: bool = False
    ENVIRONMENT: str = "development"
    PORT: int = 5000

    # Database
    DATABASE_URL: str = "sqlite:///./etce_portal.db"

    # Security
    BCRYPT_ROUNDS: int = 12

    # OTP
    OTP_LENGTH: int = 6
    OTP_EXPIRY_MINUTES: int = 5

    # Email (SendGrid)
    SENDGRID_API_KEY: Optional[str] = None
    SENDGRID_FROM_EMAIL: Optional[str] = None
    SENDGRID_FROM_NAME: str = "ETCE Portal"

    # "queue" hands the OTP mail to the worker, "sync" sends it inside the request
    EMAIL_DELIVERY: Literal["queue", "sync"] = "queue"

    # Background worker
    JOB_MAX_RETRIES: int = 3
    JOB_RETRY_BACKOFF_MINUTES: int = 1
    CHALLENGE_PURGE_INTERVAL_SECONDS: int = 60

    # CORS (comma separated in the environment)
    ALLOWED_ORIGINS: Annotated[List[str], NoDecode] = ["*"]

    @field_validator("ALLOWED_ORIGINS", mode="before")
    @classmethod
    def assemble_cors_origins(cls, v):
        if isinstance(v, str):
            return [origin.strip() for origin in v.split(",") if origin.strip()]
        return v

    @property
    def is_development(self) -> bool:
        return self.ENVIRONMENT == "development"


# Create settings instance
settings = Settings()


# Environment-specific overrides
if settings.is_development:
    settings.DEBUG = True


# Validation
def validate_settings():
    """Validate critical settings"""
    issues = []

    if settings.ENVIRONMENT == "production":
        if not settings.SENDGRID_API_KEY:
            issues.append("SENDGRID_API_KEY must be set for OTP mail")
        if not settings.SENDGRID_FROM_EMAIL:
            issues.append("SENDGRID_FROM_EMAIL must be set for OTP mail")
        if settings.DATABASE_URL.startswith("sqlite"):
            issues.append("DATABASE_URL must point at Postgres in production")

    if issues:
        raise ValueError(f"Configuration issues: {', '.join(issues)}")


# Auto-validate on import in production
if settings.ENVIRONMENT == "production":
    validate_settings()
