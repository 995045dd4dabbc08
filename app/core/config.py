"""
Application configuration for the Attendance Tracker Service.

All settings are read from environment variables (or a local .env file).
Secrets such as the JWT signing key and third-party API keys have no
defaults and must be supplied by the deployment.
"""

from pathlib import Path
from typing import Optional

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Service settings loaded from the environment."""

    # Application
    APP_NAME: str = "attendance-tracker-service"
    APP_VERSION: str = "1.0.0"
    LOG_LEVEL: str = "INFO"

    # Database
    DATABASE_URL: str = "sqlite:///./attendance.db"
    DATABASE_ECHO: bool = False

    # Tokens
    JWT_SECRET_KEY: str
    JWT_ALGORITHM: str = "HS256"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 24 * 60
    JWT_ISSUER: str = "attendance-system-api"
    JWT_AUDIENCE: str = "attendance-system-client"

    # Passwords
    BCRYPT_ROUNDS: int = 12
    PASSWORD_MIN_LENGTH: int = 8

    # CORS
    CORS_ORIGINS: str = "http://localhost:5173,http://127.0.0.1:5173"
    CORS_ALLOW_CREDENTIALS: bool = True
    CORS_ALLOW_METHODS: list[str] = ["*"]
    CORS_ALLOW_HEADERS: list[str] = ["*"]

    # Client SDK
    API_BASE_URL: str = "http://localhost:8000"
    HTTP_TIMEOUT_SECONDS: float = 10.0
    SESSION_FILE: Path = Path.home() / ".attendance" / "session.json"

    # Third-party services
    GOOGLE_MAPS_API_KEY: Optional[str] = None
    GOOGLE_GEOCODING_URL: str = "https://maps.googleapis.com/maps/api/geocode/json"
    CLOUDINARY_CLOUD_NAME: Optional[str] = None
    CLOUDINARY_UPLOAD_PRESET: Optional[str] = None

    # Organization defaults used until business hours are configured
    DEFAULT_BUSINESS_START: str = "09:00"
    DEFAULT_BUSINESS_END: str = "17:00"

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    @property
    def cors_origins_list(self) -> list[str]:
        """CORS origins as a list, split from the comma separated setting."""
        return [
            origin.strip() for origin in self.CORS_ORIGINS.split(",") if origin.strip()
        ]


settings = Settings()
