"""
Application Configuration for VibeSwipe Tournament Backend
"""
from typing import List, Optional
from pydantic import model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict
from pathlib import Path

# Get the project root directory (where .env file is located)
PROJECT_ROOT = Path(__file__).parent.parent.parent


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=str(PROJECT_ROOT / ".env"),
        env_file_encoding="utf-8",
        case_sensitive=True,
        extra="ignore",
    )

    # Database Configuration
    DATABASE_URL: str = f"sqlite:///{PROJECT_ROOT / 'vibeswipe.db'}"

    @property
    def is_sqlite(self) -> bool:
        return self.DATABASE_URL.startswith("sqlite")

    # API Configuration
    API_HOST: str = "0.0.0.0"
    API_PORT: int = 4000
    API_V1_PREFIX: str = "/api/v1"
    PROJECT_NAME: str = "VibeSwipe API"
    DEBUG: bool = False  # defaults to True only when ENVIRONMENT is development

    # CORS Configuration
    ALLOWED_ORIGINS: str = "*"

    @property
    def CORS_ORIGINS(self) -> List[str]:
        """Parse CORS origins from string"""
        if self.ALLOWED_ORIGINS == "*":
            return ["*"]
        return [origin.strip() for origin in self.ALLOWED_ORIGINS.split(",")]

    # Rate limiting (per client address)
    RATE_LIMIT: str = "120/minute"

    # Due-tournament sweeper
    SWEEPER_ENABLED: bool = True
    SWEEP_INTERVAL_SECONDS: int = 30

    # Ledger (Sui Move package); unset values mean mocked receipts
    MOVE_PACKAGE_ID: Optional[str] = None
    POOLS_OBJECT_ID: Optional[str] = None
    LEDGER_TIMEOUT_SECONDS: float = 5.0

    # Refuse predictions after end_time and joins after scoring
    ENFORCE_PREDICTION_WINDOW: bool = False

    # Environment
    ENVIRONMENT: str = "development"

    # Logging
    LOG_LEVEL: str = "INFO"

    @property
    def is_production(self) -> bool:
        return self.ENVIRONMENT.lower() == "production"

    @property
    def is_development(self) -> bool:
        return self.ENVIRONMENT.lower() == "development"

    @model_validator(mode="after")
    def default_debug_from_environment(self) -> "Settings":
        if "DEBUG" not in self.model_fields_set:
            self.DEBUG = self.is_development
        return self


# Global settings instance
settings = Settings()
