"""Application configuration settings."""

import json
from datetime import timedelta
from typing import List, Literal

import pytz
from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.

    Only the composition root (``clinicdesk.database``) turns the scheduling
    values into engine arguments; the engine itself never reads settings.
    """

    # Storage
    STORAGE_BACKEND: Literal["memory", "mongo"] = "memory"
    MONGODB_URL: str = "mongodb://localhost:27017"
    DATABASE_NAME: str = "clinicdesk"

    # Application
    APP_NAME: str = "ClinicDesk"
    API_V1_PREFIX: str = "/api/v1"
    PORT: int = 8000

    # CORS
    BACKEND_CORS_ORIGINS: str = '["http://localhost:3000"]'

    # Scheduling
    DEFAULT_TIMEZONE: str = "UTC"
    APPOINTMENT_DURATION_MINUTES: int = Field(30, gt=0)
    STORE_TIMEOUT_SECONDS: float = Field(5.0, gt=0)
    CONFLICT_SEARCH_WINDOW_HOURS: int = Field(24, gt=0)

    # Environment
    ENVIRONMENT: str = "development"
    DEBUG: bool = True
    LOG_LEVEL: str = "INFO"  # DEBUG, INFO, WARNING, ERROR, CRITICAL

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=True,
        extra="ignore",
    )

    @field_validator("DEFAULT_TIMEZONE")
    @classmethod
    def known_timezone(cls, value: str) -> str:
        if value not in pytz.all_timezones_set:
            raise ValueError(f"Unknown timezone: {value!r}")
        return value

    @property
    def appointment_duration(self) -> timedelta:
        return timedelta(minutes=self.APPOINTMENT_DURATION_MINUTES)

    @property
    def conflict_search_window(self) -> timedelta:
        return timedelta(hours=self.CONFLICT_SEARCH_WINDOW_HOURS)

    @property
    def cors_origins(self) -> List[str]:
        """Parse CORS origins from JSON string."""
        try:
            return json.loads(self.BACKEND_CORS_ORIGINS)
        except json.JSONDecodeError:
            return ["http://localhost:3000"]


settings = Settings()
