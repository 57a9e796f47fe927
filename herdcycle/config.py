"""
Centralized configuration.

Values come from the environment (or a local .env file) and are validated once.
"""
from typing import Optional

from dotenv import load_dotenv
from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

load_dotenv()


class Settings(BaseSettings):
    """Application settings with validation."""

    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=True,
        extra="ignore"
    )

    # Database
    DATABASE_URL: str = Field(default="sqlite:///./herdcycle.db")
    DB_ECHO: bool = Field(default=False)

    # Logging
    LOG_LEVEL: str = Field(default="INFO")
    LOG_FORMAT: str = Field(default="text")  # json or text

    # Environment
    ENVIRONMENT: str = Field(default="development")

    # Dashboard
    DEFAULT_FARM_ID: Optional[int] = Field(default=None)


settings = Settings()
