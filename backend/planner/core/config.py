# backend/planner/core/config.py
import logging
import os
from pathlib import Path
from typing import Literal, Optional

from dotenv import load_dotenv
from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

logger = logging.getLogger(__name__)

# CI injects real environment variables; elsewhere backend/.env fills the gaps
if not os.getenv("CI"):
    dotenv_file = Path(__file__).resolve().parents[2] / ".env"
    logger.debug(f"Loading settings overrides from {dotenv_file}")
    load_dotenv(dotenv_file)


class Settings(BaseSettings):
    environment: Literal["development", "test", "staging", "production"] = "development"
    log_level: str = Field(default="INFO", description="Root log level for the API process")

    database_url: str = Field(
        default="sqlite:///./planner.db",
        description="SQLAlchemy URL of the interval store",
    )
    redis_url: Optional[str] = Field(
        default=None,
        description="Redis URL for the calendar cache; in-memory fallback when unset",
    )

    # Calendar cache
    calendar_cache_ttl_seconds: int = Field(default=300, ge=1)

    # Resilience wrapper defaults for store I/O
    retry_max_attempts: int = Field(default=3, ge=1)
    retry_base_delay_seconds: float = Field(default=1.0, ge=0)

    # Pagination ("virtual scrolling")
    pagination_default_limit: int = Field(default=10, ge=1)
    pagination_max_limit: int = Field(default=100, ge=1)
    calendar_view_page_limit: int = Field(
        default=100,
        ge=1,
        description="Calendar views with more blocks than this are paginated to the first page",
    )

    # Progressive loading
    lazy_batch_size: int = Field(default=20, ge=1)
    lod_zoom_threshold: float = Field(default=0.5, ge=0, le=1)

    # Operations slower than this are logged as warnings
    slow_operation_seconds: float = Field(default=1.0, gt=0)

    model_config = SettingsConfigDict(
        env_file=".env" if not os.getenv("CI") else None,
        case_sensitive=False,
        extra="ignore",
    )

    @field_validator("log_level")
    @classmethod
    def _normalize_log_level(cls, value: str) -> str:
        normalized = (value or "INFO").strip().upper()
        if normalized not in logging.getLevelNamesMapping():
            raise ValueError(f"Unknown log level: {value}")
        return normalized

    @property
    def is_production(self) -> bool:
        return self.environment == "production"


settings = Settings()
