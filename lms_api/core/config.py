"""Application configuration powered by environment variables."""
from __future__ import annotations

from functools import lru_cache
from typing import Dict, List

from dotenv import load_dotenv
from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

# Load variables from a local .env file if present. This keeps runtime flexible.
load_dotenv()


class Settings(BaseSettings):
    """Strongly typed configuration for the service."""

    app_name: str = "LMS Delivery"
    environment: str = "development"
    api_version: str = "v1"
    database_url: str = "sqlite:///./lms.db"
    redis_url: str = "redis://localhost:6379/0"
    rq_queue_name: str = "lms-delivery"
    allowed_origins: List[str] = ["http://localhost", "http://localhost:3000"]

    aws_access_key_id: str | None = None
    aws_secret_access_key: str | None = None
    aws_region_name: str = "us-east-1"
    ses_sender_email: str = "no-reply@example.com"

    gophish_base_url: str = "https://localhost:3333"
    gophish_api_key: str | None = None
    gophish_timeout_seconds: float = 30.0

    scheduler_enabled: bool = True
    scheduled_email_interval_seconds: int = 60
    simulation_launch_interval_seconds: int = 15 * 60
    token_cleanup_interval_seconds: int = 24 * 60 * 60
    course_lifecycle_interval_seconds: int = 30 * 60
    email_send_concurrency: int = 5

    default_recipient_first_name: str = "User"
    campaign_placeholders: Dict[str, str] = {
        "module_name": "Cybersecurity Training",
        "otp": "123456",
        "campaign_name": "Annual Cybersecurity Campaign",
        "group_name": "Default Group",
        "manager_email": "manager@example.com",
        "manager_name": "Manager Name",
        "completion_rate": "85%",
        "active_users": "150",
        "modules_completed": "45",
    }

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", case_sensitive=False)

    @field_validator("database_url", mode="before")
    @classmethod
    def strip_wrapping_quotes(cls, value: str) -> str:
        """Allow quoted URLs in env files."""
        if isinstance(value, str):
            return value.strip().strip('"').strip("'")
        return value

    @field_validator("allowed_origins", mode="before")
    @classmethod
    def split_origins(cls, value: str | List[str]) -> List[str]:
        """Allow comma separated origins in env files."""
        if isinstance(value, str):
            return [origin.strip() for origin in value.split(",") if origin.strip()]
        return value

    @field_validator("ses_sender_email")
    @classmethod
    def validate_sender(cls, value: str) -> str:
        if "@" not in value:
            raise ValueError("ses_sender_email must contain '@'")
        return value

    @field_validator("email_send_concurrency")
    @classmethod
    def validate_concurrency(cls, value: int) -> int:
        if value < 1:
            raise ValueError("email_send_concurrency must be at least 1")
        return value

    @field_validator("gophish_base_url")
    @classmethod
    def strip_trailing_slash(cls, value: str) -> str:
        return value.rstrip("/")


@lru_cache()
def get_settings() -> Settings:
    """Return a cached Settings instance for reuse across the app."""

    return Settings()


settings = get_settings()
