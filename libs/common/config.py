from functools import lru_cache
from typing import Literal

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Global application settings."""

    # Application
    ENVIRONMENT: Literal["local", "development", "production"] = "local"
    LOG_LEVEL: str = "INFO"
    TIMEZONE: str = "Asia/Kolkata"

    # Attendance backend
    ATTENDANCE_API_URL: str = "http://localhost:5000/api"
    ATTENDANCE_API_TOKEN: str = ""
    HTTP_TIMEOUT: float = 10.0

    # Attendance desk behaviour
    EDIT_WINDOW_DAYS: int = 3
    # "reset_all" discards operator edits when the server has nothing saved yet,
    # "preserve_touched" keeps entries edited since the load started.
    EMPTY_SNAPSHOT_POLICY: Literal["reset_all", "preserve_touched"] = "reset_all"
    REFETCH_AFTER_UPDATE: bool = True

    model_config = SettingsConfigDict(
        env_file=".env", env_file_encoding="utf-8", extra="ignore"
    )

    @field_validator("ATTENDANCE_API_URL")
    @classmethod
    def strip_trailing_slash(cls, v: str) -> str:
        return v.rstrip("/")

    @field_validator("EDIT_WINDOW_DAYS")
    @classmethod
    def non_negative_window(cls, v: int) -> int:
        if v < 0:
            raise ValueError("EDIT_WINDOW_DAYS must be >= 0")
        return v


@lru_cache
def get_settings() -> Settings:
    """
    Return the global settings instance, cached.
    """
    return Settings()
