"""Configuration using pydantic-settings.

Values come from environment variables prefixed with ``SHEETBRIDGE_`` or
from a local ``.env`` file.
"""

from functools import lru_cache

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Settings loaded from environment variables.

    Environment variables:
    - SHEETBRIDGE_ACCESS_TOKEN: OAuth access token used by the CLI
    - SHEETBRIDGE_API_BASE: Sheets API base URL (override for testing)
    - SHEETBRIDGE_TIMEOUT: HTTP timeout in seconds
    - SHEETBRIDGE_LOG_LEVEL / SHEETBRIDGE_JSON_LOGS: logging setup
    """

    model_config = SettingsConfigDict(
        env_prefix="SHEETBRIDGE_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    access_token: str = ""
    api_base: str = "https://sheets.googleapis.com/v4/spreadsheets"
    timeout: float = 60.0

    log_level: str = "INFO"
    json_logs: bool = False

    @field_validator("log_level")
    @classmethod
    def normalize_log_level(cls, v: str) -> str:
        level = v.upper()
        if level not in {"TRACE", "DEBUG", "INFO", "SUCCESS", "WARNING", "ERROR", "CRITICAL"}:
            raise ValueError(f"Unknown log level: {v}")
        return level

    @field_validator("api_base")
    @classmethod
    def strip_trailing_slash(cls, v: str) -> str:
        return v.rstrip("/")


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
