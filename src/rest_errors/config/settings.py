from functools import lru_cache
from pathlib import Path
from typing import Literal

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    Settings loaded from the environment (and an optional .env file).

    Every field has a default, so the library works without any configuration.
    """

    # Environment
    ENV: Literal["development", "testing", "staging", "production"] = "development"

    # Logging
    LOG_LEVEL: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = "INFO"
    LOG_FORMAT: Literal["json", "text"] = "json"
    LOG_TO_STDOUT: bool = True
    LOG_DIR: Path = Path("/var/log/rest-errors")
    LOG_MAX_BYTES: int = 10_000_000  # 10 MB
    LOG_BACKUP_COUNT: int = 5

    # Error responses
    ERROR_CAUSE_LINE_LIMIT: int = 10
    CORRELATION_ID_HEADER: str = "X-Correlation-ID"

    # --- Validators ---
    @field_validator("LOG_LEVEL", mode="before")
    @classmethod
    def normalize_log_level(cls, v: str | None) -> str | None:
        """Accept 'debug', 'Info'... logging expects upper-case level names."""
        return v.upper() if isinstance(v, str) else v

    @field_validator("LOG_FORMAT", mode="before")
    @classmethod
    def normalize_log_format(cls, v: str | None) -> str | None:
        return v.lower() if isinstance(v, str) else v

    @field_validator("ERROR_CAUSE_LINE_LIMIT")
    @classmethod
    def check_cause_line_limit(cls, v: int) -> int:
        if v < 0:
            raise ValueError("ERROR_CAUSE_LINE_LIMIT must be >= 0")
        return v

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )


# Settings never change for the life of the process.
@lru_cache()
def get_settings() -> Settings:
    return Settings()
