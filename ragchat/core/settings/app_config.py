"""Application environment and logging configuration."""

from typing import Literal

from pydantic import BaseModel, field_validator

LogLevel = Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]


class AppConfig(BaseModel, frozen=True):
    """Application environment settings."""

    name: str
    env: Literal["development", "staging", "production"]
    debug: bool
    log_level: LogLevel = "INFO"

    @field_validator("log_level", mode="before")
    @classmethod
    def normalise_log_level(cls, value: object) -> object:
        return value.upper() if isinstance(value, str) else value

    @property
    def is_development(self) -> bool:
        """Check if running in development mode."""
        return self.env == "development"

    @property
    def console_logs(self) -> bool:
        """Human-readable console logs instead of JSON lines."""
        return self.is_development or self.debug

    @property
    def echo_sql(self) -> bool:
        """Log every SQL statement (development with debug only)."""
        return self.is_development and self.debug
