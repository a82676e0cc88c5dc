"""
Holder - Configuration

Process-wide settings read from the environment (prefix ``HOLDER_``) and an
optional ``.env`` file. The holder itself takes its collaborators as
constructor arguments; these settings only drive logging setup and the CLI.
"""
from enum import Enum
from pathlib import Path
from typing import Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from observability.logging import LoggingConfig


class Environment(str, Enum):
    """Deployment environments."""
    DEVELOPMENT = "development"
    TESTING = "testing"
    STAGING = "staging"
    PRODUCTION = "production"


class LogFormat(str, Enum):
    """Log rendering formats."""
    JSON = "json"
    CONSOLE = "console"


class HolderSettings(BaseSettings):
    """Settings with environment variable support."""

    service_name: str = "holder"
    environment: Environment = Environment.DEVELOPMENT
    log_level: str = Field(default="INFO", pattern="^(DEBUG|INFO|WARNING|ERROR|CRITICAL)$")
    log_format: LogFormat = LogFormat.JSON
    log_to_file: bool = False
    log_file: Path = Path("./logs/holder.log")

    model_config = SettingsConfigDict(
        env_prefix="HOLDER_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    @property
    def is_production(self) -> bool:
        return self.environment == Environment.PRODUCTION

    def logging_config(self) -> LoggingConfig:
        """Logging configuration derived from these settings."""
        return LoggingConfig(
            service_name=self.service_name,
            level=self.log_level,
            json_format=self.log_format == LogFormat.JSON,
            log_to_file=self.log_to_file,
            log_file_path=self.log_file,
            environment=self.environment.value,
        )


# Singleton settings instance
_settings: Optional[HolderSettings] = None


def get_settings() -> HolderSettings:
    """Get or create the settings singleton."""
    global _settings
    if _settings is None:
        _settings = HolderSettings()
    return _settings


def reload_settings() -> HolderSettings:
    """Re-read settings from the environment."""
    global _settings
    _settings = HolderSettings()
    return _settings
