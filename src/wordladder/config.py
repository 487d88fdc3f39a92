"""Configuration settings for the scheduling engine."""
import os
from dataclasses import dataclass, field
from typing import Optional
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from dotenv import load_dotenv

# Load environment variables from .env file
env_file = ".env.test" if os.getenv("ENV") == "test" else ".env"
load_dotenv(env_file)


# Review settings
FEEDBACK_DELAY_SECONDS = 1.5  # how long the answer feedback stays on screen


@dataclass
class DatabaseSettings:
    """Database configuration settings."""
    url: str = os.getenv("DATABASE_URL", "sqlite:///wordladder.db")
    echo: bool = os.getenv("DATABASE_ECHO", "false").lower() == "true"


@dataclass
class LoggingSettings:
    """Logging configuration settings."""
    level: str = os.getenv("LOG_LEVEL", "INFO")
    format: str = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    dir: Optional[str] = os.getenv("LOG_DIR", None)
    rotation: str = os.getenv("LOG_ROTATION", "midnight")
    interval: int = int(os.getenv("LOG_INTERVAL", "1"))
    backup_count: int = int(os.getenv("LOG_BACKUP_COUNT", "7"))


@dataclass
class SchedulingSettings:
    """Review scheduling settings."""
    default_timezone: str = os.getenv("DEFAULT_TIMEZONE", "UTC")
    feedback_delay_seconds: float = float(
        os.getenv("FEEDBACK_DELAY_SECONDS", str(FEEDBACK_DELAY_SECONDS))
    )
    shuffle_options: bool = os.getenv("SHUFFLE_OPTIONS", "true").lower() == "true"


@dataclass
class MonitoringSettings:
    """Prometheus metrics settings."""
    enabled: bool = os.getenv("METRICS_ENABLED", "false").lower() == "true"
    port: int = int(os.getenv("METRICS_PORT", "9090"))


def get_database_settings() -> DatabaseSettings:
    """Get database settings."""
    return DatabaseSettings()


def get_logging_settings() -> LoggingSettings:
    """Get logging settings."""
    return LoggingSettings()


def get_scheduling_settings() -> SchedulingSettings:
    """Get scheduling settings."""
    return SchedulingSettings()


def get_monitoring_settings() -> MonitoringSettings:
    """Get monitoring settings."""
    return MonitoringSettings()


@dataclass
class Settings:
    """Main settings class that combines all configuration settings."""
    database: DatabaseSettings = field(default_factory=get_database_settings)
    logging: LoggingSettings = field(default_factory=get_logging_settings)
    scheduling: SchedulingSettings = field(default_factory=get_scheduling_settings)
    monitoring: MonitoringSettings = field(default_factory=get_monitoring_settings)

    def validate(self) -> None:
        """Validate settings and raise ValueError if invalid."""
        if not self.database.url:
            raise ValueError("DATABASE_URL is required")

        try:
            ZoneInfo(self.scheduling.default_timezone)
        except (ZoneInfoNotFoundError, ValueError):
            raise ValueError(
                f"DEFAULT_TIMEZONE {self.scheduling.default_timezone!r} is not a known timezone"
            )

        if self.scheduling.feedback_delay_seconds < 0:
            raise ValueError("FEEDBACK_DELAY_SECONDS cannot be negative")

        if self.monitoring.port < 1 or self.monitoring.port > 65535:
            raise ValueError("METRICS_PORT must be between 1 and 65535")


# Create global settings instance
settings = Settings()
settings.validate()
