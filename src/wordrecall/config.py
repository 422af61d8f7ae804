"""Configuration settings for the learning core."""
import os
from dataclasses import dataclass, field
from typing import Optional

from dotenv import load_dotenv

# Load environment variables from .env file
env_file = ".env.test" if os.getenv("ENV") == "test" else ".env"
load_dotenv(env_file)

# Learning settings
REVIEW_INTERVALS = [1, 2, 4, 7, 15, 30]  # days until next review, by mastery band
MASTERY_BAND_WIDTH = 20  # mastery points per interval step
MAX_MASTERY = 100


def parse_intervals(value: Optional[str]) -> list[int]:
    """Parse a comma-separated list of day offsets."""
    if not value:
        return list(REVIEW_INTERVALS)
    return [int(part) for part in value.split(",") if part.strip()]


@dataclass
class DatabaseSettings:
    """Database configuration settings."""
    url: str = os.getenv("DATABASE_URL", "sqlite:///wordrecall.db")
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
class LearningSettings:
    """Mastery and study queue settings."""
    review_intervals: list[int] = field(
        default_factory=lambda: parse_intervals(os.getenv("REVIEW_INTERVALS"))
    )
    mastery_on_correct: int = int(os.getenv("MASTERY_ON_CORRECT", "15"))
    mastery_on_incorrect: int = int(os.getenv("MASTERY_ON_INCORRECT", "-10"))
    mastered_threshold: int = int(os.getenv("MASTERED_THRESHOLD", "80"))
    urgent_threshold: int = int(os.getenv("URGENT_THRESHOLD", "40"))
    default_queue_limit: int = int(os.getenv("DEFAULT_QUEUE_LIMIT", "20"))
    candidate_multiplier: int = int(os.getenv("CANDIDATE_MULTIPLIER", "2"))


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


def get_learning_settings() -> LearningSettings:
    """Get learning settings."""
    return LearningSettings()


def get_monitoring_settings() -> MonitoringSettings:
    """Get monitoring settings."""
    return MonitoringSettings()


@dataclass
class Settings:
    """Main settings class that combines all configuration settings."""
    database: DatabaseSettings = field(default_factory=get_database_settings)
    logging: LoggingSettings = field(default_factory=get_logging_settings)
    learning: LearningSettings = field(default_factory=get_learning_settings)
    monitoring: MonitoringSettings = field(default_factory=get_monitoring_settings)

    def validate(self) -> None:
        """Validate settings and raise ValueError if invalid."""
        intervals = self.learning.review_intervals
        if not intervals:
            raise ValueError("REVIEW_INTERVALS must not be empty")

        if any(days <= 0 for days in intervals):
            raise ValueError("REVIEW_INTERVALS must be positive")

        if intervals != sorted(intervals):
            raise ValueError("REVIEW_INTERVALS must be ascending")

        if self.learning.mastery_on_correct <= 0:
            raise ValueError("MASTERY_ON_CORRECT must be positive")

        if self.learning.mastery_on_incorrect > 0:
            raise ValueError("MASTERY_ON_INCORRECT cannot be positive")

        if not 0 < self.learning.mastered_threshold <= MAX_MASTERY:
            raise ValueError("MASTERED_THRESHOLD must be between 1 and 100")

        if self.learning.urgent_threshold > self.learning.mastered_threshold:
            raise ValueError("URGENT_THRESHOLD cannot be greater than MASTERED_THRESHOLD")

        if self.learning.default_queue_limit < 1:
            raise ValueError("DEFAULT_QUEUE_LIMIT must be positive")

        if self.learning.candidate_multiplier < 1:
            raise ValueError("CANDIDATE_MULTIPLIER must be positive")


# Create global settings instance
settings = Settings()
settings.validate()
