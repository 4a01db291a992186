"""Configuration settings for the review scheduler."""
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv

# Define base directory
BASE_DIR = Path(__file__).parent.parent.parent

# Load environment variables from .env file
env_file = ".env.test" if os.getenv("ENV") == "test" else ".env"
load_dotenv(env_file)


# Define data directories from environment variables
DATA_DIR = Path(os.getenv("DATA_DIR", "./data"))
DICTIONARIES_DIR = DATA_DIR / "dictionaries"

# Learning settings
REVIEW_INTERVALS = {0: 1, 1: 2, 2: 4, 3: 7, 4: 16, 5: 30}  # mastery level -> days
HISTORY_LIMIT = 20
STUDY_DAYS_LIMIT = 30
QUIZ_HISTORY_LIMIT = 100
STUDY_SESSIONS_LIMIT = 200
LEADERBOARD_LIMIT = 20


def ensure_directories() -> None:
    """Ensure all required directories exist."""
    directories = [
        DATA_DIR,
        DICTIONARIES_DIR,
    ]

    for directory in directories:
        directory.mkdir(parents=True, exist_ok=True)


@dataclass
class PathSettings:
    """Path configuration settings."""
    base_dir: Path = BASE_DIR
    data_dir: Path = DATA_DIR
    dictionaries_dir: Path = DICTIONARIES_DIR


@dataclass
class DatabaseSettings:
    """Database configuration settings.

    ``url`` backs the local cache tier; ``remote_url`` is the authoritative
    tier and may be left unset to run fully offline.
    """
    url: str = os.getenv("DATABASE_URL", "sqlite:///petwords.db")
    remote_url: Optional[str] = os.getenv("REMOTE_DATABASE_URL") or None
    remote_timeout_seconds: float = float(os.getenv("REMOTE_TIMEOUT_SECONDS", "5"))
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
    """Learning process settings."""
    review_intervals: dict[int, int] = field(default_factory=lambda: dict(REVIEW_INTERVALS))
    history_limit: int = HISTORY_LIMIT
    study_days_limit: int = STUDY_DAYS_LIMIT
    quiz_history_limit: int = QUIZ_HISTORY_LIMIT
    study_sessions_limit: int = STUDY_SESSIONS_LIMIT
    leaderboard_limit: int = int(os.getenv("LEADERBOARD_LIMIT", str(LEADERBOARD_LIMIT)))


@dataclass
class MonitoringSettings:
    """Prometheus metrics settings."""
    enabled: bool = os.getenv("METRICS_ENABLED", "false").lower() == "true"
    port: int = int(os.getenv("METRICS_PORT", "9090"))


def get_path_settings() -> PathSettings:
    """Get path settings."""
    return PathSettings()


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
    paths: PathSettings = field(default_factory=get_path_settings)
    database: DatabaseSettings = field(default_factory=get_database_settings)
    logging: LoggingSettings = field(default_factory=get_logging_settings)
    learning: LearningSettings = field(default_factory=get_learning_settings)
    monitoring: MonitoringSettings = field(default_factory=get_monitoring_settings)

    def validate(self) -> None:
        """Validate settings and raise ValueError if invalid."""
        if self.database.remote_timeout_seconds <= 0:
            raise ValueError("REMOTE_TIMEOUT_SECONDS must be positive")

        if sorted(self.learning.review_intervals) != list(range(6)):
            raise ValueError("Review intervals must cover mastery levels 0 to 5")

        if any(days < 1 for days in self.learning.review_intervals.values()):
            raise ValueError("Review intervals must be at least one day")

        for name in (
            "history_limit",
            "study_days_limit",
            "quiz_history_limit",
            "study_sessions_limit",
            "leaderboard_limit",
        ):
            if getattr(self.learning, name) < 1:
                raise ValueError(f"{name.upper()} must be positive")


# Create global settings instance
settings = Settings()
settings.validate()
