import logging
from logging.config import dictConfig
from pathlib import Path

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    # Application
    ENVIRONMENT: str = "local"

    # Platform backend
    API_BASE_URL: str = "http://localhost:5000"
    API_REQUEST_TIMEOUT: float = 10
    EXECUTION_TIMEOUT: float = 30

    # Editing surface
    SAVE_INDICATOR_SECONDS: float = 3.0
    OPTIMISTIC_SOLVE: bool = True

    # Logging
    LOG_LEVEL: str = "INFO"
    LOG_FILE: str = "logs/ojclient.log"

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    @property
    def API_URL(self) -> str:
        return self.API_BASE_URL.rstrip("/")


Config = Settings()

# Ensure logs directory exists
log_dir = Path(Config.LOG_FILE).parent
log_dir.mkdir(parents=True, exist_ok=True)


def configure_logging():
    """Configure logging for the client."""
    subsystem = {
        "handlers": ["console", "file"],
        "level": Config.LOG_LEVEL,
        "propagate": False,
    }
    log_config = {
        "version": 1,
        "disable_existing_loggers": False,
        "formatters": {
            "default": {
                "format": "%(asctime)s - %(name)s - %(levelname)s - %(message)s",
            },
            "detailed": {
                "format": "%(asctime)s - %(name)s - %(levelname)s - %(module)s - %(funcName)s - %(lineno)d - %(message)s",
            },
        },
        "handlers": {
            "console": {
                "class": "logging.StreamHandler",
                "formatter": "default",
                "level": Config.LOG_LEVEL,
            },
            "file": {
                "class": "logging.handlers.RotatingFileHandler",
                "formatter": "detailed",
                "filename": Config.LOG_FILE,
                "maxBytes": 10485760,  # 10MB
                "backupCount": 5,
                "level": Config.LOG_LEVEL,
            },
        },
        "loggers": {
            "ojclient": dict(subsystem),
            "judge": dict(subsystem),
            "solution": dict(subsystem),
            "submission": dict(subsystem),
        },
        "root": {
            "handlers": ["console"],
            "level": Config.LOG_LEVEL,
        },
    }
    dictConfig(log_config)
    return logging.getLogger("ojclient")


# Initialize logger
logger = configure_logging()
