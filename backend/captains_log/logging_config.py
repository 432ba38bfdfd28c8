"""Logging configuration.

Console output always; rotating files under ``settings.log_dir`` except during
tests. Production writes the main log file as JSON lines.
"""

import logging
import logging.config
import sys
from pathlib import Path
from typing import Any

from captains_log.config import settings

ROOT_LOGGER = "captains_log"
MAX_LOG_BYTES = 5 * 1024 * 1024
LOG_BACKUPS = 5

# Third-party loggers and the level they are held at
QUIET_LOGGERS = {
    "uvicorn": "INFO",
    "uvicorn.access": "INFO",
    "httpx": "WARNING",
    "openai": "WARNING",
}


def _file_handler(path: Path, level: str, formatter: str) -> dict[str, Any]:
    return {
        "class": "logging.handlers.RotatingFileHandler",
        "level": level,
        "formatter": formatter,
        "filename": str(path),
        "maxBytes": MAX_LOG_BYTES,
        "backupCount": LOG_BACKUPS,
        "encoding": "utf-8",
    }


def setup_logging() -> None:
    """Apply the logging configuration for the current environment."""
    handlers: dict[str, Any] = {
        "console": {
            "class": "logging.StreamHandler",
            "level": "DEBUG" if settings.is_development else "INFO",
            "formatter": "detailed" if settings.is_development else "simple",
            "stream": sys.stdout,
        },
    }

    if not settings.is_testing:
        log_dir = Path(settings.log_dir)
        log_dir.mkdir(parents=True, exist_ok=True)
        handlers["file"] = _file_handler(
            log_dir / "captains-log.log", "INFO", "json" if settings.is_production else "detailed"
        )
        handlers["error_file"] = _file_handler(log_dir / "error.log", "ERROR", "detailed")

    names = list(handlers)
    loggers: dict[str, Any] = {
        ROOT_LOGGER: {"level": settings.log_level, "handlers": names, "propagate": False},
        "sqlalchemy.engine": {
            "level": "INFO" if settings.is_development else "WARNING",
            "handlers": names,
            "propagate": False,
        },
    }
    for name, level in QUIET_LOGGERS.items():
        loggers[name] = {"level": level, "handlers": names, "propagate": False}

    logging.config.dictConfig(
        {
            "version": 1,
            "disable_existing_loggers": False,
            "formatters": {
                "detailed": {
                    "format": "%(asctime)s - %(name)s - %(levelname)s - [%(filename)s:%(lineno)d] - %(message)s",
                    "datefmt": "%Y-%m-%d %H:%M:%S",
                },
                "simple": {"format": "%(levelname)s - %(message)s"},
                "json": {
                    "()": "pythonjsonlogger.jsonlogger.JsonFormatter",
                    "format": "%(asctime)s %(name)s %(levelname)s %(filename)s %(lineno)d %(message)s",
                },
            },
            "handlers": handlers,
            "loggers": loggers,
            "root": {"level": settings.log_level, "handlers": names},
        }
    )

    logging.getLogger(ROOT_LOGGER).info(
        f"Logging initialized - Environment: {settings.environment}, Level: {settings.log_level}"
    )


def get_logger(name: str) -> logging.Logger:
    """Logger under the ``captains_log`` namespace; module names are used as-is."""
    if name == ROOT_LOGGER or name.startswith(ROOT_LOGGER + "."):
        return logging.getLogger(name)
    return logging.getLogger(f"{ROOT_LOGGER}.{name}")
