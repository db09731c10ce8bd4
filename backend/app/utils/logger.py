import logging
import sys
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Optional

from app.config import Settings, get_settings

CONSOLE_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
FILE_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(funcName)s:%(lineno)d - %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

# Access denials from the route guards are also kept in their own file
ACCESS_LOGGER = "security"


def _level(settings: Settings) -> int:
    if settings.LOG_LEVEL:
        return logging.getLevelName(settings.LOG_LEVEL.upper())
    return logging.DEBUG if settings.APP_DEBUG else logging.INFO


def _rotating(path: Path, level: int, settings: Settings) -> RotatingFileHandler:
    handler = RotatingFileHandler(
        path,
        maxBytes=settings.LOG_MAX_BYTES,
        backupCount=settings.LOG_BACKUP_COUNT,
        encoding="utf-8",
    )
    handler.setLevel(level)
    handler.setFormatter(logging.Formatter(FILE_FORMAT, datefmt=DATE_FORMAT))
    return handler


def configure_logging(settings: Optional[Settings] = None, name: Optional[str] = None) -> logging.Logger:
    """(Re)build the application logger.

    Console output always; with LOG_TO_FILE, rotating app.log, errors.log and
    access.log (guard denials only) under LOG_DIR. Safe to call repeatedly.
    """
    settings = settings or get_settings()
    app_logger = logging.getLogger(name or settings.APP_NAME)
    level = _level(settings)
    app_logger.setLevel(level)

    for handler in list(app_logger.handlers):
        app_logger.removeHandler(handler)
        handler.close()

    console = logging.StreamHandler(sys.stdout)
    console.setLevel(level)
    console.setFormatter(logging.Formatter(CONSOLE_FORMAT, datefmt=DATE_FORMAT))
    app_logger.addHandler(console)

    if settings.LOG_TO_FILE:
        logs_dir = Path(settings.LOG_DIR)
        logs_dir.mkdir(parents=True, exist_ok=True)
        app_logger.addHandler(_rotating(logs_dir / "app.log", logging.INFO, settings))
        app_logger.addHandler(_rotating(logs_dir / "errors.log", logging.ERROR, settings))
        access = _rotating(logs_dir / "access.log", logging.WARNING, settings)
        access.addFilter(logging.Filter(app_logger.getChild(ACCESS_LOGGER).name))
        app_logger.addHandler(access)

    return app_logger


logger = configure_logging()


def get_logger(name: str = None) -> logging.Logger:
    """Application logger, or a named child of it."""
    if name:
        return logger.getChild(name)
    return logger
