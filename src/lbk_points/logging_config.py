"""
Logging configuration for the LBK points service.

Creates a rotating file logger under the configured log directory.
"""

import logging
from pathlib import Path
from logging.handlers import RotatingFileHandler
from typing import Optional

SERVICE_LOGGER = "lbk_points"
LOG_FILE_NAME = "lbk_points.log"

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - [%(filename)s:%(lineno)d] - %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

MAX_BYTES = 10 * 1024 * 1024  # 10 MB
BACKUP_COUNT = 5


def _setup_file_logger(name: str, log_file: Path, level: int) -> logging.Logger:
    logger = logging.getLogger(name)
    logger.setLevel(level)
    # Avoid duplicate handlers if setup_logging is called multiple times
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()

    file_handler = RotatingFileHandler(
        log_file,
        maxBytes=MAX_BYTES,
        backupCount=BACKUP_COUNT,
        encoding="utf-8",
    )
    file_handler.setLevel(level)
    file_handler.setFormatter(logging.Formatter(LOG_FORMAT, DATE_FORMAT))

    console_handler = logging.StreamHandler()
    console_handler.setLevel(logging.WARNING)
    console_handler.setFormatter(logging.Formatter(LOG_FORMAT, DATE_FORMAT))

    logger.addHandler(file_handler)
    logger.addHandler(console_handler)
    return logger


def setup_logging(log_dir: Path = Path("logs"), log_level: Optional[str] = "INFO") -> None:
    """
    Configure root + service loggers.
    """
    level = getattr(logging, (log_level or "INFO").upper(), logging.INFO)

    log_dir = Path(log_dir)
    log_dir.mkdir(parents=True, exist_ok=True)

    root_logger = logging.getLogger()
    root_logger.setLevel(level)

    _setup_file_logger(SERVICE_LOGGER, log_dir / LOG_FILE_NAME, level)

    # Statement echo is controlled by SQL_ECHO; keep the engine logger quiet otherwise
    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)


def get_logger(name: str) -> logging.Logger:
    """
    Convenience wrapper to get a named logger under the service namespace.
    """
    if name == SERVICE_LOGGER or name.startswith(SERVICE_LOGGER + "."):
        return logging.getLogger(name)
    return logging.getLogger(f"{SERVICE_LOGGER}.{name}")
