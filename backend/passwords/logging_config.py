"""Logging configuration for the Passwords share API.

Share operations are logged by ``passwords.services.share_controller`` and
requests by ``passwords.middleware``. Uvicorn's access log repeats what the
request middleware already records, so it is raised to warning.
"""

import logging
from logging.handlers import RotatingFileHandler
from pathlib import Path

from .config import settings

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
CONSOLE_FORMAT = "%(levelname)s:     %(name)s - %(message)s"


def _file_handler() -> RotatingFileHandler:
    log_file = Path(settings.LOG_FILE)
    log_file.parent.mkdir(parents=True, exist_ok=True)

    handler = RotatingFileHandler(
        filename=log_file,
        maxBytes=settings.LOG_MAX_BYTES,
        backupCount=settings.LOG_BACKUP_COUNT,
        encoding="utf-8",
    )
    handler.setLevel(logging.DEBUG)  # Log everything to file
    handler.setFormatter(logging.Formatter(LOG_FORMAT, datefmt="%Y-%m-%d %H:%M:%S"))
    return handler


def setup_logging() -> None:
    """Configure the console handler, the optional rotating log file and library levels."""
    root_logger = logging.getLogger()
    root_logger.setLevel(getattr(logging, settings.LOG_LEVEL.upper()))

    # Remove any existing handlers
    root_logger.handlers.clear()

    # Console handler (stderr) - for uvicorn compatibility
    console_handler = logging.StreamHandler()
    console_handler.setLevel(logging.INFO)
    console_handler.setFormatter(logging.Formatter(CONSOLE_FORMAT))
    root_logger.addHandler(console_handler)

    if settings.LOG_TO_FILE:
        root_logger.addHandler(_file_handler())

    # Engine statements are logged only with SQL_DEBUG
    logging.getLogger("sqlalchemy.engine").setLevel(
        logging.INFO if settings.SQL_DEBUG else logging.WARNING
    )
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)

    root_logger.info(
        f"Logging configured at {settings.LOG_LEVEL} "
        f"({'console and ' + settings.LOG_FILE if settings.LOG_TO_FILE else 'console only'})"
    )
