"""Logging configuration."""

import logging
import sys
from logging.handlers import RotatingFileHandler
from typing import Optional

from lookthrough.config.settings import Settings, get_settings

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
LOG_FILE_NAME = "lookthrough.log"


def setup_logging(settings: Optional[Settings] = None) -> None:
    """
    Configure application logging.

    Always logs to stdout; when ``log_to_file`` is set, also writes a
    rotating file under the data directory's ``logs`` folder.
    """
    settings = settings or get_settings()

    handlers: list[logging.Handler] = [logging.StreamHandler(sys.stdout)]
    if settings.log_to_file:
        handlers.append(
            RotatingFileHandler(
                settings.get_log_dir() / LOG_FILE_NAME,
                maxBytes=5 * 1024 * 1024,
                backupCount=3,
                encoding="utf-8",
            )
        )

    logging.basicConfig(
        level=getattr(logging, settings.log_level.upper(), logging.INFO),
        format=LOG_FORMAT,
        handlers=handlers,
    )

    # Third-party chatter: SQL echo and per-request HTTP connection logs
    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)
    logging.getLogger("urllib3").setLevel(logging.WARNING)
