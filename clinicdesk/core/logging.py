"""
Centralized logging configuration.

Everything in clinicdesk logs through the ``clinicdesk`` logger. Database
driver loggers are held at WARNING or above so per-query chatter does not
bury booking decisions logged at INFO.
"""

import logging
import sys
from typing import Optional

from clinicdesk.config import settings


LOGGER_NAME = "clinicdesk"
DRIVER_LOGGERS = ("pymongo", "motor", "beanie")


class EnvironmentFilter(logging.Filter):
    """Tags every record with the deployment environment."""

    def filter(self, record: logging.LogRecord) -> bool:
        record.environment = settings.ENVIRONMENT
        return True


def setup_logging(level: Optional[str] = None) -> logging.Logger:
    """Configure and return the application logger."""
    level_name = (level or settings.LOG_LEVEL).upper()
    numeric_level = getattr(logging, level_name, logging.INFO)

    logger = logging.getLogger(LOGGER_NAME)
    logger.setLevel(numeric_level)

    # Prevent duplicate handlers
    if not logger.handlers:
        handler = logging.StreamHandler(sys.stdout)
        handler.setLevel(numeric_level)
        handler.addFilter(EnvironmentFilter())
        handler.setFormatter(logging.Formatter(
            "%(asctime)s - %(name)s - %(levelname)s - [%(environment)s] %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S"
        ))
        logger.addHandler(handler)

    for name in DRIVER_LOGGERS:
        logging.getLogger(name).setLevel(max(numeric_level, logging.WARNING))

    logger.debug(f"Logging configured with level: {level_name}")
    return logger


logger = setup_logging()
