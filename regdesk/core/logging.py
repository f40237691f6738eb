import logging
import sys
from logging.handlers import RotatingFileHandler
from typing import Optional

from regdesk.core.config import settings


def setup_logging(level: Optional[str] = None, log_file: Optional[str] = None) -> logging.Logger:
    """Configure application logging"""

    # Root logger
    logger = logging.getLogger()
    logger.setLevel(level or settings.LOG_LEVEL)

    # Remove existing handlers so repeated calls don't duplicate output
    logger.handlers.clear()

    formatter = logging.Formatter(
        '%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        datefmt='%Y-%m-%d %H:%M:%S'
    )

    # Console handler
    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setFormatter(formatter)
    logger.addHandler(console_handler)

    # File handler (optional)
    path = log_file if log_file is not None else settings.LOG_FILE
    if path:
        try:
            file_handler = RotatingFileHandler(
                path,
                maxBytes=10485760,  # 10MB
                backupCount=5
            )
            file_handler.setFormatter(formatter)
            logger.addHandler(file_handler)
        except OSError as e:
            logger.warning(f"File logging disabled ({path}): {e}")

    # Silence noisy libraries
    logging.getLogger('uvicorn').setLevel(logging.WARNING)
    logging.getLogger('sqlalchemy').setLevel(logging.WARNING)
    logging.getLogger('httpx').setLevel(logging.WARNING)

    return logger
