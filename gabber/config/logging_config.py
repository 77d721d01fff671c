"""
Logging setup for the SDK and the demo CLI.

SDK modules only call `logging.getLogger(LOGGER_NAME)` and never install
handlers themselves. Host applications either attach their own handlers to
the "gabber" logger or call configure_logging() once at startup to get the
console output (and optionally a rotating log file) used by the CLI.
"""

import logging
import os
import sys
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Optional

from gabber.config.constants import LOGGER_NAME

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()
LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

# Rotating file output, opt-in through log_to_file
LOG_DIR = Path(os.getenv("GABBER_LOG_DIR", "logs"))
LOG_FILE = LOG_DIR / "gabber.log"
MAX_LOG_SIZE = 5 * 1024 * 1024  # 5 MB
BACKUP_COUNT = 3


def _open_log_file(formatter: logging.Formatter) -> Optional[logging.Handler]:
    """Create the rotating file handler, or None if LOG_DIR is unusable."""
    try:
        LOG_DIR.mkdir(parents=True, exist_ok=True)
        handler = RotatingFileHandler(LOG_FILE, maxBytes=MAX_LOG_SIZE, backupCount=BACKUP_COUNT)
    except OSError as e:
        logging.getLogger(LOGGER_NAME).warning(f"File logging disabled, cannot open {LOG_FILE}: {e}")
        return None
    handler.setFormatter(formatter)
    return handler


def configure_logging(level: str = LOG_LEVEL, log_to_file: bool = True) -> logging.Logger:
    """
    Install the SDK's handlers on the "gabber" logger.

    Calling it again replaces the handlers from the previous call, so the CLI
    can reconfigure after parsing its arguments.

    Args:
        level: Level name such as "DEBUG"; unknown names fall back to INFO
        log_to_file: Also write to LOG_FILE, rotated at MAX_LOG_SIZE

    Returns:
        logging.Logger: The "gabber" logger
    """
    sdk_logger = logging.getLogger(LOGGER_NAME)
    sdk_logger.setLevel(getattr(logging, level.upper(), logging.INFO))
    for existing in list(sdk_logger.handlers):
        sdk_logger.removeHandler(existing)
    sdk_logger.propagate = False

    formatter = logging.Formatter(LOG_FORMAT)
    console = logging.StreamHandler(sys.stdout)
    console.setFormatter(formatter)
    sdk_logger.addHandler(console)

    if log_to_file:
        file_handler = _open_log_file(formatter)
        if file_handler is not None:
            sdk_logger.addHandler(file_handler)

    sdk_logger.debug(f"Logging configured at {logging.getLevelName(sdk_logger.level)}")
    return sdk_logger
