# qr_attendance/logging/logging_config.py

import logging
import sys
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Optional

from ..config.config import settings


def setup_logging(log_dir: Optional[Path] = None, level: int = logging.INFO):
    """
    Configures the process-wide logging used by the scanner workflow.

    Logs go both to stdout (for development) and to a rotating file that is
    rolled over once it reaches 5 MB, keeping the last five files.
    """
    log_dir = Path(log_dir or settings.LOG_DIR)
    log_dir.mkdir(parents=True, exist_ok=True)

    # Time - module - level - message
    log_format = "%(asctime)s - [%(name)s] - %(levelname)s - %(message)s"

    logger = logging.getLogger()
    logger.setLevel(level)

    # Drop handlers installed by anyone else so our format is the only one.
    if logger.hasHandlers():
        logger.handlers.clear()

    stdout_handler = logging.StreamHandler(sys.stdout)
    stdout_handler.setFormatter(logging.Formatter(log_format))
    logger.addHandler(stdout_handler)

    file_handler = RotatingFileHandler(
        log_dir / "scanner.log",
        maxBytes=5*1024*1024,  # 5 MB
        backupCount=5
    )
    file_handler.setFormatter(logging.Formatter(log_format))
    logger.addHandler(file_handler)
    return logger
