"""
Centralized logging configuration for the tilemap generator.

Usage:
    from logging_config import setup_logging
    setup_logging()  # Call once at startup

All loggers write WARNING+ to the console by default. When a log directory is given, DEBUG and above also goes to a
rotating log file inside it.
"""

import logging
import sys
from logging.handlers import RotatingFileHandler
from pathlib import Path


LOG_FILE_NAME = "hexwfc.log"
MAX_LOG_SIZE = 5 * 1024 * 1024  # 5 MB per file
BACKUP_COUNT = 3


def setup_logging(
    log_dir: Path | str | None = None,
    log_level: int = logging.DEBUG,
    console_level: int = logging.WARNING,
) -> Path | None:
    """
    Configure the logging system.

    Args:
        log_dir: Directory for the log file (no file logging if None)
        log_level: Level for file logging (default: DEBUG)
        console_level: Level for console output (default: WARNING)

    Returns:
        Path to the log file, or None if only the console is used
    """
    root_logger = logging.getLogger()
    root_logger.setLevel(min(log_level, console_level))

    # Clear any existing handlers (for re-initialization)
    root_logger.handlers.clear()

    console_formatter = logging.Formatter(fmt="%(levelname)-8s | %(name)-20s | %(message)s")
    console_handler = logging.StreamHandler(sys.stderr)
    console_handler.setLevel(console_level)
    console_handler.setFormatter(console_formatter)
    root_logger.addHandler(console_handler)

    if log_dir is None:
        return None

    log_path = Path(log_dir)
    log_path.mkdir(parents=True, exist_ok=True)
    log_file = log_path / LOG_FILE_NAME

    file_formatter = logging.Formatter(
        fmt="%(asctime)s.%(msecs)03d | %(levelname)-8s | %(name)-20s | %(funcName)-22s | %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )
    file_handler = RotatingFileHandler(
        log_file,
        maxBytes=MAX_LOG_SIZE,
        backupCount=BACKUP_COUNT,
        encoding="utf-8",
    )
    file_handler.setLevel(log_level)
    file_handler.setFormatter(file_formatter)
    root_logger.addHandler(file_handler)

    return log_file
