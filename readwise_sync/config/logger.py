"""
Logger configuration for readwise-sync using Loguru.

This module provides:
- Colored console output on stderr
- Optional rotated file handlers (all messages, errors only)
- A helper for timing log lines
"""

import sys
from pathlib import Path

from loguru import logger


CONSOLE_FORMAT = (
    "<green>{time:YYYY-MM-DD HH:mm:ss}</green> | <level>{level: <8}</level> | "
    "<cyan>{name}</cyan>:<cyan>{function}</cyan>:<cyan>{line}</cyan> - <level>{message}</level>"
)
FILE_FORMAT = "{time:YYYY-MM-DD HH:mm:ss} | {level: <8} | {name}:{function}:{line} - {message}"


class LoguruConfig:
    """Loguru configuration class for the sync job."""

    def __init__(self, app_name: str = "readwise-sync", logs_dir: str = "logs"):
        self.app_name = app_name
        self.logs_dir = Path(logs_dir)

    def setup_logger(self, log_level: str = "INFO", log_to_file: bool = False) -> None:
        """Configure Loguru logger for the sync job."""

        # Remove default handler
        logger.remove()

        # Console handler; stdout is left free for the run summary
        logger.add(
            sys.stderr,
            format=CONSOLE_FORMAT,
            level=log_level.upper(),
            colorize=True,
            backtrace=True,
            diagnose=False,
        )

        if not log_to_file:
            return

        self.logs_dir.mkdir(parents=True, exist_ok=True)

        # General sync logs
        logger.add(
            self.logs_dir / "sync.log",
            format=FILE_FORMAT,
            level="DEBUG",
            rotation="10 MB",
            retention="7 days",
            compression="zip",
            encoding="utf-8",
            backtrace=True,
            diagnose=False,
        )

        # Error logs only
        logger.add(
            self.logs_dir / "errors.log",
            format=FILE_FORMAT,
            level="ERROR",
            rotation="5 MB",
            retention="30 days",
            compression="zip",
            encoding="utf-8",
            backtrace=True,
            diagnose=False,
        )


def log_performance(operation: str, duration: float, **kwargs) -> None:
    """Log a timing line for a completed operation."""
    details = " ".join(f"{key}={value}" for key, value in kwargs.items())
    logger.info(
        "PERFORMANCE: {operation} completed in {duration:.2f}s {details}",
        operation=operation,
        duration=duration,
        details=details,
    )


# Export logger for use in other modules
app_logger = logger
