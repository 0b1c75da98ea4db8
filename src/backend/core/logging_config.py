"""
Logging configuration for the Accommodation Tracker.

- Console output is coloured and written directly to stdout
- File output goes through a QueueHandler so rotation and disk writes happen
  on the QueueListener thread, never on the event loop
- Every record carries the request correlation id (or "-" outside requests)
"""

import atexit
import logging
import logging.handlers
import queue
import sys
from datetime import date
from pathlib import Path
from typing import Optional

from pydantic import BaseModel

from core.middleware.correlation import get_correlation_id


# Global queue listener for cleanup
_queue_listener: Optional[logging.handlers.QueueListener] = None


class LogConfig(BaseModel):
    """Logging configuration settings."""

    level: str = "INFO"
    date_format: str = "%Y-%m-%d %H:%M:%S"
    enable_file_logging: bool = True
    log_dir: str = "logs"
    max_file_size: int = 10 * 1024 * 1024  # 10MB
    backup_count: int = 5
    enable_console: bool = True


class CorrelationIdFilter(logging.Filter):
    """Attach the current request's correlation id to every record."""

    def filter(self, record: logging.LogRecord) -> bool:
        record.correlation_id = get_correlation_id() or "-"
        return True


class ColoredFormatter(logging.Formatter):
    """Custom formatter with colors for console output."""

    grey = "\x1b[38;21m"
    yellow = "\x1b[33;21m"
    red = "\x1b[31;21m"
    bold_red = "\x1b[31;1m"
    blue = "\x1b[34;21m"
    reset = "\x1b[0m"

    COLORS = {
        logging.DEBUG: grey,
        logging.INFO: blue,
        logging.WARNING: yellow,
        logging.ERROR: red,
        logging.CRITICAL: bold_red,
    }

    def format(self, record):
        color = self.COLORS.get(record.levelno, self.grey)
        original_levelname = record.levelname
        record.levelname = f"{color}{record.levelname}{self.reset}"
        try:
            formatted = super().format(record)
        finally:
            record.levelname = original_levelname
        return f"{formatted}{self.reset}"


def setup_logging(config: Optional[LogConfig] = None) -> None:
    """Setup application logging with configuration.

    Console handler is attached directly; the rotating file handler is
    served by a QueueListener running in its own thread.
    """
    global _queue_listener

    if config is None:
        config = LogConfig()

    level = getattr(logging, config.level.upper())

    if _queue_listener:
        _queue_listener.stop()
        _queue_listener = None

    root_logger = logging.getLogger()
    root_logger.setLevel(level)
    root_logger.handlers.clear()

    correlation_filter = CorrelationIdFilter()

    if config.enable_console:
        console_handler = logging.StreamHandler(sys.stdout)
        console_handler.setLevel(level)
        console_handler.addFilter(correlation_filter)
        console_handler.setFormatter(
            ColoredFormatter(
                fmt="%(asctime)s | %(name)s | %(levelname)s | %(correlation_id)s | %(message)s",
                datefmt=config.date_format,
            )
        )
        root_logger.addHandler(console_handler)

    if config.enable_file_logging:
        log_path = Path(config.log_dir)
        log_path.mkdir(parents=True, exist_ok=True)

        file_handler = logging.handlers.RotatingFileHandler(
            log_path / "app.log",
            maxBytes=config.max_file_size,
            backupCount=config.backup_count,
            encoding="utf-8",
        )
        file_handler.setLevel(level)
        file_handler.setFormatter(
            logging.Formatter(
                fmt="%(asctime)s | %(name)s | %(levelname)s | %(correlation_id)s | "
                "%(funcName)s:%(lineno)d | %(message)s",
                datefmt=config.date_format,
            )
        )

        log_queue = queue.Queue(-1)
        queue_handler = logging.handlers.QueueHandler(log_queue)
        # Filter runs in the request's context, before the record is queued
        queue_handler.addFilter(correlation_filter)
        root_logger.addHandler(queue_handler)

        _queue_listener = logging.handlers.QueueListener(
            log_queue,
            file_handler,
            respect_handler_level=True,
        )
        _queue_listener.start()
        atexit.register(stop_queue_listener)

    # SQL echo is controlled by DATABASE_ECHO, keep the engine logger quiet otherwise
    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)
    logging.getLogger("apscheduler").setLevel(logging.WARNING)


def stop_queue_listener() -> None:
    """Stop the queue listener gracefully.

    Called automatically on exit via atexit and from the lifespan shutdown.
    """
    global _queue_listener

    if _queue_listener:
        _queue_listener.stop()
        _queue_listener = None


class AccommodationLogger:
    """Structured logger for accommodation record lifecycle events."""

    def __init__(self, name: str = "records"):
        self.logger = logging.getLogger(f"accommodation.{name}")

    def record_created(
        self, record_id: int, associate_login: str, shift_type: str
    ) -> None:
        self.logger.info(
            f"Record created | ID: {record_id} | Associate: {associate_login} | "
            f"Shift: {shift_type}"
        )

    def record_updated(
        self, record_id: int, associate_login: str, status: str, via: str
    ) -> None:
        self.logger.info(
            f"Record updated | ID: {record_id} | Associate: {associate_login} | "
            f"Status: {status} | Via: {via}"
        )

    def record_deleted(self, record_id: int) -> None:
        self.logger.info(f"Record deleted | ID: {record_id}")

    def records_expired(self, count: int, as_of: date) -> None:
        """Log the outcome of an expiry sweep."""
        if count:
            self.logger.info(f"Expiry sweep | Expired: {count} | As of: {as_of.isoformat()}")
        else:
            self.logger.debug(f"Expiry sweep | Nothing to expire | As of: {as_of.isoformat()}")

    def notification_failed(self, record_id: Optional[int], error: str) -> None:
        self.logger.error(
            f"Notification failed | Record ID: {record_id} | Error: {error}"
        )
