"""
Async queue-based logging system.

Provides non-blocking logging so console and file I/O never stall the
event loop that drains the aggregation channel.
"""

import logging
import sys
from datetime import datetime
from logging.handlers import QueueHandler, QueueListener
from pathlib import Path
from queue import Queue
from typing import Any

import orjson

from dexarb.config.constants import (
    LOG_DATE_FORMAT,
    LOG_FILE_TIME_FORMAT,
    LOG_FORMAT,
    MAX_LOG_QUEUE_SIZE,
)


# Standard LogRecord attributes, excluded when collecting extras
_RECORD_ATTRS = frozenset(vars(logging.makeLogRecord({}))) | {"message", "asctime", "taskName"}


class MicrosecondFormatter(logging.Formatter):
    """Formatter with microsecond precision timestamps."""

    def formatTime(self, record: logging.LogRecord, datefmt: str | None = None) -> str:
        """Format time with microseconds."""
        ct = datetime.fromtimestamp(record.created)
        s = ct.strftime(datefmt or LOG_DATE_FORMAT)
        return f"{s}.{int(record.msecs * 1000):06d}"


class JsonFormatter(MicrosecondFormatter):
    """
    One JSON object per record.

    Structured payloads passed as `extra={"fields": {...}}` are merged
    into the top level of the object.
    """

    def format(self, record: logging.LogRecord) -> str:
        payload: dict[str, Any] = {
            "time": self.formatTime(record),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }

        fields = getattr(record, "fields", None)
        if isinstance(fields, dict):
            payload.update(fields)

        for key, value in vars(record).items():
            if key not in _RECORD_ATTRS and key != "fields" and key not in payload:
                payload[key] = value

        if record.exc_info:
            payload["exception"] = self.formatException(record.exc_info)

        return orjson.dumps(payload, default=str).decode()


def log_file_path(log_dir: Path, started_at: datetime | None = None) -> Path:
    """
    Build the per-run log file path, e.g. logs/20240101_120000.log.

    Args:
        log_dir: Directory holding log files.
        started_at: Run start time (default: now).
    """
    started_at = started_at or datetime.now()
    return log_dir / f"{started_at.strftime(LOG_FILE_TIME_FORMAT)}.log"


class AsyncLogger:
    """
    Async-friendly logger with queue-based output.

    All logging calls are non-blocking - messages are queued
    and written by a background thread.
    """

    def __init__(
        self,
        name: str,
        level: int = logging.INFO,
        log_file: Path | None = None,
        json_format: bool = False,
    ) -> None:
        """
        Initialize async logger.

        Args:
            name: Logger name.
            level: Logging level.
            log_file: Optional file path for logging.
            json_format: Emit JSON lines instead of plain text.
        """
        self._name = name
        self._level = level
        self._log_file = log_file
        self._json_format = json_format
        self._queue: Queue[logging.LogRecord] = Queue(maxsize=MAX_LOG_QUEUE_SIZE)
        self._listener: QueueListener | None = None
        self._queue_handler: QueueHandler | None = None
        self._handlers: list[logging.Handler] = []
        self._logger = logging.getLogger(name)

    @property
    def log_file(self) -> Path | None:
        """Path of the log file, if file logging is enabled."""
        return self._log_file

    def _make_formatter(self) -> logging.Formatter:
        if self._json_format:
            return JsonFormatter()
        return MicrosecondFormatter(LOG_FORMAT, LOG_DATE_FORMAT)

    def start(self) -> None:
        """Start the async logging system."""
        formatter = self._make_formatter()
        handlers: list[logging.Handler] = []

        # Console handler
        console_handler = logging.StreamHandler(sys.stdout)
        console_handler.setFormatter(formatter)
        console_handler.setLevel(self._level)
        handlers.append(console_handler)

        # File handler (if configured)
        if self._log_file:
            self._log_file.parent.mkdir(parents=True, exist_ok=True)
            file_handler = logging.FileHandler(self._log_file, encoding="utf-8")
            file_handler.setFormatter(formatter)
            file_handler.setLevel(logging.DEBUG)  # Log everything to file
            handlers.append(file_handler)

        # Set up queue handler for non-blocking logging
        self._queue_handler = QueueHandler(self._queue)
        self._logger.addHandler(self._queue_handler)
        self._logger.setLevel(self._level)

        self._handlers = handlers
        self._listener = QueueListener(
            self._queue,
            *handlers,
            respect_handler_level=True,
        )
        self._listener.start()

    def stop(self) -> None:
        """Flush pending records and stop the listener."""
        if self._listener:
            self._listener.stop()
            self._listener = None

        for handler in self._handlers:
            handler.close()
        self._handlers = []

        if self._queue_handler:
            self._logger.removeHandler(self._queue_handler)
            self._queue_handler = None

    @property
    def logger(self) -> logging.Logger:
        """Get the underlying logger."""
        return self._logger

    def __enter__(self) -> "AsyncLogger":
        """Context manager entry."""
        self.start()
        return self

    def __exit__(self, *args: object) -> None:
        """Context manager exit."""
        self.stop()


def log_banner(logger: logging.Logger, title: str, lines: list[str]) -> None:
    """Log a start banner."""
    rule = "=" * 60
    logger.info(rule)
    logger.info(f"  {title}")
    for line in lines:
        logger.info(f"  {line}")
    logger.info(rule)


def setup_logging(
    level: str = "INFO",
    log_dir: Path | None = None,
    json_format: bool = False,
) -> AsyncLogger:
    """
    Set up application-wide logging.

    Args:
        level: Log level (DEBUG, INFO, WARNING, ERROR).
        log_dir: Directory for the per-run log file (None: console only).
        json_format: Emit JSON lines instead of plain text.

    Returns:
        Configured AsyncLogger instance.
    """
    numeric_level = getattr(logging, level.upper(), logging.INFO)

    root_logger = logging.getLogger()
    root_logger.setLevel(numeric_level)

    # Remove existing handlers
    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)

    async_logger = AsyncLogger(
        name="dexarb",
        level=numeric_level,
        log_file=log_file_path(log_dir) if log_dir is not None else None,
        json_format=json_format,
    )
    async_logger.start()

    # Suppress noisy third-party loggers
    logging.getLogger("aiohttp").setLevel(logging.WARNING)
    logging.getLogger("asyncio").setLevel(logging.WARNING)

    return async_logger
