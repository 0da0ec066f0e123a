"""
Centralized Logging Utility with Structured Logging Support

Provides JSON-formatted logging, optional log rotation and a text format for
the CLI. Records carry a correlation ID; the CLI renews it with
``set_correlation_id`` whenever a fresh timing run starts, so the lap, save and
upload records of one run can be grouped.
"""

import logging
import json
import sys
from datetime import datetime, timezone
from logging.handlers import RotatingFileHandler
from typing import Any, Dict, Optional
from pathlib import Path
import uuid


TEXT_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


class JSONFormatter(logging.Formatter):
    """Custom JSON formatter for structured logging."""

    def format(self, record: logging.LogRecord) -> str:
        """Format log record as JSON."""
        log_data: Dict[str, Any] = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "module": record.module,
            "function": record.funcName,
            "line": record.lineno,
        }

        if hasattr(record, "correlation_id"):
            log_data["correlation_id"] = record.correlation_id

        # Structured fields passed as extra={"extra_data": {...}}
        if hasattr(record, "extra_data"):
            log_data["extra"] = record.extra_data

        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)

        return json.dumps(log_data, default=str)


class CorrelationIdFilter(logging.Filter):
    """Filter to add correlation ID to log records."""

    def __init__(self, correlation_id: Optional[str] = None):
        super().__init__()
        self.correlation_id = correlation_id or str(uuid.uuid4())

    def filter(self, record: logging.LogRecord) -> bool:
        """Add correlation ID to record."""
        if not hasattr(record, "correlation_id"):
            record.correlation_id = self.correlation_id
        return True


def setup_logging(
    log_level: str = "INFO",
    log_format: str = "json",
    log_file: Optional[str] = None,
    enable_console: bool = True,
) -> None:
    """
    Setup centralized logging configuration.

    Args:
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        log_format: Format type ('json' or 'text')
        log_file: Optional file path for log output
        enable_console: Whether to enable console output
    """
    root_logger = logging.getLogger()
    root_logger.setLevel(getattr(logging, log_level.upper()))

    root_logger.handlers.clear()

    if log_format == "json":
        formatter: logging.Formatter = JSONFormatter()
    else:
        formatter = logging.Formatter(TEXT_FORMAT, datefmt="%Y-%m-%d %H:%M:%S")

    correlation = CorrelationIdFilter()

    # Console output goes to stderr so CLI stdout stays machine-readable
    if enable_console:
        console_handler = logging.StreamHandler(sys.stderr)
        console_handler.setFormatter(formatter)
        console_handler.addFilter(correlation)
        root_logger.addHandler(console_handler)

    if log_file:
        log_path = Path(log_file)
        log_path.parent.mkdir(parents=True, exist_ok=True)

        file_handler = RotatingFileHandler(
            log_file,
            maxBytes=5 * 1024 * 1024,  # 5MB
            backupCount=3,
        )
        file_handler.setFormatter(formatter)
        file_handler.addFilter(correlation)
        root_logger.addHandler(file_handler)


def setup_logging_from_settings(logging_settings) -> None:
    """
    Configure logging from a ``LoggingSettings`` section.

    Args:
        logging_settings: ``config.settings.LoggingSettings`` instance
    """
    setup_logging(
        log_level=logging_settings.level,
        log_format=logging_settings.format,
        log_file=logging_settings.file_path,
        enable_console=logging_settings.enable_console,
    )


def get_logger(name: str, extra_data: Optional[Dict[str, Any]] = None) -> logging.Logger:
    """
    Get a logger instance with optional extra data.

    Args:
        name: Logger name (typically __name__)
        extra_data: Optional dictionary of extra fields to include in logs

    Returns:
        Configured logger instance
    """
    logger = logging.getLogger(name)

    if extra_data:
        logger = logging.LoggerAdapter(logger, {"extra_data": extra_data})  # type: ignore[assignment]

    return logger


def set_correlation_id(correlation_id: str) -> None:
    """
    Replace the correlation ID stamped on subsequent records.

    Args:
        correlation_id: Identifier shared by every record of a timing run
    """
    for handler in logging.getLogger().handlers:
        for filter_obj in handler.filters:
            if isinstance(filter_obj, CorrelationIdFilter):
                filter_obj.correlation_id = correlation_id
