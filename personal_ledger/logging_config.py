"""
Structured Logging Configuration Module

Provides JSON-formatted structured logging for ledger operations.
"""

import logging
import json
from datetime import datetime, timezone
from typing import Optional


class JSONFormatter(logging.Formatter):
    """JSON formatter for structured logging"""

    def format(self, record):
        log_entry = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "module": record.module if hasattr(record, 'module') else record.name,
            "message": record.getMessage(),
            "action": getattr(record, 'action', None),
            "resource": getattr(record, 'resource', None),
            "extra": getattr(record, 'extra', None)
        }

        # Remove None values
        log_entry = {k: v for k, v in log_entry.items() if v is not None}

        # Add exception info if present
        if record.exc_info:
            log_entry['exception'] = self.formatException(record.exc_info)

        return json.dumps(log_entry, default=str)


TEXT_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"


def setup_logging(level: str = "INFO", fmt: str = "json", log_file: Optional[str] = None,
                  logger_name: str = "personal_ledger") -> logging.Logger:
    """
    Setup structured logging for the application.

    Args:
        level: Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        fmt: "json" or "text"
        log_file: Optional file to log to instead of stderr
        logger_name: Name of the logger

    Returns:
        Configured logger instance
    """
    logger = logging.getLogger(logger_name)

    # Remove existing handlers to avoid duplicates
    for handler in logger.handlers[:]:
        logger.removeHandler(handler)
        handler.close()

    handler = logging.FileHandler(log_file) if log_file else logging.StreamHandler()
    if fmt == "json":
        handler.setFormatter(JSONFormatter())
    else:
        handler.setFormatter(logging.Formatter(TEXT_FORMAT, datefmt="%Y-%m-%d %H:%M:%S"))

    logger.addHandler(handler)
    logger.setLevel(getattr(logging, level.upper(), logging.INFO))

    # Prevent propagation to avoid duplicate logs
    logger.propagate = False

    return logger


def get_logger(name: str = "personal_ledger") -> logging.Logger:
    """Get logger instance"""
    return logging.getLogger(name)


def log_action(logger: logging.Logger, level: str, message: str,
               action: Optional[str] = None, resource: Optional[str] = None,
               extra: Optional[dict] = None):
    """
    Log an action with structured data.

    Args:
        logger: Logger instance
        level: Log level (info, warning, error, etc.)
        message: Log message
        action: Action being performed
        resource: Resource being acted upon (an account number)
        extra: Additional structured data
    """
    fields = {}
    if action:
        fields['action'] = action
    if resource:
        fields['resource'] = resource
    if extra:
        fields['extra'] = extra

    logger.log(getattr(logging, level.upper()), message, extra=fields)
