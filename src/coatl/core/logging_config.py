"""
Coatl - Structured Logging Configuration

Configures structured JSON logging for the contract runtime:
- JSON format for easy parsing and aggregation
- Log rotation to prevent disk space issues
- Console and file handlers

Contract modules log with ``logging.getLogger(__name__)`` and attach their
structured fields through ``extra={"event": ..., ...}``; this module only
decides where those records go and how they are rendered.

Usage:
    from coatl.core.logging_config import setup_logging

    logger = setup_logging(name="coatl", level="INFO")
    logger.info("Tokens purchased", extra={"event": "ico.purchase", "tokens": 20000})
"""

import logging
import logging.handlers
import sys
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, Optional

from pythonjsonlogger import jsonlogger

from coatl.core import config


class CustomJsonFormatter(jsonlogger.JsonFormatter):
    """
    JSON formatter with timestamp, environment and service fields.
    """

    def __init__(
        self,
        fmt: str = "%(timestamp)s %(level)s %(name)s %(message)s",
        timestamp: bool = True,
        environment: Optional[str] = None,
        service_name: str = "coatl",
    ):
        super().__init__(fmt=fmt)
        self.timestamp = timestamp
        self.environment = environment or config.NETWORK
        self.service_name = service_name

    def add_fields(
        self,
        log_record: Dict[str, Any],
        record: logging.LogRecord,
        message_dict: Dict[str, Any],
    ) -> None:
        """Add custom fields to log record."""
        super().add_fields(log_record, record, message_dict)

        if self.timestamp and not log_record.get("timestamp"):
            log_record["timestamp"] = datetime.now(timezone.utc).isoformat()

        log_record["environment"] = self.environment
        log_record["service"] = self.service_name

        if not log_record.get("level"):
            log_record["level"] = record.levelname.lower()

        log_record["source"] = {
            "function": record.funcName,
            "module": record.module,
            "line": record.lineno,
        }


def setup_logging(
    name: str = "coatl",
    log_file: Optional[str] = None,
    level: Optional[str] = None,
    environment: Optional[str] = None,
    enable_console: bool = True,
    max_bytes: int = 50 * 1024 * 1024,  # 50MB
    backup_count: int = 10,
) -> logging.Logger:
    """
    Setup structured JSON logging.

    Args:
        name: Logger name (``coatl`` configures every contract module)
        log_file: Path to JSON log file (defaults to ``COATL_LOG_FILE``)
        level: Logging level (defaults to ``COATL_LOG_LEVEL``)
        environment: Environment identifier (defaults to ``COATL_NETWORK``)
        enable_console: Whether to log to stdout
        max_bytes: Maximum log file size before rotation
        backup_count: Number of backup files to keep

    Returns:
        Configured logger instance
    """
    level_name = (level or config.LOG_LEVEL).upper()
    numeric_level = getattr(logging, level_name, None)
    if not isinstance(numeric_level, int):
        raise config.ConfigurationError(f"Unknown log level: {level_name}")

    logger = logging.getLogger(name)
    logger.setLevel(numeric_level)

    # Remove existing handlers to avoid duplicates
    logger.handlers = []

    formatter = CustomJsonFormatter(
        environment=environment,
        service_name=name.split(".")[0],
    )

    if enable_console:
        console_handler = logging.StreamHandler(sys.stdout)
        console_handler.setLevel(numeric_level)
        console_handler.setFormatter(formatter)
        logger.addHandler(console_handler)

    log_file = log_file or config.LOG_FILE
    if log_file:
        log_path = Path(log_file)
        log_path.parent.mkdir(parents=True, exist_ok=True)

        file_handler = logging.handlers.RotatingFileHandler(
            filename=log_file,
            maxBytes=max_bytes,
            backupCount=backup_count,
        )
        file_handler.setLevel(numeric_level)
        file_handler.setFormatter(formatter)
        logger.addHandler(file_handler)

    return logger


def get_logger(name: str, log_file: Optional[str] = None, level: Optional[str] = None) -> logging.Logger:
    """
    Get or create a logger with standard configuration.

    Only configures handlers the first time a given name is requested.
    """
    logger = logging.getLogger(name)
    if not logger.handlers:
        return setup_logging(name=name, log_file=log_file, level=level)
    return logger
