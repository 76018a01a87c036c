"""Logging configuration for the extdata CLI."""

import logging
import sys
from datetime import datetime, UTC
from typing import Any

from pythonjsonlogger.json import JsonFormatter

DEFAULT_LOG_LEVEL = "WARNING"


class CustomJsonFormatter(JsonFormatter):
    """JSON formatter with timestamp and service metadata."""

    def add_fields(self, log_record: dict[str, Any], record: logging.LogRecord, message_dict: dict[str, Any]) -> None:
        super().add_fields(log_record, record, message_dict)
        log_record["timestamp"] = datetime.now(UTC).isoformat()
        log_record["level"] = record.levelname
        log_record["service"] = "extdata"


def setup_logging(level: str = DEFAULT_LOG_LEVEL, json_format: bool = False) -> None:
    """Configure root logging to stderr.

    Args:
        level: Log level name (e.g. "INFO")
        json_format: Emit one JSON object per record instead of plain text
    """
    logger = logging.getLogger()
    logger.setLevel(level.upper())

    # Remove existing handlers
    logger.handlers.clear()

    handler = logging.StreamHandler(sys.stderr)
    if json_format:
        handler.setFormatter(CustomJsonFormatter("%(timestamp)s %(level)s %(name)s %(message)s"))
    else:
        handler.setFormatter(logging.Formatter("%(asctime)s %(levelname)s %(name)s: %(message)s"))
    logger.addHandler(handler)
