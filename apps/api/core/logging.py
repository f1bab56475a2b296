"""
Structured logging configuration.

Every line carries the service name and environment so API, migration and
CLI output can share one sink. JSON in production; in development a plain
line with the structured fields appended as key=value.
"""
import logging
import sys
import json
from datetime import datetime, timezone
from typing import Any, Dict
from core.config import settings

SERVICE_NAME = "hridaya-api"

# Libraries that log every request or statement at INFO
QUIET_LOGGERS = ("sqlalchemy.engine", "httpx", "anthropic", "alembic.runtime.migration")


def _extra_fields(record: logging.LogRecord) -> Dict[str, Any]:
    # Callers pass structured fields via extra={"extra_fields": {...}}
    return getattr(record, "extra_fields", None) or {}


class JSONFormatter(logging.Formatter):
    """One JSON object per line."""

    def __init__(self, service: str = SERVICE_NAME, environment: str = "development"):
        super().__init__()
        self.service = service
        self.environment = environment

    def format(self, record: logging.LogRecord) -> str:
        log_data: Dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, timezone.utc).isoformat(),
            "service": self.service,
            "environment": self.environment,
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "line": record.lineno,
        }

        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)

        for key, value in _extra_fields(record).items():
            log_data.setdefault(key, value)

        return json.dumps(log_data, default=str)


class TextFormatter(logging.Formatter):
    """Human-readable line for local runs: `... - message method=GET status_code=200`."""

    def __init__(self):
        super().__init__("%(asctime)s - %(name)s - %(levelname)s - %(message)s")

    def format(self, record: logging.LogRecord) -> str:
        line = super().format(record)
        fields = _extra_fields(record)
        if fields:
            line += " " + " ".join(f"{key}={value}" for key, value in fields.items())
        return line


def setup_logging():
    """
    Configure application-wide logging.

    Called explicitly by the API entry point and the migration runner;
    importing this module configures nothing.
    """
    log_level = getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO)

    if settings.LOG_FORMAT == "json" or settings.ENVIRONMENT == "production":
        formatter = JSONFormatter(environment=settings.ENVIRONMENT)
    else:
        formatter = TextFormatter()

    root_logger = logging.getLogger()
    root_logger.setLevel(log_level)
    root_logger.handlers.clear()

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(log_level)
    console_handler.setFormatter(formatter)
    root_logger.addHandler(console_handler)

    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)

    return root_logger
