import logging
import sys
import json
from datetime import datetime, timezone
from typing import Any, Dict

from src.core.config import settings
from src.core.error_handling import request_id_var, run_id_var


class ContextIDFilter(logging.Filter):
    """
    Inject the current request_id and validation run_id (from ContextVars) into log records.
    """

    def filter(self, record: logging.LogRecord) -> bool:
        record.request_id = request_id_var.get() or ""
        record.run_id = run_id_var.get() or ""
        return True


class JSONFormatter(logging.Formatter):
    """
    Formatter that outputs JSON strings after parsing the LogRecord.
    """
    def format(self, record: logging.LogRecord) -> str:
        log_obj: Dict[str, Any] = {
            "timestamp": datetime.now(timezone.utc).isoformat().replace("+00:00", "Z"),
            "level": record.levelname,
            "name": record.name,
            "message": record.getMessage(),
        }

        if settings.LOG_INCLUDE_REQUEST_ID and getattr(record, "request_id", ""):
            log_obj["request_id"] = record.request_id

        if getattr(record, "run_id", ""):
            log_obj["run_id"] = record.run_id

        # Add extra fields if present
        if hasattr(record, "extra_fields"):
            log_obj.update(record.extra_fields)

        # Add exception info if present
        if record.exc_info:
            log_obj["exception"] = self.formatException(record.exc_info)

        return json.dumps(log_obj)


def build_formatter() -> logging.Formatter:
    """Formatter selected by LOG_FORMAT."""
    if settings.LOG_FORMAT.lower() == "json":
        return JSONFormatter()

    fmt = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    if settings.LOG_INCLUDE_REQUEST_ID:
        fmt += " - request_id=%(request_id)s run_id=%(run_id)s"
    return logging.Formatter(fmt)


def setup_logging() -> None:
    """
    Configure logging for the application.
    Uses JSON logging if configured, otherwise standard text logging.
    """
    log_level = getattr(logging, settings.LOG_LEVEL.upper(), logging.DEBUG)

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(build_formatter())

    # Inject context ids so formatters can include them
    handler.addFilter(ContextIDFilter())

    # Configure root logger
    root_logger = logging.getLogger()
    root_logger.setLevel(log_level)

    # Remove existing handlers to avoid duplicates
    for h in root_logger.handlers[:]:
        root_logger.removeHandler(h)

    root_logger.addHandler(handler)

    # Set level for specific loggers
    logging.getLogger("uvicorn.access").setLevel(log_level)
    logging.getLogger("uvicorn.error").setLevel(log_level)
    logging.getLogger("httpx").setLevel(logging.WARNING)  # Reduce noise from httpx
