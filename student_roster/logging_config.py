"""
JSON log output for the roster service.

Every log line is one JSON object. Loggers are grouped into channels:

- http: request start/finish and intent outcomes
- db: writes to the kv_store table
- store: roster loads and mutations
- controller: submits, rejected forms, edit state changes

The request ID set by the HTTP middleware is attached to every entry
logged while that request is being handled.
"""

import logging
import json
import os
import uuid
from datetime import datetime, timezone
from contextvars import ContextVar

request_id_var: ContextVar[str] = ContextVar("request_id", default="")

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()

LOGGER_PREFIX = "student_roster"
CHANNELS = ["http", "db", "store", "controller"]


def _utc_timestamp() -> str:
    # Millisecond precision, "Z" suffix
    return datetime.now(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


class StructuredJsonFormatter(logging.Formatter):
    """
    Render a record as a JSON object with the keys
    timestamp, level, message, channel, context and extra.

    `context` holds identifiers (request_id, student_id, store_key);
    `extra` holds measurements and details (duration_ms, record_count).
    """

    def format(self, record: logging.LogRecord) -> str:
        channel = getattr(record, "channel", None) or record.name.rsplit(".", 1)[-1]
        context = {"request_id": request_id_var.get("")}
        context.update(getattr(record, "context", None) or {})

        return json.dumps({
            "timestamp": _utc_timestamp(),
            "level": record.levelname,
            "message": record.getMessage(),
            "channel": channel,
            "context": context,
            "extra": getattr(record, "extra_data", None) or {},
        }, default=str)


def _level() -> int:
    return getattr(logging, LOG_LEVEL, logging.INFO)


def setup_logging():
    """Send all output through one stdout handler using the JSON formatter."""
    handler = logging.StreamHandler()
    handler.setFormatter(StructuredJsonFormatter())

    root_logger = logging.getLogger()
    root_logger.setLevel(_level())
    root_logger.handlers = [handler]

    for channel in CHANNELS:
        get_logger(channel).setLevel(_level())

    return root_logger


def get_logger(channel: str) -> logging.Logger:
    return logging.getLogger(f"{LOGGER_PREFIX}.{channel}")


def log_with_context(logger: logging.Logger, level: str, message: str,
                     context: dict = None, extra_data: dict = None):
    """
    Log `message` on a channel logger with identifiers and details attached.

    Args:
        logger: Channel logger from get_logger()
        level: Level name, e.g. "INFO" or "WARNING"
        message: Human-readable message
        context: Identifiers for the entry, e.g. {"student_id": ...}
        extra_data: Details such as {"duration_ms": 1.2}
    """
    logger.log(
        getattr(logging, level.upper(), logging.INFO),
        message,
        extra={
            "context": context or {},
            "extra_data": extra_data or {},
            "channel": logger.name.rsplit(".", 1)[-1],
        }
    )


def generate_request_id() -> str:
    return str(uuid.uuid4())
