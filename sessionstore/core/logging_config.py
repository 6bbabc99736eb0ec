"""
Structured logging configuration for the session store.

Provides JSON-formatted logging with redaction of session identifiers and
payloads. Session ids are bearer tokens: log them as extra fields only.
"""

import json
import logging
import sys
from datetime import datetime, timezone
from typing import Any

from sessionstore.core.config import Settings

_RESERVED_ATTRS = {
    'name', 'msg', 'args', 'levelname', 'levelno', 'pathname',
    'filename', 'module', 'lineno', 'funcName', 'created',
    'msecs', 'relativeCreated', 'thread', 'threadName',
    'processName', 'process', 'exc_info', 'exc_text', 'stack_info',
    'taskName', 'message', 'asctime',
}

SENSITIVE_KEYWORDS = {
    'sid', 'session_id', 'cookie', 'payload', 'json',
    'secret', 'password', 'token',
}


class StructuredFormatter(logging.Formatter):
    """
    JSON formatter for structured logging.
    """

    def __init__(self, include_sensitive: bool = False):
        """
        Initialize structured formatter.

        Args:
            include_sensitive: Whether to include session ids and payloads in logs
        """
        super().__init__()
        self.include_sensitive = include_sensitive

    def format(self, record: logging.LogRecord) -> str:
        """Format log record as JSON"""

        log_entry = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "module": record.module,
            "function": record.funcName,
            "line": record.lineno,
        }

        if record.exc_info:
            log_entry["exception"] = self.formatException(record.exc_info)

        extra_fields = {}
        for key, value in record.__dict__.items():
            if key in _RESERVED_ATTRS:
                continue
            if not self.include_sensitive and self._is_sensitive_field(key):
                extra_fields[key] = "[REDACTED]"
            else:
                extra_fields[key] = value

        if extra_fields:
            log_entry["extra"] = extra_fields

        return json.dumps(log_entry, default=self._json_default)

    def _is_sensitive_field(self, key: str) -> bool:
        """Check if field contains session identifiers or payloads"""
        key_lower = key.lower()
        return any(keyword in key_lower for keyword in SENSITIVE_KEYWORDS)

    def _json_default(self, obj: Any) -> str:
        """JSON serializer for objects not serializable by default"""
        if isinstance(obj, datetime):
            return obj.isoformat()
        return str(obj)


def setup_logging(
    log_level: str = "INFO",
    enable_json: bool = True,
    include_sensitive: bool = False
) -> None:
    """Install a single stdout handler on the root logger"""
    if enable_json:
        formatter = StructuredFormatter(include_sensitive=include_sensitive)
    else:
        formatter = logging.Formatter("%(asctime)s %(levelname)s [%(name)s] %(message)s")

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(formatter)

    root_logger = logging.getLogger()
    root_logger.handlers[:] = [handler]
    root_logger.setLevel(log_level.upper())

    # SQL echo would print bound session ids
    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)


def init_store_logging(config: Settings) -> None:
    """Initialize logging from store settings"""
    setup_logging(
        log_level=config.LOG_LEVEL,
        enable_json=config.LOG_JSON,
        include_sensitive=config.LOG_INCLUDE_SENSITIVE,
    )

    logger = logging.getLogger("sessionstore.startup")
    logger.info(
        "Structured logging initialized",
        extra={
            "structured": config.LOG_JSON,
            "log_level": config.LOG_LEVEL,
        }
    )
