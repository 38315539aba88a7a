"""
Central logging configuration for the Furioza forum core.

Every record carries two correlation fields taken from context variables:
``request_id`` (bound by RequestIdMiddleware) and ``actor_id`` (bound when a
bearer token resolves to a profile). Production emits one JSON object per
line; development uses a compact single-line format.

Usage:
    from furioza.logging_config import get_logger
    logger = get_logger(__name__)
    logger.info("Thread locked", extra={"thread_id": str(thread_id)})
"""

import json
import logging
import sys
import uuid
from contextvars import ContextVar
from datetime import datetime, timezone
from typing import Any, Dict, Optional, Union

request_id_var: ContextVar[Optional[str]] = ContextVar("request_id", default=None)
actor_id_var: ContextVar[Optional[str]] = ContextVar("actor_id", default=None)

# Placeholder for correlation fields outside a request or before authentication
UNBOUND = "-"

_CONTEXT_FIELDS = ("request_id", "actor_id")

_RECORD_ATTRS = frozenset(vars(logging.LogRecord("", 0, "", 0, "", None, None))) | {
    "message", "asctime", "taskName", *_CONTEXT_FIELDS,
}

# Libraries that log every statement or request at INFO
_NOISY_LOGGERS = ("uvicorn.access", "sqlalchemy.engine", "aiosqlite")


def get_request_id() -> Optional[str]:
    return request_id_var.get()


def bind_actor(actor_id: Union[uuid.UUID, str, None]) -> None:
    """Attach the acting profile to every record logged in this context."""
    actor_id_var.set(str(actor_id) if actor_id is not None else None)


class LogContextFilter(logging.Filter):
    """Fill correlation fields from context unless the call passed them in extra."""

    def filter(self, record: logging.LogRecord) -> bool:
        context = {"request_id": request_id_var.get(), "actor_id": actor_id_var.get()}
        for field in _CONTEXT_FIELDS:
            if getattr(record, field, None) is None:
                setattr(record, field, context[field] or UNBOUND)
        return True


class JsonFormatter(logging.Formatter):
    """One JSON object per record for production log aggregation."""

    def format(self, record: logging.LogRecord) -> str:
        entry: Dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        for field in _CONTEXT_FIELDS:
            value = getattr(record, field, UNBOUND)
            if value != UNBOUND:
                entry[field] = value

        if record.exc_info:
            entry["exception"] = self.formatException(record.exc_info)

        for key, value in record.__dict__.items():
            if key in _RECORD_ATTRS or value is None:
                continue
            entry[key] = value if isinstance(value, (str, int, float, bool)) else str(value)

        return json.dumps(entry, default=str)


def _dev_formatter() -> logging.Formatter:
    return logging.Formatter(
        "%(asctime)s %(levelname)-5s [%(name)s] req=%(request_id)s actor=%(actor_id)s %(message)s",
        datefmt="%H:%M:%S",
    )


def configure_logging(
    *,
    log_level: str = "INFO",
    environment: str = "development",
    debug: bool = False,
) -> None:
    """
    Configure application-wide logging.

    Args:
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR)
        environment: 'development' or 'production'
        debug: If True, use DEBUG level regardless of log_level
    """
    level = logging.DEBUG if debug else getattr(logging, log_level.upper(), logging.INFO)

    root = logging.getLogger()
    root.setLevel(level)
    for existing in root.handlers[:]:
        root.removeHandler(existing)

    handler = logging.StreamHandler(sys.stderr)
    handler.setLevel(level)
    handler.addFilter(LogContextFilter())
    handler.setFormatter(JsonFormatter() if environment == "production" else _dev_formatter())
    root.addHandler(handler)

    for name in _NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)


def get_logger(name: str) -> logging.Logger:
    return logging.getLogger(name)
