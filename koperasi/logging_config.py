"""
Structured Logging Configuration Module

JSON (or plain text) log lines for meeting, attendance and voting operations.
Structured fields travel as LogRecord attributes; the request correlation id
is bound once per HTTP request and stamped onto every record logged while
that request is handled.
"""

import contextvars
import json
import logging
from datetime import datetime, timezone
from typing import Any, Dict, Optional


TEXT_FORMAT = "%(asctime)s %(levelname)s [%(name)s] [%(correlation_id)s] %(message)s"

STRUCTURED_FIELDS = ("correlation_id", "user_id", "action", "resource", "extra")

_correlation_id: contextvars.ContextVar[Optional[str]] = contextvars.ContextVar(
    "koperasi_correlation_id", default=None
)


def bind_correlation_id(value: Optional[str]) -> contextvars.Token:
    """Bind a correlation id to the current context; pass the token to reset"""
    return _correlation_id.set(value)


def reset_correlation_id(token: contextvars.Token) -> None:
    _correlation_id.reset(token)


def current_correlation_id() -> Optional[str]:
    return _correlation_id.get()


class CorrelationFilter(logging.Filter):
    """Fills in correlation_id from the bound context when a record lacks one"""

    def filter(self, record: logging.LogRecord) -> bool:
        if getattr(record, "correlation_id", None) is None:
            record.correlation_id = current_correlation_id()
        return True


class JSONFormatter(logging.Formatter):
    """One JSON object per record"""

    def format(self, record):
        entry: Dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        for name in STRUCTURED_FIELDS:
            value = getattr(record, name, None)
            if value is not None:
                entry[name] = value

        if record.exc_info:
            entry["exception"] = self.formatException(record.exc_info)

        return json.dumps(entry, default=str)


def _build_handler(log_format: str, log_file: Optional[str]) -> logging.Handler:
    handler = logging.FileHandler(log_file) if log_file else logging.StreamHandler()
    if log_format == "json":
        handler.setFormatter(JSONFormatter())
    else:
        handler.setFormatter(logging.Formatter(TEXT_FORMAT))
    handler.addFilter(CorrelationFilter())
    return handler


def setup_logging(level: str = "INFO", logger_name: str = "koperasi",
                  log_format: str = "json", log_file: Optional[str] = None) -> logging.Logger:
    """
    Configure the application logger.

    Args:
        level: Log level name (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        logger_name: Root of the application's logger hierarchy
        log_format: "json" for structured output, "text" for plain lines
        log_file: Optional file path; logs go to stderr when omitted

    Returns:
        The configured logger. Calling again replaces its handler.
    """
    logger = logging.getLogger(logger_name)
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()

    logger.addHandler(_build_handler(log_format, log_file))
    logger.setLevel(getattr(logging, level.upper()))
    logger.propagate = False

    return logger


def get_logger(name: str = "koperasi") -> logging.Logger:
    return logging.getLogger(name)


def log_action(logger: logging.Logger, level: str, message: str,
               user_id: Optional[str] = None, action: Optional[str] = None,
               resource: Optional[str] = None, correlation_id: Optional[str] = None,
               extra: Optional[dict] = None):
    """
    Log a domain action with structured fields.

    Args:
        logger: Logger to emit on
        level: Level name (info, warning, error, ...)
        message: Human-readable message
        user_id: Member or operator performing the action
        action: Operation name, e.g. "submit_vote"
        resource: Resource acted upon, e.g. "meeting:3"
        correlation_id: Overrides the correlation id bound to the context
        extra: Additional structured data
    """
    fields = {
        "user_id": user_id,
        "action": action,
        "resource": resource,
        "correlation_id": correlation_id,
        "extra": extra,
    }
    logger.log(
        getattr(logging, level.upper()),
        message,
        extra={k: v for k, v in fields.items() if v}
    )
