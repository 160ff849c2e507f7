"""
Structured logging helpers.

Turns job context (enums, timestamps, reason lists, exceptions) into flat
string attributes on the log record so formatters and log shippers never
see arbitrary objects.

Dependencies: logging (stdlib)
System role: Logging helper functions for the ingestion core
"""

import enum
import logging
from datetime import datetime
from typing import Any

MAX_VALUE_LENGTH = 300
MAX_LISTED_ITEMS = 5


def safe_log_value(value: Any, max_length: int = MAX_VALUE_LENGTH) -> str:
    """
    Render one context value for a log record.

    Short sequences are listed inline, longer ones are summarised by size.

    Args:
        value: Value to render
        max_length: Length after which the rendering is truncated

    Returns:
        str: Flat string representation
    """
    try:
        if value is None:
            text = "None"
        elif isinstance(value, enum.Enum):
            text = str(value.value)
        elif isinstance(value, datetime):
            text = value.isoformat()
        elif isinstance(value, (list, tuple, set, frozenset)):
            items = list(value)
            if len(items) <= MAX_LISTED_ITEMS:
                text = ", ".join(safe_log_value(item, max_length) for item in items)
            else:
                text = f"{len(items)} items"
        elif isinstance(value, dict):
            text = f"{len(value)} keys"
        else:
            text = str(value)
    except Exception as e:
        return f"<unrenderable {type(e).__name__}>"

    if len(text) > max_length:
        return f"{text[:max_length]}... ({len(text)} chars)"
    return text


def log_with_context(
    logger: logging.Logger,
    level: int,
    message: str,
    **context: Any,
) -> None:
    """
    Log a message with every context value flattened onto the record.

    Args:
        logger: Target logger
        level: Log level (logging.INFO, etc.)
        message: Log message
        **context: Record attributes; keys must not clash with LogRecord fields
    """
    if not logger.isEnabledFor(level):
        return
    logger.log(level, message, extra={key: safe_log_value(val) for key, val in context.items()})


def log_exception_with_context(
    logger: logging.Logger,
    message: str,
    exc: BaseException,
    **context: Any,
) -> None:
    """
    Log an error with its traceback, type and machine code.

    Args:
        logger: Target logger
        message: Log message
        exc: Exception being reported
        **context: Additional record attributes
    """
    extra = {key: safe_log_value(val) for key, val in context.items()}
    extra["error_type"] = type(exc).__name__
    extra["error_code"] = getattr(exc, "code", None) or "unexpected"
    extra["error_msg"] = safe_log_value(getattr(exc, "message", None) or str(exc))
    logger.error(message, exc_info=exc, extra=extra)
