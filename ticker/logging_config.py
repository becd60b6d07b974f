"""
Logging for the ticker package.

Ticker log records may carry a ``ticker_id``, a ``source_id`` and a
``context`` dict (see log_with_context). Both formatters here render them:
the readable one as bracketed prefixes in front of the message, the JSON one
as top-level fields.

setup_logging configures the ``ticker`` logger only, so a host application
keeps control of the root logger.
"""

import json
import logging
import os
import sys
from datetime import datetime
from typing import Any, Dict, Optional, TextIO

PACKAGE_LOGGER = 'ticker'
DEBUG_ENV_VAR = 'TICKER_DEBUG'


def record_fields(record: logging.LogRecord) -> Dict[str, Any]:
    """Ticker-specific attributes attached to a log record."""
    fields: Dict[str, Any] = {}
    for name in ('ticker_id', 'source_id'):
        value = getattr(record, name, None)
        if value:
            fields[name] = value
    context = getattr(record, 'context', None)
    if isinstance(context, dict):
        fields.update(context)
    return fields


class ContextualFormatter(logging.Formatter):
    """Readable lines with ``[ticker_id=...]``-style prefixes."""

    def __init__(self, include_location: bool = False):
        if include_location:
            fmt = '%(asctime)s.%(msecs)03d %(levelname)s %(name)s %(funcName)s:%(lineno)d - %(message)s'
        else:
            fmt = '%(asctime)s.%(msecs)03d %(levelname)s %(name)s - %(message)s'
        super().__init__(fmt=fmt, datefmt='%H:%M:%S')

    def formatMessage(self, record: logging.LogRecord) -> str:
        fields = record_fields(record)
        if not fields:
            return super().formatMessage(record)

        # Prefix for this formatter only; other handlers see the record unchanged
        message = record.message
        record.message = ' '.join(f"[{k}={v}]" for k, v in fields.items()) + ' ' + message
        try:
            return super().formatMessage(record)
        finally:
            record.message = message


class JsonFormatter(logging.Formatter):
    """One JSON object per record, for log shippers."""

    def format(self, record: logging.LogRecord) -> str:
        data = {
            'time': datetime.fromtimestamp(record.created).isoformat(),
            'level': record.levelname,
            'logger': record.name,
            'message': record.getMessage(),
        }
        data.update(record_fields(record))
        if record.exc_info:
            data['exception'] = self.formatException(record.exc_info)
        return json.dumps(data, default=str)


def setup_logging(
    level: Optional[int] = None,
    json_format: bool = False,
    include_location: bool = False,
    stream: Optional[TextIO] = None
) -> logging.Logger:
    """
    Attach a single handler to the ``ticker`` logger.

    Args:
        level: Log level (INFO, or DEBUG when TICKER_DEBUG=true)
        json_format: Emit JSON lines instead of readable lines
        include_location: Add function and line to readable lines
        stream: Output stream (stderr if None)

    Returns:
        The configured package logger
    """
    if level is None:
        debug = os.environ.get(DEBUG_ENV_VAR, '').lower() == 'true'
        level = logging.DEBUG if debug else logging.INFO

    handler = logging.StreamHandler(stream or sys.stderr)
    handler.setFormatter(JsonFormatter() if json_format else ContextualFormatter(include_location))

    package_logger = logging.getLogger(PACKAGE_LOGGER)
    package_logger.handlers = [handler]
    package_logger.setLevel(level)
    package_logger.propagate = False
    return package_logger


def log_with_context(
    logger: logging.Logger,
    level: int,
    message: str,
    context: Optional[Dict[str, Any]] = None,
    ticker_id: Optional[str] = None,
    source_id: Optional[str] = None,
    exc_info: Optional[Any] = None
) -> None:
    """
    Log a message with ticker context.

    Args:
        logger: Logger instance
        level: Log level
        message: Log message
        context: Extra key/value pairs
        ticker_id: Ticker instance ID
        source_id: Data source ID
        exc_info: Exception info, as for Logger.log
    """
    extra: Dict[str, Any] = {}
    if context:
        extra['context'] = context
    if ticker_id:
        extra['ticker_id'] = ticker_id
    if source_id:
        extra['source_id'] = source_id

    logger.log(level, message, extra=extra, exc_info=exc_info)
