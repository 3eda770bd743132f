"""
Structured logging for the apptscan service.

Single-line JSON for production (pipe through jq), colored one-liners for
local development. Stage logs carry request_id, stage and duration_ms.
"""
import json
import logging
import os
import sys
import uuid
from datetime import datetime, timezone
from typing import Any, Dict, Optional

# Attributes every LogRecord has; anything else came in via extra={}
_STANDARD_ATTRS = {
    'name', 'msg', 'args', 'created', 'filename', 'funcName',
    'levelname', 'levelno', 'lineno', 'module', 'msecs',
    'message', 'pathname', 'process', 'processName', 'relativeCreated',
    'thread', 'threadName', 'exc_info', 'exc_text', 'stack_info',
    'taskName', 'getMessage',
}

_JSON_SAFE = (str, int, float, bool, type(None), dict, list)


class JSONFormatter(logging.Formatter):
    """
    One JSON object per line.

    Fields passed through ``extra`` are included when they are JSON-safe;
    exceptions are rendered into an ``exception`` field.
    """

    def format(self, record: logging.LogRecord) -> str:
        log_data: Dict[str, Any] = {
            'timestamp': datetime.now(timezone.utc).isoformat().replace('+00:00', 'Z'),
            'level': record.levelname,
            'logger': record.name,
            'message': record.getMessage(),
        }

        for attr_name, attr_value in record.__dict__.items():
            if attr_name in _STANDARD_ATTRS or attr_name in log_data:
                continue
            if isinstance(attr_value, _JSON_SAFE):
                log_data[attr_name] = attr_value

        if record.exc_info:
            log_data['exception'] = self.formatException(record.exc_info)

        return json.dumps(log_data, ensure_ascii=False, default=str)


class PrettyJSONFormatter(logging.Formatter):
    """Readable console format for development."""

    # ANSI color codes
    COLORS = {
        'DEBUG': '\033[36m',      # Cyan
        'INFO': '\033[32m',       # Green
        'WARNING': '\033[33m',    # Yellow
        'ERROR': '\033[31m',      # Red
        'CRITICAL': '\033[35m',   # Magenta
        'RESET': '\033[0m',
    }

    # Shown inline, in this order, when present
    CONTEXT_FIELDS = ('request_id', 'stage', 'status', 'status_code', 'duration_ms')

    def format(self, record: logging.LogRecord) -> str:
        color = self.COLORS.get(record.levelname, self.COLORS['RESET'])
        reset = self.COLORS['RESET']
        timestamp = datetime.now(timezone.utc).strftime('%H:%M:%S.%f')[:-3]

        parts = [
            f"{color}[{record.levelname}]{reset}",
            timestamp,
            f"{record.name}:",
            record.getMessage(),
        ]

        context = []
        for name in self.CONTEXT_FIELDS:
            value = getattr(record, name, None)
            if value is not None:
                context.append(f"{name}={value}")
        method, path = getattr(record, 'method', None), getattr(record, 'path', None)
        if method and path:
            context.append(f"{method} {path}")
        if context:
            parts.append(f"({', '.join(context)})")

        result = ' '.join(parts)
        if record.exc_info:
            result += '\n' + self.formatException(record.exc_info)
        return result


def setup_logging(
    app_name: str = 'apptscan',
    log_level: str = 'INFO',
    log_format: str = 'json',
    log_file: Optional[str] = None
) -> logging.Logger:
    """
    Configure the application logger.

    Module loggers live under ``apptscan.*`` and inherit these handlers.

    Args:
        app_name: Root logger name for the application
        log_level: DEBUG, INFO, WARNING, ERROR or CRITICAL
        log_format: 'json' or 'pretty'
        log_file: Optional file path; file logs are always JSON

    Example:
        >>> logger = setup_logging('apptscan', 'INFO', 'json')
        >>> logger.info('Server started', extra={'port': 9001})
    """
    numeric_level = getattr(logging, log_level.upper(), logging.INFO)

    logger = logging.getLogger(app_name)
    logger.setLevel(numeric_level)
    logger.handlers = []

    formatter = PrettyJSONFormatter() if log_format == 'pretty' else JSONFormatter()

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(numeric_level)
    console_handler.setFormatter(formatter)
    logger.addHandler(console_handler)

    if log_file:
        try:
            log_dir = os.path.dirname(log_file)
            if log_dir:
                os.makedirs(log_dir, exist_ok=True)
            file_handler = logging.FileHandler(log_file)
            file_handler.setLevel(numeric_level)
            file_handler.setFormatter(JSONFormatter())
            logger.addHandler(file_handler)
        except OSError as e:
            logger.warning(f"Failed to setup file logging: {e}")

    logger.propagate = False
    return logger


def generate_request_id() -> str:
    """8-character request ID for tracing."""
    return str(uuid.uuid4())[:8]


def log_with_context(
    logger: logging.Logger,
    level: int,
    message: str,
    request_id: Optional[str] = None,
    **kwargs
):
    """
    Log with additional context fields.

    Example:
        >>> log_with_context(
        ...     logger, logging.INFO, "Stage finished",
        ...     request_id="abc123", stage="extraction", duration_ms=4.2
        ... )
    """
    extra = {}
    if request_id:
        extra['request_id'] = request_id
    extra.update(kwargs)
    logger.log(level, message, extra=extra)
