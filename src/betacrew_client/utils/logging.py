"""Structured logging setup for the feed client."""

import logging
import json
import sys
from typing import List
from datetime import datetime, timezone

from ..config.settings import LoggingConfig


# Attributes every LogRecord carries; anything else came in through ``extra``.
_RESERVED_ATTRS = frozenset([
    'name', 'msg', 'args', 'levelname', 'levelno', 'pathname', 'filename',
    'module', 'exc_info', 'exc_text', 'stack_info', 'lineno', 'funcName',
    'created', 'msecs', 'relativeCreated', 'thread', 'threadName',
    'processName', 'process', 'taskName', 'message', 'asctime',
])


class JSONFormatter(logging.Formatter):
    """JSON formatter for structured logging."""

    def format(self, record: logging.LogRecord) -> str:
        log_data = {
            'timestamp': datetime.now(timezone.utc).isoformat().replace('+00:00', 'Z'),
            'level': record.levelname,
            'logger': record.name,
            'message': record.getMessage(),
            'module': record.module,
            'function': record.funcName,
            'line': record.lineno
        }

        if record.exc_info:
            log_data['exception'] = self.formatException(record.exc_info)

        # Extra fields (service name, ctx_* context)
        for key, value in record.__dict__.items():
            if key not in _RESERVED_ATTRS:
                log_data[key] = value

        return json.dumps(log_data, default=str)


class TextFormatter(logging.Formatter):
    """Text formatter with optional colors for console output."""

    COLORS = {
        'DEBUG': '\033[36m',    # Cyan
        'INFO': '\033[32m',     # Green
        'WARNING': '\033[33m',  # Yellow
        'ERROR': '\033[31m',    # Red
        'CRITICAL': '\033[35m', # Magenta
        'RESET': '\033[0m'
    }

    def __init__(self, use_colors: bool = True):
        super().__init__()
        self.use_colors = use_colors and sys.stdout.isatty()

    def format(self, record: logging.LogRecord) -> str:
        timestamp = datetime.now(timezone.utc).strftime('%Y-%m-%d %H:%M:%S')
        level = record.levelname

        if self.use_colors and level in self.COLORS:
            level = f"{self.COLORS[level]}{level}{self.COLORS['RESET']}"

        # Format: timestamp [LEVEL] logger: message
        formatted = f"{timestamp} [{level}] {record.name}: {record.getMessage()}"

        if record.exc_info:
            formatted += "\n" + self.formatException(record.exc_info)

        return formatted


class ServiceContextFilter(logging.Filter):
    """Stamps every record with the service name."""

    def __init__(self, service_name: str):
        super().__init__()
        self.service_name = service_name

    def filter(self, record: logging.LogRecord) -> bool:
        record.service = self.service_name
        return True


def setup_logging(config: LoggingConfig, service_name: str = "betacrew-client") -> List[logging.Handler]:
    """
    Setup logging configuration for the client.

    A console handler is always installed; when ``config.file`` is set a
    second, uncolored handler writes to that file.

    Args:
        config: Logging configuration
        service_name: Name of the service for log context

    Returns:
        The handlers installed on the root logger
    """
    handlers: List[logging.Handler] = []

    if config.output.lower() == 'stderr':
        console = logging.StreamHandler(sys.stderr)
    else:
        console = logging.StreamHandler(sys.stdout)
    console.setFormatter(JSONFormatter() if config.format == 'json' else TextFormatter())
    handlers.append(console)

    if config.file:
        file_handler = logging.FileHandler(config.file)
        file_handler.setFormatter(
            JSONFormatter() if config.format == 'json' else TextFormatter(use_colors=False)
        )
        handlers.append(file_handler)

    context_filter = ServiceContextFilter(service_name)

    root_logger = logging.getLogger()
    root_logger.setLevel(getattr(logging, config.level.upper()))
    root_logger.handlers.clear()
    for handler in handlers:
        handler.addFilter(context_filter)
        root_logger.addHandler(handler)

    logging.getLogger('boto3').setLevel(logging.WARNING)
    logging.getLogger('botocore').setLevel(logging.WARNING)
    logging.getLogger('urllib3').setLevel(logging.WARNING)

    logger = logging.getLogger(__name__)
    logger.info(
        f"Logging configured: level={config.level}, format={config.format}, "
        f"output={config.output}, file={config.file}, service={service_name}"
    )
    return handlers


def _context_extra(context: dict) -> dict:
    return {f"ctx_{key}": value for key, value in context.items()}


def log_with_context(logger: logging.Logger, level: int, message: str, **context):
    """Log a message with additional context, attributed to the caller's line."""
    logger.log(level, message, extra=_context_extra(context), stacklevel=2)


def log_error_with_context(logger: logging.Logger, error: Exception, operation: str, **context):
    """Log an error with full context and exception details."""
    extra = _context_extra({
        'operation': operation,
        'error_type': type(error).__name__,
        'error_message': str(error),
        **context
    })
    logger.error(f"Error in {operation}: {error}", extra=extra, stacklevel=2)
    logger.debug(f"Full traceback for {operation}:", exc_info=error, stacklevel=2)
