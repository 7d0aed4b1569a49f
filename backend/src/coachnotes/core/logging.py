"""
Logging configuration for the coach notes backend.

Everything under the ``coachnotes`` logger goes to the console (JSON, or
colored lines in debug mode) and, when enabled, to rotating files. Extra
fields that could carry note content or credentials are redacted before
they are written anywhere.
"""
import json
import logging
import logging.config
import sys
import uuid
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, Optional

from ..config import get_settings

# LogRecord attributes that are not user supplied "extra" fields
_RESERVED_ATTRS = frozenset((
    'name', 'msg', 'args', 'levelname', 'levelno', 'pathname', 'filename', 'module',
    'exc_info', 'exc_text', 'stack_info', 'lineno', 'funcName', 'created', 'msecs',
    'relativeCreated', 'thread', 'threadName', 'processName', 'process', 'taskName',
    'getMessage', 'message', 'asctime', 'color_message',
))

# never logged, whatever the caller passes
SENSITIVE_KEYS = frozenset((
    'body', 'plaintext', 'ciphertext', 'searchable_content', 'token', 'authorization',
    'password', 'secret_key',
))
REDACTED = '[REDACTED]'


def record_extras(record: logging.LogRecord) -> Dict[str, Any]:
    """User supplied fields of a record, sensitive values replaced."""
    return {
        key: (REDACTED if key.lower() in SENSITIVE_KEYS else value)
        for key, value in record.__dict__.items()
        if key not in _RESERVED_ATTRS
    }


class JSONFormatter(logging.Formatter):
    """One JSON object per line."""

    def format(self, record: logging.LogRecord) -> str:
        entry: Dict[str, Any] = {
            'timestamp': datetime.fromtimestamp(record.created, timezone.utc).isoformat(),
            'level': record.levelname,
            'logger': record.name,
            'message': record.getMessage(),
            'location': f"{record.module}.{record.funcName}:{record.lineno}",
        }

        extra = record_extras(record)
        if extra:
            entry['extra'] = extra

        if record.exc_info and record.exc_info[0] is not None:
            entry['exception'] = {
                'type': record.exc_info[0].__name__,
                'traceback': self.formatException(record.exc_info),
            }

        return json.dumps(entry, ensure_ascii=False, default=str)


class ConsoleFormatter(logging.Formatter):
    """Human readable lines for local development, colored by level."""

    COLORS = {
        logging.DEBUG: '\033[36m',
        logging.INFO: '\033[32m',
        logging.WARNING: '\033[33m',
        logging.ERROR: '\033[31m',
        logging.CRITICAL: '\033[35m',
    }
    DIM = '\033[90m'
    RESET = '\033[0m'

    def format(self, record: logging.LogRecord) -> str:
        # the record is shared with other handlers, so it is not modified
        color = self.COLORS.get(record.levelno, '')
        line = (
            f"{self.formatTime(record, '%H:%M:%S')} "
            f"{color}{record.levelname:<8}{self.RESET} "
            f"{self.DIM}{record.name}{self.RESET} {record.getMessage()}"
        )
        extra = record_extras(record)
        if extra:
            line += ' ' + ' '.join(f"{k}={v}" for k, v in extra.items())
        if record.exc_info:
            line += '\n' + self.formatException(record.exc_info)
        return line


def get_log_level(level_str: Optional[str] = None) -> int:
    """Numeric level for a name, INFO when unknown."""
    name = (level_str or get_settings().log_level).upper()
    level = logging.getLevelName(name)
    return level if isinstance(level, int) else logging.INFO


def _file_handler(path: Path, formatter: str, level: str) -> Dict[str, Any]:
    return {
        'class': 'logging.handlers.RotatingFileHandler',
        'filename': path,
        'maxBytes': 10_000_000,  # 10MB
        'backupCount': 5,
        'formatter': formatter,
        'level': level,
    }


def setup_logging() -> None:
    """Configure the coachnotes, uvicorn, sqlalchemy and alembic loggers."""
    settings = get_settings()

    handlers: Dict[str, Dict[str, Any]] = {
        'console': {
            'class': 'logging.StreamHandler',
            'formatter': 'console' if settings.debug else 'json',
            'stream': sys.stdout,
            'level': get_log_level(),
        },
    }
    app_handlers = ['console']

    if settings.log_to_file:
        log_dir = Path(settings.log_dir)
        log_dir.mkdir(exist_ok=True)
        handlers['file'] = _file_handler(log_dir / 'coachnotes.log', 'text', 'DEBUG')
        # access denials are warnings, so they land here too
        handlers['error_file'] = _file_handler(log_dir / 'error.log', 'json', 'WARNING')
        app_handlers = ['console', 'file', 'error_file']

    def library(level: str) -> Dict[str, Any]:
        return {'handlers': ['console'], 'level': level, 'propagate': False}

    logging.config.dictConfig({
        'version': 1,
        'disable_existing_loggers': False,
        'formatters': {
            'json': {'()': JSONFormatter},
            'console': {'()': ConsoleFormatter},
            'text': {'format': settings.log_format},
        },
        'handlers': handlers,
        'loggers': {
            'coachnotes': {'handlers': app_handlers, 'level': 'DEBUG', 'propagate': False},
            'uvicorn': library('INFO'),
            'sqlalchemy': library('WARNING'),
            'alembic': library('INFO'),
        },
    })

    get_logger('logging').info("Logging configured", extra={
        'log_level': settings.log_level,
        'log_to_file': settings.log_to_file,
        'environment': settings.environment,
    })


def get_logger(name: str) -> logging.Logger:
    """Get a logger under the coachnotes namespace."""
    return logging.getLogger(f"coachnotes.{name}")


def _header(scope, name: bytes) -> Optional[str]:
    for key, value in scope.get('headers', []):
        if key == name:
            return value.decode('latin-1')
    return None


class LoggingMiddleware:
    """ASGI middleware logging one line per request and per response.

    The caller's X-Request-ID is reused when present and echoed back on
    the response either way.
    """

    def __init__(self, app, logger_name: str = "http"):
        self.app = app
        self.logger = get_logger(logger_name)

    async def __call__(self, scope, receive, send):
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        started = datetime.now(timezone.utc)
        request_id = _header(scope, b'x-request-id') or uuid.uuid4().hex
        client = scope.get('client')
        base = {'request_id': request_id, 'method': scope['method'], 'path': scope['path']}

        self.logger.info("HTTP request", extra={
            **base,
            'client_ip': _header(scope, b'x-forwarded-for') or (client[0] if client else 'unknown'),
            'user_agent': _header(scope, b'user-agent') or 'unknown',
        })

        def elapsed_ms() -> float:
            return round((datetime.now(timezone.utc) - started).total_seconds() * 1000, 2)

        async def send_wrapper(message):
            if message["type"] == "http.response.start":
                message.setdefault('headers', [])
                message['headers'] = list(message['headers']) + [
                    (b'x-request-id', request_id.encode('latin-1'))
                ]
                self.logger.info("HTTP response", extra={
                    **base, 'status_code': message.get('status', 0), 'duration_ms': elapsed_ms(),
                })
            await send(message)

        try:
            await self.app(scope, receive, send_wrapper)
        except Exception as exc:
            self.logger.error("HTTP request failed", extra={
                **base, 'duration_ms': elapsed_ms(), 'exception_type': type(exc).__name__,
            })
            raise
