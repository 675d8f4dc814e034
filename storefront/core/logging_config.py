"""
Structured JSON logging for the storefront service.

Every record is one JSON object carrying service metadata, the request
context (request id, correlation id, user id) and any ``extra_fields``
attached by the caller.
"""

import logging
import logging.handlers
import re
import sys
import json
import time
import traceback
import uuid
from contextvars import ContextVar
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.responses import Response

# Context variables for request tracking
request_id_var: ContextVar[Optional[str]] = ContextVar('request_id', default=None)
correlation_id_var: ContextVar[Optional[str]] = ContextVar('correlation_id', default=None)
user_id_var: ContextVar[Optional[str]] = ContextVar('user_id', default=None)

_service_info: Dict[str, str] = {
    "service": "storefront",
    "environment": "development",
    "version": "1.0.0",
}

class StructuredFormatter(logging.Formatter):
    """JSON formatter, one object per line."""

    def format(self, record: logging.LogRecord) -> str:
        log_obj: Dict[str, Any] = {
            "@timestamp": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            **_service_info,
        }

        trace_context = current_trace_context()
        if trace_context:
            log_obj["trace"] = trace_context

        log_obj["location"] = {
            "file": record.pathname,
            "line": record.lineno,
            "function": record.funcName,
            "module": record.module
        }

        if record.exc_info:
            log_obj["error"] = {
                "type": record.exc_info[0].__name__,
                "message": str(record.exc_info[1]),
                "stacktrace": traceback.format_exception(*record.exc_info)
            }

        if hasattr(record, 'extra_fields'):
            log_obj["custom"] = record.extra_fields

        if hasattr(record, 'duration_ms'):
            log_obj["performance"] = {
                "duration_ms": record.duration_ms
            }

        return json.dumps(log_obj, default=str)

class PerformanceFilter(logging.Filter):
    """Lift ``duration_ms`` out of extra_fields so it lands under "performance"."""

    def filter(self, record: logging.LogRecord) -> bool:
        fields = getattr(record, 'extra_fields', None)
        if isinstance(fields, dict) and 'duration_ms' in fields:
            record.duration_ms = fields['duration_ms']
        return True

class SecurityFilter(logging.Filter):
    """Redact credential-looking values from messages and extra fields."""

    SENSITIVE_FIELDS = (
        'password', 'token', 'api_key', 'secret',
        'authorization', 'cookie', 'session'
    )
    _pattern = re.compile(
        r"(?i)\b(" + "|".join(SENSITIVE_FIELDS) + r")\b(\s*[=:]\s*)(\S+)"
    )

    def filter(self, record: logging.LogRecord) -> bool:
        message = record.getMessage()
        redacted = self._pattern.sub(r"\1\2***REDACTED***", message)
        if redacted != message:
            record.msg = redacted
            record.args = ()

        fields = getattr(record, 'extra_fields', None)
        if isinstance(fields, dict):
            record.extra_fields = {
                key: ("***REDACTED***" if key.lower() in self.SENSITIVE_FIELDS else value)
                for key, value in fields.items()
            }
        return True

def setup_logging(
    service_name: str,
    level: str = "INFO",
    version: str = "1.0.0",
    environment: str = "development",
    enable_console: bool = True,
    log_file: Optional[str] = None
) -> None:
    """
    Configure the root logger with the structured formatter.

    Args:
        service_name: Reported as "service" on every record
        level: Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        version: Reported as "version"
        environment: Reported as "environment"
        enable_console: Log to stdout
        log_file: Also log to this rotating file when given
    """
    _service_info.update(service=service_name, version=version, environment=environment)

    root_logger = logging.getLogger()
    root_logger.setLevel(getattr(logging, level.upper()))
    root_logger.handlers = []

    formatter = StructuredFormatter()
    handlers = []
    if enable_console:
        handlers.append(logging.StreamHandler(sys.stdout))
    if log_file:
        handlers.append(logging.handlers.RotatingFileHandler(
            log_file,
            maxBytes=10485760,  # 10MB
            backupCount=5
        ))
    for handler in handlers:
        handler.setFormatter(formatter)
        handler.addFilter(PerformanceFilter())
        handler.addFilter(SecurityFilter())
        root_logger.addHandler(handler)

    logging.getLogger('uvicorn').setLevel(logging.WARNING)
    logging.getLogger('fastapi').setLevel(logging.INFO)
    logging.getLogger('sqlalchemy.engine').setLevel(logging.WARNING)

    root_logger.info(
        "Logging initialized",
        extra={
            'extra_fields': {
                'service': service_name,
                'level': level,
                'handlers': {
                    'console': enable_console,
                    'file': bool(log_file)
                }
            }
        }
    )

class LoggerAdapter(logging.LoggerAdapter):
    """Adds keyword fields to ``extra_fields`` so callers can write
    ``logger.info("order_created", order_id=1)``."""

    def process(self, msg, kwargs):
        extra = dict(kwargs.pop('extra', None) or {})
        fields = dict(extra.get('extra_fields') or {})
        for key in list(kwargs):
            if key not in ('exc_info', 'stack_info', 'stacklevel'):
                fields[key] = kwargs.pop(key)
        if fields:
            extra['extra_fields'] = fields
        kwargs['extra'] = extra
        return msg, kwargs

def get_logger(name: str) -> LoggerAdapter:
    return LoggerAdapter(logging.getLogger(name), {})

def current_trace_context() -> Optional[Dict[str, str]]:
    context = {
        "request_id": request_id_var.get(),
        "correlation_id": correlation_id_var.get(),
        "user_id": user_id_var.get(),
    }
    context = {key: value for key, value in context.items() if value}
    return context or None

def set_request_context(
    request_id: Optional[str] = None,
    correlation_id: Optional[str] = None,
    user_id: Optional[str] = None
) -> None:
    if request_id:
        request_id_var.set(request_id)
    if correlation_id:
        correlation_id_var.set(correlation_id)
    if user_id:
        user_id_var.set(str(user_id))

def generate_request_id() -> str:
    return str(uuid.uuid4())

class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """Logs request start/finish with duration and echoes X-Request-ID."""

    async def dispatch(self, request: Request, call_next) -> Response:
        request_id = request.headers.get('X-Request-ID') or generate_request_id()
        set_request_context(
            request_id=request_id,
            correlation_id=request.headers.get('X-Correlation-ID')
        )

        logger = get_logger(__name__)
        logger.info(
            f"Request started: {request.method} {request.url.path}",
            method=request.method,
            path=request.url.path,
            client_host=request.client.host if request.client else None,
        )

        start_time = time.perf_counter()
        try:
            response = await call_next(request)
        except Exception:
            logger.error(
                f"Request failed: {request.method} {request.url.path}",
                exc_info=True,
                method=request.method,
                path=request.url.path,
                duration_ms=(time.perf_counter() - start_time) * 1000,
            )
            raise

        logger.info(
            f"Request completed: {request.method} {request.url.path}",
            method=request.method,
            path=request.url.path,
            status_code=response.status_code,
            duration_ms=(time.perf_counter() - start_time) * 1000,
        )
        response.headers['X-Request-ID'] = request_id
        return response
