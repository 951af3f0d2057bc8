"""Observability layer for logme.

This module provides structured logging, correlation IDs, log events and the
HTTP instrumentation points that emit them.

Usage:
    from logme.observability import RequestLoggingMiddleware, EgressInstrumentation

    app.add_middleware(RequestLoggingMiddleware, log_headers=True)
    client = EgressInstrumentation().client()
"""

from logme.observability.body import extract_body
from logme.observability.config import FetchLoggerConfig, ServerLoggerConfig
from logme.observability.context import (
    correlation_id_var,
    generate_correlation_id,
    get_correlation_id,
    set_correlation_id,
)
from logme.observability.database import QueryLogger
from logme.observability.events import (
    ConsoleSink,
    EventSink,
    LogEvent,
    StructlogSink,
    build_log_event,
    emit_event,
)
from logme.observability.logger import configure_logging, get_logger
from logme.observability.middleware import (
    RequestLoggingMiddleware,
    ResponseInterceptor,
    instrument_app,
)
from logme.observability.sanitizer import redact, redact_headers
from logme.observability.transport import (
    EgressInstrumentation,
    LoggingTransport,
    create_fetch_logger,
)

__all__ = [
    # Body
    "extract_body",
    # Config
    "FetchLoggerConfig",
    "ServerLoggerConfig",
    # Context
    "correlation_id_var",
    "generate_correlation_id",
    "get_correlation_id",
    "set_correlation_id",
    # Database
    "QueryLogger",
    # Events
    "ConsoleSink",
    "EventSink",
    "LogEvent",
    "StructlogSink",
    "build_log_event",
    "emit_event",
    # Logger
    "configure_logging",
    "get_logger",
    # Middleware
    "RequestLoggingMiddleware",
    "ResponseInterceptor",
    "instrument_app",
    # Sanitizer
    "redact",
    "redact_headers",
    # Transport
    "EgressInstrumentation",
    "LoggingTransport",
    "create_fetch_logger",
]
