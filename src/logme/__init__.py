"""logme - standardized code-based logging with HTTP instrumentation.

Every log event carries a fixed-width log code::

    BE.1003.01.01.01.I
    |  |    |  |  |  +- severity (I, W, E, D)
    |  |    |  |  +---- outcome
    |  |    |  +------- action
    |  |    +---------- category
    |  +--------------- service
    +------------------ environment
"""

__version__ = "1.0.0"

from logme.catalog import Action, Category, Environment, Outcome, Service, Severity
from logme.codes import (
    DecodedLogCode,
    DecodedSegment,
    LogLevel,
    ParsedLogCode,
    decode,
    describe,
    encode,
    is_valid,
    map_severity_to_level,
    parse,
)
from logme.exceptions import InvalidCodeError, LogmeError
from logme.observability import (
    ConsoleSink,
    EgressInstrumentation,
    FetchLoggerConfig,
    LogEvent,
    QueryLogger,
    RequestLoggingMiddleware,
    ServerLoggerConfig,
    StructlogSink,
    build_log_event,
    configure_logging,
    create_fetch_logger,
    generate_correlation_id,
    instrument_app,
    redact,
)

__all__ = [
    "__version__",
    # Catalog
    "Action",
    "Category",
    "Environment",
    "Outcome",
    "Service",
    "Severity",
    # Codes
    "DecodedLogCode",
    "DecodedSegment",
    "LogLevel",
    "ParsedLogCode",
    "decode",
    "describe",
    "encode",
    "is_valid",
    "map_severity_to_level",
    "parse",
    # Errors
    "InvalidCodeError",
    "LogmeError",
    # Observability
    "ConsoleSink",
    "EgressInstrumentation",
    "FetchLoggerConfig",
    "LogEvent",
    "QueryLogger",
    "RequestLoggingMiddleware",
    "ServerLoggerConfig",
    "StructlogSink",
    "build_log_event",
    "configure_logging",
    "create_fetch_logger",
    "generate_correlation_id",
    "instrument_app",
    "redact",
]
