"""Constants for the observability layer."""

import re

# HTTP header for correlation ID propagation
CORRELATION_ID_HEADER = "X-Correlation-ID"

# Service identifier for logs
SERVICE_NAME = "logme"

# Logger name used by the default event sink
EVENTS_LOGGER_NAME = "logme.events"

# Correlation ID prefixes per instrumentation point
EGRESS_ID_PREFIX = "fetch"
INGRESS_ID_PREFIX = "asgi"
QUERY_ID_PREFIX = "db-query"
QUERY_ERROR_ID_PREFIX = "db-error"

# Paths skipped by the ingress middleware unless configured otherwise
DEFAULT_EXCLUDE_PATHS = ("/health", "/metrics", "/favicon.ico")

# Body capture
BODY_MAX_LENGTH = 1000
TRUNCATION_MARKER = "... (truncated)"
BINARY_BODY_TEMPLATE = "Binary data or unsupported content type: {content_type}"

# Recursion limit for redaction and payload serialization
MAX_PAYLOAD_DEPTH = 32
CIRCULAR_MARKER = "[Circular]"
MAX_DEPTH_MARKER = "[MaxDepth]"

# Redaction placeholder
REDACTED_VALUE = "[REDACTED]"

# Keys whose values are redacted (case-insensitive search)
SENSITIVE_KEY_PATTERNS = tuple(
    re.compile(pattern, re.IGNORECASE)
    for pattern in (
        r"pass(word)?",
        r"secret",
        r"token",
        r"auth",
        r"key",
        r"credential",
        r"ssn",
        r"social.*security",
        r"card",
        r"cvv",
    )
)

# Headers that are always redacted
SENSITIVE_HEADERS = frozenset({
    "authorization",
    "cookie",
    "set-cookie",
    "proxy-authorization",
    "x-api-key",
    "x-auth-token",
})
