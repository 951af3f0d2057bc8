"""Correlation ID generation and context management.

Provides async-safe context variables for request tracing.
"""

import secrets
import string
import time
from contextvars import ContextVar

_SUFFIX_ALPHABET = string.ascii_lowercase + string.digits
_SUFFIX_LENGTH = 8

# Context variable for correlation ID - async-safe across concurrent requests
correlation_id_var: ContextVar[str] = ContextVar("correlation_id", default="")


def generate_correlation_id(prefix: str = "log") -> str:
    """Generate a correlation ID for tying related log events together.

    The format is ``<prefix>-<epoch milliseconds>-<8 random [a-z0-9] chars>``.

    Args:
        prefix: Leading label, typically naming the instrumentation point.

    Returns:
        A new correlation ID.
    """
    suffix = "".join(secrets.choice(_SUFFIX_ALPHABET) for _ in range(_SUFFIX_LENGTH))
    return f"{prefix}-{time.time_ns() // 1_000_000}-{suffix}"


def get_correlation_id() -> str:
    """Get the current correlation ID.

    Returns:
        The correlation ID for the current request context, or empty string if not set.
    """
    return correlation_id_var.get()


def set_correlation_id(correlation_id: str) -> None:
    """Set the correlation ID for the current request context.

    Args:
        correlation_id: The correlation ID to set.
    """
    correlation_id_var.set(correlation_id)


def resolve_correlation_id(candidate: str | None, prefix: str = "log") -> str:
    """Prefer an externally supplied ID, generating one when it is missing or blank."""
    if candidate and candidate.strip():
        return candidate.strip()
    return generate_correlation_id(prefix)
