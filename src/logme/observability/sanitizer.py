"""Sensitive data redaction for logging.

Recursively redacts sensitive fields from payloads before they are attached to a
log event. Values are classified as a mapping, a sequence (list or tuple) or a
scalar; only mappings and sequences are descended into. Strings and bytes are
scalars.
"""

from collections.abc import Mapping
from typing import Any

from logme.observability.constants import (
    MAX_PAYLOAD_DEPTH,
    REDACTED_VALUE,
    SENSITIVE_HEADERS,
    SENSITIVE_KEY_PATTERNS,
)


def is_sensitive_key(key: Any) -> bool:
    """Check if a field name indicates sensitive data.

    Args:
        key: The field name to check. Non-string keys are matched on ``str(key)``.

    Returns:
        True if the field should be redacted.
    """
    name = key if isinstance(key, str) else str(key)
    return any(pattern.search(name) for pattern in SENSITIVE_KEY_PATTERNS)


def redact(value: Any, max_depth: int = MAX_PAYLOAD_DEPTH) -> Any:
    """Return a copy of ``value`` with sensitive fields redacted.

    The input is never mutated. Containers nested deeper than ``max_depth``
    are replaced with the redaction marker, which also bounds the walk over
    self-referencing structures.

    Args:
        value: The data to redact (mapping, list, tuple or scalar).
        max_depth: Maximum nesting depth to descend into.

    Returns:
        Redacted copy of the data.
    """
    if isinstance(value, Mapping):
        if max_depth <= 0:
            return REDACTED_VALUE
        return {
            k: REDACTED_VALUE if is_sensitive_key(k) else redact(v, max_depth - 1)
            for k, v in value.items()
        }

    if isinstance(value, (list, tuple)):
        if max_depth <= 0:
            return REDACTED_VALUE
        items = [redact(item, max_depth - 1) for item in value]
        return tuple(items) if isinstance(value, tuple) else items

    # Scalars (str, bytes, int, float, bool, None, ...) are returned as-is
    return value


def redact_headers(headers: Mapping[str, str] | None) -> dict[str, str]:
    """Redact sensitive HTTP headers.

    Args:
        headers: Any header mapping (``httpx.Headers``, Starlette ``Headers``, dict).

    Returns:
        A plain dict with lower-cased names and sensitive values redacted.
    """
    if not headers:
        return {}

    redacted: dict[str, str] = {}
    for name, value in headers.items():
        lowered = name.lower()
        if lowered in SENSITIVE_HEADERS or is_sensitive_key(lowered):
            redacted[lowered] = REDACTED_VALUE
        else:
            redacted[lowered] = value
    return redacted
