"""Content-type aware extraction of HTTP bodies for logging.

Callers always pass a snapshot of the body (``bytes``). Reading the live stream
is the caller's job, so extraction can never consume a body that the
application still needs.
"""

import json
from typing import Any

from logme.observability.constants import (
    BINARY_BODY_TEMPLATE,
    BODY_MAX_LENGTH,
    TRUNCATION_MARKER,
)


def is_json_content_type(content_type: str) -> bool:
    """Return True for ``application/json`` and ``+json`` media types."""
    media_type = content_type.split(";", 1)[0].strip().lower()
    return media_type == "application/json" or media_type.endswith("+json")


def is_text_content_type(content_type: str) -> bool:
    """Return True for ``text/*`` media types."""
    return "text/" in content_type.lower()


def truncate_text(text: str, max_length: int = BODY_MAX_LENGTH) -> str:
    """Cut ``text`` to ``max_length`` characters, appending the truncation marker if cut."""
    if len(text) <= max_length:
        return text
    return text[:max_length] + TRUNCATION_MARKER


def _as_text(body: bytes | str) -> str:
    if isinstance(body, str):
        return body
    return body.decode("utf-8", errors="replace")


def extract_body(
    body: bytes | str | None,
    content_type: str | None,
    max_length: int = BODY_MAX_LENGTH,
) -> Any:
    """Turn a body snapshot into something worth logging.

    JSON bodies are parsed; when parsing fails they are logged as text instead.
    Text bodies are truncated to ``max_length`` characters. Anything else is
    replaced by a placeholder naming the content type.

    Args:
        body: The body bytes (or already-decoded text).
        content_type: The declared ``Content-Type`` header value.
        max_length: Truncation cap for text bodies.

    Returns:
        Parsed JSON, truncated text, a placeholder string, or None for an empty body.
    """
    if not body:
        return None

    content_type = content_type or ""

    if is_json_content_type(content_type):
        try:
            return json.loads(body)
        except (ValueError, UnicodeDecodeError):
            return truncate_text(_as_text(body), max_length)

    if is_text_content_type(content_type):
        return truncate_text(_as_text(body), max_length)

    return BINARY_BODY_TEMPLATE.format(content_type=content_type)
