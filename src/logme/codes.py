"""Log code encoding, validation and decoding.

A log code is six segment codes joined by dots, always in the order
``ENV.SERVICE.CATEGORY.ACTION.OUTCOME.SEVERITY``::

    BE.1003.01.01.01.I

Validation only checks the shape of the string. Whether each segment value is
actually part of the catalog is checked by ``decode``, which falls back to an
"Unknown <Segment>" description instead of failing.
"""

import re
from enum import Enum
from typing import Literal, NamedTuple

from pydantic import BaseModel, ConfigDict, Field

from logme.catalog import (
    SEGMENTS,
    Action,
    Category,
    Environment,
    Outcome,
    Service,
    Severity,
    lookup,
)

LogLevel = Literal["info", "warn", "error", "debug"]

DELIMITER = "."
INVALID_CODE_DESCRIPTION = "Invalid log code format"

# [0-9] rather than \d, which also matches non-ASCII digits
LOG_CODE_PATTERN = re.compile(r"[A-Z]{2}\.[0-9]{4}\.[0-9]{2}\.[0-9]{2}\.[0-9]{2}\.[IWED]")

_SEVERITY_LEVELS: dict[str, LogLevel] = {
    Severity.INFO.value: "info",
    Severity.WARN.value: "warn",
    Severity.ERROR.value: "error",
    Severity.DEBUG.value: "debug",
}


class ParsedLogCode(NamedTuple):
    """Raw segment codes of a well-formed log code."""

    env: str
    service: str
    category: str
    action: str
    outcome: str
    severity: str


class DecodedSegment(BaseModel):
    """One decoded segment of a log code."""

    model_config = ConfigDict(frozen=True)

    code: str = Field(..., description="Raw segment code")
    key: str | None = Field(default=None, description="Catalog key, None when unknown")
    description: str = Field(..., description="Human readable description")


class DecodedLogCode(BaseModel):
    """A log code with every segment resolved against the catalog."""

    model_config = ConfigDict(frozen=True)

    code: str
    env: DecodedSegment
    service: DecodedSegment
    category: DecodedSegment
    action: DecodedSegment
    outcome: DecodedSegment
    severity: DecodedSegment

    def segments(self) -> list[tuple[str, DecodedSegment]]:
        """Return ``(label, segment)`` pairs in code order."""
        return [(label, getattr(self, name)) for name, (_, label) in SEGMENTS.items()]


def _segment_value(value: Enum | str) -> str:
    return value.value if isinstance(value, Enum) else value


def encode(
    env: Environment | str,
    service: Service | str,
    category: Category | str,
    action: Action | str,
    outcome: Outcome | str,
    severity: Severity | str,
) -> str:
    """Join six segment values into a log code.

    Example:
        >>> encode(Environment.BE, Service.AUTH, Category.REQUEST,
        ...        Action.SEND, Outcome.SUCCESS, Severity.INFO)
        'BE.1003.01.01.01.I'
    """
    return DELIMITER.join(
        _segment_value(segment) for segment in (env, service, category, action, outcome, severity)
    )


def is_valid(text: str) -> bool:
    """Return True if ``text`` has the shape of a log code."""
    if not isinstance(text, str):
        return False
    return LOG_CODE_PATTERN.fullmatch(text) is not None


def parse(text: str) -> ParsedLogCode | None:
    """Split a log code into its raw segments.

    Returns:
        The parsed segments, or None if ``text`` is not a well-formed log code.
    """
    if not is_valid(text):
        return None
    return ParsedLogCode(*text.split(DELIMITER))


def _decode_segment(segment: str, code: str) -> DecodedSegment:
    entry = lookup(segment, code)
    if entry is None:
        _, label = SEGMENTS[segment]
        return DecodedSegment(code=code, key=None, description=f"Unknown {label}")
    return DecodedSegment(code=code, key=entry.key, description=entry.description)


def decode(text: str) -> DecodedLogCode | None:
    """Resolve each segment of a log code against the catalog.

    Segment codes missing from the catalog are decoded with an
    ``Unknown <Segment>`` description rather than rejected.

    Returns:
        The decoded code, or None if ``text`` is not a well-formed log code.
    """
    parsed = parse(text)
    if parsed is None:
        return None

    return DecodedLogCode(
        code=text,
        **{name: _decode_segment(name, value) for name, value in parsed._asdict().items()},
    )


def describe(text: str) -> str:
    """Build a one-line human description of a log code."""
    decoded = decode(text)
    if decoded is None:
        return INVALID_CODE_DESCRIPTION

    return (
        f"{decoded.env.description} {decoded.service.description} - "
        f"{decoded.action.description} {decoded.category.description} - "
        f"{decoded.outcome.description} ({decoded.severity.description})"
    )


def map_severity_to_level(severity: Severity | str) -> LogLevel:
    """Map a severity code to its log level.

    Raises:
        ValueError: If ``severity`` is not one of I, W, E, D.
    """
    value = _segment_value(severity)
    try:
        return _SEVERITY_LEVELS[value]
    except (KeyError, TypeError):
        raise ValueError(f"Unknown severity code: {severity!r}") from None
