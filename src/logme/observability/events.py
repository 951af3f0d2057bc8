"""Log event construction and emission.

A log event wraps a valid log code together with a message, the correlation ID
of the exchange it belongs to and an optional payload. Its level is derived
from the severity segment of the code and never chosen by the caller.
"""

import json
import sys
from collections.abc import Callable, Mapping
from datetime import datetime, timezone
from typing import IO, Any

import structlog
from pydantic import BaseModel, ConfigDict, Field

from logme.codes import LogLevel, map_severity_to_level, parse
from logme.exceptions import InvalidCodeError
from logme.observability.constants import (
    CIRCULAR_MARKER,
    EVENTS_LOGGER_NAME,
    MAX_DEPTH_MARKER,
    MAX_PAYLOAD_DEPTH,
)
from logme.observability.logger import get_logger

_JSON_SCALARS = (str, int, float, bool, type(None))

_logger = get_logger(__name__)


def utc_timestamp() -> str:
    """Current UTC time as ISO-8601 with millisecond precision, e.g. ``2024-01-01T12:00:00.123Z``."""
    return datetime.now(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


def make_serializable(value: Any, max_depth: int = MAX_PAYLOAD_DEPTH) -> Any:
    """Copy a payload into plain JSON-compatible data.

    Mappings become dicts with string keys, lists/tuples/sets become lists and
    unknown scalars are converted with ``str``. A container that is already
    being copied higher up the same branch is replaced with ``"[Circular]"``,
    and containers nested deeper than ``max_depth`` with ``"[MaxDepth]"``.
    """
    return _serialize(value, max_depth, frozenset())


def _serialize(value: Any, depth: int, ancestors: frozenset[int]) -> Any:
    if isinstance(value, _JSON_SCALARS):
        return value

    if isinstance(value, (Mapping, list, tuple, set, frozenset)):
        if id(value) in ancestors:
            return CIRCULAR_MARKER
        if depth <= 0:
            return MAX_DEPTH_MARKER
        path = ancestors | {id(value)}
        if isinstance(value, Mapping):
            return {str(k): _serialize(v, depth - 1, path) for k, v in value.items()}
        return [_serialize(item, depth - 1, path) for item in value]

    if isinstance(value, BaseModel):
        return _serialize(value.model_dump(mode="json"), depth, ancestors)

    if isinstance(value, bytes):
        return value.decode("utf-8", errors="replace")

    return str(value)


class LogEvent(BaseModel):
    """An emitted log record. Immutable once built."""

    model_config = ConfigDict(frozen=True)

    timestamp: str = Field(..., description="ISO-8601 UTC build time")
    code: str = Field(..., description="Log code, e.g. BE.1002.01.02.01.I")
    message: str
    level: LogLevel = Field(..., description="Derived from the severity segment")
    correlation_id: str
    data: Any = Field(default=None, description="Optional structured payload")

    def to_record(self) -> dict[str, Any]:
        """Return the wire record, with ``data`` made JSON-safe.

        ``data`` is omitted when None.
        """
        record: dict[str, Any] = {
            "timestamp": self.timestamp,
            "code": self.code,
            "message": self.message,
            "level": self.level,
            "correlationId": self.correlation_id,
        }
        if self.data is not None:
            record["data"] = make_serializable(self.data)
        return record

    def to_json(self) -> str:
        """Serialize the wire record as a single JSON line."""
        return json.dumps(self.to_record(), ensure_ascii=False)


def build_log_event(
    code: str,
    message: str,
    correlation_id: str,
    data: Any = None,
) -> LogEvent:
    """Create a log event for a log code.

    The payload is attached as-is; redacting it is up to the caller.

    Args:
        code: A well-formed log code.
        message: Human readable message.
        correlation_id: ID of the exchange the event belongs to.
        data: Optional structured payload.

    Returns:
        The log event, timestamped now.

    Raises:
        InvalidCodeError: If ``code`` is not a well-formed log code.
    """
    parsed = parse(code)
    if parsed is None:
        raise InvalidCodeError(code)

    return LogEvent(
        timestamp=utc_timestamp(),
        code=code,
        message=message,
        level=map_severity_to_level(parsed.severity),
        correlation_id=correlation_id,
        data=data,
    )


EventSink = Callable[[LogEvent], None]


class StructlogSink:
    """Emit log events through structlog.

    The event message becomes the structlog event name and the code,
    correlation ID, original timestamp and payload are bound as fields.
    """

    def __init__(self, logger: structlog.stdlib.BoundLogger | None = None):
        self._logger = logger or get_logger(EVENTS_LOGGER_NAME)

    def __call__(self, event: LogEvent) -> None:
        fields: dict[str, Any] = {
            "code": event.code,
            "correlation_id": event.correlation_id,
            "event_timestamp": event.timestamp,
        }
        if event.data is not None:
            fields["data"] = make_serializable(event.data)
        # structlog names the warn level "warning"
        method = "warning" if event.level == "warn" else event.level
        getattr(self._logger, method)(event.message, **fields)


class ConsoleSink:
    """Write each event as one JSON line; errors go to stderr, the rest to stdout."""

    def __init__(self, stream: IO[str] | None = None, error_stream: IO[str] | None = None):
        self._stream = stream
        self._error_stream = error_stream

    def __call__(self, event: LogEvent) -> None:
        if event.level == "error":
            target = self._error_stream or sys.stderr
        else:
            target = self._stream or sys.stdout
        print(event.to_json(), file=target, flush=True)


def default_sink() -> EventSink:
    """Return the sink used when none is injected."""
    return StructlogSink()


def emit_event(
    sink: EventSink,
    code: str,
    message: str,
    correlation_id: str,
    data: Any = None,
) -> None:
    """Build an event and hand it to ``sink``, logging instead of raising on failure.

    Used by the instrumentation points, where a failing sink must not change
    the outcome of the exchange being logged.
    """
    try:
        sink(build_log_event(code, message, correlation_id, data))
    except Exception as exc:
        _logger.warning("events.emit_failed", code=code, error=str(exc), error_type=type(exc).__name__)
