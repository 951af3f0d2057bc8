"""Log codes for database queries."""

from collections.abc import Sequence
from typing import Any

from logme.catalog import Action, Category, Environment, Outcome, Service, Severity
from logme.codes import encode
from logme.observability.body import truncate_text
from logme.observability.constants import QUERY_ERROR_ID_PREFIX, QUERY_ID_PREFIX
from logme.observability.context import generate_correlation_id, get_correlation_id
from logme.observability.events import EventSink, default_sink, emit_event
from logme.observability.sanitizer import redact

QUERY_CODE = encode(
    Environment.BE, Service.API, Category.REQUEST, Action.SEND, Outcome.SUCCESS, Severity.DEBUG
)
QUERY_ERROR_CODE = encode(
    Environment.BE, Service.API, Category.REQUEST, Action.ERROR, Outcome.FAILURE, Severity.ERROR
)


class QueryLogger:
    """Emit debug events for executed queries and error events for failed ones.

    Query text is truncated like a text body and parameters are redacted.
    When no correlation ID is passed, the current request's ID is used, or a
    new one is generated outside of a request.

    Args:
        db_type: Label used in messages, e.g. ``"postgres"``.
        sink: Where events go; defaults to structlog.
    """

    def __init__(self, db_type: str = "generic", sink: EventSink | None = None) -> None:
        self.db_type = db_type
        self._sink = sink or default_sink()

    def log_query(
        self,
        query: str,
        params: Sequence[Any] | None = None,
        correlation_id: str | None = None,
    ) -> None:
        emit_event(
            self._sink,
            QUERY_CODE,
            f"{self.db_type} query executed",
            correlation_id or get_correlation_id() or generate_correlation_id(QUERY_ID_PREFIX),
            self._payload(query, params),
        )

    def log_query_error(
        self,
        query: str,
        error: BaseException,
        params: Sequence[Any] | None = None,
        correlation_id: str | None = None,
    ) -> None:
        data = self._payload(query, params)
        data["error"] = str(error)
        data["error_type"] = type(error).__name__

        emit_event(
            self._sink,
            QUERY_ERROR_CODE,
            f"{self.db_type} query error: {error}",
            correlation_id
            or get_correlation_id()
            or generate_correlation_id(QUERY_ERROR_ID_PREFIX),
            data,
        )

    @staticmethod
    def _payload(query: str, params: Sequence[Any] | None) -> dict[str, Any]:
        data: dict[str, Any] = {"query": truncate_text(query)}
        if params is not None:
            data["params"] = [redact(param) for param in params]
        return data
