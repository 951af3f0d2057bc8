"""httpx transport that logs outbound requests with log codes.

Usage:
    from logme.observability import EgressInstrumentation, FetchLoggerConfig

    instrumentation = EgressInstrumentation(FetchLoggerConfig(log_response_content=True))
    async with instrumentation.client(base_url="https://api.example.com") as client:
        await client.get("/users")

Every exchange emits a request event, then either a response event or an error
event, all sharing one correlation ID. Errors raised by the wrapped transport
are re-raised unchanged after they are logged.
"""

import asyncio
import inspect
import time
import traceback
from typing import Any

import httpx

from logme.catalog import Action, Category, Environment, Outcome, Service, Severity
from logme.codes import encode
from logme.exceptions import LogmeError
from logme.observability.body import extract_body
from logme.observability.config import FetchLoggerConfig
from logme.observability.constants import EGRESS_ID_PREFIX
from logme.observability.context import generate_correlation_id, get_correlation_id
from logme.observability.events import EventSink, default_sink, emit_event
from logme.observability.sanitizer import redact, redact_headers

# Frames from these packages are skipped when looking for the call site
_INTERNAL_PACKAGES = frozenset({
    "logme",
    "httpx",
    "httpcore",
    "anyio",
    "asyncio",
    "sniffio",
    "respx",
    "contextlib",
    "functools",
})


def _code(category: Category, action: Action, outcome: Outcome, severity: Severity) -> str:
    return encode(Environment.FE, Service.FETCH, category, action, outcome, severity)


def format_duration(seconds: float) -> str:
    """Format an elapsed time as milliseconds with one decimal, e.g. ``12.5ms``."""
    return f"{seconds * 1000:.1f}ms"


def find_call_site() -> str | None:
    """Describe the innermost frame outside logme, httpx and the event loop.

    Returns:
        ``"<function> (<file>:<line>)"``, or None when no such frame exists.
    """
    frame = inspect.currentframe()
    try:
        while frame is not None:
            module = frame.f_globals.get("__name__", "")
            if module.split(".", 1)[0] not in _INTERNAL_PACKAGES:
                code = frame.f_code
                return f"{code.co_name} ({code.co_filename}:{frame.f_lineno})"
            frame = frame.f_back
    finally:
        del frame
    return None


def _request_body(request: httpx.Request) -> Any:
    try:
        content = request.content
    except httpx.RequestNotRead:
        return "<streaming request body>"
    return redact(extract_body(content, request.headers.get("content-type")))


class LoggingTransport(httpx.AsyncBaseTransport):
    """Wrap an async transport and log every exchange that passes through it.

    Args:
        transport: The transport that actually performs requests.
        config: Instrumentation options.
        sink: Where events go; defaults to structlog.
    """

    def __init__(
        self,
        transport: httpx.AsyncBaseTransport | None = None,
        config: FetchLoggerConfig | None = None,
        sink: EventSink | None = None,
    ) -> None:
        self._transport = transport or httpx.AsyncHTTPTransport()
        self.config = config or FetchLoggerConfig()
        self._sink = sink or default_sink()

    async def handle_async_request(self, request: httpx.Request) -> httpx.Response:
        config = self.config
        start = time.perf_counter()
        method = request.method
        url = str(request.url)
        call_site = find_call_site() if config.log_function_name else None

        # One ID per exchange; the inbound request's ID is only recorded as the parent
        correlation_id = generate_correlation_id(EGRESS_ID_PREFIX)
        parent_id = get_correlation_id()
        if config.correlation_header not in request.headers:
            request.headers[config.correlation_header] = correlation_id

        if config.log_request_response:
            data: dict[str, Any] = {"method": method, "url": url}
            if parent_id:
                data["parentCorrelationId"] = parent_id
            if call_site:
                data["stack"] = call_site
            self._emit(
                _code(Category.REQUEST, Action.SEND, Outcome.SUCCESS, Severity.INFO),
                f"{method} request to {url}",
                correlation_id,
                data,
            )
            if config.log_parameters:
                self._log_parameters(request, correlation_id, call_site)

        try:
            response = await self._transport.handle_async_request(request)
        except (Exception, asyncio.CancelledError) as exc:
            error_data: dict[str, Any] = {
                "method": method,
                "url": url,
                "error": str(exc) or type(exc).__name__,
                "error_type": type(exc).__name__,
                "stack": _format_traceback(exc),
                "duration": format_duration(time.perf_counter() - start),
            }
            if call_site:
                error_data["calledFrom"] = call_site
            self._emit(
                _code(Category.REQUEST, Action.ERROR, Outcome.FAILURE, Severity.ERROR),
                f"Error during {method} request to {url}",
                correlation_id,
                error_data,
            )
            raise

        duration = format_duration(time.perf_counter() - start)

        if config.log_request_response:
            self._log_response(request, response, duration, correlation_id)
            if config.log_response_content:
                response = await self._log_response_content(request, response, correlation_id)

        return response

    async def aclose(self) -> None:
        await self._transport.aclose()

    def _emit(self, code: str, message: str, correlation_id: str, data: Any = None) -> None:
        emit_event(self._sink, code, message, correlation_id, data)

    def _log_parameters(
        self,
        request: httpx.Request,
        correlation_id: str,
        call_site: str | None,
    ) -> None:
        method = request.method
        url = str(request.url)
        try:
            data = {
                "url": url,
                "method": method,
                "headers": redact_headers(request.headers),
                "body": _request_body(request),
            }
            if call_site:
                data["calledFrom"] = call_site
        except Exception as exc:
            self._emit(
                _code(Category.REQUEST, Action.SEND, Outcome.FAILURE, Severity.WARN),
                "Error parsing request parameters",
                correlation_id,
                {"error": str(exc)},
            )
            return

        self._emit(
            _code(Category.REQUEST, Action.SEND, Outcome.SUCCESS, Severity.DEBUG),
            f"Request parameters for {method} {url}",
            correlation_id,
            data,
        )

    def _log_response(
        self,
        request: httpx.Request,
        response: httpx.Response,
        duration: str,
        correlation_id: str,
    ) -> None:
        if response.is_success:
            outcome, severity = Outcome.SUCCESS, Severity.INFO
        else:
            outcome, severity = Outcome.FAILURE, Severity.WARN

        self._emit(
            _code(Category.RESPONSE, Action.RECEIVE, outcome, severity),
            f"{request.method} response from {request.url} with status {response.status_code}",
            correlation_id,
            {
                "method": request.method,
                "url": str(request.url),
                "status": response.status_code,
                "statusText": response.reason_phrase,
                "duration": duration,
            },
        )

    async def _log_response_content(
        self,
        request: httpx.Request,
        response: httpx.Response,
        correlation_id: str,
    ) -> httpx.Response:
        """Log the response body and hand back an unread copy of the response.

        The raw bytes are read once. The caller gets a replay built from them,
        and a second copy is decoded for logging, so the caller's body is never
        consumed by the logger. Responses whose body is already in memory are
        returned as they are.

        Raises:
            httpx.StreamError, httpx.TransportError: If reading the body fails.
                The failure is logged first.
        """
        snapshot = response
        if not response.is_stream_consumed:
            try:
                raw = b"".join([chunk async for chunk in response.aiter_raw()])
            except Exception as exc:
                self._log_content_error(correlation_id, exc)
                await response.aclose()
                raise
            response = httpx.Response(
                status_code=snapshot.status_code,
                headers=snapshot.headers,
                stream=httpx.ByteStream(raw),
                request=request,
                extensions=snapshot.extensions,
            )
            snapshot = httpx.Response(
                status_code=snapshot.status_code,
                headers=snapshot.headers,
                stream=httpx.ByteStream(raw),
                request=request,
            )

        outcome = Outcome.SUCCESS if response.is_success else Outcome.FAILURE
        try:
            await snapshot.aread()
            data = {
                "headers": redact_headers(response.headers),
                "body": redact(extract_body(snapshot.content, response.headers.get("content-type"))),
            }
        except Exception as exc:
            self._log_content_error(correlation_id, exc)
            return response

        self._emit(
            _code(Category.RESPONSE, Action.RECEIVE, outcome, Severity.DEBUG),
            f"Response content for {request.method} {request.url}",
            correlation_id,
            data,
        )
        return response

    def _log_content_error(self, correlation_id: str, exc: Exception) -> None:
        self._emit(
            _code(Category.RESPONSE, Action.RECEIVE, Outcome.FAILURE, Severity.WARN),
            "Error parsing response content",
            correlation_id,
            {"error": str(exc) or type(exc).__name__, "error_type": type(exc).__name__},
        )


def _format_traceback(exc: BaseException) -> str | None:
    if exc.__traceback__ is None:
        return None
    return "".join(traceback.format_exception(type(exc), exc, exc.__traceback__))


class EgressInstrumentation:
    """Process-wide handle owning the original transport and its logging wrapper.

    Build it once at startup and create clients through :meth:`client`. Clients
    created from any other transport are not instrumented.
    """

    def __init__(
        self,
        config: FetchLoggerConfig | None = None,
        sink: EventSink | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.original = transport or httpx.AsyncHTTPTransport()
        self.transport = LoggingTransport(self.original, config=config, sink=sink)
        self._installed = True

    @property
    def installed(self) -> bool:
        return self._installed

    def client(self, **kwargs: Any) -> httpx.AsyncClient:
        """Create an ``httpx.AsyncClient`` that sends through the logging transport."""
        if not self._installed:
            raise LogmeError("Egress instrumentation has been uninstalled")
        return httpx.AsyncClient(transport=self.transport, **kwargs)

    def uninstall(self) -> httpx.AsyncBaseTransport:
        """Stop handing out instrumented clients and return the original transport.

        Clients already created by :meth:`client` keep the logging transport
        and keep emitting events until they are closed.
        """
        self._installed = False
        return self.original


def create_fetch_logger(
    config: FetchLoggerConfig | None = None,
    sink: EventSink | None = None,
    **client_kwargs: Any,
) -> httpx.AsyncClient:
    """Shortcut for a single instrumented client."""
    transport = client_kwargs.pop("transport", None)
    return EgressInstrumentation(config, sink, transport).client(**client_kwargs)
