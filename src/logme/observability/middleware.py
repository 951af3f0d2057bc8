"""ASGI middleware for inbound request logging.

Provides correlation ID injection and request/response logging with log codes.
Works with any ASGI application (Starlette, FastAPI, ...).

Usage:
    app.add_middleware(RequestLoggingMiddleware, log_headers=True)
"""

import asyncio
import time
import traceback
from typing import Any

import structlog
from starlette.datastructures import Headers, MutableHeaders
from starlette.requests import Request
from starlette.types import ASGIApp, Message, Receive, Scope, Send

from logme.catalog import Action, Category, Environment, Outcome, Service, Severity
from logme.codes import encode
from logme.observability.body import extract_body
from logme.observability.config import ServerLoggerConfig
from logme.observability.constants import INGRESS_ID_PREFIX
from logme.observability.context import correlation_id_var, resolve_correlation_id
from logme.observability.events import EventSink, default_sink, emit_event
from logme.observability.sanitizer import redact, redact_headers


def _code(category: Category, action: Action, outcome: Outcome, severity: Severity) -> str:
    return encode(Environment.BE, Service.API, category, action, outcome, severity)


def _status_outcome(status_code: int) -> tuple[Outcome, Severity]:
    if status_code >= 500:
        return Outcome.FAILURE, Severity.ERROR
    if status_code >= 400:
        return Outcome.FAILURE, Severity.WARN
    return Outcome.SUCCESS, Severity.INFO


def _duration_ms(start: float) -> str:
    return f"{int((time.perf_counter() - start) * 1000)}ms"


class ResponseInterceptor:
    """Wraps an ASGI ``send`` callable for one exchange.

    Every message is forwarded to the real ``send``. On the way through, the
    correlation header is added to the response start message, the status and
    headers are recorded, and body chunks are buffered when capture is enabled.
    After :meth:`close` the buffer is dropped and messages are only forwarded.
    """

    def __init__(
        self,
        send: Send,
        correlation_header: str,
        correlation_id: str,
        capture_body: bool = False,
    ) -> None:
        self._send = send
        self._correlation_header = correlation_header
        self._correlation_id = correlation_id
        self._capture_body = capture_body
        self._chunks: list[bytes] = []
        self.status_code: int | None = None
        self.headers: Headers | None = None
        self.closed = False

    async def __call__(self, message: Message) -> None:
        if message["type"] == "http.response.start":
            message.setdefault("headers", [])
            headers = MutableHeaders(scope=message)
            headers[self._correlation_header] = self._correlation_id
            self.status_code = message["status"]
            self.headers = Headers(raw=list(headers.raw))
        elif message["type"] == "http.response.body" and self._capture_body and not self.closed:
            body = message.get("body", b"")
            if body:
                self._chunks.append(body)

        await self._send(message)

    @property
    def captures_body(self) -> bool:
        return self._capture_body and not self.closed

    def body(self) -> bytes:
        """Return the bytes buffered so far."""
        return b"".join(self._chunks)

    def close(self) -> None:
        """Drop the buffer and stop capturing. Safe to call more than once."""
        self.closed = True
        self._chunks.clear()


async def _buffer_request_body(receive: Receive) -> tuple[bytes, Receive]:
    """Read the whole request body and return it with a receive that replays it."""
    chunks: list[bytes] = []
    pending: list[Message] = []

    while True:
        message = await receive()
        if message["type"] != "http.request":
            pending.append(message)
            break
        chunks.append(message.get("body", b""))
        if not message.get("more_body", False):
            break

    body = b"".join(chunks)
    replay: list[Message] = [{"type": "http.request", "body": body, "more_body": False}, *pending]

    async def replay_receive() -> Message:
        if replay:
            return replay.pop(0)
        return await receive()

    return body, replay_receive


class RequestLoggingMiddleware:
    """Middleware to log inbound requests and their responses with log codes.

    For each HTTP request the correlation ID is:
    1. Extracted from the configured header if present
    2. Generated if not present
    3. Stored in a ContextVar and bound to structlog context for the exchange
    4. Returned in the response header of the same name

    Requests on excluded paths get the header but produce no events.

    Args:
        app: The ASGI application.
        config: Instrumentation options. Keyword options are applied on top.
        sink: Where events go; defaults to structlog.
        **options: Any ``ServerLoggerConfig`` field, e.g. ``log_headers=True``.
    """

    def __init__(
        self,
        app: ASGIApp,
        config: ServerLoggerConfig | None = None,
        sink: EventSink | None = None,
        **options: Any,
    ) -> None:
        self.app = app
        base = config or ServerLoggerConfig()
        self.config = ServerLoggerConfig(**{**base.model_dump(), **options}) if options else base
        self._sink = sink or default_sink()

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        config = self.config
        request = Request(scope)
        path = request.url.path

        correlation_id = resolve_correlation_id(
            request.headers.get(config.custom_id_header), INGRESS_ID_PREFIX
        )
        # Exposed to handlers as request.state.correlation_id
        scope.setdefault("state", {})["correlation_id"] = correlation_id

        excluded = config.is_excluded(path)
        interceptor = ResponseInterceptor(
            send,
            config.custom_id_header,
            correlation_id,
            capture_body=not excluded and config.captures_response_body(path),
        )

        token = correlation_id_var.set(correlation_id)
        try:
            with structlog.contextvars.bound_contextvars(correlation_id=correlation_id):
                if excluded:
                    await self.app(scope, receive, interceptor)
                    return
                await self._handle(scope, receive, request, interceptor, correlation_id)
        finally:
            interceptor.close()
            correlation_id_var.reset(token)

    async def _handle(
        self,
        scope: Scope,
        receive: Receive,
        request: Request,
        interceptor: ResponseInterceptor,
        correlation_id: str,
    ) -> None:
        start = time.perf_counter()
        path = request.url.path

        request_body = None
        if self.config.captures_request_body(path):
            request_body, receive = await _buffer_request_body(receive)

        self._log_request(request, correlation_id, request_body)

        try:
            await self.app(scope, receive, interceptor)
        except (Exception, asyncio.CancelledError) as exc:
            self._log_error(request, correlation_id, exc, _duration_ms(start))
            raise

        self._log_response(request, interceptor, correlation_id, _duration_ms(start))

    def _log_request(self, request: Request, correlation_id: str, body: bytes | None) -> None:
        method = request.method
        url = _original_url(request)
        data: dict[str, Any] = {
            "method": method,
            "url": url,
            "ip": self._get_client_ip(request),
            "userAgent": request.headers.get("user-agent", "-"),
        }
        if self.config.log_headers:
            data["headers"] = redact_headers(request.headers)
        if body:
            data["body"] = redact(extract_body(body, request.headers.get("content-type")))

        emit_event(
            self._sink,
            _code(Category.REQUEST, Action.RECEIVE, Outcome.SUCCESS, Severity.INFO),
            f"{method} request to {url}",
            correlation_id,
            data,
        )

    def _log_response(
        self,
        request: Request,
        interceptor: ResponseInterceptor,
        correlation_id: str,
        duration: str,
    ) -> None:
        method = request.method
        url = _original_url(request)
        # An app that returns without starting a response gets a 500 from the server
        status_code = interceptor.status_code or 500
        outcome, severity = _status_outcome(status_code)

        data: dict[str, Any] = {
            "method": method,
            "url": url,
            "status": status_code,
            "duration": duration,
        }
        if self.config.log_headers:
            data["headers"] = redact_headers(interceptor.headers)

        emit_event(
            self._sink,
            _code(Category.RESPONSE, Action.SEND, outcome, severity),
            f"{method} response sent for {url} with status {status_code}",
            correlation_id,
            data,
        )

        if interceptor.captures_body:
            self._log_response_body(request, interceptor, correlation_id, outcome)

    def _log_response_body(
        self,
        request: Request,
        interceptor: ResponseInterceptor,
        correlation_id: str,
        outcome: Outcome,
    ) -> None:
        url = _original_url(request)
        content_type = interceptor.headers.get("content-type") if interceptor.headers else None
        try:
            body = redact(extract_body(interceptor.body(), content_type))
        except Exception as exc:
            emit_event(
                self._sink,
                _code(Category.RESPONSE, Action.SEND, Outcome.FAILURE, Severity.WARN),
                "Error parsing response body",
                correlation_id,
                {"url": url, "error": str(exc)},
            )
            return

        emit_event(
            self._sink,
            _code(Category.RESPONSE, Action.SEND, outcome, Severity.DEBUG),
            f"Response body for {request.method} {url}",
            correlation_id,
            {"method": request.method, "url": url, "body": body},
        )

    def _log_error(
        self,
        request: Request,
        correlation_id: str,
        exc: BaseException,
        duration: str,
    ) -> None:
        method = request.method
        url = _original_url(request)
        data: dict[str, Any] = {
            "method": method,
            "url": url,
            "error": str(exc) or type(exc).__name__,
            "error_type": type(exc).__name__,
            "stack": "".join(traceback.format_exception(type(exc), exc, exc.__traceback__)),
            "duration": duration,
        }
        if self.config.log_headers:
            data["headers"] = redact_headers(request.headers)

        emit_event(
            self._sink,
            _code(Category.REQUEST, Action.ERROR, Outcome.FAILURE, Severity.ERROR),
            f"Error processing {method} request to {url}",
            correlation_id,
            data,
        )

    def _get_client_ip(self, request: Request) -> str:
        """Extract client IP from request, considering proxies.

        Args:
            request: The incoming HTTP request.

        Returns:
            The client IP address.
        """
        # Check X-Forwarded-For header (set by reverse proxies)
        forwarded_for = request.headers.get("x-forwarded-for")
        if forwarded_for:
            # Take the first IP (original client)
            return forwarded_for.split(",")[0].strip()

        # Check X-Real-IP header (nginx convention)
        real_ip = request.headers.get("x-real-ip")
        if real_ip:
            return real_ip

        if request.client:
            return request.client.host

        return "-"


def _original_url(request: Request) -> str:
    """Path plus query string, as the client sent it."""
    query = request.url.query
    return f"{request.url.path}?{query}" if query else request.url.path


def instrument_app(
    app: Any,
    config: ServerLoggerConfig | None = None,
    sink: EventSink | None = None,
) -> None:
    """Register :class:`RequestLoggingMiddleware` on a Starlette/FastAPI app."""
    app.add_middleware(RequestLoggingMiddleware, config=config, sink=sink)
