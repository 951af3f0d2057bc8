"""Instrumentation options for the egress transport and ingress middleware."""

from pydantic import BaseModel, Field

from logme.observability.constants import CORRELATION_ID_HEADER, DEFAULT_EXCLUDE_PATHS


class FetchLoggerConfig(BaseModel):
    """Options for outbound (client) instrumentation."""

    log_function_name: bool = Field(
        default=True, description="Attach the call site of each request"
    )
    log_request_response: bool = Field(
        default=True, description="Emit request and response events"
    )
    log_parameters: bool = Field(
        default=False, description="Emit a debug event with request headers and body"
    )
    log_response_content: bool = Field(
        default=False, description="Emit a debug event with the response body"
    )
    correlation_header: str = Field(
        default=CORRELATION_ID_HEADER,
        description="Header used to forward the correlation ID",
    )


class ServerLoggerConfig(BaseModel):
    """Options for inbound (server) instrumentation."""

    log_request_body: bool = False
    log_response_body: bool = False
    log_headers: bool = False
    exclude_paths: list[str] = Field(
        default_factory=lambda: list(DEFAULT_EXCLUDE_PATHS),
        description="Substrings of paths that are not instrumented at all",
    )
    exclude_request_body: list[str] = Field(
        default_factory=list,
        description="Substrings of paths whose request body is never captured",
    )
    exclude_response_body: list[str] = Field(
        default_factory=list,
        description="Substrings of paths whose response body is never captured",
    )
    custom_id_header: str = Field(
        default=CORRELATION_ID_HEADER,
        description="Header carrying the correlation ID in both directions",
    )

    def is_excluded(self, path: str) -> bool:
        """Return True if the path is not instrumented."""
        return _matches_any(path, self.exclude_paths)

    def captures_request_body(self, path: str) -> bool:
        """Return True if the request body of ``path`` should be logged."""
        return self.log_request_body and not _matches_any(path, self.exclude_request_body)

    def captures_response_body(self, path: str) -> bool:
        """Return True if the response body of ``path`` should be logged."""
        return self.log_response_body and not _matches_any(path, self.exclude_response_body)


def _matches_any(path: str, fragments: list[str]) -> bool:
    return any(fragment in path for fragment in fragments)
