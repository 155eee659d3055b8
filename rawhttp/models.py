"""Request, event and response dataclasses plus the exception hierarchy."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, ClassVar, Union

if TYPE_CHECKING:
    from .cancellation import CancellationSignal

RawHeaders = list[tuple[str, str]]


@dataclass
class RequestDefinition:
    """A request to send exactly as described.

    Attributes:
        method: HTTP method, sent verbatim (not upper-cased).
        url: Absolute http or https URL.
        headers: Raw header pairs. These are the only headers sent: omitting
                 Host, or both Content-Length and Transfer-Encoding on a
                 request with a body, is the caller's decision.
        raw_body: Body bytes written after the head, if any.

    Request bytes are never re-framed. Response bodies are delivered with
    chunked transfer framing removed; see ResponseBodyPart.
    """

    method: str
    url: str
    headers: RawHeaders = field(default_factory=list)
    raw_body: bytes | None = None


@dataclass
class RequestOptions:
    """Per-request options.

    Attributes:
        cancellation_signal: Signal that aborts the in-flight request.
    """

    cancellation_signal: CancellationSignal | None = None


@dataclass(frozen=True)
class RequestStart:
    """First event of every exchange.

    Attributes:
        start_time: Wall-clock send time (epoch seconds).
        timestamp: Monotonic ``time.perf_counter()`` reading, the reference
                   for the timestamps of later events.
    """

    type: ClassVar[str] = "request-start"

    start_time: float
    timestamp: float


@dataclass(frozen=True)
class ResponseHead:
    """Status line and headers of the final response."""

    type: ClassVar[str] = "response-head"

    status_code: int
    status_message: str | None
    headers: RawHeaders
    timestamp: float
    http_version: str = "1.1"


@dataclass(frozen=True)
class ResponseBodyPart:
    """One piece of response body.

    Content encodings (gzip, br...) are never decoded. Chunked transfer
    framing is removed: ``raw_body`` holds chunk data without the size
    lines, and any trailers are reported on ResponseEnd.
    """

    type: ClassVar[str] = "response-body-part"

    raw_body: bytes
    timestamp: float


@dataclass(frozen=True)
class ResponseEnd:
    """Terminal event of a successful exchange."""

    type: ClassVar[str] = "response-end"

    timestamp: float
    trailers: RawHeaders = field(default_factory=list)


ResponseStreamEvent = Union[RequestStart, ResponseHead, ResponseBodyPart, ResponseEnd]


@dataclass
class RawResponse:
    """A fully drained exchange.

    Attributes:
        status_code: HTTP status code.
        status_message: Reason phrase, or None if empty.
        headers: Response headers as received.
        content: Concatenated raw body bytes (no decoding).
        trailers: Trailer headers, if any.
        http_version: Response HTTP version.
        elapsed: Seconds from request start to response end.
        request: The definition that produced this response.
    """

    status_code: int
    status_message: str | None
    headers: RawHeaders
    content: bytes
    trailers: RawHeaders = field(default_factory=list)
    http_version: str = "1.1"
    elapsed: float = 0.0
    request: RequestDefinition | None = None

    @property
    def ok(self) -> bool:
        """Check if status code indicates success (2xx)."""
        return 200 <= self.status_code < 300

    def get_all(self, name: str) -> list[str]:
        """Return every value of a header, case-insensitively, in order."""
        lowered = name.lower()
        return [value for key, value in self.headers if key.lower() == lowered]


class RawHTTPError(Exception):
    """Base exception for raw HTTP errors."""
    pass


class TransportError(RawHTTPError):
    """Error while exchanging data with the remote server."""

    def __init__(self, message: str, original_error: BaseException | None = None):
        super().__init__(message)
        self.original_error = original_error


class ConnectionError(TransportError):
    """The connection failed before a response head was received."""


class ProtocolError(TransportError):
    """The response was malformed or interrupted."""


class CancellationError(TransportError):
    """The request was cancelled by the caller."""

    def __init__(self, message: str = "Request cancelled", reason: Any = None):
        super().__init__(message)
        self.reason = reason


class TransportClosed(RawHTTPError):
    """The transport was used after being closed."""

    def __init__(self, message: str = "Transport is closed"):
        super().__init__(message)


class RawHeaderModeUnsupported(RawHTTPError):
    """The transport cannot send caller-supplied header bytes verbatim."""

    def __init__(self, transport: Any):
        super().__init__(
            f"{type(transport).__name__} does not support raw header mode"
        )
        self.transport = transport


class UnsupportedSchemeError(RawHTTPError, ValueError):
    """The URL scheme is neither http nor https."""

    def __init__(self, scheme: str):
        super().__init__(f"Unsupported URL scheme: {scheme!r}")
        self.scheme = scheme
