"""Raw request transmitter: exact request bytes out, lifecycle events back."""

from __future__ import annotations

import asyncio
import logging
import time
from datetime import datetime
from typing import Any, Callable

import h11
import httpcore
import httpx

from ._debug import DebugOutput, ExchangeTrace
from .cancellation import CancellationSignal
from .config import TransmitterConfig
from .headers import pair_flat_headers, serialize_request_head
from .models import (
    CancellationError,
    ConnectionError,
    ProtocolError,
    RawHeaderModeUnsupported,
    RawHeaders,
    RequestDefinition,
    RequestOptions,
    RequestStart,
    ResponseBodyPart,
    ResponseEnd,
    ResponseHead,
    TransportClosed,
    TransportError,
    UnsupportedSchemeError,
)
from .stream import ResponseStream
from .transport import DEFAULT_PORTS, NetworkTransport, RawTransport

logger = logging.getLogger(__name__)

# Methods whose response framing differs; everything else frames like GET.
_FRAMING_METHODS = frozenset({"HEAD", "CONNECT"})


def _flatten_raw_items(items: list[tuple[bytes, bytes]]) -> list[str]:
    flat: list[str] = []
    for name, value in items:
        flat.append(name.decode("latin-1"))
        flat.append(value.decode("latin-1"))
    return flat


class _ResponseParser:
    """HTTP/1.1 response parser for a request written outside h11.

    h11 only parses a response after it has seen the request, so the
    client side is advanced with a minimal request that is never written
    anywhere. The method decides the response framing (HEAD has no body,
    a 2xx to CONNECT switches protocols).
    """

    def __init__(self, method: str, target: str, host: str):
        self._conn = h11.Connection(our_role=h11.CLIENT)
        framing_method = method.upper()
        if framing_method not in _FRAMING_METHODS:
            framing_method = "GET"
        self._conn.send(
            h11.Request(
                method=framing_method,
                target=target,
                headers=[("Host", host or "localhost")],
            )
        )
        self._conn.send(h11.EndOfMessage())
        self.bytes_received = 0

    def receive_data(self, data: bytes) -> None:
        self.bytes_received += len(data)
        self._conn.receive_data(data)

    def next_event(self) -> Any:
        return self._conn.next_event()


class RawRequestTransmitter:
    """Sends HTTP/1.1 requests byte-for-byte as defined by the caller.

    Each call to ``send_request`` opens its own connection, writes the exact
    request line, headers and body, and returns a ResponseStream that yields
    RequestStart, ResponseHead, ResponseBodyPart... and ResponseEnd. The
    connection is closed when the exchange ends, fails or is cancelled. No
    state is shared between requests.
    """

    def __init__(
        self,
        config: TransmitterConfig | None = None,
        transport: RawTransport | None = None,
        debug_callback: Callable[[ExchangeTrace], None] | None = None,
    ):
        """Initialize transmitter.

        Args:
            config: Transmitter configuration (defaults used if None).
            transport: Connection transport (NetworkTransport if None).
            debug_callback: Called with an ExchangeTrace after each exchange.

        Raises:
            RawHeaderModeUnsupported: If the transport cannot write
                caller-supplied head bytes verbatim.
        """
        self._config = config or TransmitterConfig()
        self._owns_transport = transport is None
        self._transport: RawTransport = transport or NetworkTransport(
            connect_timeout=self._config.connect_timeout,
            verify_ssl=self._config.verify_ssl,
        )
        if not self._transport.supports_raw_header_mode:
            raise RawHeaderModeUnsupported(self._transport)

        self._debug = DebugOutput(
            enabled=self._config.verbose,
            callback=debug_callback,
        )

    @property
    def config(self) -> TransmitterConfig:
        """Get transmitter configuration."""
        return self._config

    @property
    def transport(self) -> RawTransport:
        """Get the underlying transport."""
        return self._transport

    def send_request(
        self,
        definition: RequestDefinition,
        options: RequestOptions | None = None,
    ) -> ResponseStream:
        """Send a request and stream back its lifecycle events.

        Must be called from a running event loop. Returns immediately; the
        connection is opened and the request written by a background task.
        RequestStart is queued before this method returns.

        Args:
            definition: Exact request to send.
            options: Per-request options (cancellation signal).

        Returns:
            ResponseStream of lifecycle events. Transport failures and
            cancellation are raised from it as ConnectionError,
            ProtocolError or CancellationError.

        Raises:
            UnsupportedSchemeError: If the URL is not http or https.
            httpx.InvalidURL: If the URL cannot be parsed.
            ValueError: If the request head is not latin-1 encodable.
            RuntimeError: If no event loop is running.
        """
        options = options or RequestOptions()
        url = httpx.URL(definition.url)
        if url.scheme not in DEFAULT_PORTS:
            raise UnsupportedSchemeError(url.scheme)

        host = url.raw_host.decode("ascii")
        port = url.port or DEFAULT_PORTS[url.scheme]
        target = url.raw_path.decode("ascii")
        payload = serialize_request_head(definition.method, target, definition.headers)
        if definition.raw_body:
            payload += bytes(definition.raw_body)

        loop = asyncio.get_running_loop()
        stream = ResponseStream(self._config.max_pending_events, request=definition)
        start = RequestStart(start_time=time.time(), timestamp=time.perf_counter())
        stream._push_nowait(start)

        trace = self._new_trace(definition, url.scheme) if self._debug.active else None
        signal = options.cancellation_signal
        if signal is not None and signal.cancelled:
            stream._fail(CancellationError(reason=signal.reason), discard_pending=True)
            self._finish_trace(trace, start, "Request cancelled before sending")
            return stream

        task = loop.create_task(
            self._exchange(
                stream, definition.method, url.scheme, host, port, target,
                payload, start, trace,
            )
        )
        stream._attach_producer(task)

        if signal is not None:
            self._link_signal(signal, stream, task)

        return stream

    def _link_signal(
        self,
        signal: CancellationSignal,
        stream: ResponseStream,
        task: asyncio.Task[None],
    ) -> None:
        """Abort the exchange when the signal fires."""

        def on_cancel(reason: Any) -> None:
            if stream._fail(CancellationError(reason=reason), discard_pending=True):
                task.cancel()

        signal.add_callback(on_cancel)
        task.add_done_callback(lambda _: signal.remove_callback(on_cancel))

    async def _exchange(
        self,
        stream: ResponseStream,
        method: str,
        scheme: str,
        host: str,
        port: int,
        target: str,
        payload: bytes,
        start: RequestStart,
        trace: ExchangeTrace | None,
    ) -> None:
        """Connect, write the request and feed response events to the stream."""
        network_stream: httpcore.AsyncNetworkStream | None = None
        parser: _ResponseParser | None = None
        head_received = False
        error_text: str | None = None

        try:
            parser = _ResponseParser(method, target, host)
            network_stream = await self._transport.connect(scheme, host, port)
            await network_stream.write(payload, timeout=self._config.write_timeout)

            while True:
                event = parser.next_event()

                if event is h11.NEED_DATA:
                    data = await network_stream.read(
                        self._config.read_chunk_size,
                        timeout=self._config.read_timeout,
                    )
                    parser.receive_data(data)

                elif isinstance(event, h11.InformationalResponse):
                    logger.debug(
                        "Skipping interim %d response from %s", event.status_code, host
                    )

                elif isinstance(event, h11.Response):
                    head_received = True
                    head = ResponseHead(
                        status_code=event.status_code,
                        status_message=event.reason.decode("latin-1") or None,
                        headers=pair_flat_headers(
                            _flatten_raw_items(event.headers.raw_items())
                        ),
                        timestamp=time.perf_counter(),
                        http_version=event.http_version.decode("ascii"),
                    )
                    if trace is not None:
                        trace.status_code = head.status_code
                        trace.status_message = head.status_message
                        trace.response_headers = head.headers
                    await stream._push(head)

                elif isinstance(event, h11.Data):
                    part = ResponseBodyPart(
                        raw_body=bytes(event.data),
                        timestamp=time.perf_counter(),
                    )
                    if trace is not None:
                        trace.body_parts += 1
                        trace.content_length += len(part.raw_body)
                    await stream._push(part)

                elif isinstance(event, h11.EndOfMessage) or event is h11.PAUSED:
                    trailers: RawHeaders = []
                    if isinstance(event, h11.EndOfMessage):
                        trailers = pair_flat_headers(
                            _flatten_raw_items(event.headers.raw_items())
                        )
                    await stream._end(
                        ResponseEnd(timestamp=time.perf_counter(), trailers=trailers)
                    )
                    return

                elif isinstance(event, h11.ConnectionClosed):
                    raise h11.RemoteProtocolError("peer closed connection")

        except asyncio.CancelledError:
            error_text = "Request cancelled"
            raise
        except Exception as e:
            received = parser.bytes_received if parser is not None else 0
            error = self._wrap_error(e, head_received, received)
            error_text = str(error)
            logger.debug("Request to %s://%s:%d failed: %s", scheme, host, port, error)
            stream._fail(error)
        finally:
            if network_stream is not None:
                await self._close_stream(network_stream)
            self._finish_trace(trace, start, error_text)

    def _wrap_error(
        self,
        error: Exception,
        head_received: bool,
        bytes_received: int,
    ) -> TransportError:
        """Translate library exceptions into the stream's error kinds.

        Args:
            error: Exception raised during the exchange.
            head_received: Whether a ResponseHead was emitted.
            bytes_received: Response bytes read so far.

        Returns:
            ConnectionError for failures before any response data,
            ProtocolError for malformed or interrupted responses.
        """
        if isinstance(error, TransportError):
            return error

        name = type(error).__name__
        message = f"{name}: {error}" if str(error) else name

        if isinstance(error, (httpcore.ConnectError, httpcore.ConnectTimeout, TransportClosed)):
            return ConnectionError(f"Connection failed: {message}", original_error=error)

        if isinstance(error, (httpcore.WriteError, httpcore.WriteTimeout)):
            return ConnectionError(f"Request write failed: {message}", original_error=error)

        if isinstance(error, h11.RemoteProtocolError):
            if bytes_received == 0:
                return ConnectionError(
                    "Connection closed before a response was received",
                    original_error=error,
                )
            return ProtocolError(f"Malformed response: {message}", original_error=error)

        if head_received:
            return ProtocolError(f"Response interrupted: {message}", original_error=error)
        return ConnectionError(f"Request failed: {message}", original_error=error)

    async def _close_stream(self, network_stream: httpcore.AsyncNetworkStream) -> None:
        """Close a connection, logging failures instead of masking the outcome."""
        try:
            await network_stream.aclose()
        except (httpcore.NetworkError, OSError) as e:
            logger.debug("Error closing connection: %s", e)

    def _new_trace(self, definition: RequestDefinition, scheme: str) -> ExchangeTrace:
        return ExchangeTrace(
            timestamp=datetime.now(),
            method=definition.method,
            url=definition.url,
            request_headers=list(definition.headers),
            body_length=len(definition.raw_body or b""),
            backend=getattr(self._transport, "backend_name", type(self._transport).__name__),
            tls=scheme == "https",
        )

    def _finish_trace(
        self,
        trace: ExchangeTrace | None,
        start: RequestStart,
        error: str | None,
    ) -> None:
        if trace is None:
            return
        trace.elapsed = time.perf_counter() - start.timestamp
        trace.error = error
        try:
            self._debug.log_exchange(trace)
        except Exception:
            # The exchange outcome is already recorded on the stream.
            logger.warning("Debug callback failed for %s", trace.url, exc_info=True)

    async def close_async(self) -> None:
        """Close the transport if this transmitter created it."""
        if self._owns_transport:
            await self._transport.close_async()

    async def __aenter__(self) -> "RawRequestTransmitter":
        return self

    async def __aexit__(self, *args: Any) -> None:
        await self.close_async()


def send_request(
    definition: RequestDefinition,
    options: RequestOptions | None = None,
    *,
    config: TransmitterConfig | None = None,
) -> ResponseStream:
    """Send a request with a fresh transmitter.

    See RawRequestTransmitter.send_request.
    """
    return RawRequestTransmitter(config).send_request(definition, options)
