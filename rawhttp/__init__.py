"""Raw HTTP/1.1 request transmitter.

Sends requests with exactly the request line, headers and body the caller
gives, and reports the exchange as an ordered stream of lifecycle events:

- No header is ever added, removed, merged or reordered (no automatic Host,
  Content-Length, Transfer-Encoding or Connection)
- Plain HTTP and HTTPS, one fresh connection per request
- Bounded event stream with backpressure
- Cooperative cancellation at any point of the exchange
- Response bodies delivered as raw, undecoded chunks

Basic usage:

    import asyncio
    from rawhttp import RequestDefinition, send_request

    async def main():
        definition = RequestDefinition(
            method="GET",
            url="https://example.com/",
            headers=[("Host", "example.com"), ("X-A", "1"), ("X-A", "2")],
        )
        async with send_request(definition) as events:
            async for event in events:
                print(event.type, event)

    asyncio.run(main())

    # Cancellation
    signal = CancellationSignal()
    events = send_request(definition, RequestOptions(cancellation_signal=signal))
    signal.cancel()

    # Aggregated response
    async with RawRequestTransmitter(TransmitterConfig(verbose=True)) as transmitter:
        response = await transmitter.send_request(definition).read_response()
        print(response.status_code, response.headers, len(response.content))
"""

from .cancellation import CancellationSignal
from .config import TransmitterConfig
from .headers import flatten_paired_headers, pair_flat_headers, serialize_request_head
from .models import (
    RawHeaders,
    RequestDefinition,
    RequestOptions,
    RequestStart,
    ResponseHead,
    ResponseBodyPart,
    ResponseEnd,
    ResponseStreamEvent,
    RawResponse,
    RawHTTPError,
    TransportError,
    ConnectionError,
    ProtocolError,
    CancellationError,
    TransportClosed,
    RawHeaderModeUnsupported,
    UnsupportedSchemeError,
)
from .stream import ResponseStream
from .transmitter import RawRequestTransmitter, send_request
from .transport import BaseRawTransport, NetworkTransport, RawTransport

__version__ = "0.1.0"

__all__ = [
    # Transmitter
    "RawRequestTransmitter",
    "send_request",
    "ResponseStream",
    # Configuration
    "TransmitterConfig",
    # Header codec
    "pair_flat_headers",
    "flatten_paired_headers",
    "serialize_request_head",
    # Models
    "RawHeaders",
    "RequestDefinition",
    "RequestOptions",
    "RequestStart",
    "ResponseHead",
    "ResponseBodyPart",
    "ResponseEnd",
    "ResponseStreamEvent",
    "RawResponse",
    # Cancellation
    "CancellationSignal",
    # Exceptions
    "RawHTTPError",
    "TransportError",
    "ConnectionError",
    "ProtocolError",
    "CancellationError",
    "TransportClosed",
    "RawHeaderModeUnsupported",
    "UnsupportedSchemeError",
    # Transports
    "RawTransport",
    "BaseRawTransport",
    "NetworkTransport",
    # Version
    "__version__",
]
