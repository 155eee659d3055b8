"""Shared test fixtures and configuration."""

import asyncio
import contextlib
from typing import AsyncGenerator

import httpcore
import pytest
import pytest_asyncio

from rawhttp import (
    NetworkTransport,
    RawRequestTransmitter,
    RequestDefinition,
    TransmitterConfig,
)


# ============== Network Doubles ==============

class RecordingStream(httpcore.AsyncMockStream):
    """Mock stream that replays scripted reads and records writes.

    When ``stall`` is set, reads block once the script is exhausted instead
    of reporting EOF, like a server that never answers.
    """

    def __init__(self, buffer: list[bytes], stall: bool = False):
        super().__init__(buffer)
        self.stall = stall
        self.written = bytearray()
        self.closed = False
        self.tls_hostname: str | None = None

    async def read(self, max_bytes: int, timeout: float | None = None) -> bytes:
        if self.stall and not self._buffer:
            await asyncio.Event().wait()
        return await super().read(max_bytes, timeout)

    async def write(self, buffer: bytes, timeout: float | None = None) -> None:
        self.written += buffer

    async def start_tls(self, ssl_context, server_hostname=None, timeout=None):
        self.tls_hostname = server_hostname
        return self

    async def aclose(self) -> None:
        self.closed = True
        await super().aclose()

    @property
    def unread(self) -> int:
        """Scripted reads not yet consumed."""
        return len(self._buffer)


class RecordingBackend(httpcore.AsyncMockBackend):
    """Mock backend handing out a fresh RecordingStream per connection."""

    def __init__(self, buffer: list[bytes], stall: bool = False):
        super().__init__(buffer)
        self.stall = stall
        self.connections: list[tuple[str, int]] = []
        self.streams: list[RecordingStream] = []

    async def connect_tcp(
        self,
        host,
        port,
        timeout=None,
        local_address=None,
        socket_options=None,
    ):
        self.connections.append((host, port))
        stream = RecordingStream(list(self._buffer), stall=self.stall)
        self.streams.append(stream)
        return stream


class CaptureServer:
    """Local TCP server recording the exact bytes of one request.

    Reads the head, then as many body bytes as a Content-Length header in
    it announces, and answers with a canned response.
    """

    def __init__(self, response: bytes):
        self.response = response
        self.received = b""
        self.port: int | None = None
        self.handled = asyncio.Event()
        self._server: asyncio.AbstractServer | None = None

    async def start(self) -> None:
        self._server = await asyncio.start_server(self._handle, "127.0.0.1", 0)
        self.port = self._server.sockets[0].getsockname()[1]

    async def stop(self) -> None:
        if self._server is not None:
            self._server.close()
            await self._server.wait_closed()

    def url(self, path: str = "/") -> str:
        return f"http://127.0.0.1:{self.port}{path}"

    async def _handle(self, reader: asyncio.StreamReader, writer: asyncio.StreamWriter) -> None:
        head = await reader.readuntil(b"\r\n\r\n")
        body = b""
        for line in head.split(b"\r\n")[1:]:
            name, _, value = line.partition(b":")
            if name.strip().lower() == b"content-length":
                body = await reader.readexactly(int(value.strip()))
        self.received = head + body

        writer.write(self.response)
        await writer.drain()
        writer.close()
        with contextlib.suppress(OSError):
            await writer.wait_closed()
        self.handled.set()


# ============== Response Scripts ==============

OK_HEAD = b"HTTP/1.1 200 OK\r\nContent-Length: 10\r\nContent-Type: text/plain\r\n\r\n"


@pytest.fixture
def ok_script() -> list[bytes]:
    """Response delivered as a head followed by two body chunks."""
    return [OK_HEAD, b"hello", b"world"]


@pytest.fixture
def chunked_script() -> list[bytes]:
    """Chunked response with a trailer."""
    return [
        b"HTTP/1.1 200 OK\r\nTransfer-Encoding: chunked\r\n\r\n",
        b"5\r\nhello\r\n",
        b"0\r\nX-Checksum: abc\r\n\r\n",
    ]


# ============== Request Fixtures ==============

@pytest.fixture
def get_definition() -> RequestDefinition:
    """GET with duplicate headers and no framing headers."""
    return RequestDefinition(
        method="GET",
        url="http://example.com/path?q=1",
        headers=[("Host", "example.com"), ("X-A", "1"), ("X-A", "2")],
    )


@pytest.fixture
def post_definition() -> RequestDefinition:
    """POST with a 100 byte body and a matching Content-Length."""
    return RequestDefinition(
        method="POST",
        url="http://example.com/upload",
        headers=[("Host", "example.com"), ("Content-Length", "100")],
        raw_body=bytes(range(100)),
    )


# ============== Transmitter Fixtures ==============

@pytest.fixture
def make_transmitter():
    """Factory building a transmitter over a RecordingBackend."""

    def factory(
        script: list[bytes],
        stall: bool = False,
        **config_kwargs,
    ) -> tuple[RawRequestTransmitter, RecordingBackend]:
        backend = RecordingBackend(script, stall=stall)
        config = TransmitterConfig(**config_kwargs)
        transport = NetworkTransport(
            connect_timeout=config.connect_timeout,
            network_backend=backend,
        )
        return RawRequestTransmitter(config, transport=transport), backend

    return factory


@pytest_asyncio.fixture
async def capture_server() -> AsyncGenerator[CaptureServer, None]:
    """Running CaptureServer answering with a short 200 response."""
    server = CaptureServer(
        b"HTTP/1.1 200 OK\r\nContent-Length: 2\r\nConnection: close\r\n\r\nok"
    )
    await server.start()
    yield server
    await server.stop()


async def collect(stream) -> list:
    """Drain a stream into a list of events."""
    return [event async for event in stream]
