"""Abstract transport protocol for raw HTTP connections."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any, Protocol, runtime_checkable

import httpcore


@runtime_checkable
class RawTransport(Protocol):
    """Protocol defining the transport interface.

    Transports open one connection per request and hand back a byte stream.
    They never build requests themselves, so whatever bytes the caller
    writes reach the server untouched.
    """

    @property
    def supports_raw_header_mode(self) -> bool:
        """Whether caller-supplied head bytes are written verbatim.

        Transmitters refuse transports that cannot guarantee this.
        """
        ...

    async def connect(
        self,
        scheme: str,
        host: str,
        port: int,
    ) -> httpcore.AsyncNetworkStream:
        """Open a fresh plain or TLS connection.

        Args:
            scheme: "http" or "https".
            host: Host name or IP address to connect to.
            port: TCP port.

        Returns:
            A connected network stream owned by the caller.

        Raises:
            TransportClosed: If the transport has been closed.
            httpcore.ConnectError: On connection or TLS handshake failure.
            httpcore.ConnectTimeout: If connecting exceeds the timeout.
        """
        ...

    async def close_async(self) -> None:
        """Close the transport."""
        ...


class BaseRawTransport(ABC):
    """Abstract base class for transport implementations.

    Provides timeout storage, closed-state tracking and context management.
    """

    def __init__(
        self,
        connect_timeout: float | None = 10.0,
        verify_ssl: bool = True,
    ):
        """Initialize transport.

        Args:
            connect_timeout: Connect and TLS handshake timeout.
            verify_ssl: Whether to verify TLS certificates.
        """
        self._connect_timeout = connect_timeout
        self._verify_ssl = verify_ssl
        self._closed = False

    @property
    def is_closed(self) -> bool:
        """Check if transport has been closed."""
        return self._closed

    @property
    def supports_raw_header_mode(self) -> bool:
        """Transports must opt in explicitly."""
        return False

    @abstractmethod
    async def connect(
        self,
        scheme: str,
        host: str,
        port: int,
    ) -> httpcore.AsyncNetworkStream:
        """Open a fresh plain or TLS connection."""
        raise NotImplementedError

    async def close_async(self) -> None:
        """Close the transport."""
        self._closed = True

    async def __aenter__(self) -> "BaseRawTransport":
        return self

    async def __aexit__(self, *args: Any) -> None:
        await self.close_async()
