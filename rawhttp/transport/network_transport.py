"""Socket transport built on httpcore's network backends."""

from __future__ import annotations

import logging
import ssl

import certifi
import httpcore

from ..models import TransportClosed, UnsupportedSchemeError
from .base import BaseRawTransport

logger = logging.getLogger(__name__)

DEFAULT_PORTS = {"http": 80, "https": 443}


def create_ssl_context(verify_ssl: bool = True) -> ssl.SSLContext:
    """Build a client TLS context restricted to HTTP/1.1.

    Args:
        verify_ssl: Verify the peer certificate against certifi's roots.

    Returns:
        Configured SSL context.
    """
    context = ssl.create_default_context(cafile=certifi.where())
    if not verify_ssl:
        context.check_hostname = False
        context.verify_mode = ssl.CERT_NONE
    context.set_alpn_protocols(["http/1.1"])
    return context


class NetworkTransport(BaseRawTransport):
    """Transport that opens plain TCP or TLS connections.

    Only raw byte streams are produced; there is no HTTP layer here, so
    no header is synthesized, merged or reordered.
    """

    def __init__(
        self,
        connect_timeout: float | None = 10.0,
        verify_ssl: bool = True,
        network_backend: httpcore.AsyncNetworkBackend | None = None,
        ssl_context: ssl.SSLContext | None = None,
    ):
        """Initialize network transport.

        Args:
            connect_timeout: Connect and TLS handshake timeout.
            verify_ssl: Whether to verify TLS certificates.
            network_backend: httpcore backend used to open sockets.
                             Defaults to AnyIOBackend.
            ssl_context: TLS context for https. Built from ``verify_ssl``
                         if not given.
        """
        super().__init__(connect_timeout, verify_ssl)
        self._network_backend = network_backend or httpcore.AnyIOBackend()
        self._ssl_context = ssl_context

    @property
    def supports_raw_header_mode(self) -> bool:
        return True

    def _get_ssl_context(self) -> ssl.SSLContext:
        """Get or create the TLS context (lazy initialization)."""
        if self._ssl_context is None:
            self._ssl_context = create_ssl_context(self._verify_ssl)
        return self._ssl_context

    async def connect(
        self,
        scheme: str,
        host: str,
        port: int,
    ) -> httpcore.AsyncNetworkStream:
        """Open a fresh connection, upgrading to TLS for https.

        Args:
            scheme: "http" or "https".
            host: Host name or IP address.
            port: TCP port.

        Returns:
            Connected network stream. The caller owns it and must close it.

        Raises:
            TransportClosed: If the transport has been closed.
            UnsupportedSchemeError: For schemes other than http/https.
            httpcore.ConnectError: On connection or TLS handshake failure.
            httpcore.ConnectTimeout: If connecting exceeds the timeout.
        """
        if self._closed:
            raise TransportClosed()
        if scheme not in DEFAULT_PORTS:
            raise UnsupportedSchemeError(scheme)

        logger.debug("Connecting to %s://%s:%d", scheme, host, port)
        stream = await self._network_backend.connect_tcp(
            host, port, timeout=self._connect_timeout
        )

        if scheme == "https":
            try:
                stream = await stream.start_tls(
                    self._get_ssl_context(),
                    server_hostname=host,
                    timeout=self._connect_timeout,
                )
            except BaseException:
                await stream.aclose()
                raise

        return stream

    @property
    def backend_name(self) -> str:
        """Get name of the underlying network backend."""
        return type(self._network_backend).__name__
