"""Configuration dataclass for the raw request transmitter."""

from dataclasses import dataclass


@dataclass
class TransmitterConfig:
    """Configuration for RawRequestTransmitter.

    Attributes:
        connect_timeout: Seconds allowed for TCP connect and TLS handshake.
                         None waits indefinitely.
        read_timeout: Seconds allowed for each socket read. None waits
                      indefinitely, which suits long-polling responses.
        write_timeout: Seconds allowed for writing the request.
        verify_ssl: Whether to verify TLS certificates and hostnames.
        read_chunk_size: Maximum bytes requested per socket read.
        max_pending_events: Capacity of the event channel. When this many
                            events are waiting for the consumer, the
                            transmitter stops reading from the socket.
        verbose: Print a trace of every finished exchange to stderr.
    """

    # Timeouts
    connect_timeout: float | None = 10.0
    read_timeout: float | None = None
    write_timeout: float | None = None

    # TLS
    verify_ssl: bool = True

    # Streaming
    read_chunk_size: int = 65536
    max_pending_events: int = 16

    # Debugging
    verbose: bool = False

    def __post_init__(self) -> None:
        """Validate configuration values."""
        for name in ("connect_timeout", "read_timeout", "write_timeout"):
            value = getattr(self, name)
            if value is not None and value <= 0:
                raise ValueError(f"{name} must be > 0 or None")
        if self.read_chunk_size < 1:
            raise ValueError("read_chunk_size must be >= 1")
        if self.max_pending_events < 1:
            raise ValueError("max_pending_events must be >= 1")
