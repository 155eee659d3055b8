"""Transport layer implementations."""

from .base import BaseRawTransport, RawTransport
from .network_transport import DEFAULT_PORTS, NetworkTransport, create_ssl_context

__all__ = [
    "RawTransport",
    "BaseRawTransport",
    "NetworkTransport",
    "DEFAULT_PORTS",
    "create_ssl_context",
]
