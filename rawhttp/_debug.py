"""Debug/verbose mode for RawRequestTransmitter."""

from __future__ import annotations

import sys
from dataclasses import dataclass, field
from datetime import datetime
from typing import Callable, TextIO

from .models import RawHeaders

SENSITIVE_HEADERS = frozenset({"authorization", "proxy-authorization", "cookie"})


@dataclass
class ExchangeTrace:
    """Debug information for one request/response exchange.

    Populated by the transmitter as events are produced, and handed to
    DebugOutput once the exchange ends, fails or is cancelled.
    """

    # Request info
    timestamp: datetime
    method: str
    url: str
    request_headers: RawHeaders = field(default_factory=list)
    body_length: int = 0

    # Connection info
    backend: str | None = None
    tls: bool = False

    # Response details (populated after the head arrives)
    status_code: int | None = None
    status_message: str | None = None
    response_headers: RawHeaders = field(default_factory=list)
    body_parts: int = 0
    content_length: int = 0
    elapsed: float = 0.0

    # Error info
    error: str | None = None


class DebugOutput:
    """Handles verbose output formatting and dispatch."""

    def __init__(
        self,
        enabled: bool = False,
        output: TextIO | None = None,
        callback: Callable[[ExchangeTrace], None] | None = None,
    ):
        """Initialize debug output handler.

        Args:
            enabled: Whether verbose output is enabled.
            output: Output stream (defaults to stderr).
            callback: Optional callback for programmatic capture. Called
                      even when printing is disabled.
        """
        self.enabled = enabled
        self.output = output or sys.stderr
        self.callback = callback

    @property
    def active(self) -> bool:
        """Whether traces are printed or captured at all."""
        return self.enabled or self.callback is not None

    def log_exchange(self, trace: ExchangeTrace) -> None:
        """Dispatch a finished exchange trace.

        Args:
            trace: Trace to report.
        """
        if self.callback:
            self.callback(trace)

        if self.enabled:
            self._print_formatted(trace)

    def _print_formatted(self, trace: ExchangeTrace) -> None:
        """Print formatted debug output to stream.

        Args:
            trace: Trace to format and print.
        """
        out = self.output
        sep = "=" * 80

        out.write(f"\n{sep}\n")
        out.write(f"[{trace.timestamp.strftime('%Y-%m-%d %H:%M:%S')}] ")
        out.write(f"{trace.method} {trace.url}\n")
        out.write(f"{sep}\n")

        parts = [f"Backend: {trace.backend or 'unknown'}"]
        parts.append("TLS: ON" if trace.tls else "TLS: OFF")
        parts.append(f"Body: {trace.body_length:,} bytes")
        out.write(" | ".join(parts) + "\n")

        # Wire order, duplicates included
        if trace.request_headers:
            out.write("\n> Request Headers:\n")
            for key, value in trace.request_headers:
                out.write(f"  {key}: {self._display_value(key, value)}\n")
        else:
            out.write("\n> Request Headers: (none)\n")

        out.write("\n" + "-" * 80 + "\n")

        if trace.status_code is not None:
            out.write(f"< HTTP {trace.status_code}")
            if trace.status_message:
                out.write(f" {trace.status_message}")
            if trace.elapsed:
                out.write(f"  [{trace.elapsed:.3f}s]")
            out.write("\n")

            if trace.response_headers:
                out.write("\n< Response Headers:\n")
                for key, value in trace.response_headers:
                    out.write(f"  {key}: {self._display_value(key, value)}\n")

            out.write(
                f"\n< Body: {trace.content_length:,} bytes"
                f" in {trace.body_parts} part(s)\n"
            )

        if trace.error:
            out.write(f"< ERROR: {trace.error}\n")

        out.write(f"{sep}\n")
        out.flush()

    def _display_value(self, key: str, value: str) -> str:
        """Mask credentials and truncate long values for display.

        Args:
            key: Header name.
            value: Header value.

        Returns:
            Value safe to print.
        """
        if key.lower() in SENSITIVE_HEADERS and value:
            scheme, _, rest = value.partition(" ")
            if rest and key.lower() != "cookie":
                return f"{scheme} ****"
            return "****"

        if len(value) > 80:
            value = value[:77] + "..."
        return value
