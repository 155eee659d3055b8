"""Cooperative cancellation token for in-flight requests."""

from __future__ import annotations

import asyncio
from typing import Any, Callable

CancelCallback = Callable[[Any], None]


class CancellationSignal:
    """External signal that asks an operation to stop early.

    Callbacks registered with ``add_callback`` run synchronously, in
    registration order, when ``cancel`` is first called. The signal is not
    thread-safe: call ``cancel`` from the event loop thread, or hand it over
    with ``loop.call_soon_threadsafe(signal.cancel)``.
    """

    def __init__(self) -> None:
        self._cancelled = False
        self._reason: Any = None
        self._callbacks: list[CancelCallback] = []

    @classmethod
    def after(cls, delay: float) -> "CancellationSignal":
        """Create a signal that cancels itself after ``delay`` seconds.

        Must be called with a running event loop.
        """
        if delay < 0:
            raise ValueError("delay must be >= 0")
        signal = cls()
        loop = asyncio.get_running_loop()
        loop.call_later(delay, signal.cancel, f"Timed out after {delay}s")
        return signal

    @property
    def cancelled(self) -> bool:
        """Check if the signal has fired."""
        return self._cancelled

    @property
    def reason(self) -> Any:
        """Reason passed to ``cancel``, if any."""
        return self._reason

    def cancel(self, reason: Any = None) -> None:
        """Fire the signal. Later calls are ignored."""
        if self._cancelled:
            return
        self._cancelled = True
        self._reason = reason

        callbacks, self._callbacks = self._callbacks, []
        for callback in callbacks:
            callback(reason)

    def add_callback(self, callback: CancelCallback) -> None:
        """Register a callback for when the signal fires.

        Callbacks added after the signal fired are never called; check
        ``cancelled`` first.
        """
        if not self._cancelled:
            self._callbacks.append(callback)

    def remove_callback(self, callback: CancelCallback) -> None:
        """Unregister a callback. Unknown callbacks are ignored."""
        try:
            self._callbacks.remove(callback)
        except ValueError:
            pass

    def __repr__(self) -> str:
        state = "cancelled" if self._cancelled else "active"
        return f"<CancellationSignal {state}>"
