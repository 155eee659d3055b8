"""Bounded, single-consumer stream of exchange lifecycle events."""

from __future__ import annotations

import asyncio
from typing import Any

from .models import (
    RawResponse,
    RequestDefinition,
    RequestStart,
    ResponseBodyPart,
    ResponseEnd,
    ResponseHead,
    ResponseStreamEvent,
    TransportError,
)

# Queued after the last event of a failed exchange; the consumer raises the
# recorded failure when it reaches it.
_FAILED = object()

# Wakes a consumer still waiting when the stream is closed.
_CLOSED = object()


class ResponseStream:
    """Async iterator over the events of one request/response exchange.

    The stream is a bounded channel: the producer waits whenever
    ``max_pending_events`` events are queued, so a slow consumer throttles
    socket reads instead of growing memory. It is forward-only and cannot be
    restarted. Drain it or close it (``aclose`` or ``async with``) to
    release the connection.

    Usage:

        async with transmitter.send_request(definition) as events:
            async for event in events:
                ...
    """

    def __init__(
        self,
        max_pending_events: int = 16,
        request: RequestDefinition | None = None,
    ):
        """Initialize stream.

        Args:
            max_pending_events: Channel capacity, at least 1.
            request: Definition being sent, kept for ``read_response``.
        """
        if max_pending_events < 1:
            raise ValueError("max_pending_events must be >= 1")
        self._capacity = max_pending_events
        self._request = request

        # The bound is enforced in _push so that the failure marker can
        # always be queued without waiting.
        self._queue: asyncio.Queue[Any] = asyncio.Queue()
        self._space = asyncio.Event()
        self._space.set()

        self._producer: asyncio.Task[None] | None = None
        self._failure: BaseException | None = None
        self._failure_queued = False
        self._terminated = False  # end or failure recorded by the producer side
        self._exhausted = False  # consumer has seen the end
        self._reading = False

    # ------------------------------------------------------------------
    # Producer side
    # ------------------------------------------------------------------

    def _attach_producer(self, task: asyncio.Task[None]) -> None:
        self._producer = task

    def _push_nowait(self, event: ResponseStreamEvent) -> None:
        """Queue an event without waiting, ignoring the capacity."""
        if not self._terminated:
            self._queue.put_nowait(event)

    async def _push(self, event: ResponseStreamEvent) -> None:
        """Queue an event, waiting while the channel is full."""
        while self._queue.qsize() >= self._capacity and not self._terminated:
            self._space.clear()
            await self._space.wait()
        if not self._terminated:
            self._queue.put_nowait(event)

    async def _end(self, event: ResponseEnd) -> None:
        """Queue the final event. Nothing can follow it."""
        await self._push(event)
        self._terminated = True

    def _fail(self, error: BaseException, discard_pending: bool = False) -> bool:
        """Terminate the stream with ``error``.

        Ignored once the stream has ended or already failed.

        Args:
            error: Exception raised to the consumer.
            discard_pending: Drop queued events the consumer has not read.

        Returns:
            True if the failure was recorded.
        """
        if self._terminated:
            return False
        self._terminated = True
        self._failure = error

        if discard_pending:
            while not self._queue.empty():
                self._queue.get_nowait()
        self._queue.put_nowait(_FAILED)
        self._failure_queued = True
        self._space.set()
        return True

    # ------------------------------------------------------------------
    # Consumer side
    # ------------------------------------------------------------------

    @property
    def pending_events(self) -> int:
        """Number of queued events not yet delivered."""
        return self._queue.qsize() - (1 if self._failure_queued else 0)

    @property
    def is_terminated(self) -> bool:
        """Check if the exchange finished, failed or was cancelled."""
        return self._terminated

    def __aiter__(self) -> "ResponseStream":
        return self

    async def __anext__(self) -> ResponseStreamEvent:
        if self._exhausted:
            raise StopAsyncIteration
        if self._reading:
            raise RuntimeError("ResponseStream supports a single consumer")

        self._reading = True
        try:
            item = await self._queue.get()
        finally:
            self._reading = False
        self._space.set()

        if item is _CLOSED:
            raise StopAsyncIteration
        if item is _FAILED:
            self._exhausted = True
            self._failure_queued = False
            raise self._failure  # type: ignore[misc]
        if isinstance(item, ResponseEnd):
            self._exhausted = True
        return item

    async def aclose(self) -> None:
        """Stop the exchange and release the connection.

        Undelivered events are discarded. Safe to call more than once and
        after the stream has been drained. A consumer waiting for the next
        event sees the end of iteration.
        """
        finished = self._terminated
        self._exhausted = True
        self._terminated = True
        producer = self._producer
        if producer is not None and not producer.done():
            # A finished producer is only closing its connection
            if not finished:
                producer.cancel()
            await asyncio.wait([producer])
        while not self._queue.empty():
            self._queue.get_nowait()
        self._failure_queued = False
        if self._reading:
            self._queue.put_nowait(_CLOSED)

    async def read_response(self) -> RawResponse:
        """Drain the stream into a RawResponse.

        Returns:
            The aggregated response.

        Raises:
            TransportError: If the exchange failed or was cancelled.
        """
        start: RequestStart | None = None
        head: ResponseHead | None = None
        parts: list[bytes] = []
        end: ResponseEnd | None = None

        async for event in self:
            if isinstance(event, RequestStart):
                start = event
            elif isinstance(event, ResponseHead):
                head = event
            elif isinstance(event, ResponseBodyPart):
                parts.append(event.raw_body)
            elif isinstance(event, ResponseEnd):
                end = event

        if head is None or end is None:
            raise TransportError("Stream ended without a complete response")

        started = start.timestamp if start is not None else head.timestamp
        return RawResponse(
            status_code=head.status_code,
            status_message=head.status_message,
            headers=head.headers,
            content=b"".join(parts),
            trailers=end.trailers,
            http_version=head.http_version,
            elapsed=end.timestamp - started,
            request=self._request,
        )

    async def __aenter__(self) -> "ResponseStream":
        return self

    async def __aexit__(self, *args: Any) -> None:
        await self.aclose()

    def __repr__(self) -> str:
        state = "terminated" if self._terminated else "open"
        return f"<ResponseStream {state} pending={self.pending_events}>"
