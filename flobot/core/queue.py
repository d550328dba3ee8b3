"""Unbounded event queue between the backend listener and the event loop."""

from __future__ import annotations

import asyncio

from flobot.models import Event

_CLOSED = object()


class QueueClosed(Exception):
    """The producer side of the queue was closed."""


class EventQueue:
    def __init__(self) -> None:
        self._queue: asyncio.Queue[object] = asyncio.Queue()
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    def put(self, event: Event) -> None:
        if self._closed:
            raise QueueClosed("cannot put on a closed queue")
        self._queue.put_nowait(event)

    def close(self) -> None:
        """Close the producer side. Events already queued are still delivered."""
        if self._closed:
            return
        self._closed = True
        self._queue.put_nowait(_CLOSED)

    async def get(self, timeout: float | None = None) -> Event:
        """Wait for the next event.

        Raises ``asyncio.TimeoutError`` when nothing arrives within ``timeout``
        and ``QueueClosed`` once the queue is closed and drained.
        """
        item = await asyncio.wait_for(self._queue.get(), timeout=timeout)
        if item is _CLOSED:
            # Keep the marker for any later get() call.
            self._queue.put_nowait(_CLOSED)
            raise QueueClosed("receiving channel closed")
        return item  # type: ignore[return-value]

    def qsize(self) -> int:
        return self._queue.qsize() - (1 if self._closed else 0)
