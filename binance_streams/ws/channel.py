"""
Message-passing adapter for subscriptions.

EventChannel replaces the two callbacks with a single ordered queue: events
and errors are enqueued in the order they occur and an end marker follows
once the subscription's ``done`` is set. Consumers iterate with
``async for``.

Usage:
    channel: EventChannel[AggTradeEvent] = EventChannel()
    handle = await streams.agg_trade(shutdown, "BTCUSDT", channel.on_event, channel.on_error)
    channel.attach(handle)
    async for item in channel:
        if item.error is not None:
            ...
        else:
            process(item.event)
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import Generic, Optional, TypeVar

from binance_streams.errors import TransportError
from binance_streams.ws.types import ServeHandle

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass(frozen=True, slots=True)
class StreamItem(Generic[T]):
    """One event or one error from a subscription."""

    event: Optional[T] = None
    error: Optional[Exception] = None

    @property
    def is_terminal(self) -> bool:
        """True for the error that ended the subscription."""
        return isinstance(self.error, TransportError)


_END = object()


class EventChannel(Generic[T]):
    """Ordered queue of events and errors for one subscription.

    With a positive ``maxsize`` the queue is bounded. When it is full,
    ``on_event`` and ``on_error`` wait for the consumer, which holds up the
    read loop that feeds them. The default of 0 never blocks.
    """

    def __init__(self, maxsize: int = 0) -> None:
        self._queue: asyncio.Queue[object] = asyncio.Queue(maxsize=maxsize)
        self._closed = False
        self._watch_task: Optional[asyncio.Task[None]] = None

    @property
    def closed(self) -> bool:
        return self._closed

    def qsize(self) -> int:
        return self._queue.qsize()

    async def on_event(self, event: T) -> None:
        await self._queue.put(StreamItem(event=event))

    async def on_error(self, error: Exception) -> None:
        await self._queue.put(StreamItem(error=error))

    def attach(self, handle: ServeHandle) -> None:
        """End the channel once the subscription's ``done`` is set."""
        if self._watch_task is not None:
            raise RuntimeError("EventChannel is already attached")
        self._watch_task = asyncio.create_task(self._close_when_done(handle))

    async def _close_when_done(self, handle: ServeHandle) -> None:
        await handle.done.wait()
        await self.close()

    async def close(self) -> None:
        """Enqueue the end marker. Later calls have no effect."""
        if self._closed:
            return
        self._closed = True
        await self._queue.put(_END)

    def __aiter__(self) -> EventChannel[T]:
        return self

    async def __anext__(self) -> StreamItem[T]:
        item = await self._queue.get()
        if item is _END:
            # keep the marker for other consumers
            self._queue.put_nowait(_END)
            raise StopAsyncIteration
        assert isinstance(item, StreamItem)
        return item
