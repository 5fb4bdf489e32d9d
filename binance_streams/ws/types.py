"""
Shared types for the WebSocket layer: states, metrics, callback aliases
and the handle returned by serve().
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass
from enum import Enum
from typing import Awaitable, Callable, Optional, TypeVar

T = TypeVar("T")

# Raw frame callback used by the supervisor
WsHandler = Callable[[bytes], Awaitable[None]]
# Typed event callback used by the decode wrappers
EventHandler = Callable[[T], Awaitable[None]]
ErrHandler = Callable[[Exception], Awaitable[None]]


class ConnectionState(str, Enum):
    """State machine for a supervised connection."""

    CONNECTING = "connecting"
    CONNECTED = "connected"
    CLOSING = "closing"
    CLOSED = "closed"


@dataclass
class ConnectionMetrics:
    """Counters for one supervised connection."""

    messages_received: int = 0
    bytes_received: int = 0
    pings_sent: int = 0
    pongs_received: int = 0
    pings_answered: int = 0
    handler_errors: int = 0

    # Timing
    connected_at: Optional[float] = None  # monotonic time
    last_message_at: Optional[float] = None  # monotonic time


class ServeHandle:
    """
    Lifecycle signals for one subscription.

    ``done`` is set exactly once, after the read loop has exited and the
    connection is closed. ``stop()`` asks the subscription to end without
    reporting an error; calling it more than once has no further effect.
    """

    def __init__(
        self,
        *,
        done: asyncio.Event,
        stop_event: asyncio.Event,
        metrics: ConnectionMetrics,
        state: Callable[[], ConnectionState],
        endpoint: str,
        owner: Optional[object] = None,
    ) -> None:
        self._done = done
        self._stop_event = stop_event
        self._metrics = metrics
        self._state = state
        self._endpoint = endpoint
        # keeps the supervisor and its tasks referenced while the handle lives
        self._owner = owner

    @property
    def done(self) -> asyncio.Event:
        return self._done

    @property
    def metrics(self) -> ConnectionMetrics:
        return self._metrics

    @property
    def state(self) -> ConnectionState:
        return self._state()

    @property
    def endpoint(self) -> str:
        return self._endpoint

    def stop(self) -> None:
        """Request a silent shutdown of the subscription."""
        self._stop_event.set()

    async def wait(self) -> None:
        """Wait until the subscription has fully ended."""
        await self._done.wait()

    def __repr__(self) -> str:
        return f"ServeHandle(endpoint={self._endpoint!r}, state={self.state.value})"
