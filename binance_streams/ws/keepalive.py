"""
Liveness monitor for a supervised connection.

Sends a ping every ``timeout_s / 2`` and closes the connection when no pong
has arrived for longer than ``timeout_s``. Also answers peer pings. The
monitor never reconnects; the read loop sees the closed socket and reports
the failure.
"""

from __future__ import annotations

import asyncio
import logging
import time
from typing import Optional

from binance_streams.ws.config import KeepaliveConfig
from binance_streams.ws.connection import Connection
from binance_streams.ws.types import ConnectionMetrics

logger = logging.getLogger(__name__)


class LivenessMonitor:
    """
    Ping/pong keepalive for one connection.

    All state is touched from the event loop only, so pong timestamps need
    no locking.

    Usage:
        monitor = LivenessMonitor(conn, KeepaliveConfig(timeout_s=60))
        task = asyncio.create_task(monitor.run())
        # read loop:
        #   PING -> await monitor.handle_ping(msg.data)
        #   PONG -> monitor.handle_pong(msg.data)
    """

    def __init__(
        self,
        conn: Connection,
        config: KeepaliveConfig,
        metrics: Optional[ConnectionMetrics] = None,
        name: str = "keepalive",
    ) -> None:
        self._conn = conn
        self._config = config
        self._metrics = metrics or ConnectionMetrics()
        self._name = name

        self._last_pong = time.monotonic()
        self._timed_out = False
        self._silence_s = 0.0
        self._failure: Optional[BaseException] = None

    @property
    def timed_out(self) -> bool:
        """True if the monitor closed the connection for lack of pongs."""
        return self._timed_out

    @property
    def silence_s(self) -> float:
        """Time without pong measured when the timeout fired."""
        return self._silence_s

    @property
    def failure(self) -> Optional[BaseException]:
        """Ping write error that made the monitor close the connection."""
        return self._failure

    @property
    def last_pong(self) -> float:
        return self._last_pong

    async def handle_ping(self, payload: bytes) -> None:
        await self._conn.pong(payload)
        self._metrics.pings_answered += 1

    def handle_pong(self, payload: bytes) -> None:
        self._last_pong = time.monotonic()
        self._metrics.pongs_received += 1
        logger.debug(f"[{self._name}] pong")

    async def run(self) -> None:
        """Probe until the connection closes, a probe fails, or cancelled."""
        try:
            while not self._conn.closed:
                await asyncio.sleep(self._config.interval_s)
                if self._conn.closed:
                    return

                silence = time.monotonic() - self._last_pong
                if silence > self._config.timeout_s:
                    self._timed_out = True
                    self._silence_s = silence
                    logger.warning(
                        f"[{self._name}] No pong for {silence:.1f}s "
                        f"(timeout {self._config.timeout_s}s), closing connection"
                    )
                    await self._conn.close()
                    return

                try:
                    async with asyncio.timeout(self._config.write_timeout_s):
                        await self._conn.ping()
                    self._metrics.pings_sent += 1
                    logger.debug(f"[{self._name}] Sent ping")
                except Exception as e:
                    if self._conn.closed:
                        return
                    self._failure = e
                    logger.warning(f"[{self._name}] Ping failed, closing connection: {e!r}")
                    await self._conn.close()
                    return

        except asyncio.CancelledError:
            logger.debug(f"[{self._name}] Liveness monitor stopped")
            raise
