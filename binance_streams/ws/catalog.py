"""
Base class for per-venue stream catalogs.

A catalog turns subscription arguments into stream names and endpoints,
wraps the typed handler in the matching decoder, and calls serve() with the
catalog's keepalive and dial settings.
"""

from __future__ import annotations

import asyncio
from typing import TYPE_CHECKING, ClassVar, Iterable, Optional, Self, Union

from binance_streams.errors import ConfigurationError
from binance_streams.ws.config import (
    BINANCE_WS_ENDPOINTS,
    DialConfig,
    KeepaliveConfig,
    Venue,
    WsConfig,
)
from binance_streams.ws.connection import Dialer
from binance_streams.ws.supervisor import serve
from binance_streams.ws.types import ErrHandler, ServeHandle, WsHandler

if TYPE_CHECKING:
    from binance_streams.settings import StreamSettings

DEPTH_LEVELS = (5, 10, 20)


class StreamCatalog:
    """Endpoint building and serve() plumbing shared by spot and futures."""

    venue: ClassVar[Venue]
    testnet_venue: ClassVar[Venue]

    def __init__(
        self,
        *,
        testnet: bool = False,
        ws_base_url: Optional[str] = None,
        keepalive: Optional[KeepaliveConfig] = None,
        dial_config: Optional[DialConfig] = None,
        dial: Optional[Dialer] = None,
    ) -> None:
        default_url = BINANCE_WS_ENDPOINTS[self.testnet_venue if testnet else self.venue]
        self._base_url = (ws_base_url or default_url).rstrip("/")
        self._keepalive = keepalive or KeepaliveConfig()
        self._dial_config = dial_config or DialConfig()
        self._dial = dial

    @classmethod
    def from_settings(cls, settings: StreamSettings, *, dial: Optional[Dialer] = None) -> Self:
        return cls(
            testnet=settings.use_testnet,
            ws_base_url=settings.ws_base_url_for(cls.venue),
            keepalive=settings.keepalive(),
            dial_config=settings.dial_config(),
            dial=dial,
        )

    @property
    def base_url(self) -> str:
        return self._base_url

    @property
    def keepalive(self) -> KeepaliveConfig:
        return self._keepalive

    def endpoint(self, stream: str) -> str:
        """Single-stream endpoint, e.g. ``wss://host/ws/btcusdt@aggTrade``."""
        return f"{self._base_url}/ws/{stream}"

    def combined_endpoint(self, streams: Iterable[str]) -> str:
        """Combined endpoint, e.g. ``wss://host/stream?streams=a@x/b@x``."""
        names = list(streams)
        if not names:
            raise ConfigurationError(
                "at least one stream is required",
                field="streams",
                component=type(self).__name__,
            )
        return f"{self._base_url}/stream?streams=" + "/".join(names)

    @staticmethod
    def _check_levels(levels: int) -> None:
        if levels not in DEPTH_LEVELS:
            raise ConfigurationError(
                "Invalid levels", field="levels", value=levels, component="depth"
            )

    async def _serve(
        self,
        shutdown: asyncio.Event,
        endpoint: str,
        on_message: WsHandler,
        on_error: ErrHandler,
        *send_after_connect: Union[str, bytes],
        dial: Optional[Dialer] = None,
        name: str = "stream",
    ) -> ServeHandle:
        return await serve(
            shutdown,
            WsConfig(endpoint=endpoint),
            on_message,
            on_error,
            dial or self._dial,
            *send_after_connect,
            keepalive=self._keepalive,
            dial_config=self._dial_config,
            name=name,
        )
