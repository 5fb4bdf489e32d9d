"""
Binance stream client.

Usage:
    from binance_streams import SpotStreams, SettingsLoader

    settings = SettingsLoader().load("binance.toml")
    streams = SpotStreams.from_settings(settings.streams)
    shutdown = asyncio.Event()
    handle = await streams.kline(shutdown, "BTCUSDT", "1m", on_kline, on_error)
    await handle.wait()
"""

from binance_streams.errors import (
    APIError,
    BinanceStreamsError,
    ConfigurationError,
    DecodeError,
    HandshakeError,
    LivenessTimeoutError,
    RequestError,
    ServiceError,
    TransportError,
)
from binance_streams.futures import FuturesStreams
from binance_streams.settings import Settings, SettingsLoader
from binance_streams.spot import SpotStreams
from binance_streams.ws import (
    EventChannel,
    KeepaliveConfig,
    ServeHandle,
    WsConfig,
    serve,
)

__all__ = [
    # Entry points
    "serve",
    "SpotStreams",
    "FuturesStreams",
    "EventChannel",
    # Config
    "Settings",
    "SettingsLoader",
    "WsConfig",
    "KeepaliveConfig",
    "ServeHandle",
    # Errors
    "BinanceStreamsError",
    "ConfigurationError",
    "HandshakeError",
    "TransportError",
    "LivenessTimeoutError",
    "DecodeError",
    "RequestError",
    "APIError",
    "ServiceError",
]
