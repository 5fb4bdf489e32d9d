"""
Configuration types for WebSocket streams.

Immutable, validated dataclasses passed explicitly to each serve() call.
Nothing here is process-wide: two subscriptions may run with different
keepalive or dial settings side by side.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Optional, Union

from binance_streams.errors import ConfigurationError

# Maximum inbound message size in bytes
READ_LIMIT = 655_350
HANDSHAKE_TIMEOUT_S = 45.0
KEEPALIVE_TIMEOUT_S = 60.0
PING_WRITE_TIMEOUT_S = 10.0


class Venue(str, Enum):
    """Supported stream venues."""

    BINANCE_SPOT = "binance_spot"
    BINANCE_FUTURES = "binance_futures"
    BINANCE_SPOT_TESTNET = "binance_spot_testnet"
    BINANCE_FUTURES_TESTNET = "binance_futures_testnet"


# Binance WebSocket hosts; "/ws" and "/stream" paths are appended per stream
BINANCE_WS_ENDPOINTS: dict[Venue, str] = {
    Venue.BINANCE_SPOT: "wss://stream.binance.com:9443",
    Venue.BINANCE_FUTURES: "wss://fstream.binance.com",
    Venue.BINANCE_SPOT_TESTNET: "wss://testnet.binance.vision",
    Venue.BINANCE_FUTURES_TESTNET: "wss://stream.binancefuture.com",
}


@dataclass(frozen=True)
class KeepaliveConfig:
    """Liveness checking for one connection.

    A ping is sent every ``timeout_s / 2``; the connection is closed when no
    pong arrived for longer than ``timeout_s``.
    """

    enabled: bool = True
    timeout_s: float = KEEPALIVE_TIMEOUT_S
    write_timeout_s: float = PING_WRITE_TIMEOUT_S

    def __post_init__(self) -> None:
        if self.timeout_s <= 0:
            raise ConfigurationError(
                "timeout_s must be positive",
                field="timeout_s",
                value=self.timeout_s,
            )
        if self.write_timeout_s <= 0:
            raise ConfigurationError(
                "write_timeout_s must be positive",
                field="write_timeout_s",
                value=self.write_timeout_s,
            )

    @property
    def interval_s(self) -> float:
        """Delay between two pings."""
        return self.timeout_s / 2


@dataclass(frozen=True)
class DialConfig:
    """Handshake settings for the default aiohttp dialer."""

    handshake_timeout_s: float = HANDSHAKE_TIMEOUT_S
    read_limit: int = READ_LIMIT
    proxy: Optional[str] = None

    def __post_init__(self) -> None:
        if self.handshake_timeout_s <= 0:
            raise ConfigurationError(
                "handshake_timeout_s must be positive",
                field="handshake_timeout_s",
                value=self.handshake_timeout_s,
            )
        if self.read_limit <= 0:
            raise ConfigurationError(
                "read_limit must be positive",
                field="read_limit",
                value=self.read_limit,
            )


@dataclass(frozen=True)
class WsConfig:
    """Endpoint plus the messages written right after the handshake."""

    endpoint: str
    send_after_connect: tuple[Union[str, bytes], ...] = field(default_factory=tuple)

    def __post_init__(self) -> None:
        if not self.endpoint:
            raise ConfigurationError("endpoint is required", field="endpoint")
        if not self.endpoint.startswith(("ws://", "wss://", "http://", "https://")):
            raise ConfigurationError(
                "endpoint must be a ws:// or wss:// URL",
                field="endpoint",
                value=self.endpoint,
            )
