"""
Supervised WebSocket streams.

Components:
- serve / ConnectionSupervisor: handshake, read loop, lifecycle signals
- LivenessMonitor: ping/pong keepalive
- Decoders: flat, array and combined-stream decode wrappers
- EventChannel: queue-based alternative to callbacks
"""

from binance_streams.ws.channel import EventChannel, StreamItem
from binance_streams.ws.config import DialConfig, KeepaliveConfig, Venue, WsConfig
from binance_streams.ws.connection import AiohttpDialer, Connection, Dialer
from binance_streams.ws.dispatch import (
    CombinedEnvelope,
    array_event_handler,
    combined_event_handler,
    event_handler,
    raw_handler,
)
from binance_streams.ws.keepalive import LivenessMonitor
from binance_streams.ws.supervisor import ConnectionSupervisor, serve
from binance_streams.ws.types import ConnectionMetrics, ConnectionState, ServeHandle

__all__ = [
    # Entry point
    "serve",
    "ConnectionSupervisor",
    "ServeHandle",
    # Config
    "WsConfig",
    "KeepaliveConfig",
    "DialConfig",
    "Venue",
    # Connection
    "Connection",
    "Dialer",
    "AiohttpDialer",
    "LivenessMonitor",
    "ConnectionState",
    "ConnectionMetrics",
    # Decoding
    "CombinedEnvelope",
    "event_handler",
    "array_event_handler",
    "combined_event_handler",
    "raw_handler",
    # Message passing
    "EventChannel",
    "StreamItem",
]
