"""Spot market and user data streams."""

from binance_streams.spot.streams import SpotStreams

__all__ = ["SpotStreams"]
