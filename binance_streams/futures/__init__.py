"""USD-M futures market and user data streams."""

from binance_streams.futures.streams import ContinuousKlineSubscribeArgs, FuturesStreams

__all__ = ["FuturesStreams", "ContinuousKlineSubscribeArgs"]
