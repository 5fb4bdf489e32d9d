"""
Spot market and user data streams.

Usage:
    streams = SpotStreams()
    shutdown = asyncio.Event()

    async def on_trade(event: AggTradeEvent) -> None:
        print(event.symbol, event.price)

    async def on_error(err: Exception) -> None:
        print(f"stream error: {err}")

    handle = await streams.agg_trade(shutdown, "BTCUSDT", on_trade, on_error)
    ...
    handle.stop()
    await handle.wait()
"""

from __future__ import annotations

import asyncio
from typing import Iterable, Mapping, Optional

from binance_streams.spot.events import (
    AggTradeEvent,
    BookTickerEvent,
    CombinedTradeEvent,
    DepthEvent,
    KlineEvent,
    MarketStatEvent,
    MiniMarketStatEvent,
    PartialDepthEvent,
    TradeEvent,
    UserDataEvent,
)
from binance_streams.ws.catalog import StreamCatalog
from binance_streams.ws.config import Venue
from binance_streams.ws.connection import Dialer
from binance_streams.ws.dispatch import (
    array_event_handler,
    combined_event_handler,
    event_handler,
)
from binance_streams.ws.types import ErrHandler, EventHandler, ServeHandle


def _depth_suffix(fast: bool) -> str:
    return "@100ms" if fast else ""


class SpotStreams(StreamCatalog):
    """Spot stream catalog (``stream.binance.com``)."""

    venue = Venue.BINANCE_SPOT
    testnet_venue = Venue.BINANCE_SPOT_TESTNET

    # Depth

    async def partial_depth(
        self,
        shutdown: asyncio.Event,
        symbol: str,
        levels: int,
        handler: EventHandler[PartialDepthEvent],
        err_handler: ErrHandler,
        *,
        fast: bool = False,
    ) -> ServeHandle:
        """Top ``levels`` book snapshots; ``fast`` selects the 100ms feed."""
        self._check_levels(levels)
        stream = f"{symbol.lower()}@depth{levels}{_depth_suffix(fast)}"
        decoder = event_handler(PartialDepthEvent, handler, err_handler, symbol=symbol)
        return await self._serve(shutdown, self.endpoint(stream), decoder, err_handler, name=stream)

    async def combined_partial_depth(
        self,
        shutdown: asyncio.Event,
        symbol_levels: Mapping[str, int],
        handler: EventHandler[PartialDepthEvent],
        err_handler: ErrHandler,
        *,
        fast: bool = False,
    ) -> ServeHandle:
        for levels in symbol_levels.values():
            self._check_levels(levels)
        streams = [
            f"{symbol.lower()}@depth{levels}{_depth_suffix(fast)}"
            for symbol, levels in symbol_levels.items()
        ]
        decoder = combined_event_handler(PartialDepthEvent, handler, err_handler)
        return await self._serve(
            shutdown, self.combined_endpoint(streams), decoder, err_handler, name="partial_depth"
        )

    async def depth(
        self,
        shutdown: asyncio.Event,
        symbol: str,
        handler: EventHandler[DepthEvent],
        err_handler: ErrHandler,
        *,
        fast: bool = False,
    ) -> ServeHandle:
        """Diff depth updates, every 1000ms or 100ms with ``fast``."""
        stream = f"{symbol.lower()}@depth{_depth_suffix(fast)}"
        decoder = event_handler(DepthEvent, handler, err_handler)
        return await self._serve(shutdown, self.endpoint(stream), decoder, err_handler, name=stream)

    async def combined_depth(
        self,
        shutdown: asyncio.Event,
        symbols: Iterable[str],
        handler: EventHandler[DepthEvent],
        err_handler: ErrHandler,
        *,
        fast: bool = False,
    ) -> ServeHandle:
        streams = [f"{s.lower()}@depth{_depth_suffix(fast)}" for s in symbols]
        decoder = combined_event_handler(DepthEvent, handler, err_handler)
        return await self._serve(
            shutdown, self.combined_endpoint(streams), decoder, err_handler, name="depth"
        )

    # Klines

    async def kline(
        self,
        shutdown: asyncio.Event,
        symbol: str,
        interval: str,
        handler: EventHandler[KlineEvent],
        err_handler: ErrHandler,
    ) -> ServeHandle:
        stream = f"{symbol.lower()}@kline_{interval}"
        decoder = event_handler(KlineEvent, handler, err_handler)
        return await self._serve(shutdown, self.endpoint(stream), decoder, err_handler, name=stream)

    async def combined_kline(
        self,
        shutdown: asyncio.Event,
        symbol_intervals: Mapping[str, str],
        handler: EventHandler[KlineEvent],
        err_handler: ErrHandler,
    ) -> ServeHandle:
        streams = [f"{s.lower()}@kline_{i}" for s, i in symbol_intervals.items()]
        decoder = combined_event_handler(KlineEvent, handler, err_handler)
        return await self._serve(
            shutdown, self.combined_endpoint(streams), decoder, err_handler, name="kline"
        )

    # Trades

    async def agg_trade(
        self,
        shutdown: asyncio.Event,
        symbol: str,
        handler: EventHandler[AggTradeEvent],
        err_handler: ErrHandler,
    ) -> ServeHandle:
        stream = f"{symbol.lower()}@aggTrade"
        decoder = event_handler(AggTradeEvent, handler, err_handler)
        return await self._serve(shutdown, self.endpoint(stream), decoder, err_handler, name=stream)

    async def combined_agg_trade(
        self,
        shutdown: asyncio.Event,
        symbols: Iterable[str],
        handler: EventHandler[AggTradeEvent],
        err_handler: ErrHandler,
    ) -> ServeHandle:
        streams = [f"{s.lower()}@aggTrade" for s in symbols]
        decoder = combined_event_handler(AggTradeEvent, handler, err_handler)
        return await self._serve(
            shutdown, self.combined_endpoint(streams), decoder, err_handler, name="agg_trade"
        )

    async def trade(
        self,
        shutdown: asyncio.Event,
        symbol: str,
        handler: EventHandler[TradeEvent],
        err_handler: ErrHandler,
    ) -> ServeHandle:
        stream = f"{symbol.lower()}@trade"
        decoder = event_handler(TradeEvent, handler, err_handler)
        return await self._serve(shutdown, self.endpoint(stream), decoder, err_handler, name=stream)

    async def combined_trade(
        self,
        shutdown: asyncio.Event,
        symbols: Iterable[str],
        handler: EventHandler[CombinedTradeEvent],
        err_handler: ErrHandler,
    ) -> ServeHandle:
        """Combined trades delivered with their stream name."""
        streams = [f"{s.lower()}@trade" for s in symbols]
        decoder = event_handler(CombinedTradeEvent, handler, err_handler)
        return await self._serve(
            shutdown, self.combined_endpoint(streams), decoder, err_handler, name="trade"
        )

    # Account

    async def user_data(
        self,
        shutdown: asyncio.Event,
        listen_key: str,
        handler: EventHandler[UserDataEvent],
        err_handler: ErrHandler,
        *,
        dial: Optional[Dialer] = None,
    ) -> ServeHandle:
        """Account stream for a listen key obtained over REST."""
        decoder = event_handler(UserDataEvent, handler, err_handler)
        return await self._serve(
            shutdown, self.endpoint(listen_key), decoder, err_handler, dial=dial, name="user_data"
        )

    # Tickers

    async def market_stat(
        self,
        shutdown: asyncio.Event,
        symbol: str,
        handler: EventHandler[MarketStatEvent],
        err_handler: ErrHandler,
    ) -> ServeHandle:
        stream = f"{symbol.lower()}@ticker"
        decoder = event_handler(MarketStatEvent, handler, err_handler)
        return await self._serve(shutdown, self.endpoint(stream), decoder, err_handler, name=stream)

    async def combined_market_stat(
        self,
        shutdown: asyncio.Event,
        symbols: Iterable[str],
        handler: EventHandler[MarketStatEvent],
        err_handler: ErrHandler,
    ) -> ServeHandle:
        streams = [f"{s.lower()}@ticker" for s in symbols]
        decoder = combined_event_handler(MarketStatEvent, handler, err_handler)
        return await self._serve(
            shutdown, self.combined_endpoint(streams), decoder, err_handler, name="ticker"
        )

    async def all_market_stat(
        self,
        shutdown: asyncio.Event,
        handler: EventHandler[list[MarketStatEvent]],
        err_handler: ErrHandler,
    ) -> ServeHandle:
        stream = "!ticker@arr"
        decoder = array_event_handler(MarketStatEvent, handler, err_handler)
        return await self._serve(shutdown, self.endpoint(stream), decoder, err_handler, name=stream)

    async def all_mini_market_stat(
        self,
        shutdown: asyncio.Event,
        handler: EventHandler[list[MiniMarketStatEvent]],
        err_handler: ErrHandler,
    ) -> ServeHandle:
        stream = "!miniTicker@arr"
        decoder = array_event_handler(MiniMarketStatEvent, handler, err_handler)
        return await self._serve(shutdown, self.endpoint(stream), decoder, err_handler, name=stream)

    async def book_ticker(
        self,
        shutdown: asyncio.Event,
        symbol: str,
        handler: EventHandler[BookTickerEvent],
        err_handler: ErrHandler,
    ) -> ServeHandle:
        stream = f"{symbol.lower()}@bookTicker"
        decoder = event_handler(BookTickerEvent, handler, err_handler)
        return await self._serve(shutdown, self.endpoint(stream), decoder, err_handler, name=stream)

    async def combined_book_ticker(
        self,
        shutdown: asyncio.Event,
        symbols: Iterable[str],
        handler: EventHandler[BookTickerEvent],
        err_handler: ErrHandler,
    ) -> ServeHandle:
        streams = [f"{s.lower()}@bookTicker" for s in symbols]
        decoder = combined_event_handler(
            BookTickerEvent, handler, err_handler, symbol_from_stream=False
        )
        return await self._serve(
            shutdown, self.combined_endpoint(streams), decoder, err_handler, name="book_ticker"
        )

    async def all_book_ticker(
        self,
        shutdown: asyncio.Event,
        handler: EventHandler[BookTickerEvent],
        err_handler: ErrHandler,
    ) -> ServeHandle:
        stream = "!bookTicker"
        decoder = event_handler(BookTickerEvent, handler, err_handler)
        return await self._serve(shutdown, self.endpoint(stream), decoder, err_handler, name=stream)
