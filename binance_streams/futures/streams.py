"""
USD-M futures market and user data streams.

Update rates are given as timedelta and mapped to the stream suffixes
Binance accepts:
- mark price: 3s (default) or 1s
- depth: 250ms (default), 500ms or 100ms
Any other rate raises ConfigurationError before connecting.
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass
from datetime import timedelta
from typing import Iterable, Mapping, Optional, Sequence, Union

import orjson

from binance_streams.errors import ConfigurationError
from binance_streams.futures.events import (
    AggTradeEvent,
    BLVTInfoEvent,
    BLVTKlineEvent,
    BookTickerEvent,
    CompositeIndexEvent,
    ContinuousKlineEvent,
    DepthEvent,
    KlineEvent,
    LiquidationOrderEvent,
    MarketTickerEvent,
    MarkPriceEvent,
    MiniMarketTickerEvent,
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

MARK_PRICE_RATES: dict[timedelta, str] = {
    timedelta(seconds=3): "",
    timedelta(seconds=1): "@1s",
}

DEPTH_RATES: dict[timedelta, str] = {
    timedelta(milliseconds=250): "",
    timedelta(milliseconds=500): "@500ms",
    timedelta(milliseconds=100): "@100ms",
}


def mark_price_suffix(rate: Optional[timedelta]) -> str:
    if rate is None:
        return ""
    try:
        return MARK_PRICE_RATES[rate]
    except KeyError:
        raise ConfigurationError(
            "Invalid rate", field="rate", value=rate, component="mark_price"
        ) from None


def depth_rate_suffix(rate: Optional[timedelta]) -> str:
    if rate is None:
        return ""
    try:
        return DEPTH_RATES[rate]
    except KeyError:
        raise ConfigurationError(
            "Invalid rate", field="rate", value=rate, component="depth"
        ) from None


@dataclass(frozen=True)
class ContinuousKlineSubscribeArgs:
    """Pair, contract type and interval of a continuous contract kline."""

    pair: str
    contract_type: str
    interval: str

    @property
    def stream_name(self) -> str:
        return f"{self.pair.lower()}_{self.contract_type.lower()}@continuousKline_{self.interval}"


def subscribe_request(params: Sequence[str], request_id: int = 1) -> bytes:
    """SUBSCRIBE RPC frame for streams opened on the bare ``/stream`` endpoint."""
    return orjson.dumps({"method": "SUBSCRIBE", "params": list(params), "id": request_id})


class FuturesStreams(StreamCatalog):
    """USD-M futures stream catalog (``fstream.binance.com``)."""

    venue = Venue.BINANCE_FUTURES
    testnet_venue = Venue.BINANCE_FUTURES_TESTNET

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

    # Mark price

    async def mark_price(
        self,
        shutdown: asyncio.Event,
        symbol: str,
        handler: EventHandler[MarkPriceEvent],
        err_handler: ErrHandler,
        *,
        rate: Optional[timedelta] = None,
    ) -> ServeHandle:
        stream = f"{symbol.lower()}@markPrice{mark_price_suffix(rate)}"
        decoder = event_handler(MarkPriceEvent, handler, err_handler)
        return await self._serve(shutdown, self.endpoint(stream), decoder, err_handler, name=stream)

    async def combined_mark_price(
        self,
        shutdown: asyncio.Event,
        symbols: Union[Iterable[str], Mapping[str, Optional[timedelta]]],
        handler: EventHandler[MarkPriceEvent],
        err_handler: ErrHandler,
    ) -> ServeHandle:
        """Mark prices for several symbols; a mapping sets a rate per symbol."""
        if isinstance(symbols, Mapping):
            rates = dict(symbols)
        else:
            rates = dict.fromkeys(symbols)
        streams = [
            f"{symbol.lower()}@markPrice{mark_price_suffix(rate)}" for symbol, rate in rates.items()
        ]
        decoder = combined_event_handler(
            MarkPriceEvent, handler, err_handler, symbol_from_stream=False
        )
        return await self._serve(
            shutdown, self.combined_endpoint(streams), decoder, err_handler, name="mark_price"
        )

    async def all_mark_price(
        self,
        shutdown: asyncio.Event,
        handler: EventHandler[list[MarkPriceEvent]],
        err_handler: ErrHandler,
        *,
        rate: Optional[timedelta] = None,
    ) -> ServeHandle:
        stream = f"!markPrice@arr{mark_price_suffix(rate)}"
        decoder = array_event_handler(MarkPriceEvent, handler, err_handler)
        return await self._serve(shutdown, self.endpoint(stream), decoder, err_handler, name=stream)

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

    async def continuous_kline(
        self,
        shutdown: asyncio.Event,
        args: ContinuousKlineSubscribeArgs,
        handler: EventHandler[ContinuousKlineEvent],
        err_handler: ErrHandler,
    ) -> ServeHandle:
        stream = args.stream_name
        decoder = event_handler(ContinuousKlineEvent, handler, err_handler)
        return await self._serve(shutdown, self.endpoint(stream), decoder, err_handler, name=stream)

    async def combined_continuous_kline(
        self,
        shutdown: asyncio.Event,
        subscriptions: Sequence[ContinuousKlineSubscribeArgs],
        handler: EventHandler[ContinuousKlineEvent],
        err_handler: ErrHandler,
    ) -> ServeHandle:
        """Continuous klines subscribed through a SUBSCRIBE message after connect."""
        if not subscriptions:
            raise ConfigurationError(
                "at least one subscription is required",
                field="subscriptions",
                component="FuturesStreams",
            )
        request = subscribe_request([args.stream_name for args in subscriptions])
        decoder = combined_event_handler(
            ContinuousKlineEvent, handler, err_handler, symbol_from_stream=False
        )
        return await self._serve(
            shutdown,
            f"{self.base_url}/stream",
            decoder,
            err_handler,
            request,
            name="continuous_kline",
        )

    # Tickers

    async def mini_market_ticker(
        self,
        shutdown: asyncio.Event,
        symbol: str,
        handler: EventHandler[MiniMarketTickerEvent],
        err_handler: ErrHandler,
    ) -> ServeHandle:
        stream = f"{symbol.lower()}@miniTicker"
        decoder = event_handler(MiniMarketTickerEvent, handler, err_handler)
        return await self._serve(shutdown, self.endpoint(stream), decoder, err_handler, name=stream)

    async def all_mini_market_ticker(
        self,
        shutdown: asyncio.Event,
        handler: EventHandler[list[MiniMarketTickerEvent]],
        err_handler: ErrHandler,
    ) -> ServeHandle:
        stream = "!miniTicker@arr"
        decoder = array_event_handler(MiniMarketTickerEvent, handler, err_handler)
        return await self._serve(shutdown, self.endpoint(stream), decoder, err_handler, name=stream)

    async def market_ticker(
        self,
        shutdown: asyncio.Event,
        symbol: str,
        handler: EventHandler[MarketTickerEvent],
        err_handler: ErrHandler,
    ) -> ServeHandle:
        stream = f"{symbol.lower()}@ticker"
        decoder = event_handler(MarketTickerEvent, handler, err_handler)
        return await self._serve(shutdown, self.endpoint(stream), decoder, err_handler, name=stream)

    async def all_market_ticker(
        self,
        shutdown: asyncio.Event,
        handler: EventHandler[list[MarketTickerEvent]],
        err_handler: ErrHandler,
    ) -> ServeHandle:
        stream = "!ticker@arr"
        decoder = array_event_handler(MarketTickerEvent, handler, err_handler)
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

    async def all_book_ticker(
        self,
        shutdown: asyncio.Event,
        handler: EventHandler[BookTickerEvent],
        err_handler: ErrHandler,
    ) -> ServeHandle:
        stream = "!bookTicker"
        decoder = event_handler(BookTickerEvent, handler, err_handler)
        return await self._serve(shutdown, self.endpoint(stream), decoder, err_handler, name=stream)

    # Liquidations

    async def liquidation_order(
        self,
        shutdown: asyncio.Event,
        symbol: str,
        handler: EventHandler[LiquidationOrderEvent],
        err_handler: ErrHandler,
    ) -> ServeHandle:
        stream = f"{symbol.lower()}@forceOrder"
        decoder = event_handler(LiquidationOrderEvent, handler, err_handler)
        return await self._serve(shutdown, self.endpoint(stream), decoder, err_handler, name=stream)

    async def all_liquidation_order(
        self,
        shutdown: asyncio.Event,
        handler: EventHandler[LiquidationOrderEvent],
        err_handler: ErrHandler,
    ) -> ServeHandle:
        stream = "!forceOrder@arr"
        decoder = event_handler(LiquidationOrderEvent, handler, err_handler)
        return await self._serve(shutdown, self.endpoint(stream), decoder, err_handler, name=stream)

    # Depth

    async def partial_depth(
        self,
        shutdown: asyncio.Event,
        symbol: str,
        levels: int,
        handler: EventHandler[DepthEvent],
        err_handler: ErrHandler,
        *,
        rate: Optional[timedelta] = None,
    ) -> ServeHandle:
        self._check_levels(levels)
        stream = f"{symbol.lower()}@depth{levels}{depth_rate_suffix(rate)}"
        decoder = event_handler(DepthEvent, handler, err_handler)
        return await self._serve(shutdown, self.endpoint(stream), decoder, err_handler, name=stream)

    async def diff_depth(
        self,
        shutdown: asyncio.Event,
        symbol: str,
        handler: EventHandler[DepthEvent],
        err_handler: ErrHandler,
        *,
        rate: Optional[timedelta] = None,
    ) -> ServeHandle:
        stream = f"{symbol.lower()}@depth{depth_rate_suffix(rate)}"
        decoder = event_handler(DepthEvent, handler, err_handler)
        return await self._serve(shutdown, self.endpoint(stream), decoder, err_handler, name=stream)

    async def combined_depth(
        self,
        shutdown: asyncio.Event,
        symbol_levels: Mapping[str, int],
        handler: EventHandler[DepthEvent],
        err_handler: ErrHandler,
    ) -> ServeHandle:
        for levels in symbol_levels.values():
            self._check_levels(levels)
        streams = [f"{s.lower()}@depth{levels}" for s, levels in symbol_levels.items()]
        decoder = combined_event_handler(DepthEvent, handler, err_handler, symbol_from_stream=False)
        return await self._serve(
            shutdown, self.combined_endpoint(streams), decoder, err_handler, name="depth"
        )

    async def combined_diff_depth(
        self,
        shutdown: asyncio.Event,
        symbols: Iterable[str],
        handler: EventHandler[DepthEvent],
        err_handler: ErrHandler,
    ) -> ServeHandle:
        streams = [f"{s.lower()}@depth" for s in symbols]
        decoder = combined_event_handler(DepthEvent, handler, err_handler, symbol_from_stream=False)
        return await self._serve(
            shutdown, self.combined_endpoint(streams), decoder, err_handler, name="diff_depth"
        )

    # Leveraged tokens and indexes

    async def blvt_info(
        self,
        shutdown: asyncio.Event,
        name: str,
        handler: EventHandler[BLVTInfoEvent],
        err_handler: ErrHandler,
    ) -> ServeHandle:
        stream = f"{name.upper()}@tokenNav"
        decoder = event_handler(BLVTInfoEvent, handler, err_handler)
        return await self._serve(shutdown, self.endpoint(stream), decoder, err_handler, name=stream)

    async def blvt_kline(
        self,
        shutdown: asyncio.Event,
        name: str,
        interval: str,
        handler: EventHandler[BLVTKlineEvent],
        err_handler: ErrHandler,
    ) -> ServeHandle:
        stream = f"{name.upper()}@nav_Kline_{interval}"
        decoder = event_handler(BLVTKlineEvent, handler, err_handler)
        return await self._serve(shutdown, self.endpoint(stream), decoder, err_handler, name=stream)

    async def composite_index(
        self,
        shutdown: asyncio.Event,
        symbol: str,
        handler: EventHandler[CompositeIndexEvent],
        err_handler: ErrHandler,
    ) -> ServeHandle:
        stream = f"{symbol.lower()}@compositeIndex"
        decoder = event_handler(CompositeIndexEvent, handler, err_handler)
        return await self._serve(shutdown, self.endpoint(stream), decoder, err_handler, name=stream)

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
        decoder = event_handler(UserDataEvent, handler, err_handler)
        return await self._serve(
            shutdown, self.endpoint(listen_key), decoder, err_handler, dial=dial, name="user_data"
        )
