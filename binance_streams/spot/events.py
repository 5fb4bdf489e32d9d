"""
Spot stream payloads.

Field aliases follow the Binance wire format, e.g.:
{
    "e": "aggTrade",   // Event type
    "E": 1672515782136, // Event time
    "s": "BNBBTC",     // Symbol
    "a": 12345,        // Aggregate trade ID
    "p": "0.001",      // Price
    "q": "100",        // Quantity
    ...
}
"""

from __future__ import annotations

from decimal import Decimal
from enum import Enum
from typing import Any, Optional

from pydantic import Field, model_validator

from binance_streams.common import PriceLevel, WsEvent


class PartialDepthEvent(WsEvent):
    """Top-N book snapshot; the payload carries no symbol."""

    symbol: str = ""
    last_update_id: int = Field(alias="lastUpdateId")
    bids: list[PriceLevel] = Field(default_factory=list)
    asks: list[PriceLevel] = Field(default_factory=list)


class DepthEvent(WsEvent):
    event: str = Field(alias="e")
    time: int = Field(alias="E")
    symbol: str = Field(alias="s")
    last_update_id: int = Field(alias="u")
    first_update_id: int = Field(alias="U")
    bids: list[PriceLevel] = Field(default_factory=list, alias="b")
    asks: list[PriceLevel] = Field(default_factory=list, alias="a")


class Kline(WsEvent):
    start_time: int = Field(alias="t")
    end_time: int = Field(alias="T")
    symbol: str = Field(alias="s")
    interval: str = Field(alias="i")
    first_trade_id: int = Field(alias="f")
    last_trade_id: int = Field(alias="L")
    open: str = Field(alias="o")
    close: str = Field(alias="c")
    high: str = Field(alias="h")
    low: str = Field(alias="l")
    volume: str = Field(alias="v")
    trade_num: int = Field(alias="n")
    is_final: bool = Field(alias="x")
    quote_volume: str = Field(alias="q")
    active_buy_volume: str = Field(alias="V")
    active_buy_quote_volume: str = Field(alias="Q")


class KlineEvent(WsEvent):
    event: str = Field(alias="e")
    time: int = Field(alias="E")
    symbol: str = Field(alias="s")
    kline: Kline = Field(alias="k")


class AggTradeEvent(WsEvent):
    event: str = Field(alias="e")
    time: int = Field(alias="E")
    symbol: str = Field(alias="s")
    agg_trade_id: int = Field(alias="a")
    price: str = Field(alias="p")
    quantity: str = Field(alias="q")
    first_breakdown_trade_id: int = Field(alias="f")
    last_breakdown_trade_id: int = Field(alias="l")
    trade_time: int = Field(alias="T")
    is_buyer_maker: bool = Field(alias="m")
    placeholder: bool = Field(default=False, alias="M")


class TradeEvent(WsEvent):
    event: str = Field(alias="e")
    time: int = Field(alias="E")
    symbol: str = Field(alias="s")
    trade_id: int = Field(alias="t")
    price: Decimal = Field(alias="p")
    quantity: str = Field(alias="q")
    buyer_order_id: int = Field(default=0, alias="b")
    seller_order_id: int = Field(default=0, alias="a")
    trade_time: int = Field(alias="T")
    is_buyer_maker: bool = Field(alias="m")
    placeholder: bool = Field(default=False, alias="M")


class CombinedTradeEvent(WsEvent):
    """Combined trade frame kept whole: stream name plus trade."""

    stream: str
    data: TradeEvent


class MarketStatEvent(WsEvent):
    """24hr rolling window ticker."""

    event: str = Field(alias="e")
    time: int = Field(alias="E")
    symbol: str = Field(alias="s")
    price_change: str = Field(alias="p")
    price_change_percent: str = Field(alias="P")
    weighted_avg_price: str = Field(alias="w")
    prev_close_price: str = Field(alias="x")
    last_price: str = Field(alias="c")
    close_qty: str = Field(alias="Q")
    bid_price: str = Field(alias="b")
    bid_qty: str = Field(alias="B")
    ask_price: str = Field(alias="a")
    ask_qty: str = Field(alias="A")
    open_price: str = Field(alias="o")
    high_price: str = Field(alias="h")
    low_price: str = Field(alias="l")
    base_volume: str = Field(alias="v")
    quote_volume: str = Field(alias="q")
    open_time: int = Field(alias="O")
    close_time: int = Field(alias="C")
    first_id: int = Field(alias="F")
    last_id: int = Field(alias="L")
    count: int = Field(alias="n")


class MiniMarketStatEvent(WsEvent):
    event: str = Field(alias="e")
    time: int = Field(alias="E")
    symbol: str = Field(alias="s")
    last_price: str = Field(alias="c")
    open_price: str = Field(alias="o")
    high_price: str = Field(alias="h")
    low_price: str = Field(alias="l")
    base_volume: str = Field(alias="v")
    quote_volume: str = Field(alias="q")


class BookTickerEvent(WsEvent):
    update_id: int = Field(alias="u")
    symbol: str = Field(alias="s")
    best_bid_price: str = Field(alias="b")
    best_bid_qty: str = Field(alias="B")
    best_ask_price: str = Field(alias="a")
    best_ask_qty: str = Field(alias="A")


# User data stream


class UserDataEventType(str, Enum):
    OUTBOUND_ACCOUNT_POSITION = "outboundAccountPosition"
    BALANCE_UPDATE = "balanceUpdate"
    EXECUTION_REPORT = "executionReport"
    LIST_STATUS = "listStatus"


class AccountBalance(WsEvent):
    asset: str = Field(alias="a")
    free: Decimal = Field(alias="f")
    locked: Decimal = Field(alias="l")


class AccountUpdate(WsEvent):
    balances: list[AccountBalance] = Field(default_factory=list, alias="B")


class BalanceUpdate(WsEvent):
    asset: str = Field(alias="a")
    change: Decimal = Field(alias="d")


class OrderUpdate(WsEvent):
    symbol: str = Field(alias="s")
    client_order_id: str = Field(alias="c")
    side: str = Field(alias="S")
    type: str = Field(alias="o")
    time_in_force: str = Field(alias="f")
    volume: Decimal = Field(alias="q")
    price: Decimal = Field(alias="p")
    stop_price: Optional[Decimal] = Field(default=None, alias="P")
    trailing_delta: int = Field(default=0, alias="d")
    iceberg_volume: str = Field(default="", alias="F")
    order_list_id: int = Field(default=-1, alias="g")
    orig_client_order_id: str = Field(default="", alias="C")
    execution_type: str = Field(alias="x")
    status: str = Field(alias="X")
    reject_reason: str = Field(default="", alias="r")
    id: int = Field(alias="i")
    latest_volume: Decimal = Field(alias="l")
    filled_volume: Optional[Decimal] = Field(default=None, alias="z")
    latest_price: Decimal = Field(alias="L")
    fee_asset: Optional[str] = Field(default=None, alias="N")
    fee_cost: Decimal = Field(default=Decimal(0), alias="n")
    transaction_time: int = Field(alias="T")
    trade_id: int = Field(default=-1, alias="t")
    is_in_order_book: bool = Field(default=False, alias="w")
    is_maker: bool = Field(default=False, alias="m")
    create_time: int = Field(default=0, alias="O")
    filled_quote_volume: str = Field(default="", alias="Z")
    latest_quote_volume: str = Field(default="", alias="Y")
    quote_volume: str = Field(default="", alias="Q")
    trailing_time: int = Field(default=0, alias="D")
    strategy_id: int = Field(default=0, alias="j")
    strategy_type: int = Field(default=0, alias="J")
    working_time: int = Field(default=0, alias="W")
    self_trade_prevention_mode: str = Field(default="", alias="V")


class OCOOrder(WsEvent):
    symbol: str = Field(alias="s")
    order_id: int = Field(alias="i")
    client_order_id: str = Field(alias="c")


class OCOUpdate(WsEvent):
    symbol: str = Field(alias="s")
    order_list_id: int = Field(alias="g")
    contingency_type: str = Field(alias="c")
    list_status_type: str = Field(alias="l")
    list_order_status: str = Field(alias="L")
    reject_reason: str = Field(default="", alias="r")
    client_order_id: str = Field(alias="C")
    transaction_time: int = Field(default=0, alias="T")
    orders: list[OCOOrder] = Field(default_factory=list, alias="O")


_USER_DATA_TARGETS: dict[str, str] = {
    UserDataEventType.OUTBOUND_ACCOUNT_POSITION.value: "account_update",
    UserDataEventType.BALANCE_UPDATE.value: "balance_update",
    UserDataEventType.EXECUTION_REPORT.value: "order_update",
    UserDataEventType.LIST_STATUS.value: "oco_update",
}


class UserDataEvent(WsEvent):
    """
    Account stream event.

    The ``e`` field picks which of the nested updates is filled; the others
    stay None. Unknown event types decode with only the common fields.
    """

    event: str = Field(alias="e")
    time: int = Field(alias="E")
    transaction_time: int = Field(default=0, alias="T")
    account_update_time: int = Field(default=0, alias="u")
    account_update: Optional[AccountUpdate] = None
    balance_update: Optional[BalanceUpdate] = None
    order_update: Optional[OrderUpdate] = None
    oco_update: Optional[OCOUpdate] = None

    @model_validator(mode="before")
    @classmethod
    def _nest_payload(cls, data: Any) -> Any:
        if isinstance(data, dict):
            target = _USER_DATA_TARGETS.get(data.get("e", ""))
            if target is not None:
                return {**data, target: data}
        return data
