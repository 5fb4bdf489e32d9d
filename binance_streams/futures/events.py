"""
USD-M futures stream payloads.
"""

from __future__ import annotations

from decimal import Decimal
from enum import Enum
from typing import Optional

from pydantic import Field

from binance_streams.common import PriceLevel, WsEvent


class AggTradeEvent(WsEvent):
    event: str = Field(alias="e")
    time: int = Field(alias="E")
    symbol: str = Field(alias="s")
    aggregate_trade_id: int = Field(alias="a")
    price: str = Field(alias="p")
    quantity: str = Field(alias="q")
    first_trade_id: int = Field(alias="f")
    last_trade_id: int = Field(alias="l")
    trade_time: int = Field(alias="T")
    maker: bool = Field(alias="m")


class MarkPriceEvent(WsEvent):
    event: str = Field(alias="e")
    time: int = Field(alias="E")
    symbol: str = Field(alias="s")
    mark_price: Decimal = Field(alias="p")
    index_price: str = Field(default="", alias="i")
    estimated_settle_price: str = Field(default="", alias="P")
    funding_rate: str = Field(default="", alias="r")
    next_funding_time: int = Field(default=0, alias="T")


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


class ContinuousKline(WsEvent):
    start_time: int = Field(alias="t")
    end_time: int = Field(alias="T")
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


class ContinuousKlineEvent(WsEvent):
    event: str = Field(alias="e")
    time: int = Field(alias="E")
    pair_symbol: str = Field(alias="ps")
    contract_type: str = Field(alias="ct")
    kline: ContinuousKline = Field(alias="k")


class MiniMarketTickerEvent(WsEvent):
    event: str = Field(alias="e")
    time: int = Field(alias="E")
    symbol: str = Field(alias="s")
    close_price: str = Field(alias="c")
    open_price: str = Field(alias="o")
    high_price: str = Field(alias="h")
    low_price: str = Field(alias="l")
    volume: str = Field(alias="v")
    quote_volume: str = Field(alias="q")


class MarketTickerEvent(WsEvent):
    event: str = Field(alias="e")
    time: int = Field(alias="E")
    symbol: str = Field(alias="s")
    price_change: str = Field(alias="p")
    price_change_percent: str = Field(alias="P")
    weighted_avg_price: str = Field(alias="w")
    close_price: str = Field(alias="c")
    close_qty: str = Field(alias="Q")
    open_price: str = Field(alias="o")
    high_price: str = Field(alias="h")
    low_price: str = Field(alias="l")
    base_volume: str = Field(alias="v")
    quote_volume: str = Field(alias="q")
    open_time: int = Field(alias="O")
    close_time: int = Field(alias="C")
    first_id: int = Field(alias="F")
    last_id: int = Field(alias="L")
    trade_count: int = Field(alias="n")


class BookTickerEvent(WsEvent):
    event: str = Field(default="", alias="e")
    update_id: int = Field(alias="u")
    time: int = Field(default=0, alias="E")
    transaction_time: int = Field(default=0, alias="T")
    symbol: str = Field(alias="s")
    best_bid_price: str = Field(alias="b")
    best_bid_qty: str = Field(alias="B")
    best_ask_price: str = Field(alias="a")
    best_ask_qty: str = Field(alias="A")


class LiquidationOrder(WsEvent):
    symbol: str = Field(alias="s")
    side: str = Field(alias="S")
    order_type: str = Field(alias="o")
    time_in_force: str = Field(alias="f")
    orig_quantity: str = Field(alias="q")
    price: str = Field(alias="p")
    avg_price: str = Field(alias="ap")
    order_status: str = Field(alias="X")
    last_filled_qty: str = Field(alias="l")
    accumulated_filled_qty: str = Field(alias="z")
    trade_time: int = Field(alias="T")


class LiquidationOrderEvent(WsEvent):
    event: str = Field(alias="e")
    time: int = Field(alias="E")
    liquidation_order: LiquidationOrder = Field(alias="o")


class DepthEvent(WsEvent):
    event: str = Field(alias="e")
    time: int = Field(alias="E")
    transaction_time: int = Field(alias="T")
    symbol: str = Field(alias="s")
    first_update_id: int = Field(alias="U")
    last_update_id: int = Field(alias="u")
    prev_last_update_id: int = Field(alias="pu")
    bids: list[PriceLevel] = Field(default_factory=list, alias="b")
    asks: list[PriceLevel] = Field(default_factory=list, alias="a")


class BLVTBasket(WsEvent):
    symbol: str = Field(alias="s")
    position: int = Field(alias="n")


class BLVTInfoEvent(WsEvent):
    """Leveraged token net asset value."""

    event: str = Field(alias="e")
    time: int = Field(alias="E")
    symbol: str = Field(alias="s")
    issued: float = Field(alias="m")
    baskets: list[BLVTBasket] = Field(default_factory=list, alias="b")
    nav: float = Field(alias="n")
    leverage: float = Field(alias="l")
    target_leverage: int = Field(alias="t")
    funding_rate: float = Field(alias="f")


class BLVTKline(WsEvent):
    start_time: int = Field(alias="t")
    close_time: int = Field(alias="T")
    symbol: str = Field(alias="s")
    interval: str = Field(alias="i")
    first_update_time: int = Field(alias="f")
    last_update_time: int = Field(alias="L")
    open_price: str = Field(alias="o")
    close_price: str = Field(alias="c")
    high_price: str = Field(alias="h")
    low_price: str = Field(alias="l")
    leverage: str = Field(alias="v")
    count: int = Field(alias="n")


class BLVTKlineEvent(WsEvent):
    event: str = Field(alias="e")
    time: int = Field(alias="E")
    symbol: str = Field(alias="s")
    kline: BLVTKline = Field(alias="k")


class Composition(WsEvent):
    base_asset: str = Field(alias="b")
    weight_qty: str = Field(alias="w")
    weight_percent: str = Field(alias="W")


class CompositeIndexEvent(WsEvent):
    event: str = Field(alias="e")
    time: int = Field(alias="E")
    symbol: str = Field(alias="s")
    price: str = Field(alias="p")
    composition: list[Composition] = Field(default_factory=list, alias="c")


# User data stream


class UserDataEventType(str, Enum):
    LISTEN_KEY_EXPIRED = "listenKeyExpired"
    MARGIN_CALL = "MARGIN_CALL"
    ACCOUNT_UPDATE = "ACCOUNT_UPDATE"
    ORDER_TRADE_UPDATE = "ORDER_TRADE_UPDATE"
    ACCOUNT_CONFIG_UPDATE = "ACCOUNT_CONFIG_UPDATE"


class Balance(WsEvent):
    asset: str = Field(alias="a")
    balance: Decimal = Field(alias="wb")
    cross_wallet_balance: str = Field(default="", alias="cw")
    change_balance: Optional[Decimal] = Field(default=None, alias="bc")


class Position(WsEvent):
    symbol: str = Field(alias="s")
    side: str = Field(alias="ps")
    amount: Decimal = Field(alias="pa")
    margin_type: str = Field(default="", alias="mt")
    isolated_wallet: str = Field(default="", alias="iw")
    entry_price: Decimal = Field(default=Decimal(0), alias="ep")
    mark_price: str = Field(default="", alias="mp")
    unrealized_pnl: str = Field(default="", alias="up")
    accumulated_realized: str = Field(default="", alias="cr")
    maintenance_margin_required: str = Field(default="", alias="mm")


class AccountUpdate(WsEvent):
    reason: str = Field(alias="m")
    balances: list[Balance] = Field(default_factory=list, alias="B")
    positions: list[Position] = Field(default_factory=list, alias="P")


class OrderTradeUpdate(WsEvent):
    symbol: str = Field(alias="s")
    client_order_id: str = Field(alias="c")
    side: str = Field(alias="S")
    type: str = Field(alias="o")
    time_in_force: str = Field(alias="f")
    original_qty: Decimal = Field(alias="q")
    original_price: Decimal = Field(alias="p")
    average_price: str = Field(default="", alias="ap")
    stop_price: Optional[Decimal] = Field(default=None, alias="sp")
    execution_type: str = Field(alias="x")
    status: str = Field(alias="X")
    id: int = Field(alias="i")
    algo_id: int = Field(default=0, alias="aid")
    last_filled_qty: Decimal = Field(alias="l")
    accumulated_filled_qty: Optional[Decimal] = Field(default=None, alias="z")
    last_filled_price: Decimal = Field(alias="L")
    commission_asset: str = Field(default="", alias="N")
    commission: Decimal = Field(default=Decimal(0), alias="n")
    trade_time: int = Field(alias="T")
    trade_id: int = Field(default=0, alias="t")
    bids_notional: str = Field(default="", alias="b")
    asks_notional: str = Field(default="", alias="a")
    is_maker: bool = Field(default=False, alias="m")
    is_reduce_only: bool = Field(default=False, alias="R")
    working_type: str = Field(default="", alias="wt")
    original_type: str = Field(default="", alias="ot")
    position_side: str = Field(default="", alias="ps")
    is_closing_position: bool = Field(default=False, alias="cp")
    activation_price: Optional[Decimal] = Field(default=None, alias="AP")
    callback_rate: str = Field(default="", alias="cr")
    realized_pnl: str = Field(default="", alias="rp")
    algo_type: str = Field(default="", alias="at")


class AccountConfigUpdate(WsEvent):
    symbol: str = Field(default="", alias="s")
    leverage: int = Field(default=0, alias="l")


class UserDataEvent(WsEvent):
    """Futures account stream event; payload sections are keyed by type."""

    event: str = Field(alias="e")
    time: int = Field(alias="E")
    cross_wallet_balance: str = Field(default="", alias="cw")
    margin_call_positions: list[Position] = Field(default_factory=list, alias="p")
    transaction_time: int = Field(default=0, alias="T")
    account_update: Optional[AccountUpdate] = Field(default=None, alias="a")
    order_trade_update: Optional[OrderTradeUpdate] = Field(default=None, alias="o")
    account_config_update: Optional[AccountConfigUpdate] = Field(default=None, alias="ac")
