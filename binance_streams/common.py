"""
Shared event building blocks for spot and futures streams.
"""

from __future__ import annotations

from decimal import Decimal
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, model_validator


class WsEvent(BaseModel):
    """Base for all decoded stream payloads.

    Field aliases are the single-letter Binance wire keys; unknown keys are
    ignored so new exchange fields do not break decoding.
    """

    model_config = ConfigDict(frozen=True, populate_by_name=True, extra="ignore")


class PriceLevel(BaseModel):
    """One order book level, sent on the wire as ``["price", "quantity"]``."""

    model_config = ConfigDict(frozen=True)

    price: str = Field(description="Price as sent by the exchange")
    quantity: str = Field(description="Quantity as sent by the exchange")

    @model_validator(mode="before")
    @classmethod
    def _from_pair(cls, data: Any) -> Any:
        if isinstance(data, (list, tuple)):
            if len(data) < 2:
                raise ValueError(f"price level needs [price, quantity], got {data!r}")
            return {"price": data[0], "quantity": data[1]}
        return data

    def as_decimals(self) -> tuple[Decimal, Decimal]:
        return Decimal(self.price), Decimal(self.quantity)


def symbol_from_stream(stream: str) -> str:
    """Upper-cased part of a stream name before the first "@".

    "btcusdt@depth" -> "BTCUSDT". A name without "@" is upper-cased whole.
    """
    return stream.split("@", 1)[0].upper()
