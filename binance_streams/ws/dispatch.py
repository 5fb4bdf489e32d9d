"""
Decode/dispatch wrappers turning raw frames into typed events.

Each wrapper is an async callable usable as the supervisor's on_message:
- FlatDecoder: one JSON object per frame
- ArrayDecoder: one JSON array of objects per frame
- CombinedDecoder: combined-stream envelope ``{"stream": ..., "data": ...}``

A frame that fails to decode is reported to the error callback as a
DecodeError and skipped; the connection stays open.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Generic, Optional, TypeVar

import orjson
from pydantic import BaseModel, ValidationError

from binance_streams.common import symbol_from_stream
from binance_streams.errors import DecodeError
from binance_streams.ws.types import ErrHandler, EventHandler, WsHandler

logger = logging.getLogger(__name__)

T = TypeVar("T")
M = TypeVar("M", bound=BaseModel)


class CombinedEnvelope(BaseModel):
    """Outer layer of a combined-stream frame; ``data`` is decoded later."""

    stream: str
    data: Any


@dataclass
class DecoderStats:
    """Statistics for a decode wrapper."""

    messages_received: int = 0
    events_delivered: int = 0
    decode_errors: int = 0


class EventDecoder(ABC, Generic[T]):
    """
    Base class for decode wrappers.

    Subclasses implement _decode(); the base class counts frames, reports
    decode failures and awaits the typed handler.
    """

    def __init__(
        self,
        handler: EventHandler[T],
        err_handler: ErrHandler,
        name: str = "decoder",
    ) -> None:
        self._handler = handler
        self._err_handler = err_handler
        self._name = name
        self._stats = DecoderStats()

    @property
    def stats(self) -> DecoderStats:
        return self._stats

    async def __call__(self, message: bytes) -> None:
        self._stats.messages_received += 1
        try:
            event = self._decode(message)
        except DecodeError as e:
            self._stats.decode_errors += 1
            logger.debug(f"[{self._name}] Decode error: {e}")
            await self._err_handler(e)
            return

        self._stats.events_delivered += 1
        await self._handler(event)

    @abstractmethod
    def _decode(self, message: bytes) -> T:
        """Decode one frame. Raise DecodeError on failure."""
        ...


def _loads(message: bytes, expected_type: str) -> Any:
    try:
        return orjson.loads(message)
    except orjson.JSONDecodeError as e:
        raise DecodeError(
            f"Invalid JSON: {e}",
            raw_data=message,
            expected_type=expected_type,
            component="dispatch",
        ) from e


def _validate(model: type[M], obj: Any, message: bytes) -> M:
    try:
        return model.model_validate(obj)
    except ValidationError as e:
        raise DecodeError(
            f"Payload does not match {model.__name__}: {e.error_count()} error(s)",
            raw_data=message,
            expected_type=model.__name__,
            component="dispatch",
            details={"errors": e.errors(include_url=False, include_input=False)},
        ) from e


def _with_symbol(model: type[M], obj: Any, symbol: Optional[str]) -> Any:
    # applied to the raw payload, before validation
    field = model.model_fields.get("symbol")
    if symbol is None or field is None or not isinstance(obj, dict):
        return obj
    return {**obj, field.alias or "symbol": symbol}


class FlatDecoder(EventDecoder[M]):
    """One JSON object per frame, validated into ``model``."""

    def __init__(
        self,
        model: type[M],
        handler: EventHandler[M],
        err_handler: ErrHandler,
        *,
        symbol: Optional[str] = None,
    ) -> None:
        super().__init__(handler, err_handler, name=model.__name__)
        self._model = model
        self._symbol = symbol

    def _decode(self, message: bytes) -> M:
        obj = _loads(message, self._model.__name__)
        return _validate(self._model, _with_symbol(self._model, obj, self._symbol), message)


class ArrayDecoder(EventDecoder[list[M]]):
    """One JSON array per frame; every element validated into ``model``."""

    def __init__(
        self,
        model: type[M],
        handler: EventHandler[list[M]],
        err_handler: ErrHandler,
    ) -> None:
        super().__init__(handler, err_handler, name=f"{model.__name__}[]")
        self._model = model

    def _decode(self, message: bytes) -> list[M]:
        obj = _loads(message, f"list[{self._model.__name__}]")
        if not isinstance(obj, list):
            raise DecodeError(
                f"Expected a JSON array, got {type(obj).__name__}",
                raw_data=message,
                expected_type=f"list[{self._model.__name__}]",
                component="dispatch",
            )
        return [_validate(self._model, item, message) for item in obj]


class CombinedDecoder(EventDecoder[M]):
    """
    Combined-stream frames decoded in two stages.

    The envelope is validated first, then ``data`` into ``model``. With
    ``symbol_from_stream`` the event symbol is replaced by the upper-cased
    stream prefix, so payloads without a symbol still carry one.
    """

    def __init__(
        self,
        model: type[M],
        handler: EventHandler[M],
        err_handler: ErrHandler,
        *,
        symbol_from_stream: bool = True,
    ) -> None:
        super().__init__(handler, err_handler, name=f"combined:{model.__name__}")
        self._model = model
        self._symbol_from_stream = symbol_from_stream

    def _decode(self, message: bytes) -> M:
        obj = _loads(message, CombinedEnvelope.__name__)
        envelope = _validate(CombinedEnvelope, obj, message)
        data = envelope.data
        if self._symbol_from_stream:
            data = _with_symbol(self._model, data, symbol_from_stream(envelope.stream))
        return _validate(self._model, data, message)


def event_handler(
    model: type[M],
    handler: EventHandler[M],
    err_handler: ErrHandler,
    *,
    symbol: Optional[str] = None,
) -> FlatDecoder[M]:
    return FlatDecoder(model, handler, err_handler, symbol=symbol)


def array_event_handler(
    model: type[M],
    handler: EventHandler[list[M]],
    err_handler: ErrHandler,
) -> ArrayDecoder[M]:
    return ArrayDecoder(model, handler, err_handler)


def combined_event_handler(
    model: type[M],
    handler: EventHandler[M],
    err_handler: ErrHandler,
    *,
    symbol_from_stream: bool = True,
) -> CombinedDecoder[M]:
    return CombinedDecoder(model, handler, err_handler, symbol_from_stream=symbol_from_stream)


def raw_handler(handler: WsHandler) -> WsHandler:
    """Pass frames through untouched."""
    return handler
