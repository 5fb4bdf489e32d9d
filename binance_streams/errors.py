"""
Custom exceptions for the Binance stream and REST clients.

Exception hierarchy:
- BinanceStreamsError (base)
  - ConfigurationError: Invalid configuration or subscription arguments
  - HandshakeError: WebSocket could not be established
  - TransportError: Established connection failed or was closed by the peer
    - LivenessTimeoutError: Peer stopped answering pings
  - DecodeError: Frame could not be decoded into the expected event
  - RequestError: REST request could not be sent or read
  - APIError: REST endpoint answered with an error status
  - ServiceError: REST endpoint answered but reported failure
"""

from __future__ import annotations

from typing import Any, Optional


class BinanceStreamsError(Exception):
    """Base exception for all binance_streams errors."""

    def __init__(
        self,
        message: str,
        *,
        component: Optional[str] = None,
        details: Optional[dict[str, Any]] = None,
    ) -> None:
        self.component = component
        self.details = details or {}
        super().__init__(message)

    def __str__(self) -> str:
        parts = [super().__str__()]
        if self.component:
            parts.append(f"[component={self.component}]")
        if self.details:
            parts.append(f"[details={self.details}]")
        return " ".join(parts)


class ConfigurationError(BinanceStreamsError):
    """Raised when configuration or subscription arguments are invalid."""

    def __init__(
        self,
        message: str,
        *,
        field: Optional[str] = None,
        value: Optional[Any] = None,
        component: Optional[str] = None,
        details: Optional[dict[str, Any]] = None,
    ) -> None:
        self.field = field
        self.value = value
        details = details or {}
        if field:
            details["field"] = field
        if value is not None:
            details["value"] = str(value)
        super().__init__(message, component=component, details=details)


class HandshakeError(BinanceStreamsError):
    """Raised synchronously by serve() when the WebSocket handshake fails."""

    def __init__(
        self,
        message: str,
        *,
        url: Optional[str] = None,
        component: Optional[str] = None,
        details: Optional[dict[str, Any]] = None,
    ) -> None:
        self.url = url
        details = details or {}
        if url:
            details["url"] = url
        super().__init__(message, component=component, details=details)


class TransportError(BinanceStreamsError):
    """Delivered to the error callback when an established connection ends."""

    def __init__(
        self,
        message: str,
        *,
        url: Optional[str] = None,
        close_code: Optional[int] = None,
        component: Optional[str] = None,
        details: Optional[dict[str, Any]] = None,
    ) -> None:
        self.url = url
        self.close_code = close_code
        details = details or {}
        if url:
            details["url"] = url
        if close_code is not None:
            details["close_code"] = close_code
        super().__init__(message, component=component, details=details)


class LivenessTimeoutError(TransportError):
    """Peer did not answer pings within the keepalive timeout."""

    def __init__(
        self,
        message: str,
        *,
        silence_s: float,
        url: Optional[str] = None,
        component: Optional[str] = None,
        details: Optional[dict[str, Any]] = None,
    ) -> None:
        self.silence_s = silence_s
        details = details or {}
        details["silence_s"] = round(silence_s, 3)
        super().__init__(message, url=url, component=component, details=details)


class DecodeError(BinanceStreamsError):
    """Raised when a frame cannot be decoded into the expected event."""

    def __init__(
        self,
        message: str,
        *,
        raw_data: Optional[bytes] = None,
        expected_type: Optional[str] = None,
        component: Optional[str] = None,
        details: Optional[dict[str, Any]] = None,
    ) -> None:
        self.raw_data = raw_data
        self.expected_type = expected_type
        details = details or {}
        if expected_type:
            details["expected_type"] = expected_type
        # raw_data stays off details to keep log lines short
        super().__init__(message, component=component, details=details)


class RequestError(BinanceStreamsError):
    """Raised when a REST request fails before a response is read."""

    def __init__(
        self,
        message: str,
        *,
        url: Optional[str] = None,
        component: Optional[str] = None,
        details: Optional[dict[str, Any]] = None,
    ) -> None:
        self.url = url
        details = details or {}
        if url:
            details["url"] = url
        super().__init__(message, component=component, details=details)


class APIError(BinanceStreamsError):
    """Error body returned by a REST endpoint with status >= 400."""

    def __init__(
        self,
        *,
        code: int = 0,
        msg: str = "",
        status_code: Optional[int] = None,
        component: Optional[str] = None,
        details: Optional[dict[str, Any]] = None,
    ) -> None:
        self.code = code
        self.msg = msg
        self.status_code = status_code
        details = details or {}
        if status_code is not None:
            details["status_code"] = status_code
        super().__init__(
            f"<APIError> code={code}, msg={msg}", component=component, details=details
        )


class ServiceError(BinanceStreamsError):
    """Raised when a REST response reports success=false."""
