"""
Minimal REST client for public Binance endpoints.

Requests are plain (unsigned). Every call goes through Client.call_api(),
which returns the raw response body or raises:
- RequestError: the request could not be sent or read
- APIError: the endpoint answered with status >= 400
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Mapping, Optional
from urllib.parse import urlencode

import orjson
import requests

from binance_streams.errors import APIError, RequestError

if TYPE_CHECKING:
    from binance_streams.settings import RestSettings

logger = logging.getLogger(__name__)

DEFAULT_BASE_URL = "https://www.binance.com"
DEFAULT_USER_AGENT = "Binance/python"
FORM_CONTENT_TYPE = "application/x-www-form-urlencoded"


def _param_value(value: Any) -> str:
    # Sequences go on the wire as JSON arrays
    if isinstance(value, (list, tuple)):
        return orjson.dumps(list(value)).decode("utf-8")
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


@dataclass
class Request:
    """One REST call before encoding."""

    method: str
    endpoint: str
    query: dict[str, str] = field(default_factory=dict)
    form: dict[str, str] = field(default_factory=dict)
    headers: dict[str, str] = field(default_factory=dict)

    def set_param(self, key: str, value: Any) -> Request:
        self.query[key] = _param_value(value)
        return self

    def set_params(self, params: Mapping[str, Any]) -> Request:
        for key, value in params.items():
            self.set_param(key, value)
        return self

    def set_form_param(self, key: str, value: Any) -> Request:
        self.form[key] = _param_value(value)
        return self

    def query_string(self) -> str:
        return urlencode(sorted(self.query.items()))

    def body(self) -> Optional[str]:
        if not self.form:
            return None
        return urlencode(sorted(self.form.items()))

    def full_url(self, base_url: str) -> str:
        url = f"{base_url}{self.endpoint}"
        query = self.query_string()
        if query:
            url = f"{url}&{query}" if "?" in self.endpoint else f"{url}?{query}"
        return url


class Client:
    """
    REST client over a shared requests.Session.

    Usage:
        client = Client()
        body = client.send_request("GET", "/bapi/asset/v2/public/asset/asset/get-all-asset")
    """

    def __init__(
        self,
        session: Optional[requests.Session] = None,
        *,
        base_url: str = DEFAULT_BASE_URL,
        user_agent: str = DEFAULT_USER_AGENT,
        timeout_s: float = 30.0,
    ) -> None:
        self._session = session or requests.Session()
        self._session.headers["User-Agent"] = user_agent
        self._base_url = base_url.rstrip("/")
        self._timeout_s = timeout_s

    @classmethod
    def from_settings(
        cls, settings: RestSettings, session: Optional[requests.Session] = None
    ) -> Client:
        return cls(
            session,
            base_url=settings.base_url,
            user_agent=settings.user_agent,
            timeout_s=settings.timeout_s,
        )

    @property
    def base_url(self) -> str:
        return self._base_url

    def close(self) -> None:
        self._session.close()

    def call_api(self, request: Request) -> bytes:
        """
        Send the request and return the response body.

        Raises:
            RequestError: If the request fails before a response is read
            APIError: If the response status is >= 400
        """
        url = request.full_url(self._base_url)
        headers = dict(request.headers)
        body = request.body()
        if body is not None:
            headers["Content-Type"] = FORM_CONTENT_TYPE

        logger.debug(f"{request.method} {url}")
        try:
            response = self._session.request(
                request.method,
                url,
                data=body,
                headers=headers,
                timeout=self._timeout_s,
            )
        except requests.RequestException as e:
            raise RequestError(
                f"{request.method} {request.endpoint} failed: {e}",
                url=url,
                component="Client",
            ) from e

        data = response.content
        if response.status_code >= 400:
            raise self._api_error(data, response.status_code)
        return data

    def send_request(
        self,
        method: str,
        path: str,
        query: Optional[Mapping[str, Any]] = None,
        form: Optional[Mapping[str, Any]] = None,
        headers: Optional[Mapping[str, str]] = None,
    ) -> bytes:
        request = Request(method=method.upper(), endpoint=path, headers=dict(headers or {}))
        request.set_params(query or {})
        for key, value in (form or {}).items():
            request.set_form_param(key, value)
        return self.call_api(request)

    @staticmethod
    def _api_error(data: bytes, status_code: int) -> APIError:
        code, msg = 0, ""
        try:
            payload = orjson.loads(data)
        except orjson.JSONDecodeError:
            payload = None
        if isinstance(payload, dict):
            raw_code = payload.get("code", 0)
            code = raw_code if isinstance(raw_code, int) else 0
            msg = str(payload.get("msg") or payload.get("message") or "")
        if not msg:
            msg = data[:200].decode("utf-8", errors="replace")
        return APIError(code=code, msg=msg, status_code=status_code, component="Client")
