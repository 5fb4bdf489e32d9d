"""
Purpose:
    - Load client settings from a TOML file
    - Apply environment overrides
    - Build the per-call runtime configs (keepalive, dial) from them

Environment overrides use ``BINANCE_STREAMS_<SECTION>__<FIELD>``, e.g.
``BINANCE_STREAMS_STREAMS__KEEPALIVE_TIMEOUT_S=30``.
"""

from __future__ import annotations

import logging
import os
import tomllib
from pathlib import Path
from typing import Any, Mapping, Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from binance_streams.errors import ConfigurationError
from binance_streams.ws.config import (
    HANDSHAKE_TIMEOUT_S,
    KEEPALIVE_TIMEOUT_S,
    PING_WRITE_TIMEOUT_S,
    READ_LIMIT,
    DialConfig,
    KeepaliveConfig,
    Venue,
)

_LOGGER = logging.getLogger(__name__)

ENV_PREFIX = "BINANCE_STREAMS_"


class StreamSettings(BaseModel):
    model_config = ConfigDict(extra="forbid")
    use_testnet: bool = Field(default=False, description="Connect to testnet hosts")
    keepalive_enabled: bool = Field(default=True, description="Run the liveness monitor")
    keepalive_timeout_s: float = Field(
        default=KEEPALIVE_TIMEOUT_S, gt=0, description="Max silence before closing"
    )
    keepalive_write_timeout_s: float = Field(
        default=PING_WRITE_TIMEOUT_S, gt=0, description="Max time to write one ping"
    )
    handshake_timeout_s: float = Field(default=HANDSHAKE_TIMEOUT_S, gt=0)
    read_limit: int = Field(default=READ_LIMIT, gt=0, description="Max inbound message bytes")
    proxy: Optional[str] = Field(default=None, description="HTTP proxy URL for WebSocket dials")
    spot_ws_base_url: Optional[str] = Field(default=None, description="Override spot host")
    futures_ws_base_url: Optional[str] = Field(default=None, description="Override futures host")

    def keepalive(self) -> KeepaliveConfig:
        return KeepaliveConfig(
            enabled=self.keepalive_enabled,
            timeout_s=self.keepalive_timeout_s,
            write_timeout_s=self.keepalive_write_timeout_s,
        )

    def dial_config(self) -> DialConfig:
        return DialConfig(
            handshake_timeout_s=self.handshake_timeout_s,
            read_limit=self.read_limit,
            proxy=self.proxy,
        )

    def ws_base_url_for(self, venue: Venue) -> Optional[str]:
        if venue in (Venue.BINANCE_SPOT, Venue.BINANCE_SPOT_TESTNET):
            return self.spot_ws_base_url
        return self.futures_ws_base_url


class RestSettings(BaseModel):
    model_config = ConfigDict(extra="forbid")
    base_url: str = Field(default="https://www.binance.com", description="REST host")
    user_agent: str = Field(default="Binance/python", description="User-Agent header")
    timeout_s: float = Field(default=30.0, gt=0, description="Per-request timeout")


class Settings(BaseModel):
    model_config = ConfigDict(extra="forbid")
    streams: StreamSettings = Field(default_factory=StreamSettings)
    rest: RestSettings = Field(default_factory=RestSettings)


class SettingsLoader:
    """
    Settings loader; TOML file first, environment on top.
    """

    def __init__(
        self,
        base_dir: str = ".",
        env_prefix: str = ENV_PREFIX,
        environ: Optional[Mapping[str, str]] = None,
    ) -> None:
        if not env_prefix:
            raise ValueError("Environment prefix must be a non-empty string")
        self._base_dir = base_dir
        self._env_prefix = env_prefix
        self._environ = environ

    def load_file(self, file_name: str) -> dict[str, Any]:
        path = Path(file_name)
        if not path.is_absolute():
            path = Path(self._base_dir) / file_name

        if not path.exists():
            raise FileNotFoundError(f"Config file not found: {path}")

        with path.open("rb") as f:
            return tomllib.load(f)

    def env_overrides(self) -> dict[str, dict[str, str]]:
        environ = os.environ if self._environ is None else self._environ
        overrides: dict[str, dict[str, str]] = {}
        for key, value in environ.items():
            if not key.startswith(self._env_prefix):
                continue
            section, sep, name = key[len(self._env_prefix) :].partition("__")
            if not sep or not section or not name:
                continue
            overrides.setdefault(section.lower(), {})[name.lower()] = value
        return overrides

    def load(self, file_name: Optional[str] = None) -> Settings:
        """
        Build Settings from an optional TOML file and the environment.

        Raises:
            FileNotFoundError: If file_name is given but missing
            ConfigurationError: If the merged values fail validation
        """
        data: dict[str, Any] = self.load_file(file_name) if file_name else {}
        for section, values in self.env_overrides().items():
            target = data.setdefault(section, {})
            if not isinstance(target, dict):
                raise ConfigurationError(
                    f"cannot override non-table section {section!r}",
                    field=section,
                    component="SettingsLoader",
                )
            target.update(values)
            _LOGGER.debug(
                "settings_env_override",
                extra={"event": "settings_env_override", "section": section, "keys": sorted(values)},
            )

        try:
            return Settings.model_validate(data)
        except ValidationError as e:
            first = e.errors()[0]
            raise ConfigurationError(
                f"Invalid settings: {first['msg']}",
                field=".".join(str(p) for p in first["loc"]),
                component="SettingsLoader",
            ) from e
