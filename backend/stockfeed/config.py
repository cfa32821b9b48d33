"""Process configuration read from environment variables.

Variable names follow the properties of the service this one replaces, e.g.
``RABBITMQ_STOMP_ENABLED`` for ``rabbitmq.stomp.enabled``.
"""

from __future__ import annotations

import os
from collections.abc import Mapping
from dataclasses import dataclass, field

from .errors import ConfigError
from .market.seed_prices import DEFAULT_VOLATILITY, SEED_PRICES
from .messaging.destinations import ALLOWED_PREFIXES, STOCK_DESTINATION_PREFIX

_TRUE = {"1", "true", "yes", "on"}
_FALSE = {"0", "false", "no", "off", ""}


def _get_bool(env: Mapping[str, str], name: str, default: bool) -> bool:
    raw = env.get(name)
    if raw is None:
        return default
    value = raw.strip().lower()
    if value in _TRUE:
        return True
    if value in _FALSE:
        return False
    raise ConfigError(f"{name} must be a boolean, got {raw!r}")


def _get_int(env: Mapping[str, str], name: str, default: int) -> int:
    raw = env.get(name, "").strip()
    if not raw:
        return default
    try:
        return int(raw)
    except ValueError:
        raise ConfigError(f"{name} must be an integer, got {raw!r}") from None


def _get_float(env: Mapping[str, str], name: str, default: float) -> float:
    raw = env.get(name, "").strip()
    if not raw:
        return default
    try:
        return float(raw)
    except ValueError:
        raise ConfigError(f"{name} must be a number, got {raw!r}") from None


def _get_symbols(env: Mapping[str, str], name: str, default: tuple[str, ...]) -> tuple[str, ...]:
    raw = env.get(name, "").strip()
    if not raw:
        return default
    symbols: list[str] = []
    for part in raw.split(","):
        symbol = part.strip().upper()
        if symbol and symbol not in symbols:
            symbols.append(symbol)
    return tuple(symbols)


@dataclass(frozen=True)
class Settings:
    """Everything the service reads from its environment. Times are in seconds."""

    broker_enabled: bool = False
    broker_host: str = "localhost"
    broker_port: int = 61613
    broker_username: str = "guest"
    broker_password: str = field(default="guest", repr=False)
    broker_virtual_host: str = "/"
    broker_heartbeat_interval: float = 20.0

    update_interval: float = 1.0
    initial_delay: float = 2.0
    volatility: float = DEFAULT_VOLATILITY
    symbols: tuple[str, ...] = tuple(SEED_PRICES)
    destination_prefix: str = STOCK_DESTINATION_PREFIX

    host: str = "0.0.0.0"
    port: int = 8080
    log_level: str = "INFO"

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> Settings:
        env = os.environ if environ is None else environ
        settings = cls(
            broker_enabled=_get_bool(env, "RABBITMQ_STOMP_ENABLED", False),
            broker_host=env.get("RABBITMQ_STOMP_HOST", "localhost").strip() or "localhost",
            broker_port=_get_int(env, "RABBITMQ_STOMP_PORT", 61613),
            broker_username=env.get("RABBITMQ_STOMP_USERNAME", "guest"),
            broker_password=env.get("RABBITMQ_STOMP_PASSWORD", "guest"),
            broker_virtual_host=env.get("RABBITMQ_STOMP_VIRTUAL_HOST", "/") or "/",
            broker_heartbeat_interval=_get_int(env, "RABBITMQ_STOMP_HEARTBEAT_INTERVAL", 20000) / 1000,
            update_interval=_get_int(env, "STOCK_EXCHANGE_UPDATE_INTERVAL", 1000) / 1000,
            initial_delay=_get_int(env, "STOCK_EXCHANGE_INITIAL_DELAY", 2000) / 1000,
            volatility=_get_float(env, "STOCK_EXCHANGE_VOLATILITY", DEFAULT_VOLATILITY),
            symbols=_get_symbols(env, "STOCK_EXCHANGE_SYMBOLS", tuple(SEED_PRICES)),
            destination_prefix=env.get("STOCK_EXCHANGE_DESTINATION_PREFIX", STOCK_DESTINATION_PREFIX),
            host=env.get("SERVER_HOST", "0.0.0.0").strip() or "0.0.0.0",
            port=_get_int(env, "SERVER_PORT", 8080),
            log_level=env.get("LOG_LEVEL", "INFO").strip().upper() or "INFO",
        )
        settings.validate()
        return settings

    def validate(self) -> None:
        if self.update_interval <= 0:
            raise ConfigError("STOCK_EXCHANGE_UPDATE_INTERVAL must be positive")
        if self.initial_delay < 0:
            raise ConfigError("STOCK_EXCHANGE_INITIAL_DELAY must not be negative")
        if not 0 <= self.volatility < 1:
            raise ConfigError("STOCK_EXCHANGE_VOLATILITY must be in [0, 1)")
        if self.broker_heartbeat_interval <= 0:
            raise ConfigError("RABBITMQ_STOMP_HEARTBEAT_INTERVAL must be positive")
        if not 0 < self.broker_port < 65536:
            raise ConfigError("RABBITMQ_STOMP_PORT must be a valid TCP port")
        if not self.destination_prefix.startswith(ALLOWED_PREFIXES):
            raise ConfigError(
                f"STOCK_EXCHANGE_DESTINATION_PREFIX must start with one of {', '.join(ALLOWED_PREFIXES)}"
            )
