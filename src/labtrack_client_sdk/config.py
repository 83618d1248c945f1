from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Callable

from dotenv import load_dotenv

ENV_PREFIX = "LABTRACK_"


class ConfigError(ValueError):
    pass


@dataclass(frozen=True)
class ClientConfig:
    env_name: str
    api_base_url: str
    connect_timeout_seconds: float = 5.0
    read_timeout_seconds: float = 10.0
    retries: int = 2
    retry_backoff_seconds: float = 0.3
    max_connections: int = 10
    verify_ssl: bool = True
    qr_size: int = 240
    qr_margin: int = 0
    default_list_limit: int = 50

    @property
    def normalized_env(self) -> str:
        return self.env_name.lower().strip()


def _env(name: str) -> str | None:
    value = os.getenv(ENV_PREFIX + name)
    if value is None or not value.strip():
        return None
    return value.strip()


def _number(name: str, default: float, parse: Callable[[str], float], minimum: float, *, strict: bool = False) -> float:
    """Read ``LABTRACK_<name>`` and check it against ``minimum`` (exclusive when ``strict``)."""
    raw = _env(name)
    if raw is None:
        value = default
    else:
        try:
            value = parse(raw)
        except ValueError as exc:
            kind = "an integer" if parse is int else "a number"
            raise ConfigError(f"Invalid {ENV_PREFIX}{name}: expected {kind}, got {raw!r}") from exc
    if value < minimum or (strict and value == minimum):
        bound = f"> {minimum}" if strict else f">= {minimum}"
        raise ConfigError(f"Invalid {ENV_PREFIX}{name}: expected {bound}, got {value}")
    return value


def _flag(name: str, default: bool) -> bool:
    raw = _env(name)
    if raw is None:
        return default
    return raw.lower() in {"1", "true", "yes", "on"}


def load_config(env_file: str | None = None) -> ClientConfig:
    """Build a ClientConfig from ``LABTRACK_*`` variables, after loading ``env_file``.

    ``LABTRACK_API_BASE_URL_<ENV>`` wins over ``LABTRACK_API_BASE_URL`` for the
    profile named by ``LABTRACK_ENV`` (default ``dev``). Every invalid value
    raises ``ConfigError`` naming the variable.
    """
    load_dotenv(env_file)

    env_name = _env("ENV") or "dev"
    api_base_url = _env(f"API_BASE_URL_{env_name.upper()}") or _env("API_BASE_URL")
    if not api_base_url:
        raise ConfigError(f"Missing required config values: {ENV_PREFIX}API_BASE_URL")

    # the overall timeout only seeds the connect/read defaults
    timeout = _number("TIMEOUT_SECONDS", 10.0, float, 0, strict=True)
    connect_timeout = _number("CONNECT_TIMEOUT_SECONDS", min(timeout, 5.0), float, 0, strict=True)
    read_timeout = _number("READ_TIMEOUT_SECONDS", max(timeout, connect_timeout), float, 0, strict=True)

    return ClientConfig(
        env_name=env_name,
        api_base_url=api_base_url.rstrip("/"),
        connect_timeout_seconds=connect_timeout,
        read_timeout_seconds=read_timeout,
        retries=int(_number("RETRIES", 2, int, 0)),
        retry_backoff_seconds=_number("RETRY_BACKOFF_SECONDS", 0.3, float, 0),
        max_connections=int(_number("MAX_CONNECTIONS", 10, int, 1)),
        verify_ssl=_flag("VERIFY_SSL", True),
        qr_size=int(_number("QR_SIZE", 240, int, 21)),
        qr_margin=int(_number("QR_MARGIN", 0, int, 0)),
        default_list_limit=int(_number("DEFAULT_LIST_LIMIT", 50, int, 1)),
    )
