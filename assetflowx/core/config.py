"""Environment-driven settings.

Everything is read once at import into the frozen ``SETTINGS`` object.  A bad
value fails the import with a ValueError naming the variable, so a
misconfigured deployment never starts serving.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Literal, get_args

AppEnv = Literal["dev", "test", "prod"]
LogLevel = Literal["debug", "info", "warning", "error"]

DEFAULT_VAULT_ADDRESS = "0xMockVaultAddress1234567890abcdef1234567890"
DEFAULT_VERIFY_BASE_URL = "https://verify.assetflowx.example"

_TRUE = ("1", "true", "yes", "on")
_FALSE = ("", "0", "false", "no", "off")


def _env(name: str, default: str) -> str:
    return os.environ.get(name, default).strip()


def _env_choice(name: str, default: str, choices: tuple[str, ...]) -> str:
    raw = _env(name, default).lower()
    if raw not in choices:
        raise ValueError(f"{name} must be {'|'.join(choices)} (got {raw!r})")
    return raw


def _env_flag(name: str, default: bool) -> bool:
    raw = _env(name, "true" if default else "false").lower()
    if raw in _TRUE:
        return True
    if raw in _FALSE:
        return False
    raise ValueError(f"{name} must be a boolean (got {raw!r})")


def _env_int(name: str, default: int, *, lo: int, hi: int | None = None) -> int:
    raw = _env(name, str(default))
    try:
        value = int(raw)
    except ValueError:
        raise ValueError(f"{name} must be an integer (got {raw!r})") from None
    if value < lo or (hi is not None and value > hi):
        bounds = f"between {lo} and {hi}" if hi is not None else f"at least {lo}"
        raise ValueError(f"{name} must be {bounds} (got {value})")
    return value


@dataclass(frozen=True)
class Settings:
    app_env: AppEnv
    log_level: LogLevel
    log_json: bool
    port: int
    redis_url: str | None
    platform_fee_bps: int = 1000
    order_ttl_seconds: int = 15 * 60
    idempotency_ttl_seconds: int = 24 * 60 * 60
    vault_address: str = DEFAULT_VAULT_ADDRESS
    verify_base_url: str = DEFAULT_VERIFY_BASE_URL
    seed_demo_data: bool = True

    @property
    def is_dev(self) -> bool:
        return self.app_env == "dev"

    @property
    def is_prod(self) -> bool:
        return self.app_env == "prod"


def load_settings() -> Settings:
    return Settings(  # type: ignore[arg-type]
        app_env=_env_choice("APP_ENV", "dev", get_args(AppEnv)),
        log_level=_env_choice("LOG_LEVEL", "info", get_args(LogLevel)),
        log_json=_env_flag("LOG_JSON", False),
        port=_env_int("PORT", 8000, lo=1, hi=65535),
        redis_url=_env("REDIS_URL", "") or None,
        platform_fee_bps=_env_int("PLATFORM_FEE_BPS", 1000, lo=0, hi=10_000),
        order_ttl_seconds=_env_int("ORDER_TTL_SECONDS", 900, lo=1),
        idempotency_ttl_seconds=_env_int("IDEMPOTENCY_TTL_SECONDS", 86400, lo=1),
        vault_address=_env("VAULT_ADDRESS", DEFAULT_VAULT_ADDRESS),
        verify_base_url=_env("VERIFY_BASE_URL", DEFAULT_VERIFY_BASE_URL).rstrip("/"),
        seed_demo_data=_env_flag("SEED_DEMO_DATA", True),
    )


SETTINGS = load_settings()
