"""Process configuration, read once from the environment at import.

Every variable is validated here so a bad deployment fails at startup
instead of on the first request that touches it.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Literal, get_args

AppEnv = Literal["dev", "test", "prod"]
LogLevel = Literal["debug", "info", "warning", "error"]

_TRUTHY = ("1", "true", "yes", "on")
_FALSY = ("0", "false", "no", "off", "")


def _getenv(name: str, default: str = "") -> str:
    return os.environ.get(name, default).strip()


def _choice(name: str, default: str, allowed: tuple[str, ...]) -> str:
    raw = _getenv(name, default).lower()
    if raw not in allowed:
        raise ValueError(f"{name} must be {'|'.join(allowed)} (got {raw!r})")
    return raw


def _flag(name: str, default: bool) -> bool:
    raw = _getenv(name, "true" if default else "false").lower()
    if raw in _TRUTHY:
        return True
    if raw in _FALSY:
        return False
    raise ValueError(f"{name} must be true|false (got {raw!r})")


def _optional(name: str) -> str | None:
    return _getenv(name) or None


@dataclass(frozen=True)
class Settings:
    app_env: AppEnv
    log_level: LogLevel
    log_json: bool
    port: int
    database_url: str | None  # postgresql+asyncpg://...; None = in-memory repos
    redis_url: str | None  # None = in-memory cache
    jwt_public_key: str | None = None  # PEM; None = ephemeral dev key

    @property
    def is_dev(self) -> bool:
        return self.app_env == "dev"

    @property
    def is_test(self) -> bool:
        return self.app_env == "test"

    @property
    def is_prod(self) -> bool:
        return self.app_env == "prod"


def load_settings() -> Settings:
    app_env = _choice("APP_ENV", "dev", get_args(AppEnv))
    log_level = _choice("LOG_LEVEL", "info", get_args(LogLevel))

    port_raw = _getenv("PORT", "8000")
    try:
        port = int(port_raw)
    except ValueError:
        raise ValueError(f"PORT must be an integer (got {port_raw!r})") from None

    # PEM blocks are often passed through env files with escaped newlines.
    public_key = _optional("JWT_PUBLIC_KEY")
    if public_key is not None:
        public_key = public_key.replace("\\n", "\n")

    return Settings(  # type: ignore[arg-type]
        app_env=app_env,
        log_level=log_level,
        log_json=_flag("LOG_JSON", False),
        port=port,
        database_url=_optional("DATABASE_URL"),
        redis_url=_optional("REDIS_URL"),
        jwt_public_key=public_key,
    )


SETTINGS = load_settings()
