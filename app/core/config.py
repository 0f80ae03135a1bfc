from __future__ import annotations

import os
from collections.abc import Callable
from dataclasses import dataclass
from typing import Literal, TypeVar, get_args

AppEnv = Literal["dev", "test", "prod"]
LogLevel = Literal["debug", "info", "warning", "error"]

N = TypeVar("N", int, float)


def _getenv(name: str, default: str) -> str:
    return os.environ.get(name, default).strip()


@dataclass(frozen=True)
class Settings:
    app_env: AppEnv
    log_level: LogLevel
    log_json: bool
    port: int
    memberful_url: str
    client_id: str
    client_secret: str
    begin_oauth_flow_path: str
    callback_path: str
    http_timeout_sec: float
    state_ttl_sec: int

    @property
    def is_dev(self) -> bool:
        return self.app_env == "dev"

    @property
    def is_test(self) -> bool:
        return self.app_env == "test"

    @property
    def is_prod(self) -> bool:
        return self.app_env == "prod"

    @property
    def cookie_secure(self) -> bool:
        # localhost dev runs over plain http
        return self.is_prod


def _one_of(name: str, default: str, allowed: tuple[str, ...]) -> str:
    value = _getenv(name, default).lower()
    if value not in allowed:
        raise ValueError(f"{name} must be {'|'.join(allowed)} (got {value!r})")
    return value


def _positive(name: str, default: str, cast: Callable[[str], N], kind: str) -> N:
    raw = _getenv(name, default)
    try:
        value = cast(raw)
    except ValueError:
        raise ValueError(f"{name} must be {kind} (got {raw!r})") from None
    if value <= 0:
        raise ValueError(f"{name} must be positive (got {raw!r})")
    return value


def _route_path(name: str, default: str) -> str:
    value = _getenv(name, default)
    if not value.startswith("/"):
        raise ValueError(f"{name} must start with '/' (got {value!r})")
    return value


def load_settings() -> Settings:
    # Your Memberful account URL, e.g. https://example.memberful.com
    memberful_url = _getenv("MEMBERFUL_URL", "https://example.memberful.com")

    return Settings(  # type: ignore[arg-type]
        app_env=_one_of("APP_ENV", "dev", get_args(AppEnv)),
        log_level=_one_of("LOG_LEVEL", "info", get_args(LogLevel)),
        log_json=_getenv("LOG_JSON", "false").lower() in ("1", "true", "yes"),
        port=_positive("PORT", "3000", int, "an integer"),
        memberful_url=memberful_url.rstrip("/"),
        # "OAuth Identifier" and "OAuth Secret" of the custom app in the
        # Memberful dashboard.
        client_id=_getenv("MEMBERFUL_CLIENT_ID", "INSERT_YOUR_OAUTH_IDENTIFIER_HERE"),
        client_secret=_getenv(
            "MEMBERFUL_CLIENT_SECRET", "INSERT_YOUR_OAUTH_SECRET_HERE"
        ),
        begin_oauth_flow_path=_route_path("BEGIN_OAUTH_FLOW_PATH", "/begin-oauth-flow"),
        # Must match the Redirect URL configured for the custom app.
        callback_path=_route_path("CALLBACK_PATH", "/callback"),
        http_timeout_sec=_positive("HTTP_TIMEOUT_SEC", "10", float, "a number"),
        state_ttl_sec=_positive("STATE_TTL_SEC", "600", int, "an integer"),
    )


SETTINGS = load_settings()
