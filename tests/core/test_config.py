from __future__ import annotations

import pytest

from app.core.config import AppEnv, Settings, load_settings

_ENV_VARS = (
    "APP_ENV",
    "LOG_LEVEL",
    "LOG_JSON",
    "PORT",
    "MEMBERFUL_URL",
    "MEMBERFUL_CLIENT_ID",
    "MEMBERFUL_CLIENT_SECRET",
    "BEGIN_OAUTH_FLOW_PATH",
    "CALLBACK_PATH",
    "HTTP_TIMEOUT_SEC",
    "STATE_TTL_SEC",
)


@pytest.fixture(autouse=True)
def clean_env(monkeypatch: pytest.MonkeyPatch) -> None:
    for name in _ENV_VARS:
        monkeypatch.delenv(name, raising=False)


# ---- defaults ----


def test_load_settings_defaults() -> None:
    settings = load_settings()
    assert settings.app_env == "dev"
    assert settings.log_level == "info"
    assert settings.log_json is False
    assert settings.port == 3000
    assert settings.begin_oauth_flow_path == "/begin-oauth-flow"
    assert settings.callback_path == "/callback"
    assert settings.http_timeout_sec == 10.0
    assert settings.state_ttl_sec == 600


def test_load_settings_respects_env_vars(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("APP_ENV", "prod")
    monkeypatch.setenv("PORT", "8080")
    monkeypatch.setenv("LOG_JSON", "true")
    monkeypatch.setenv("MEMBERFUL_URL", "https://acme.memberful.com")
    monkeypatch.setenv("MEMBERFUL_CLIENT_ID", "acme-id")
    monkeypatch.setenv("MEMBERFUL_CLIENT_SECRET", "acme-secret")
    monkeypatch.setenv("BEGIN_OAUTH_FLOW_PATH", "/login")
    monkeypatch.setenv("HTTP_TIMEOUT_SEC", "2.5")
    settings = load_settings()
    assert settings.app_env == "prod"
    assert settings.port == 8080
    assert settings.log_json is True
    assert settings.memberful_url == "https://acme.memberful.com"
    assert settings.client_id == "acme-id"
    assert settings.client_secret == "acme-secret"
    assert settings.begin_oauth_flow_path == "/login"
    assert settings.http_timeout_sec == 2.5


def test_load_settings_normalizes_case_and_whitespace(
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    monkeypatch.setenv("APP_ENV", "  PROD  ")
    monkeypatch.setenv("LOG_LEVEL", "DEBUG")
    settings = load_settings()
    assert settings.app_env == "prod"
    assert settings.log_level == "debug"


def test_load_settings_strips_trailing_slash_from_provider_url(
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    monkeypatch.setenv("MEMBERFUL_URL", "https://acme.memberful.com/")
    assert load_settings().memberful_url == "https://acme.memberful.com"


# ---- invalid values ----


@pytest.mark.parametrize(
    ("name", "value", "message"),
    [
        ("APP_ENV", "staging", "APP_ENV must be dev|test|prod"),
        ("APP_ENV", "", "APP_ENV must be dev|test|prod"),
        ("LOG_LEVEL", "verbose", "LOG_LEVEL must be debug|info|warning|error"),
        ("PORT", "three-thousand", "PORT must be an integer"),
        ("PORT", "0", "PORT must be positive"),
        ("HTTP_TIMEOUT_SEC", "soon", "HTTP_TIMEOUT_SEC must be a number"),
        ("HTTP_TIMEOUT_SEC", "0", "HTTP_TIMEOUT_SEC must be positive"),
        ("STATE_TTL_SEC", "-5", "STATE_TTL_SEC must be positive"),
        ("STATE_TTL_SEC", "1.5", "STATE_TTL_SEC must be an integer"),
        ("CALLBACK_PATH", "callback", "CALLBACK_PATH must start with '/'"),
        ("BEGIN_OAUTH_FLOW_PATH", "login", "BEGIN_OAUTH_FLOW_PATH must start with"),
    ],
)
def test_load_settings_rejects_invalid_values(
    monkeypatch: pytest.MonkeyPatch, name: str, value: str, message: str
) -> None:
    monkeypatch.setenv(name, value)
    with pytest.raises(ValueError, match=message):
        load_settings()


# ---- Settings properties ----


def _make_settings(app_env: AppEnv = "dev") -> Settings:
    return Settings(  # type: ignore[arg-type]
        app_env=app_env,
        log_level="info",
        log_json=False,
        port=3000,
        memberful_url="https://example.memberful.com",
        client_id="id",
        client_secret="secret",
        begin_oauth_flow_path="/begin-oauth-flow",
        callback_path="/callback",
        http_timeout_sec=10.0,
        state_ttl_sec=600,
    )


def test_settings_env_flags() -> None:
    assert _make_settings("dev").is_dev is True
    assert _make_settings("test").is_test is True
    assert _make_settings("prod").is_prod is True
    assert _make_settings("dev").is_prod is False


def test_cookie_secure_only_in_prod() -> None:
    assert _make_settings("prod").cookie_secure is True
    assert _make_settings("dev").cookie_secure is False
    assert _make_settings("test").cookie_secure is False


def test_settings_is_frozen() -> None:
    s = _make_settings()
    with pytest.raises(AttributeError):
        s.client_secret = "other"  # type: ignore[misc]
