import pytest

from callback_guard.config import CallbackConfig
from callback_guard.utils.ids import (
    create_short_callback_id,
    create_short_id,
    is_short_callback_id,
    parse_short_callback_id,
)
from callback_guard.utils.time import to_epoch_seconds


def test_short_ids() -> None:
    short_id = create_short_id(12)
    assert len(short_id) == 12
    assert set(short_id) <= set("0123456789abcdefghijklmnopqrstuvwxyz")
    assert set(create_short_id(6, alphabet="ab")) <= {"a", "b"}
    assert len(create_short_id(5, alphabet="aa")) == 5
    with pytest.raises(ValueError):
        create_short_id(0)


def test_short_callback_ids() -> None:
    token = create_short_callback_id("cbm", length=10)
    assert parse_short_callback_id(token) == ("cbm", token[4:])
    assert is_short_callback_id(token, "cbm") is True
    assert is_short_callback_id(token, "other") is False
    assert parse_short_callback_id("no-delimiter") is None
    assert parse_short_callback_id(":abc") is None
    assert parse_short_callback_id("cbm:a:b") is None


def test_epoch_normalization() -> None:
    assert to_epoch_seconds(1_700_000_000) == 1_700_000_000
    assert to_epoch_seconds(1_700_000_000_123) == 1_700_000_000
    assert to_epoch_seconds(None) > 1_700_000_000


def test_config_validation() -> None:
    with pytest.raises(ValueError):
        CallbackConfig(secret="")
    with pytest.raises(ValueError):
        CallbackConfig(secret="s", ttl_seconds=0)
    with pytest.raises(ValueError):
        CallbackConfig(secret="s", surrogate_prefix="a#b")


def test_config_from_env(monkeypatch) -> None:
    monkeypatch.delenv("CALLBACK_SIGN_SECRET", raising=False)
    monkeypatch.setenv("BOT_TOKEN", "bot-token")
    monkeypatch.setenv("CALLBACK_TTL_SECONDS", "120")
    monkeypatch.setenv("CALLBACK_BIND_TO_USER", "0")
    config = CallbackConfig.from_env()
    assert config.secret == "bot-token"
    assert config.ttl_seconds == 120
    assert config.bind_by_default is False

    monkeypatch.setenv("CALLBACK_SIGN_SECRET", "sign-secret")
    assert CallbackConfig.from_env().secret == "sign-secret"
