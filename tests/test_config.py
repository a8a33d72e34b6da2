import pytest

from config import load_settings, parse_id_list


def test_parse_id_list():
    assert parse_id_list("1, 2;3  x 4") == frozenset({1, 2, 3, 4})
    assert parse_id_list(None) == frozenset()


def test_load_settings(monkeypatch):
    monkeypatch.setenv("BOT_TOKEN", "42:TEST")
    monkeypatch.setenv("SUPERADMIN_IDS", "100,200")
    monkeypatch.setenv("WEBHOOK_URL", "https://bot.example.com/")
    monkeypatch.setenv("WEBHOOK_PORT", "8080")
    monkeypatch.delenv("DB_DSN", raising=False)
    settings = load_settings()
    assert settings.bot_token == "42:TEST"
    assert settings.db_dsn is None
    assert settings.is_superadmin(200)
    assert settings.webhook_url == "https://bot.example.com"
    assert settings.webhook_port == 8080
    assert settings.webhook_path == "/api/webhook"


def test_missing_token(monkeypatch):
    monkeypatch.setenv("BOT_TOKEN", "")
    with pytest.raises(RuntimeError):
        load_settings()
