"""Tests for environment-driven settings."""

import pytest

from stopwatch_app.config import Settings

ENV_NAMES = [
    "DATABASE_URL",
    "STORE_CONNECT_RETRIES",
    "STORE_RETRY_DELAY",
    "STORE_CALL_TIMEOUT",
    "STORE_COOLDOWN",
    "STOPWATCH_TICK_INTERVAL",
    "HOST",
    "PORT",
]


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for name in ENV_NAMES:
        monkeypatch.delenv(name, raising=False)


def test_defaults_without_database() -> None:
    settings = Settings.from_env(load_dotenv=False)
    assert settings.database_url is None
    assert settings.connect_retries == 3
    assert settings.tick_interval == 0.01
    assert settings.port == 8000


def test_reads_environment(monkeypatch) -> None:
    monkeypatch.setenv("DATABASE_URL", "sqlite:///records.db")
    monkeypatch.setenv("STORE_CONNECT_RETRIES", "5")
    monkeypatch.setenv("STORE_COOLDOWN", "0")
    monkeypatch.setenv("PORT", "9000")

    settings = Settings.from_env(load_dotenv=False)

    assert settings.database_url == "sqlite:///records.db"
    assert settings.connect_retries == 5
    assert settings.cooldown == 0.0
    assert settings.port == 9000


def test_blank_database_url_means_no_database(monkeypatch) -> None:
    monkeypatch.setenv("DATABASE_URL", "")
    assert Settings.from_env(load_dotenv=False).database_url is None


def test_invalid_number_is_reported(monkeypatch) -> None:
    monkeypatch.setenv("STORE_CALL_TIMEOUT", "soon")
    with pytest.raises(ValueError, match="STORE_CALL_TIMEOUT"):
        Settings.from_env(load_dotenv=False)
