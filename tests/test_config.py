import pytest

from console.config import DEFAULT_API_URL, ConsoleConfig


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for name in (
        "CONSOLE_API_URL",
        "CONSOLE_TIMEOUT",
        "CONSOLE_HOST",
        "CONSOLE_PORT",
        "CONSOLE_DEBUG",
        "CONSOLE_LOG_LEVEL",
        "DEVSERVER_PAGE_SIZE",
    ):
        monkeypatch.delenv(name, raising=False)


def test_defaults_without_env():
    config = ConsoleConfig.from_env()

    assert config == ConsoleConfig()
    assert config.api_url == DEFAULT_API_URL


def test_env_overrides(monkeypatch):
    monkeypatch.setenv("CONSOLE_API_URL", "http://db.internal/api/v1/")
    monkeypatch.setenv("CONSOLE_TIMEOUT", "2.5")
    monkeypatch.setenv("CONSOLE_PORT", "9000")
    monkeypatch.setenv("CONSOLE_DEBUG", "yes")
    monkeypatch.setenv("CONSOLE_LOG_LEVEL", "debug")
    monkeypatch.setenv("DEVSERVER_PAGE_SIZE", "25")

    config = ConsoleConfig.from_env()

    assert config.api_url == "http://db.internal/api/v1"
    assert config.timeout == 2.5
    assert config.port == 9000
    assert config.debug is True
    assert config.log_level == "DEBUG"
    assert config.page_size == 25


def test_invalid_numbers_are_rejected(monkeypatch):
    monkeypatch.setenv("CONSOLE_PORT", "eighty")

    with pytest.raises(ValueError, match="Invalid numeric console setting"):
        ConsoleConfig.from_env()


def test_page_size_must_be_positive(monkeypatch):
    monkeypatch.setenv("DEVSERVER_PAGE_SIZE", "0")

    with pytest.raises(ValueError, match="DEVSERVER_PAGE_SIZE"):
        ConsoleConfig.from_env()
