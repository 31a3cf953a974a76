import logging

import pytest

from sortrace import config
from sortrace.errors import InvalidConfigurationError
from sortrace.logging import get_logger


def test_settings_defaults():
    settings = config.settings()

    assert settings.log_level == logging.WARNING
    assert settings.array_size == config.DEFAULT_ARRAY_SIZE
    assert settings.speed == config.DEFAULT_SPEED
    assert settings.sound is True
    assert settings.seed is None


def test_settings_read_from_environment(monkeypatch: pytest.MonkeyPatch):
    monkeypatch.setenv("SORTRACE_ARRAY_SIZE", "64")
    monkeypatch.setenv("SORTRACE_SPEED", "40")
    monkeypatch.setenv("SORTRACE_SOUND", "off")
    monkeypatch.setenv("SORTRACE_SEED", "9")
    config.reset_settings()

    settings = config.settings()

    assert settings.array_size == 64
    assert settings.speed == 40
    assert settings.sound is False
    assert settings.seed == 9


def test_settings_are_cached_until_reset(monkeypatch: pytest.MonkeyPatch):
    first = config.settings()
    monkeypatch.setenv("SORTRACE_SPEED", "10")
    assert config.settings() is first
    config.reset_settings()
    assert config.settings().speed == 10


@pytest.mark.parametrize(
    "key, value",
    [
        ("SORTRACE_ARRAY_SIZE", "0"),
        ("SORTRACE_ARRAY_SIZE", "many"),
        ("SORTRACE_SPEED", "150"),
        ("SORTRACE_SOUND", "maybe"),
        ("SORTRACE_LOG_LEVEL", "LOUD"),
    ],
)
def test_invalid_environment_is_rejected(monkeypatch: pytest.MonkeyPatch, key, value):
    monkeypatch.setenv(key, value)
    config.reset_settings()
    with pytest.raises(InvalidConfigurationError):
        config.settings()


def test_logger_respects_configured_level(monkeypatch: pytest.MonkeyPatch):
    monkeypatch.setenv("SORTRACE_LOG_LEVEL", "debug")
    config.reset_settings()

    logger = get_logger("tests.logging")

    assert logger.level == logging.DEBUG
    assert logger.name == "sortrace.tests.logging"
