import os

os.environ.setdefault("SDL_VIDEODRIVER", "dummy")
os.environ.setdefault("SDL_AUDIODRIVER", "dummy")
os.environ.setdefault("PYGAME_HIDE_SUPPORT_PROMPT", "1")

import random

import pytest

from sortrace import config

from tests.utils.recorders import RecordingAudio, RecordingRenderer

_ENV_KEYS = (
    "SORTRACE_LOG_LEVEL",
    "SORTRACE_ARRAY_SIZE",
    "SORTRACE_SPEED",
    "SORTRACE_SOUND",
    "SORTRACE_SEED",
)


@pytest.fixture(autouse=True)
def _clean_settings(monkeypatch: pytest.MonkeyPatch):
    for key in _ENV_KEYS:
        monkeypatch.delenv(key, raising=False)
    config.reset_settings()
    yield
    config.reset_settings()


@pytest.fixture
def rng() -> random.Random:
    return random.Random(1234)


@pytest.fixture
def renderer() -> RecordingRenderer:
    return RecordingRenderer()


@pytest.fixture
def audio() -> RecordingAudio:
    return RecordingAudio()
