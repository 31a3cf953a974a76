from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from functools import lru_cache

from .errors import InvalidConfigurationError

# ============================================================
# ===================== ENGINE SETTINGS ======================
# ============================================================

DEFAULT_ARRAY_SIZE = 300
BENCHMARK_ARRAY_SIZE = 50
DEFAULT_SPEED = 98          # 0..100, higher = faster

# How often a paused suspension re-checks the run state, in seconds.
PAUSE_POLL_INTERVAL = 0.05

# At batching speed only every BATCH_SIZE-th suspension yields to the loop.
BATCH_SIZE = 20

# Completion sweep: roughly SWEEP_TARGET_STEPS tones, SWEEP_STEP_DELAY apart.
SWEEP_STEP_DELAY = 0.010
SWEEP_TARGET_STEPS = 50

# ============================================================
# =================== ALGORITHM CONSTANTS ====================
# ============================================================

TIM_RUN = 32
INTRO_INSERTION_THRESHOLD = 16
COMB_SHRINK = 1.3
RADIX_BASE = 10

# ============================================================
# ======================= FRONT END ==========================
# ============================================================

WINDOW_WIDTH = 1100
WINDOW_HEIGHT = 680
FPS = 60
BACKGROUND_COLOR = (5, 5, 10)
LABEL_COLOR = (140, 140, 160)
BAR_SPACING = 1
PANEL_GAP = 6

# ============================================================
# ========================= AUDIO ============================
# ============================================================

SAMPLE_RATE = 44100
CHUNK_SIZE = 512
SOUND_ATTACK = 0.012
SOUND_RELEASE = 0.060
HARMONIC_BLEND = 0.08
MAX_VOICES = 24
VOICE_STEAL_FADE = 64
TRIGGER_MIN_INTERVAL = 0.035
CHORD_STAGGER = 0.030
DEFAULT_VOLUME = 0.85

_LOG_LEVELS = {"CRITICAL", "ERROR", "WARNING", "INFO", "DEBUG"}


def _bool_from_env(value: str | None, *, default: bool) -> bool:
    if value is None:
        return default
    value = value.strip().lower()
    if value in {"1", "true", "yes", "on"}:
        return True
    if value in {"0", "false", "no", "off"}:
        return False
    raise InvalidConfigurationError(f"Invalid boolean value '{value}'")


def _parse_optional_int(raw: str | None) -> int | None:
    if raw is None or raw.strip() == "":
        return None
    try:
        return int(raw)
    except ValueError as exc:
        raise InvalidConfigurationError(f"Invalid integer value '{raw}'") from exc


def _parse_log_level(raw: str | None) -> int:
    if raw is None or raw.strip() == "":
        return logging.WARNING
    level = raw.strip().upper()
    if level not in _LOG_LEVELS:
        raise InvalidConfigurationError(
            f"Unsupported log level '{raw}'. Expected one of {sorted(_LOG_LEVELS)}."
        )
    return getattr(logging, level)


@dataclass(frozen=True)
class Settings:
    log_level: int
    array_size: int
    speed: int
    sound: bool
    seed: int | None

    @classmethod
    def from_env(cls) -> "Settings":
        size = _parse_optional_int(os.getenv("SORTRACE_ARRAY_SIZE"))
        if size is None:
            size = DEFAULT_ARRAY_SIZE
        if size <= 0:
            raise InvalidConfigurationError(f"SORTRACE_ARRAY_SIZE must be positive, got {size}")
        speed = _parse_optional_int(os.getenv("SORTRACE_SPEED"))
        if speed is None:
            speed = DEFAULT_SPEED
        if not 0 <= speed <= 100:
            raise InvalidConfigurationError(f"SORTRACE_SPEED must be within 0..100, got {speed}")
        return cls(
            log_level=_parse_log_level(os.getenv("SORTRACE_LOG_LEVEL")),
            array_size=size,
            speed=speed,
            sound=_bool_from_env(os.getenv("SORTRACE_SOUND"), default=True),
            seed=_parse_optional_int(os.getenv("SORTRACE_SEED")),
        )


@lru_cache(maxsize=None)
def settings() -> Settings:
    return Settings.from_env()


def reset_settings() -> None:
    """Forget the cached settings so the next call re-reads the environment."""
    settings.cache_clear()
