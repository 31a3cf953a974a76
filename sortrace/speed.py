"""
Speed slider -> suspension delay.

    speed  0 .. 94  ->  100 - speed  ms per operation
    speed 95 .. 97  ->  0 ms, but still yield to the event loop every operation
    speed 98 .. 100 ->  0 ms and batching: yield once per BATCH_SIZE operations
"""

from __future__ import annotations

from .errors import InvalidConfigurationError

INSTANT_SPEED = 95
BATCH_SPEED = 98


def validate_speed(speed) -> int:
    if isinstance(speed, bool) or not isinstance(speed, (int, float)):
        raise InvalidConfigurationError(f"Speed must be a number, got {speed!r}")
    if not 0 <= speed <= 100:
        raise InvalidConfigurationError(f"Speed must be within 0..100, got {speed}")
    return speed


def delay_ms(speed) -> float:
    if speed >= INSTANT_SPEED:
        return 0
    return max(0, 100 - speed)


def should_batch(speed) -> bool:
    return speed >= BATCH_SPEED


def speed_label(speed) -> str:
    if speed >= INSTANT_SPEED:
        return "MAX"
    delay = delay_ms(speed)
    if delay <= 5:
        return "Fast"
    if delay <= 20:
        return "Medium"
    if delay <= 50:
        return "Slow"
    return f"{delay:g} ms"
