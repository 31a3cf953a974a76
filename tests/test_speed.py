import pytest

from sortrace.errors import InvalidConfigurationError
from sortrace.speed import delay_ms, should_batch, speed_label, validate_speed


@pytest.mark.parametrize(
    "speed, expected",
    [(0, 100), (50, 50), (94, 6), (95, 0), (97, 0), (100, 0)],
)
def test_delay_policy(speed, expected):
    assert delay_ms(speed) == expected


def test_batching_starts_at_98():
    assert not should_batch(97)
    assert should_batch(98)
    assert should_batch(100)


@pytest.mark.parametrize(
    "speed, label",
    [(100, "MAX"), (95, "MAX"), (90, "Medium"), (60, "Slow"), (10, "90 ms")],
)
def test_speed_label(speed, label):
    assert speed_label(speed) == label


@pytest.mark.parametrize("speed", [-1, 101, "fast", None, False])
def test_invalid_speed(speed):
    with pytest.raises(InvalidConfigurationError):
        validate_speed(speed)
