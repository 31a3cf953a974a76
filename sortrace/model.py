from __future__ import annotations

import enum
import math
import random

from .errors import InvalidConfigurationError, InvalidInputError

PRESETS = ("sorted", "reverse", "valley", "mountain")
BENCHMARK_CASES = ("random", "sorted", "reverse", "nearly")


class ElementState(enum.Enum):
    DEFAULT = "default"
    COMPARING = "comparing"
    SWAPPING = "swapping"
    SORTED = "sorted"


class Element:
    """
    One bar.

    ``value`` is the only thing algorithms order by; ``state`` is a
    presentation tag the theme turns into a color. Elements compare by
    identity so that stability can be checked on equal values.
    """
    __slots__ = ("value", "state")

    def __init__(self, value: float, state: ElementState = ElementState.DEFAULT):
        self.value = value
        self.state = state

    def __repr__(self):
        return f"Element({self.value!r}, {self.state.name})"


class Sequence:
    """Fixed-length, mutable list of Elements owned by a single run."""

    def __init__(self, elements=()):
        self._items = list(elements)

    @classmethod
    def from_values(cls, values) -> "Sequence":
        # + 0.0 folds -0.0 into 0.0
        return cls(Element(float(v) + 0.0) for v in values)

    def __len__(self):
        return len(self._items)

    def __getitem__(self, i):
        return self._items[i]

    def __setitem__(self, i, element):
        self._items[i] = element

    def __iter__(self):
        return iter(self._items)

    def __repr__(self):
        return f"Sequence({self.values()!r})"

    def values(self) -> list:
        return [e.value for e in self._items]

    def swap(self, i: int, j: int):
        items = self._items
        items[i], items[j] = items[j], items[i]

    def copy(self) -> "Sequence":
        """Deep copy with fresh Elements and cleared states."""
        return Sequence(Element(e.value) for e in self._items)

    def is_sorted(self) -> bool:
        items = self._items
        return all(items[i].value <= items[i + 1].value for i in range(len(items) - 1))

    def mark_sorted(self, i: int):
        self._items[i].state = ElementState.SORTED

    def clear_states(self):
        for e in self._items:
            e.state = ElementState.DEFAULT


# ============================================================
# ===================== INPUT GENERATORS =====================
# ============================================================

def validate_size(size) -> int:
    if isinstance(size, bool) or not isinstance(size, int):
        raise InvalidConfigurationError(f"Array size must be an integer, got {size!r}")
    if size <= 0:
        raise InvalidConfigurationError(f"Array size must be positive, got {size}")
    return size


def _ramp(size: int) -> list:
    return [((i + 1) / size) * 100 for i in range(size)]


def _shuffle(values: list, rng: random.Random):
    # Fisher-Yates, highest index first
    for i in range(len(values) - 1, 0, -1):
        j = rng.randrange(i + 1)
        values[i], values[j] = values[j], values[i]


def random_sequence(size: int, rng: random.Random | None = None) -> Sequence:
    validate_size(size)
    rng = rng or random.Random()
    values = _ramp(size)
    _shuffle(values, rng)
    return Sequence.from_values(values)


def validate_preset(kind: str) -> str:
    if kind not in PRESETS:
        raise InvalidConfigurationError(f"Unknown preset '{kind}'. Expected one of {PRESETS}.")
    return kind


def validate_case(case: str) -> str:
    if case not in BENCHMARK_CASES:
        raise InvalidConfigurationError(
            f"Unknown benchmark case '{case}'. Expected one of {BENCHMARK_CASES}."
        )
    return case


def preset_sequence(kind: str, size: int) -> Sequence:
    validate_size(size)
    validate_preset(kind)
    mid = size / 2
    if kind == "reverse":
        values = [((size - i) / size) * 100 for i in range(size)]
    elif kind == "valley":
        values = [(abs(i - mid) / mid) * 100 for i in range(size)]
    elif kind == "mountain":
        values = [(1 - abs(i - mid) / mid) * 100 for i in range(size)]
    else:
        values = _ramp(size)
    return Sequence.from_values(values)


def benchmark_sequence(case: str, size: int, rng: random.Random | None = None) -> Sequence:
    validate_size(size)
    validate_case(case)
    rng = rng or random.Random()
    if case == "random":
        return random_sequence(size, rng)
    if case == "reverse":
        return preset_sequence("reverse", size)
    values = _ramp(size)
    if case == "nearly":
        for i in range(size):
            if rng.random() > 0.9:
                values[i] = rng.random() * 100
    return Sequence.from_values(values)


def resized(sequence: Sequence, new_size: int, rng: random.Random | None = None) -> Sequence:
    """Keep the leading values, fill any new slots with random values."""
    validate_size(new_size)
    rng = rng or random.Random()
    values = sequence.values()[:new_size]
    values.extend(rng.random() * 100 for _ in range(new_size - len(values)))
    return Sequence.from_values(values)


# ============================================================
# ====================== CUSTOM INPUT ========================
# ============================================================

def validate_values(values) -> list:
    """Raw values for a direct load: finite numbers within [0, 100]."""
    out = []
    for v in values:
        if isinstance(v, bool) or not isinstance(v, (int, float)):
            raise InvalidInputError(f"Not a number: {v!r}")
        if not math.isfinite(v) or not 0 <= v <= 100:
            raise InvalidInputError(f"Value {v!r} is outside 0..100")
        out.append(float(v))
    if not out:
        raise InvalidInputError("At least one value is required")
    return out


def parse_custom_values(text: str) -> list:
    """
    Parse "5, 2, 8" style input and normalise it onto 0..100.

    The smallest value maps to 0 and the largest to 100; when every value is
    the same they all map to 0.
    """
    if text is None or not text.strip():
        raise InvalidInputError("Please enter comma-separated numbers")
    values = []
    for raw in text.split(","):
        raw = raw.strip()
        try:
            v = float(raw)
        except ValueError:
            raise InvalidInputError(f"Not a number: {raw!r}") from None
        if not math.isfinite(v):
            raise InvalidInputError(f"Not a finite number: {raw!r}")
        values.append(v)
    lo, hi = min(values), max(values)
    span = (hi - lo) or 1
    return [((v - lo) / span) * 100 for v in values]
