"""
What the engine needs from the outside world.

A renderer is anything with ``draw(sequence, comparing, swapping)``; an audio
sink is anything with ``play_tone(frequency_hz, duration_ms)`` and
``play_chord(frequencies, duration_ms)``. Each SortRun is handed its own
collaborators, nothing here is process-wide.
"""

from __future__ import annotations

import math

# C pentatonic, two octaves
PENTATONIC_HZ = (262, 294, 330, 392, 440, 523, 587, 659, 784, 880)
COMPLETION_CHORD = (523.25, 659.25, 783.99)

SWAP_TONE_MS = 30
WRITE_TONE_MS = 20
SWEEP_TONE_MS = 20
CHORD_MS = 300


def value_to_frequency(value: float) -> int:
    index = math.floor((value / 100) * (len(PENTATONIC_HZ) - 1))
    return PENTATONIC_HZ[max(0, min(index, len(PENTATONIC_HZ) - 1))]


class NullRenderer:
    def draw(self, sequence, comparing=(), swapping=()):
        pass


class NullAudio:
    def play_tone(self, frequency_hz, duration_ms):
        pass

    def play_chord(self, frequencies, duration_ms):
        pass
