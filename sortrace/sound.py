"""
Audio collaborator: numpy-synthesised sine voices on a pygame mixer channel.

HOW THE ENGINE WORKS
====================

Each tone creates an _Osc. Per chunk every live oscillator is rendered and
mixed into one buffer:

  wave[t] = sin(2pi * phase[t]) + HARMONIC_BLEND * sin(4pi * phase[t])

Envelope is raised-cosine (Hann) on both ends, so notes start and stop
without clicks:

  Attack:  env[t] = 0.5 * (1 - cos(pi * t / A))
  Release: env[t] = 0.5 * (1 + cos(pi * (t - start) / R))

A chord is several oscillators whose onsets are staggered by CHORD_STAGGER;
an oscillator's ``delay`` keeps it silent until its onset.

When MAX_VOICES is exceeded the oldest voice is shortened to a
VOICE_STEAL_FADE-sample release. The mix is divided by sqrt(voices).
"""

from __future__ import annotations

import math
import threading
import time

import numpy as np
import pygame

from .config import (
    CHORD_STAGGER, CHUNK_SIZE, DEFAULT_VOLUME, HARMONIC_BLEND, MAX_VOICES,
    SAMPLE_RATE, SOUND_ATTACK, SOUND_RELEASE, TRIGGER_MIN_INTERVAL, VOICE_STEAL_FADE,
)
from .errors import InvalidConfigurationError
from .logging import get_logger

TWO_PI = 2.0 * math.pi

log = get_logger("sound")


class _Osc:
    """
    Single oscillator voice.

    Attributes
    ----------
    freq      : float  - frequency in Hz
    age       : int    - samples rendered so far, including the delay
    delay     : int    - silent samples before the note starts
    max_age   : int    - delay + note length in samples
    attack    : int    - attack length in samples
    release   : int    - release length in samples
    """
    __slots__ = ('freq', 'age', 'delay', 'max_age', 'attack', 'release')

    def __init__(self, freq, length, attack, release, delay=0):
        self.freq    = freq
        self.age     = 0
        self.delay   = delay
        self.max_age = delay + length
        self.attack  = min(attack, max(1, length // 2))
        self.release = min(release, max(1, length // 2))


class SoundEngine:
    def __init__(self, sample_rate=SAMPLE_RATE, chunk_size=CHUNK_SIZE):
        self.sample_rate  = sample_rate
        self.chunk_size   = chunk_size
        self.attack_smp   = max(1, int(SOUND_ATTACK  * sample_rate))
        self.release_smp  = max(1, int(SOUND_RELEASE * sample_rate))
        self.enabled      = True
        self.volume       = DEFAULT_VOLUME
        self._oscs        = []
        self._lock        = threading.Lock()
        self._running     = False
        self._thread      = None
        self._channel     = None
        self._last_tone   = 0.0

    def start(self):
        pygame.mixer.pre_init(self.sample_rate, -16, 2, self.chunk_size)
        pygame.mixer.init()
        self._channel = pygame.mixer.Channel(1)
        self._running = True
        self._thread  = threading.Thread(target=self._loop, daemon=True)
        self._thread.start()
        log.debug("sound engine started at %d Hz", self.sample_rate)

    def stop(self):
        self._running = False
        if self._thread:
            self._thread.join(timeout=1.0)
            self._thread = None
        if self._channel:
            self._channel.stop()
            self._channel = None

    def set_volume(self, percent):
        if isinstance(percent, bool) or not isinstance(percent, (int, float)) or not 0 <= percent <= 100:
            raise InvalidConfigurationError(f"Volume must be within 0..100, got {percent!r}")
        self.volume = percent / 100

    def nudge_volume(self, delta) -> int:
        """Step the volume by ``delta`` percent, clamped to 0..100; returns the new percent."""
        percent = max(0, min(100, round(self.volume * 100) + delta))
        self.set_volume(percent)
        return percent

    @property
    def voices(self) -> int:
        with self._lock:
            return len(self._oscs)

    def _add(self, osc):
        with self._lock:
            if len(self._oscs) >= MAX_VOICES:
                oldest = self._oscs[0]
                steal = min(VOICE_STEAL_FADE, oldest.release)
                oldest.max_age = max(oldest.age, oldest.delay) + steal
                oldest.release = steal
            self._oscs.append(osc)

    def _samples(self, duration_ms) -> int:
        return max(1, int(duration_ms / 1000 * self.sample_rate))

    def play_tone(self, frequency_hz, duration_ms):
        # rate-limited: bursts of swaps at full speed would otherwise flood the mixer
        if not self.enabled:
            return
        now = time.monotonic()
        if now - self._last_tone < TRIGGER_MIN_INTERVAL:
            return
        self._last_tone = now
        self._add(_Osc(frequency_hz, self._samples(duration_ms), self.attack_smp, self.release_smp))

    def play_chord(self, frequencies, duration_ms):
        if not self.enabled:
            return
        stagger = int(CHORD_STAGGER * self.sample_rate)
        for i, freq in enumerate(frequencies):
            self._add(_Osc(freq, self._samples(duration_ms), self.attack_smp,
                           self.release_smp, delay=i * stagger))

    def _gen_chunk(self) -> np.ndarray:
        buf = np.zeros(self.chunk_size, dtype=np.float64)
        idx = np.arange(self.chunk_size, dtype=np.float64)

        with self._lock:
            alive = []
            for o in self._oscs:
                # note-relative age; negative while the onset is still ahead
                note_age = idx + (o.age - o.delay)
                sounding = note_age >= 0
                length = o.max_age - o.delay

                phases = (np.maximum(note_age, 0) * (o.freq / self.sample_rate)) % 1.0
                wave = np.sin(TWO_PI * phases)
                if HARMONIC_BLEND > 0.0:
                    wave += HARMONIC_BLEND * np.sin(TWO_PI * 2.0 * phases)

                env = np.where(sounding, 1.0, 0.0)
                a_mask = sounding & (note_age < o.attack)
                if np.any(a_mask):
                    env[a_mask] = 0.5 * (1.0 - np.cos(math.pi * note_age[a_mask] / o.attack))
                rel_start = length - o.release
                r_mask = sounding & (note_age >= rel_start)
                if np.any(r_mask):
                    env[r_mask] = np.maximum(0.0, 0.5 * (1.0 + np.cos(
                        math.pi * (note_age[r_mask] - rel_start) / o.release
                    )))
                env[note_age >= length] = 0.0

                buf += wave * env

                o.age += self.chunk_size
                if o.age < o.max_age:
                    alive.append(o)

            self._oscs = alive
            n_voices = max(1, len(alive))

        buf /= math.sqrt(n_voices) * (1.0 + HARMONIC_BLEND)
        return buf * self.volume

    def _loop(self):
        """Audio thread: keep the mixer channel queue topped up."""
        chunk_secs = self.chunk_size / self.sample_rate
        while self._running:
            mono   = self._gen_chunk()
            pcm    = (np.clip(mono, -1.0, 1.0) * 32767).astype(np.int16)
            stereo = np.column_stack((pcm, pcm))
            snd    = pygame.mixer.Sound(buffer=stereo.tobytes())
            deadline = time.monotonic() + chunk_secs * 4
            while self._channel.get_queue() is not None and self._running:
                time.sleep(0.001)
                if time.monotonic() > deadline:
                    break
            if self._running:
                self._channel.queue(snd)
            time.sleep(chunk_secs * 0.75)
