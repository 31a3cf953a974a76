"""
One sorting run driven on the asyncio event loop.

A SortRun owns a Sequence, pulls one primitive operation at a time out of
an algorithm generator and awaits ``suspend()`` after each of them. Where a
suspension waits depends on the run's mode:

  step mode  -> until exactly one ``advance_step()`` call releases it
  paused     -> polls every PAUSE_POLL_INTERVAL until the run is resumed
  running    -> ``delay_ms(speed)``, or one bare yield to the loop when 0
  batching   -> only every BATCH_SIZE-th suspension yields at all

Before each operation the driver checks the run state (the checkpoint). A
paused run returns there without finishing; the generator stays parked
where it was, so ``play()`` later resumes the very same trace.
"""

from __future__ import annotations

import asyncio
import enum
import random
import time
from dataclasses import dataclass

from . import config
from .algorithms import Op, algorithm_name, get_generator, validate_algorithm
from .collaborators import (
    CHORD_MS, COMPLETION_CHORD, SWAP_TONE_MS, SWEEP_TONE_MS, WRITE_TONE_MS,
    NullAudio, NullRenderer, value_to_frequency,
)
from .logging import get_logger
from .model import (
    ElementState, Sequence, preset_sequence, random_sequence, resized,
    validate_preset, validate_size, validate_values,
)
from .speed import delay_ms, should_batch, validate_speed

log = get_logger("engine")


class RunState(enum.Enum):
    IDLE = "idle"
    RUNNING = "running"
    STEPPING = "stepping"
    PAUSED = "paused"
    COMPLETED = "completed"
    FAILED = "failed"


_ACTIVE = (RunState.RUNNING, RunState.STEPPING)


def _restore(previous):
    for element, state in previous:
        element.state = state


@dataclass(frozen=True)
class RunStats:
    comparisons: int
    swaps: int
    elapsed_ms: float


class SortRun:
    """
    Sequence + run state + counters for a single algorithm.

    Collaborators are per run: ``renderer.draw(sequence, comparing,
    swapping)`` after every operation, ``audio.play_tone`` on swaps and
    writes, ``audio.play_chord`` once the completion sweep is done.

    ``step()``, ``start()`` and ``advance_step()`` are synchronous but must
    be called while an event loop is running.
    """

    def __init__(self, algorithm="bubble", *, size=None, speed=None, sequence=None,
                 renderer=None, audio=None, rng=None, sweep_delay=config.SWEEP_STEP_DELAY,
                 clock=time.perf_counter):
        settings = config.settings()
        self.algorithm = validate_algorithm(algorithm)
        self.speed = validate_speed(settings.speed if speed is None else speed)
        self.rng = rng or random.Random(settings.seed)
        self.renderer = renderer or NullRenderer()
        self.audio = audio or NullAudio()
        self.sweep_delay = sweep_delay
        self._clock = clock
        if sequence is not None:
            self.sequence = sequence.copy()
        else:
            self.sequence = random_sequence(validate_size(settings.array_size if size is None else size), self.rng)

        self.comparisons = 0
        self.swaps = 0
        self.host_yields = 0
        self.error = None

        self._state = RunState.IDLE
        self._step_mode = False
        self._body = None
        self._driver = None
        self._step_waiter = None
        self._parked = None
        self._batch_counter = 0
        self._started_at = None
        self._finished_at = None

    def __repr__(self):
        return f"<SortRun {self.algorithm} {self._state.value} n={len(self.sequence)}>"

    # ----------------------------------------------------------------- state

    @property
    def state(self) -> RunState:
        return self._state

    @property
    def label(self) -> str:
        return algorithm_name(self.algorithm)

    @property
    def size(self) -> int:
        return len(self.sequence)

    @property
    def step_mode(self) -> bool:
        return self._step_mode

    @property
    def elapsed_ms(self) -> float:
        if self._started_at is None:
            return 0.0
        end = self._finished_at if self._finished_at is not None else self._clock()
        return (end - self._started_at) * 1000.0

    def get_stats(self) -> RunStats:
        return RunStats(self.comparisons, self.swaps, self.elapsed_ms)

    def record_comparison(self):
        self.comparisons += 1

    def record_swap(self):
        self.swaps += 1

    # ------------------------------------------------------------ suspension

    async def suspend(self):
        """The one place an algorithm body gives up control."""
        if self._step_mode:
            await self._wait_for_advance()
            return
        while self._state is RunState.PAUSED:
            await asyncio.sleep(config.PAUSE_POLL_INTERVAL)
        if should_batch(self.speed):
            self._batch_counter += 1
            if self._batch_counter % config.BATCH_SIZE == 0:
                await self._yield_to_host()
            return
        delay = delay_ms(self.speed)
        if delay == 0:
            await self._yield_to_host()
        else:
            self.host_yields += 1
            await asyncio.sleep(delay / 1000.0)

    async def _yield_to_host(self):
        self.host_yields += 1
        await asyncio.sleep(0)

    async def _wait_for_advance(self):
        self._step_waiter = asyncio.get_running_loop().create_future()
        self._parked.set()
        try:
            await self._step_waiter
        finally:
            self._step_waiter = None
            self._parked.clear()

    def advance_step(self) -> bool:
        """Release exactly one pending step-mode suspension."""
        waiter = self._step_waiter
        if waiter is None or waiter.done():
            log.debug("%s: advance_step() with nothing pending", self.algorithm)
            return False
        waiter.set_result(None)
        self._parked.clear()
        return True

    async def wait_for_step(self) -> bool:
        """Wait until a step suspension is pending; False if the run ended instead."""
        driver = self._driver
        if driver is None or self._parked is None:
            return False
        if self._parked.is_set():
            return True
        if driver.done():
            return False
        parked = asyncio.ensure_future(self._parked.wait())
        try:
            await asyncio.wait({parked, driver}, return_when=asyncio.FIRST_COMPLETED)
        finally:
            parked.cancel()
        return self._parked.is_set()

    # ---------------------------------------------------------------- driver

    def _present(self, op, at):
        seq = self.sequence
        tag = ElementState.COMPARING if op in (Op.COMPARE, Op.READ) else ElementState.SWAPPING
        previous = [(seq[i], seq[i].state) for i in at]
        for i in at:
            seq[i].state = tag
        try:
            if tag is ElementState.COMPARING:
                self.renderer.draw(seq, at, ())
            else:
                self.renderer.draw(seq, (), at)
                if op is Op.SWAP:
                    avg = (seq[at[0]].value + seq[at[1]].value) / 2
                    self.audio.play_tone(value_to_frequency(avg), SWAP_TONE_MS)
                else:
                    self.audio.play_tone(value_to_frequency(seq[at[0]].value), WRITE_TONE_MS)
        except BaseException:
            _restore(previous)
            raise
        return previous

    async def _drive(self):
        try:
            while True:
                if self._state not in _ACTIVE:
                    log.debug("%s: stopped at checkpoint (%s)", self.algorithm, self._state.value)
                    return
                try:
                    op, at = next(self._body)
                except StopIteration:
                    break
                previous = self._present(op, at)
                try:
                    await self.suspend()
                finally:
                    _restore(previous)
        except asyncio.CancelledError:
            raise
        except Exception as exc:
            self._state = RunState.FAILED
            self._body = None
            self._step_mode = False
            self.error = exc
            log.exception("%s failed after %d comparisons", self.algorithm, self.comparisons)
            raise
        if self._finished_at is None:
            self._finished_at = self._clock()
        await self._completion_sweep()

    async def _completion_sweep(self):
        seq = self.sequence
        n = len(seq)
        stride = max(1, n // config.SWEEP_TARGET_STEPS)
        for i in range(n):
            if i % stride == 0:
                if self._state not in _ACTIVE:
                    return
                self.audio.play_tone(value_to_frequency(seq[i].value), SWEEP_TONE_MS)
            seq.mark_sorted(i)
            if i % stride == 0:
                self.renderer.draw(seq, (), ())
                await asyncio.sleep(self.sweep_delay)
        self.renderer.draw(seq, (), ())
        self.audio.play_chord(COMPLETION_CHORD, CHORD_MS)
        self._state = RunState.COMPLETED
        self._step_mode = False
        self._body = None
        log.info("%s sorted %d values: %d comparisons, %d swaps, %.1f ms",
                 self.algorithm, n, self.comparisons, self.swaps, self.elapsed_ms)

    def _begin(self):
        self._body = get_generator(self.algorithm, self.sequence, self)
        self.comparisons = 0
        self.swaps = 0
        self.host_yields = 0
        self.error = None
        self._batch_counter = 0
        self.sequence.clear_states()
        self._parked = asyncio.Event()
        self._started_at = self._clock()
        self._finished_at = None
        self._state = RunState.STEPPING if self._step_mode else RunState.RUNNING

    def _launch(self):
        if self._state in _ACTIVE:
            return None
        if self._state is RunState.PAUSED:
            self._state = RunState.RUNNING
            log.debug("%s: resumed", self.algorithm)
        else:
            self._begin()
            log.debug("%s: started (%s)", self.algorithm, self._state.value)
        if self._driver is None or self._driver.done():
            self._driver = asyncio.ensure_future(self._drive())
        return self._driver

    # --------------------------------------------------------------- controls

    async def play(self) -> bool:
        """
        Run from Idle/Completed, or resume from Paused, until the body
        completes or a pause is observed. Returns True once sorted.
        """
        if self._state not in _ACTIVE:
            self._step_mode = False
        if self._launch() is None:
            log.debug("%s: play() ignored while %s", self.algorithm, self._state.value)
            return False
        return await self.join()

    async def join(self) -> bool:
        """Wait for the current driver to stop; True if the run completed."""
        driver = self._driver
        if driver is not None:
            try:
                await driver
            except asyncio.CancelledError:
                if not driver.cancelled():
                    raise
        return self._state is RunState.COMPLETED

    def start(self):
        """Non-blocking ``play()``: schedule the run and return its task."""
        return asyncio.ensure_future(self.play())

    def step(self) -> bool:
        if self._state in (RunState.IDLE, RunState.COMPLETED):
            self._step_mode = True
            self._launch()
            return True
        if self._step_mode:
            return self.advance_step()
        log.debug("%s: step() ignored while %s", self.algorithm, self._state.value)
        return False

    def pause(self) -> bool:
        if self._state not in _ACTIVE:
            log.debug("%s: pause() ignored while %s", self.algorithm, self._state.value)
            return False
        self._state = RunState.PAUSED
        self._step_mode = False
        waiter = self._step_waiter
        if waiter is not None and not waiter.done():
            waiter.set_result(None)
        if self._parked is not None:
            self._parked.clear()
        log.debug("%s: paused after %d comparisons", self.algorithm, self.comparisons)
        return True

    def _discard(self):
        if self._driver is not None and not self._driver.done():
            self._driver.cancel()
        self._driver = None
        self._body = None
        self._step_mode = False
        self.comparisons = 0
        self.swaps = 0
        self.host_yields = 0
        self.error = None
        self._started_at = None
        self._finished_at = None
        self._state = RunState.IDLE

    def _replace(self, build, reason: str) -> bool:
        """Swap in the sequence made by ``build``; refused, without calling it, while active."""
        if self._state in _ACTIVE:
            log.debug("%s: %s ignored while %s", self.algorithm, reason, self._state.value)
            return False
        sequence = build()
        self._discard()
        self.sequence = sequence
        try:
            self.renderer.draw(self.sequence, (), ())
        except Exception:
            log.exception("%s: redraw after %s failed", self.algorithm, reason)
        return True

    def shuffle(self) -> bool:
        return self._replace(lambda: random_sequence(self.size, self.rng), "shuffle")

    def reset(self) -> bool:
        return self._replace(lambda: random_sequence(self.size, self.rng), "reset")

    def set_preset(self, kind: str) -> bool:
        validate_preset(kind)
        return self._replace(lambda: preset_sequence(kind, self.size), f"preset {kind}")

    def resize(self, new_size: int) -> bool:
        validate_size(new_size)
        return self._replace(lambda: resized(self.sequence, new_size, self.rng), f"resize {new_size}")

    def load(self, values) -> bool:
        """Replace the sequence with raw values in 0..100."""
        values = validate_values(values)
        return self._replace(lambda: Sequence.from_values(values), "load")

    def load_sequence(self, sequence: Sequence) -> bool:
        return self._replace(sequence.copy, "load")

    def set_speed(self, speed):
        self.speed = validate_speed(speed)

    def set_algorithm(self, key: str) -> bool:
        validate_algorithm(key)
        if self._state in _ACTIVE:
            log.debug("%s: set_algorithm(%s) ignored while running", self.algorithm, key)
            return False
        if self._state is RunState.PAUSED:
            # the parked body belongs to the old algorithm
            self._discard()
        self.algorithm = key
        return True
