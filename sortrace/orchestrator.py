"""
Running several SortRuns side by side on one event loop.

HeadToHead races two algorithms over copies of one input; Benchmark races
every algorithm over copies of one input pattern at full speed and ranks
the finishers. Runs never share a Sequence, only its initial contents.
"""

from __future__ import annotations

import asyncio
import random
from dataclasses import dataclass

from . import config
from .algorithms import ALGORITHM_KEYS, algorithm_name, validate_algorithm
from .engine import RunState, SortRun
from .errors import InvalidConfigurationError
from .logging import get_logger
from .model import (
    benchmark_sequence, preset_sequence, random_sequence, resized,
    validate_case, validate_preset, validate_size,
)
from .speed import validate_speed

log = get_logger("orchestrator")

METRICS = ("time", "comparisons")


class HeadToHead:
    """Two runs, one shared starting sequence, one shared speed."""

    def __init__(self, left="bubble", right="quick", *, size=None, speed=None,
                 renderers=(None, None), audio=None, rng=None,
                 sweep_delay=config.SWEEP_STEP_DELAY):
        settings = config.settings()
        self.rng = rng or random.Random(settings.seed)
        self.speed = validate_speed(settings.speed if speed is None else speed)
        shared = random_sequence(validate_size(settings.array_size if size is None else size), self.rng)
        self.runs = tuple(
            SortRun(algo, sequence=shared, speed=self.speed, renderer=renderer,
                    audio=audio, rng=self.rng, sweep_delay=sweep_delay)
            for algo, renderer in zip((left, right), renderers)
        )
        self.initial = shared

    @property
    def left(self) -> SortRun:
        return self.runs[0]

    @property
    def right(self) -> SortRun:
        return self.runs[1]

    @property
    def running(self) -> bool:
        return any(r.state in (RunState.RUNNING, RunState.STEPPING) for r in self.runs)

    async def play(self) -> tuple:
        """Start both runs together; a failing run does not stop the other."""
        for run in self.runs:
            run.set_speed(self.speed)
        results = await asyncio.gather(*(r.play() for r in self.runs), return_exceptions=True)
        for run, result in zip(self.runs, results):
            if isinstance(result, BaseException):
                log.error("%s failed in head-to-head: %r", run.algorithm, result)
        return tuple(results)

    def pause(self) -> bool:
        return any([r.pause() for r in self.runs])

    def _load(self, build) -> bool:
        if self.running:
            log.debug("head-to-head: input change ignored while running")
            return False
        shared = build()
        self.initial = shared
        for run in self.runs:
            run.load_sequence(shared)
        return True

    def shuffle(self) -> bool:
        return self._load(lambda: random_sequence(len(self.initial), self.rng))

    def reset(self) -> bool:
        return self.shuffle()

    def set_preset(self, kind: str) -> bool:
        validate_preset(kind)
        return self._load(lambda: preset_sequence(kind, len(self.initial)))

    def resize(self, new_size: int) -> bool:
        validate_size(new_size)
        return self._load(lambda: resized(self.initial, new_size, self.rng))

    def set_speed(self, speed):
        self.speed = validate_speed(speed)
        for run in self.runs:
            run.set_speed(self.speed)

    def set_algorithms(self, left: str, right: str) -> bool:
        validate_algorithm(left)
        validate_algorithm(right)
        if self.running:
            return False
        self.left.set_algorithm(left)
        self.right.set_algorithm(right)
        return True


@dataclass(frozen=True)
class LeaderboardEntry:
    algorithm: str
    elapsed_ms: float
    comparisons: int

    @property
    def name(self) -> str:
        return algorithm_name(self.algorithm)


def validate_metric(metric: str) -> str:
    if metric not in METRICS:
        raise InvalidConfigurationError(f"Unknown metric '{metric}'. Expected one of {METRICS}.")
    return metric


def rank(entries, metric: str = "time") -> list:
    """
    Sort entries ascending by ``metric``.

    ``entries`` must already be in algorithm declaration order: the sort is
    stable, so ties keep that order.
    """
    validate_metric(metric)
    if metric == "time":
        return sorted(entries, key=lambda e: e.elapsed_ms)
    return sorted(entries, key=lambda e: e.comparisons)


class Benchmark:
    """One run per algorithm over one shared input, all at maximum speed."""

    def __init__(self, algorithms=ALGORITHM_KEYS, *, size=config.BENCHMARK_ARRAY_SIZE,
                 case="random", renderer_factory=None, audio=None, rng=None,
                 sweep_delay=config.SWEEP_STEP_DELAY):
        if not algorithms:
            raise InvalidConfigurationError("Benchmark needs at least one algorithm")
        self.algorithms = tuple(validate_algorithm(a) for a in algorithms)
        self.size = validate_size(size)
        self.rng = rng or random.Random(config.settings().seed)
        self.runs = {}
        for algo in self.algorithms:
            renderer = renderer_factory(algo) if renderer_factory else None
            self.runs[algo] = SortRun(algo, size=self.size, speed=100, renderer=renderer,
                                      audio=audio, rng=self.rng, sweep_delay=sweep_delay)
        self.results = {}
        self.failures = {}
        self.aborted = False
        self._running = False
        self.generate(case)

    @property
    def running(self) -> bool:
        return self._running

    def generate(self, case: str = "random") -> bool:
        validate_case(case)
        if self._running:
            log.debug("benchmark: generate(%s) ignored while running", case)
            return False
        shared = benchmark_sequence(case, self.size, self.rng)
        self.case = case
        self.initial = shared
        for run in self.runs.values():
            run.load_sequence(shared)
        return True

    async def _run_one(self, algo: str):
        run = self.runs[algo]
        try:
            completed = await run.play()
        except Exception as exc:
            self.failures[algo] = exc
            log.error("benchmark: %s failed: %r", algo, exc)
            return
        if completed and not self.aborted:
            self.results[algo] = LeaderboardEntry(algo, run.elapsed_ms, run.comparisons)
            log.info("benchmark: %s done in %.1f ms, %d comparisons",
                     algo, run.elapsed_ms, run.comparisons)

    async def run(self, metric: str = "time") -> list:
        """Race every run to completion (or abort) and return the leaderboard."""
        validate_metric(metric)
        if self._running:
            return self.leaderboard(metric)
        self._running = True
        self.aborted = False
        self.results = {}
        self.failures = {}
        for run in self.runs.values():
            if run.state is not RunState.IDLE:
                run.load_sequence(self.initial)
            run.set_speed(100)
        try:
            await asyncio.gather(*(self._run_one(a) for a in self.algorithms))
        finally:
            self._running = False
        return self.leaderboard(metric)

    def abort(self):
        self.aborted = True
        for run in self.runs.values():
            run.pause()

    def leaderboard(self, metric: str = "time") -> list:
        entries = [self.results[a] for a in self.algorithms if a in self.results]
        return rank(entries, metric)
